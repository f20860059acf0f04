# src/scheroes_core/protocols/__init__.py
"""
SC Heroes 协议层 (Protocol Layer)

- chat: 持久 TCP 连接上的聊天协议 (判别字节 + Varint 长度字符串)。
- game: HTTP 传输的游戏 API 协议 (标志字节长度 + UTF-16 字符串 + x-DL 尾部)。

packets/registry 模块只负责字节与数据结构之间的转换，不含任何 I/O；
session 模块负责驱动传输层与状态流转。
"""
