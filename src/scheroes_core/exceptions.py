# File: src/scheroes_core/exceptions.py
"""
SC Heroes 核心库 - 异常体系 (Exceptions)

定义库内统一使用的异常类，以便上层应用（如控制台前端）能进行精细的错误处理。
所有编解码层的错误都是"本次解码致命"的：不做部分恢复，直接向上冒泡终止所属会话。
"""


class ScHeroesError(Exception):
    """SC Heroes 核心库的所有内部异常的基类。

    上层应用可以通过捕获此异常来处理所有由 scheroes-core 抛出的已知错误。
    """

    pass


class ConfigError(ScHeroesError):
    """配置加载或校验失败。

    触发场景:
    1. 缺少必要字段 (如 uid)。
    2. 字段格式错误 (如端口不是整数、语言代码不受支持)。
    3. 找不到配置文件或环境变量。
    """

    pass


class NetworkError(ScHeroesError):
    """网络层面的错误 (I/O 级别)。

    触发场景:
    1. TCP 连接建立失败。
    2. HTTP 请求发送失败。
    3. DNS 解析失败。

    注意: 核心库内部不做任何自动重试，需要重试的调用方应在会话调用边界自行处理。
    """

    pass


class TransportClosedError(NetworkError):
    """在已关闭 (或从未打开) 的连接上进行读写。

    对聊天接收循环而言这是"干净的"退出条件，而不是故障。
    """

    pass


class ProtocolError(ScHeroesError):
    """协议交互错误 (逻辑级别)。

    字节流一旦与假定的帧格式不一致，后续所有偏移量都不可信，
    因此此类错误对当前解码总是致命的。
    """

    pass


class MalformedVarintError(ProtocolError):
    """Varint 的续位 (continuation bit) 超出了允许的最大字节数。"""

    pass


class UnknownPacketError(ProtocolError):
    """聊天协议收到了未登记的包类型字节。

    这意味着字节流已失去同步，无法安全地继续解析。
    """

    def __init__(self, packet_id: int) -> None:
        self.packet_id = packet_id
        super().__init__(f"Unknown packet: 0x{packet_id:02x}")


class DataFormatError(ProtocolError):
    """游戏 API 数据格式错误 (如计算出的字符串长度为负数)。"""

    def __init__(self, data: bytes, reason: str = "") -> None:
        self.data = data
        message = f"Size {len(data)} bytes"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class EmptyResponseError(ProtocolError):
    """HTTP 接口返回了空的响应体。"""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"{self.__class__.__name__}: {path}")


class StateError(ScHeroesError):
    """状态机错误 (FSM Violation)。

    触发场景:
    1. 在未连接状态下启动接收循环。
    2. 在接收线程运行中重复启动。
    """

    pass
