"""统一业务异常模型。

所有跨模块抛出的业务级错误都继承自 BusinessError。传输层在后台线程中
抛出这些异常，并在运行循环边界统一捕获，转换为 on_error 回调文本，
调用方永远不需要处理异常。
"""


class BusinessError(Exception):
    """业务异常基类。

    Attributes:
        code: 机器可读错误码（如 "MISSING_API_KEY"）。
        message: 用户可读错误信息，也是 on_error 收到的文本。
        http_status: 映射到 HTTP 时可用的状态码，默认 400。
        extra: 其他补充字段（例如 model、body 等）。
    """

    def __init__(self, code: str, message: str, http_status: int = 400, **extra):
        self.code = code
        self.message = message
        self.http_status = http_status
        self.extra = extra
        super().__init__(message)


class ConfigError(BusinessError):
    """配置缺失，例如没有可用的 API Key。发生在任何网络请求之前。"""


class NetworkError(BusinessError):
    """网络层错误，例如连接失败、超时等。不做内部重试。"""


class ProtocolError(BusinessError):
    """服务端返回非 2xx 状态码时抛出。"""


class DecodeError(BusinessError):
    """单行 SSE 数据或响应体不是合法 JSON。"""


class ContentRecoveryError(BusinessError):
    """流式与兜底解析都没有拿到任何文本。"""


class InfillError(BusinessError):
    """改写结果为空或无法从回答中取出替换文本。"""
