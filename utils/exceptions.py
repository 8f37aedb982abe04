"""
Custom Exceptions
自定义异常类

按影响范围分类:
- AuthError: 致命错误，终止整个运行
- NotFoundError: 单个题目失败，运行继续
- TransientFetchError: 可重试的网络/超时错误
- NoAnswerAvailable: 不算失败，只减少该子资源的总数
"""


class FetchError(Exception):
    """下载器基础异常类"""

    def __init__(self, message: str, details: dict = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self):
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(FetchError):
    """配置错误"""
    pass


class AuthError(FetchError):
    """凭证缺失、被拒绝或会话已过期"""

    RELOGIN_HINT = "Please re-login: leetcode-fetch logout && leetcode-fetch login"


class NotFoundError(FetchError):
    """题目或资源不存在 (含无权限访问的付费题)"""

    def __init__(self, message: str, slug: str = None, **kwargs):
        super().__init__(message, kwargs)
        self.slug = slug


class TransientFetchError(FetchError):
    """网络错误、超时或服务端 5xx"""

    def __init__(self, message: str, source: str = None, **kwargs):
        super().__init__(message, kwargs)
        self.source = source


class NoAnswerAvailable(FetchError):
    """该语言下没有社区题解"""

    def __init__(self, slug: str, variant: str):
        super().__init__(f"No community answer for {slug} ({variant})")
        self.slug = slug
        self.variant = variant


class StorageError(FetchError):
    """存储错误"""
    pass
