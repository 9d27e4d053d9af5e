"""
LoaderFetch 统一异常体系

提供分层的异常结构，支持错误代码、上下文信息和 JSON 序列化。
"""

from typing import Any, Dict, List, Optional


class LoaderFetchError(Exception):
    """LoaderFetch 基础异常类"""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self._get_default_code()
        self.context = context or {}

    def _get_default_code(self) -> str:
        """获取默认错误代码"""
        return "E000"

    def to_dict(self) -> Dict[str, Any]:
        """将异常转换为字典格式"""
        return {
            "error": True,
            "code": self.code,
            "message": self.message,
            "context": self.context,
            "type": self.__class__.__name__,
        }

    def __str__(self) -> str:
        if self.code:
            return f"[{self.code}] {self.message}"
        return self.message


class ConfigError(LoaderFetchError):
    """配置相关错误"""

    def _get_default_code(self) -> str:
        return "E100"


class ConfigParseError(ConfigError):
    """配置解析错误"""

    def _get_default_code(self) -> str:
        return "E101"


class ConfigValidationError(ConfigError):
    """配置验证错误"""

    def _get_default_code(self) -> str:
        return "E102"


class DownloadError(LoaderFetchError):
    """下载相关错误"""

    def _get_default_code(self) -> str:
        return "E300"


class DownloadNetworkError(DownloadError):
    """下载网络错误"""

    def _get_default_code(self) -> str:
        return "E301"


class DownloadChecksumError(DownloadError):
    """下载校验错误"""

    def _get_default_code(self) -> str:
        return "E302"


class DownloadFileError(DownloadError):
    """下载文件操作错误"""

    def _get_default_code(self) -> str:
        return "E303"


class ResolverError(LoaderFetchError):
    """解析流程相关错误"""

    def _get_default_code(self) -> str:
        return "E600"


class NoStrategyFoundError(ResolverError):
    """没有策略覆盖该版本组合"""

    def _get_default_code(self) -> str:
        return "E601"


class InstallerUnavailableError(ResolverError):
    """无法获取安装器"""

    def _get_default_code(self) -> str:
        return "E602"


class InstallerOutputMissingError(ResolverError):
    """安装器没有在预期位置生成输出"""

    def _get_default_code(self) -> str:
        return "E603"


class ManifestNotFoundError(ResolverError):
    """归档中缺少 version.json 或归档不可读"""

    def _get_default_code(self) -> str:
        return "E604"


class PlaceholderUnresolvedError(ResolverError):
    """占位符无法从 manifest 中解析"""

    def _get_default_code(self) -> str:
        return "E605"


class RequiredArtifactMissingError(ResolverError):
    """必需的生成文件在所有候选位置都不存在"""

    def __init__(
        self,
        message: str,
        tried: Optional[List[str]] = None,
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, code, context)
        self.tried = list(tried or [])
        self.context["tried"] = self.tried

    def _get_default_code(self) -> str:
        return "E606"


class ExpectedLibraryMissingError(ResolverError):
    """安装器本应生成的库文件不存在"""

    def _get_default_code(self) -> str:
        return "E607"


class InstallerTimeoutError(ResolverError):
    """外部进程超出期限"""

    def _get_default_code(self) -> str:
        return "E608"


class ResolutionCancelledError(ResolverError):
    """解析被调用方取消"""

    def _get_default_code(self) -> str:
        return "E609"


class PostProcessError(ResolverError):
    """批量解压后处理失败"""

    def _get_default_code(self) -> str:
        return "E610"


class JavaLaunchError(ResolverError):
    """无法启动 Java 进程"""

    def _get_default_code(self) -> str:
        return "E611"


__all__ = [
    # 基础异常
    "LoaderFetchError",
    # 配置异常
    "ConfigError",
    "ConfigParseError",
    "ConfigValidationError",
    # 下载异常
    "DownloadError",
    "DownloadNetworkError",
    "DownloadChecksumError",
    "DownloadFileError",
    # 解析异常
    "ResolverError",
    "NoStrategyFoundError",
    "InstallerUnavailableError",
    "InstallerOutputMissingError",
    "ManifestNotFoundError",
    "PlaceholderUnresolvedError",
    "RequiredArtifactMissingError",
    "ExpectedLibraryMissingError",
    "InstallerTimeoutError",
    "ResolutionCancelledError",
    "PostProcessError",
    "JavaLaunchError",
]
