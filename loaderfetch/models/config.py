"""
配置模型

解析运行配置并进行基本校验。
"""

import os
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from loaderfetch.exceptions import ConfigValidationError
from loaderfetch.models.version import MinecraftVersion


class LoaderType(Enum):
    """加载器类型"""

    FORGE = "forge"
    NEOFORGE = "neoforge"


def default_java_executable() -> str:
    """优先使用 JAVA_HOME 中的 java"""
    java_home = os.environ.get("JAVA_HOME")
    if java_home:
        executable = "java.exe" if os.name == "nt" else "java"
        return os.path.join(java_home, "bin", executable)
    return "java"


@dataclass
class ResolverConfig:
    """解析运行配置"""

    root: str
    base_url: str
    loader: LoaderType
    minecraft_version: MinecraftVersion
    loader_version: str
    relative_root: str = "repo"
    discard_output: bool = False
    invalidate_cache: bool = False
    java_executable: str = "java"
    installer_timeout: Optional[float] = None
    security_delay: float = 15.0
    max_concurrent: int = 5
    max_retries: int = 3
    retry_delay: float = 1.0
    packxz_tool: Optional[str] = None
    output: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ResolverConfig":
        """从字典创建配置"""
        for key in ("root", "base_url", "loader", "minecraft_version", "loader_version"):
            if not data.get(key):
                raise ConfigValidationError(f"缺少必需配置项: {key}", context={"key": key})

        try:
            loader = LoaderType(str(data["loader"]).lower())
        except ValueError:
            raise ConfigValidationError(
                "loader 必须为 forge/neoforge", context={"loader": data["loader"]}
            )

        try:
            minecraft_version = MinecraftVersion.parse(str(data["minecraft_version"]))
        except ValueError as e:
            raise ConfigValidationError(str(e), context={"key": "minecraft_version"})

        max_concurrent = data.get("max_concurrent", 5)
        if not isinstance(max_concurrent, int) or max_concurrent <= 0:
            raise ConfigValidationError(
                "max_concurrent 必须为正整数", context={"max_concurrent": max_concurrent}
            )

        timeout = data.get("installer_timeout")
        if timeout is not None and float(timeout) <= 0:
            raise ConfigValidationError(
                "installer_timeout 必须大于 0", context={"installer_timeout": timeout}
            )

        return cls(
            root=os.path.abspath(data["root"]),
            base_url=data["base_url"],
            loader=loader,
            minecraft_version=minecraft_version,
            loader_version=str(data["loader_version"]),
            relative_root=data.get("relative_root", "repo"),
            discard_output=bool(data.get("discard_output", False)),
            invalidate_cache=bool(data.get("invalidate_cache", False)),
            java_executable=data.get("java_executable") or default_java_executable(),
            installer_timeout=float(timeout) if timeout is not None else None,
            security_delay=float(data.get("security_delay", 15.0)),
            max_concurrent=max_concurrent,
            max_retries=int(data.get("max_retries", 3)),
            retry_delay=float(data.get("retry_delay", 1.0)),
            packxz_tool=data.get("packxz_tool"),
            output=data.get("output"),
        )
