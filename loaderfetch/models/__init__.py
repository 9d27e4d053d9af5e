"""
LoaderFetch 数据模型包

包含版本、坐标、manifest、模块树与配置模型定义。
"""

from loaderfetch.models.version import (
    MinecraftVersion,
    version_gte,
    is_version_acceptable,
    is_one_twelve_fg2,
)
from loaderfetch.models.coordinate import MavenCoordinate
from loaderfetch.models.module import Artifact, Module, ModuleType, generate_artifact
from loaderfetch.models.manifest import (
    LegacyLibrary,
    LegacyVersionManifest,
    Library,
    LibraryDownload,
    VersionManifest,
)
from loaderfetch.models.expected import (
    ExpectedFile,
    WILDCARD_MCP_VERSION,
    generated_files_for,
    resolve_placeholders,
)
from loaderfetch.models.config import LoaderType, ResolverConfig

__all__ = [
    # 版本
    "MinecraftVersion",
    "version_gte",
    "is_version_acceptable",
    "is_one_twelve_fg2",
    # 坐标
    "MavenCoordinate",
    # 模块树
    "Artifact",
    "Module",
    "ModuleType",
    "generate_artifact",
    # manifest
    "LegacyLibrary",
    "LegacyVersionManifest",
    "Library",
    "LibraryDownload",
    "VersionManifest",
    # 生成文件
    "ExpectedFile",
    "WILDCARD_MCP_VERSION",
    "generated_files_for",
    "resolve_placeholders",
    # 配置
    "LoaderType",
    "ResolverConfig",
]
