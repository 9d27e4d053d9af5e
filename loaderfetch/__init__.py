"""
LoaderFetch

解析、校验并暂存 Forge/NeoForge 加载器所需的构件，生成分发清单使用的模块树。
"""

from loaderfetch.models import Module, ModuleType, MinecraftVersion, ResolverConfig
from loaderfetch.resolver import FORGE_REGISTRY, NEOFORGE_REGISTRY, get_resolver

__version__ = "0.1.0"

__all__ = [
    "Module",
    "ModuleType",
    "MinecraftVersion",
    "ResolverConfig",
    "FORGE_REGISTRY",
    "NEOFORGE_REGISTRY",
    "get_resolver",
    "__version__",
]
