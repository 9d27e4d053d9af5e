"""
LoaderFetch 解析层

版本策略注册表、解析器基类与两代构建工具的适配器。
"""

from loaderfetch.resolver.base import BaseResolver, LoaderResolver
from loaderfetch.resolver.families import FORGE, NEOFORGE, LoaderFamily, get_family
from loaderfetch.resolver.gradle2 import Gradle2Adapter
from loaderfetch.resolver.gradle3 import Gradle3Adapter
from loaderfetch.resolver.registry import (
    FORGE_REGISTRY,
    NEOFORGE_REGISTRY,
    StrategyEntry,
    StrategyRegistry,
    get_registry,
    get_resolver,
)

__all__ = [
    "BaseResolver",
    "LoaderResolver",
    "LoaderFamily",
    "FORGE",
    "NEOFORGE",
    "get_family",
    "Gradle2Adapter",
    "Gradle3Adapter",
    "StrategyEntry",
    "StrategyRegistry",
    "FORGE_REGISTRY",
    "NEOFORGE_REGISTRY",
    "get_registry",
    "get_resolver",
]
