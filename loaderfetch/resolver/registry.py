"""
版本策略注册表

每个加载器家族一个按顺序排列的 (谓词, 工厂) 表，第一个匹配的策略胜出。
表的顺序决定结果，不能随意调整。
"""

from dataclasses import dataclass
from typing import Any, Callable, List, Sequence, Tuple

from loaderfetch.exceptions import NoStrategyFoundError
from loaderfetch.models import MinecraftVersion
from loaderfetch.resolver.base import LoaderResolver
from loaderfetch.resolver.families import FORGE, NEOFORGE, LoaderFamily, get_family
from loaderfetch.resolver.gradle2 import Gradle2Adapter
from loaderfetch.resolver.gradle3 import Gradle3Adapter

Predicate = Callable[[MinecraftVersion, str], bool]
Factory = Callable[..., LoaderResolver]


@dataclass(frozen=True)
class StrategyEntry:
    name: str
    predicate: Predicate
    factory: Factory


def adapter_entry(adapter) -> StrategyEntry:
    return StrategyEntry(adapter.__name__, adapter.is_for_version, adapter)


class StrategyRegistry:
    """版本分段的策略注册表"""

    def __init__(self, family: LoaderFamily, entries: Sequence[StrategyEntry]):
        self.family = family
        self.entries: Tuple[StrategyEntry, ...] = tuple(entries)

    def find(self, minecraft_version: MinecraftVersion, loader_version: str) -> StrategyEntry:
        for entry in self.entries:
            if entry.predicate(minecraft_version, loader_version):
                return entry
        raise NoStrategyFoundError(
            f"没有适用于 Minecraft {minecraft_version} 的 {self.family.display_name} 解析器!",
            context={
                "loader": self.family.name,
                "minecraft_version": str(minecraft_version),
                "loader_version": loader_version,
            },
        )

    def select(
        self,
        minecraft_version: MinecraftVersion,
        loader_version: str,
        absolute_root: str,
        relative_root: str,
        base_url: str,
        **options: Any,
    ) -> LoaderResolver:
        """
        选择并构造策略

        Raises:
            NoStrategyFoundError: 没有任何条目匹配
        """
        entry = self.find(minecraft_version, loader_version)
        return entry.factory(
            absolute_root,
            relative_root,
            base_url,
            minecraft_version,
            loader_version,
            self.family,
            **options,
        )

    def names(self) -> List[str]:
        return [entry.name for entry in self.entries]


FORGE_REGISTRY = StrategyRegistry(
    FORGE, [adapter_entry(Gradle2Adapter), adapter_entry(Gradle3Adapter)]
)

NEOFORGE_REGISTRY = StrategyRegistry(
    NEOFORGE, [adapter_entry(Gradle2Adapter), adapter_entry(Gradle3Adapter)]
)

REGISTRIES = {
    FORGE.name: FORGE_REGISTRY,
    NEOFORGE.name: NEOFORGE_REGISTRY,
}


def get_registry(loader: str) -> StrategyRegistry:
    return REGISTRIES[get_family(loader).name]


def get_resolver(
    loader: str,
    minecraft_version: MinecraftVersion,
    loader_version: str,
    absolute_root: str,
    relative_root: str,
    base_url: str,
    **options: Any,
) -> LoaderResolver:
    """按加载器名称选择家族注册表并构造策略"""
    return get_registry(loader).select(
        minecraft_version, loader_version, absolute_root, relative_root, base_url, **options
    )
