"""
加载器家族

Forge 与 NeoForge 的坐标命名、远程仓库与安全公告表。
"""

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from loaderfetch.models import MinecraftVersion, ModuleType, is_version_acceptable

MOJANG_REMOTE_REPOSITORY = "https://libraries.minecraft.net/"


@dataclass(frozen=True)
class LoaderFamily:
    """一个加载器产品线"""

    name: str
    display_name: str
    group: str
    artifact: str
    remote_repository: str
    hosted_type: ModuleType
    # 需要运行安装器的 minor 版本 (1.20.3+ 总是需要)
    installer_minors: Tuple[int, ...]
    # minor -> 最低安全版本，None 表示没有补丁
    advisories: Dict[int, Optional[str]] = field(default_factory=dict)
    # 在 legacy_until 及之前使用的构件名
    legacy_artifact: Optional[str] = None
    legacy_until: Optional[MinecraftVersion] = None
    # 这些 minor 的构件版本带有 -<mc> 后缀
    suffixed_minors: Tuple[int, ...] = ()
    mojang_repository: str = MOJANG_REMOTE_REPOSITORY

    def is_legacy(self, minecraft_version: MinecraftVersion) -> bool:
        return self.legacy_until is not None and minecraft_version <= self.legacy_until

    def loader_artifact(self, minecraft_version: MinecraftVersion) -> str:
        if self.is_legacy(minecraft_version) and self.legacy_artifact:
            return self.legacy_artifact
        return self.artifact

    def artifact_version(self, minecraft_version: MinecraftVersion, loader_version: str) -> str:
        """Maven 仓库中的构件版本"""
        if self.name == "neoforge" and not self.is_legacy(minecraft_version):
            return loader_version
        version = f"{minecraft_version}-{loader_version}"
        if is_version_acceptable(minecraft_version, self.suffixed_minors):
            version += f"-{minecraft_version}"
        return version

    def version_name(self, minecraft_version: MinecraftVersion, loader_version: str) -> str:
        """安装器写入 versions/<name>/<name>.json 时使用的名称"""
        if self.name == "neoforge" and not self.is_legacy(minecraft_version):
            return f"neoforge-{loader_version}"
        return f"{minecraft_version}-forge-{loader_version}"

    def self_library_prefix(self, minecraft_version: MinecraftVersion) -> str:
        return f"{self.group}:{self.loader_artifact(minecraft_version)}:"

    def advisory(self, minecraft_version: MinecraftVersion) -> Tuple[bool, Optional[str]]:
        """
        查询安全公告

        Returns:
            (是否处于受影响范围, 最低安全版本或 None)
        """
        if minecraft_version.major != 1 or minecraft_version.minor not in self.advisories:
            return False, None
        return True, self.advisories[minecraft_version.minor]


# https://github.com/advisories/GHSA-jfh8-c2jp-5v3q (log4j2 RCE, 1.12 - 1.18)
FORGE = LoaderFamily(
    name="forge",
    display_name="Forge",
    group="net.minecraftforge",
    artifact="forge",
    remote_repository="https://maven.minecraftforge.net/",
    hosted_type=ModuleType.FORGE_HOSTED,
    installer_minors=tuple(range(13, 21)),
    advisories={
        12: "14.23.5.2857",
        13: None,
        14: None,
        15: None,
        16: "36.2.20",
        17: "37.1.1",
        18: "38.0.16",
    },
    suffixed_minors=(7, 8, 9),
)

NEOFORGE = LoaderFamily(
    name="neoforge",
    display_name="NeoForge",
    group="net.neoforged",
    artifact="neoforge",
    remote_repository="https://maven.neoforged.net/releases/",
    hosted_type=ModuleType.NEOFORGE_HOSTED,
    installer_minors=(19, 20),
    advisories={minor: None for minor in range(12, 19)},
    legacy_artifact="forge",
    legacy_until=MinecraftVersion.parse("1.20.1"),
)

FAMILIES = {family.name: family for family in (FORGE, NEOFORGE)}


def get_family(name: str) -> LoaderFamily:
    try:
        return FAMILIES[name.lower()]
    except KeyError:
        raise ValueError(f"未知的加载器: {name}")
