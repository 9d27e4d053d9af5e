"""
Version manifest 模型

version.json 的两种格式：ForgeGradle 2 (通用 jar 内嵌) 与 ForgeGradle 3 (安装器生成)。
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple


@dataclass(frozen=True)
class LegacyLibrary:
    """ForgeGradle 2 的库记录"""

    name: str
    url: Optional[str] = None
    checksums: Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: dict) -> "LegacyLibrary":
        return cls(
            name=data["name"],
            url=data.get("url") or None,
            checksums=tuple(data.get("checksums") or ()),
        )


@dataclass(frozen=True)
class LegacyVersionManifest:
    """ForgeGradle 2 version.json"""

    id: str
    libraries: Tuple[LegacyLibrary, ...] = ()

    @classmethod
    def from_dict(cls, data: dict) -> "LegacyVersionManifest":
        return cls(
            id=data.get("id", ""),
            libraries=tuple(
                LegacyLibrary.from_dict(lib) for lib in data.get("libraries", [])
            ),
        )


@dataclass(frozen=True)
class LibraryDownload:
    """downloads.artifact 描述"""

    path: str
    url: str
    sha1: Optional[str] = None
    size: Optional[int] = None


@dataclass(frozen=True)
class Library:
    """ForgeGradle 3 的库记录"""

    name: str
    artifact: Optional[LibraryDownload] = None

    @classmethod
    def from_dict(cls, data: dict) -> "Library":
        artifact = (data.get("downloads") or {}).get("artifact")
        download = None
        if artifact is not None:
            download = LibraryDownload(
                path=artifact.get("path", ""),
                url=artifact.get("url", ""),
                sha1=artifact.get("sha1"),
                size=artifact.get("size"),
            )
        return cls(name=data["name"], artifact=download)


@dataclass(frozen=True)
class VersionManifest:
    """ForgeGradle 3 version.json"""

    id: str
    game_arguments: Tuple[str, ...] = ()
    libraries: Tuple[Library, ...] = ()
    raw: dict = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_dict(cls, data: dict) -> "VersionManifest":
        arguments = data.get("arguments") or {}
        game = [arg for arg in arguments.get("game", []) if isinstance(arg, str)]
        return cls(
            id=data.get("id", ""),
            game_arguments=tuple(game),
            libraries=tuple(Library.from_dict(lib) for lib in data.get("libraries", [])),
            raw=data,
        )

    def argument_value(self, flag: str) -> Optional[str]:
        """扫描 game 参数中的 flag/value 对"""
        args: List[str] = list(self.game_arguments)
        for idx, arg in enumerate(args):
            if arg == flag and idx + 1 < len(args):
                return args[idx + 1]
        return None

    def find_library(self, prefix: str) -> Optional[Library]:
        return next((lib for lib in self.libraries if lib.name.startswith(prefix)), None)
