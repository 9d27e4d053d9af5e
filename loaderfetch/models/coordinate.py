"""
Maven 坐标

group:artifact:version[:classifier][@extension] 的解析、路径与标识符生成。
"""

import re
from dataclasses import dataclass, replace
from typing import Optional

from loaderfetch.exceptions import PlaceholderUnresolvedError

_PLACEHOLDER_RE = re.compile(r"\$\{[^}]+\}")


@dataclass(frozen=True)
class MavenCoordinate:
    """一个物理构件的坐标"""

    group: str
    artifact: str
    version: str
    classifier: Optional[str] = None
    extension: str = "jar"

    @classmethod
    def parse(cls, identifier: str, extension: Optional[str] = None) -> "MavenCoordinate":
        """
        解析坐标字符串

        Args:
            identifier: 形如 group:artifact:version[:classifier][@ext]
            extension: 覆盖坐标中的扩展名
        """
        ext = "jar"
        if "@" in identifier:
            identifier, ext = identifier.split("@", 1)
        parts = identifier.split(":")
        if len(parts) < 3 or len(parts) > 4:
            raise ValueError(f"无效的 Maven 坐标: {identifier}")
        classifier = parts[3] if len(parts) == 4 else None
        return cls(
            group=parts[0],
            artifact=parts[1],
            version=parts[2],
            classifier=classifier,
            extension=extension or ext,
        )

    @property
    def placeholders(self) -> list:
        return _PLACEHOLDER_RE.findall(self.version)

    def has_placeholder(self, token: Optional[str] = None) -> bool:
        if token is None:
            return bool(self.placeholders)
        return token in self.version

    def identifier(self, with_extension: bool = False) -> str:
        ident = f"{self.group}:{self.artifact}:{self.version}"
        if self.classifier:
            ident += f":{self.classifier}"
        if with_extension or self.extension != "jar":
            ident += f"@{self.extension}"
        return ident

    @property
    def file_name(self) -> str:
        name = f"{self.artifact}-{self.version}"
        if self.classifier:
            name += f"-{self.classifier}"
        return f"{name}.{self.extension}"

    @property
    def path(self) -> str:
        """规范化的相对路径 (使用 / 分隔)"""
        if self.has_placeholder():
            raise PlaceholderUnresolvedError(
                f"坐标中仍有未解析的占位符: {self.identifier()}",
                context={"placeholders": self.placeholders},
            )
        return "/".join(
            [*self.group.split("."), self.artifact, self.version, self.file_name]
        )

    def with_extension(self, extension: str) -> "MavenCoordinate":
        return replace(self, extension=extension)

    def __str__(self) -> str:
        return self.identifier()
