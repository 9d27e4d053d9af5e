"""
版本模型

Minecraft 版本解析、比较以及加载器版本工具函数。
"""

import re
from dataclasses import dataclass, field
from functools import total_ordering
from typing import Iterable, List, Optional, Tuple

_VERSION_RE = re.compile(r"^(\d+)\.(\d+)(?:\.(\d+))?$")

# 最后一个使用 ForgeGradle 2 构建的 1.12.2 Forge 版本
MAX_FG2_ONE_TWELVE = (14, 23, 5, 2847)


@total_ordering
@dataclass(frozen=True)
class MinecraftVersion:
    """Minecraft 版本 (major.minor[.patch])"""

    major: int
    minor: int
    patch: Optional[int] = None
    raw: str = field(default="", compare=False, repr=False)

    @classmethod
    def parse(cls, version: str) -> "MinecraftVersion":
        match = _VERSION_RE.match(version.strip())
        if not match:
            raise ValueError(f"无效的 Minecraft 版本: {version}")
        major, minor, patch = match.groups()
        return cls(
            major=int(major),
            minor=int(minor),
            patch=int(patch) if patch is not None else None,
            raw=version.strip(),
        )

    def _key(self) -> Tuple[int, int, int]:
        return (self.major, self.minor, self.patch or 0)

    def __eq__(self, other) -> bool:
        if not isinstance(other, MinecraftVersion):
            return NotImplemented
        return self._key() == other._key()

    def __lt__(self, other: "MinecraftVersion") -> bool:
        if not isinstance(other, MinecraftVersion):
            return NotImplemented
        return self._key() < other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def is_between(self, low: "MinecraftVersion", high: "MinecraftVersion") -> bool:
        """是否位于闭区间 [low, high] 内"""
        return low <= self <= high

    def __str__(self) -> str:
        if self.raw:
            return self.raw
        if self.patch is None:
            return f"{self.major}.{self.minor}"
        return f"{self.major}.{self.minor}.{self.patch}"


def _segments(version: str) -> List[int]:
    # 忽略 "-" 之后的后缀 (例如 47.1.0-beta)
    parts = []
    for seg in version.split("-")[0].split("."):
        digits = re.match(r"\d+", seg)
        parts.append(int(digits.group()) if digits else 0)
    return parts


def version_gte(version: str, minimum: str) -> bool:
    """逐段比较两个加载器版本，version >= minimum"""
    left, right = _segments(version), _segments(minimum)
    width = max(len(left), len(right))
    left += [0] * (width - len(left))
    right += [0] * (width - len(right))
    return left >= right


def is_version_acceptable(version: MinecraftVersion, minors: Iterable[int]) -> bool:
    """major 为 1 且 minor 在给定列表中"""
    return version.major == 1 and version.minor in set(minors)


def is_one_twelve_fg2(loader_version: str) -> bool:
    """判断 1.12.2 的 Forge 版本是否仍使用 ForgeGradle 2 构建"""
    segments = _segments(loader_version)
    for actual, limit in zip(segments, MAX_FG2_ONE_TWELVE):
        if actual > limit:
            return False
        if actual < limit:
            return True
    return True
