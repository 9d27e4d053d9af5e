"""
LoaderFetch 仓库层

本地 Maven 布局仓库与 version.json 仓库。
"""

from loaderfetch.repo.lib_repo import LibRepository, copy_file, join_url
from loaderfetch.repo.version_repo import VersionRepository
from loaderfetch.repo.structure import RepoStructure

__all__ = [
    "LibRepository",
    "VersionRepository",
    "RepoStructure",
    "copy_file",
    "join_url",
]
