"""
仓库结构

根目录下的库仓库、版本仓库、临时目录与安装器缓存目录。
"""

import os

from loaderfetch.download import DownloadManager
from loaderfetch.repo.lib_repo import LibRepository
from loaderfetch.repo.version_repo import VersionRepository


class RepoStructure:
    """一个加载器家族的仓库结构"""

    def __init__(
        self,
        absolute_root: str,
        relative_root: str,
        name: str,
        downloader: DownloadManager,
    ):
        self.absolute_root = absolute_root
        self.relative_root = relative_root.strip("/")
        self.name = name
        repo_dir = os.path.join(absolute_root, *self.relative_root.split("/"))
        self.lib_repo = LibRepository(
            os.path.join(repo_dir, "lib"), f"{self.relative_root}/lib", downloader
        )
        self.version_repo = VersionRepository(
            os.path.join(repo_dir, "versions"), f"{self.relative_root}/versions"
        )

    def get_temp_directory(self) -> str:
        return os.path.join(self.absolute_root, "temp", self.name)

    def get_installer_cache_directory(self, artifact_version: str) -> str:
        return os.path.join(self.absolute_root, "cache", self.name, artifact_version)
