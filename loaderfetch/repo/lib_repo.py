"""
库仓库

Maven 布局的本地构件仓库：坐标到路径/地址的映射、存在性检查与下载。
"""

import os
import shutil
from typing import Tuple

import aiofiles
from loguru import logger

from loaderfetch.download import DownloadManager
from loaderfetch.exceptions import DownloadError
from loaderfetch.models import MavenCoordinate


def join_url(base: str, *parts: str) -> str:
    url = base.rstrip("/")
    for part in parts:
        part = part.strip("/")
        if part:
            url = f"{url}/{part}"
    return url


class LibRepository:
    """库仓库"""

    def __init__(self, root_dir: str, relative_root: str, downloader: DownloadManager):
        self.root_dir = root_dir
        self.relative_root = relative_root
        self.downloader = downloader

    def local_path(self, coordinate: MavenCoordinate) -> str:
        return os.path.join(self.root_dir, *coordinate.path.split("/"))

    def artifact_url(self, base_url: str, coordinate: MavenCoordinate) -> str:
        """分发地址"""
        return join_url(base_url, self.relative_root, coordinate.path)

    @staticmethod
    def remote_url(remote_repo: str, coordinate: MavenCoordinate) -> str:
        return join_url(remote_repo, coordinate.path)

    async def artifact_exists(self, path: str) -> bool:
        return os.path.isfile(path)

    async def download_artifact(self, remote_repo: str, coordinate: MavenCoordinate) -> str:
        """从远程仓库下载构件到本地路径，返回本地路径"""
        dest = self.local_path(coordinate)
        url = self.remote_url(remote_repo, coordinate)
        logger.debug(f"下载构件 {coordinate.identifier(True)} <- {url}")
        await self.downloader.download_file(url, dest)
        return dest

    async def download_direct(self, url: str, relative_path: str) -> str:
        """按给定地址下载到仓库中的相对路径"""
        dest = os.path.join(self.root_dir, *relative_path.strip("/").split("/"))
        logger.debug(f"下载 {relative_path} <- {url}")
        await self.downloader.download_file(url, dest)
        return dest

    async def head_artifact(self, remote_repo: str, coordinate: MavenCoordinate) -> bool:
        return await self.downloader.head(self.remote_url(remote_repo, coordinate))

    async def fetch_verified(self, remote_repo: str, coordinate: MavenCoordinate) -> bytes:
        """
        本地不存在时下载，返回文件内容

        Raises:
            DownloadError: 传输失败
        """
        path = self.local_path(coordinate)
        if not await self.artifact_exists(path):
            await self.download_artifact(remote_repo, coordinate)
        if not await self.artifact_exists(path):
            raise DownloadError(
                f"下载后文件仍不存在: {coordinate.identifier(True)}",
                context={"path": path},
            )
        data, _ = await self.read_bytes(path)
        return data

    @staticmethod
    async def read_bytes(path: str) -> Tuple[bytes, os.stat_result]:
        async with aiofiles.open(path, "rb") as f:
            data = await f.read()
        return data, os.stat(path)

    def install(self, source: str, coordinate: MavenCoordinate) -> str:
        """复制文件到仓库中的坐标位置 (覆盖)"""
        dest = self.local_path(coordinate)
        return copy_file(source, dest)


def copy_file(source: str, dest: str) -> str:
    os.makedirs(os.path.dirname(dest), exist_ok=True)
    shutil.copy2(source, dest)
    return dest
