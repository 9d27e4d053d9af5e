"""
解析器基类

一次解析运行的共享状态：根目录、分发地址、目标版本、缓存策略、安全检查，
以及从 jar 中读取 version.json 的公共实现。
"""

import asyncio
import os
import zipfile
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, List, Optional, Sequence, Tuple, TypeVar

from loguru import logger

from loaderfetch.download import DownloadManager, FileVerifier
from loaderfetch.exceptions import ManifestNotFoundError, ResolutionCancelledError
from loaderfetch.java import JavaRunner
from loaderfetch.models import (
    Artifact,
    MavenCoordinate,
    MinecraftVersion,
    Module,
    generate_artifact,
    version_gte,
)
from loaderfetch.repo import RepoStructure
from loaderfetch.resolver.families import LoaderFamily

T = TypeVar("T")
R = TypeVar("R")

VERSION_MANIFEST_ENTRY = "version.json"

sha1_of = FileVerifier.sha1_of


class BaseResolver(ABC):
    """解析器基类"""

    def __init__(
        self,
        absolute_root: str,
        relative_root: str,
        base_url: str,
        repo_name: str,
        downloader: Optional[DownloadManager] = None,
    ):
        self.absolute_root = absolute_root
        self.relative_root = relative_root
        self.base_url = base_url
        self.downloader = downloader or DownloadManager()
        self._owned_downloader = downloader is None
        self.repo_structure = RepoStructure(
            absolute_root, relative_root, repo_name, self.downloader
        )

    @property
    def lib_repo(self):
        return self.repo_structure.lib_repo

    @property
    def version_repo(self):
        return self.repo_structure.version_repo

    async def artifact_exists(self, path: str) -> bool:
        return await self.lib_repo.artifact_exists(path)

    async def fetch_verified(self, remote_repo: str, coordinate: MavenCoordinate) -> bytes:
        return await self.lib_repo.fetch_verified(remote_repo, coordinate)

    @staticmethod
    def get_version_manifest_from_jar(
        jar_path: str, entry: str = VERSION_MANIFEST_ENTRY
    ) -> bytes:
        """
        读取 jar 中的单个条目

        Raises:
            ManifestNotFoundError: 条目不存在或归档不可读
        """
        try:
            with zipfile.ZipFile(jar_path) as archive:
                return archive.read(entry)
        except KeyError:
            raise ManifestNotFoundError(
                f"{os.path.basename(jar_path)} 中没有 {entry}",
                context={"archive": jar_path, "entry": entry},
            )
        except (zipfile.BadZipFile, OSError) as e:
            raise ManifestNotFoundError(
                f"无法读取归档 {os.path.basename(jar_path)}: {e}",
                context={"archive": jar_path, "entry": entry},
            )

    @staticmethod
    def generate_artifact(data: bytes, stat: os.stat_result, url: str) -> Artifact:
        return generate_artifact(data, stat, url)

    @abstractmethod
    async def get_module(self) -> Module:
        """执行解析并返回模块树"""

    async def close(self) -> None:
        if self._owned_downloader:
            await self.downloader.close()


class LoaderResolver(BaseResolver):
    """某个加载器家族的版本策略基类"""

    def __init__(
        self,
        absolute_root: str,
        relative_root: str,
        base_url: str,
        minecraft_version: MinecraftVersion,
        loader_version: str,
        family: LoaderFamily,
        discard_output: bool = False,
        invalidate_cache: bool = False,
        downloader: Optional[DownloadManager] = None,
        java: Optional[JavaRunner] = None,
        max_concurrent: int = 5,
        security_delay: float = 15.0,
        installer_timeout: Optional[float] = None,
        packxz_tool: Optional[str] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ):
        super().__init__(absolute_root, relative_root, base_url, family.name, downloader)
        self.minecraft_version = minecraft_version
        self.loader_version = loader_version
        self.family = family
        self.discard_output = discard_output
        self.invalidate_cache = invalidate_cache
        self.java = java or JavaRunner()
        self.max_concurrent = max_concurrent
        self.security_delay = security_delay
        self.installer_timeout = installer_timeout
        self.packxz_tool = packxz_tool
        self.cancel_event = cancel_event or asyncio.Event()
        self.artifact_version = family.artifact_version(minecraft_version, loader_version)
        self.version_name = family.version_name(minecraft_version, loader_version)

    @classmethod
    @abstractmethod
    def is_for_version(cls, version: MinecraftVersion, loader_version: str) -> bool:
        """该策略是否处理此版本组合"""

    def loader_coordinate(self, classifier: Optional[str], extension: str = "jar") -> MavenCoordinate:
        return MavenCoordinate(
            self.family.group,
            self.family.loader_artifact(self.minecraft_version),
            self.artifact_version,
            classifier,
            extension,
        )

    def is_unsafe(self) -> bool:
        vulnerable, minimum = self.family.advisory(self.minecraft_version)
        if not vulnerable:
            return False
        return minimum is None or not version_gte(self.loader_version, minimum)

    async def check_security(self) -> None:
        """
        安全公告检查

        不安全的版本只会打印警告并等待一段时间，调用方可以通过 cancel_event
        或取消任务来中止。

        Raises:
            ResolutionCancelledError: 等待期间 cancel_event 被触发
        """
        if not self.is_unsafe():
            return

        _, minimum = self.family.advisory(self.minecraft_version)
        sec_logger = logger.bind(name=f"{self.family.display_name}Security")
        name = self.family.display_name

        sec_logger.error("=" * 66)
        sec_logger.error("WARNING".center(66))
        sec_logger.error(f" This version of {name} is vulnerable to a CRITICAL RCE exploit.")
        sec_logger.error("DO NOT USE THIS VERSION!".center(66))
        if minimum:
            sec_logger.error(f"A patch is available as of Minecraft {name} v{minimum}".center(66))
        else:
            sec_logger.error("There is no patch available for this version.".center(66))
        sec_logger.error("=" * 66)
        sec_logger.error("To abort, cancel the run (CTRL + C).")
        sec_logger.error(f"Proceeding in {self.security_delay:g} seconds..")

        try:
            await asyncio.wait_for(self.cancel_event.wait(), timeout=self.security_delay)
        except asyncio.TimeoutError:
            return
        raise ResolutionCancelledError(
            "解析在安全警告期间被取消",
            context={
                "minecraft_version": str(self.minecraft_version),
                "loader_version": self.loader_version,
            },
        )

    async def resolve(self) -> Module:
        """安全检查后执行策略，唯一入口"""
        try:
            await self.check_security()
            return await self.get_module()
        finally:
            await self.close()

    async def gather_ordered(
        self,
        items: Sequence[T],
        worker: Callable[[T], Awaitable[R]],
    ) -> List[R]:
        """
        有界并发处理，结果顺序与输入一致

        任一任务失败时取消其余任务并等待其结束，再抛出第一个异常。
        """
        if not items:
            return []
        semaphore = asyncio.Semaphore(self.max_concurrent)

        async def run(item: T) -> R:
            async with semaphore:
                return await worker(item)

        tasks = [asyncio.ensure_future(run(item)) for item in items]
        try:
            await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)

        for task in tasks:
            if not task.cancelled() and task.exception() is not None:
                raise task.exception()
        return [task.result() for task in tasks]

    async def ensure_verified(
        self,
        path: str,
        expected_sha1: Optional[str],
        fetch: Callable[[], Awaitable[Any]],
    ) -> Tuple[bytes, os.stat_result]:
        """
        校验本地文件，缺失或哈希不符时重新下载一次

        Args:
            path: 本地路径
            expected_sha1: 声明的 SHA1，None 表示只检查存在性
            fetch: 下载到 path 的协程工厂

        Returns:
            (文件内容, 文件元数据)，内容总是刚从磁盘读取
        """
        if await self.artifact_exists(path):
            data, stat = await self.lib_repo.read_bytes(path)
            if expected_sha1 is None or sha1_of(data) == expected_sha1:
                logger.debug(f"使用本地文件 {os.path.basename(path)}")
                return data, stat
            logger.debug(f"{os.path.basename(path)} 哈希不匹配，重新下载..")
        else:
            logger.debug(f"{os.path.basename(path)} 本地不存在，开始下载..")

        await fetch()
        data, stat = await self.lib_repo.read_bytes(path)
        if expected_sha1 is not None and sha1_of(data) != expected_sha1:
            logger.warning(
                f"{os.path.basename(path)} 重新下载后 SHA1 仍与 version.json 不一致"
            )
        return data, stat

    def describe(self) -> str:
        return f"{self.family.display_name} v{self.loader_version} (Minecraft {self.minecraft_version})"
