"""
下载管理器

负责单文件下载、失败重试、远程存在性探测与下载统计。
"""

import asyncio
import os
from dataclasses import dataclass
from typing import Optional

import aiofiles
import aiohttp
from loguru import logger

from loaderfetch.download.verifier import FileVerifier
from loaderfetch.exceptions import (
    DownloadChecksumError,
    DownloadError,
    DownloadFileError,
    DownloadNetworkError,
)


@dataclass
class DownloadStats:
    """下载统计"""

    total: int = 0
    completed: int = 0
    failed: int = 0
    bytes_downloaded: int = 0


class DownloadManager:
    """下载管理器"""

    def __init__(
        self,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.verifier = FileVerifier()
        self.stats = DownloadStats()
        self._session = session
        self._owned_session = session is None
        self._failed_downloads: list[str] = []

    @property
    def session(self) -> aiohttp.ClientSession:
        """获取或创建 aiohttp session"""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
        return self._session

    async def download_file(
        self,
        url: str,
        dest_path: str,
        expected_sha1: Optional[str] = None,
    ) -> None:
        """
        下载单个文件，覆盖已存在的文件

        Args:
            url: 远程地址
            dest_path: 目标路径
            expected_sha1: 预期的 SHA1 值，提供时下载后校验

        Raises:
            DownloadError: 重试耗尽后仍然失败
        """
        filename = os.path.basename(dest_path)
        part_path = f"{dest_path}.part"
        os.makedirs(os.path.dirname(dest_path) or ".", exist_ok=True)
        self.stats.total += 1

        logger.debug(f"[开始] 下载: {url}")

        for attempt in range(self.max_retries + 1):
            try:
                async with self.session.get(url) as response:
                    if response.status != 200:
                        raise DownloadNetworkError(
                            f"HTTP {response.status}",
                            context={"url": url, "status": response.status},
                        )

                    async with aiofiles.open(part_path, "wb") as f:
                        async for chunk in response.content.iter_chunked(8192):
                            await f.write(chunk)
                            self.stats.bytes_downloaded += len(chunk)

                if expected_sha1 and not await self.verifier.verify_sha1(
                    part_path, expected_sha1
                ):
                    raise DownloadChecksumError(
                        f"SHA1 校验失败: {filename}",
                        context={"file": filename, "expected": expected_sha1},
                    )

                os.replace(part_path, dest_path)
                self.stats.completed += 1
                logger.debug(f"[完成] '{filename}' 下载完成")
                return

            except (aiohttp.ClientError, asyncio.TimeoutError, OSError, DownloadError) as e:
                # 清理不完整的文件
                if os.path.exists(part_path):
                    try:
                        os.remove(part_path)
                    except OSError:
                        pass

                if attempt < self.max_retries:
                    delay = self.retry_delay * (2**attempt)
                    logger.warning(
                        f"[重试] 下载 '{filename}' 失败 (第 {attempt + 1} 次): {e}. "
                        f"{delay:.1f}s 后重试..."
                    )
                    await asyncio.sleep(delay)
                else:
                    self.stats.failed += 1
                    self._failed_downloads.append(url)
                    logger.error(f"[错误] 下载 '{filename}' 最终失败: {e}")

                    if isinstance(e, DownloadError):
                        raise
                    if isinstance(e, OSError) and not isinstance(e, aiohttp.ClientError):
                        raise DownloadFileError(
                            f"无法写入文件: {filename}",
                            context={"path": dest_path, "error": str(e)},
                        )
                    raise DownloadError(
                        f"下载失败: {filename}", context={"url": url, "error": str(e)}
                    )

    async def head(self, url: str) -> bool:
        """探测远程文件是否存在"""
        try:
            async with self.session.head(url, allow_redirects=True) as response:
                return response.status == 200
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.debug(f"[探测] {url} 失败: {e}")
            return False

    def get_stats(self) -> DownloadStats:
        """获取下载统计"""
        return self.stats

    def get_failed(self) -> list[str]:
        """获取失败的下载列表"""
        return self._failed_downloads.copy()

    async def close(self):
        """关闭自有 session"""
        if self._owned_session and self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self):
        """异步上下文管理器入口"""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """异步上下文管理器出口"""
        await self.close()
