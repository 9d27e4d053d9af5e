"""
文件校验器

实现 SHA1/MD5 计算、文件存在性检查、文件完整性验证。
"""

import hashlib
import os
from typing import Optional

import aiofiles


class FileVerifier:
    """文件校验器"""

    @staticmethod
    async def _calc(file_path: str, algorithm: str) -> Optional[str]:
        if not os.path.exists(file_path):
            return None

        digest = hashlib.new(algorithm)
        try:
            async with aiofiles.open(file_path, "rb") as f:
                while True:
                    data = await f.read(65536)
                    if not data:
                        break
                    digest.update(data)
            return digest.hexdigest()
        except (IOError, OSError):
            return None

    @staticmethod
    async def calc_sha1(file_path: str) -> Optional[str]:
        """
        计算文件的 SHA1 值

        Args:
            file_path: 文件路径

        Returns:
            SHA1 哈希值或 None（如果文件不存在）
        """
        return await FileVerifier._calc(file_path, "sha1")

    @staticmethod
    async def calc_md5(file_path: str) -> Optional[str]:
        """计算文件的 MD5 值"""
        return await FileVerifier._calc(file_path, "md5")

    @staticmethod
    def sha1_of(data: bytes) -> str:
        return hashlib.sha1(data).hexdigest()

    @staticmethod
    def md5_of(data: bytes) -> str:
        return hashlib.md5(data).hexdigest()

    @staticmethod
    async def verify_sha1(file_path: str, expected_sha1: Optional[str]) -> bool:
        """
        校验文件的 SHA1 是否匹配

        Args:
            file_path: 文件路径
            expected_sha1: 预期的 SHA1 值

        Returns:
            是否匹配（如果没有预期值则返回 True）
        """
        if not expected_sha1:
            return True

        current_sha1 = await FileVerifier.calc_sha1(file_path)
        if current_sha1 is None:
            return False

        return current_sha1 == expected_sha1

