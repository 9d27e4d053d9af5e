"""
LoaderFetch 下载层

包含下载管理、远程探测、文件校验等功能。
"""

from loaderfetch.download.manager import DownloadManager, DownloadStats
from loaderfetch.download.verifier import FileVerifier

__all__ = [
    "DownloadManager",
    "DownloadStats",
    "FileVerifier",
]
