"""
版本仓库

version.json 的本地存放位置与分发地址。
"""

import json
import os

import aiofiles

from loaderfetch.repo.lib_repo import join_url


class VersionRepository:
    """版本仓库"""

    def __init__(self, root_dir: str, relative_root: str):
        self.root_dir = root_dir
        self.relative_root = relative_root

    def manifest_path(self, version_name: str) -> str:
        return os.path.join(self.root_dir, version_name, f"{version_name}.json")

    def manifest_url(self, base_url: str, version_name: str) -> str:
        return join_url(base_url, self.relative_root, version_name, f"{version_name}.json")

    async def write_manifest(self, version_name: str, manifest: dict) -> str:
        """以 4 空格缩进写入 version.json，返回路径"""
        dest = self.manifest_path(version_name)
        os.makedirs(os.path.dirname(dest), exist_ok=True)
        async with aiofiles.open(dest, "w", encoding="utf-8") as f:
            await f.write(json.dumps(manifest, indent=4))
        return dest
