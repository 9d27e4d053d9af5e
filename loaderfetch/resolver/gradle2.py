"""
ForgeGradle 2 适配器

通用 jar 内嵌 version.json，直接解析并核对所有库；旧版本中部分库以
.pack.xz 形式发布，需要在最后统一解压并重新计算哈希。
"""

import json
import os
import shutil
from dataclasses import dataclass
from typing import List, Optional, Tuple

from loguru import logger

from loaderfetch.download import FileVerifier
from loaderfetch.java import PackXZExtractor
from loaderfetch.models import (
    LegacyLibrary,
    LegacyVersionManifest,
    MavenCoordinate,
    MinecraftVersion,
    Module,
    ModuleType,
    is_one_twelve_fg2,
    is_version_acceptable,
)
from loaderfetch.repo import copy_file
from loaderfetch.resolver.base import LoaderResolver

PACK_XZ_EXTENSION = "jar.pack.xz"
POSSIBLE_EXTENSIONS = (PACK_XZ_EXTENSION, "jar")


@dataclass(frozen=True)
class PostProcessEntry:
    """待解压的库"""

    id: str
    local_path: str


class Gradle2Adapter(LoaderResolver):
    """直接提取策略 (1.7 - 1.12.2 FG2)"""

    @classmethod
    def is_for_version(cls, version: MinecraftVersion, loader_version: str) -> bool:
        if version.minor == 12 and not is_one_twelve_fg2(loader_version):
            return False
        return is_version_acceptable(version, range(7, 13))

    async def get_module(self) -> Module:
        return await self.get_loader_by_version()

    async def get_loader_by_version(self) -> Module:
        universal = self.loader_coordinate("universal")
        target_local_path = self.lib_repo.local_path(universal)
        logger.debug(f"检查本地 {self.family.display_name}: {target_local_path}..")
        if not await self.artifact_exists(target_local_path):
            logger.debug(f"本地没有 {self.family.display_name}，开始下载..")
            await self.lib_repo.download_artifact(self.family.remote_repository, universal)
        else:
            logger.debug(f"使用本地的 {self.family.display_name}")
        logger.debug(f"开始处理 {self.describe()}")

        manifest_buf = self.get_version_manifest_from_jar(target_local_path)
        manifest = LegacyVersionManifest.from_dict(json.loads(manifest_buf))

        data, stat = await self.lib_repo.read_bytes(target_local_path)
        loader_module = Module(
            id=universal.identifier(),
            name=f"Minecraft {self.family.display_name}",
            type=self.family.hosted_type,
            artifact=self.generate_artifact(
                data, stat, self.lib_repo.artifact_url(self.base_url, universal)
            ),
        )

        loader_module.sub_modules.append(await self._persist_manifest(manifest_buf))

        self_prefix = self.family.self_library_prefix(self.minecraft_version)
        libraries = [lib for lib in manifest.libraries if not lib.name.startswith(self_prefix)]
        results = await self.gather_ordered(libraries, self._process_library)

        post_process_queue: List[PostProcessEntry] = []
        for module, entry in results:
            loader_module.sub_modules.append(module)
            if entry is not None:
                post_process_queue.append(entry)

        for module_id, md5 in await self.process_pack_xz_files(post_process_queue):
            module = loader_module.find(module_id)
            if module is not None:
                module.artifact.md5 = md5
            else:
                logger.error(f"后处理出错，无法更新 {module_id}")

        return loader_module

    async def _persist_manifest(self, manifest_buf: bytes) -> Module:
        """保存 version.json 并生成对应模块"""
        dest = self.version_repo.manifest_path(self.version_name)
        os.makedirs(os.path.dirname(dest), exist_ok=True)
        with open(dest, "wb") as f:
            f.write(manifest_buf)
        data, stat = await self.lib_repo.read_bytes(dest)
        return Module(
            id=self.artifact_version,
            name=f"Minecraft {self.family.display_name} (version.json)",
            type=ModuleType.VERSION_MANIFEST,
            artifact=self.generate_artifact(
                data, stat, self.version_repo.manifest_url(self.base_url, self.version_name)
            ),
        )

    async def _process_library(
        self, lib: LegacyLibrary
    ) -> Tuple[Module, Optional[PostProcessEntry]]:
        logger.debug(f"处理 {lib.name}..")

        extension = await self.determine_extension(lib)
        coordinate = MavenCoordinate.parse(lib.name, extension=extension)
        local_path = self.lib_repo.local_path(coordinate)
        post_process = extension == PACK_XZ_EXTENSION

        # .pack.xz 在 version.json 中的校验值不可用，只检查存在性
        expected_sha1 = None
        if not post_process and len(lib.checksums) == 1:
            expected_sha1 = lib.checksums[0]

        data, stat = await self.ensure_verified(
            local_path,
            expected_sha1,
            lambda: self.lib_repo.download_artifact(
                lib.url or self.family.mojang_repository, coordinate
            ),
        )

        proper_id = coordinate.identifier(with_extension=True)
        module = Module(
            id=proper_id,
            name=f"Minecraft {self.family.display_name} ({coordinate.artifact})",
            type=ModuleType.LIBRARY,
            artifact=self.generate_artifact(
                data, stat, self.lib_repo.artifact_url(self.base_url, coordinate)
            ),
        )
        return module, PostProcessEntry(proper_id, local_path) if post_process else None

    async def determine_extension(self, lib: LegacyLibrary) -> str:
        """
        确定库的扩展名

        坐标中显式指定了扩展名 (@ext) 时直接使用；否则依次检查本地
        (.jar.pack.xz, .jar)、远程 (同顺序)，都没有时使用 jar。
        """
        if "@" in lib.name:
            return MavenCoordinate.parse(lib.name).extension
        if lib.url is None:
            return "jar"
        logger.debug("确定扩展名..")
        coordinate = MavenCoordinate.parse(lib.name)
        for ext in POSSIBLE_EXTENSIONS:
            local_path = self.lib_repo.local_path(coordinate.with_extension(ext))
            if await self.artifact_exists(local_path):
                return ext
        for ext in POSSIBLE_EXTENSIONS:
            if await self.lib_repo.head_artifact(
                self.family.remote_repository, coordinate.with_extension(ext)
            ):
                return ext
        return "jar"

    async def process_pack_xz_files(
        self, processing_queue: List[PostProcessEntry]
    ) -> List[Tuple[str, str]]:
        """
        批量解压 .pack.xz 并计算解压后内容的 MD5

        Returns:
            (模块 id, MD5) 列表
        """
        if not processing_queue:
            return []

        temp_dir = self.repo_structure.get_temp_directory()
        if os.path.exists(temp_dir):
            shutil.rmtree(temp_dir)
        os.makedirs(temp_dir)

        try:
            # 每个条目使用独立子目录，不同 group 下的同名文件互不覆盖
            files = []
            for idx, entry in enumerate(processing_queue):
                tmp_file = os.path.join(temp_dir, str(idx), os.path.basename(entry.local_path))
                copy_file(entry.local_path, tmp_file)
                files.append(tmp_file)

            logger.debug("启动 PackXZExtract..")
            extractor = PackXZExtractor(self.java, self.packxz_tool)
            unpacked = await extractor.extract_unpack(files)
            logger.debug("解压完成，计算哈希..")

            accumulator = []
            for entry, unpacked_file in zip(processing_queue, unpacked):
                data, _ = await self.lib_repo.read_bytes(unpacked_file)
                accumulator.append((entry.id, FileVerifier.md5_of(data)))
            return accumulator
        finally:
            logger.debug("删除临时目录..")
            shutil.rmtree(temp_dir, ignore_errors=True)
