"""
ForgeGradle 3 适配器

运行官方安装器生成客户端文件，再根据生成的 version.json 核对生成文件与库；
没有生成文件表的版本 (1.12.2 FG3) 直接读取安装器内嵌的 version.json。
"""

import json
import os
import shutil
from typing import List, Tuple

from loguru import logger

from loaderfetch.exceptions import (
    DownloadError,
    ExpectedLibraryMissingError,
    InstallerOutputMissingError,
    InstallerUnavailableError,
    ManifestNotFoundError,
    PlaceholderUnresolvedError,
    RequiredArtifactMissingError,
)
from loaderfetch.models import (
    ExpectedFile,
    Library,
    MavenCoordinate,
    MinecraftVersion,
    Module,
    ModuleType,
    VersionManifest,
    WILDCARD_MCP_VERSION,
    generated_files_for,
    is_one_twelve_fg2,
    is_version_acceptable,
    resolve_placeholders,
)
from loaderfetch.resolver.base import LoaderResolver

MCP_VERSION_FLAG = "--fml.mcpVersion"


class Gradle3Adapter(LoaderResolver):
    """安装器策略 (1.12.2 FG3 - 1.21)"""

    @classmethod
    def is_for_version(cls, version: MinecraftVersion, loader_version: str) -> bool:
        if version.minor == 12 and is_one_twelve_fg2(loader_version):
            return False
        return is_version_acceptable(version, range(12, 22))

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.generated_files, self.wildcards_in_use = generated_files_for(
            self.family, self.minecraft_version, self.artifact_version
        )

    async def get_module(self) -> Module:
        return await self.process()

    async def process(self) -> Module:
        installer = self.loader_coordinate("installer")
        installer_path = self.lib_repo.local_path(installer)
        logger.debug(f"检查本地安装器: {installer_path}..")
        if not await self.artifact_exists(installer_path):
            logger.debug("本地没有安装器，开始下载..")
            try:
                await self.lib_repo.download_artifact(self.family.remote_repository, installer)
            except DownloadError as e:
                raise InstallerUnavailableError(
                    f"无法获取 {self.family.display_name} 安装器 {installer.identifier()}",
                    context={"error": str(e), "coordinate": installer.identifier(True)},
                ) from e
        else:
            logger.debug("使用本地的安装器")
        logger.debug(f"开始处理 {self.describe()}")

        if self.generated_files:
            return await self.process_with_installer(installer_path)
        return await self.process_without_installer(installer_path)

    def get_version_manifest_path(self, installer_output_dir: str) -> str:
        return os.path.join(
            installer_output_dir, "versions", self.version_name, f"{self.version_name}.json"
        )

    async def process_with_installer(self, installer_path: str) -> Module:
        do_install = True
        cache_dir = self.repo_structure.get_installer_cache_directory(self.artifact_version)
        if os.path.exists(cache_dir):
            if self.invalidate_cache:
                logger.info(f"删除已有缓存 {cache_dir}..")
                shutil.rmtree(cache_dir)
                os.makedirs(cache_dir)
            else:
                do_install = False
                logger.info(f"使用缓存结果 {cache_dir}")
        else:
            os.makedirs(cache_dir)
        installer_output_dir = cache_dir

        if do_install:
            # 任何失败都不能留下看似已缓存的目录
            try:
                await self.stage_and_run_installer(installer_path, installer_output_dir)
            except BaseException:
                shutil.rmtree(installer_output_dir, ignore_errors=True)
                raise
            logger.debug("安装器已结束，开始处理..")

        self.verify_installer_ran(installer_output_dir)

        logger.debug("处理 version manifest")
        manifest, manifest_module = await self.process_version_manifest(installer_output_dir)

        logger.debug(f"处理 {self.family.display_name} 生成文件")
        loader_module = await self.process_loader_module(manifest, installer_output_dir)
        loader_module.sub_modules.insert(0, manifest_module)

        logger.debug("处理库")
        loader_module.sub_modules.extend(
            await self.process_libraries(manifest, installer_output_dir)
        )

        if self.discard_output:
            logger.info(f"删除安装器输出 {installer_output_dir}..")
            shutil.rmtree(installer_output_dir)
            logger.info("删除完成")

        return loader_module

    async def stage_and_run_installer(self, installer_path: str, installer_output_dir: str) -> None:
        working_installer = os.path.join(installer_output_dir, os.path.basename(installer_path))
        shutil.copy2(installer_path, working_installer)

        # 安装器需要该文件才能运行
        with open(os.path.join(installer_output_dir, "launcher_profiles.json"), "w") as f:
            json.dump({}, f)

        logger.info("============== [ IMPORTANT ] ==============")
        logger.info("安装器打开后，请将客户端安装目录设置为:")
        logger.info(installer_output_dir)
        logger.info("===========================================")

        await self.execute_installer(working_installer)

    async def execute_installer(self, installer_exec: str) -> int:
        return await self.java.run_jar(
            installer_exec,
            cwd=os.path.dirname(installer_exec),
            log_name=f"{self.family.display_name} Installer",
            timeout=self.installer_timeout,
        )

    def verify_installer_ran(self, installer_output_dir: str) -> None:
        manifest_path = self.get_version_manifest_path(installer_output_dir)
        if not os.path.isfile(manifest_path):
            shutil.rmtree(installer_output_dir, ignore_errors=True)
            raise InstallerOutputMissingError(
                f"{self.family.display_name} 未安装或安装到了错误的位置。"
                f"安装器打开后，必须将安装目录设置为 {installer_output_dir}",
                context={"expected": manifest_path},
            )

    async def process_version_manifest(
        self, installer_output_dir: str
    ) -> Tuple[VersionManifest, Module]:
        manifest_path = self.get_version_manifest_path(installer_output_dir)
        data, stat = await self.lib_repo.read_bytes(manifest_path)
        manifest = VersionManifest.from_dict(json.loads(data))

        manifest_module = Module(
            id=self.artifact_version,
            name=f"Minecraft {self.family.display_name} (version.json)",
            type=ModuleType.VERSION_MANIFEST,
            artifact=self.generate_artifact(
                data, stat, self.version_repo.manifest_url(self.base_url, self.version_name)
            ),
        )

        destination = self.version_repo.manifest_path(self.version_name)
        os.makedirs(os.path.dirname(destination), exist_ok=True)
        shutil.copy2(manifest_path, destination)

        return manifest, manifest_module

    def resolve_generated_files(self, manifest: VersionManifest) -> Tuple[ExpectedFile, ...]:
        values = {}
        if WILDCARD_MCP_VERSION in self.wildcards_in_use:
            mcp_version = manifest.argument_value(MCP_VERSION_FLAG)
            if mcp_version is None:
                raise PlaceholderUnresolvedError(
                    f"没有找到 MCP 版本，{self.family.display_name} 是否修改了格式?",
                    context={"flag": MCP_VERSION_FLAG},
                )
            values[WILDCARD_MCP_VERSION] = mcp_version
        return resolve_placeholders(self.generated_files, values)

    async def process_loader_module(
        self, manifest: VersionManifest, installer_output_dir: str
    ) -> Module:
        lib_dir = os.path.join(installer_output_dir, "libraries")
        modules: List[Module] = []

        for entry in self.resolve_generated_files(manifest):
            target_locations = []
            located = False

            for classifier in entry.classifiers:
                coordinate = entry.coordinate(classifier)
                target_local_path = os.path.join(lib_dir, *coordinate.path.split("/"))
                target_locations.append(target_local_path)

                if not os.path.isfile(target_local_path):
                    continue

                data, stat = await self.lib_repo.read_bytes(target_local_path)
                modules.append(
                    Module(
                        id=coordinate.identifier(),
                        name=f"Minecraft {self.family.display_name} ({entry.name})",
                        type=ModuleType.LIBRARY,
                        classpath=entry.classpath,
                        artifact=self.generate_artifact(
                            data, stat, self.lib_repo.artifact_url(self.base_url, coordinate)
                        ),
                    )
                )
                self.lib_repo.install(target_local_path, coordinate)
                located = True
                break

            if not located and not entry.skip_if_not_present:
                raise RequiredArtifactMissingError(
                    f"必需文件 {entry.name} 不在任何预期位置:\n\t"
                    + "\n\t".join(target_locations),
                    tried=target_locations,
                )

        if not modules:
            raise RequiredArtifactMissingError(
                f"安装器没有生成任何 {self.family.display_name} 文件"
            )

        loader_module = modules.pop(0)
        loader_module.type = self.family.hosted_type
        loader_module.sub_modules = modules
        return loader_module

    async def process_libraries(
        self, manifest: VersionManifest, installer_output_dir: str
    ) -> List[Module]:
        lib_dir = os.path.join(installer_output_dir, "libraries")
        libraries = [lib for lib in manifest.libraries if lib.artifact and lib.artifact.url]

        async def process(lib: Library) -> Module:
            target_local_path = os.path.join(lib_dir, *lib.artifact.path.split("/"))
            if not os.path.isfile(target_local_path):
                raise ExpectedLibraryMissingError(
                    f"预期的库 {lib.name} 不存在!",
                    context={"path": target_local_path},
                )

            coordinate = MavenCoordinate.parse(lib.name)
            data, stat = await self.lib_repo.read_bytes(target_local_path)
            module = Module(
                id=lib.name,
                name=f"Minecraft {self.family.display_name} ({coordinate.artifact})",
                type=ModuleType.LIBRARY,
                artifact=self.generate_artifact(
                    data, stat, self.lib_repo.artifact_url(self.base_url, coordinate)
                ),
            )
            self.lib_repo.install(target_local_path, coordinate)
            return module

        return await self.gather_ordered(libraries, process)

    async def process_without_installer(self, installer_path: str) -> Module:
        manifest_buf = self.get_version_manifest_from_jar(installer_path)
        manifest = VersionManifest.from_dict(json.loads(manifest_buf))

        manifest_dest = await self.version_repo.write_manifest(self.version_name, manifest.raw)

        self_prefix = self.family.self_library_prefix(self.minecraft_version)
        loader_lib = manifest.find_library(self_prefix)
        if loader_lib is None:
            raise ManifestNotFoundError(
                f"version.json 中没有 {self.family.display_name} 条目!",
                context={"prefix": self_prefix},
            )

        universal = self.loader_coordinate("universal")
        universal_path = self.lib_repo.local_path(universal)
        logger.debug(f"检查本地 Universal jar: {universal_path}..")
        data, stat = await self.ensure_verified(
            universal_path,
            loader_lib.artifact.sha1 if loader_lib.artifact else None,
            lambda: self.lib_repo.download_artifact(self.family.remote_repository, universal),
        )

        logger.debug(f"开始处理 {self.describe()}")
        loader_module = Module(
            id=universal.identifier(),
            name=f"Minecraft {self.family.display_name}",
            type=self.family.hosted_type,
            artifact=self.generate_artifact(
                data, stat, self.lib_repo.artifact_url(self.base_url, universal)
            ),
        )

        manifest_data, manifest_stat = await self.lib_repo.read_bytes(manifest_dest)
        loader_module.sub_modules.append(
            Module(
                id=self.artifact_version,
                name=f"Minecraft {self.family.display_name} (version.json)",
                type=ModuleType.VERSION_MANIFEST,
                artifact=self.generate_artifact(
                    manifest_data,
                    manifest_stat,
                    self.version_repo.manifest_url(self.base_url, self.version_name),
                ),
            )
        )

        libraries = [lib for lib in manifest.libraries if not lib.name.startswith(self_prefix)]
        loader_module.sub_modules.extend(
            await self.gather_ordered(libraries, self._process_embedded_library)
        )
        return loader_module

    async def _process_embedded_library(self, lib: Library) -> Module:
        logger.debug(f"处理 {lib.name}..")
        coordinate = MavenCoordinate.parse(lib.name, extension="jar")
        local_path = self.lib_repo.local_path(coordinate)

        if lib.artifact and lib.artifact.url:
            download = lib.artifact

            async def fetch():
                await self.lib_repo.download_direct(download.url, download.path or coordinate.path)

            expected_sha1 = download.sha1
        else:

            async def fetch():
                await self.lib_repo.download_artifact(self.family.mojang_repository, coordinate)

            expected_sha1 = None

        data, stat = await self.ensure_verified(local_path, expected_sha1, fetch)

        return Module(
            id=coordinate.identifier(with_extension=True),
            name=f"Minecraft {self.family.display_name} ({coordinate.artifact})",
            type=ModuleType.LIBRARY,
            artifact=self.generate_artifact(
                data, stat, self.lib_repo.artifact_url(self.base_url, coordinate)
            ),
        )
