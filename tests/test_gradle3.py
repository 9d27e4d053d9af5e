"""Tests for the installer-driven resolver."""

import asyncio
import json
import os

import pytest

from loaderfetch.exceptions import (
    ExpectedLibraryMissingError,
    InstallerOutputMissingError,
    InstallerTimeoutError,
    InstallerUnavailableError,
    JavaLaunchError,
    PlaceholderUnresolvedError,
    RequiredArtifactMissingError,
)
from loaderfetch.java import JavaRunner
from loaderfetch.models import MinecraftVersion, ModuleType
from loaderfetch.resolver import Gradle3Adapter, get_resolver

from conftest import FakeDownloader, FakeJava, make_jar, md5, sha1, write_file

BASE_URL = "https://files.example.com/distribution"

NEOFORGE_INSTALLER_URL = (
    "https://maven.neoforged.net/releases/net/neoforged/neoforge/20.4.80/"
    "neoforge-20.4.80-installer.jar"
)
FORGE_1165_INSTALLER_URL = (
    "https://maven.minecraftforge.net/net/minecraftforge/forge/1.16.5-36.2.39/"
    "forge-1.16.5-36.2.39-installer.jar"
)

ASM = ("org.ow2.asm:asm:9.6", "org/ow2/asm/asm/9.6/asm-9.6.jar", b"asm bytes")
BUS = ("net.neoforged:bus:7.0.10", "net/neoforged/bus/7.0.10/bus-7.0.10.jar", b"bus bytes")
GSON = (
    "com.google.code.gson:gson:2.10.1",
    "com/google/code/gson/gson/2.10.1/gson-2.10.1.jar",
    b"gson",
)


def library_entry(name, path, data, url=None):
    return {
        "name": name,
        "downloads": {
            "artifact": {
                "path": path,
                "url": url if url is not None else f"https://maven.example.com/{path}",
                "sha1": sha1(data),
                "size": len(data),
            }
        },
    }


def neoforge_installer(files, libraries=(ASM, BUS), skip=()):
    """Lay out what the NeoForge 1.20.4 installer writes into its target directory."""

    def install(target):
        lib_dir = os.path.join(target, "libraries")
        manifest = {
            "id": "neoforge-20.4.80",
            "arguments": {"game": ["--fml.neoForgeVersion", "20.4.80"]},
            "libraries": [
                library_entry(
                    "net.neoforged:neoforge:20.4.80:universal",
                    "net/neoforged/neoforge/20.4.80/neoforge-20.4.80-universal.jar",
                    b"universal",
                    url="",
                ),
                *(library_entry(*lib) for lib in libraries),
            ],
        }
        write_file(
            os.path.join(target, "versions", "neoforge-20.4.80", "neoforge-20.4.80.json"),
            json.dumps(manifest).encode(),
        )
        for path, data in files.items():
            if path not in skip:
                write_file(os.path.join(lib_dir, *path.split("/")), data)
        for _, path, data in (ASM, BUS):
            if path not in skip:
                write_file(os.path.join(lib_dir, *path.split("/")), data)

    return install


NEOFORGE_FILES = {
    "net/neoforged/neoforge/20.4.80/neoforge-20.4.80-universal.jar": b"universal",
    "net/neoforged/neoforge/20.4.80/neoforge-20.4.80-client.jar": b"client",
    "net/neoforged/neoforge/20.4.80/neoforge-20.4.80-shim.jar": b"shim",
    "net/neoforged/fmlcore/20.4.80/fmlcore-20.4.80.jar": b"fmlcore",
    "net/neoforged/javafmllanguage/20.4.80/javafmllanguage-20.4.80.jar": b"javafml",
    "net/neoforged/mclanguage/20.4.80/mclanguage-20.4.80.jar": b"mclanguage",
    "net/neoforged/lowcodelanguage/20.4.80/lowcodelanguage-20.4.80.jar": b"lowcode",
}


def neoforge_resolver(repo_root, downloader, java, **options):
    return get_resolver(
        "neoforge",
        MinecraftVersion.parse("1.20.4"),
        "20.4.80",
        repo_root,
        "repo",
        BASE_URL,
        downloader=downloader,
        java=java,
        **options,
    )


def cache_dir(repo_root, family, artifact_version):
    return os.path.join(repo_root, "cache", family, artifact_version)


class TestNeoForgeInstaller:
    def test_module_tree(self, repo_root):
        downloader = FakeDownloader({NEOFORGE_INSTALLER_URL: b"installer"})
        java = FakeJava(neoforge_installer(NEOFORGE_FILES))
        resolver = neoforge_resolver(repo_root, downloader, java)

        assert isinstance(resolver, Gradle3Adapter)
        module = asyncio.run(resolver.resolve())

        assert module.id == "net.neoforged:neoforge:20.4.80:universal"
        assert module.type is ModuleType.NEOFORGE_HOSTED
        assert module.artifact.md5 == md5(b"universal")
        assert module.artifact.url == (
            f"{BASE_URL}/repo/lib/net/neoforged/neoforge/20.4.80/neoforge-20.4.80-universal.jar"
        )

        manifests = [m for m in module.sub_modules if m.type is ModuleType.VERSION_MANIFEST]
        assert len(manifests) == 1
        assert module.sub_modules[0] is manifests[0]
        assert manifests[0].id == "20.4.80"
        assert manifests[0].artifact.url == (
            f"{BASE_URL}/repo/versions/neoforge-20.4.80/neoforge-20.4.80.json"
        )

        ids = [m.id for m in module.sub_modules[1:]]
        assert ids == [
            "net.neoforged:neoforge:20.4.80:client",
            "net.neoforged:neoforge:20.4.80:shim",
            "net.neoforged:fmlcore:20.4.80",
            "net.neoforged:javafmllanguage:20.4.80",
            "net.neoforged:mclanguage:20.4.80",
            "net.neoforged:lowcodelanguage:20.4.80",
            ASM[0],
            BUS[0],
        ]
        assert all(m.artifact.md5 for m in module.sub_modules)
        assert module.find("net.neoforged:neoforge:20.4.80:shim").classpath is False
        assert module.find("net.neoforged:fmlcore:20.4.80").classpath is True
        assert module.find(ASM[0]).artifact.md5 == md5(ASM[2])

    def test_files_are_staged(self, repo_root):
        downloader = FakeDownloader({NEOFORGE_INSTALLER_URL: b"installer"})
        java = FakeJava(neoforge_installer(NEOFORGE_FILES))
        asyncio.run(neoforge_resolver(repo_root, downloader, java).resolve())

        lib_root = os.path.join(repo_root, "repo", "lib")
        for path in [*NEOFORGE_FILES, ASM[1], BUS[1]]:
            assert os.path.isfile(os.path.join(lib_root, *path.split("/")))
        assert os.path.isfile(
            os.path.join(repo_root, "repo", "versions", "neoforge-20.4.80", "neoforge-20.4.80.json")
        )

        target = cache_dir(repo_root, "neoforge", "20.4.80")
        with open(os.path.join(target, "launcher_profiles.json")) as f:
            assert json.load(f) == {}
        assert java.installer_runs[0][2] == target

    def test_missing_installer_output_cleans_up(self, repo_root):
        downloader = FakeDownloader({NEOFORGE_INSTALLER_URL: b"installer"})
        java = FakeJava(lambda target: None)

        with pytest.raises(InstallerOutputMissingError):
            asyncio.run(neoforge_resolver(repo_root, downloader, java).resolve())
        assert not os.path.exists(cache_dir(repo_root, "neoforge", "20.4.80"))

    def test_installer_not_downloadable(self, repo_root):
        java = FakeJava(neoforge_installer(NEOFORGE_FILES))

        with pytest.raises(InstallerUnavailableError):
            asyncio.run(neoforge_resolver(repo_root, FakeDownloader(), java).resolve())
        assert java.runs == []

    def test_cache_is_reused(self, repo_root):
        downloader = FakeDownloader({NEOFORGE_INSTALLER_URL: b"installer"})
        java = FakeJava(neoforge_installer(NEOFORGE_FILES))

        first = asyncio.run(neoforge_resolver(repo_root, downloader, java).resolve())
        second = asyncio.run(neoforge_resolver(repo_root, downloader, java).resolve())

        assert len(java.installer_runs) == 1
        assert downloader.requests == [NEOFORGE_INSTALLER_URL]
        assert first.to_dict() == second.to_dict()

    def test_invalidate_cache_reruns_installer(self, repo_root):
        downloader = FakeDownloader({NEOFORGE_INSTALLER_URL: b"installer"})
        java = FakeJava(neoforge_installer(NEOFORGE_FILES))

        asyncio.run(neoforge_resolver(repo_root, downloader, java).resolve())
        stale = os.path.join(cache_dir(repo_root, "neoforge", "20.4.80"), "stale.txt")
        write_file(stale, b"old")
        asyncio.run(
            neoforge_resolver(repo_root, downloader, java, invalidate_cache=True).resolve()
        )

        assert len(java.installer_runs) == 2
        assert not os.path.exists(stale)

    def test_discard_output(self, repo_root):
        downloader = FakeDownloader({NEOFORGE_INSTALLER_URL: b"installer"})
        java = FakeJava(neoforge_installer(NEOFORGE_FILES))

        asyncio.run(neoforge_resolver(repo_root, downloader, java, discard_output=True).resolve())

        assert not os.path.exists(cache_dir(repo_root, "neoforge", "20.4.80"))
        universal = os.path.join(
            repo_root, "repo", "lib", "net", "neoforged", "neoforge", "20.4.80",
            "neoforge-20.4.80-universal.jar",
        )
        assert os.path.isfile(universal)

    def test_expected_library_missing(self, repo_root):
        extra = ("com.example:ghost:1.0", "com/example/ghost/1.0/ghost-1.0.jar", b"ghost")
        downloader = FakeDownloader({NEOFORGE_INSTALLER_URL: b"installer"})
        java = FakeJava(neoforge_installer(NEOFORGE_FILES, libraries=(ASM, BUS, extra)))

        with pytest.raises(ExpectedLibraryMissingError) as exc_info:
            asyncio.run(neoforge_resolver(repo_root, downloader, java).resolve())
        assert exc_info.value.context["path"].endswith("ghost-1.0.jar")


class StalledJava(FakeJava):
    """An installer that never finishes on its own."""

    async def run_jar(self, jar, args=(), cwd=None, log_name="java", timeout=None):
        self.runs.append((jar, list(args), cwd))
        await asyncio.sleep(30)
        return 0


class TimedOutJava(FakeJava):
    async def run_jar(self, jar, args=(), cwd=None, log_name="java", timeout=None):
        self.runs.append((jar, list(args), cwd))
        raise InstallerTimeoutError("installer timed out", context={"timeout": timeout})


class TestInstallerFailureCleanup:
    def assert_retry_succeeds(self, repo_root, downloader):
        java = FakeJava(neoforge_installer(NEOFORGE_FILES))
        module = asyncio.run(neoforge_resolver(repo_root, downloader, java).resolve())

        assert len(java.installer_runs) == 1
        assert module.id == "net.neoforged:neoforge:20.4.80:universal"

    def test_java_not_launchable(self, repo_root, tmp_path):
        downloader = FakeDownloader({NEOFORGE_INSTALLER_URL: b"installer"})
        java = JavaRunner(executable=str(tmp_path / "no-such-java"))

        with pytest.raises(JavaLaunchError):
            asyncio.run(neoforge_resolver(repo_root, downloader, java).resolve())

        assert not os.path.exists(cache_dir(repo_root, "neoforge", "20.4.80"))
        self.assert_retry_succeeds(repo_root, downloader)

    def test_installer_timeout(self, repo_root):
        downloader = FakeDownloader({NEOFORGE_INSTALLER_URL: b"installer"})
        java = TimedOutJava()

        with pytest.raises(InstallerTimeoutError):
            asyncio.run(
                neoforge_resolver(repo_root, downloader, java, installer_timeout=1).resolve()
            )

        assert len(java.runs) == 1
        assert not os.path.exists(cache_dir(repo_root, "neoforge", "20.4.80"))
        self.assert_retry_succeeds(repo_root, downloader)

    def test_cancelled_during_install(self, repo_root):
        downloader = FakeDownloader({NEOFORGE_INSTALLER_URL: b"installer"})
        java = StalledJava()

        async def scenario():
            task = asyncio.ensure_future(neoforge_resolver(repo_root, downloader, java).resolve())
            while not java.runs:
                await asyncio.sleep(0.01)
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        asyncio.run(scenario())

        assert not os.path.exists(cache_dir(repo_root, "neoforge", "20.4.80"))
        self.assert_retry_succeeds(repo_root, downloader)


class TestGatherOrdered:
    def test_results_follow_input_order(self, repo_root):
        resolver = neoforge_resolver(repo_root, FakeDownloader(), FakeJava(), max_concurrent=2)

        async def worker(item):
            await asyncio.sleep(0.01 * (3 - item))
            return item * 10

        assert asyncio.run(resolver.gather_ordered([0, 1, 2], worker)) == [0, 10, 20]

    def test_failure_cancels_remaining_workers(self, repo_root):
        resolver = neoforge_resolver(repo_root, FakeDownloader(), FakeJava())
        finished = []

        async def worker(item):
            if item == 0:
                raise ExpectedLibraryMissingError("missing", context={"item": item})
            await asyncio.sleep(0.05)
            finished.append(item)
            return item

        async def scenario():
            with pytest.raises(ExpectedLibraryMissingError):
                await resolver.gather_ordered([0, 1, 2, 3], worker)
            await asyncio.sleep(0.2)

        asyncio.run(scenario())

        assert finished == []

    def test_failure_stops_queued_installs(self, repo_root):
        files = {**NEOFORGE_FILES, GSON[1]: GSON[2]}
        downloader = FakeDownloader({NEOFORGE_INSTALLER_URL: b"installer"})
        java = FakeJava(
            neoforge_installer(files, libraries=(ASM, BUS, GSON), skip=(ASM[1],))
        )
        resolver = neoforge_resolver(repo_root, downloader, java, max_concurrent=1)

        async def scenario():
            with pytest.raises(ExpectedLibraryMissingError):
                await resolver.resolve()
            await asyncio.sleep(0.2)

        asyncio.run(scenario())

        lib_root = os.path.join(repo_root, "repo", "lib")
        assert not os.path.exists(os.path.join(lib_root, *ASM[1].split("/")))
        assert not os.path.exists(os.path.join(lib_root, *GSON[1].split("/")))


MCP_VERSION = "20210115.111550"

FORGE_1165_FILES = {
    "net/minecraftforge/forge/1.16.5-36.2.39/forge-1.16.5-36.2.39-universal.jar": b"universal",
    "net/minecraftforge/forge/1.16.5-36.2.39/forge-1.16.5-36.2.39-client.jar": b"client",
    f"net/minecraft/client/1.16.5-{MCP_VERSION}/client-1.16.5-{MCP_VERSION}-srg.jar": b"srg",
    f"net/minecraft/client/1.16.5-{MCP_VERSION}/client-1.16.5-{MCP_VERSION}-slim-stable.jar": b"slim",
    f"net/minecraft/client/1.16.5-{MCP_VERSION}/client-1.16.5-{MCP_VERSION}-extra.jar": b"extra",
}


def forge_1165_installer(files, with_mcp_flag=True):
    def install(target):
        game = ["--fml.forgeVersion", "36.2.39", "--fml.mcVersion", "1.16.5"]
        if with_mcp_flag:
            game += ["--fml.mcpVersion", MCP_VERSION]
        manifest = {
            "id": "1.16.5-forge-36.2.39",
            "arguments": {"game": game},
            "libraries": [library_entry(*ASM)],
        }
        write_file(
            os.path.join(target, "versions", "1.16.5-forge-36.2.39", "1.16.5-forge-36.2.39.json"),
            json.dumps(manifest).encode(),
        )
        for path, data in [*files.items(), (ASM[1], ASM[2])]:
            write_file(os.path.join(target, "libraries", *path.split("/")), data)

    return install


def forge_1165_resolver(repo_root, downloader, java):
    return get_resolver(
        "forge",
        MinecraftVersion.parse("1.16.5"),
        "36.2.39",
        repo_root,
        "repo",
        BASE_URL,
        downloader=downloader,
        java=java,
    )


class TestForgeMcpLayout:
    def test_classifier_fallback_and_optional_data(self, repo_root):
        downloader = FakeDownloader({FORGE_1165_INSTALLER_URL: b"installer"})
        java = FakeJava(forge_1165_installer(FORGE_1165_FILES))

        module = asyncio.run(forge_1165_resolver(repo_root, downloader, java).resolve())

        assert module.type is ModuleType.FORGE_HOSTED
        assert module.id == "net.minecraftforge:forge:1.16.5-36.2.39:universal"
        assert module.classpath is False
        ids = [m.id for m in module.sub_modules]
        assert ids == [
            "1.16.5-36.2.39",
            "net.minecraftforge:forge:1.16.5-36.2.39:client",
            f"net.minecraft:client:1.16.5-{MCP_VERSION}:srg",
            f"net.minecraft:client:1.16.5-{MCP_VERSION}:slim-stable",
            f"net.minecraft:client:1.16.5-{MCP_VERSION}:extra",
            ASM[0],
        ]
        assert not any(":data" in mid for mid in ids)

    def test_missing_mcp_version(self, repo_root):
        downloader = FakeDownloader({FORGE_1165_INSTALLER_URL: b"installer"})
        java = FakeJava(forge_1165_installer(FORGE_1165_FILES, with_mcp_flag=False))

        with pytest.raises(PlaceholderUnresolvedError):
            asyncio.run(forge_1165_resolver(repo_root, downloader, java).resolve())

    def test_required_artifact_missing_lists_every_location(self, repo_root):
        files = {k: v for k, v in FORGE_1165_FILES.items() if "slim" not in k}
        downloader = FakeDownloader({FORGE_1165_INSTALLER_URL: b"installer"})
        java = FakeJava(forge_1165_installer(files))

        with pytest.raises(RequiredArtifactMissingError) as exc_info:
            asyncio.run(forge_1165_resolver(repo_root, downloader, java).resolve())

        tried = exc_info.value.tried
        assert len(tried) == 2
        assert tried[0].endswith(f"client-1.16.5-{MCP_VERSION}-slim.jar")
        assert tried[1].endswith(f"client-1.16.5-{MCP_VERSION}-slim-stable.jar")


FORGE_1122 = "1.12.2-14.23.5.2860"
FORGE_1122_INSTALLER_URL = (
    f"https://maven.minecraftforge.net/net/minecraftforge/forge/{FORGE_1122}/"
    f"forge-{FORGE_1122}-installer.jar"
)
FORGE_1122_UNIVERSAL_URL = (
    f"https://maven.minecraftforge.net/net/minecraftforge/forge/{FORGE_1122}/"
    f"forge-{FORGE_1122}-universal.jar"
)
ASM_DEBUG_PATH = "org/ow2/asm/asm-debug-all/5.2/asm-debug-all-5.2.jar"
ASM_DEBUG_URL = f"https://files.minecraftforge.net/maven/{ASM_DEBUG_PATH}"
JOPT_URL = "https://libraries.minecraft.net/net/sf/jopt-simple/jopt-simple/5.0.3/jopt-simple-5.0.3.jar"


class TestEmbeddedManifest:
    def build(self, universal=b"fresh universal"):
        manifest = {
            "id": "1.12.2-forge-14.23.5.2860",
            "libraries": [
                library_entry(
                    f"net.minecraftforge:forge:{FORGE_1122}",
                    f"net/minecraftforge/forge/{FORGE_1122}/forge-{FORGE_1122}.jar",
                    universal,
                    url="",
                ),
                library_entry(
                    "org.ow2.asm:asm-debug-all:5.2", ASM_DEBUG_PATH, b"asm debug", url=ASM_DEBUG_URL
                ),
                {"name": "net.sf.jopt-simple:jopt-simple:5.0.3"},
            ],
        }
        return FakeDownloader(
            {
                FORGE_1122_INSTALLER_URL: make_jar(manifest),
                FORGE_1122_UNIVERSAL_URL: universal,
                ASM_DEBUG_URL: b"asm debug",
                JOPT_URL: b"jopt",
            }
        )

    def resolver(self, repo_root, downloader, java):
        return get_resolver(
            "forge",
            MinecraftVersion.parse("1.12.2"),
            "14.23.5.2860",
            repo_root,
            "repo",
            BASE_URL,
            downloader=downloader,
            java=java,
        )

    def test_no_installer_run(self, repo_root):
        downloader = self.build()
        java = FakeJava()

        module = asyncio.run(self.resolver(repo_root, downloader, java).resolve())

        assert java.runs == []
        assert module.type is ModuleType.FORGE_HOSTED
        assert [m.id for m in module.sub_modules] == [
            FORGE_1122,
            "org.ow2.asm:asm-debug-all:5.2@jar",
            "net.sf.jopt-simple:jopt-simple:5.0.3@jar",
        ]
        assert module.sub_modules[0].type is ModuleType.VERSION_MANIFEST
        assert os.path.isfile(
            os.path.join(
                repo_root, "repo", "versions",
                "1.12.2-forge-14.23.5.2860", "1.12.2-forge-14.23.5.2860.json",
            )
        )

    def test_stale_universal_is_redownloaded(self, repo_root):
        downloader = self.build()
        universal_path = os.path.join(
            repo_root, "repo", "lib", "net", "minecraftforge", "forge", FORGE_1122,
            f"forge-{FORGE_1122}-universal.jar",
        )
        write_file(universal_path, b"stale universal")

        module = asyncio.run(self.resolver(repo_root, downloader, FakeJava()).resolve())

        assert downloader.requests.count(FORGE_1122_UNIVERSAL_URL) == 1
        assert module.artifact.md5 == md5(b"fresh universal")
        with open(universal_path, "rb") as f:
            assert f.read() == b"fresh universal"
