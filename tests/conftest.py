"""Shared fakes for resolver tests."""

import hashlib
import io
import json
import os
import zipfile

import pytest

from loaderfetch.exceptions import DownloadNetworkError


def sha1(data: bytes) -> str:
    return hashlib.sha1(data).hexdigest()


def md5(data: bytes) -> str:
    return hashlib.md5(data).hexdigest()


def write_file(path: str, data: bytes) -> str:
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "wb") as f:
        f.write(data)
    return path


def make_jar(manifest=None, entries=None) -> bytes:
    """Build an in-memory jar, optionally holding a version.json."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        if manifest is not None:
            archive.writestr("version.json", json.dumps(manifest))
        for name, data in (entries or {}).items():
            archive.writestr(name, data)
    return buffer.getvalue()


class FakeDownloader:
    """Serves bytes from a dict keyed by URL and records every request."""

    def __init__(self, files=None):
        self.files = dict(files or {})
        self.requests = []
        self.heads = []

    async def download_file(self, url, dest_path, expected_sha1=None):
        self.requests.append(url)
        if url not in self.files:
            raise DownloadNetworkError("HTTP 404", context={"url": url})
        write_file(dest_path, self.files[url])

    async def head(self, url):
        self.heads.append(url)
        return url in self.files

    async def close(self):
        pass


class FakeJava:
    """Stands in for the java runtime.

    Installer runs call ``on_install(cwd)``; PackXZExtract runs write the
    unpacked sibling of every input file.
    """

    def __init__(self, on_install=None):
        self.on_install = on_install
        self.runs = []

    async def run_jar(self, jar, args=(), cwd=None, log_name="java", timeout=None):
        self.runs.append((jar, list(args), cwd))
        if args and args[0] == "-packxz":
            for path in args[1].split(","):
                with open(path, "rb") as f:
                    packed = f.read()
                write_file(path[: -len(".pack.xz")], b"unpacked:" + packed)
            return 0
        if self.on_install is not None:
            self.on_install(cwd)
        return 0

    @property
    def installer_runs(self):
        return [run for run in self.runs if not run[1]]


@pytest.fixture
def repo_root(tmp_path):
    return str(tmp_path / "root")
