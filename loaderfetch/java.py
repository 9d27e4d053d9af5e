"""
Java 进程

运行安装器与 PackXZExtract 工具，输出逐行转发到日志。
"""

import asyncio
import os
from typing import List, Optional, Sequence

from loaderfetch.exceptions import InstallerTimeoutError, JavaLaunchError, PostProcessError
from loaderfetch.logger import get_logger

PACK_XZ_SUFFIX = ".pack.xz"


class JavaRunner:
    """Java 可执行程序封装"""

    def __init__(self, executable: str = "java"):
        self.executable = executable

    @staticmethod
    async def _pipe(stream: Optional[asyncio.StreamReader], emit) -> None:
        if stream is None:
            return
        while True:
            line = await stream.readline()
            if not line:
                break
            text = line.decode("utf-8", errors="replace").rstrip()
            if text:
                emit(text)

    async def run_jar(
        self,
        jar: str,
        args: Sequence[str] = (),
        cwd: Optional[str] = None,
        log_name: str = "java",
        timeout: Optional[float] = None,
    ) -> int:
        """
        以 `java -jar` 运行并等待退出

        Args:
            jar: jar 路径
            args: 附加参数
            cwd: 工作目录
            log_name: 日志中的名称
            timeout: 期限（秒），None 表示不限

        Returns:
            退出码

        Raises:
            InstallerTimeoutError: 超过期限，子进程已被终止
            JavaLaunchError: 无法启动 java 可执行程序
        """
        proc_logger = get_logger(log_name)
        cmd = [self.executable, "-jar", jar, *args]
        proc_logger.debug(f"执行: {' '.join(cmd)}")

        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                cwd=cwd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise JavaLaunchError(
                f"无法启动 {self.executable}: {e}",
                context={"executable": self.executable, "jar": jar},
            ) from e

        async def communicate() -> int:
            await asyncio.gather(
                self._pipe(process.stdout, proc_logger.info),
                self._pipe(process.stderr, proc_logger.error),
            )
            return await process.wait()

        try:
            code = await asyncio.wait_for(communicate(), timeout=timeout)
        except asyncio.TimeoutError:
            await self._kill(process)
            raise InstallerTimeoutError(
                f"{log_name} 超过 {timeout}s 未退出，已终止",
                context={"jar": jar, "timeout": timeout},
            )
        except asyncio.CancelledError:
            await self._kill(process)
            raise

        if code == 0:
            proc_logger.info(f"退出码 {code}")
        else:
            proc_logger.error(f"退出码 {code}")
        return code

    @staticmethod
    async def _kill(process: asyncio.subprocess.Process) -> None:
        if process.returncode is None:
            try:
                process.kill()
            except ProcessLookupError:
                return
            await process.wait()


class PackXZExtractor:
    """PackXZExtract 批量解压工具"""

    def __init__(self, runner: JavaRunner, tool_jar: Optional[str]):
        self.runner = runner
        self.tool_jar = tool_jar

    @staticmethod
    def unpacked_path(path: str) -> str:
        """X.jar.pack.xz -> X.jar"""
        if path.endswith(PACK_XZ_SUFFIX):
            return path[: -len(PACK_XZ_SUFFIX)]
        return path

    async def extract_unpack(self, paths: List[str]) -> List[str]:
        """
        对整批文件运行一次解压，返回解压后的路径

        Raises:
            PostProcessError: 未配置工具或输出缺失
        """
        if not paths:
            return []
        if not self.tool_jar or not os.path.isfile(self.tool_jar):
            raise PostProcessError(
                "未配置 PackXZExtract 工具，无法处理 .pack.xz 库",
                context={"packxz_tool": self.tool_jar},
            )

        absolute = [os.path.abspath(p) for p in paths]
        await self.runner.run_jar(
            self.tool_jar,
            ["-packxz", ",".join(absolute)],
            log_name="PackXZExtract",
        )

        outputs = [self.unpacked_path(p) for p in absolute]
        missing = [p for p in outputs if not os.path.isfile(p)]
        if missing:
            raise PostProcessError(
                f"PackXZExtract 未生成 {len(missing)} 个文件",
                context={"missing": missing},
            )
        return outputs
