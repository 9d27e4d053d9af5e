"""
CLI 模块

命令行接口实现。
"""

import asyncio
import json
import sys
from pathlib import Path
from typing import Optional

import aiofiles
import click
import toml
import yaml
from loguru import logger

from loaderfetch.download import DownloadManager
from loaderfetch.exceptions import ConfigParseError, LoaderFetchError
from loaderfetch.java import JavaRunner
from loaderfetch.logger import setup_logger
from loaderfetch.models import Module, ResolverConfig
from loaderfetch.resolver import get_resolver


def load_config(config_path: str) -> dict:
    """加载配置文件"""
    path = Path(config_path)

    if not path.exists():
        raise click.ClickException(f"配置文件不存在: {config_path}")

    suffix = path.suffix.lower()

    try:
        if suffix == ".toml":
            return toml.load(config_path)
        elif suffix == ".json":
            return json.loads(path.read_text())
        elif suffix in (".yaml", ".yml"):
            return yaml.safe_load(path.read_text())
    except (toml.TomlDecodeError, json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigParseError(f"配置文件解析失败: {e}", context={"path": config_path})

    raise click.ClickException(f"不支持的配置文件格式: {suffix}")


async def resolve(config: ResolverConfig) -> Module:
    """按配置选择策略并执行一次解析"""
    downloader = DownloadManager(
        max_retries=config.max_retries,
        retry_delay=config.retry_delay,
    )
    async with downloader:
        resolver = get_resolver(
            config.loader.value,
            config.minecraft_version,
            config.loader_version,
            config.root,
            config.relative_root,
            config.base_url,
            discard_output=config.discard_output,
            invalidate_cache=config.invalidate_cache,
            downloader=downloader,
            java=JavaRunner(config.java_executable),
            max_concurrent=config.max_concurrent,
            security_delay=config.security_delay,
            installer_timeout=config.installer_timeout,
            packxz_tool=config.packxz_tool,
        )
        logger.info(f"使用 {type(resolver).__name__} 解析 {resolver.describe()}")
        module = await resolver.resolve()

        stats = downloader.get_stats()
        logger.success(
            f"解析完成: {len(module.sub_modules)} 个子模块, "
            f"下载 {stats.completed} 个文件 ({stats.failed} 失败)"
        )
        return module


async def run_async(config_path: str, overrides: dict) -> None:
    """异步运行"""
    config_dict = load_config(config_path)
    config_dict.update({k: v for k, v in overrides.items() if v is not None})
    config = ResolverConfig.from_dict(config_dict)

    module = await resolve(config)
    payload = json.dumps(module.to_dict(), indent=2)

    if config.output:
        async with aiofiles.open(config.output, "w", encoding="utf-8") as f:
            await f.write(payload)
        logger.success(f"模块树已写入 {config.output}")
    else:
        click.echo(payload)


@click.command()
@click.argument("config", type=click.Path(exists=True), default="loader.toml")
@click.option("-o", "--output", help="模块树 JSON 输出路径（默认输出到标准输出）")
@click.option("--invalidate-cache", is_flag=True, help="删除已有的安装器缓存")
@click.option("--discard-output", is_flag=True, help="完成后删除安装器输出")
@click.option("--debug", is_flag=True, help="启用调试模式")
@click.version_option(version="0.1.0")
def main(
    config: str,
    output: Optional[str],
    invalidate_cache: bool,
    discard_output: bool,
    debug: bool,
):
    """LoaderFetch - Forge/NeoForge 加载器构件解析工具"""
    # 标准输出留给模块树
    setup_logger(level="DEBUG" if debug else None, sink=sys.stderr)

    overrides = {
        "output": output,
        "invalidate_cache": invalidate_cache or None,
        "discard_output": discard_output or None,
    }
    try:
        asyncio.run(run_async(config, overrides))
    except LoaderFetchError as e:
        logger.error(f"解析失败: {e}")
        raise click.ClickException(str(e))


if __name__ == "__main__":
    main()
