"""
日志模块

使用 loguru 提供统一的日志记录功能。
"""

import os
import sys
from typing import Optional

from loguru import logger


def setup_logger(
    level: Optional[str] = None,
    sink=sys.stdout,
    enqueue: bool = True,
    colorize: bool = True,
) -> None:
    """
    设置日志记录器

    Args:
        level: 日志级别 (DEBUG, INFO, WARNING, ERROR)
        sink: 输出目标
        enqueue: 是否启用队列（线程安全）
        colorize: 是否启用颜色
    """
    # 从环境变量获取日志级别
    if level is None:
        level = "DEBUG" if os.environ.get("LOADERFETCH_DEBUG", "0") == "1" else "INFO"

    # 移除默认处理器
    logger.remove()

    # 子进程输出带有 name 字段，其余记录使用模块名
    logger.configure(extra={"name": "loaderfetch"})
    logger.add(
        sink=sink,
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {extra[name]} | {message}",
        enqueue=enqueue,
        level=level,
        colorize=colorize,
        backtrace=(level == "DEBUG"),
        diagnose=(level == "DEBUG"),
    )

    if level == "DEBUG":
        logger.debug("DEBUG 模式已启用")


def get_logger(name: Optional[str] = None):
    """获取日志记录器实例，可绑定名称"""
    if name:
        return logger.bind(name=name)
    return logger


# 导出 logger
__all__ = ["logger", "setup_logger", "get_logger"]
