"""
日志配置模块
"""
import sys
from pathlib import Path

from loguru import logger

from .config import settings

_configured = False


def _console_stream():
    """返回可用的控制台输出流，窗口化运行时可能都不存在。"""
    for stream in (sys.stdout, sys.stderr, sys.__stdout__, sys.__stderr__):
        if stream is not None:
            return stream
    return None


def setup_logger(force: bool = False):
    """配置日志系统

    重复调用是幂等的；force=True 时按当前 settings 重建所有处理器。
    """
    global _configured
    if _configured and not force:
        return logger

    # 移除默认处理器
    logger.remove()

    if settings.log_console_enabled:
        stream = _console_stream()
        if stream is not None:
            logger.add(
                stream,
                level=settings.log_level,
                format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>",
            )

    if settings.log_file_enabled:
        log_dir = Path(settings.log_path)
        log_dir.mkdir(parents=True, exist_ok=True)

        logger.add(
            log_dir / "app_{time:YYYY-MM-DD}.log",
            level=settings.log_level,
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
            rotation="00:00",  # 每天午夜轮转
            retention=f"{settings.log_retention_days} days",
            encoding="utf-8",
        )

        # 错误日志单独记录
        logger.add(
            log_dir / "error_{time:YYYY-MM-DD}.log",
            level="ERROR",
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
            rotation="00:00",
            retention=f"{settings.log_retention_days * 2} days",
            encoding="utf-8",
        )

    _configured = True
    return logger


__all__ = ["logger", "setup_logger"]
