"""structlog 配置 -- gateway 与 CLI 共用

渲染模式：
- dev（默认）：ConsoleRenderer 可读输出
- json：每行一个 JSON 对象，便于日志采集

标准库 logging 的记录（aiosqlite、httpx 等）经 ProcessorFormatter 走同一条渲染链。
"""

import logging
import os
import sys
from typing import TextIO

import structlog

LOG_FORMATS = ("dev", "json")

# 第三方库的调试输出过多，统一压到 WARNING
_NOISY_LOGGERS = ("aiosqlite", "httpx", "httpcore")


def _resolve_level(value: str) -> int:
    level = logging.getLevelName(value.strip().upper())
    return level if isinstance(level, int) else logging.INFO


def setup_logging(
    log_format: str | None = None,
    log_level: str | None = None,
    stream: TextIO | None = None,
) -> None:
    """初始化 structlog 与 root logger

    未显式传入时读取 POLICYHUB_LOG_FORMAT / POLICYHUB_LOG_LEVEL；
    未知格式按 dev 处理，未知级别按 INFO 处理。
    stream 默认 stderr，CLI 的 stdout 只留给结果输出。
    """
    fmt = (log_format or os.environ.get("POLICYHUB_LOG_FORMAT", "dev")).lower()
    level = _resolve_level(log_level or os.environ.get("POLICYHUB_LOG_LEVEL", "INFO"))

    pre_chain: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]

    if fmt == "json":
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer(
            ensure_ascii=False
        )
        pre_chain.append(structlog.processors.format_exc_info)
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
            foreign_pre_chain=pre_chain,
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
