"""structlog 配置

库在导入时不配置日志，由宿主应用或 CLI 显式调用 setup_logging()。
未配置时 structlog 使用默认的控制台输出。
"""

import logging
import os

import structlog

LOG_FORMATS = ("dev", "json")


def _renderer(log_format: str) -> structlog.types.Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer(ensure_ascii=False)
    return structlog.dev.ConsoleRenderer()


def setup_logging(log_format: str | None = None, log_level: str | None = None) -> None:
    """把 structlog 接到标准库 logging 上

    Args:
        log_format: "dev"（可读输出）或 "json"（结构化输出），
            默认读取 FLIGHTDECK_LOG_FORMAT，未设置时为 "dev"
        log_level: 日志级别名，默认读取 FLIGHTDECK_LOG_LEVEL，未设置时为 INFO
    """
    log_format = (log_format or os.environ.get("FLIGHTDECK_LOG_FORMAT", "dev")).lower()
    if log_format not in LOG_FORMATS:
        log_format = "dev"
    log_level = log_level or os.environ.get("FLIGHTDECK_LOG_LEVEL", "INFO")

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]
    if log_format == "json":
        # dev 模式由 ConsoleRenderer 自己渲染异常
        shared_processors.append(structlog.processors.format_exc_info)

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=_renderer(log_format),
            foreign_pre_chain=shared_processors,
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))
