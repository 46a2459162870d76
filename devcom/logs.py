"""structlog configuration for devcom.

Two output modes:
- Human (default): colored console output to stderr
- JSON: structured JSON lines to stderr

Library modules only use logging.getLogger(__name__); hosts that embed the
console call configure_logging() once (the read loop does it for you).
"""
import logging
import sys

import structlog


def configure_logging(*, verbose=False, log_json=False):
    """Configure structlog processors and output routing.

    Args:
        verbose: Enable DEBUG-level output for devcom. When False, only WARNING+.
        log_json: Use JSON renderer instead of console renderer.
    """
    devcom_level = logging.DEBUG if verbose else logging.WARNING

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if log_json:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(logging.WARNING)

    logging.getLogger("devcom").setLevel(devcom_level)


__all__ = ("configure_logging",)
