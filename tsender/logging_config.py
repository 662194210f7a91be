"""
Structured logging for airdrop runs.

Orchestrator events are structlog key/value events; the retry executor logs
through stdlib logging. Both end up on one handler rendered either as JSON
lines or as colored console output.
"""

import logging
import sys
from contextlib import contextmanager
from typing import Iterator, Optional

import structlog

from . import config

_RPC_LOGGERS = ("web3", "urllib3", "httpx")


def _renderer(json_logs: bool) -> structlog.types.Processor:
    if json_logs:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer()


def setup_logging(log_level: Optional[str] = None, json_logs: Optional[bool] = None) -> None:
    """Install structlog and route stdlib records through the same renderer.

    Args:
        log_level: Override for settings.log_level
        json_logs: Override for settings.log_json
    """
    level = logging.getLevelName((log_level or config.settings.log_level).upper())
    if not isinstance(level, int):
        level = logging.INFO
    if json_logs is None:
        json_logs = config.settings.log_json

    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]
    if json_logs:
        processors.append(structlog.processors.format_exc_info)

    structlog.configure(
        processors=[*processors, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=processors,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(json_logs),
            ],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for name in _RPC_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


@contextmanager
def airdrop_log_context(chain_id: int, generation: int, operation: str) -> Iterator[None]:
    """Tag every log line emitted inside the block with the run it belongs to."""
    with structlog.contextvars.bound_contextvars(
        chain_id=chain_id,
        generation=generation,
        operation=operation,
    ):
        yield
