"""structlog wiring for codelineage.

Events are rendered by stdlib handlers, one per configured output, so each
output keeps its own level and renderer (console or JSON lines). Every event
emitted while a run id is set carries it as ``run_id``; the CLI sets one per
invocation so a JSON log file can be split by run.
"""

from __future__ import annotations

import logging
import sys
import uuid
from contextvars import ContextVar
from pathlib import Path
from typing import TextIO

import structlog
from structlog.typing import EventDict, Processor, WrappedLogger

from codelineage.config.models import LoggingConfig, LogOutputConfig

_run_id: ContextVar[str | None] = ContextVar("codelineage_run_id", default=None)


def set_run_id(run_id: str | None = None) -> str:
    """Tag subsequent events with ``run_id`` (a fresh 12-hex id when omitted)."""
    value = run_id or uuid.uuid4().hex[:12]
    _run_id.set(value)
    return value


def _inject_run_id(_: WrappedLogger, __: str, event_dict: EventDict) -> EventDict:
    run_id = _run_id.get()
    if run_id is not None:
        event_dict.setdefault("run_id", run_id)
    return event_dict


_PRE_CHAIN: list[Processor] = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.processors.TimeStamper(fmt="iso", utc=True),
    _inject_run_id,
]


def _open_stream(destination: str) -> tuple[logging.Handler, bool]:
    """Handler for ``destination`` and whether it writes to a terminal."""
    streams: dict[str, TextIO] = {"stderr": sys.stderr, "stdout": sys.stdout}
    stream = streams.get(destination)
    if stream is not None:
        return logging.StreamHandler(stream), stream.isatty()

    path = Path(destination)
    path.parent.mkdir(parents=True, exist_ok=True)
    return logging.FileHandler(path, encoding="utf-8"), False


def _handler_for(output: LogOutputConfig, default_level: str) -> logging.Handler:
    handler, tty = _open_stream(output.destination)
    renderer: Processor
    if output.format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=tty)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=_PRE_CHAIN,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )
    handler.setLevel(output.level or default_level)
    return handler


def configure_logging(config: LoggingConfig | None = None, *, level: str | None = None) -> None:
    """Route structlog and stdlib records to the outputs of ``config``.

    Without a config a single console output on stderr is used. ``level``
    overrides the configured root level. Calling again replaces every
    handler installed by a previous call.
    """
    config = config or LoggingConfig()
    root_level = level or config.level

    structlog.configure(
        processors=[*_PRE_CHAIN, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    root = logging.getLogger()
    for old in root.handlers[:]:
        root.removeHandler(old)
        old.close()

    for output in config.outputs:
        root.addHandler(_handler_for(output, root_level))
    root.setLevel(root_level)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Logger whose events carry ``logger=name``."""
    logger: structlog.stdlib.BoundLogger = structlog.get_logger(name)
    return logger
