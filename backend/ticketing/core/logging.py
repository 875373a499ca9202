"""
Logging for the ticketing service.

structlog events and plain stdlib records from libraries go through one
ProcessorFormatter on stdout, so the API, the replenishment job and the
database driver all write the same shape of line: JSON in production,
key/value console output elsewhere. Every event is stamped with the service
name and environment.
"""

import logging
import sys
from typing import Optional

import structlog
from structlog.typing import EventDict, Processor, WrappedLogger

from ticketing.core.config import Settings, get_settings

HANDLER_NAME = "ticketing"

# INFO from these drowns the reservation and replenishment events
NOISY_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "aiosqlite", "asyncpg")


class ServiceContext:
    """Processor that adds `service` and `environment` to each event."""

    def __init__(self, settings: Settings) -> None:
        self.service = settings.APP_NAME
        self.environment = settings.ENVIRONMENT

    def __call__(self, logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
        event_dict.setdefault("service", self.service)
        event_dict.setdefault("environment", self.environment)
        return event_dict


def _pre_chain(settings: Settings) -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        ServiceContext(settings),
    ]


def _render_chain(json_output: bool) -> list[Processor]:
    chain: list[Processor] = [structlog.stdlib.ProcessorFormatter.remove_processors_meta]
    if json_output:
        chain += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        chain.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))
    return chain


def setup_logging(level: Optional[str] = None, json_output: Optional[bool] = None) -> logging.Handler:
    """
    Route all logging through a single structlog-formatted stdout handler.

    `level` and `json_output` default to LOG_LEVEL and to whether ENVIRONMENT
    is production. Calling it again replaces the handler installed last time
    and leaves other root handlers alone.
    """
    settings = get_settings()
    if json_output is None:
        json_output = settings.ENVIRONMENT == "production"
    level_name = (level or settings.LOG_LEVEL).upper()

    pre_chain = _pre_chain(settings)
    structlog.configure(
        processors=[
            *pre_chain,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.set_name(HANDLER_NAME)
    handler.setFormatter(structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=pre_chain,
        processors=_render_chain(json_output),
    ))

    root = logging.getLogger()
    root.handlers = [h for h in root.handlers if h.get_name() != HANDLER_NAME] + [handler]
    root.setLevel(getattr(logging, level_name, logging.INFO))

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return handler


def get_logger(name: str = __name__) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
