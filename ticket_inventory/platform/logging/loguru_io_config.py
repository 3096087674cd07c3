"""
Loguru sinks for the inventory service

Everything, including stdlib `logging` records from granian, SQLAlchemy, httpx
and confluent-kafka, ends up in one loguru logger bound with the service
context. Sinks are chosen from settings:

- stdout, coloured `io_log_format` for humans, or one JSON object per line when
  `LOG_JSON` is set
- an hourly rotated file under `LOG_DIR` when `LOG_TO_FILE` (defaults to DEBUG)
"""

from contextvars import ContextVar
from datetime import datetime, timezone
from enum import StrEnum
import logging
import sys
from typing import TYPE_CHECKING

from loguru import logger as loguru_logger

from ticket_inventory.platform.config.core_setting import settings
from ticket_inventory.platform.constant.path import LOG_DIR
from ticket_inventory.platform.logging.service_context import get_service_context


if TYPE_CHECKING:
    from loguru import Logger as LoguruLogger


# Argument names whose values never reach a sink; proofs are bearer credentials
SENSITIVE_KEYWORDS = {
    'password',
    'secret',
    'token',
    'authorization',
    'qr_proof',
    'qr_data',
    'validation_code',
}
MASK = '********'

chain_start_time_var: ContextVar[float] = ContextVar('chain_start_time_var', default=0)
call_depth_var: ContextVar[int] = ContextVar('call_depth_var', default=0)


class ExtraField(StrEnum):
    SERVICE_CONTEXT = 'service_context'
    CHAIN_START_TIME = 'chain_start_time'
    CALL_TARGET = 'call_target'


# Only WARNING and above from these
_QUIET_LOGGERS = ('httpcore', 'httpx', 'sqlalchemy.engine', 'confluent_kafka', 'asyncio')


def _default_extra() -> dict[str, str]:
    return {
        ExtraField.SERVICE_CONTEXT: get_service_context(),
        ExtraField.CHAIN_START_TIME: '',
        ExtraField.CALL_TARGET: '',
    }


io_log_format = ' | '.join(
    (
        f'<c>{{extra[{ExtraField.SERVICE_CONTEXT}]}}</>',
        '<lvl>{level:<8}</>',
        f'<c>{{file}}::{{function}}:{{line}}</>=><y>{{extra[{ExtraField.CALL_TARGET}]}}</>',
        '{message}',
        '<lk>{elapsed}</>',
        f'<lk>{{extra[{ExtraField.CHAIN_START_TIME}]:<18}}</>',
    )
)


class InterceptHandler(logging.Handler):
    """Forward stdlib `logging` records into loguru, keeping the original caller frame."""

    def __init__(self, bound_logger: 'LoguruLogger') -> None:
        super().__init__()
        self._bound_logger = bound_logger

    def emit(self, record: logging.LogRecord) -> None:
        if record.levelno < logging.WARNING and record.name.startswith(_QUIET_LOGGERS):
            return

        try:
            level: str | int = loguru_logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back  # type: ignore
            depth += 1

        self._bound_logger.opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )


def _log_file_path() -> str:
    hour = datetime.now(timezone.utc).strftime('%Y-%m-%d_%H')
    prefix = 'test_' if LOG_DIR.name == 'test_log' else ''
    return str(LOG_DIR / f'{prefix}{hour}.log')


def _configure() -> 'LoguruLogger':
    loguru_logger.remove()
    bound = loguru_logger.bind(**_default_extra())
    level = settings.EFFECTIVE_LOG_LEVEL

    if settings.LOG_JSON:
        bound.add(sys.stdout, serialize=True, level=level, enqueue=True)
    else:
        bound.add(sys.stdout, format=io_log_format, level=level, enqueue=True)

    if settings.EFFECTIVE_LOG_TO_FILE:
        bound.add(
            _log_file_path(),
            format=io_log_format,
            rotation='1 hour',
            retention='7 days',
            compression='gz',
            enqueue=True,
            level=level,
        )

    logging.basicConfig(handlers=[InterceptHandler(bound)], level=0, force=True)
    return bound


custom_logger = _configure()
