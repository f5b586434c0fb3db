"""
Ledger Event Logger

Every snapshot-changing operation and every rejection is written to a
structured local log. This gives:
1. Traceability of what an operation changed
2. Debugging capability when an aggregate looks wrong

The logger never raises into the caller and never persists anything.
"""

import logging
from typing import Optional

import structlog

from financas.config import LedgerSettings, get_settings
from financas.models.events import LedgerEvent, LedgerEventBuilder


LOGGER_NAME = "financas"


def configure_logging(settings: Optional[LedgerSettings] = None) -> None:
    """
    Configure structlog on top of the stdlib logging module.

    Only the "financas" logger gets a level. Handlers and the root logger
    belong to the host application.
    """
    settings = settings or get_settings()

    logging.getLogger(LOGGER_NAME).setLevel(getattr(logging, settings.log_level))

    renderer = (
        structlog.processors.JSONRenderer()
        if settings.log_json
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


configure_logging()


class LedgerEventLogger:
    """
    Central event logging service.

    Routes each LedgerEvent to the structured log at its severity.
    """

    def __init__(self, name: str = LOGGER_NAME):
        self._logger = structlog.get_logger(name)

    def log(self, event: LedgerEvent) -> None:
        """Log a ledger event."""
        log_dict = event.to_log_dict()
        severity = event.severity.value

        if severity == "error":
            self._logger.error("ledger_event", **log_dict)
        elif severity == "warning":
            self._logger.warning("ledger_event", **log_dict)
        elif severity == "debug":
            self._logger.debug("ledger_event", **log_dict)
        else:
            self._logger.info("ledger_event", **log_dict)

    def log_validation_failed(self, subject: str, issues: list[dict]) -> None:
        self.log(LedgerEventBuilder.validation_failed(subject, issues))

    def log_referential_gap(
        self,
        entity_type: str,
        entity_id: str,
        operation: str,
    ) -> None:
        self.log(LedgerEventBuilder.referential_gap(entity_type, entity_id, operation))
