"""
Structured logging configuration for Patient Records.

Provides consistent, structured logging with support for different
output formats and log levels based on environment.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor


def add_app_context(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Add application context to log entries."""
    event_dict["app"] = "patient-records"
    return event_dict


def setup_logging(
    log_level: str = "INFO",
    json_logs: bool = False,
    log_file: str | None = None,
) -> None:
    """
    Configure structured logging for the application.

    Args:
        log_level: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_logs: If True, output logs as JSON (for production)
        log_file: Optional file path for log output
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper(), logging.INFO),
    )

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        add_app_context,
    ]

    if json_logs:
        processors: list[Processor] = shared_processors + [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = shared_processors + [
            structlog.dev.ConsoleRenderer(colors=True),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(getattr(logging, log_level.upper(), logging.INFO))
        if json_logs:
            file_handler.setFormatter(logging.Formatter("%(message)s"))
        else:
            file_handler.setFormatter(
                logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
            )
        logging.getLogger().addHandler(file_handler)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog BoundLogger
    """
    return structlog.get_logger(name)


class AuditLogger:
    """
    Specialized logger for access to patient records.

    Entries carry identifiers only, never field values, so the audit
    stream itself holds no PHI.
    """

    def __init__(self):
        self.logger = get_logger("audit")

    def log_access(
        self,
        resource_type: str,
        resource_id: str,
        action: str,
        success: bool = True,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Log a read of a patient resource.

        Args:
            resource_type: Type of resource (e.g., "patient", "patient_history")
            resource_id: ID of the accessed resource
            action: Action performed (e.g., "VIEW", "SEARCH")
            success: Whether the action succeeded
            details: Additional details
        """
        self.logger.info(
            "resource_access",
            resource_type=resource_type,
            resource_id=resource_id,
            action=action,
            success=success,
            details=details or {},
            audit_type="access",
        )

    def log_registration(self, patient_id: str, patient_number: str) -> None:
        """Log creation of a new patient identity."""
        self.logger.info(
            "patient_registered",
            patient_id=patient_id,
            patient_number=patient_number,
            audit_type="registration",
        )

    def log_record_save(
        self,
        table: str,
        record_id: str,
        patient_id: str,
        operation: str,
        section: str | None = None,
        success: bool = True,
        error: str | None = None,
    ) -> None:
        """
        Log a persisted record write.

        Args:
            table: Table written to
            record_id: Row id (None-safe string for failed inserts)
            patient_id: Owning patient
            operation: "insert", "update" or "conflict_update"
            section: History section, when applicable
            success: Whether the write committed
            error: Driver message on failure
        """
        log_method = self.logger.info if success else self.logger.error
        log_method(
            "record_save",
            table=table,
            record_id=record_id,
            patient_id=patient_id,
            operation=operation,
            section=section,
            success=success,
            error=error,
            audit_type="write",
        )


# Global audit logger instance
audit_logger = AuditLogger()
