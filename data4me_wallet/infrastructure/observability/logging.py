"""Structured JSON logging for production observability"""

import logging
import sys
from typing import Any, Dict
from pythonjsonlogger import jsonlogger

from data4me_wallet.utils.date_utils import utcnow

# Library loggers that are too chatty at INFO
QUIET_LOGGERS = ("uvicorn.access", "httpx", "httpcore", "sqlalchemy.engine")


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """JSON lines carrying timestamp, level and the emitting service"""

    def __init__(self, *args, service_name: str = "data4me-wallet", **kwargs):
        super().__init__(*args, **kwargs)
        self.service_name = service_name

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = utcnow().isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = self.service_name


def setup_logging(level: str = "INFO", service_name: str = "data4me-wallet") -> None:
    """Send every log record to stdout as one JSON object per line"""
    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(CustomJsonFormatter("%(name)s %(message)s", service_name=service_name))
    root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def log_ledger_entry(
    user_id: str,
    transaction_id: str,
    transaction_type: str,
    amount: str,
    balance_after: str,
) -> None:
    """Log every applied balance mutation for the audit trail"""
    logging.info(
        "Ledger entry applied",
        extra={
            "user_id": user_id,
            "transaction_id": transaction_id,
            "step": "ledger_entry",
            "transaction_type": transaction_type,
            "amount": amount,
            "balance_after": balance_after,
        },
    )


def log_funding_transition(request_id: str, user_id: str, status: str, admin_id: str | None = None) -> None:
    """Log funding request lifecycle changes"""
    logging.info(
        "Funding request updated",
        extra={
            "funding_request_id": request_id,
            "user_id": user_id,
            "step": "funding_transition",
            "status": status,
            "admin_id": admin_id,
        },
    )


def log_reconciliation_finding(user_id: str, kind: str, detail: str, transaction_id: str | None = None) -> None:
    """Inconsistencies are never silently accepted: they are logged at ERROR"""
    logging.error(
        "Ledger inconsistency detected",
        extra={
            "user_id": user_id,
            "step": "reconciliation",
            "finding": kind,
            "detail": detail,
            "transaction_id": transaction_id,
        },
    )
