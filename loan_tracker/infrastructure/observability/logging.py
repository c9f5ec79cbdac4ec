"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict
from pythonjsonlogger import jsonlogger


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def __init__(self, *args: Any, service: str = "loan-tracker", **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.service = service

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = self.service


def setup_logging(level: str = "INFO", service: str = "loan-tracker") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s",
        service=service,
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_transition(
    request_id: str,
    installment_number: int,
    paid: bool,
    is_final_payoff: bool,
) -> None:
    """Log an applied pay/unpay"""
    logging.info(
        "Installment transition applied",
        extra={
            "request_id": request_id,
            "step": "transition_applied",
            "installment_number": installment_number,
            "direction": "pay" if paid else "unpay",
            "is_final_payoff": is_final_payoff,
        },
    )


def log_pin_attempt(request_id: str, outcome: str) -> None:
    """Log a PIN verification outcome; the candidate itself is never logged"""
    level = logging.INFO if outcome == "authenticated" else logging.WARNING
    logging.log(
        level,
        "PIN attempt resolved",
        extra={
            "request_id": request_id,
            "step": "pin_verdict",
            "outcome": outcome,
        },
    )
