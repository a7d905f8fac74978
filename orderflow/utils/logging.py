"""Structured logging configuration."""

import logging
import sys
from typing import Any

import structlog
from pythonjsonlogger.json import JsonFormatter

from orderflow.config import get_settings


def setup_logging() -> None:
    """Configure structured logging for the application."""
    settings = get_settings()

    # Configure standard library logging
    log_level = getattr(logging, settings.log_level)

    if settings.log_format == "json":
        # JSON logging for production
        handler = logging.StreamHandler(sys.stdout)
        formatter = JsonFormatter(
            fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
            rename_fields={"levelname": "level", "asctime": "timestamp"},
        )
        handler.setFormatter(formatter)
    else:
        # Human-readable logging for development
        handler = logging.StreamHandler(sys.stdout)
        formatter = logging.Formatter(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        handler.setFormatter(formatter)

    # Configure root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    # Configure structlog
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.JSONRenderer() if settings.log_format == "json"
            else structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)


class OrderAuditLogger:
    """Audit trail for order lifecycle events, one instance per service."""

    def __init__(self, component: str):
        self.component = component
        self.logger = get_logger(component)

    def log_transition(
        self,
        order_id: int,
        from_status: str,
        to_status: str,
        actor_id: int,
        role: str,
        **kwargs: Any,
    ) -> None:
        """Log an accepted status transition."""
        self.logger.info(
            "order_transition",
            component=self.component,
            order_id=order_id,
            from_status=from_status,
            to_status=to_status,
            actor_id=actor_id,
            role=role,
            **kwargs,
        )

    def log_assignment(
        self,
        order_id: int,
        courier_id: int | None,
        action: str,
        actor_id: int,
        **kwargs: Any,
    ) -> None:
        """Log a courier assignment change (assign, unassign, accept, reject)."""
        self.logger.info(
            "courier_assignment",
            component=self.component,
            order_id=order_id,
            courier_id=courier_id,
            action=action,
            actor_id=actor_id,
            **kwargs,
        )

    def log_rating(
        self,
        order_id: int,
        target: str,
        rating: int,
        actor_id: int,
        **kwargs: Any,
    ) -> None:
        """Log a recorded rating."""
        self.logger.info(
            "rating_recorded",
            component=self.component,
            order_id=order_id,
            target=target,
            rating=rating,
            actor_id=actor_id,
            **kwargs,
        )

    def log_favorite(
        self,
        customer_id: int,
        order_id: int,
        action: str,
        changed: bool,
    ) -> None:
        """Log a favorite toggle; ``changed`` is False for idempotent no-ops."""
        self.logger.info(
            "favorite_changed",
            component=self.component,
            customer_id=customer_id,
            order_id=order_id,
            action=action,
            changed=changed,
        )

    def log_error(
        self,
        error: str,
        kind: str,
        **kwargs: Any,
    ) -> None:
        """Log a rejected operation."""
        self.logger.warning(
            "domain_error",
            component=self.component,
            kind=kind,
            error=error,
            **kwargs,
        )
