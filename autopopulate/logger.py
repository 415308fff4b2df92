"""
Structured logging system for autopopulate.

Provides centralized logging with console and file outputs, and
metrics tracking for default resolution runs.
"""

import logging
import sys
from pathlib import Path
from typing import Optional
from datetime import datetime
import json


class StructuredLogger:
    """
    Centralized logger with support for console and file outputs.
    Tracks metrics for monitoring default resolution.
    """

    def __init__(
        self,
        name: str = "autopopulate",
        level: str = "INFO",
        log_dir: Optional[Path] = None,
        enable_file: bool = True,
        enable_console: bool = True,
    ):
        """
        Initialize the structured logger.

        Args:
            name: Logger name
            level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            log_dir: Directory for log files (default: logs/)
            enable_file: Write logs to file
            enable_console: Output logs to console
        """
        self.logger = logging.getLogger(name)
        self.logger.setLevel(getattr(logging, level.upper()))
        self.logger.handlers.clear()  # Remove existing handlers

        self.metrics = self._empty_metrics()

        # Console handler
        if enable_console:
            console_handler = logging.StreamHandler(sys.stderr)
            console_handler.setLevel(getattr(logging, level.upper()))
            console_formatter = logging.Formatter(
                fmt='%(asctime)s | %(levelname)-8s | %(name)s | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            console_handler.setFormatter(console_formatter)
            self.logger.addHandler(console_handler)

        # File handler
        if enable_file:
            if log_dir is None:
                log_dir = Path("logs")
            log_dir.mkdir(parents=True, exist_ok=True)

            log_file = log_dir / f"autopopulate_{datetime.now().strftime('%Y%m%d')}.log"
            file_handler = logging.FileHandler(log_file, encoding='utf-8')
            file_handler.setLevel(logging.DEBUG)  # Always log everything to file
            file_formatter = logging.Formatter(
                fmt='%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            file_handler.setFormatter(file_formatter)
            self.logger.addHandler(file_handler)

    @staticmethod
    def _empty_metrics() -> dict:
        return {
            "pipeline_runs": 0,
            "fields_scanned": 0,
            "candidates_evaluated": 0,
            "candidates_discarded": 0,
            "defaults_resolved": 0,
            "discards_by_reason": {},
            "resolutions_by_tag": {},
        }

    def debug(self, message: str, **kwargs):
        """Log debug message with optional context."""
        self._log(logging.DEBUG, message, kwargs)

    def info(self, message: str, **kwargs):
        """Log info message with optional context."""
        self._log(logging.INFO, message, kwargs)

    def warning(self, message: str, **kwargs):
        """Log warning message with optional context."""
        self._log(logging.WARNING, message, kwargs)

    def error(self, message: str, **kwargs):
        """Log error message with optional context."""
        self._log(logging.ERROR, message, kwargs)

    def critical(self, message: str, **kwargs):
        """Log critical message with optional context."""
        self._log(logging.CRITICAL, message, kwargs)

    def _log(self, level: int, message: str, context: dict):
        """Internal logging method with context."""
        if context:
            message = f"{message} | Context: {json.dumps(context, default=str)}"
        self.logger.log(level, message)

    # Metric tracking methods

    def record_pipeline_run(self):
        self.metrics["pipeline_runs"] += 1

    def record_field_scanned(self):
        self.metrics["fields_scanned"] += 1

    def record_candidate(self):
        self.metrics["candidates_evaluated"] += 1

    def record_discard(self, reason: str):
        """Record a discarded candidate and why."""
        self.metrics["candidates_discarded"] += 1
        by_reason = self.metrics["discards_by_reason"]
        by_reason[reason] = by_reason.get(reason, 0) + 1

    def record_resolution(self, tag_name: str):
        """Record an accepted default and the tag family that produced it."""
        self.metrics["defaults_resolved"] += 1
        by_tag = self.metrics["resolutions_by_tag"]
        by_tag[tag_name] = by_tag.get(tag_name, 0) + 1

    def get_metrics(self) -> dict:
        """Return current metrics."""
        metrics_copy = self.metrics.copy()
        scanned = metrics_copy["fields_scanned"]
        metrics_copy["resolution_rate"] = (
            round(metrics_copy["defaults_resolved"] / scanned, 3) if scanned else 0.0
        )
        return metrics_copy

    def log_metrics_summary(self):
        """Log a summary of current metrics."""
        metrics = self.get_metrics()

        self.info("=== Default Resolution Metrics ===")
        self.info(f"Pipeline runs: {metrics['pipeline_runs']}")
        self.info(
            f"Fields: {metrics['defaults_resolved']}/{metrics['fields_scanned']} "
            f"resolved ({metrics['resolution_rate'] * 100:.1f}%)"
        )
        self.info(
            f"Candidates: {metrics['candidates_evaluated']} evaluated, "
            f"{metrics['candidates_discarded']} discarded"
        )

        if metrics["resolutions_by_tag"]:
            self.info("Resolutions by tag:")
            for tag, count in metrics["resolutions_by_tag"].items():
                self.info(f"  {tag}: {count}")

        if metrics["discards_by_reason"]:
            self.info("Discard reasons:")
            for reason, count in metrics["discards_by_reason"].items():
                self.info(f"  {reason}: {count}")


# Global logger instance
_global_logger: Optional[StructuredLogger] = None


def get_logger(
    name: str = "autopopulate",
    level: Optional[str] = None,
    **kwargs
) -> StructuredLogger:
    """
    Get or create the global logger instance.

    Settings not passed explicitly come from the environment
    (see env.get_settings).

    Args:
        name: Logger name
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        **kwargs: Additional arguments passed to StructuredLogger

    Returns:
        StructuredLogger instance
    """
    global _global_logger

    if _global_logger is None:
        from .env import get_settings

        settings = get_settings()
        kwargs.setdefault("log_dir", settings.log_dir)
        kwargs.setdefault("enable_file", settings.log_to_file)
        _global_logger = StructuredLogger(name=name, level=level or settings.log_level, **kwargs)

    return _global_logger


def reset_logger():
    """Reset the global logger (useful for testing)."""
    global _global_logger
    _global_logger = None
