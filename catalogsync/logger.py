"""
Structured logging for catalogsync.

Provides centralized logging with console and file outputs, plus
metrics tracking for discovery runs and normalization jobs.
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
    Tracks metrics for monitoring pipeline throughput and failures.
    """

    def __init__(
        self,
        name: str = "catalogsync",
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
        self.logger.handlers.clear()

        self.metrics = {
            "titles_found": 0,
            "batches_submitted": 0,
            "jobs_enqueued": 0,
            "normalizations_attempted": 0,
            "normalizations_successful": 0,
            "normalizations_failed": 0,
            "errors_by_type": {},
            "documents_by_status": {},
        }

        if enable_console:
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setLevel(getattr(logging, level.upper()))
            console_formatter = logging.Formatter(
                fmt='%(asctime)s | %(levelname)-8s | %(name)s | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            console_handler.setFormatter(console_formatter)
            self.logger.addHandler(console_handler)

        if enable_file:
            if log_dir is None:
                log_dir = Path("logs")
            log_dir.mkdir(parents=True, exist_ok=True)

            log_file = log_dir / f"catalogsync_{datetime.now().strftime('%Y%m%d')}.log"
            file_handler = logging.FileHandler(log_file, encoding='utf-8')
            file_handler.setLevel(logging.DEBUG)  # Always log everything to file
            file_formatter = logging.Formatter(
                fmt='%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            file_handler.setFormatter(file_formatter)
            self.logger.addHandler(file_handler)

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
        if context:
            message = f"{message} | Context: {json.dumps(context, default=str)}"
        self.logger.log(level, message)

    # Metric tracking methods

    def record_page(self, titles: int, enqueued: int):
        """Record one discovery page submitted as a batch."""
        self.metrics["titles_found"] += titles
        self.metrics["batches_submitted"] += 1
        self.metrics["jobs_enqueued"] += enqueued

    def record_normalization_attempt(self):
        self.metrics["normalizations_attempted"] += 1

    def record_normalization_success(self, status: str):
        """Record a stored document and its upsert status (new, updated, no-change)."""
        self.metrics["normalizations_successful"] += 1
        by_status = self.metrics["documents_by_status"]
        by_status[status] = by_status.get(status, 0) + 1

    def record_normalization_failure(self, error_type: str):
        self.metrics["normalizations_failed"] += 1
        errors = self.metrics["errors_by_type"]
        errors[error_type] = errors.get(error_type, 0) + 1

    def get_metrics(self) -> dict:
        """Return current metrics with the derived success rate."""
        metrics_copy = self.metrics.copy()
        attempts = metrics_copy["normalizations_attempted"]
        if attempts > 0:
            metrics_copy["success_rate"] = round(
                metrics_copy["normalizations_successful"] / attempts, 3
            )
        return metrics_copy

    def log_metrics_summary(self):
        """Log a summary of current metrics."""
        metrics = self.get_metrics()

        self.info("=== Catalog Sync Metrics ===")
        self.info(
            f"Discovery: {metrics['titles_found']} titles in "
            f"{metrics['batches_submitted']} batches ({metrics['jobs_enqueued']} enqueued)"
        )

        attempts = metrics["normalizations_attempted"]
        if attempts > 0:
            rate = metrics["success_rate"] * 100
            self.info(
                f"Normalization: {metrics['normalizations_successful']}/{attempts} "
                f"({rate:.1f}% success)"
            )

        if metrics["documents_by_status"]:
            self.info("Documents:")
            for status, count in metrics["documents_by_status"].items():
                self.info(f"  {status}: {count}")

        if metrics["errors_by_type"]:
            self.info("Error Types:")
            for error_type, count in metrics["errors_by_type"].items():
                self.info(f"  {error_type}: {count}")


# Global logger instance
_global_logger: Optional[StructuredLogger] = None


def get_logger(
    name: str = "catalogsync",
    level: str = "INFO",
    **kwargs
) -> StructuredLogger:
    """
    Get or create the global logger instance.

    Args:
        name: Logger name
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        **kwargs: Additional arguments passed to StructuredLogger

    Returns:
        StructuredLogger instance
    """
    global _global_logger

    if _global_logger is None:
        _global_logger = StructuredLogger(name=name, level=level, **kwargs)

    return _global_logger


def reset_logger():
    """Reset the global logger (useful for testing)."""
    global _global_logger
    _global_logger = None
