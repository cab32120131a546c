"""
Logging setup and in-process metrics for the analysis engine
"""
import logging
import os
from datetime import datetime
from threading import Lock
from typing import Any, Dict, List

from config import config


# Configure logging with multiple handlers
def setup_logging(log_level: str = None, log_dir: str = None):
    """Setup console logging, plus detailed file logs when a directory is given"""
    log_level = (log_level or config.log_level).upper()

    detailed_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
    )
    simple_formatter = logging.Formatter(config.log_format)

    # Root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level, logging.INFO))

    # Clear existing handlers
    root_logger.handlers.clear()

    # Console handler
    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(simple_formatter)
    root_logger.addHandler(console_handler)

    if log_dir:
        if not os.path.exists(log_dir):
            os.makedirs(log_dir)

        # File handler for all logs
        file_handler = logging.FileHandler(
            os.path.join(log_dir, 'analyzer.log'),
            encoding='utf-8'
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(detailed_formatter)
        root_logger.addHandler(file_handler)

        # Error log handler
        error_handler = logging.FileHandler(
            os.path.join(log_dir, 'errors.log'),
            encoding='utf-8'
        )
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(detailed_formatter)
        root_logger.addHandler(error_handler)

    return root_logger


class MetricsCollector:
    """Thread-safe counters for analyses run and probes that soft-failed"""

    def __init__(self, history_size: int = 100):
        self.metrics_lock = Lock()
        self.history_size = history_size
        self.started_at = datetime.now()

        # Metrics counters
        self.analyses_completed = 0
        self.analyses_failed = 0
        self.soft_failures = 0
        self.soft_failures_by_probe: Dict[str, int] = {}
        self.durations: List[float] = []

    def record_analysis(self, duration: float, success: bool = True):
        with self.metrics_lock:
            if success:
                self.analyses_completed += 1
            else:
                self.analyses_failed += 1
            self.durations.append(duration)
            self.durations = self.durations[-self.history_size:]

    def record_soft_failure(self, label: str, error: Exception = None):
        """Failure callback handed to the probes"""
        with self.metrics_lock:
            self.soft_failures += 1
            self.soft_failures_by_probe[label] = self.soft_failures_by_probe.get(label, 0) + 1

    def snapshot(self) -> Dict[str, Any]:
        with self.metrics_lock:
            total = self.analyses_completed + self.analyses_failed
            avg_duration = sum(self.durations) / len(self.durations) if self.durations else 0.0
            return {
                'uptime_seconds': round((datetime.now() - self.started_at).total_seconds(), 1),
                'analyses_completed': self.analyses_completed,
                'analyses_failed': self.analyses_failed,
                'success_rate': round(self.analyses_completed / total * 100, 1) if total else 0.0,
                'avg_duration': round(avg_duration, 2),
                'soft_failures': self.soft_failures,
                'soft_failures_by_probe': dict(self.soft_failures_by_probe),
            }


# Global metrics collector
metrics_collector = MetricsCollector()
