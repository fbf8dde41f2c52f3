"""Logging setup with structured output and per-operation timing"""

import json
import logging
import logging.handlers
import threading
import time
from datetime import datetime
from functools import wraps
from pathlib import Path
from typing import Any, Dict, Optional

from .settings import Settings, get_settings

# LogRecord attributes that are not user-supplied ``extra`` fields
_RESERVED_ATTRS = {
    'name', 'msg', 'args', 'levelname', 'levelno', 'pathname',
    'filename', 'module', 'exc_info', 'exc_text', 'stack_info',
    'lineno', 'funcName', 'created', 'msecs', 'relativeCreated',
    'thread', 'threadName', 'processName', 'process', 'taskName',
    'getMessage', 'message', 'asctime'
}


class StructuredFormatter(logging.Formatter):
    """
    Formatter emitting one JSON object per record.

    Keys passed through ``extra=`` are collected under ``"extra"``.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            'timestamp': datetime.fromtimestamp(record.created).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno,
        }

        if record.exc_info:
            log_data['exception'] = {
                'type': record.exc_info[0].__name__,
                'message': str(record.exc_info[1]),
                'traceback': self.formatException(record.exc_info)
            }

        extra_fields = {
            key: value for key, value in record.__dict__.items()
            if key not in _RESERVED_ATTRS
        }
        if extra_fields:
            log_data['extra'] = extra_fields

        return json.dumps(log_data, default=str, ensure_ascii=False)


class PerformanceMetrics:
    """Aggregated call counts and durations per named operation"""

    def __init__(self):
        self._metrics: Dict[str, Dict[str, Any]] = {}
        self._lock = threading.Lock()

    def record_operation(self, operation: str, duration: float, success: bool = True):
        with self._lock:
            metrics = self._metrics.setdefault(operation, {
                'total_calls': 0,
                'successful_calls': 0,
                'failed_calls': 0,
                'total_duration': 0.0,
                'min_duration': float('inf'),
                'max_duration': 0.0,
                'last_call': None
            })
            metrics['total_calls'] += 1
            metrics['total_duration'] += duration
            metrics['min_duration'] = min(metrics['min_duration'], duration)
            metrics['max_duration'] = max(metrics['max_duration'], duration)
            metrics['last_call'] = datetime.now().isoformat()
            if success:
                metrics['successful_calls'] += 1
            else:
                metrics['failed_calls'] += 1

    def get_metrics(self, operation: Optional[str] = None) -> Dict[str, Any]:
        """Return a snapshot with averages, for one operation or all of them"""
        with self._lock:
            if operation:
                metrics = self._metrics.get(operation)
                return self._with_averages(metrics) if metrics else {}
            return {op: self._with_averages(m) for op, m in self._metrics.items()}

    @staticmethod
    def _with_averages(metrics: Dict[str, Any]) -> Dict[str, Any]:
        snapshot = metrics.copy()
        calls = snapshot['total_calls']
        snapshot['avg_duration'] = snapshot['total_duration'] / calls
        snapshot['success_rate'] = snapshot['successful_calls'] / calls
        return snapshot

    def reset(self, operation: Optional[str] = None):
        with self._lock:
            if operation:
                self._metrics.pop(operation, None)
            else:
                self._metrics.clear()


# Global performance metrics instance
performance_metrics = PerformanceMetrics()


class LoggingManager:
    """
    Centralized logging configuration.

    Console output is human-readable in development and JSON in production;
    ``application.log`` and ``errors.log`` rotate under ``settings.log_dir``.
    """

    def __init__(self):
        self.configured = False

    def setup_logging(self, settings: Optional[Settings] = None):
        """Configure the root logger once per process"""
        if self.configured:
            return

        settings = settings or get_settings()
        level = getattr(logging, settings.log_level)

        log_dir = Path(settings.log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)

        root_logger = logging.getLogger()
        root_logger.setLevel(level)
        for handler in root_logger.handlers[:]:
            root_logger.removeHandler(handler)

        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        if settings.is_production:
            console_handler.setFormatter(StructuredFormatter())
        else:
            console_handler.setFormatter(
                logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
            )
        root_logger.addHandler(console_handler)

        file_handler = logging.handlers.RotatingFileHandler(
            log_dir / "application.log",
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5
        )
        file_handler.setLevel(logging.INFO)
        file_handler.setFormatter(StructuredFormatter())
        root_logger.addHandler(file_handler)

        error_handler = logging.handlers.RotatingFileHandler(
            log_dir / "errors.log",
            maxBytes=5 * 1024 * 1024,  # 5MB
            backupCount=3
        )
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(StructuredFormatter())
        root_logger.addHandler(error_handler)

        # httpx logs every request URL at INFO, and those URLs carry the API key
        logging.getLogger("httpx").setLevel(logging.WARNING)

        self.configured = True

        logging.getLogger(__name__).info(
            "Logging system initialized",
            extra={
                'environment': settings.environment,
                'log_level': settings.log_level,
                'structured_logging': settings.is_production
            }
        )

    def get_logger(self, name: str) -> logging.Logger:
        if not self.configured:
            self.setup_logging()
        return logging.getLogger(name)


# Global logging manager
logging_manager = LoggingManager()


def get_logger(name: str) -> logging.Logger:
    """Get a logger, configuring logging on first use"""
    return logging_manager.get_logger(name)


def setup_logging(settings: Optional[Settings] = None):
    """Initialize the logging system"""
    logging_manager.setup_logging(settings)


def log_performance(operation: str):
    """
    Decorator logging start, finish and duration of a function call.

    Works for both plain and ``async`` functions; timings are recorded in
    ``performance_metrics`` under ``operation``.
    """
    def decorator(func):
        logger = logging.getLogger(func.__module__)

        def _finish(start_time: float, success: bool):
            duration = time.time() - start_time
            performance_metrics.record_operation(operation, duration, success)
            logger.info(
                f"Completed {operation}",
                extra={'operation': operation, 'duration': duration, 'success': success}
            )

        def _failed(error: Exception):
            logger.error(
                f"Operation {operation} failed: {error}",
                extra={'operation': operation, 'error_type': type(error).__name__}
            )

        @wraps(func)
        async def async_wrapper(*args, **kwargs):
            start_time = time.time()
            success = False
            logger.debug(f"Starting {operation}", extra={'operation': operation})
            try:
                result = await func(*args, **kwargs)
                success = True
                return result
            except Exception as e:
                _failed(e)
                raise
            finally:
                _finish(start_time, success)

        @wraps(func)
        def sync_wrapper(*args, **kwargs):
            start_time = time.time()
            success = False
            logger.debug(f"Starting {operation}", extra={'operation': operation})
            try:
                result = func(*args, **kwargs)
                success = True
                return result
            except Exception as e:
                _failed(e)
                raise
            finally:
                _finish(start_time, success)

        if hasattr(func, '__code__') and func.__code__.co_flags & 0x80:  # CO_COROUTINE
            return async_wrapper
        return sync_wrapper

    return decorator


def get_performance_metrics(operation: Optional[str] = None) -> Dict[str, Any]:
    """Get performance metrics"""
    return performance_metrics.get_metrics(operation)


def reset_performance_metrics(operation: Optional[str] = None):
    """Reset performance metrics"""
    performance_metrics.reset(operation)
