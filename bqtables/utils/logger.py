"""
Application logger used by the table helpers.

Thin wrapper over loguru: configures sinks once per process, picks JSON
output on Cloud Run and captures tracebacks automatically when error()
is called from inside an except block.
"""
import sys
import os
from typing import Optional
from loguru import logger as _loguru_logger

from bqtables.shared_logging import setup_logging, log_exception as _log_exception, get_app_name


def _is_deployment() -> bool:
    return bool(
        os.environ.get("K_SERVICE") or
        os.environ.get("GOOGLE_CLOUD_PROJECT") or
        os.environ.get("DEPLOYMENT_ENV", "").lower() in ["prod", "production", "staging"]
    )


class AppLogger:
    """
    Singleton loguru wrapper.

    - error() attaches the active exception's traceback when there is one
    - JSON output in deployment environments, human-readable locally
    """

    _instance = None
    _initialized = False

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if not self._initialized:
            setup_logging(
                level=os.environ.get("LOG_LEVEL", "INFO"),
                enable_json=_is_deployment(),
                app_name=get_app_name()
            )
            AppLogger._initialized = True

    @staticmethod
    def _is_in_exception_context() -> bool:
        return sys.exc_info()[0] is not None

    def debug(self, message: str, **kwargs) -> None:
        _loguru_logger.opt(depth=1).debug(message, **kwargs)

    def info(self, message: str, **kwargs) -> None:
        _loguru_logger.opt(depth=1).info(message, **kwargs)

    def warning(self, message: str, **kwargs) -> None:
        _loguru_logger.opt(depth=1).warning(message, **kwargs)

    def error(self, message: str, exception: Optional[Exception] = None, **kwargs) -> None:
        """
        Log an error message.

        Inside an except block (or when an exception is passed) the full
        stack trace is attached.

        Args:
            message: Error message
            exception: Optional exception object
            **kwargs: Additional context
        """
        if self._is_in_exception_context() or exception is not None:
            _log_exception(message, exception, depth=1, **kwargs)
        else:
            _loguru_logger.opt(depth=1).error(message, **kwargs)


logger = AppLogger()
