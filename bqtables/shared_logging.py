"""
Logging setup shared by every job that provisions or copies BigQuery tables.

Produces single-line JSON entries that Google Cloud Logging parses as one
record when running on Cloud Run, and a coloured human-readable format locally.
"""
import sys
import json
import traceback
import os
from typing import Any, Dict, Optional

from loguru import logger

DEFAULT_APP_NAME = "bq-table-manager"

# loguru level name -> Cloud Logging severity
SEVERITY_MAPPING = {
    "TRACE": "DEBUG",
    "DEBUG": "DEBUG",
    "INFO": "INFO",
    "SUCCESS": "INFO",
    "WARNING": "WARNING",
    "ERROR": "ERROR",
    "CRITICAL": "CRITICAL",
}


def create_structured_log(record: Dict[str, Any]) -> str:
    """
    Render a loguru record as a Cloud Logging JSON entry.

    Args:
        record: Loguru record dictionary

    Returns:
        JSON string for a single log entry
    """
    log_entry = {
        "timestamp": record["time"].isoformat(),
        "severity": SEVERITY_MAPPING.get(record["level"].name, "INFO"),
        "message": record["message"],
        "sourceLocation": {
            "file": record["file"].name,
            "line": record["line"],
            "function": record["function"]
        },
        "module": record["name"],
    }

    if record["exception"] is not None:
        exc_type, exc_value, exc_traceback = record["exception"]
        formatted = "".join(traceback.format_exception(exc_type, exc_value, exc_traceback))
        log_entry["exception"] = {
            "type": exc_type.__name__,
            "message": str(exc_value),
            "traceback": formatted,
        }
        log_entry["message"] = (
            f"{record['message']}\n\nException: {exc_type.__name__}: {exc_value}\nTraceback:\n{formatted}"
        )

    # table ids, job ids etc. passed as keyword arguments end up in extra
    if record["extra"]:
        log_entry["extra"] = record["extra"]

    return json.dumps(log_entry, default=str, ensure_ascii=False)


def _plain_line(record: Dict[str, Any]) -> str:
    return f"{record['time'].isoformat()} | {record['level'].name} | {record['message']}"


def setup_logging(
    level: str = "INFO",
    enable_json: Optional[bool] = None,
    log_file: Optional[str] = None,
    rotation: str = "1 day",
    retention: str = "30 days",
    app_name: Optional[str] = None
) -> None:
    """
    Configure loguru sinks for the application.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)
        enable_json: JSON output. If None, enabled when running on Cloud Run / GCP
        log_file: Optional log file path
        rotation: Log file rotation policy
        retention: Log file retention policy
        app_name: Application name attached to every entry
    """
    logger.remove()

    if enable_json is None:
        enable_json = is_cloud_run()

    if enable_json:
        def json_sink(message):
            record = message.record
            if app_name:
                record["extra"]["app_name"] = app_name
            try:
                line = create_structured_log(record)
            except (TypeError, ValueError):
                line = _plain_line(record)
            sys.stderr.write(line + "\n")
            sys.stderr.flush()

        logger.add(
            json_sink,
            level=level,
            backtrace=True,
            diagnose=True,
            enqueue=True,
            catch=True
        )
    else:
        format_str = "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level>"
        if app_name:
            format_str += f" | <cyan>{app_name}</cyan>"
        format_str += " | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"

        logger.add(
            sys.stderr,
            format=format_str,
            level=level,
            backtrace=True,
            diagnose=True,
            enqueue=True,
            catch=True
        )

    if log_file:
        if enable_json:
            def json_file_sink(message):
                record = message.record
                if app_name:
                    record["extra"]["app_name"] = app_name
                with open(log_file, "a") as f:
                    f.write(create_structured_log(record) + "\n")

            # rotation/retention only apply to path sinks in loguru
            logger.add(
                json_file_sink,
                level=level,
                backtrace=True,
                diagnose=True,
                enqueue=True
            )
        else:
            logger.add(
                log_file,
                format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} - {message}",
                level=level,
                rotation=rotation,
                retention=retention,
                backtrace=True,
                diagnose=True,
                enqueue=True
            )

    logger.debug(f"Logging configured: level={level}, json_format={enable_json}, file={log_file}, app_name={app_name}")


def log_exception(message: str, exception: Optional[Exception] = None, depth: int = 0, **kwargs) -> None:
    """
    Log an error together with the traceback of the exception being handled.

    Args:
        message: Error message
        exception: Exception to attach. Defaults to the one currently being handled
        depth: Stack frames to skip when recording the source location
        **kwargs: Additional context
    """
    if exception is not None:
        logger.opt(depth=depth + 1, exception=exception).error(message, **kwargs)
    else:
        logger.opt(depth=depth + 1, exception=True).error(message, **kwargs)


def log_with_context(message: str, level: str = "INFO", **kwargs) -> None:
    """
    Log a message with structured context at the given level name.

    Unknown level names are logged at INFO.
    """
    level = level.upper()
    if level not in SEVERITY_MAPPING:
        level = "INFO"
    logger.log(level, message, **kwargs)


def is_cloud_run() -> bool:
    """True when running on Cloud Run or with a GCP project in the environment."""
    return bool(os.environ.get("K_SERVICE") or os.environ.get("GOOGLE_CLOUD_PROJECT"))


def get_app_name() -> str:
    """Application name from the environment, falling back to the package default."""
    return os.environ.get("K_SERVICE") or os.environ.get("APP_NAME") or DEFAULT_APP_NAME
