"""
Logging configuration for the SMS SDK

The library itself only creates module loggers. ``setup_logging`` is for
applications and the CLI that want a ready-made handler; it sets up plain
text logging to stdout or to a rotating file.
"""

import logging
import logging.handlers
import os
import sys
from datetime import datetime, timezone


def setup_logging(log_level=None, log_file=None, max_bytes=10*1024*1024, backup_count=5):
    """
    Set up logging for an application using the SMS SDK.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Path to log file (if None, logs to stdout)
        max_bytes: Maximum size of log file before rotation (default 10MB)
        backup_count: Number of backup log files to keep (default 5)
    """

    # Default log level from environment or WARNING
    if log_level is None:
        log_level = os.environ.get('LOG_LEVEL', 'WARNING')
    log_level = log_level.upper()

    # Default log file from environment
    if log_file is None:
        log_file = os.environ.get('LOG_FILE')

    formatter = logging.Formatter(
        fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    level = getattr(logging, log_level, None)
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {log_level}")

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Clear any existing handlers
    root_logger.handlers.clear()

    if log_file:
        handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=max_bytes,
            backupCount=backup_count
        )
    else:
        handler = logging.StreamHandler(sys.stdout)

    handler.setFormatter(formatter)
    root_logger.addHandler(handler)

    logger = logging.getLogger(__name__)
    logger.debug(f"Logging initialized - Level: {log_level}, Output: {log_file or 'stdout'}")

    return logger


def _format_fields(log_data):
    # key=value pairs for easy parsing
    return ' '.join([f"{k}={v}" for k, v in log_data.items()])


def log_security_event(event_type, details, client_ip=None):
    """
    Log a webhook authentication event.

    Args:
        event_type: Type of security event (e.g., 'webhook_rejected')
        details: Additional details about the event
        client_ip: Address the webhook came from
    """
    logger = logging.getLogger('sms_sdk.security')

    log_data = {
        'event_type': event_type,
        'details': details,
        'timestamp': datetime.now(timezone.utc).isoformat(),
    }
    if client_ip:
        log_data['client_ip'] = client_ip

    logger.warning(f"SECURITY: {_format_fields(log_data)}")


def log_sms_event(event_type, message_id=None, status=None, success=True, error=None):
    """
    Log the outcome of an API call.

    Args:
        event_type: e.g. 'sms_send', 'verification_send', 'verification_check'
        message_id: Id returned by the API
        status: Status returned by the API
        success: Whether the operation was successful
        error: Error message if applicable
    """
    logger = logging.getLogger('sms_sdk.events')

    log_data = {
        'event_type': event_type,
        'success': success,
        'timestamp': datetime.now(timezone.utc).isoformat(),
    }
    if message_id:
        log_data['message_id'] = message_id
    if status:
        log_data['status'] = status
    if error:
        log_data['error'] = error

    if success:
        logger.info(f"SMS: {_format_fields(log_data)}")
    else:
        logger.error(f"SMS: {_format_fields(log_data)}")
