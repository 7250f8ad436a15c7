"""
Logging utility functions and helpers.
"""

import logging
from typing import Any, Dict, Optional

SENSITIVE_FIELDS = {'password', 'token', 'secret', 'authorization'}


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a module.

    Usage:
        from utils.logger import get_logger
        logger = get_logger(__name__)
    """
    return logging.getLogger(name)


def _is_sensitive(key: str) -> bool:
    # refreshToken, refresh_token and Authorization all normalise to a match
    normalized = key.lower().replace("_", "")
    return any(field.replace("_", "") in normalized for field in SENSITIVE_FIELDS)


def sanitize_log_data(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Remove sensitive information from log data.

    Passwords and secrets are fully redacted. Tokens keep their first
    8 characters so a log line can still be matched to a request.
    """
    sanitized = data.copy()

    for key, value in sanitized.items():
        if _is_sensitive(key):
            if isinstance(value, str):
                if 'token' in key.lower() and len(value) > 8:
                    sanitized[key] = f"{value[:8]}..."
                else:
                    sanitized[key] = "***REDACTED***"

        elif isinstance(value, dict):
            sanitized[key] = sanitize_log_data(value)

    return sanitized


def log_request(
    logger: logging.Logger,
    method: str,
    path: str,
    status_code: int,
    duration_ms: float,
    client_ip: str = "unknown",
    extra: Optional[Dict[str, Any]] = None
):
    """
    Log one HTTP request; the level follows the status code.

    Usage:
        log_request(logger, "POST", "/api/v1/auth/login", 200, 45.2)
    """
    log_data = {
        "method": method,
        "path": path,
        "status_code": status_code,
        "duration_ms": round(duration_ms, 2),
        "client_ip": client_ip,
    }

    if extra:
        log_data.update(sanitize_log_data(extra))

    message = f'{client_ip} - "{method} {path} HTTP/1.1" {status_code}'
    if status_code >= 500:
        logger.error(message, extra=log_data)
    elif status_code >= 400:
        logger.warning(message, extra=log_data)
    else:
        logger.info(message, extra=log_data)
