import logging
import sys
from typing import Any, Dict, Optional

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(sys.stdout)
    ]
)

logger = logging.getLogger("marketplace")


_SENSITIVE_KEYS = (
    "apiKey", "apiSecret", "credentials", "password",
    "access_token", "refresh_token", "authorization",
)


def redact(data: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Return a copy of ``data`` that is safe to log.

    Secret values are masked entirely; credentials must never reach the logs,
    not even partially.
    """
    if not data:
        return {}

    sanitized = dict(data)
    for key in _SENSITIVE_KEYS:
        if sanitized.get(key):
            sanitized[key] = "***"
    return sanitized
