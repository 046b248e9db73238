# storefront/utils/logging.py
import logging
import re

from storefront.utils.settings import LOG_LEVEL

_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


class SecretMaskingFilter(logging.Filter):
    """Masks bearer tokens, gateway signatures and secrets in log records."""

    PATTERNS = [
        (re.compile(r"(Bearer\s+)([A-Za-z0-9_\-\.]+)", re.IGNORECASE), r"\1[REDACTED]"),
        (re.compile(r"(signature[\"']?\s*[:=]\s*[\"']?)([A-Fa-f0-9]{16,})", re.IGNORECASE), r"\1[REDACTED]"),
        (re.compile(r"(secret[\"']?\s*[:=]\s*[\"']?)([^\s\"',]+)", re.IGNORECASE), r"\1[REDACTED]"),
        (re.compile(r"(password[\"']?\s*[:=]\s*[\"']?)([^\s\"',]+)", re.IGNORECASE), r"\1[REDACTED]"),
    ]

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        for pattern, replacement in self.PATTERNS:
            message = pattern.sub(replacement, message)
        record.msg = message
        record.args = None
        return True


_handler = logging.StreamHandler()
_handler.setFormatter(logging.Formatter(_FORMAT))
_handler.addFilter(SecretMaskingFilter())


def get_logger(name: str) -> logging.Logger:
    logger = logging.getLogger(name)
    if not logger.handlers:
        logger.addHandler(_handler)
        logger.setLevel(LOG_LEVEL)
        logger.propagate = False
    return logger
