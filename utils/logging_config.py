"""
Centralized Logging Configuration

Provides production-ready logging with:
- Configurable log levels
- Daily log rotation with environment-specific retention
- Secret masking so tokens and customer contact data never reach disk
"""

import logging
import logging.handlers
import re
from pathlib import Path
from typing import Pattern

import config

# Loggers that are too chatty at INFO for request logs
QUIET_LOGGERS = ("sqlalchemy.engine", "sqlalchemy.pool", "aiosqlite")


class SecretMaskingFilter(logging.Filter):
    """
    Logging filter that masks sensitive data in log records.

    Masks:
    - Bearer tokens and raw JWTs
    - Secrets and passwords in key=value form
    - Email addresses and phone numbers of customers
    """

    PATTERNS: list[tuple[Pattern, str]] = [
        # Authorization headers
        (re.compile(r'(Bearer\s+)([A-Za-z0-9_\-\.]+)', re.IGNORECASE), r'\1[REDACTED_BEARER_TOKEN]'),

        # Bare JWTs (header.payload.signature)
        (re.compile(r'\beyJ[A-Za-z0-9_\-]+\.[A-Za-z0-9_\-]+\.[A-Za-z0-9_\-]+'), '[REDACTED_JWT]'),

        # Secrets and tokens in key=value form
        (re.compile(r'((?:secret|token)["\']?\s*[:=]\s*["\']?)([A-Za-z0-9_\-:\.]{16,})(["\']?)', re.IGNORECASE),
         r'\1[REDACTED_SECRET]\3'),

        # Passwords
        (re.compile(r'(password["\']?\s*[:=]\s*["\']?)([^\s"\']+)(["\']?)', re.IGNORECASE), r'\1[REDACTED_PASSWORD]\3'),

        # Email addresses (PII)
        (re.compile(r'\b([a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,})\b'), '[REDACTED_EMAIL]'),

        # Phone numbers: +91 98765 43210, 9876543210, (987) 654-3210
        (re.compile(r'(?<![\w-])(\+?\d{1,3}[-.\s]?)?\(?\d{3,5}\)?[-.\s]?\d{3,5}[-.\s]?\d{4}\b'), '[REDACTED_PHONE]'),
    ]

    def mask(self, text: str) -> str:
        for pattern, replacement in self.PATTERNS:
            text = pattern.sub(replacement, text)
        return text

    def filter(self, record: logging.LogRecord) -> bool:
        """
        Mask secrets in the message and its arguments.

        Returns:
            True (always - records are modified, never dropped)
        """
        if record.msg:
            record.msg = self.mask(str(record.msg))

        if record.args:
            if isinstance(record.args, dict):
                record.args = {k: self.mask(v) if isinstance(v, str) else v for k, v in record.args.items()}
            else:
                record.args = tuple(self.mask(arg) if isinstance(arg, str) else arg for arg in record.args)

        return True


def setup_logging(log_dir: str | Path | None = None):
    """
    Initialize centralized logging configuration.

    Call once at application startup (run.py).

    Configuration:
    - Log level from config.LOG_LEVEL (DEBUG, INFO, WARNING, ERROR)
    - Rotation every midnight, config.LOG_RETENTION_DAYS backups kept
    - Masks secrets if config.LOG_MASK_SECRETS is True
    - Writes to <LOG_DIR>/expresskart.log
    """
    log_dir = Path(log_dir or config.LOG_DIR)
    log_dir.mkdir(parents=True, exist_ok=True)

    log_level_str = config.LOG_LEVEL
    log_level = getattr(logging, log_level_str.upper(), logging.INFO)
    retention_days = config.LOG_RETENTION_DAYS
    mask_secrets = config.LOG_MASK_SECRETS

    formatter = logging.Formatter(
        fmt='%(asctime)s | %(name)-25s | %(levelname)-8s | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    file_handler = logging.handlers.TimedRotatingFileHandler(
        filename=log_dir / "expresskart.log",
        when="midnight",
        interval=1,
        backupCount=retention_days,
        encoding="utf-8"
    )
    file_handler.setFormatter(formatter)
    file_handler.setLevel(log_level)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    console_handler.setLevel(log_level)

    if mask_secrets:
        file_handler.addFilter(SecretMaskingFilter())
        console_handler.addFilter(SecretMaskingFilter())

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Remove existing handlers to avoid duplicates
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.info("=" * 80)
    logging.info(f"Logging initialized: Level={log_level_str}, Retention={retention_days} days, "
                 f"Masking={'ENABLED' if mask_secrets else 'DISABLED'}")
    logging.info("=" * 80)
