"""
Secret redaction for log output.

Secrets (database admin password, storage key) are registered once at
startup. Every log handler formats through RedactingFormatter, so a secret
never reaches the console or log file, including inside tracebacks.
"""

import logging
import threading
from typing import Iterable, Optional


REDACTED = '***'


class SecretRedactor:
    """
    Replaces registered secret values in arbitrary text.
    """

    def __init__(self, secrets: Optional[Iterable[str]] = None):
        self._secrets = set()
        self._lock = threading.Lock()
        if secrets:
            self.register(*secrets)

    def register(self, *secrets: str):
        """
        Register secret values to be masked.

        Empty values are ignored; masking an empty string would corrupt
        every message.
        """
        with self._lock:
            for secret in secrets:
                if secret:
                    self._secrets.add(str(secret))

    def clear(self):
        with self._lock:
            self._secrets.clear()

    def redact(self, text: str) -> str:
        if not text:
            return text
        with self._lock:
            # Longest first so a secret containing another is masked whole
            secrets = sorted(self._secrets, key=len, reverse=True)
        for secret in secrets:
            text = text.replace(secret, REDACTED)
        return text


class RedactingFormatter(logging.Formatter):
    """Formatter that masks registered secrets in the final output."""

    def __init__(self, fmt=None, datefmt=None, redactor: Optional[SecretRedactor] = None):
        super().__init__(fmt, datefmt)
        self.redactor = redactor or secret_redactor

    def format(self, record: logging.LogRecord) -> str:
        return self.redactor.redact(super().format(record))


# Process-wide redactor shared by all handlers
secret_redactor = SecretRedactor()
