"""
Structured logging for vSphere clone operations.

Every record is written as one JSON object per line. Keyword arguments given
to the logging methods become top-level fields of that object. A keyword that
collides with a ``LogRecord`` attribute (``name``, ``module``, ``message``...)
is written as ``field_<key>`` instead, since stdlib logging refuses to let
``extra`` overwrite those attributes.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, FrozenSet, Mapping, Union

# Attributes of a LogRecord, plus those Formatter and newer Pythons add
RESERVED_FIELDS: FrozenSet[str] = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime", "taskName"}

RESERVED_PREFIX = "field_"

# Field values that must never reach the log stream
SENSITIVE_FIELDS: FrozenSet[str] = frozenset({
    "password",
    "vcenter_password",
    "domain_admin_password",
    "domainAdminPassword",
})

REDACTED = "***"


def safe_extra(fields: Mapping[str, Any]) -> Dict[str, Any]:
    """Rename reserved keys so ``fields`` can be passed as ``extra``."""
    return {
        (RESERVED_PREFIX + key if key in RESERVED_FIELDS else key): value
        for key, value in fields.items()
    }


class JsonFormatter(logging.Formatter):
    """Renders a record and its extra fields as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        for key, value in vars(record).items():
            if key in RESERVED_FIELDS:
                continue
            entry[key] = REDACTED if key in SENSITIVE_FIELDS and value is not None else value

        # pyVmomi handles and enums are not JSON serializable
        return json.dumps(entry, default=str)


class StructuredLogger:
    """
    Thin wrapper over a stdlib logger that writes JSON to stdout.

    Creating a second StructuredLogger with the same name replaces the
    handler instead of stacking another one.
    """

    def __init__(self, name: str, level: int = logging.INFO):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(level)
        self.logger.handlers.clear()

        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JsonFormatter())
        self.logger.addHandler(handler)

    def set_level(self, level: Union[int, str]) -> None:
        """Change the level, accepting either a number or a level name."""
        if isinstance(level, str):
            level = getattr(logging, level.upper(), logging.INFO)
        self.logger.setLevel(level)

    def _log(
        self, level: int, message: str, fields: Mapping[str, Any], exc_info: bool = False
    ) -> None:
        if self.logger.isEnabledFor(level):
            self.logger.log(level, message, exc_info=exc_info, extra=safe_extra(fields))

    def debug(self, message: str, **kwargs: Any) -> None:
        self._log(logging.DEBUG, message, kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        self._log(logging.INFO, message, kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self._log(logging.WARNING, message, kwargs)

    def error(self, message: str, exc_info: bool = False, **kwargs: Any) -> None:
        self._log(logging.ERROR, message, kwargs, exc_info)

    def critical(self, message: str, exc_info: bool = True, **kwargs: Any) -> None:
        self._log(logging.CRITICAL, message, kwargs, exc_info)


# Global logger instance
logger = StructuredLogger("vsphere_clone")
