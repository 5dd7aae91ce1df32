import json
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict

AUDIT_LOGGER_NAME = "signage.audit"


class WindowsSafeRotatingFileHandler(RotatingFileHandler):
    """
    A RotatingFileHandler that closes the file handle before rotation and
    skips the rotation when Windows still holds a lock on the file.
    """

    def doRollover(self):
        if self.stream:
            self.stream.close()
            self.stream = None
        try:
            super().doRollover()
        except PermissionError:
            pass
        finally:
            if not self.stream:
                self.stream = self._open()


class AuditLogger:
    """Structured audit logger that writes append-only JSON records.

    All instances share the non-propagating ``signage.audit`` logger; the
    file handler follows the most recently configured path.
    """

    def __init__(self, log_path: str, level: str = "INFO") -> None:
        self.log_path = Path(log_path)
        self.log_path.parent.mkdir(parents=True, exist_ok=True)

        self.logger = logging.getLogger(AUDIT_LOGGER_NAME)
        self.logger.setLevel(getattr(logging, level.upper(), logging.INFO))
        self.logger.propagate = False

        target = str(self.log_path.resolve())
        existing = [h for h in self.logger.handlers if isinstance(h, RotatingFileHandler)]
        if any(h.baseFilename == target for h in existing):
            return
        for handler in existing:
            self.logger.removeHandler(handler)
            handler.close()

        handler_cls = WindowsSafeRotatingFileHandler if sys.platform == "win32" else RotatingFileHandler
        handler = handler_cls(
            filename=target,
            maxBytes=10 * 1024 * 1024,  # 10 MB
            backupCount=30,
            encoding="utf-8",
            delay=True,
        )
        handler.setFormatter(
            logging.Formatter(
                fmt="%(asctime)sZ | %(levelname)s | %(message)s",
                datefmt="%Y-%m-%dT%H:%M:%S",
            )
        )
        self.logger.addHandler(handler)

    def log_event(self, actor: str, action: str, resource: str, outcome: str, **metadata: Any) -> None:
        payload: Dict[str, Any] = {
            "actor": actor,
            "action": action,
            "resource": resource,
            "outcome": outcome,
        }
        if metadata:
            payload["meta"] = metadata

        self.logger.info(json.dumps(payload, default=str))

    def flush(self) -> None:
        for handler in self.logger.handlers:
            handler.flush()
