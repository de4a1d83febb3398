"""Log stream for the presentation layer."""

import json
import logging
import uuid
from datetime import datetime
from pathlib import Path
from typing import List, Literal

from pydantic import BaseModel, Field

LogType = Literal["info", "success", "warning", "error"]


class LogEntry(BaseModel):
    """One line of the user-facing activity log."""

    id: str = Field(default_factory=lambda: uuid.uuid4().hex[:8])
    timestamp: str = Field(default_factory=lambda: datetime.now().strftime("%H:%M:%S"))
    message: str
    type: LogType = "info"


class LogBuffer(logging.Handler):
    """Logging handler that collects records as LogEntry models.

    Records logged with extra={"kind": "success"} become success entries.
    """

    def __init__(self, level: int = logging.INFO) -> None:
        super().__init__(level)
        self.entries: List[LogEntry] = []

    def emit(self, record: logging.LogRecord) -> None:
        try:
            message = record.getMessage()
        except Exception:
            self.handleError(record)
            return

        kind = getattr(record, "kind", None)
        if kind not in ("info", "success", "warning", "error"):
            if record.levelno >= logging.ERROR:
                kind = "error"
            elif record.levelno >= logging.WARNING:
                kind = "warning"
            else:
                kind = "info"

        self.entries.append(
            LogEntry(
                timestamp=datetime.fromtimestamp(record.created).strftime("%H:%M:%S"),
                message=message,
                type=kind,
            )
        )

    def write_jsonl(self, path: Path) -> None:
        """Append the collected entries to a JSON lines file."""
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "a", encoding="utf-8") as f:
            for entry in self.entries:
                f.write(json.dumps(entry.model_dump(), ensure_ascii=False) + "\n")
