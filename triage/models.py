"""Log entry, log state and work session models."""

from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Any


class Status(str, Enum):
    ERROR = "Error"
    WARN = "Warn"
    INFO = "Info"
    SUCCESS = "Success"


CABINET_FIELD = "cabinetName"
CABINET_FIELD_ALT = "cabinet_name"

# Keys mapped onto typed LogEntry attributes; everything else lands in ``extra``.
CORE_FIELDS = ("id", "summary", "message", "service", CABINET_FIELD, "status", "timestamp")


@dataclass
class LogEntry:
    cabinet_name: str
    id: Any = None
    summary: str | None = None
    message: str | None = None
    service: str | None = None
    status: str | None = None
    timestamp: str | None = None
    extra: dict = field(default_factory=dict)

    @property
    def source_id(self) -> str | None:
        """The entry's own id as a string, or None when it carries none."""
        if self.id is None:
            return None
        return str(self.id)

    @classmethod
    def from_dict(cls, data: dict, cabinet_name: str) -> "LogEntry":
        extra = {
            key: value for key, value in data.items()
            if key not in CORE_FIELDS and key != CABINET_FIELD_ALT
        }
        return cls(
            cabinet_name=cabinet_name,
            id=data.get("id"),
            summary=data.get("summary"),
            message=data.get("message"),
            service=data.get("service"),
            status=data.get("status"),
            timestamp=data.get("timestamp"),
            extra=extra,
        )

    def to_dict(self) -> dict:
        """Flat JSON shape: known fields that are set, extras, canonical cabinet key."""
        result = dict(self.extra)
        for key, value in (
            ("id", self.id),
            ("summary", self.summary),
            ("message", self.message),
            ("service", self.service),
            ("status", self.status),
            ("timestamp", self.timestamp),
        ):
            if value is not None:
                result[key] = value
        result[CABINET_FIELD] = self.cabinet_name
        return result


@dataclass
class LogState:
    log_id: str
    cabinet_name: str
    processed: bool = False
    comment: str | None = None
    in_progress: bool = False
    id: str | None = None
    created_at: str | None = None
    updated_at: str | None = None

    @classmethod
    def from_row(cls, row: dict) -> "LogState":
        return cls(
            log_id=str(row["log_id"]),
            cabinet_name=row["cabinet_name"],
            processed=bool(row.get("processed") or False),
            comment=row.get("comment"),
            in_progress=bool(row.get("in_progress") or False),
            id=row.get("id"),
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class CabinetWorkSession:
    cabinet_name: str
    id: str | None = None
    started_at: str | None = None
    updated_at: str | None = None

    @classmethod
    def from_row(cls, row: dict) -> "CabinetWorkSession":
        return cls(
            cabinet_name=row["cabinet_name"],
            id=row.get("id"),
            started_at=row.get("started_at"),
            updated_at=row.get("updated_at"),
        )

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class ProcessedLogEntry:
    entry: LogEntry
    log_id: str
    processed: bool = False
    comment: str | None = None
    in_progress: bool = False

    @property
    def cabinet_name(self) -> str:
        return self.entry.cabinet_name

    @property
    def status(self) -> str | None:
        return self.entry.status

    def apply_state(self, state: LogState | None) -> None:
        """Copy processed/comment/in-progress from a state row (or reset to defaults)."""
        if state is None:
            self.processed = False
            self.comment = None
            self.in_progress = False
            return
        self.processed = state.processed
        self.comment = state.comment
        self.in_progress = state.in_progress

    def to_dict(self) -> dict:
        result = self.entry.to_dict()
        result["log_id"] = self.log_id
        result["processed"] = self.processed
        result["in_progress"] = self.in_progress
        if self.comment is not None:
            result["comment"] = self.comment
        return result
