"""Log identifiers used to correlate uploaded entries with stored state."""

import hashlib
import json
import time
from collections import Counter

from triage.models import LogEntry

BATCH = "batch"
CONTENT = "content"
STRATEGIES = (BATCH, CONTENT)


def validate_strategy(strategy: str) -> str:
    if strategy not in STRATEGIES:
        raise ValueError(f"Unknown identity strategy: {strategy!r} (expected one of {STRATEGIES})")
    return strategy


def batch_log_id(entry: LogEntry, index: int, now: int | None = None) -> str:
    """``{cabinet}_{index}_{epoch_ms}``.

    Deterministic within one batch when the caller passes a shared ``now``,
    but regenerated on every upload: entries identified only this way do not
    reconcile against state saved from an earlier upload.
    """
    if now is None:
        now = int(time.time() * 1000)
    return f"{entry.cabinet_name}_{index}_{now}"


def content_digest(entry: LogEntry) -> str:
    canonical = json.dumps(entry.to_dict(), sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha1(canonical.encode("utf-8")).hexdigest()[:16]


def content_log_id(entry: LogEntry, occurrence: int = 0) -> str:
    """``{cabinet}_{digest}_{occurrence}`` over the canonical JSON of the entry.

    ``occurrence`` counts earlier identical entries in the same batch, so
    repeated log lines stay distinct while keeping the same ids on re-upload.
    """
    return f"{entry.cabinet_name}_{content_digest(entry)}_{occurrence}"


def assign_log_id(
    entry: LogEntry,
    index: int,
    strategy: str = CONTENT,
    now: int | None = None,
    occurrence: int = 0,
) -> str:
    """Explicit source id if present, otherwise the fallback ``strategy``."""
    validate_strategy(strategy)
    if entry.source_id is not None:
        return entry.source_id
    if strategy == CONTENT:
        return content_log_id(entry, occurrence)
    return batch_log_id(entry, index, now)


def assign_log_ids(entries: list[LogEntry], strategy: str = CONTENT, now: int | None = None) -> list[str]:
    """Identifiers for a whole batch, sharing one generation time."""
    validate_strategy(strategy)
    if now is None:
        now = int(time.time() * 1000)

    seen = Counter()
    log_ids = []
    for index, entry in enumerate(entries):
        occurrence = 0
        if strategy == CONTENT and entry.source_id is None:
            key = (entry.cabinet_name, content_digest(entry))
            occurrence = seen[key]
            seen[key] += 1
        log_ids.append(assign_log_id(entry, index, strategy, now, occurrence))
    return log_ids
