"""Attach persisted log state to freshly uploaded entries."""

from typing import Iterable

from triage.identity import CONTENT, assign_log_ids
from triage.models import LogEntry, LogState, ProcessedLogEntry


def order_states(states: Iterable[LogState]) -> list[LogState]:
    """Most recently updated first; rows without ``updated_at`` sink to the end."""
    return sorted(states, key=lambda s: s.updated_at or "", reverse=True)


def find_state(states: list[LogState], cabinet_name: str, candidates: Iterable[str | None]) -> LogState | None:
    """First state row for ``cabinet_name`` whose log_id is one of ``candidates``."""
    wanted = {c for c in candidates if c is not None}
    for state in states:
        if state.cabinet_name == cabinet_name and state.log_id in wanted:
            return state
    return None


def reconcile(
    entries: list[LogEntry],
    states: list[LogState],
    strategy: str = CONTENT,
    now: int | None = None,
) -> list[ProcessedLogEntry]:
    """Merge entries with state rows, preserving entry order.

    A row matches when its cabinet equals the entry's cabinet and its log_id
    equals either the assigned identifier or the entry's own id. With rows
    ordered most recent first, the newest matching row wins. Unmatched
    entries get processed=False, in_progress=False and no comment.
    """
    ordered = order_states(states)
    log_ids = assign_log_ids(entries, strategy, now)

    processed = []
    for entry, log_id in zip(entries, log_ids):
        record = ProcessedLogEntry(entry=entry, log_id=log_id)
        record.apply_state(find_state(ordered, entry.cabinet_name, (log_id, entry.source_id)))
        processed.append(record)
    return processed


def reattach(logs: list[ProcessedLogEntry], states: list[LogState]) -> list[ProcessedLogEntry]:
    """Re-run the state match for already identified records, in place."""
    ordered = order_states(states)
    for record in logs:
        record.apply_state(find_state(ordered, record.cabinet_name, (record.log_id, record.entry.source_id)))
    return logs
