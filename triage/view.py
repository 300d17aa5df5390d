"""Filtering, grouping and statistics over processed log entries."""

from dataclasses import dataclass, asdict
from typing import Iterable

from triage.models import ProcessedLogEntry, Status


@dataclass
class CabinetStats:
    total: int = 0
    processed: int = 0
    errors: int = 0
    warnings: int = 0

    @property
    def unprocessed(self) -> int:
        return self.total - self.processed

    def to_dict(self) -> dict:
        result = asdict(self)
        result["unprocessed"] = self.unprocessed
        return result


def filter_logs(
    logs: Iterable[ProcessedLogEntry],
    active_cabinet: str | None = None,
    show_processed: bool = True,
) -> list[ProcessedLogEntry]:
    """Entries of the active cabinet (if any), minus processed ones when hidden."""
    predicates = []
    if active_cabinet:
        predicates.append(lambda log: log.cabinet_name == active_cabinet)
    if not show_processed:
        predicates.append(lambda log: not log.processed)
    return [log for log in logs if all(p(log) for p in predicates)]


def group_by_cabinet(logs: Iterable[ProcessedLogEntry]) -> dict[str, list[ProcessedLogEntry]]:
    """Partition by cabinet; groups in first-seen order, entries in input order."""
    grouped: dict[str, list[ProcessedLogEntry]] = {}
    for log in logs:
        grouped.setdefault(log.cabinet_name, []).append(log)
    return grouped


def cabinet_names(logs: Iterable[ProcessedLogEntry]) -> list[str]:
    return list(group_by_cabinet(logs))


def compute_stats(logs: Iterable[ProcessedLogEntry]) -> CabinetStats:
    stats = CabinetStats()
    for log in logs:
        stats.total += 1
        if log.processed:
            stats.processed += 1
        if log.status == Status.ERROR.value:
            stats.errors += 1
        elif log.status == Status.WARN.value:
            stats.warnings += 1
    return stats


def cabinet_stats(logs: Iterable[ProcessedLogEntry], cabinet: str) -> CabinetStats:
    return compute_stats(log for log in logs if log.cabinet_name == cabinet)


def cabinet_overview(logs: Iterable[ProcessedLogEntry]) -> dict[str, CabinetStats]:
    """Stats per cabinet, in first-seen cabinet order."""
    return {name: compute_stats(group) for name, group in group_by_cabinet(logs).items()}


def global_stats(logs: Iterable[ProcessedLogEntry]) -> CabinetStats:
    return compute_stats(logs)
