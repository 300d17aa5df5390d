"""Session-scoped view-model tying parser, reconciler, store and views together."""

import logging
import threading

from triage.errors import MalformedInput, NoValidEntries, RemoteStoreFailure
from triage.identity import CONTENT, validate_strategy
from triage.models import LogState, ProcessedLogEntry
from triage.notifications import Notifier
from triage.parser import parse_upload
from triage.reconciler import order_states, reattach, reconcile
from triage.sessions import WorkSessionManager
from triage.store import StateRepository
from triage import view

logger = logging.getLogger(__name__)


class Workspace:
    """One operator's view: uploaded logs, loaded state and the active cabinet."""

    def __init__(self, repository: StateRepository, notifier: Notifier | None = None, identity_strategy: str = CONTENT):
        self._repository = repository
        self.notifier = notifier or Notifier()
        self.identity_strategy = validate_strategy(identity_strategy)
        self.sessions = WorkSessionManager(repository, self.notifier)
        self.logs: list[ProcessedLogEntry] = []
        self.log_states: list[LogState] = []
        self.show_processed = True
        self._lock = threading.RLock()

    @property
    def active_cabinet(self) -> str | None:
        with self._lock:
            return self.sessions.active_cabinet

    # --- loading ---

    def load_states(self) -> bool:
        """Fetch log states (most recent first) and re-attach them to current logs."""
        try:
            states = self._repository.load_log_states()
        except RemoteStoreFailure as e:
            logger.error("Error loading log states: %s", e)
            self.notifier.error("Error", "Could not load log states")
            return False

        with self._lock:
            self.log_states = order_states(states)
            reattach(self.logs, self.log_states)
        logger.debug("Loaded %d log state(s)", len(states))
        return True

    def refresh(self) -> dict:
        """Reload log states and work sessions; report which loads succeeded."""
        return {
            "log_states": self.load_states(),
            "sessions": self.sessions.load_sessions(),
        }

    def upload(self, text: str | bytes) -> list[ProcessedLogEntry]:
        """Parse and reconcile an upload, replacing the current log list.

        Raises:
            MalformedInput, NoValidEntries: the upload was rejected; the
                current log list is unchanged.
        """
        try:
            entries = parse_upload(text)
        except MalformedInput as e:
            self.notifier.error("Error", f"Invalid JSON format: {e}")
            raise
        except NoValidEntries as e:
            self.notifier.error("Error", str(e))
            raise

        with self._lock:
            self.logs = reconcile(entries, self.log_states, strategy=self.identity_strategy)
            logs = list(self.logs)
        logger.info("Loaded %d log(s) across %d cabinet(s)", len(logs), len(view.cabinet_names(logs)))
        self.notifier.success("Success", f"Loaded {len(logs)} logs")
        return logs

    def clear(self) -> None:
        with self._lock:
            self.logs = []

    # --- state updates ---

    def update_log_state(self, log_id: str, cabinet_name: str, processed: bool | None = None, comment: str | None = None) -> LogState:
        """Upsert the state of one log and patch the local view.

        Only the fields passed are sent. Every in-memory entry with this
        (log_id, cabinet) pair picks up the stored values.

        Raises:
            RemoteStoreFailure: the upsert failed; nothing local changed.
        """
        updates = {}
        if processed is not None:
            updates["processed"] = processed
        if comment is not None:
            updates["comment"] = comment

        try:
            state = self._repository.save_log_state(log_id, cabinet_name, **updates)
        except RemoteStoreFailure as e:
            logger.error("Error updating log state %s/%s: %s", cabinet_name, log_id, e)
            self.notifier.error("Error", "Could not update log state")
            raise

        with self._lock:
            others = [
                s for s in self.log_states
                if not (s.log_id == state.log_id and s.cabinet_name == state.cabinet_name)
            ]
            self.log_states = order_states([state] + others)
            for record in self.logs:
                if record.log_id == log_id and record.cabinet_name == cabinet_name:
                    record.apply_state(state)
        logger.info("Updated log %s/%s: %s", cabinet_name, log_id, updates)
        return state

    def mark_processed(self, log_id: str, cabinet_name: str, processed: bool = True) -> LogState:
        return self.update_log_state(log_id, cabinet_name, processed=processed)

    def set_comment(self, log_id: str, cabinet_name: str, comment: str) -> LogState:
        return self.update_log_state(log_id, cabinet_name, comment=comment)

    def find_logs(self, log_id: str, cabinet_name: str | None = None) -> list[ProcessedLogEntry]:
        with self._lock:
            return [
                record for record in self.logs
                if record.log_id == log_id and (cabinet_name is None or record.cabinet_name == cabinet_name)
            ]

    # --- work sessions ---

    def start_work(self, cabinet_name: str):
        with self._lock:
            return self.sessions.start_work(cabinet_name)

    def end_work(self, cabinet_name: str) -> int:
        with self._lock:
            return self.sessions.end_work(cabinet_name)

    # --- projections ---

    def set_show_processed(self, show: bool) -> None:
        with self._lock:
            self.show_processed = show

    def filtered(self) -> list[ProcessedLogEntry]:
        with self._lock:
            logs = list(self.logs)
            active_cabinet = self.sessions.active_cabinet
            show_processed = self.show_processed
        return view.filter_logs(logs, active_cabinet, show_processed)

    def grouped(self) -> dict[str, list[ProcessedLogEntry]]:
        return view.group_by_cabinet(self.filtered())

    def overview(self) -> list[dict]:
        """Per-cabinet stats over all uploaded logs, with session flags."""
        result = []
        with self._lock:
            for name, stats in view.cabinet_overview(self.logs).items():
                entry = {"cabinet_name": name, **stats.to_dict()}
                entry["active"] = self.sessions.is_active(name)
                entry["in_session"] = self.sessions.in_session(name)
                result.append(entry)
        return result

    def snapshot(self) -> dict:
        """JSON-ready view of the filtered, grouped logs."""
        filtered = self.filtered()
        grouped = view.group_by_cabinet(filtered)
        with self._lock:
            total = view.global_stats(self.logs)
            active_cabinet = self.sessions.active_cabinet
            show_processed = self.show_processed
        return {
            "active_cabinet": active_cabinet,
            "show_processed": show_processed,
            "stats": total.to_dict(),
            "count": len(filtered),
            "groups": [
                {
                    "cabinet_name": name,
                    "stats": view.compute_stats(logs).to_dict(),
                    "logs": [log.to_dict() for log in logs],
                }
                for name, logs in grouped.items()
            ],
        }
