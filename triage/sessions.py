"""Cabinet work sessions — claim and release cabinets.

A cabinet is *active* when this workspace has selected it (at most one at a
time) and *in session* when any client holds a session row for it.
"""

import logging

from triage.errors import RemoteStoreFailure
from triage.models import CabinetWorkSession
from triage.notifications import Notifier
from triage.store import StateRepository

logger = logging.getLogger(__name__)


class WorkSessionManager:
    def __init__(self, repository: StateRepository, notifier: Notifier):
        self._repository = repository
        self._notifier = notifier
        self.active_cabinet: str | None = None
        self.sessions: list[CabinetWorkSession] = []

    def load_sessions(self) -> bool:
        """Refresh the session list; on failure the last known list is kept."""
        try:
            self.sessions = self._repository.load_sessions()
        except RemoteStoreFailure as e:
            logger.error("Error loading cabinet sessions: %s", e)
            self._notifier.error("Error", "Could not load cabinet work sessions")
            return False
        return True

    def start_work(self, cabinet_name: str) -> CabinetWorkSession:
        """Upsert the session row and make ``cabinet_name`` the active cabinet.

        Raises:
            RemoteStoreFailure: the upsert failed; the active pointer is unchanged.
        """
        try:
            session = self._repository.save_session(cabinet_name)
        except RemoteStoreFailure as e:
            logger.error("Error starting work on cabinet %s: %s", cabinet_name, e)
            self._notifier.error("Error", f'Could not take cabinet "{cabinet_name}" into work')
            raise

        self.active_cabinet = cabinet_name
        self.load_sessions()
        logger.info("Started work on cabinet %s", cabinet_name)
        self._notifier.success("Cabinet taken into work", f'Started work on cabinet "{cabinet_name}"')
        return session

    def end_work(self, cabinet_name: str) -> int:
        """Delete every session row for ``cabinet_name`` and clear the active pointer.

        The name need not be the locally active cabinet. Returns the number of
        rows removed.

        Raises:
            RemoteStoreFailure: the delete failed; the active pointer is unchanged.
        """
        try:
            removed = self._repository.delete_sessions(cabinet_name)
        except RemoteStoreFailure as e:
            logger.error("Error ending work on cabinet %s: %s", cabinet_name, e)
            self._notifier.error("Error", f'Could not end work on cabinet "{cabinet_name}"')
            raise

        self.active_cabinet = None
        self.load_sessions()
        logger.info("Ended work on cabinet %s (%d session row(s) removed)", cabinet_name, removed)
        self._notifier.success("Work finished", f'Finished work on cabinet "{cabinet_name}"')
        return removed

    def is_active(self, cabinet_name: str) -> bool:
        return self.active_cabinet == cabinet_name

    def in_session(self, cabinet_name: str) -> bool:
        return any(session.cabinet_name == cabinet_name for session in self.sessions)

    def cabinets_in_session(self) -> list[str]:
        seen = []
        for session in self.sessions:
            if session.cabinet_name not in seen:
                seen.append(session.cabinet_name)
        return seen
