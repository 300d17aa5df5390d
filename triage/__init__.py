"""Cabinet log triage — upload, reconcile and track per-cabinet log state."""

__version__ = "0.1.0"
