"""Upload parser — JSON text to normalized LogEntry records."""

import json
import logging

from triage.errors import MalformedInput, NoValidEntries
from triage.models import CABINET_FIELD, CABINET_FIELD_ALT, LogEntry

logger = logging.getLogger(__name__)


def extract_cabinet(item) -> str | None:
    """Return the cabinet name of a raw item, or None if it has none.

    ``cabinetName`` wins over ``cabinet_name``; empty values do not count.
    """
    if not isinstance(item, dict):
        return None
    return item.get(CABINET_FIELD) or item.get(CABINET_FIELD_ALT) or None


def parse_upload(text: str | bytes) -> list[LogEntry]:
    """Parse uploaded text into an ordered list of normalized LogEntry values.

    Raw bytes must be valid UTF-8. A bare JSON object is treated as a
    one-element batch. Items without a cabinet field are dropped.

    Raises:
        MalformedInput: text is blank, not UTF-8 or not valid JSON.
        NoValidEntries: nothing in the document carries a cabinet field.
    """
    if isinstance(text, bytes):
        try:
            text = text.decode("utf-8")
        except UnicodeDecodeError as e:
            logger.warning("Upload is not valid UTF-8: %s", e)
            raise MalformedInput(f"Upload is not valid UTF-8 (byte {e.start})") from e

    if text is None or not text.strip():
        raise MalformedInput("No JSON provided")

    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as e:
        logger.warning("Upload is not valid JSON: %s", e)
        raise MalformedInput(f"Invalid JSON: {e.msg} (line {e.lineno}, column {e.colno})") from e

    items = parsed if isinstance(parsed, list) else [parsed]

    entries = []
    for item in items:
        cabinet = extract_cabinet(item)
        if cabinet is None:
            continue
        entries.append(LogEntry.from_dict(item, cabinet_name=str(cabinet)))

    if not entries:
        raise NoValidEntries("JSON does not contain any logs with a cabinetName field")

    skipped = len(items) - len(entries)
    if skipped:
        logger.info("Skipped %d item(s) without a cabinet field", skipped)
    return entries
