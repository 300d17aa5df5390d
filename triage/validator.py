"""JSON-schema validation of API request bodies."""

from collections import defaultdict

import jsonschema

LOG_STATE_UPDATE_SCHEMA = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "properties": {
        "cabinet_name": {"type": "string", "minLength": 1},
        "processed": {"type": "boolean"},
        "comment": {"type": "string"},
    },
    "required": ["cabinet_name"],
    "anyOf": [
        {"required": ["processed"]},
        {"required": ["comment"]},
    ],
    "additionalProperties": False,
}

VIEW_SETTINGS_SCHEMA = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "properties": {
        "show_processed": {"type": "boolean"},
    },
    "required": ["show_processed"],
    "additionalProperties": False,
}


class RequestValidator:
    """Validates request payloads against a JSON schema and counts outcomes."""

    def __init__(self, schema):
        self._validator = jsonschema.Draft202012Validator(schema)
        self._stats = {
            "total": 0,
            "valid": 0,
            "invalid": 0,
            "error_types": defaultdict(int),
        }

    def validate(self, payload):
        """Validate a payload against the schema.

        Returns:
            tuple: (is_valid: bool, errors: list[str])
        """
        self._stats["total"] += 1
        errors = list(self._validator.iter_errors(payload))

        if not errors:
            self._stats["valid"] += 1
            return True, []

        self._stats["invalid"] += 1
        error_messages = []
        for error in errors:
            self._stats["error_types"][error.validator] += 1
            error_messages.append(error.message)

        return False, error_messages

    def get_stats(self):
        """Return a copy of the stats dict."""
        stats = dict(self._stats)
        stats["error_types"] = dict(stats["error_types"])
        return stats
