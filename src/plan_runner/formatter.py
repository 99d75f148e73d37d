# formatter.py
# Turn a tool result of any shape into one displayable string.

import json
from typing import Any

# Single-value keys that stand for the whole result.
PRIMARY_FIELDS = ("day", "date")

# Named lists of records, rendered one numbered line per record.
LIST_FIELDS = ("meetings",)

LIST_TITLES = {"meetings": "Meetings"}


def _format_item(item: Any) -> str:
    if isinstance(item, dict):
        name = item.get("name", "")
        identifier = item.get("id", item.get("meetingId", ""))
        return f"{name} (id: {identifier})"
    return format_result(item)


def format_result(value: Any) -> str:
    """Most specific rule first; falls back to JSON, then str()."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, (list, tuple)):
        return ", ".join(format_result(item) for item in value)

    if isinstance(value, dict):
        for key in PRIMARY_FIELDS:
            if key in value:
                return format_result(value[key])

        for key in LIST_FIELDS:
            items = value.get(key)
            if isinstance(items, list):
                lines = [f"{i + 1}. {_format_item(item)}" for i, item in enumerate(items)]
                return f"{LIST_TITLES[key]}:\n" + "\n".join(lines)

        try:
            return json.dumps(value, default=str)
        except (TypeError, ValueError):
            return str(value)

    return str(value)
