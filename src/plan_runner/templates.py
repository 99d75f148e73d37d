# templates.py
# Cross-step reference resolution.
#
# A string argument of the form {{prev:N.path}} is replaced by the value
# found at `path` inside the N-th entry of the result history. Any miss
# (absent index, absent key, wrong container, index out of range) resolves
# to None; deciding whether that is fatal belongs to the executor.

import re
from functools import partial
from typing import Any, Callable

REFERENCE = re.compile(r"\{\{\s*prev:(\d+)\.(.+?)\s*\}\}", re.DOTALL)
_INDEXED_SEGMENT = re.compile(r"^(\w+)\[(\d+)\]$")


# ---------------------------------------------------------------------------
# Generic tree walk
# ---------------------------------------------------------------------------


def walk(value: Any, leaf: Callable[[str], Any]) -> Any:
    """Rebuild `value`, passing every string leaf through `leaf`."""
    if isinstance(value, str):
        return leaf(value)
    if isinstance(value, list):
        return [walk(item, leaf) for item in value]
    if isinstance(value, dict):
        return {key: walk(item, leaf) for key, item in value.items()}
    return value


# ---------------------------------------------------------------------------
# Path lookup
# ---------------------------------------------------------------------------


def _index(container: Any, position: int) -> Any:
    if isinstance(container, (list, tuple)) and 0 <= position < len(container):
        return container[position]
    return None


def _field(container: Any, name: str) -> Any:
    if isinstance(container, dict):
        return container.get(name)
    if isinstance(container, (list, tuple)) and name.isdigit():
        return _index(container, int(name))
    return None


def lookup_path(root: Any, path: str) -> Any:
    """
    Walk a dot/bracket path such as ``meetings[0].meetingId`` from `root`.

    Returns None as soon as any segment misses.
    """
    current = root
    for segment in path.split("."):
        if current is None:
            return None
        indexed = _INDEXED_SEGMENT.match(segment)
        if indexed:
            current = _index(_field(current, indexed.group(1)), int(indexed.group(2)))
        else:
            current = _field(current, segment)
    return current


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------


def _resolve_string(text: str, history: list[Any]) -> Any:
    match = REFERENCE.search(text)
    if not match:
        return text

    position = int(match.group(1))
    if position >= len(history):
        return None
    return lookup_path(history[position], match.group(2))


def resolve_templates(value: Any, history: list[Any]) -> Any:
    """Replace every reference token in `value` with the value it points at."""
    return walk(value, partial(_resolve_string, history=history))
