# barsim/core/recorder.py
"""
Per-tick collection of user-tagged values.
"""

from typing import Any, Dict

from ..models.results import BASE_COLUMNS


class Recorder:
    """Pending recorded fields for the tick being processed."""

    def __init__(self):
        self._fields: Dict[str, Any] = {}

    def record(self, *args: Any, **fields: Any) -> None:
        """
        Record values for the current tick; last write per key wins.

        Accepts either ``record(key, value)`` or ``record(key=value, ...)``.

        Raises:
            ValueError: On an empty key or one that shadows a base column
        """
        if args:
            if len(args) != 2:
                raise TypeError("record() takes a key and a value, or keyword arguments")
            key, value = args
            fields = {key: value, **fields}

        for key, value in fields.items():
            if not isinstance(key, str) or not key:
                raise ValueError(f"Record key must be a non-empty string, got {key!r}")
            if key in BASE_COLUMNS:
                raise ValueError(f"Record key '{key}' is reserved")
            self._fields[key] = value

    def clear(self) -> None:
        """Drop all pending fields."""
        self._fields.clear()

    def snapshot(self) -> Dict[str, Any]:
        """Copy of the fields recorded so far this tick."""
        return dict(self._fields)
