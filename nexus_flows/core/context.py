"""
Context Manager

Runtime state shared by every node of one flow execution. The same
instance is handed down the whole traversal, so a node sees what any
node executed before it (including earlier sibling branches) wrote.
"""

import copy
import math
import re
from typing import Any, Dict, Optional

PLACEHOLDER_PATTERN = re.compile(r"\{\{(\w+)\}\}")


class _Missing:
    """Marker for a key that is not present in the context."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING = _Missing()


class ContextManager:
    """
    Centralized context manager for flow execution.

    Example:
        >>> context = ContextManager({"qty": 150})
        >>> context.set("aiOutput", "Restock soon")
        >>> context.get_all()
        {"qty": 150, "aiOutput": "Restock soon"}
    """

    def __init__(self, initial_context: Optional[Dict[str, Any]] = None):
        """
        Initialize the context manager.

        Args:
            initial_context: Optional initial data (the caller's payload).
                             Copied, so the caller's dict is never mutated.
        """
        self._context: Dict[str, Any] = initial_context.copy() if initial_context else {}

    def get(self, key: str, default: Any = None) -> Any:
        """Get a single value, or default if the key doesn't exist."""
        return self._context.get(key, default)

    def lookup(self, key: Optional[str]) -> Any:
        """
        Get a value, returning MISSING when the key is absent.

        Distinguishes "absent" from an explicit None, which matters for
        condition evaluation.
        """
        if key is None:
            return MISSING
        return self._context.get(key, MISSING)

    def set(self, key: str, value: Any) -> None:
        """Set a single value in the context."""
        self._context[key] = value

    def update(self, data: Dict[str, Any]) -> None:
        """
        Update multiple values at once (merge with existing context).

        Example:
            >>> context = ContextManager({"a": 1, "b": 2})
            >>> context.update({"b": 20, "c": 3})
            >>> context.get_all()
            {"a": 1, "b": 20, "c": 3}
        """
        self._context.update(data)

    def get_all(self) -> Dict[str, Any]:
        """
        Get the complete context as a dictionary.

        Returns a shallow copy to prevent direct modification of internal state.
        Use snapshot() for a copy that is safe to persist.
        """
        return self._context.copy()

    def snapshot(self) -> Dict[str, Any]:
        """
        Create an immutable deep copy of the current context.

        Used when persisting the context on the execution record, so
        later modifications don't leak into the stored value.
        """
        return copy.deepcopy(self._context)

    def render(self, template: str) -> str:
        """
        Replace {{key}} placeholders with context values.

        Absent keys and empty values (None, False, 0, "") render as "".
        True renders as "true" and whole floats without ".0".

        Example:
            >>> ContextManager({"name": "Ana"}).render("Hi {{name}}{{missing}}")
            "Hi Ana"
        """
        def replace(match: "re.Match") -> str:
            value = self._context.get(match.group(1))
            return "" if _is_blank(value) else _template_text(value)

        return PLACEHOLDER_PATTERN.sub(replace, template or "")

    def has(self, key: str) -> bool:
        return key in self._context

    def delete(self, key: str) -> bool:
        """Delete a key. Returns False if the key didn't exist."""
        if key in self._context:
            del self._context[key]
            return True
        return False

    def size(self) -> int:
        return len(self._context)

    def __contains__(self, key: str) -> bool:
        return key in self._context

    def __repr__(self) -> str:
        return f"<ContextManager(keys={list(self._context.keys())}, size={self.size()})>"

    def __str__(self) -> str:
        return f"ContextManager({self._context})"


def _is_blank(value: Any) -> bool:
    if value is None or value is MISSING or value is False:
        return True
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value == 0 or math.isnan(value)
    return value == ""


def _template_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)
