"""Cross-instance issue identity."""

from __future__ import annotations

import re
from dataclasses import dataclass

_UNSAFE = re.compile(r"[:/\-.]")


@dataclass(frozen=True, order=True)
class IssueIdentity:
    """
    The (instance, key) pair naming one issue across all configured trackers.

    Two issues with the same key on different instances are different
    entities; equality and hashing use both fields.
    """

    instance_ref: str  # tracker base URL
    issue_key: str

    def as_stable_string(self) -> str:
        """Symbol-safe rendering, usable as a diagram node identifier."""
        return _UNSAFE.sub("_", f"{self.instance_ref}/{self.issue_key}")

    def __str__(self) -> str:
        return f"{self.instance_ref}/browse/{self.issue_key}"
