"""Word-level diffing between two versions of a text."""

from dataclasses import dataclass
from difflib import SequenceMatcher
from enum import Enum
from typing import Any, Dict, List

from audittrail.exceptions import InvalidInput


class RunTag(str, Enum):
    """How a run of words relates the old text to the new one."""

    ADDED = "added"
    REMOVED = "removed"
    UNCHANGED = "unchanged"


@dataclass(frozen=True)
class DiffRun:
    """A contiguous span of words sharing one tag."""

    tag: RunTag
    value: str

    @property
    def added(self) -> bool:
        return self.tag is RunTag.ADDED

    @property
    def removed(self) -> bool:
        return self.tag is RunTag.REMOVED


def _require_text(name: str, value: Any) -> str:
    if not isinstance(value, str):
        raise InvalidInput(
            f"{name} must be a string, got {type(value).__name__}",
            details={"argument": name},
        )
    return value


def word_count(text: str) -> int:
    """Count whitespace-separated words, ignoring empty tokens."""
    return len(_require_text("text", text).split())


def diff_words(old_text: str, new_text: str) -> List[DiffRun]:
    """Diff two texts word by word.

    Whitespace is only a separator, so re-spacing a text produces no
    added or removed runs. A replaced span yields its removed run first,
    then its added run.

    Args:
        old_text: Previous text
        new_text: Current text

    Returns:
        Ordered list of tagged runs covering both texts
    """
    old_words = _require_text("old_text", old_text).split()
    new_words = _require_text("new_text", new_text).split()

    matcher = SequenceMatcher(None, old_words, new_words, autojunk=False)
    runs: List[DiffRun] = []

    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        if tag == "equal":
            runs.append(DiffRun(RunTag.UNCHANGED, " ".join(old_words[i1:i2])))
            continue
        if tag in ("delete", "replace"):
            runs.append(DiffRun(RunTag.REMOVED, " ".join(old_words[i1:i2])))
        if tag in ("insert", "replace"):
            runs.append(DiffRun(RunTag.ADDED, " ".join(new_words[j1:j2])))

    return runs


class WordDiffAdapter:
    """Turns tagged diff runs into added/removed word counts."""

    def compare(self, old_text: str, new_text: str) -> Dict[str, int]:
        """Count words added and removed between two texts.

        Args:
            old_text: Previous content (may be empty)
            new_text: New content (may be empty)

        Returns:
            Dict with "added" and "removed" counts

        Raises:
            InvalidInput: If either argument is not a string
        """
        added = 0
        removed = 0

        for run in diff_words(old_text, new_text):
            count = len(run.value.split())
            if run.added:
                added += count
            elif run.removed:
                removed += count

        return {"added": added, "removed": removed}
