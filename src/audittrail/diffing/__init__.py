"""Word-level text diffing."""

from audittrail.diffing.word_diff import DiffRun, RunTag, WordDiffAdapter, diff_words, word_count

__all__ = ["DiffRun", "RunTag", "WordDiffAdapter", "diff_words", "word_count"]
