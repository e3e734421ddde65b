"""Tests for the per-task version history."""

import threading
from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from audittrail.diffing import WordDiffAdapter
from audittrail.exceptions import ConcurrencyViolation, InvalidInput, NotFound, PersistenceFailure
from audittrail.history.version_history import VersionHistory
from audittrail.models.version import DiffStats, TaskDocument

START = datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc)


class FakeClock:
    """Deterministic clock that advances one minute per call."""

    def __init__(self, start=START, step=timedelta(minutes=1)):
        self.current = start
        self.step = step

    def __call__(self):
        value = self.current
        self.current += self.step
        return value


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def history(clock):
    """Create an empty history for task t1."""
    return VersionHistory("t1", clock=clock)


def assert_chain(history, n):
    """Check contiguity and link integrity for n appends."""
    versions = history.get_all()
    assert [v.version_number for v in versions] == list(range(1, n + 1))
    assert history.count == n
    assert history.head == (1 if n else None)
    assert history.tail == (n or None)
    for i, version in enumerate(versions, start=1):
        assert version.prev == (i - 1 or None)
        assert version.next == (i + 1 if i < n else None)


class TestEmptyHistory:
    """Test a history before its first append."""

    def test_initial_state(self, history):
        assert history.is_empty
        assert history.count == 0
        assert history.head is None
        assert history.tail is None
        assert history.get_all() == []
        assert history.latest_version() is None

    def test_get_version_on_empty(self, history):
        with pytest.raises(NotFound) as exc_info:
            history.get_version(1)
        assert exc_info.value.message == "Version not found"


class TestAppendVersion:
    """Test appending versions and diff computation."""

    def test_first_version_counts_words(self, history):
        version = history.append_version({"title": "T", "content": "one two three"})

        assert version.version_number == 1
        assert version.diff == DiffStats(added=3, removed=0, changed=3)
        assert version.summary == "Created with 3 words"
        assert version.prev is None
        assert version.next is None

    def test_first_version_without_content(self, history):
        version = history.append_version({"title": "Empty"})

        assert version.diff == DiffStats(added=0, removed=0, changed=0)
        assert version.summary == "Created new task"

    def test_first_version_whitespace_content(self, history):
        version = history.append_version({"title": "T", "content": "   "})
        assert version.summary == "Created new task"

    def test_scenario(self, history):
        """Two appends link up and diff against each other."""
        v1 = history.append_version({"title": "T", "content": "alpha beta"})
        assert v1.version_number == 1
        assert (v1.diff.added, v1.diff.removed, v1.diff.changed) == (2, 0, 2)
        assert v1.prev is None and v1.next is None

        v2 = history.append_version({"title": "T", "content": "alpha beta gamma"})
        assert v2.version_number == 2
        assert v2.diff.added == 1
        assert v2.diff.removed == 0
        assert v2.prev == 1
        assert v2.summary == "Added ~1 words"

        assert history.get_version(1).version.next == 2
        assert history.get_version(2).version.prev == 1

    def test_diff_matches_adapter(self, history):
        old = "the quick brown fox jumps over the lazy dog"
        new = "a quick red fox jumped over the dog"
        history.append_version({"content": old})
        version = history.append_version({"content": new})

        expected = WordDiffAdapter().compare(old, new)
        assert version.diff.added == expected["added"]
        assert version.diff.removed == expected["removed"]
        assert version.diff.changed == expected["added"] + expected["removed"]

    def test_summary_for_removal(self, history):
        history.append_version({"content": "one two three four"})
        version = history.append_version({"content": "one two five"})
        assert version.summary == "Removed ~2 words"

    def test_summary_for_equal_edit(self, history):
        history.append_version({"content": "red green blue"})
        version = history.append_version({"content": "red yellow blue"})
        assert version.summary == "Edited content (~1 words changed)"

    def test_title_only_change(self, history):
        history.append_version({"title": "Old", "content": "same words"})
        version = history.append_version({"title": "New", "content": "same words"})
        assert version.diff == DiffStats()
        assert version.summary == "Title updated or minor changes"

    def test_missing_content_diffs_as_empty(self, history):
        history.append_version({"title": "T", "content": "one two"})
        version = history.append_version({"title": "T"})

        assert version.diff == DiffStats(added=0, removed=2, changed=2)
        assert version.data == {"title": "T"}

    def test_payload_stored_verbatim(self, history):
        payload = {"title": "T", "content": "x", "tags": ["a", "b"], "extra": {"k": 1}}
        version = history.append_version(payload)
        payload["tags"].append("c")

        assert version.data == {"title": "T", "content": "x", "tags": ["a", "b"], "extra": {"k": 1}}

    def test_contiguity_and_links(self, history):
        for i in range(10):
            history.append_version({"content": " ".join(["w"] * i)})
        assert_chain(history, 10)

    def test_created_at_non_decreasing_under_clock_skew(self):
        times = iter([START, START - timedelta(hours=1), START + timedelta(minutes=5)])
        history = VersionHistory("skew", clock=lambda: next(times))

        for _ in range(3):
            history.append_version({"content": "x"})

        stamps = [v.created_at for v in history.get_all()]
        assert stamps == sorted(stamps)
        assert stamps[1] == START

    def test_rejects_non_mapping(self, history):
        with pytest.raises(InvalidInput):
            history.append_version(["not", "a", "dict"])
        assert history.is_empty

    def test_rejects_non_string_content(self, history):
        with pytest.raises(InvalidInput):
            history.append_version({"content": 12})
        assert history.is_empty

    def test_rejects_non_json_values(self, history):
        with pytest.raises(InvalidInput):
            history.append_version({"content": "x", "when": datetime(2024, 1, 1)})
        assert history.is_empty

    def test_stored_records_are_frozen(self, history):
        version = history.append_version({"content": "a"})
        with pytest.raises(ValidationError):
            version.summary = "changed"


class TestReads:
    """Test navigation reads."""

    def test_get_version_navigation(self, history):
        for text in ["a", "a b", "a b c"]:
            history.append_version({"content": text})

        view = history.get_version(2)
        assert view.version.version_number == 2
        assert view.navigation.prev == 1
        assert view.navigation.next == 3

        first = history.get_version(1)
        assert first.navigation.prev is None
        assert first.navigation.next == 2

        last = history.get_version(3)
        assert last.navigation.next is None

    def test_navigation_duplicates_pointers(self, history):
        history.append_version({"content": "a"})
        history.append_version({"content": "b"})

        view = history.get_version(1)
        assert view.navigation.prev == view.version.prev
        assert view.navigation.next == view.version.next

    @pytest.mark.parametrize("number", [0, -1, 3, "1", 1.0, True])
    def test_get_version_out_of_range(self, history, number):
        history.append_version({"content": "a"})
        history.append_version({"content": "b"})

        with pytest.raises(NotFound):
            history.get_version(number)

    def test_latest_version(self, history):
        history.append_version({"title": "first", "content": "a"})
        history.append_version({"title": "second", "content": "b"})

        latest = history.latest_version()
        assert latest.version_number == 2
        assert latest.title == "second"
        assert latest.next is None

    def test_to_dict_uses_null_pointers(self, history):
        history.append_version({"content": "a"})

        data = history.get_version(1).to_dict()
        assert data["versionNumber"] == 1
        assert data["prev"] is None
        assert data["next"] is None
        assert data["navigation"] == {"prev": None, "next": None}


class TestPersistHook:
    """Test commit-after-persist behavior."""

    def test_persist_receives_linked_document(self, clock):
        saved = []
        history = VersionHistory("t1", clock=clock, persist=saved.append)

        history.append_version({"content": "a"})
        history.append_version({"content": "a b"})

        document = saved[-1]
        assert isinstance(document, TaskDocument)
        assert document.head_version == 1
        assert document.tail_version == 2
        assert document.version_count == 2
        assert document.versions[0].next == 2
        assert document.versions[1].prev == 1

    def test_failed_persist_commits_nothing(self, clock):
        calls = {"n": 0}

        def flaky(document):
            calls["n"] += 1
            if calls["n"] == 2:
                raise OSError("disk full")

        history = VersionHistory("t1", clock=clock, persist=flaky)
        history.append_version({"content": "a"})

        with pytest.raises(PersistenceFailure):
            history.append_version({"content": "a b"})

        assert history.count == 1
        assert history.tail == 1
        assert history.get_version(1).version.next is None

        version = history.append_version({"content": "a b"})
        assert version.version_number == 2
        assert_chain(history, 2)

    def test_persistence_failure_passes_through(self, clock):
        def refuse(document):
            raise PersistenceFailure("store offline")

        history = VersionHistory("t1", clock=clock, persist=refuse)
        with pytest.raises(PersistenceFailure, match="store offline"):
            history.append_version({"content": "a"})
        assert history.is_empty


class TestConcurrency:
    """Test serialization of appends to one task."""

    def test_parallel_appends_stay_contiguous(self):
        history = VersionHistory("busy")
        threads = 8
        per_thread = 25
        barrier = threading.Barrier(threads)

        def worker(n):
            barrier.wait()
            for i in range(per_thread):
                history.append_version({"content": f"worker {n} step {i}"})

        pool = [threading.Thread(target=worker, args=(n,)) for n in range(threads)]
        for t in pool:
            t.start()
        for t in pool:
            t.join()

        assert_chain(history, threads * per_thread)

    def test_independent_histories_do_not_interfere(self):
        a = VersionHistory("A")
        b = VersionHistory("B")
        b.append_version({"content": "b"})

        for i in range(5):
            a.append_version({"content": "a" * (i + 1)})

        assert a.count == 5
        assert b.count == 1
        assert b.tail == 1
        assert b.get_all()[0].data == {"content": "b"}


class TestDocumentRoundTrip:
    """Test conversion to and from stored documents."""

    def test_round_trip(self, history, clock):
        for text in ["a", "a b", "a b c"]:
            history.append_version({"title": "T", "content": text})

        restored = VersionHistory.from_document(history.to_document(), clock=clock)
        assert restored.task_id == "t1"
        assert restored.get_all() == history.get_all()

        version = restored.append_version({"title": "T", "content": "a b c d"})
        assert version.version_number == 4
        assert version.prev == 3
        assert_chain(restored, 4)

    def test_unsorted_versions_are_accepted(self, history):
        for text in ["a", "b", "c"]:
            history.append_version({"content": text})
        document = history.to_document()
        document.versions.reverse()

        restored = VersionHistory.from_document(document)
        assert [v.version_number for v in restored.get_all()] == [1, 2, 3]

    def test_empty_document(self):
        restored = VersionHistory.from_document(TaskDocument(task_id="empty"))
        assert restored.is_empty

    def test_duplicate_version_number(self, history):
        history.append_version({"content": "a"})
        history.append_version({"content": "b"})
        document = history.to_document()
        document.versions[1] = document.versions[1].model_copy(update={"version_number": 1})

        with pytest.raises(ConcurrencyViolation):
            VersionHistory.from_document(document)

    def test_broken_next_pointer(self, history):
        history.append_version({"content": "a"})
        history.append_version({"content": "b"})
        document = history.to_document()
        document.versions[0] = document.versions[0].model_copy(update={"next": None})

        with pytest.raises(ConcurrencyViolation):
            VersionHistory.from_document(document)

    def test_count_mismatch(self, history):
        history.append_version({"content": "a"})
        document = history.to_document().model_copy(update={"version_count": 2})

        with pytest.raises(ConcurrencyViolation):
            VersionHistory.from_document(document)

    def test_timestamps_out_of_order(self, history):
        history.append_version({"content": "a"})
        history.append_version({"content": "b"})
        document = history.to_document()
        document.versions[1] = document.versions[1].model_copy(
            update={"created_at": START - timedelta(days=1)}
        )

        with pytest.raises(ConcurrencyViolation):
            VersionHistory.from_document(document)
