"""Tests for StreamSnapshot construction and accessors."""

from collections import Counter

import pandas as pd
import pytest

from stairbench.snapshot import ElementHistory, StreamSnapshot, load_snapshot


@pytest.fixture
def small_snapshot() -> StreamSnapshot:
    return StreamSnapshot.from_windows([["a", "b", "a"], [], ["b", "c"]])


class TestFromWindows:
    """Tests for StreamSnapshot.from_windows."""

    def test_window_count(self, small_snapshot):
        """win_num counts the given windows, not the baseline."""
        assert small_snapshot.win_num == 3

    def test_cumulative_counts(self, small_snapshot):
        """cnt[i] is the running total over windows 1..i."""
        by_element = {h.element: h.cnt for h in small_snapshot.elems}

        assert by_element["a"] == (0, 2, 2, 2)
        assert by_element["b"] == (0, 1, 1, 2)
        assert by_element["c"] == (0, 0, 0, 1)

    def test_elements_in_first_seen_order(self, small_snapshot):
        """Elements keep first-occurrence order."""
        assert [h.element for h in small_snapshot.elems] == ["a", "b", "c"]

    def test_deltas(self, small_snapshot):
        """delta() is the per-window occurrence count."""
        assert small_snapshot.delta(0, 1) == 2
        assert small_snapshot.delta(0, 2) == 0
        assert small_snapshot.delta(1, 3) == 1

    def test_window_tables(self, small_snapshot):
        """win_data keeps raw order, win_set exact counts, index 0 empty."""
        assert small_snapshot.win_data[0] == ()
        assert small_snapshot.win_data[1] == ("a", "b", "a")
        assert small_snapshot.win_set[1] == Counter({"a": 2, "b": 1})
        assert small_snapshot.win_set[2] == Counter()

    def test_elem_set(self, small_snapshot):
        """elem_set holds every distinct element."""
        assert small_snapshot.elem_set == frozenset({"a", "b", "c"})

    def test_validate_passes(self, small_snapshot):
        """A built snapshot satisfies its invariants."""
        small_snapshot.validate()

    def test_rejects_no_windows(self):
        """At least one window is required."""
        with pytest.raises(ValueError, match="at least one window"):
            StreamSnapshot.from_windows([])


class TestElementHistory:
    """Tests for ElementHistory helpers."""

    def test_between(self):
        """between() counts occurrences in an inclusive range."""
        history = ElementHistory("x", (0, 1, 1, 2, 2, 3))

        assert history.between(1, 5) == 3
        assert history.between(2, 2) == 0
        assert history.between(3, 4) == 1


class TestValidate:
    """Tests for StreamSnapshot.validate on hand-built inputs."""

    def test_decreasing_counts_rejected(self):
        """A decreasing count table violates the invariant."""
        snapshot = StreamSnapshot(
            elems=[ElementHistory("a", (0, 2, 1))],
            win_data=[(), ("a", "a"), ()],
            win_set=[Counter(), Counter({"a": 2}), Counter()],
            elem_set=frozenset({"a"}),
        )

        with pytest.raises(ValueError, match="decreases"):
            snapshot.validate()

    def test_unknown_element_rejected(self):
        """Window tables may only reference known elements."""
        snapshot = StreamSnapshot(
            elems=[ElementHistory("a", (0, 1))],
            win_data=[(), ("a", "z")],
            win_set=[Counter(), Counter({"a": 1, "z": 1})],
            elem_set=frozenset({"a"}),
        )

        with pytest.raises(ValueError, match="unknown"):
            snapshot.validate()


class TestFromDataFrame:
    """Tests for pandas-based construction."""

    def test_builds_from_long_table(self):
        """Rows become occurrences in their window."""
        frame = pd.DataFrame({"window": [1, 1, 2, 3], "element": ["a", "b", "a", "a"]})

        snapshot = StreamSnapshot.from_dataframe(frame)

        assert snapshot.win_num == 3
        assert snapshot.win_set[1] == Counter({"a": 1, "b": 1})
        assert snapshot.elems[0].cnt == (0, 1, 2, 3)

    def test_missing_windows_are_empty(self):
        """Windows with no rows, including trailing ones, stay empty."""
        frame = pd.DataFrame({"window": [1, 3], "element": ["a", "a"]})

        snapshot = StreamSnapshot.from_dataframe(frame, win_num=5)

        assert snapshot.win_num == 5
        assert snapshot.win_data[2] == ()
        assert snapshot.win_data[5] == ()
        assert snapshot.elems[0].cnt == (0, 1, 1, 2, 2, 2)

    def test_custom_column_names(self):
        """Column names are configurable."""
        frame = pd.DataFrame({"slot": [1, 2], "key": ["x", "y"]})

        snapshot = StreamSnapshot.from_dataframe(frame, window_col="slot", element_col="key")

        assert snapshot.elem_set == frozenset({"x", "y"})

    def test_missing_column(self):
        """A missing column is reported."""
        frame = pd.DataFrame({"window": [1]})

        with pytest.raises(ValueError, match="missing columns"):
            StreamSnapshot.from_dataframe(frame)

    def test_zero_window_rejected(self):
        """Windows are 1-based."""
        frame = pd.DataFrame({"window": [0, 1], "element": ["a", "b"]})

        with pytest.raises(ValueError, match="1-based"):
            StreamSnapshot.from_dataframe(frame)

    def test_win_num_too_small(self):
        """win_num below the largest window is rejected."""
        frame = pd.DataFrame({"window": [1, 4], "element": ["a", "b"]})

        with pytest.raises(ValueError, match="smaller"):
            StreamSnapshot.from_dataframe(frame, win_num=2)

    def test_round_trip_through_to_frame(self, small_snapshot):
        """to_frame lists exact per-window counts."""
        frame = small_snapshot.to_frame()

        assert set(frame.columns) == {"window", "element", "count"}
        assert frame["count"].sum() == 5
        assert 2 not in set(frame["window"])


class TestLoadSnapshot:
    """Tests for load_snapshot."""

    def test_loads_csv(self, tmp_path):
        """A CSV of occurrences becomes a snapshot."""
        path = tmp_path / "trace.csv"
        path.write_text("window,element\n1,10\n1,11\n2,10\n")

        snapshot = load_snapshot(path)

        assert snapshot.win_num == 2
        assert snapshot.elem_set == frozenset({"10", "11"})
        assert snapshot.win_set[2] == Counter({"10": 1})

    def test_loads_other_delimiters(self, tmp_path):
        """The delimiter is configurable."""
        path = tmp_path / "trace.tsv"
        path.write_text("window\telement\n1\tq\n3\tq\n")

        snapshot = load_snapshot(path, sep="\t")

        assert snapshot.win_num == 3
        assert snapshot.elems[0].cnt == (0, 1, 1, 2)
