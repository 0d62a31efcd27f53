"""Window-range accuracy evaluation.

Drives one sketch over a StreamSnapshot and measures how well it answers
per-window and per-range questions about the most recent D windows.

Metric families:
- bf_test_*: membership sketches (false positive rate)
- cnt_test_*: frequency sketches (average relative / absolute error)
- *_multi_*: every contiguous range [l, r] of the last D windows, bucketed by
  range length r - l + 1
- *_qcnt: probes spent per range query, bucketed by range length
- *_stability: error measured after each window is ingested

Per-bucket metrics return a 1-indexed list of D + 1 floats (index 0 unused);
weighted_score folds such a list into one number, favouring recent windows
and short ranges.

Two failure modes are distinguished. A present element answered as absent
(or with a zero estimate) is a broken sketch: FalseNegativeError is raised
and the evaluation stops. A bucket with no qualifying elements is only a
property of the data: it is reported as 0.0 and contributes nothing.

Example:
    ctx = EvaluationContext(snapshot, EvaluationConfig(win_num=32, ds_win_num=8, memory=4096))
    fpr = bf_test_fpr(ctx, build_sbf(ctx.config.memory))
    score = weighted_score(fpr)
"""

from __future__ import annotations

import logging
from collections.abc import Hashable, Iterator, MutableSequence, Sequence
from dataclasses import dataclass
from typing import NamedTuple

from stairbench.config import EvaluationConfig
from stairbench.sketching.base import WindowedSketch
from stairbench.snapshot import StreamSnapshot

logger = logging.getLogger(__name__)

# Below this fraction of the budget a sketch is reported as under-using it.
UNDERUSE_RATIO = 0.5


class FalseNegativeError(AssertionError):
    """A sketch denied an element that truly occurred.

    Attributes:
        window: Window (or first window of the range) that was queried.
        element: The element that was denied.
        right: Last window of the range, or None for single-window queries.
        expected: True occurrence count in the window or range.
    """

    def __init__(self, window: int, element: Hashable, expected: int, right: int | None = None):
        self.window = window
        self.element = element
        self.expected = expected
        self.right = right
        where = f"window {window}" if right is None else f"windows [{window}, {right}]"
        super().__init__(
            f"false negative: {element!r} occurs {expected} time(s) in {where} "
            f"but the sketch reports it absent"
        )


@dataclass(frozen=True)
class EvaluationContext:
    """Snapshot plus configuration handed to every evaluation entry point.

    Raises:
        ValueError: If the config's win_num disagrees with the snapshot.
    """

    snapshot: StreamSnapshot
    config: EvaluationConfig

    def __post_init__(self) -> None:
        if self.config.win_num != self.snapshot.win_num:
            raise ValueError(
                f"config.win_num={self.config.win_num} but the snapshot has "
                f"{self.snapshot.win_num} windows"
            )

    @property
    def win_num(self) -> int:
        return self.config.win_num

    @property
    def ds_win_num(self) -> int:
        return self.config.ds_win_num


# === Buffers and guards ===


def _buffer(size: int, out: MutableSequence[float] | None) -> MutableSequence[float]:
    """Zeroed 1-indexed buffer of size + 1 slots, reusing ``out`` if given."""
    if out is None:
        return [0.0] * (size + 1)
    if len(out) < size + 1:
        raise ValueError(f"output buffer needs {size + 1} slots, got {len(out)}")
    for i in range(size + 1):
        out[i] = 0.0
    return out


def _normalize(values: MutableSequence[float], counts: Sequence[int], label: str) -> None:
    """Divide each bucket by its qualifying count; empty buckets become 0.0."""
    for i in range(1, len(counts)):
        if counts[i]:
            values[i] /= counts[i]
        else:
            values[i] = 0.0
            logger.debug("%s: no qualifying elements for bucket %d, reporting 0", label, i)


def _ratio(num: float, den: int, label: str, bucket: int) -> float:
    if den == 0:
        logger.debug("%s: no qualifying elements for bucket %d, reporting 0", label, bucket)
        return 0.0
    return num / den


def _require_present(answer: int, window: int, element: Hashable, expected: int,
                     right: int | None = None) -> None:
    if not answer:
        raise FalseNegativeError(window, element, expected, right)


# === Ingestion ===


def _ingest_window(ctx: EvaluationContext, sketch: WindowedSketch, window: int) -> None:
    snapshot = ctx.snapshot
    if sketch.add_delta_implemented():
        for history in snapshot.elems:
            delta = history.delta(window)
            if delta > 0:
                sketch.add(window, history.element, delta)
    else:
        for element in snapshot.win_data[window]:
            sketch.add(window, element)


def build_sketch(ctx: EvaluationContext, sketch: WindowedSketch) -> None:
    """Feed the whole snapshot into ``sketch``.

    Delta-capable sketches get one add per element and window with a
    positive delta; others are replayed every raw occurrence in order.
    """
    mode = "delta" if sketch.add_delta_implemented() else "replay"
    logger.debug("Ingesting %d windows into %s (%s)", ctx.win_num, type(sketch).__name__, mode)
    for window in range(1, ctx.win_num + 1):
        _ingest_window(ctx, sketch, window)
    check_memory(ctx, sketch)


def _replay_all(ctx: EvaluationContext, sketch: WindowedSketch) -> None:
    for window in range(1, ctx.win_num + 1):
        for element in ctx.snapshot.win_data[window]:
            sketch.add(window, element)


def check_memory(ctx: EvaluationContext, sketch: WindowedSketch) -> float:
    """Log the sketch's footprint against the configured budget.

    Returns:
        used / budget.
    """
    used = sketch.memory()
    budget = ctx.config.memory
    ratio = used / budget
    logger.info("Memory %d/%d (%s)", used, budget, type(sketch).__name__)
    if used > budget:
        logger.warning("%s exceeds its budget: %d > %d bytes", type(sketch).__name__, used, budget)
    elif ratio < UNDERUSE_RATIO:
        logger.warning("%s uses only %.0f%% of its budget", type(sketch).__name__, ratio * 100)
    return ratio


# === Single-window metrics ===


def _window_fpr(ctx: EvaluationContext, sketch: WindowedSketch, window: int) -> float:
    fp = tot = 0
    for history in ctx.snapshot.elems:
        delta = history.delta(window)
        answer = sketch.query(window, history.element)
        if delta == 0:
            tot += 1
            if answer:
                fp += 1
        else:
            _require_present(answer, window, history.element, delta)
    return _ratio(fp, tot, "fpr", window)


def _window_error(ctx: EvaluationContext, sketch: WindowedSketch, window: int,
                  relative: bool) -> float:
    err = 0.0
    tot = 0
    for history in ctx.snapshot.elems:
        real = history.delta(window)
        if real <= 0:
            continue
        ans = sketch.query(window, history.element)
        _require_present(ans, window, history.element, real)
        err += abs(real - ans) / real if relative else abs(real - ans)
        tot += 1
    return _ratio(err, tot, "are" if relative else "aae", window)


def bf_test_fpr(ctx: EvaluationContext, sketch: WindowedSketch,
                fpr: MutableSequence[float] | None = None) -> MutableSequence[float]:
    """False positive rate of each of the last D windows.

    Only elements absent from a window count towards its rate; present
    elements must query positive.

    Raises:
        FalseNegativeError: If a present element queries negative.
    """
    build_sketch(ctx, sketch)
    d = ctx.ds_win_num
    fpr = _buffer(d, fpr)
    start = ctx.config.first_scored_window
    for window in range(start, ctx.win_num + 1):
        fpr[window - start + 1] = _window_fpr(ctx, sketch, window)
    return fpr


def cnt_test_are(ctx: EvaluationContext, sketch: WindowedSketch,
                 are: MutableSequence[float] | None = None) -> MutableSequence[float]:
    """Average relative error of each of the last D windows.

    Ground truth comes from the window frequency tables.

    Raises:
        FalseNegativeError: If a present element is estimated at zero.
    """
    build_sketch(ctx, sketch)
    d = ctx.ds_win_num
    are = _buffer(d, are)
    start = ctx.config.first_scored_window
    for window in range(start, ctx.win_num + 1):
        err = 0.0
        tot = 0
        for element, real in ctx.snapshot.win_set[window].items():
            ans = sketch.query(window, element)
            _require_present(ans, window, element, real)
            err += abs(real - ans) / real
            tot += 1
        are[window - start + 1] = _ratio(err, tot, "are", window)
    return are


def cnt_test_aae(ctx: EvaluationContext, sketch: WindowedSketch,
                 aae: MutableSequence[float] | None = None) -> MutableSequence[float]:
    """Average absolute error of each of the last D windows.

    Raises:
        FalseNegativeError: If a present element is estimated at zero.
    """
    build_sketch(ctx, sketch)
    d = ctx.ds_win_num
    aae = _buffer(d, aae)
    start = ctx.config.first_scored_window
    for window in range(start, ctx.win_num + 1):
        aae[window - start + 1] = _window_error(ctx, sketch, window, relative=False)
    return aae


# === Range metrics ===


class WindowRange(NamedTuple):
    """One contiguous range of the last D windows, in 1..D coordinates.

    Attributes:
        left, right: Range bounds, 1 <= left <= right <= D.
        length: right - left + 1.
        step: Decay step 1 / (D - right + 1) contributed by extending the
            range to ``right``; the full range [1, D] has step 1.
        weight: Steps accumulated from ``left`` up to ``right``; this is
            what range errors are multiplied by.
    """

    left: int
    right: int
    length: int
    step: float
    weight: float


def enumerate_ranges(d: int) -> Iterator[WindowRange]:
    """All D(D+1)/2 ranges, grouped by left bound, right bound ascending."""
    for left in range(1, d + 1):
        weight = 0.0
        for right in range(left, d + 1):
            step = 1.0 / (d - right + 1)
            weight += step
            yield WindowRange(left, right, right - left + 1, step, weight)


def bf_test_multi_fpr(ctx: EvaluationContext, sketch: WindowedSketch,
                      fpr: MutableSequence[float] | None = None) -> MutableSequence[float]:
    """Weighted false positive rate of range queries, bucketed by range length.

    For every range of the last D windows, each element absent throughout the
    range is asked through query_multiple_windows; a positive answer adds the
    range's decay weight to its length bucket. Buckets are divided by the
    number of (range, element) pairs they saw.
    """
    build_sketch(ctx, sketch)
    d = ctx.ds_win_num
    fpr = _buffer(d, fpr)
    tot = [0] * (d + 1)
    start = ctx.win_num - d
    elems = ctx.snapshot.elems

    for rng in enumerate_ranges(d):
        lo, hi = start + rng.left, start + rng.right
        for history in elems:
            if history.cnt[hi] == history.cnt[lo - 1]:
                tot[rng.length] += 1
                if sketch.query_multiple_windows(lo, hi, history.element):
                    fpr[rng.length] += rng.weight

    _normalize(fpr, tot, "multi_fpr")
    return fpr


def _prefix_estimates(ctx: EvaluationContext, sketch: WindowedSketch) -> list[list[int]]:
    """Per element, prefix sums of per-window estimates over the last D windows."""
    d = ctx.ds_win_num
    start = ctx.win_num - d
    sums = []
    for history in ctx.snapshot.elems:
        row = [0] * (d + 1)
        for i in range(1, d + 1):
            row[i] = row[i - 1] + sketch.query(start + i, history.element)
        sums.append(row)
    return sums


def _multi_error(ctx: EvaluationContext, sketch: WindowedSketch,
                 out: MutableSequence[float] | None, relative: bool) -> MutableSequence[float]:
    build_sketch(ctx, sketch)
    d = ctx.ds_win_num
    out = _buffer(d, out)
    tot = [0] * (d + 1)
    start = ctx.win_num - d
    elems = ctx.snapshot.elems
    sums = _prefix_estimates(ctx, sketch)

    for rng in enumerate_ranges(d):
        lo, hi = start + rng.left, start + rng.right
        for k, history in enumerate(elems):
            real = history.between(lo, hi)
            if real <= 0:
                continue
            ans = sums[k][rng.right] - sums[k][rng.left - 1]
            _require_present(ans, lo, history.element, real, hi)
            tot[rng.length] += 1
            err = abs(real - ans)
            out[rng.length] += rng.weight * (err / real if relative else err)

    _normalize(out, tot, "multi_are" if relative else "multi_aae")
    return out


def cnt_test_multi_are(ctx: EvaluationContext, sketch: WindowedSketch,
                       are: MutableSequence[float] | None = None) -> MutableSequence[float]:
    """Weighted relative error of range sums, bucketed by range length.

    Range estimates are prefix sums of per-window queries. Only elements
    whose true count changes inside the range qualify.

    Raises:
        FalseNegativeError: If a range with occurrences is estimated at zero.
    """
    return _multi_error(ctx, sketch, are, relative=True)


def cnt_test_multi_aae(ctx: EvaluationContext, sketch: WindowedSketch,
                       aae: MutableSequence[float] | None = None) -> MutableSequence[float]:
    """Weighted absolute error of range sums, bucketed by range length.

    Raises:
        FalseNegativeError: If a range with occurrences is estimated at zero.
    """
    return _multi_error(ctx, sketch, aae, relative=False)


# === Query cost ===


def _range_cost(ctx: EvaluationContext, sketch: WindowedSketch,
                out: MutableSequence[float] | None, absent: bool) -> MutableSequence[float]:
    build_sketch(ctx, sketch)
    d = ctx.ds_win_num
    out = _buffer(d, out)
    tot = [0] * (d + 1)
    start = ctx.win_num - d

    for rng in enumerate_ranges(d):
        lo, hi = start + rng.left, start + rng.right
        for history in ctx.snapshot.elems:
            changed = history.cnt[hi] > history.cnt[lo - 1]
            if changed == absent:
                continue
            tot[rng.length] += 1
            before = sketch.qcnt()
            sketch.query_multiple_windows(lo, hi, history.element)
            out[rng.length] += sketch.qcnt() - before

    _normalize(out, tot, "qcnt")
    return out


def bf_test_qcnt(ctx: EvaluationContext, sketch: WindowedSketch,
                 aqcnt: MutableSequence[float] | None = None) -> MutableSequence[float]:
    """Average probes per range query for elements absent from the range."""
    return _range_cost(ctx, sketch, aqcnt, absent=True)


def cnt_test_qcnt(ctx: EvaluationContext, sketch: WindowedSketch,
                  aqcnt: MutableSequence[float] | None = None) -> MutableSequence[float]:
    """Average probes per range query for elements present in the range."""
    return _range_cost(ctx, sketch, aqcnt, absent=False)


# === Stability ===


def bf_test_stability(ctx: EvaluationContext, sketch: WindowedSketch,
                      fpr: MutableSequence[float] | None = None) -> MutableSequence[float]:
    """False positive rate of each window right after it is ingested.

    Returns a W + 1 list (index i is window i). The final footprint is
    reported against the budget.
    """
    fpr = _buffer(ctx.win_num, fpr)
    for window in range(1, ctx.win_num + 1):
        _ingest_window(ctx, sketch, window)
        fpr[window] = _window_fpr(ctx, sketch, window)
    check_memory(ctx, sketch)
    return fpr


def cnt_test_stability(ctx: EvaluationContext, sketch: WindowedSketch,
                       are: MutableSequence[float] | None = None) -> MutableSequence[float]:
    """Average relative error of each window right after it is ingested.

    Returns a W + 1 list (index i is window i).
    """
    are = _buffer(ctx.win_num, are)
    for window in range(1, ctx.win_num + 1):
        _ingest_window(ctx, sketch, window)
        are[window] = _window_error(ctx, sketch, window, relative=True)
    check_memory(ctx, sketch)
    return are


# === Scores ===


def weighted_score(score: Sequence[float], ds_win_num: int | None = None) -> float:
    """Fold a 1-indexed per-bucket array into one recency-weighted number.

    sum(score[i] / (D - i + 1) for i in 1..D), with D defaulting to
    len(score) - 1.
    """
    d = len(score) - 1 if ds_win_num is None else ds_win_num
    if d >= len(score):
        raise ValueError(f"score has {len(score) - 1} buckets, need {d}")
    ret = 0.0
    for i in range(1, d + 1):
        ret += score[i] / (d - i + 1)
    return ret


def bf_test_wfpr(ctx: EvaluationContext, sketch: WindowedSketch) -> float:
    return weighted_score(bf_test_fpr(ctx, sketch), ctx.ds_win_num)


def cnt_test_ware(ctx: EvaluationContext, sketch: WindowedSketch) -> float:
    return weighted_score(cnt_test_are(ctx, sketch), ctx.ds_win_num)


def cnt_test_waae(ctx: EvaluationContext, sketch: WindowedSketch) -> float:
    return weighted_score(cnt_test_aae(ctx, sketch), ctx.ds_win_num)


# === Window-count experiments ===
# These always replay raw occurrences, whatever the sketch declares, and
# read ground truth from the window frequency tables.


def bf_test_win_num_wfpr(ctx: EvaluationContext, sketch: WindowedSketch) -> float:
    """Weighted FPR over the last D windows, testing every distinct element."""
    _replay_all(ctx, sketch)
    d = ctx.ds_win_num
    fpr = _buffer(d, None)
    start = ctx.win_num - d
    for i in range(1, d + 1):
        present = ctx.snapshot.win_set[start + i]
        fp = tot = 0
        for element in ctx.snapshot.elem_set:
            if present.get(element, 0) == 0:
                tot += 1
                if sketch.query(start + i, element):
                    fp += 1
        fpr[i] = _ratio(fp, tot, "win_num_fpr", start + i)
    return weighted_score(fpr, d)


def _win_num_error(ctx: EvaluationContext, sketch: WindowedSketch, relative: bool) -> float:
    _replay_all(ctx, sketch)
    d = ctx.ds_win_num
    out = _buffer(d, None)
    start = ctx.win_num - d
    for i in range(1, d + 1):
        err = 0.0
        tot = 0
        for element, real in ctx.snapshot.win_set[start + i].items():
            ans = sketch.query(start + i, element)
            err += abs(real - ans) / real if relative else abs(real - ans)
            tot += 1
        out[i] = _ratio(err, tot, "win_num_error", start + i)
    return weighted_score(out, d)


def cnt_test_win_num_ware(ctx: EvaluationContext, sketch: WindowedSketch) -> float:
    """Weighted ARE over the last D windows after a full raw replay."""
    return _win_num_error(ctx, sketch, relative=True)


def cnt_test_win_num_waae(ctx: EvaluationContext, sketch: WindowedSketch) -> float:
    """Weighted AAE over the last D windows after a full raw replay."""
    return _win_num_error(ctx, sketch, relative=False)
