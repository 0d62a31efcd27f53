"""Stair sketches vs one-structure-per-window baselines.

Runs every membership and frequency design over the same windowed stream and
compares them on per-window error, range error and range query cost:

    membership:  stair Bloom (sbf)  vs  per-window Bloom (pbf)
    frequency:   stair CM (scm), stair CU (scu)  vs  per-window CM (pcm)

The stream is either loaded from a CSV of (window, element) rows or drawn
from a Zipf-like distribution, which is the shape of most real traces
(a few heavy hitters and a long tail).

Usage:
    python examples/sketch_comparison.py --memory 65536 --windows 64 --recent 16
    python examples/sketch_comparison.py --trace trace.csv --recent 8
"""

from __future__ import annotations

import random
from pathlib import Path

import stairbench
from stairbench import (
    EvaluationConfig,
    EvaluationContext,
    StreamSnapshot,
    Trial,
    TrialResult,
    load_snapshot,
    plot_scores,
    run_trials,
    summary_frame,
    trial_scores_frame,
)

MEMBERSHIP = {"stair": "sbf", "per-window": "pbf"}
FREQUENCY = {"stair-cm": "scm", "stair-cu": "scu", "per-window": "pcm"}

# metric -> (chart title, y label, log scale)
CHARTS = {
    "fpr": ("False positive rate per window", "FPR", False),
    "multi_fpr": ("Weighted FPR of range queries", "FPR", False),
    "bf_qcnt": ("Probes per range query (absent elements)", "probes", False),
    "are": ("Average relative error per window", "ARE", True),
    "multi_are": ("Weighted ARE of range sums", "ARE", True),
    "cnt_qcnt": ("Probes per range query (present elements)", "probes", False),
}


def zipf_stream(win_num: int, per_window: int, universe: int, skew: float, seed: int | None) -> StreamSnapshot:
    rng = random.Random(seed)
    population = list(range(universe))
    weights = [1.0 / (rank + 1) ** skew for rank in population]
    windows = [rng.choices(population, weights=weights, k=per_window) for _ in range(win_num)]
    return StreamSnapshot.from_windows(windows)


def build_trials() -> list[Trial]:
    trials = []
    for metric in ("fpr", "multi_fpr", "bf_qcnt"):
        trials += [Trial(name, builder, metric) for name, builder in MEMBERSHIP.items()]
    for metric in ("are", "multi_are", "cnt_qcnt"):
        trials += [Trial(name, builder, metric) for name, builder in FREQUENCY.items()]
    return trials


def print_summary(results: list[TrialResult]) -> None:
    print("\n" + "=" * 72)
    print("SKETCH COMPARISON")
    print("=" * 72)
    current = None
    for r in results:
        if r.metric != current:
            current = r.metric
            print(f"\n  {current}:")
        if r.ok:
            print(f"    {r.name:<12} score={r.score:>10.4f}  memory={r.memory:>8} B  "
                  f"time={r.elapsed_s:.2f}s")
        else:
            print(f"    {r.name:<12} ABORTED: {r.error}")
    print()


def visualize_results(results: list[TrialResult], output_dir: Path) -> None:
    output_dir.mkdir(parents=True, exist_ok=True)
    summary_frame(results).to_csv(output_dir / "summary.csv", index=False)
    for metric, (title, ylabel, logy) in CHARTS.items():
        frame = trial_scores_frame(results, metric)
        if frame.empty:
            continue
        frame.to_csv(output_dir / f"{metric}.csv")
        plot_scores(frame, output_dir / f"{metric}.png", title=title, ylabel=ylabel, logy=logy)


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Compare windowed sketch designs")
    parser.add_argument("--trace", type=str, default=None, help="CSV with window,element rows")
    parser.add_argument("--windows", type=int, default=32, help="Windows to generate (W)")
    parser.add_argument("--recent", type=int, default=8, help="Scored recent windows (D)")
    parser.add_argument("--memory", type=int, default=32 * 1024, help="Budget per sketch (bytes)")
    parser.add_argument("--level", type=int, default=3, help="Stair levels (K)")
    parser.add_argument("--per-window", type=int, default=500, help="Occurrences per window")
    parser.add_argument("--universe", type=int, default=2000, help="Distinct elements")
    parser.add_argument("--skew", type=float, default=1.1, help="Zipf exponent")
    parser.add_argument("--seed", type=int, default=42, help="Random seed (use -1 for random)")
    parser.add_argument("--output", type=str, default="output/sketch_comparison", help="Output directory")
    parser.add_argument("--no-viz", action="store_true", help="Skip chart generation")
    args = parser.parse_args()

    stairbench.enable_console_logging(level="INFO")

    if args.trace:
        snapshot = load_snapshot(args.trace)
    else:
        seed = None if args.seed == -1 else args.seed
        snapshot = zipf_stream(args.windows, args.per_window, args.universe, args.skew, seed)

    cfg = EvaluationConfig(
        win_num=snapshot.win_num,
        ds_win_num=min(args.recent, snapshot.win_num),
        memory=args.memory,
        level=args.level,
    )
    ctx = EvaluationContext(snapshot, cfg)

    print(f"Evaluating {snapshot!r}")
    print(f"  Budget: {cfg.memory} bytes, stair levels: {cfg.level}, scored windows: {cfg.ds_win_num}")

    results = run_trials(ctx, build_trials())
    print_summary(results)

    if not args.no_viz:
        output_dir = Path(args.output)
        visualize_results(results, output_dir)
        print(f"Charts saved to: {output_dir.absolute()}")
