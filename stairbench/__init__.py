"""stairbench: accuracy and cost evaluation of windowed sketches.

Compares approximate membership and frequency sketches over a stream cut into
numbered windows, on identical input and under identical metrics.

Example:
    import stairbench

    snapshot = stairbench.StreamSnapshot.from_windows(windows)
    cfg = stairbench.EvaluationConfig(win_num=snapshot.win_num, ds_win_num=8, memory=4096)
    ctx = stairbench.EvaluationContext(snapshot, cfg)

    fpr = stairbench.bf_test_fpr(ctx, stairbench.build_sbf(cfg.memory, cfg.level))
    print(stairbench.weighted_score(fpr))
"""

import logging

from stairbench.builders import (
    BUILDERS,
    build,
    build_exact_frequency,
    build_exact_membership,
    build_pbf,
    build_pcm,
    build_sbf,
    build_scm,
    build_scu,
)
from stairbench.config import EvaluationConfig
from stairbench.evaluation import (
    EvaluationContext,
    FalseNegativeError,
    WindowRange,
    bf_test_fpr,
    bf_test_multi_fpr,
    bf_test_qcnt,
    bf_test_stability,
    bf_test_wfpr,
    bf_test_win_num_wfpr,
    build_sketch,
    check_memory,
    cnt_test_aae,
    cnt_test_are,
    cnt_test_multi_aae,
    cnt_test_multi_are,
    cnt_test_qcnt,
    cnt_test_stability,
    cnt_test_waae,
    cnt_test_ware,
    cnt_test_win_num_waae,
    cnt_test_win_num_ware,
    enumerate_ranges,
    weighted_score,
)
from stairbench.experiment import METRICS, Trial, TrialResult, run_trial, run_trials
from stairbench.logging_config import (
    configure_from_env,
    disable_logging,
    enable_console_logging,
    enable_file_logging,
    enable_json_logging,
    set_level,
)
from stairbench.partition import StairLevel, partition
from stairbench.report import plot_scores, scores_frame, summary_frame, trial_scores_frame
from stairbench.snapshot import ElementHistory, StreamSnapshot, load_snapshot

# Silent unless the caller opts in through the logging helpers.
logging.getLogger("stairbench").addHandler(logging.NullHandler())

__version__ = "0.1.0"

__all__ = [
    "BUILDERS",
    "METRICS",
    "ElementHistory",
    "EvaluationConfig",
    "EvaluationContext",
    "FalseNegativeError",
    "StairLevel",
    "StreamSnapshot",
    "Trial",
    "TrialResult",
    "WindowRange",
    "bf_test_fpr",
    "bf_test_multi_fpr",
    "bf_test_qcnt",
    "bf_test_stability",
    "bf_test_wfpr",
    "bf_test_win_num_wfpr",
    "build",
    "build_exact_frequency",
    "build_exact_membership",
    "build_pbf",
    "build_pcm",
    "build_sbf",
    "build_scm",
    "build_scu",
    "build_sketch",
    "check_memory",
    "cnt_test_aae",
    "cnt_test_are",
    "cnt_test_multi_aae",
    "cnt_test_multi_are",
    "cnt_test_qcnt",
    "cnt_test_stability",
    "cnt_test_waae",
    "cnt_test_ware",
    "cnt_test_win_num_waae",
    "cnt_test_win_num_ware",
    "configure_from_env",
    "disable_logging",
    "enable_console_logging",
    "enable_file_logging",
    "enable_json_logging",
    "enumerate_ranges",
    "load_snapshot",
    "partition",
    "plot_scores",
    "run_trial",
    "run_trials",
    "scores_frame",
    "set_level",
    "summary_frame",
    "trial_scores_frame",
    "weighted_score",
]
