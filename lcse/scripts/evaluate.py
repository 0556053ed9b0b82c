#!/usr/bin/env python
# ----------------------------------------------------------------------
# evaluate.py
#
# Leave-one-block-out evaluation of LCSE on one benchmark subject.
# ----------------------------------------------------------------------

import argparse
from pathlib import Path

import numpy as np

from ..config import (
    RESULTS_DIR, SAMPLING_RATE, BUFFER_LENGTH, N_SUBBANDS, N_RECON_CHANNELS,
    OCCIPITAL_CHANNELS, GAZE_SHIFT_TIME, MAT_VARIABLE_NAME, ExperimentConfig,
)
from ..data.loader import load_benchmark_mat
from ..data.preprocessor import Preprocessor
from ..evaluation.evaluator import ModelEvaluator
from ..exceptions import LCSEError


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Evaluate LCSE on an SSVEP benchmark subject (leave-one-block-out)"
    )

    parser.add_argument(
        "--mat-file", "-m",
        type=str,
        required=True,
        help="Path to the subject's .mat file (e.g. S1.mat)"
    )

    parser.add_argument(
        "--variable",
        type=str,
        default=MAT_VARIABLE_NAME,
        help="Name of the data variable in the .mat file"
    )

    parser.add_argument(
        "--sampling-rate",
        type=int,
        default=SAMPLING_RATE,
        help="Sampling rate of the recording in Hz"
    )

    parser.add_argument(
        "--buffer-length", "-b",
        type=float,
        default=BUFFER_LENGTH,
        help="Analysis window length in seconds"
    )

    parser.add_argument(
        "--gaze-shift",
        type=float,
        default=GAZE_SHIFT_TIME,
        help="Gaze shifting time in seconds (added to the window for ITR)"
    )

    parser.add_argument(
        "--subbands", "-k",
        type=int,
        default=N_SUBBANDS,
        help="Number of filter-bank sub-bands (1-7)"
    )

    parser.add_argument(
        "--no-filter-bank",
        action="store_true",
        help="Disable the filter bank (single broadband sub-band)"
    )

    parser.add_argument(
        "--recon-channels", "-r",
        type=int,
        default=N_RECON_CHANNELS,
        help="Number of reconstructed channels (at most n_blocks - 2)"
    )

    parser.add_argument(
        "--channels", "-c",
        type=int,
        nargs="+",
        default=list(OCCIPITAL_CHANNELS),
        help="0-based channel indices to use (default: 9 occipital channels)"
    )

    parser.add_argument(
        "--jobs", "-j",
        type=int,
        default=1,
        help="Number of folds to run in parallel"
    )

    parser.add_argument(
        "--output", "-o",
        type=str,
        default=None,
        help="Output directory for results"
    )

    parser.add_argument(
        "--plot",
        action="store_true",
        help="Save a per-fold accuracy/ITR figure and a heatmap of the fold-averaged scores"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose output"
    )

    return parser, parser.parse_args(argv)


def main(argv=None):
    parser, args = parse_args(argv)

    try:
        config = ExperimentConfig(
            sampling_rate=args.sampling_rate,
            buffer_length=args.buffer_length,
            gaze_shift_time=args.gaze_shift,
            channels=args.channels,
            use_filter_bank=not args.no_filter_bank,
            n_subbands=args.subbands,
            n_recon_channels=args.recon_channels,
            n_jobs=args.jobs,
        )

        print("=" * 60)
        print("LCSE Leave-One-Block-Out Evaluation")
        print("=" * 60)
        print(f"Data: {args.mat_file}")
        print(f"Window: {config.buffer_length}s, selection time: {config.selection_time}s")
        print(f"Sub-bands: {config.effective_subbands}, "
              f"reconstructed channels: {config.n_recon_channels}")
        print("=" * 60)

        print("\n[1/3] Loading data...")
        data = load_benchmark_mat(args.mat_file, variable=args.variable, sfreq=args.sampling_rate)
        print(f"  {data}")

        print("\n[2/3] Selecting channels and windowing...")
        preprocessor = Preprocessor.from_config(config)
        windowed = preprocessor.process(data)
        print(f"  Window samples [{preprocessor.window_start}, "
              f"{preprocessor.window_start + preprocessor.window_length})")
        print(f"  Data shape: {windowed.shape}")

        print("\n[3/3] Cross-validation...")
        evaluator = ModelEvaluator(config, output_dir=args.output or RESULTS_DIR)
        results = evaluator.evaluate(windowed, verbose=args.verbose)
    except (LCSEError, FileNotFoundError) as exc:
        parser.exit(1, f"Error: {exc}\n")

    print("\n" + evaluator.create_report(results, model_name=data.participant_id))

    if args.output:
        output_dir = Path(args.output)
        stem = f"{data.participant_id}_lcse_{config.buffer_length:g}s"

        csv_path = evaluator.save_results(results, f"{stem}.csv", output_dir)
        print(f"\nResults saved to: {csv_path}")

        if results['predictions']:
            confusion_path = output_dir / f"{stem}_confusion.csv"
            evaluator.confusion_matrix(results).to_csv(confusion_path)
            print(f"Confusion matrix saved to: {confusion_path}")

        results_file = output_dir / f"{stem}_results.npy"
        np.save(results_file, results, allow_pickle=True)
        print(f"Raw results saved to: {results_file}")

        if args.plot and results['scores']:
            from ..utils.visualization import plot_cv_results, plot_score_matrix
            figure_path = output_dir / f"{stem}_folds.png"
            plot_cv_results(
                results,
                title=f"LCSE: {data.participant_id}",
                save_path=figure_path
            )
            print(f"Figure saved to: {figure_path}")

            scores_path = output_dir / f"{stem}_scores.png"
            plot_score_matrix(
                np.mean(results['score_matrices'], axis=0),
                freqs=data.freqs,
                title=f"LCSE scores, mean over folds: {data.participant_id}",
                save_path=scores_path
            )
            print(f"Figure saved to: {scores_path}")

    return 0 if not results['failed_folds'] else 2


if __name__ == "__main__":
    raise SystemExit(main())
