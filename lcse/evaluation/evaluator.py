# ----------------------------------------------------------------------
# evaluator.py
#
# Standardized leave-one-block-out evaluation and result export.
# ----------------------------------------------------------------------

import threading
import numpy as np
import pandas as pd
from pathlib import Path
from typing import Dict, Optional, Union, Any
from datetime import datetime

from ..config import ExperimentConfig
from ..data.containers import SSVEPDataContainer
from .cross_validation import cross_validate_blocks
from .metrics import compute_confusion_matrix

FOLD_COLUMNS = ['block', 'failed', 'accuracy', 'balanced_accuracy', 'kappa', 'itr', 'error']


class ModelEvaluator:
    """
    Leave-one-block-out evaluation of LCSE for one subject.

    Runs the cross-validation, turns the fold results into a DataFrame
    and writes CSV files and text reports.

    Args:
        config: Experiment configuration
        output_dir: Directory to save results (optional)

    Example:
        >>> evaluator = ModelEvaluator(ExperimentConfig(buffer_length=0.5))
        >>> results = evaluator.evaluate(windowed_data)
        >>> evaluator.save_results(results, 'S1_lcse.csv')
    """

    def __init__(
        self,
        config: Optional[ExperimentConfig] = None,
        output_dir: Optional[Union[str, Path]] = None
    ):
        self.config = config or ExperimentConfig()
        self.output_dir = Path(output_dir) if output_dir else None

    def evaluate(
        self,
        data: SSVEPDataContainer,
        stop_event: Optional[threading.Event] = None,
        verbose: bool = True
    ) -> Dict[str, Any]:
        """
        Cross-validate on windowed data.

        Args:
            data: Channel-selected, windowed recording
            stop_event: Optional cancellation flag
            verbose: Whether to print progress

        Returns:
            Results dictionary from cross_validate_blocks
        """
        return cross_validate_blocks(
            data,
            self.config,
            stop_event=stop_event,
            return_predictions=True,
            verbose=verbose
        )

    @staticmethod
    def to_dataframe(results: Dict[str, Any]) -> pd.DataFrame:
        """
        One row per fold: held-out block, status, metrics and error.

        Args:
            results: Results dictionary from cross_validate_blocks

        Returns:
            DataFrame sorted by held-out block
        """
        records = []
        for details in results['fold_details']:
            record = {
                'block': details['block'] + 1,
                'failed': details['failed'],
                'accuracy': details.get('accuracy', np.nan),
                'balanced_accuracy': details.get('balanced_accuracy', np.nan),
                'kappa': details.get('kappa', np.nan),
                'itr': details.get('itr', np.nan),
                'error': details.get('error', ''),
            }
            records.append(record)

        df = pd.DataFrame(records, columns=FOLD_COLUMNS)
        return df.sort_values('block').reset_index(drop=True)

    @staticmethod
    def confusion_matrix(
        results: Dict[str, Any],
        normalize: Optional[str] = None
    ) -> pd.DataFrame:
        """
        Confusion matrix pooled over all completed folds.

        Every fold tests one trial per target, so the true labels of a fold
        are 1..n_targets in order.

        Args:
            results: Results dictionary from cross_validate_blocks, run with
                return_predictions=True
            normalize: Normalization mode ('true', 'pred', 'all', or None)

        Returns:
            DataFrame indexed by true target, one column per predicted target
        """
        if 'predictions' not in results:
            raise ValueError("Results carry no predictions; run with return_predictions=True")

        predictions = results['predictions']
        if not predictions:
            return pd.DataFrame()

        labels = np.arange(1, len(predictions[0]) + 1)
        y_true = np.concatenate([labels for _ in predictions])
        y_pred = np.concatenate(predictions)

        cm = compute_confusion_matrix(y_true, y_pred, normalize=normalize, labels=labels)
        return pd.DataFrame(
            cm,
            index=pd.Index(labels, name='true'),
            columns=pd.Index(labels, name='predicted')
        )

    def save_results(
        self,
        results: Union[Dict, pd.DataFrame],
        filename: str = "evaluation_results.csv",
        output_dir: Optional[Union[str, Path]] = None
    ) -> Path:
        """
        Save fold results to CSV.

        Args:
            results: Either a results dict or a DataFrame from to_dataframe
            filename: Output filename
            output_dir: Directory to save to (uses self.output_dir if not provided)

        Returns:
            Path to saved file
        """
        output_dir = Path(output_dir) if output_dir else self.output_dir
        if output_dir is None:
            output_dir = Path(".")

        output_dir.mkdir(parents=True, exist_ok=True)
        filepath = output_dir / filename

        df = results if isinstance(results, pd.DataFrame) else self.to_dataframe(results)
        df.to_csv(filepath, index=False)

        return filepath

    def create_report(
        self,
        results: Dict[str, Any],
        model_name: str = "LCSE",
        include_timestamp: bool = True
    ) -> str:
        """
        Create a text report of cross-validation results.

        Args:
            results: Results dictionary from cross_validate_blocks
            model_name: Name of the model
            include_timestamp: Whether to include timestamp

        Returns:
            Formatted report string
        """
        config = self.config
        lines = []
        lines.append("=" * 60)
        lines.append(f"EVALUATION REPORT: {model_name}")
        if include_timestamp:
            lines.append(f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
        lines.append("=" * 60)

        lines.append(f"Window: {config.buffer_length:.2f}s, "
                     f"selection time: {config.selection_time:.2f}s")
        lines.append(f"Sub-bands: {config.effective_subbands}, "
                     f"reconstructed channels: {config.n_recon_channels}")

        lines.append("\nFolds:")
        df = self.to_dataframe(results)
        for _, row in df.iterrows():
            if row['failed']:
                lines.append(f"  block {row['block']}: FAILED ({row['error']})")
            else:
                lines.append(f"  block {row['block']}: accuracy {row['accuracy']:.4f}, "
                             f"kappa {row['kappa']:.4f}, "
                             f"ITR {row['itr']:.2f} bits/min")

        lines.append("\nSummary:")
        lines.append(f"  Mean accuracy: {results['mean_score']:.4f} ± {results['std_score']:.4f}")
        lines.append(f"  Mean ITR: {results['mean_itr']:.2f} bits/min")
        if results['failed_folds']:
            failed = ", ".join(str(b + 1) for b in results['failed_folds'])
            lines.append(f"  Failed folds (blocks): {failed}")
        if results['cancelled']:
            lines.append("  Cancelled before all folds completed")

        if results.get('predictions'):
            cm = self.confusion_matrix(results)
            errors = [
                (true, pred, int(cm.loc[true, pred]))
                for true in cm.index for pred in cm.columns
                if true != pred and cm.loc[true, pred] > 0
            ]
            lines.append("\nConfusions (true -> predicted):")
            if errors:
                for true, pred, count in sorted(errors, key=lambda e: -e[2]):
                    lines.append(f"  target {true} -> {pred}: {count}x")
            else:
                lines.append("  none")

        lines.append("\n" + "=" * 60)
        return "\n".join(lines)
