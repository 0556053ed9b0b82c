# ----------------------------------------------------------------------
# visualization.py
#
# Plotting utilities for SSVEP classification results.
# ----------------------------------------------------------------------

import numpy as np
from typing import Dict, List, Optional, Tuple


def plot_cv_results(
    cv_results: Dict,
    title: str = "Leave-One-Block-Out Results",
    figsize: Tuple[int, int] = (10, 4),
    save_path: Optional[str] = None
):
    """
    Plot per-fold accuracy and ITR.

    Args:
        cv_results: Dictionary from cross_validate_blocks
        title: Plot title
        figsize: Figure size
        save_path: Path to save figure

    Returns:
        matplotlib figure and axes (accuracy, ITR)
    """
    import matplotlib.pyplot as plt

    blocks = [b + 1 for b in cv_results['blocks']]
    scores = cv_results['scores']
    itrs = cv_results['itrs']

    fig, (ax_acc, ax_itr) = plt.subplots(1, 2, figsize=figsize)

    ax_acc.bar(blocks, scores, color='steelblue', alpha=0.7)
    ax_acc.axhline(y=cv_results['mean_score'], color='red', linestyle='--',
                   label=f"Mean: {cv_results['mean_score']:.3f} ± {cv_results['std_score']:.3f}")
    ax_acc.set_xlabel('Held-out block')
    ax_acc.set_ylabel('Accuracy')
    ax_acc.set_ylim([0, 1])

    ax_itr.bar(blocks, np.nan_to_num(itrs), color='darkorange', alpha=0.7)
    ax_itr.axhline(y=cv_results['mean_itr'], color='red', linestyle='--',
                   label=f"Mean: {cv_results['mean_itr']:.1f}")
    ax_itr.set_xlabel('Held-out block')
    ax_itr.set_ylabel('ITR (bits/min)')

    for ax in (ax_acc, ax_itr):
        ax.set_xticks(blocks)
        ax.legend()
        ax.grid(True, alpha=0.3, axis='y')

    fig.suptitle(title)
    fig.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=150, bbox_inches='tight')

    return fig, (ax_acc, ax_itr)


def plot_score_matrix(
    scores: np.ndarray,
    freqs: Optional[List[float]] = None,
    title: str = "LCSE Scores",
    cmap: str = "viridis",
    figsize: Tuple[int, int] = (8, 6),
    save_path: Optional[str] = None
):
    """
    Heatmap of a score matrix (test slot x candidate target).

    Args:
        scores: Shape (n_trials, n_targets)
        freqs: Stimulus frequency of each target, used as tick labels
        title: Plot title
        cmap: Colormap
        figsize: Figure size
        save_path: Path to save figure

    Returns:
        matplotlib figure and axes
    """
    import matplotlib.pyplot as plt

    n_trials, n_targets = scores.shape
    if freqs is None:
        tick_labels = [str(i + 1) for i in range(n_targets)]
    else:
        tick_labels = [f"{f:g}" for f in freqs]

    fig, ax = plt.subplots(figsize=figsize)
    im = ax.imshow(scores, interpolation='nearest', cmap=cmap, aspect='auto')
    ax.figure.colorbar(im, ax=ax)

    # Mark the winning target of each slot
    winners = np.argmax(scores, axis=1)
    ax.scatter(winners, np.arange(n_trials), marker='x', color='red', s=20)

    step = max(1, n_targets // 20)
    ax.set(
        xticks=np.arange(0, n_targets, step),
        yticks=np.arange(0, n_trials, step),
        xticklabels=tick_labels[::step],
        yticklabels=tick_labels[:n_trials:step],
        title=title,
        ylabel='Test trial (true target)',
        xlabel='Candidate target'
    )
    plt.setp(ax.get_xticklabels(), rotation=45, ha="right", rotation_mode="anchor")

    fig.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=150, bbox_inches='tight')

    return fig, ax
