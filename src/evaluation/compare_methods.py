#!/usr/bin/env python3
"""
Compare Rolling vs Naive Window Counts
======================================

Runs the rolling counter and the naive self-join on the same clicks and
reports, per window length:
- whether both give the same count for every click (mismatches must be 0)
- runtime of each method
- size of the intermediate self-join the rolling counter avoids

Output:
- reports/window_features/method_comparison.csv
- reports/window_features/method_comparison.png
"""

import time
from pathlib import Path

import matplotlib.pyplot as plt
import pandas as pd
import seaborn as sns

from feature_engineering.naive_join import naive_window_join, self_join_pair_count
from feature_engineering.rolling_counts import rolling_window_count
from feature_engineering.window_config import (
    DEFAULT_MAX_JOIN_PAIRS,
    feature_column_name,
    validate_windows,
)

# Set style
sns.set_style("whitegrid")


def compare_methods(events: pd.DataFrame, windows: list, key: str, time_col: str = 'timestamp',
                    id_col: str = 'id', closed: str = 'right',
                    max_pairs: int = DEFAULT_MAX_JOIN_PAIRS) -> pd.DataFrame:
    """
    Cross-check the rolling counter against the naive join.

    Returns:
        One row per window: window, column, rolling_seconds, naive_seconds,
        join_pairs, mismatches
    """
    rows = []
    join_pairs = self_join_pair_count(events, key)

    for window in validate_windows(windows):
        column = feature_column_name(window, key)

        start = time.perf_counter()
        rolling = rolling_window_count(events, window, key, time_col=time_col,
                                       id_col=id_col, closed=closed)
        rolling_seconds = time.perf_counter() - start

        start = time.perf_counter()
        naive = naive_window_join(events, [window], key, time_col=time_col, id_col=id_col,
                                  closed=closed, max_pairs=max_pairs)
        naive_seconds = time.perf_counter() - start

        mismatches = int((rolling != naive[column]).sum())
        rows.append({
            'window': window,
            'column': column,
            'rolling_seconds': rolling_seconds,
            'naive_seconds': naive_seconds,
            'join_pairs': join_pairs,
            'mismatches': mismatches,
        })

    return pd.DataFrame(rows)


def plot_comparison(report: pd.DataFrame, output_path: Path) -> Path:
    """Bar plot of runtime per method and window."""
    runtimes = report.melt(
        id_vars=['column'],
        value_vars=['rolling_seconds', 'naive_seconds'],
        var_name='method',
        value_name='seconds',
    )
    runtimes['method'] = runtimes['method'].str.replace('_seconds', '', regex=False)

    fig, ax = plt.subplots(figsize=(10, 6))
    sns.barplot(data=runtimes, x='column', y='seconds', hue='method', ax=ax)

    ax.set_xlabel('Window feature', fontsize=12, fontweight='bold')
    ax.set_ylabel('Runtime (seconds)', fontsize=12, fontweight='bold')
    ax.set_title('Rolling counter vs naive self-join', fontsize=14, fontweight='bold', pad=15)

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    fig.tight_layout()
    fig.savefig(output_path, dpi=150, bbox_inches='tight')
    plt.close(fig)

    return output_path


def run(events: pd.DataFrame, output_dir: Path, windows: list, key: str = 'ip') -> pd.DataFrame:
    """Compare both methods, save the report and the plot."""
    print("=" * 70)
    print(f"ROLLING vs NAIVE WINDOW COUNTS ({key})")
    print("=" * 70)
    print(f"   Clicks: {len(events):,}")
    print(f"   Windows: {', '.join(str(w) for w in windows)}")
    print()

    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    report = compare_methods(events, windows, key)
    print(report.to_string(index=False))
    print()

    csv_path = output_dir / 'method_comparison.csv'
    report.to_csv(csv_path, index=False)
    png_path = plot_comparison(report, output_dir / 'method_comparison.png')

    if (report['mismatches'] == 0).all():
        print("✅ Rolling counts match the naive join for every click")
    else:
        print(f"❌ {int(report['mismatches'].sum()):,} mismatching counts!")

    print(f"💾 Saved: {csv_path.name}, {png_path.name}\n")
    return report


# Standalone execution
if __name__ == "__main__":
    import sys

    from data_preparation.load_events import load_events

    project_root = Path(__file__).resolve().parents[2]
    input_file = project_root / "data" / "raw" / "train_sample.csv"
    output_dir = project_root / "reports" / "window_features"

    key = sys.argv[1] if len(sys.argv) > 1 else 'ip'
    clicks = load_events(input_file, usecols=['ip', 'app', 'device', 'os', 'channel', 'click_time'])
    run(clicks, output_dir, windows=[2, 60, 300], key=key)
