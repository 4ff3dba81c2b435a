# src/main.py
"""
Click Fraud Feature Pipeline
============================

Builds the feature table for click-fraud detection:
1. Load the click log (CSV in chunks, or Parquet)
2. Mean-encode categorical attributes (optional, needs the target)
3. Time-window counts per attribute (ip60s, app2s, ...)
4. Down-sample non-attributed clicks (optional, after the counts)
5. Save the feature table (CSV or Parquet, by file suffix)

Usage:
    python src/main.py data/raw/train_sample.csv data/features/window_features.parquet
    python src/main.py in.csv out.csv --windows 2 60 300 --keys ip app --n-jobs 4
    python src/main.py in.csv out.csv --mode naive-join --keys app --secondary device
    python src/main.py in.csv out.parquet --downsample-ratio 3
"""

import argparse
import time
from pathlib import Path

import pandas as pd

from data_preparation.downsample import downsample_majority
from data_preparation.load_events import load_events
from encoding.mean_encode import mean_encode
from feature_engineering.errors import ConfigurationError
from feature_engineering.multi_window import build_window_features
from feature_engineering.window_config import (
    CLOSED_CHOICES,
    MODES,
    ROLLING,
    WindowFeatureConfig,
)


def save_table(df: pd.DataFrame, output_path: Path) -> None:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    if output_path.suffix == '.parquet':
        df.to_parquet(output_path, engine='pyarrow', compression='snappy', index=False)
    else:
        df.to_csv(output_path, index=False)


def run_pipeline(input_path: Path, output_path: Path, config: WindowFeatureConfig,
                 target: str = 'is_attributed', mean_encode_cols: list = None,
                 time_col: str = 'click_time', chunksize: int = 1_000_000,
                 downsample_ratio: float = None) -> pd.DataFrame:
    """
    Execute the complete feature pipeline.

    Args:
        input_path: Raw click log (.csv or .parquet)
        output_path: Feature table (.csv or .parquet)
        config: Window feature options
        target: Target column used by mean encoding
        mean_encode_cols: Columns to mean-encode (None/empty = skip)
        time_col: Raw click time column
        chunksize: CSV rows to read at a time
        downsample_ratio: Negatives kept per positive after the counts (None = keep all)

    Returns:
        The feature table, or None when the input file is missing
    """
    print("=" * 70)
    print("CLICK FRAUD FEATURE PIPELINE")
    print("=" * 70)
    print(f"🪟 Windows: {', '.join(str(w) for w in config.windows)} seconds")
    print(f"🔑 Keys: {', '.join(config.key_attributes)}  (mode: {config.mode})")
    print("=" * 70)
    print()

    pipeline_start = time.time()
    input_path = Path(input_path)
    output_path = Path(output_path)

    # --- Step 0: Check raw data ---
    if not input_path.exists():
        print(f"❌ ERROR: Raw data file not found at {input_path}")
        return None

    # Reject bad options before loading anything
    config.validate()
    if downsample_ratio is not None and not downsample_ratio > 0:
        raise ConfigurationError(f"downsample ratio must be positive, got {downsample_ratio}")

    # --- Step 1: Load ---
    print("📂 STEP 1: Loading clicks")
    print("-" * 70)
    clicks = load_events(input_path, time_col=time_col, id_col=config.id_col, chunksize=chunksize)

    # --- Step 2: Mean encoding ---
    if mean_encode_cols:
        print("🎯 STEP 2: Mean encoding")
        print("-" * 70)
        clicks = mean_encode(clicks, mean_encode_cols, target=target)
        print()

    # --- Step 3: Window features ---
    print("🪟 STEP 3: Time-window counts")
    print("-" * 70)
    features = build_window_features(clicks, config, verbose=True)
    print()

    # --- Step 4: Down-sampling ---
    if downsample_ratio is not None:
        print("⚖️  STEP 4: Down-sampling")
        print("-" * 70)
        features = downsample_majority(features, target=target, ratio=downsample_ratio,
                                       id_col=config.id_col)
        print()

    # --- Step 5: Save ---
    save_table(features, output_path)
    print(f"💾 Output saved: {output_path}")

    total_time = time.time() - pipeline_start
    print()
    print("=" * 70)
    print("✅ PIPELINE COMPLETE")
    print("=" * 70)
    print(f"Rows: {len(features):,}  Columns: {features.shape[1]}")
    print(f"Total runtime: {total_time:.1f} seconds ({total_time/60:.1f} minutes)")
    print()

    return features


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Build click-fraud window features")
    parser.add_argument('input', type=Path, help="Raw click log (.csv or .parquet)")
    parser.add_argument('output', type=Path, help="Feature table (.csv or .parquet)")
    parser.add_argument('--windows', type=float, nargs='+', default=[2, 60, 300])
    parser.add_argument('--keys', nargs='+', default=['ip', 'app'])
    parser.add_argument('--secondary', nargs='*', default=[])
    parser.add_argument('--mode', choices=MODES, default=ROLLING)
    parser.add_argument('--closed', choices=CLOSED_CHOICES, default='right')
    parser.add_argument('--n-jobs', type=int, default=1)
    parser.add_argument('--mean-encode', nargs='*', default=[])
    parser.add_argument('--target', default='is_attributed')
    parser.add_argument('--time-col', default='click_time')
    parser.add_argument('--chunksize', type=int, default=1_000_000)
    parser.add_argument('--downsample-ratio', type=float, default=None,
                        help="Negatives kept per attributed click, applied after the counts")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    config = WindowFeatureConfig(
        windows=[int(w) if float(w).is_integer() else w for w in args.windows],
        key_attributes=args.keys,
        secondary_attributes=args.secondary,
        mode=args.mode,
        closed=args.closed,
        n_jobs=args.n_jobs,
    )
    return run_pipeline(
        args.input, args.output, config,
        target=args.target,
        mean_encode_cols=args.mean_encode,
        time_col=args.time_col,
        chunksize=args.chunksize,
        downsample_ratio=args.downsample_ratio,
    )


if __name__ == "__main__":
    main()
