# src/data_preparation/downsample.py

import pandas as pd

from feature_engineering.errors import ConfigurationError


def downsample_majority(df: pd.DataFrame, target: str = 'is_attributed', ratio: float = 1.0,
                        random_state: int = 42, id_col: str = 'id') -> pd.DataFrame:
    """
    Down-sample the majority (non-attributed) class.

    Attributed clicks are rare (well under 1% of the log), so every positive
    row is kept and `ratio` negatives are drawn per positive.

    Run this AFTER the window features: counts must see the full click log.

    Args:
        df: Click table with a 0/1 target column (not modified)
        target: Target column
        ratio: Negatives kept per positive (default: 1.0 = balanced)
        random_state: Seed for reproducible sampling
        id_col: Rows are returned in this column's order when present

    Returns:
        Sampled DataFrame
    """
    if target not in df.columns:
        raise ConfigurationError(f"Target column '{target}' not found")
    if ratio <= 0:
        raise ConfigurationError(f"ratio must be positive, got {ratio}")

    positives = df[df[target] == 1]
    negatives = df[df[target] != 1]

    n_keep = min(len(negatives), int(round(len(positives) * ratio)))
    sampled = negatives.sample(n=n_keep, random_state=random_state)

    out = pd.concat([positives, sampled])
    if id_col in out.columns:
        out = out.sort_values(id_col, kind='mergesort')
    else:
        out = out.sort_index()

    print(f"   Down-sampled {len(df):,} → {len(out):,} rows "
          f"({len(positives):,} positive, {n_keep:,} negative)")

    return out.reset_index(drop=True)
