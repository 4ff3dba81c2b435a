# src/feature_engineering/multi_window.py

"""
Multi-window feature builder.

Runs one window count per (window length, key attribute) pair and joins all
of them back onto the click table by id:

    windows=[2, 60], key_attributes=['ip', 'app']
        -> ip2s, ip60s, app2s, app60s

Each pair is independent, so the pairs are fanned out with joblib and the
results merged in one explicit step. The output does not depend on the
order the pairs finish in.
"""

import time

import pandas as pd
from joblib import Parallel, delayed

from .naive_join import naive_window_join
from .rolling_counts import rolling_window_count
from .window_config import ROLLING, WindowFeatureConfig


def merge_window_results(results, features, id_index: pd.Index) -> pd.DataFrame:
    """
    Combine per-pair results into one table indexed by id.

    Args:
        results: Series or DataFrames indexed by id, in any order
        features: WindowFeature descriptors, fixing the column order
        id_index: Ids every result must cover

    Returns:
        DataFrame indexed by id with one column per descriptor
    """
    columns = [feature.column for feature in features]
    if not results:
        return pd.DataFrame(index=id_index, columns=columns)

    merged = pd.concat(results, axis=1)
    missing = [col for col in columns if col not in merged.columns]
    if missing:
        raise ValueError(f"Window results are missing column(s): {missing}")

    return merged.reindex(index=id_index)[columns]


def _tasks(events: pd.DataFrame, config: WindowFeatureConfig):
    if config.mode == ROLLING:
        for feature in config.features():
            yield delayed(rolling_window_count)(
                events, feature.window, feature.key,
                time_col=config.time_col, id_col=config.id_col,
                closed=config.closed, name=feature.column,
            )
    else:
        for key in config.key_attributes:
            yield delayed(naive_window_join)(
                events, config.windows, key, config.secondary_attributes,
                time_col=config.time_col, id_col=config.id_col,
                closed=config.closed, max_pairs=config.max_join_pairs,
            )


def build_window_features(events: pd.DataFrame, config: WindowFeatureConfig,
                          verbose: bool = False) -> pd.DataFrame:
    """
    Add time-window count columns to a click table.

    Args:
        events: Click table with id, timestamp and attribute columns (not modified)
        config: Windows, attributes and mode
        verbose: Print progress

    Returns:
        New DataFrame sorted by id: the input columns plus one column per
        WindowFeature, in config.features() order

    Raises:
        ConfigurationError: raised before any computation for invalid config
        DataOrderingError: clicks are not chronological within a key
        JoinBlowupError: naive-join mode would exceed the pair budget
    """
    config.validate(events.columns)
    features = config.features()

    if verbose:
        print(f"   Creating {len(features)} window features ({config.mode}, n_jobs={config.n_jobs})...")
    start = time.time()

    # Workers share the click table read-only
    results = Parallel(n_jobs=config.n_jobs, prefer="threads")(_tasks(events, config))

    table = events.sort_values(config.id_col, kind="mergesort").reset_index(drop=True)
    id_index = pd.Index(table[config.id_col].to_numpy(), name=config.id_col)
    window_table = merge_window_results(results, features, id_index)

    table = table.join(window_table, on=config.id_col)

    if verbose:
        names = [feature.column for feature in features]
        print(f"   ✅ Created {len(names)} window features: {', '.join(names)}")
        print(f"   ⏱️  {time.time() - start:.1f} seconds")

    return table
