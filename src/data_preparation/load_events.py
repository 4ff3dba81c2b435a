# src/data_preparation/load_events.py

import time
from pathlib import Path

import numpy as np
import pandas as pd
import pyarrow.parquet as pq

from feature_engineering.errors import ConfigurationError


def prepare_events(df: pd.DataFrame, time_col: str = 'click_time', id_col: str = 'id',
                   out_col: str = 'timestamp') -> pd.DataFrame:
    """
    Normalize a raw click table for the window feature builders.

    - Converts `time_col` to epoch seconds in `out_col` (numeric columns are
      taken as seconds already)
    - Drops rows whose time could not be parsed
    - Assigns `id` 0..n-1 in chronological order when the table has none,
      otherwise orders rows by the existing id

    Args:
        df: Raw click table (not modified)
        time_col: Column holding the click time
        id_col: Row id column to use or create
        out_col: Name of the numeric seconds column

    Returns:
        New DataFrame ordered by id
    """
    if time_col not in df.columns:
        raise ConfigurationError(f"Time column '{time_col}' not found")

    df = df.copy()

    if pd.api.types.is_numeric_dtype(df[time_col]):
        seconds = df[time_col].astype('float64')
    else:
        # errors='coerce' turns malformed times into NaT, dropped below
        parsed = pd.to_datetime(df[time_col], errors='coerce')
        if parsed.dt.tz is not None:
            parsed = parsed.dt.tz_convert(None)
        seconds = (parsed - pd.Timestamp('1970-01-01')).dt.total_seconds()

    bad_rows = seconds.isna()
    if bad_rows.any():
        print(f"   ⚠️  {bad_rows.sum():,} click times could not be parsed (dropped)")
    df[out_col] = seconds
    df = df[~bad_rows]

    if id_col in df.columns:
        df = df.sort_values(id_col, kind='mergesort').reset_index(drop=True)
    else:
        # Stable sort keeps file order for clicks in the same second
        df = df.sort_values(out_col, kind='mergesort').reset_index(drop=True)
        df.insert(0, id_col, np.arange(len(df), dtype=np.int64))

    return df


def load_events(input_path: Path, usecols: list = None, time_col: str = 'click_time',
                id_col: str = 'id', chunksize: int = 1_000_000) -> pd.DataFrame:
    """
    Load a click log from CSV (chunked) or Parquet and prepare it.

    Args:
        input_path: .csv or .parquet file
        usecols: Columns to read (None = all)
        time_col: Column holding the click time
        id_col: Row id column to use or create
        chunksize: CSV rows to read at a time (default: 1 million)

    Returns:
        Prepared click table (see prepare_events)
    """
    input_path = Path(input_path)
    start = time.time()

    print(f"📂 Loading clicks")
    print(f"   Input: {input_path}")

    if not input_path.exists():
        raise FileNotFoundError(f"Input file not found: {input_path}")

    if input_path.suffix == '.parquet':
        df = pq.read_table(input_path, columns=usecols).to_pandas()
    else:
        print(f"   Chunk size: {chunksize:,} rows")
        chunks = []
        total_rows = 0
        for chunk_num, chunk in enumerate(
                pd.read_csv(input_path, usecols=usecols, chunksize=chunksize, low_memory=False),
                start=1):
            total_rows += len(chunk)
            chunks.append(chunk)
            print(f"   Loaded chunk {chunk_num}: {len(chunk):,} rows (total: {total_rows:,})")

        if chunks:
            df = pd.concat(chunks, ignore_index=True)
        else:
            df = pd.read_csv(input_path, usecols=usecols, nrows=0)
        del chunks  # Free memory

    df = prepare_events(df, time_col=time_col, id_col=id_col)

    print(f"✅ Loaded {len(df):,} clicks")
    print(f"⏱️  Runtime: {time.time() - start:.1f} seconds\n")

    return df
