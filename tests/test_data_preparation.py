"""Tests for click loading and down-sampling."""

import pandas as pd
import pytest

from data_preparation.downsample import downsample_majority
from data_preparation.load_events import load_events, prepare_events
from feature_engineering.errors import ConfigurationError


@pytest.fixture
def raw():
    # file order is not chronological
    return pd.DataFrame({
        "ip": [7, 5, 5, 9],
        "app": [3, 3, 1, 2],
        "click_time": [
            "1970-01-01 00:02:00",
            "1970-01-01 00:00:00",
            "1970-01-01 00:01:00",
            "1970-01-01 00:01:00",
        ],
    })


class TestPrepareEvents:
    def test_parses_times_to_seconds_and_assigns_ids(self, raw):
        df = prepare_events(raw)
        assert df["id"].tolist() == [0, 1, 2, 3]
        assert df["timestamp"].tolist() == [0.0, 60.0, 60.0, 120.0]
        # same-second clicks keep file order
        assert df["ip"].tolist() == [5, 5, 9, 7]

    def test_unparseable_times_are_dropped(self, raw, capsys):
        raw.loc[1, "click_time"] = "not a time"
        df = prepare_events(raw)
        assert len(df) == 3
        assert "could not be parsed" in capsys.readouterr().out

    def test_existing_ids_are_kept(self, raw):
        df = prepare_events(raw.assign(id=[30, 10, 20, 40]))
        assert df["id"].tolist() == [10, 20, 30, 40]

    def test_numeric_time_is_taken_as_seconds(self):
        df = prepare_events(pd.DataFrame({"t": [5, 1, 3]}), time_col="t")
        assert df["timestamp"].tolist() == [1.0, 3.0, 5.0]

    def test_input_is_not_modified(self, raw):
        before = raw.copy()
        prepare_events(raw)
        pd.testing.assert_frame_equal(raw, before)

    def test_missing_time_column(self, raw):
        with pytest.raises(ConfigurationError):
            prepare_events(raw, time_col="attributed_time")


class TestLoadEvents:
    def test_csv_in_chunks(self, raw, tmp_path):
        path = tmp_path / "train.csv"
        raw.to_csv(path, index=False)
        df = load_events(path, chunksize=3)
        assert len(df) == 4
        assert df["timestamp"].is_monotonic_increasing

    def test_parquet_with_usecols(self, raw, tmp_path):
        path = tmp_path / "train.parquet"
        raw.to_parquet(path, engine="pyarrow", index=False)
        df = load_events(path, usecols=["ip", "click_time"])
        assert list(df.columns) == ["id", "ip", "click_time", "timestamp"]

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_events(tmp_path / "nope.csv")


class TestDownsample:
    @pytest.fixture
    def labelled(self):
        return pd.DataFrame({
            "id": range(100),
            "is_attributed": [1 if i % 10 == 0 else 0 for i in range(100)],
        })

    def test_balanced(self, labelled):
        out = downsample_majority(labelled)
        assert len(out) == 20
        assert out["is_attributed"].sum() == 10
        assert out["id"].is_monotonic_increasing

    def test_ratio(self, labelled):
        out = downsample_majority(labelled, ratio=2)
        assert (out["is_attributed"] == 0).sum() == 20

    def test_ratio_larger_than_majority_keeps_everything(self, labelled):
        assert len(downsample_majority(labelled, ratio=50)) == 100

    def test_reproducible(self, labelled):
        pd.testing.assert_frame_equal(
            downsample_majority(labelled, random_state=3),
            downsample_majority(labelled, random_state=3),
        )

    def test_missing_target(self, labelled):
        with pytest.raises(ConfigurationError):
            downsample_majority(labelled, target="label")
