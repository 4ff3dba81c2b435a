"""End-to-end tests for the feature pipeline."""

import pandas as pd
import pytest

from feature_engineering.errors import ConfigurationError
from main import main


@pytest.fixture
def train_csv(tmp_path, clicks):
    raw = clicks.drop(columns=["id", "timestamp"]).assign(
        click_time=pd.to_datetime(clicks["timestamp"], unit="s", origin="2017-11-06")
    )
    path = tmp_path / "train.csv"
    raw.to_csv(path, index=False)
    return path


class TestPipeline:
    def test_writes_window_features(self, train_csv, tmp_path):
        output = tmp_path / "features" / "out.parquet"
        features = main([str(train_csv), str(output), "--windows", "2", "60", "--keys", "ip", "app"])
        saved = pd.read_parquet(output)
        assert {"ip2s", "ip60s", "app2s", "app60s"} <= set(saved.columns)
        assert len(saved) == len(features) == 400

    def test_mean_encoding_and_naive_join(self, train_csv, tmp_path):
        output = tmp_path / "out.csv"
        main([str(train_csv), str(output), "--windows", "60", "--keys", "app",
              "--secondary", "device", "--mode", "naive-join", "--mean-encode", "app"])
        saved = pd.read_csv(output)
        assert {"app60s", "app_device60s", "app_mean"} <= set(saved.columns)

    def test_missing_input(self, tmp_path, capsys):
        assert main([str(tmp_path / "missing.csv"), str(tmp_path / "out.csv")]) is None
        assert "ERROR" in capsys.readouterr().out

    def test_bad_options_fail_before_loading(self, train_csv, tmp_path):
        with pytest.raises(ConfigurationError):
            main([str(train_csv), str(tmp_path / "out.csv"), "--secondary", "device"])

    def test_downsampling_after_window_features(self, train_csv, clicks, tmp_path):
        output = tmp_path / "out.parquet"
        main([str(train_csv), str(output), "--windows", "60", "--keys", "ip",
              "--downsample-ratio", "2"])
        saved = pd.read_parquet(output)
        full = main([str(train_csv), str(tmp_path / "full.parquet"), "--windows", "60", "--keys", "ip"])

        positives = int(clicks["is_attributed"].sum())
        assert int(saved["is_attributed"].sum()) == positives
        assert len(saved) == positives + 2 * positives
        # counts were taken over the full log, before sampling
        expected = full.set_index("id").loc[saved["id"], "ip60s"].to_numpy()
        assert (saved["ip60s"].to_numpy() == expected).all()

    def test_non_positive_downsample_ratio(self, train_csv, tmp_path):
        with pytest.raises(ConfigurationError):
            main([str(train_csv), str(tmp_path / "out.csv"), "--downsample-ratio", "0"])
