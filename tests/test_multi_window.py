"""Tests for build_window_features: assembly, order independence, fail-fast."""

import pandas as pd
import pytest

from feature_engineering.errors import ConfigurationError, DataOrderingError
from feature_engineering.multi_window import build_window_features, merge_window_results
from feature_engineering.rolling_counts import rolling_window_count
from feature_engineering.window_config import NAIVE_JOIN, WindowFeatureConfig


@pytest.fixture
def config():
    return WindowFeatureConfig(windows=[2, 60, 300], key_attributes=["ip", "app"])


class TestAssembly:
    def test_adds_one_column_per_pair(self, clicks, config):
        table = build_window_features(clicks, config)
        added = [col for col in table.columns if col not in clicks.columns]
        assert added == ["ip2s", "ip60s", "ip300s", "app2s", "app60s", "app300s"]
        assert len(table) == len(clicks)

    def test_columns_match_single_counter(self, clicks, config):
        table = build_window_features(clicks, config).set_index("id")
        for feature in config.features():
            expected = rolling_window_count(clicks, feature.window, feature.key)
            assert table[feature.column].tolist() == expected.tolist()

    def test_original_columns_are_kept(self, clicks, config):
        table = build_window_features(clicks, config)
        pd.testing.assert_frame_equal(table[list(clicks.columns)], clicks)

    def test_output_sorted_by_id_and_input_untouched(self, clicks, config):
        shuffled = clicks.sample(frac=1.0, random_state=3)
        before = shuffled.copy()
        table = build_window_features(shuffled, config)
        assert table["id"].is_monotonic_increasing
        pd.testing.assert_frame_equal(shuffled, before)

    def test_verbose_prints_progress(self, scenario, capsys):
        build_window_features(scenario, WindowFeatureConfig(windows=[30]), verbose=True)
        assert "ip30s" in capsys.readouterr().out


class TestOrderIndependence:
    def test_window_order_does_not_matter(self, clicks):
        a = build_window_features(clicks, WindowFeatureConfig(windows=[300, 2, 60], key_attributes=["ip"]))
        b = build_window_features(clicks, WindowFeatureConfig(windows=[2, 60, 300], key_attributes=["ip"]))
        pd.testing.assert_frame_equal(a, b)

    def test_attribute_order_only_changes_column_order(self, clicks):
        a = build_window_features(clicks, WindowFeatureConfig(windows=[60], key_attributes=["ip", "app"]))
        b = build_window_features(clicks, WindowFeatureConfig(windows=[60], key_attributes=["app", "ip"]))
        pd.testing.assert_frame_equal(a, b[a.columns])

    def test_merge_ignores_result_order(self, clicks, config):
        features = config.features()
        results = [rolling_window_count(clicks, f.window, f.key, name=f.column) for f in features]
        id_index = pd.Index(clicks["id"], name="id")
        pd.testing.assert_frame_equal(
            merge_window_results(results, features, id_index),
            merge_window_results(results[::-1], features, id_index),
        )

    def test_parallel_matches_sequential(self, clicks, config):
        sequential = build_window_features(clicks, config)
        parallel = build_window_features(clicks, WindowFeatureConfig(
            windows=config.windows, key_attributes=config.key_attributes, n_jobs=2))
        pd.testing.assert_frame_equal(sequential, parallel)


class TestNaiveJoinMode:
    def test_counts_agree_with_rolling_mode(self, clicks):
        rolling = build_window_features(clicks, WindowFeatureConfig(windows=[2, 60], key_attributes=["ip", "app"]))
        naive = build_window_features(clicks, WindowFeatureConfig(
            windows=[2, 60], key_attributes=["ip", "app"], mode=NAIVE_JOIN))
        pd.testing.assert_frame_equal(rolling, naive)

    def test_distinct_columns(self, clicks):
        table = build_window_features(clicks, WindowFeatureConfig(
            windows=[60], key_attributes=["app"], secondary_attributes=["device"], mode=NAIVE_JOIN))
        assert {"app60s", "app_device60s"} <= set(table.columns)
        assert (table["app_device60s"] <= table["app60s"]).all()
        assert (table["app_device60s"] >= 1).all()


class TestFailFast:
    @pytest.mark.parametrize("config", [
        WindowFeatureConfig(windows=[60, -1]),
        WindowFeatureConfig(key_attributes=["os"]),
        WindowFeatureConfig(secondary_attributes=["device"]),
    ])
    def test_invalid_config_is_rejected(self, clicks, config):
        with pytest.raises(ConfigurationError):
            build_window_features(clicks, config)

    def test_out_of_order_clicks(self):
        events = pd.DataFrame({"id": [1, 2], "timestamp": [10.0, 5.0], "ip": ["A", "A"]})
        with pytest.raises(DataOrderingError):
            build_window_features(events, WindowFeatureConfig(windows=[60]))
