import matplotlib

matplotlib.use("Agg")

import numpy as np
import pandas as pd
import pytest


def _make_clicks(n=400, n_ips=40, n_apps=3, n_devices=5, span=600, seed=0):
    """Chronological synthetic clicks with plenty of same-second ties."""
    rng = np.random.default_rng(seed)
    return pd.DataFrame({
        "id": np.arange(1, n + 1),
        "timestamp": np.sort(rng.integers(0, span, size=n)).astype(float),
        "ip": rng.integers(0, n_ips, size=n),
        "app": rng.integers(0, n_apps, size=n),
        "device": rng.integers(0, n_devices, size=n),
        "is_attributed": (rng.random(n) < 0.1).astype(int),
    })


@pytest.fixture
def make_clicks():
    return _make_clicks


@pytest.fixture
def clicks():
    return _make_clicks()


@pytest.fixture
def scenario():
    """ip 'K' clicking at t = 0, 10, 40, 65."""
    return pd.DataFrame({
        "id": [1, 2, 3, 4],
        "timestamp": [0.0, 10.0, 40.0, 65.0],
        "ip": ["K", "K", "K", "K"],
    })
