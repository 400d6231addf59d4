from __future__ import annotations

import sys
from pathlib import Path

import pytest


# Ensure `import etf_strategy...` works even when pytest is launched from `etf_strategy/`.
REPO_ROOT = Path(__file__).resolve().parents[2]
repo_root_str = str(REPO_ROOT)
if repo_root_str not in sys.path:
    sys.path.insert(0, repo_root_str)


@pytest.fixture
def five_bar_series():
    from etf_strategy.core.models import PriceBar

    rows = [
        ("2023-01-01", 300, 305, 295, 303),
        ("2023-01-02", 303, 308, 300, 306),
        ("2023-01-03", 306, 310, 302, 298),
        ("2023-01-04", 298, 302, 295, 300),
        ("2023-01-05", 300, 305, 297, 304),
    ]
    return [PriceBar(date=d, open=o, high=h, low=l, close=c, volume=1000) for d, o, h, l, c in rows]


@pytest.fixture
def settings():
    from etf_strategy.config.settings import BacktestSettings

    return BacktestSettings()
