from __future__ import annotations

import pytest

from a11y_core.errors import ConfigError
from a11y_core.settings import DATA_URL, DETAILS_URL, DashboardSettings, load_settings


def test_defaults():
    s = load_settings({})
    assert s == DashboardSettings()
    assert s.data_url == DATA_URL
    assert s.refresh_url == DETAILS_URL
    assert s.sheets.overview == "Panoramica"
    assert s.sheets.details == "Report Pagine Sito Istituzionale"
    # every view is enabled unless listed in A11Y_DISABLED_VIEWS
    assert s.disabled_views == ()


def test_env_overrides():
    s = load_settings(
        {
            "A11Y_DATA_URL": "https://x.test/data",
            "A11Y_DETAILS_URL": "https://x.test/details",
            "A11Y_TIMEOUT": "2.5",
            "A11Y_DISABLED_VIEWS": "Dettagli, ",
        }
    )
    assert s.data_url == "https://x.test/data"
    # refresh follows the details endpoint unless set explicitly
    assert s.refresh_url == "https://x.test/details"
    assert s.timeout == 2.5
    assert s.disabled_views == ("Dettagli",)


@pytest.mark.parametrize("env", [{"A11Y_TIMEOUT": "soon"}, {"A11Y_TIMEOUT": "0"}, {"A11Y_DISABLED_VIEWS": "Report"}])
def test_invalid_values(env):
    with pytest.raises(ConfigError):
        load_settings(env)
