import pytest

import sitemap_stream.config as config_module

CONFIG_ENV_VARS = (
    "SITEMAP_CONFIG",
    "SITEMAP_PARSER_USER_AGENT",
    "SITEMAP_REQUEST_TIMEOUT",
    "SITEMAP_MAX_RETRIES",
    "SITEMAP_CHUNK_SIZE",
    "SITEMAP_MAX_PARALLEL",
    "LOG_LEVEL",
    "LOG_JSON",
)


@pytest.fixture(autouse=True)
def clean_config(monkeypatch):
    """Every test starts from built-in defaults, unaffected by the host env."""
    for name in CONFIG_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(config_module, "_config", None)
    yield
    config_module._config = None
