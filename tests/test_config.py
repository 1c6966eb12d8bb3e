import pytest

from sitemap_stream.config import CrawlerConfig, get_config, reload_config
from sitemap_stream.sitemap.traversal import DEFAULT_MAX_PARALLEL, TraverseOptions


def write_yaml(tmp_path, body: str) -> str:
    path = tmp_path / "crawler.yaml"
    path.write_text(body, encoding="utf-8")
    return str(path)


def test_bundled_defaults():
    config = CrawlerConfig.load()
    assert config.max_parallel == DEFAULT_MAX_PARALLEL
    assert config.max_retries == 3
    assert config.chunk_size == 64 * 1024
    assert config.log_json is False


def test_yaml_defaults(tmp_path):
    path = write_yaml(tmp_path, "defaults:\n  user_agent: yaml-agent\n  max_parallel: 2\n  request_timeout: 5\n")
    config = CrawlerConfig.load(path)
    assert config.user_agent == "yaml-agent"
    assert config.max_parallel == 2
    assert config.request_timeout == 5


def test_config_path_from_environment(tmp_path, monkeypatch):
    monkeypatch.setenv("SITEMAP_CONFIG", write_yaml(tmp_path, "defaults:\n  max_retries: 7\n"))
    assert CrawlerConfig.load().max_retries == 7


def test_environment_wins_over_yaml(tmp_path, monkeypatch):
    path = write_yaml(tmp_path, "defaults:\n  max_parallel: 2\n  log_json: false\n")
    monkeypatch.setenv("SITEMAP_MAX_PARALLEL", "9")
    monkeypatch.setenv("SITEMAP_PARSER_USER_AGENT", "env-agent")
    monkeypatch.setenv("LOG_JSON", "true")
    config = CrawlerConfig.load(path)
    assert config.max_parallel == 9
    assert config.user_agent == "env-agent"
    assert config.log_json is True


def test_missing_file_falls_back_to_builtin_defaults(tmp_path):
    config = CrawlerConfig.load(str(tmp_path / "absent.yaml"))
    assert config == CrawlerConfig()


def test_empty_yaml_file(tmp_path):
    assert CrawlerConfig.load(write_yaml(tmp_path, "")) == CrawlerConfig()


def test_invalid_max_parallel_rejected(monkeypatch):
    monkeypatch.setenv("SITEMAP_MAX_PARALLEL", "0")
    with pytest.raises(ValueError):
        CrawlerConfig.load()


def test_get_config_is_cached_until_reload(monkeypatch):
    first = get_config()
    assert get_config() is first

    monkeypatch.setenv("SITEMAP_MAX_PARALLEL", "6")
    assert get_config().max_parallel == first.max_parallel
    assert reload_config().max_parallel == 6
    assert get_config().max_parallel == 6


def test_traverse_options_from_config():
    options = TraverseOptions.from_config(CrawlerConfig(max_parallel=11))
    assert options.max_parallel == 11

    explicit = TraverseOptions.from_config(CrawlerConfig(max_parallel=11), max_parallel=2)
    assert explicit.max_parallel == 2


def test_to_dict():
    data = CrawlerConfig(user_agent="x").to_dict()
    assert data["user_agent"] == "x"
    assert set(data) == {
        "user_agent", "request_timeout", "max_retries", "chunk_size",
        "max_parallel", "log_level", "log_json",
    }
