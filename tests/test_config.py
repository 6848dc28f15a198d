import pytest

from linkcrawler.utils.config import Config, apply_overrides, load_config, validate_config


def test_load_config_from_yaml(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "crawler:\n"
        "  seed_url: https://example.com/\n"
        "  max_depth: 1\n"
        "  timeout: 2.5\n"
        "  max_concurrent_requests: 8\n"
        "logging:\n"
        "  level: debug\n"
    )

    config = load_config(str(path))

    assert config.crawler.seed_url == "https://example.com/"
    assert config.crawler.max_depth == 1
    assert config.crawler.timeout == 2.5
    assert config.crawler.max_concurrent_requests == 8
    # Defaults fill the rest
    assert config.crawler.depth_step == 2
    assert config.crawler.max_errors == 100000
    assert config.crawler.max_results == 10000
    assert config.logging.level == "debug"
    assert config.monitoring.metrics_enabled is False


def test_missing_config_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(str(tmp_path / "nope.yaml"))


def test_unknown_keys_rejected():
    with pytest.raises(ValueError, match="seed_urls"):
        Config.from_dict({"crawler": {"seed_urls": ["x"]}})


def test_empty_document_gives_defaults():
    config = Config.from_dict(None)
    assert config.crawler.max_depth == 3
    assert config.crawler.timeout == 10.0


@pytest.mark.parametrize("field,value", [
    ("seed_url", ""),
    ("max_depth", -1),
    ("timeout", 0),
    ("max_errors", 0),
    ("max_results", 0),
    ("depth_step", 0),
    ("politeness_delay", -0.5),
    ("max_concurrent_requests", 0),
])
def test_validate_rejects_bad_values(field, value):
    config = Config.from_dict({"crawler": {"seed_url": "http://a/"}})
    setattr(config.crawler, field, value)
    with pytest.raises(ValueError):
        validate_config(config)


def test_validate_rejects_unknown_log_level():
    config = Config.from_dict({"crawler": {"seed_url": "http://a/"}, "logging": {"level": "loud"}})
    with pytest.raises(ValueError, match="log level"):
        validate_config(config)


def test_apply_overrides_skips_unset_values():
    config = Config.from_dict({"crawler": {"seed_url": "http://a/", "max_depth": 4}})

    apply_overrides(config, seed_url="http://b/", max_depth=None, timeout=3)

    assert config.crawler.seed_url == "http://b/"
    assert config.crawler.max_depth == 4
    assert config.crawler.timeout == 3


def test_apply_overrides_rejects_unknown_setting():
    with pytest.raises(ValueError):
        apply_overrides(Config(), nonsense=1)
