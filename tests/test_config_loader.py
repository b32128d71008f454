"""Tests for consulwatch.config_loader — file config plus overrides."""

from __future__ import annotations

from pathlib import Path

import pytest

from consulwatch._errors import ConfigError
from consulwatch.config_loader import load_config


class TestLoadConfig:
    """Reading consulwatch.yaml / .yml / .toml."""

    def test_no_file_gives_defaults(self, tmp_path: Path) -> None:
        config = load_config(tmp_path)
        assert config.address == "http://localhost:8500"
        assert config.retry_delay == 15.0

    def test_yaml_top_level_keys(self, tmp_path: Path) -> None:
        (tmp_path / "consulwatch.yaml").write_text(
            "endpoint: http://consul:8500\ndatacenter: dc2\nlong_poll_max_wait: 30\n"
        )
        config = load_config(tmp_path)
        assert config.endpoint == "http://consul:8500"
        assert config.datacenter == "dc2"
        assert config.long_poll_max_wait == 30.0

    def test_yml_section(self, tmp_path: Path) -> None:
        (tmp_path / "consulwatch.yml").write_text(
            "consulwatch:\n  acl_token: t0k3n\n  consistency_mode: stale\n"
        )
        config = load_config(tmp_path)
        assert config.token == "t0k3n"
        assert config.consistency_mode == "stale"

    def test_toml(self, tmp_path: Path) -> None:
        (tmp_path / "consulwatch.toml").write_text(
            '[consulwatch]\nendpoint = "http://toml:8500"\nretry_delay = "500ms"\n'
        )
        config = load_config(tmp_path)
        assert config.endpoint == "http://toml:8500"
        assert config.retry_delay == pytest.approx(0.5)

    def test_yaml_preferred_over_toml(self, tmp_path: Path) -> None:
        (tmp_path / "consulwatch.yaml").write_text("datacenter: from-yaml\n")
        (tmp_path / "consulwatch.toml").write_text('datacenter = "from-toml"\n')
        assert load_config(tmp_path).datacenter == "from-yaml"

    def test_overrides_win(self, tmp_path: Path) -> None:
        (tmp_path / "consulwatch.yaml").write_text("datacenter: dc1\nacl_token: file\n")
        config = load_config(tmp_path, datacenter="dc9")
        assert config.datacenter == "dc9"
        assert config.acl_token == "file"

    def test_none_overrides_ignored(self, tmp_path: Path) -> None:
        (tmp_path / "consulwatch.yaml").write_text("retry_delay: 3\n")
        config = load_config(tmp_path, retry_delay=None, endpoint=None)
        assert config.retry_delay == 3.0

    @pytest.mark.parametrize(
        ("raw", "seconds"),
        [("30s", 30.0), ("2m", 120.0), ("1h", 3600.0), ("250ms", 0.25), ("4", 4.0)],
    )
    def test_duration_strings(self, tmp_path: Path, raw: str, seconds: float) -> None:
        (tmp_path / "consulwatch.yaml").write_text(f"long_poll_max_wait: '{raw}'\n")
        assert load_config(tmp_path).long_poll_max_wait == pytest.approx(seconds)


class TestLoadConfigErrors:
    """Broken configuration is reported, never silently replaced."""

    def test_unknown_override(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="Unknown configuration keys: port"):
            load_config(tmp_path, port=80)

    def test_unknown_section_key(self, tmp_path: Path) -> None:
        (tmp_path / "consulwatch.yaml").write_text("consulwatch:\n  hostname: x\n")
        with pytest.raises(ConfigError, match="hostname"):
            load_config(tmp_path)

    def test_malformed_yaml(self, tmp_path: Path) -> None:
        (tmp_path / "consulwatch.yaml").write_text("endpoint: [unclosed\n")
        with pytest.raises(ConfigError, match="consulwatch.yaml"):
            load_config(tmp_path)

    def test_yaml_not_a_mapping(self, tmp_path: Path) -> None:
        (tmp_path / "consulwatch.yaml").write_text("- a\n- b\n")
        with pytest.raises(ConfigError, match="mapping"):
            load_config(tmp_path)

    def test_malformed_toml(self, tmp_path: Path) -> None:
        (tmp_path / "consulwatch.toml").write_text("endpoint = \n")
        with pytest.raises(ConfigError, match="consulwatch.toml"):
            load_config(tmp_path)

    @pytest.mark.parametrize("raw", ["'soon'", "true"])
    def test_bad_duration(self, tmp_path: Path, raw: str) -> None:
        (tmp_path / "consulwatch.yaml").write_text(f"retry_delay: {raw}\n")
        with pytest.raises(ConfigError, match="retry_delay must be a duration"):
            load_config(tmp_path)

    def test_invalid_consistency_mode(self, tmp_path: Path) -> None:
        (tmp_path / "consulwatch.yaml").write_text("consistency_mode: eventual\n")
        with pytest.raises(ConfigError):
            load_config(tmp_path)
