"""Tests for configuration parsing."""

from gh_notify.config import Config, KeysConfig, _parse_config, load_config


def test_keys_defaults():
    """KeysConfig has expected defaults."""
    keys = KeysConfig()
    assert keys.comment == "ctrl-x"
    assert keys.mark_all_read == "ctrl-a"
    assert keys.open_browser == "ctrl-b"
    assert keys.view_diff == "ctrl-d"
    assert keys.view_patch == "ctrl-p"
    assert keys.reload == "ctrl-r"
    assert keys.mark_read == "ctrl-t"
    assert keys.view == "enter"
    assert keys.toggle_preview == "tab"
    assert keys.toggle_help == "?"


def test_parse_keys_partial_override():
    """Parsing config with partial keys uses defaults for unspecified."""
    data = {"keys": {"comment": "ctrl-o", "reload": "f5"}}
    config = _parse_config(data)

    # Overridden
    assert config.keys.comment == "ctrl-o"
    assert config.keys.reload == "f5"

    # Defaults preserved
    assert config.keys.mark_read == "ctrl-t"
    assert config.keys.view == "enter"


def test_parse_missing_sections():
    """Parsing an empty config gives all defaults."""
    assert _parse_config({}) == Config()


def test_parse_preview_and_api():
    config = _parse_config({"preview": {"position": "down"}, "api": {"lookup_workers": 0}})
    assert config.preview.position == "down"
    assert config.preview.size == "60%"
    # at least one worker
    assert config.api.lookup_workers == 1


def test_load_config_missing_file(tmp_path):
    assert load_config(tmp_path / "nope.toml") == Config()


def test_load_config_from_file(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text('[keys]\nopen_browser = "ctrl-o"\n\n[api]\nlookup_workers = 4\n')
    config = load_config(path)
    assert config.keys.open_browser == "ctrl-o"
    assert config.api.lookup_workers == 4


def test_load_config_invalid_toml_falls_back(tmp_path, capsys):
    path = tmp_path / "config.toml"
    path.write_text("[keys\n")
    assert load_config(path) == Config()
    assert "Could not load config" in capsys.readouterr().err


def test_load_config_invalid_lookup_workers_falls_back(tmp_path, capsys):
    path = tmp_path / "config.toml"
    path.write_text('[keys]\nview = "ctrl-v"\n\n[api]\nlookup_workers = "many"\n')
    config = load_config(path)
    assert config.api.lookup_workers == 1
    # the rest of the file still applies
    assert config.keys.view == "ctrl-v"
    assert "lookup_workers" in capsys.readouterr().err
