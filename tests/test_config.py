import json

import pytest

from roomplanner.parsers.config import CONFIG_ENV_VAR, GridConfig, get_grid_config


def test_defaults_without_override(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
    config = get_grid_config()
    assert config == GridConfig()
    assert config.day_labels == ("Mon", "Tue", "Wed", "Thu", "Fri")
    assert config.lab_rooms_span_two_slots is True


def test_json_override(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    override = tmp_path / "grid.json"
    override.write_text(
        json.dumps(
            {
                "y_tolerance": 3,
                "day_labels": ["Sun", "Mon"],
                "lab_rooms_span_two_slots": "false",
                "top_left_window": [4, 12],
                "leading_token_count": "",
            }
        ),
        encoding="utf-8",
    )
    monkeypatch.setenv(CONFIG_ENV_VAR, str(override))

    config = get_grid_config()
    assert config.y_tolerance == 3.0
    assert config.day_labels == ("Sun", "Mon")
    assert config.lab_rooms_span_two_slots is False
    assert config.top_left_window == (4.0, 12.0)
    assert config.leading_token_count == 10


def test_missing_override_file_is_ignored(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    monkeypatch.setenv(CONFIG_ENV_VAR, str(tmp_path / "absent.json"))
    assert get_grid_config() == GridConfig()


def test_invalid_override_raises(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    override = tmp_path / "grid.json"
    override.write_text("[1, 2]", encoding="utf-8")
    monkeypatch.setenv(CONFIG_ENV_VAR, str(override))
    with pytest.raises(RuntimeError):
        get_grid_config()

    override.write_text(json.dumps({"y_tolerance": "wide"}), encoding="utf-8")
    with pytest.raises(RuntimeError, match="y_tolerance"):
        get_grid_config()


@pytest.mark.parametrize("window", ["3", [3], [3, 15, 20], 3, {"y": 3, "x": 15}])
def test_malformed_window_override_raises(monkeypatch: pytest.MonkeyPatch, tmp_path, window) -> None:
    override = tmp_path / "grid.json"
    override.write_text(json.dumps({"top_left_window": window}), encoding="utf-8")
    monkeypatch.setenv(CONFIG_ENV_VAR, str(override))
    with pytest.raises(RuntimeError, match="top_left_window"):
        get_grid_config()
