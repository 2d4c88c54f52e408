from __future__ import annotations

from pathlib import Path

import pytest

from phi_accrual.config import FailureDetectorConfig, discover_config, load_config
from phi_accrual.errors import ConfigurationError


# ---------------------------------------------------------------------------
# FailureDetectorConfig
# ---------------------------------------------------------------------------


class TestFailureDetectorConfig:
    def test_defaults(self) -> None:
        cfg = FailureDetectorConfig()
        assert cfg.threshold == 8.0
        assert cfg.max_sample_size == 200
        assert cfg.min_std_deviation_ms == 100.0
        assert cfg.acceptable_heartbeat_pause_ms == 0.0
        assert cfg.first_heartbeat_estimate_ms == 1000.0

    def test_custom(self) -> None:
        cfg = FailureDetectorConfig(
            threshold=12.0,
            max_sample_size=500,
            min_std_deviation_ms=50.0,
            acceptable_heartbeat_pause_ms=3000.0,
            first_heartbeat_estimate_ms=500.0,
        )
        assert cfg.threshold == 12.0
        assert cfg.max_sample_size == 500
        assert cfg.min_std_deviation_ms == 50.0
        assert cfg.acceptable_heartbeat_pause_ms == 3000.0
        assert cfg.first_heartbeat_estimate_ms == 500.0

    def test_frozen(self) -> None:
        cfg = FailureDetectorConfig()
        with pytest.raises(AttributeError):
            cfg.threshold = 1.0  # type: ignore[misc]

    @pytest.mark.parametrize(
        ("field", "value"),
        [
            ("threshold", 0.0),
            ("threshold", -2.5),
            ("threshold", float("nan")),
            ("threshold", float("inf")),
            ("max_sample_size", 0),
            ("max_sample_size", 2.5),
            ("max_sample_size", True),
            ("min_std_deviation_ms", 0.0),
            ("min_std_deviation_ms", -1.0),
            ("acceptable_heartbeat_pause_ms", -0.5),
            ("acceptable_heartbeat_pause_ms", float("inf")),
            ("first_heartbeat_estimate_ms", 0.0),
            ("first_heartbeat_estimate_ms", "1000"),
        ],
    )
    def test_invalid_values_rejected(self, field: str, value: object) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            FailureDetectorConfig(**{field: value})  # type: ignore[arg-type]
        assert exc_info.value.field == field
        assert field in str(exc_info.value)

    def test_configuration_error_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            FailureDetectorConfig(threshold=0.0)

    def test_integer_values_accepted(self) -> None:
        cfg = FailureDetectorConfig(threshold=10, min_std_deviation_ms=20)
        assert cfg.threshold == 10
        assert cfg.min_std_deviation_ms == 20


# ---------------------------------------------------------------------------
# TOML parsing: load_config(path)
# ---------------------------------------------------------------------------


class TestLoadConfig:
    def test_full_config(self, tmp_path: Path) -> None:
        toml_file = tmp_path / "phi_accrual.toml"
        toml_file.write_text("""\
[failure_detector]
threshold = 12.0
max_sample_size = 500
min_std_deviation_ms = 50.0
acceptable_heartbeat_pause_ms = 3000.0
first_heartbeat_estimate_ms = 500.0
""")
        cfg = load_config(toml_file)
        assert cfg == FailureDetectorConfig(
            threshold=12.0,
            max_sample_size=500,
            min_std_deviation_ms=50.0,
            acceptable_heartbeat_pause_ms=3000.0,
            first_heartbeat_estimate_ms=500.0,
        )

    def test_partial_config_keeps_defaults(self, tmp_path: Path) -> None:
        toml_file = tmp_path / "phi_accrual.toml"
        toml_file.write_text("[failure_detector]\nthreshold = 10\n")
        cfg = load_config(toml_file)
        assert cfg.threshold == 10
        assert cfg.max_sample_size == 200

    def test_minimal_config(self, tmp_path: Path) -> None:
        toml_file = tmp_path / "phi_accrual.toml"
        toml_file.write_text("")
        assert load_config(toml_file) == FailureDetectorConfig()

    def test_file_not_found_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nonexistent.toml")

    def test_unknown_key_raises(self, tmp_path: Path) -> None:
        toml_file = tmp_path / "phi_accrual.toml"
        toml_file.write_text("[failure_detector]\nthresold = 8.0\n")
        with pytest.raises(ConfigurationError) as exc_info:
            load_config(toml_file)
        assert exc_info.value.field == "thresold"

    def test_invalid_value_raises(self, tmp_path: Path) -> None:
        toml_file = tmp_path / "phi_accrual.toml"
        toml_file.write_text("[failure_detector]\nmax_sample_size = 0\n")
        with pytest.raises(ConfigurationError):
            load_config(toml_file)

    @pytest.mark.parametrize(
        "content",
        ["failure_detector = 5\n", "failure_detector = [1, 2]\n"],
    )
    def test_non_table_section_raises(self, tmp_path: Path, content: str) -> None:
        toml_file = tmp_path / "phi_accrual.toml"
        toml_file.write_text(content)
        with pytest.raises(ConfigurationError) as exc_info:
            load_config(toml_file)
        assert exc_info.value.field == "failure_detector"

    def test_discovered_when_path_omitted(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        (tmp_path / "phi_accrual.toml").write_text(
            "[failure_detector]\nthreshold = 16.0\n"
        )
        monkeypatch.chdir(tmp_path)
        assert load_config().threshold == 16.0


# ---------------------------------------------------------------------------
# discover_config
# ---------------------------------------------------------------------------


class TestDiscoverConfig:
    def test_finds_file_in_start_dir(self, tmp_path: Path) -> None:
        toml_file = tmp_path / "phi_accrual.toml"
        toml_file.write_text("")
        assert discover_config(tmp_path) == toml_file.resolve()

    def test_walks_up_to_parent(self, tmp_path: Path) -> None:
        toml_file = tmp_path / "phi_accrual.toml"
        toml_file.write_text("")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        assert discover_config(nested) == toml_file.resolve()
