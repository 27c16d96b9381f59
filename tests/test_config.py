"""
Smoke tests for configuration loading and validation.
"""

import argparse

import pytest

from main import apply_cli_overrides, load_config, resolve_matcher_policy, validate_config
from detection.factory import create_detector
from models.config import Config, DescriptorConfig
from observation.opencv_source import create_source_from_config


class TestValidateConfig:
    """Tests for validate_config function."""

    def test_valid_config_passes(self, valid_config):
        """A complete valid config passes validation."""
        is_valid, error = validate_config(valid_config)

        assert is_valid is True
        assert error is None

    @pytest.mark.parametrize("section", ["camera", "detection", "matching", "log_path", "log_level"])
    def test_missing_required_section(self, valid_config, section):
        """Each required section is reported by name."""
        del valid_config[section]

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert section in error.lower()

    def test_device_id_optional(self, valid_config):
        """Without device_id the camera is chosen by facing_mode."""
        del valid_config["camera"]["device_id"]

        is_valid, _ = validate_config(valid_config)

        assert is_valid is True

    def test_negative_device_id(self, valid_config):
        """Negative integer device_id fails."""
        valid_config["camera"]["device_id"] = -1

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "device_id" in error.lower()

    def test_string_device_id_valid(self, valid_config):
        """String device_id (RTSP URL or file) is valid."""
        valid_config["camera"]["device_id"] = "rtsp://192.168.1.1/stream"

        is_valid, _ = validate_config(valid_config)

        assert is_valid is True

    def test_invalid_facing_mode(self, valid_config):
        valid_config["camera"]["facing_mode"] = "sideways"

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "facing_mode" in error

    def test_invalid_resolution_length(self, valid_config):
        """Resolution with wrong length fails."""
        valid_config["camera"]["resolution"] = [1920]

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "resolution" in error.lower()

    def test_invalid_detection_backend(self, valid_config):
        """Unknown detection backend fails."""
        valid_config["detection"]["backend"] = "magic"

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "backend" in error.lower()

    @pytest.mark.parametrize("value", [4, 51, "20", True])
    def test_invalid_sensitivity(self, valid_config, value):
        valid_config["detection"]["sensitivity"] = value

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "sensitivity" in error

    @pytest.mark.parametrize("value", [5, 50])
    def test_sensitivity_bounds_inclusive(self, valid_config, value):
        valid_config["detection"]["sensitivity"] = value

        is_valid, _ = validate_config(valid_config)

        assert is_valid is True

    def test_invalid_matching_policy(self, valid_config):
        valid_config["matching"]["policy"] = "cosine"

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "matching.policy" in error

    def test_invalid_matching_threshold(self, valid_config):
        valid_config["matching"]["threshold"] = -0.1

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "threshold" in error

    def test_descriptor_score_threshold_range(self, valid_config):
        valid_config["detection"]["backend"] = "descriptor"
        valid_config["detection"]["descriptor"] = {"score_threshold": 1.5}

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "score_threshold" in error

    def test_invalid_web_port(self, valid_config):
        valid_config["web"]["port"] = 70000

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "web.port" in error

    def test_invalid_log_level(self, valid_config):
        """Invalid log level fails."""
        valid_config["log_level"] = "VERBOSE"

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "log_level" in error.lower()


class TestLoadConfig:
    """Tests for load_config function."""

    def test_loads_default_yaml(self, temp_config_dir):
        """Config loads from default.yaml when only it exists."""
        config_path = str(temp_config_dir / "config.yaml")

        config = load_config(config_path)

        assert config["camera"]["backend"] == "opencv"
        assert config["camera"]["resolution"] == [640, 480]
        assert config["detection"]["backend"] == "heuristic"

    def test_local_overrides_merge(self, temp_config_dir):
        """Local config.yaml overrides default.yaml."""
        config_yaml = temp_config_dir / "config.yaml"
        config_yaml.write_text("""
camera:
  facing_mode: back
detection:
  backend: motion
""")

        config = load_config(str(config_yaml))

        assert config["camera"]["facing_mode"] == "back"
        assert config["detection"]["backend"] == "motion"

        # Original values preserved
        assert config["camera"]["fps"] == 30
        assert config["detection"]["sensitivity"] == 20

    def test_explicit_config_applied_last(self, temp_config_dir):
        """An explicit --config file wins over both layers."""
        (temp_config_dir / "config.yaml").write_text("web:\n  port: 6000\n")
        explicit = temp_config_dir / "kiosk.yaml"
        explicit.write_text("web:\n  port: 7000\n")

        config = load_config(str(explicit))

        assert config["web"]["port"] == 7000
        assert config["web"]["enabled"] is True


class TestCliOverrides:
    def _args(self, **overrides):
        defaults = dict(backend=None, port=None, no_web=False, import_path=None, export_path=None)
        defaults.update(overrides)
        return argparse.Namespace(**defaults)

    def test_backend_and_port(self, valid_config):
        config = apply_cli_overrides(valid_config, self._args(backend="motion", port=8080))

        assert config["detection"]["backend"] == "motion"
        assert config["web"]["port"] == 8080

    def test_no_web(self, valid_config):
        config = apply_cli_overrides(valid_config, self._args(no_web=True))

        assert config["web"]["enabled"] is False

    def test_export_enables_export_on_exit(self, valid_config):
        config = apply_cli_overrides(valid_config, self._args(export_path="out/sigs.json"))

        assert config["registry"]["export_path"] == "out/sigs.json"
        assert config["registry"]["export_on_exit"] is True

    def test_no_overrides_leaves_config(self, valid_config):
        config = apply_cli_overrides(valid_config, self._args())

        assert config["detection"]["backend"] == "heuristic"
        assert "registry" not in config


class TestResolveMatcherPolicy:
    @pytest.mark.parametrize("backend,expected", [
        ("descriptor", "labeled"),
        ("heuristic", "nearest"),
        ("motion", "nearest"),
    ])
    def test_auto_follows_backend(self, valid_config, backend, expected):
        valid_config["detection"]["backend"] = backend

        assert resolve_matcher_policy(Config.from_dict(valid_config)) == expected

    def test_explicit_policy_kept(self, valid_config):
        valid_config["matching"]["policy"] = "labeled"

        assert resolve_matcher_policy(Config.from_dict(valid_config)) == "labeled"


class TestTypedConfig:
    def test_from_dict_defaults(self):
        cfg = Config.from_dict({})

        assert cfg.camera.facing_mode == "front"
        assert cfg.detection.backend == "heuristic"
        assert cfg.detection.descriptor is None
        assert cfg.matching.policy == "auto"
        assert cfg.loop.refresh_hz == 60.0
        assert cfg.web.port == 5000

    def test_round_trip(self, valid_config):
        valid_config["detection"]["descriptor"] = {"input_size": 480}
        cfg = Config.from_dict(valid_config)

        again = Config.from_dict(cfg.to_dict())

        assert again == cfg
        assert again.detection.descriptor == DescriptorConfig(input_size=480)

    def test_sections_build_components(self, valid_config):
        valid_config["detection"] = {"backend": "motion", "sensitivity": 35}
        valid_config["camera"]["facing_mode"] = "back"
        del valid_config["camera"]["device_id"]
        cfg = Config.from_dict(valid_config)

        detector = create_detector(cfg.detection)
        source = create_source_from_config(cfg.camera)

        assert detector.sensitivity == 35
        assert source.device_id == 1
        assert source.should_mirror is False
