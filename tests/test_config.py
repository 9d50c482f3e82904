"""
Tests for configuration module.

Tests settings loading, validation, and environment variable overrides.
"""

from pathlib import Path

import pytest
import yaml

from pagepal.config import (
    Settings,
    BrowserSettings,
    ExtractionSettings,
    CaptureSettings,
    LoggingSettings,
    get_default_config_path,
    get_settings,
    load_config,
    reset_settings,
)
from pagepal.config.loader import env_overrides
from pagepal.core.exceptions import ConfigurationError


class TestSettings:
    """Tests for Settings model."""

    def test_default_settings_valid(self):
        """Default settings should be valid."""
        settings = Settings()

        assert settings.browser.headless is True
        assert settings.extraction.cache_ttl_ms == 30000
        assert settings.capture.capture_threshold_px == 200
        assert settings.logging.level == "INFO"

    def test_capture_defaults(self):
        """Capture defaults should match the documented timings."""
        capture = CaptureSettings()

        assert capture.overlap_fraction == 0.8
        assert capture.lazy_content_timeout_ms == 1000
        assert capture.lazy_grace_ms == 300
        assert capture.scroll_settle_ms == 500
        assert capture.max_captures == 50

    def test_extraction_defaults(self):
        """Extraction defaults should carry the selector lists."""
        extraction = ExtractionSettings()

        assert extraction.min_paragraph_length == 10
        assert extraction.main_content_selectors[0] == "main"
        assert "nav" in extraction.exclude_selectors
        assert "aside" in extraction.toc_selectors
        assert "aside" in extraction.simple_exclude_selectors
        assert "aside" not in extraction.exclude_selectors

    def test_capture_settings_validation(self):
        """Capture settings should validate constraints."""
        with pytest.raises(ValueError):
            CaptureSettings(overlap_fraction=0.0)

        with pytest.raises(ValueError):
            CaptureSettings(max_captures=0)

    def test_browser_settings_validation(self):
        """Browser settings should validate constraints."""
        browser = BrowserSettings(timeout_ms=30000, viewport_width=1920)
        assert browser.viewport_width == 1920

        with pytest.raises(ValueError):
            BrowserSettings(timeout_ms=10)

    def test_extraction_depth_bounded(self):
        """Walker depth cannot be configured past its upper bound."""
        with pytest.raises(ValueError):
            ExtractionSettings(max_depth=10000)

    @pytest.mark.parametrize(
        "field",
        [
            "exclude_selectors",
            "main_content_selectors",
            "toc_selectors",
            "simple_exclude_selectors",
            "simple_main_selectors",
        ],
    )
    def test_selector_lists_validated(self, field):
        """Every selector list should reject malformed CSS."""
        with pytest.raises(ValueError, match="Invalid CSS selector"):
            ExtractionSettings(**{field: ["main", "div >"]})

    def test_selector_list_accepts_combinators(self):
        """Selectors beyond simple compounds are valid configuration."""
        extraction = ExtractionSettings(main_content_selectors=["body > main", "article p"])

        assert extraction.main_content_selectors == ["body > main", "article p"]

    def test_browser_retry_settings(self):
        """Navigation retries should default on and stay bounded."""
        browser = BrowserSettings()

        assert browser.max_retries == 2
        assert browser.max_retry_delay_seconds == 10.0

        with pytest.raises(ValueError):
            BrowserSettings(max_retries=-1)

        with pytest.raises(ValueError):
            BrowserSettings(max_retry_delay_seconds=600)

    def test_logging_file_path_converted(self):
        """String log paths should become Path objects."""
        logging_settings = LoggingSettings(file_path="logs/pagepal.log")

        assert isinstance(logging_settings.file_path, Path)

    def test_settings_nested_override(self):
        """Nested settings can be overridden."""
        settings = Settings(
            capture={"max_captures": 5},
            extraction={"cache_ttl_ms": 0},
        )

        assert settings.capture.max_captures == 5
        assert settings.extraction.cache_ttl_ms == 0
        # Non-overridden should keep defaults
        assert settings.capture.capture_threshold_px == 200

    def test_unknown_section_rejected(self):
        """Unknown top-level sections should be rejected."""
        with pytest.raises(ValueError):
            Settings(crawler={"max_pages": 10})


class TestConfigLoader:
    """Tests for configuration loading."""

    def test_load_config_defaults(self):
        """Loading without file should use defaults."""
        settings = load_config(config_path=None)

        assert isinstance(settings, Settings)
        assert settings.browser.headless is True

    def test_load_config_from_yaml(self, temp_dir: Path):
        """Configuration should load from YAML file."""
        config_path = temp_dir / "config.yaml"
        config_data = {
            "browser": {"headless": False},
            "capture": {"capture_threshold_px": 150},
        }

        with open(config_path, "w") as f:
            yaml.dump(config_data, f)

        settings = load_config(config_path)

        assert settings.browser.headless is False
        assert settings.capture.capture_threshold_px == 150

    def test_empty_yaml_uses_defaults(self, temp_dir: Path):
        """An empty file should behave like no file."""
        config_path = temp_dir / "empty.yaml"
        config_path.write_text("")

        settings = load_config(config_path)

        assert settings == Settings()

    def test_load_config_env_override(self, monkeypatch, temp_dir: Path):
        """Environment variables should override file settings."""
        config_path = temp_dir / "config.yaml"
        config_path.write_text("capture:\n  max_captures: 20\n")
        monkeypatch.setenv("PAGEPAL__CAPTURE__MAX_CAPTURES", "7")

        settings = load_config(config_path)

        assert settings.capture.max_captures == 7

    def test_env_override_bool_and_float(self, monkeypatch):
        """Environment values should be parsed into typed values."""
        monkeypatch.setenv("PAGEPAL__BROWSER__HEADLESS", "false")
        monkeypatch.setenv("PAGEPAL__CAPTURE__OVERLAP_FRACTION", "0.5")

        settings = load_config()

        assert settings.browser.headless is False
        assert settings.capture.overlap_fraction == 0.5

    def test_env_override_selector_list(self, monkeypatch):
        """Selector lists can be given as flow sequences."""
        monkeypatch.setenv(
            "PAGEPAL__EXTRACTION__MAIN_CONTENT_SELECTORS", '["article", ".post"]')

        settings = load_config()

        assert settings.extraction.main_content_selectors == ["article", ".post"]

    def test_load_config_invalid_yaml(self, temp_dir: Path):
        """Invalid YAML should raise ConfigurationError."""
        config_path = temp_dir / "invalid.yaml"
        config_path.write_text("{ invalid yaml content")

        with pytest.raises(ConfigurationError):
            load_config(config_path)

    def test_load_config_not_mapping(self, temp_dir: Path):
        """A YAML list at the top level should be rejected."""
        config_path = temp_dir / "list.yaml"
        config_path.write_text("- one\n- two\n")

        with pytest.raises(ConfigurationError):
            load_config(config_path)

    def test_load_config_invalid_value(self, temp_dir: Path):
        """Values failing validation should raise ConfigurationError."""
        config_path = temp_dir / "bad.yaml"
        config_path.write_text("capture:\n  overlap_fraction: 3.0\n")

        with pytest.raises(ConfigurationError) as exc_info:
            load_config(config_path)

        assert "errors" in exc_info.value.details

    def test_load_config_invalid_selector(self, temp_dir: Path):
        """A malformed selector in YAML should fail at load time."""
        config_path = temp_dir / "selectors.yaml"
        config_path.write_text("extraction:\n  toc_selectors:\n    - 'p['\n")

        with pytest.raises(ConfigurationError) as exc_info:
            load_config(config_path)

        assert "toc_selectors" in str(exc_info.value.details["errors"])

    def test_load_config_missing_file(self, temp_dir: Path):
        """A missing file should raise FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_config(temp_dir / "missing.yaml")


class TestGlobalSettings:
    """Tests for the cached settings instance."""

    def test_get_settings_cached(self):
        """Repeated calls should return the same instance."""
        assert get_settings() is get_settings()

    def test_reset_settings(self):
        """Reset should force a fresh load."""
        first = get_settings()
        reset_settings()

        assert get_settings() is not first

    def test_reload(self, monkeypatch):
        """Reload should pick up new environment overrides."""
        get_settings()
        monkeypatch.setenv("PAGEPAL__CAPTURE__MAX_CAPTURES", "3")

        settings = get_settings(reload=True)

        assert settings.capture.max_captures == 3


class TestEnvironmentLayer:
    """Tests for environment variable parsing."""

    def test_nested_overrides(self):
        """Variables become nested sections."""
        overrides = env_overrides({
            "PAGEPAL__CAPTURE__MAX_CAPTURES": "20",
            "PAGEPAL__LOGGING__LEVEL": "DEBUG",
            "PAGEPAL__IGNORED": "1",
            "OTHER__CAPTURE__MAX_CAPTURES": "5",
        })

        assert overrides == {
            "capture": {"max_captures": 20},
            "logging": {"level": "DEBUG"},
        }

    def test_format_strings_kept(self):
        """Values YAML cannot read are kept verbatim."""
        fmt = "%(levelname)s: %(message)s"

        overrides = env_overrides({"PAGEPAL__LOGGING__FORMAT": fmt})

        assert overrides["logging"]["format"] == fmt

    def test_empty_value_is_none(self):
        """An empty value clears the setting."""
        overrides = env_overrides({"PAGEPAL__BROWSER__USER_AGENT": ""})

        assert overrides == {"browser": {"user_agent": None}}

    def test_config_path_from_environment(self, monkeypatch, temp_dir: Path):
        """PAGEPAL_CONFIG names the file when no path is given."""
        config_path = temp_dir / "from-env.yaml"
        config_path.write_text("extraction:\n  cache_ttl_ms: 1234\n")
        monkeypatch.setenv("PAGEPAL_CONFIG", str(config_path))

        assert load_config().extraction.cache_ttl_ms == 1234

    def test_default_config_path(self, monkeypatch, temp_dir: Path):
        """pagepal.yaml in the working directory is discovered."""
        (temp_dir / "pagepal.yaml").write_text("capture:\n  max_captures: 4\n")
        monkeypatch.chdir(temp_dir)

        assert get_default_config_path() == temp_dir / "pagepal.yaml"
