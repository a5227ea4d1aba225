"""Tests for configuration system."""

import tempfile
from pathlib import Path

import pytest

from branchimport.config import AppConfig, IngestionConfig, LoggingConfig, load_config
from branchimport.config.loader import load_yaml
from branchimport.config.settings import DEFAULT_MAX_PAYLOAD_BYTES


class TestIngestionConfig:
    """Tests for IngestionConfig."""

    def test_defaults(self) -> None:
        """Test default ingestion settings."""
        config = IngestionConfig()
        assert config.default_country_code is None
        assert config.max_payload_bytes == DEFAULT_MAX_PAYLOAD_BYTES
        assert config.php_strict is False

    def test_country_code_uppercased(self) -> None:
        """Test the fallback country is normalised."""
        assert IngestionConfig(default_country_code=" gb ").default_country_code == "GB"

    @pytest.mark.parametrize("code", ["G", "GBRX", "G1"])
    def test_invalid_country_code(self, code: str) -> None:
        """Test malformed fallback countries are rejected."""
        with pytest.raises(ValueError, match="2-3 letters"):
            IngestionConfig(default_country_code=code)

    def test_payload_limit_must_be_positive(self) -> None:
        """Test a zero payload limit is rejected."""
        with pytest.raises(ValueError):
            IngestionConfig(max_payload_bytes=0)

    def test_frozen(self) -> None:
        """Test configs are immutable."""
        config = IngestionConfig()
        with pytest.raises(ValueError):
            config.php_strict = True  # type: ignore[misc]


class TestLoggingConfig:
    """Tests for LoggingConfig."""

    def test_level_normalised(self) -> None:
        """Test level names are uppercased."""
        assert LoggingConfig(level="debug").level == "DEBUG"

    def test_unknown_level(self) -> None:
        """Test unknown level names are rejected."""
        with pytest.raises(ValueError, match="Unknown log level"):
            LoggingConfig(level="chatty")


class TestLoadConfig:
    """Tests for YAML config loading."""

    def test_none_returns_defaults(self) -> None:
        """Test loading without a path yields the defaults."""
        assert load_config() == AppConfig()

    def test_load_from_yaml(self) -> None:
        """Test loading config from a YAML file."""
        yaml_content = """
ingestion:
  default_country_code: gb
  max_payload_bytes: 1024
  php_strict: true
logging:
  level: WARNING
"""
        with tempfile.NamedTemporaryFile(mode="w", suffix=".yaml", delete=False) as f:
            f.write(yaml_content)
            f.flush()
            config = load_config(Path(f.name))

        assert config.default_country_code == "GB"
        assert config.ingestion.max_payload_bytes == 1024
        assert config.ingestion.php_strict is True
        assert config.logging.level == "WARNING"
        Path(f.name).unlink()

    def test_env_var_interpolation(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test environment variable interpolation."""
        monkeypatch.setenv("TEST_BRANCH_COUNTRY", "IE")
        path = tmp_path / "config.yaml"
        path.write_text(
            "ingestion:\n"
            "  default_country_code: ${TEST_BRANCH_COUNTRY}\n"
            "logging:\n"
            "  level: ${TEST_BRANCH_LOG_LEVEL:ERROR}\n"
        )

        config = load_config(path)
        assert config.default_country_code == "IE"
        assert config.logging.level == "ERROR"

    def test_unset_env_var_falls_back_to_default(self, tmp_path: Path) -> None:
        """Test an empty interpolation leaves the model default in place."""
        path = tmp_path / "config.yaml"
        path.write_text("ingestion:\n  default_country_code: ${TEST_BRANCH_UNSET_VAR}\n")
        assert load_config(path).default_country_code is None

    def test_base_inheritance(self, tmp_path: Path) -> None:
        """Test a sibling base.yaml is merged under the main file."""
        (tmp_path / "base.yaml").write_text(
            "ingestion:\n  default_country_code: GB\n  max_payload_bytes: 2048\n"
        )
        main = tmp_path / "prod.yaml"
        main.write_text("ingestion:\n  max_payload_bytes: 4096\n")

        config = load_config(main)
        assert config.default_country_code == "GB"
        assert config.ingestion.max_payload_bytes == 4096

    def test_explicit_base_path(self, tmp_path: Path) -> None:
        """Test an explicit base path is used instead of base.yaml."""
        shared = tmp_path / "shared.yaml"
        shared.write_text("logging:\n  json_output: true\n")
        main = tmp_path / "main.yaml"
        main.write_text("ingestion: {}\n")

        assert load_config(main, base_path=shared).logging.json_output is True

    def test_empty_file(self, tmp_path: Path) -> None:
        """Test an empty config file yields the defaults."""
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_config(path) == AppConfig()

    def test_non_mapping_root(self, tmp_path: Path) -> None:
        """Test a YAML list at the root is rejected."""
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ValueError, match="must be a mapping"):
            load_yaml(path)
