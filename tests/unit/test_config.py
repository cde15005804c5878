"""Unit tests for Config loading and the default config file."""

from pathlib import Path

import pytest

from oltshell.core.config import Config
from oltshell.core.vendor_tables import get_default_tables


class TestConfigLoad:
    """Config.load() merging and error handling."""

    def test_missing_file_gives_defaults(self, tmp_path):
        config = Config.load(tmp_path / "none.yaml")

        assert config.session.timeout == 30.0
        assert config.session.disable_pager
        assert config.logging.level == "INFO"
        assert config.load_vendor_tables() is get_default_tables()

    def test_values_from_file(self, tmp_path):
        tables = tmp_path / "tables.yaml"
        tables.write_text("pager_commands:\n  acme: 'no page'\n")
        path = tmp_path / "config.yaml"
        path.write_text(
            "session:\n"
            "  timeout: 12\n"
            "  legacy_mode: true\n"
            "logging:\n"
            "  level: DEBUG\n"
            f"vendor_tables: {tables}\n"
            "inventory: ~/olts.yaml\n"
        )

        config = Config.load(path)

        assert config.session.timeout == 12.0
        assert config.session.legacy_mode
        assert config.session.port == 22
        assert config.logging.level == "DEBUG"
        assert config.inventory_file == Path("~/olts.yaml").expanduser()
        assert config.load_vendor_tables().pager_command_for("acme") == "no page"

    def test_env_var(self, tmp_path, monkeypatch):
        path = tmp_path / "env.yaml"
        path.write_text("session:\n  port: 2222\n")
        monkeypatch.setenv("OLTSHELL_CONFIG", str(path))

        assert Config.load().session.port == 2222

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("session: [unclosed\n")
        with pytest.raises(ValueError):
            Config.load(path)


class TestSaveDefaultConfig:
    """save_default_config() writes a loadable file once."""

    def test_written_file_loads(self, tmp_path):
        config = Config(base_dir=tmp_path, config_file=tmp_path / "sub" / "config.yaml", log_dir=tmp_path / "logs")

        config.save_default_config()

        assert config.config_file.exists()
        loaded = Config.load(config.config_file)
        assert loaded.session.timeout == 30.0
        assert loaded.logging.file == tmp_path / "logs" / "oltshell.log"

    def test_existing_file_untouched(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("session:\n  timeout: 5\n")

        Config(config_file=path).save_default_config()

        assert path.read_text() == "session:\n  timeout: 5\n"
