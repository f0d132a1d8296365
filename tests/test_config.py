from pathlib import Path

import config as config_module
from config import Config, load_config
from logger import get_log_file_path, setup_logging


class TestLoadConfig:
    def test_creates_default_file(self, tmp_path, monkeypatch):
        monkeypatch.setattr(Path, "home", lambda: tmp_path)

        config = load_config()

        assert (tmp_path / ".config" / "bankfolio.toml").exists()
        assert config.db_path == tmp_path / "data" / "bankfolio" / "db" / "bankfolio.db"
        assert config.default_currency == "EUR"
        assert config.seed_file is None

    def test_reads_existing_file(self, tmp_path, monkeypatch):
        monkeypatch.setattr(Path, "home", lambda: tmp_path)
        config_path = tmp_path / ".config" / "bankfolio.toml"
        config_path.parent.mkdir(parents=True)
        config_path.write_text(
            f'base_dir = "{tmp_path / "fin"}"\n'
            "[database]\n"
            'filename = "other.db"\n'
            "[logging]\n"
            'level = "DEBUG"\n'
            "[import]\n"
            'default_currency = "CHF"\n'
            f'seed_file = "{tmp_path / "seed.json"}"\n'
        )

        config = load_config()

        assert config.db_path == tmp_path / "fin" / "db" / "other.db"
        assert config.log_level == "DEBUG"
        assert config.log_dir == tmp_path / "fin" / "logs"
        assert config.default_currency == "CHF"
        assert config.category_seed_path == tmp_path / "seed.json"

    def test_default_round_trip(self, tmp_path, monkeypatch):
        monkeypatch.setattr(Path, "home", lambda: tmp_path)

        written = load_config()
        reread = load_config()

        assert reread == written

    def test_bundled_seed_path(self, test_config):
        assert test_config.category_seed_path == (
            config_module.get_seed_dir() / "categories.json"
        )


class TestLogging:
    def test_setup_logging_writes_dated_file(self, test_config: Config):
        logger = setup_logging(test_config, console=False)
        logger.info("hello")
        for handler in logger.handlers:
            handler.flush()

        assert "hello" in get_log_file_path(test_config).read_text()
        assert len(logger.handlers) == 1

        setup_logging(test_config, console=False)
        assert len(logger.handlers) == 1

        logger.handlers.clear()
