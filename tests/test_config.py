"""Tests for configuration models and the TOML loader."""

import textwrap
from pathlib import Path

import pytest
from pydantic import ValidationError

from db_backup.config.loader import CONFIG_ENV_VAR, default_config_path, load_config
from db_backup.config.models import AppConfig, BackupJob, ConnectionProfile, Schedule
from db_backup.errors import ConfigError


def _write_config(tmp_path: Path, body: str) -> Path:
    path = tmp_path / "db-backup.toml"
    path.write_text(textwrap.dedent(body))
    return path


FULL_CONFIG = """
    local_backup_dir = "dumps"

    [[connections]]
    name = "prod"
    host = "db.internal"
    port = 3307
    username = "backup"
    password_env = "PROD_DB_PASSWORD"

    [[connections]]
    name = "staging"

    [[jobs]]
    connection = "prod"
    databases = ["orders", "users"]
    schedule = { unit = "minutes", value = 30 }

    [[jobs]]
    connection = "staging"
    databases = ["app"]

    [upload.local]
    directory = "/mnt/mirror"

    [upload.webhook]
    url = "https://example.invalid/hook"
    max_file_size_mb = 25
"""


# ------------------------------------------------------------------
# Models
# ------------------------------------------------------------------


class TestSchedule:
    @pytest.mark.parametrize(
        "unit, value, seconds",
        [("minutes", 1, 60), ("hours", 2, 7200), ("days", 1, 86400)],
    )
    def test_as_seconds(self, unit, value, seconds):
        assert Schedule(unit=unit, value=value).as_seconds() == seconds

    def test_default_is_hourly(self):
        assert Schedule().as_seconds() == 3600

    def test_str(self):
        assert str(Schedule(unit="days", value=3)) == "Every 3 day(s)"

    def test_value_must_be_positive(self):
        with pytest.raises(ValidationError):
            Schedule(unit="hours", value=0)

    def test_unknown_unit_rejected(self):
        with pytest.raises(ValidationError):
            Schedule(unit="weeks", value=1)


class TestConnectionProfile:
    def test_defaults(self):
        profile = ConnectionProfile(name="local")
        assert profile.engine == "mysql"
        assert profile.port == 3306

    def test_password_env_wins(self, monkeypatch):
        monkeypatch.setenv("SECRET_PW", "from-env")
        profile = ConnectionProfile(name="p", password="inline", password_env="SECRET_PW")
        assert profile.resolve_password() == "from-env"

    def test_password_env_unset_falls_back(self, monkeypatch):
        monkeypatch.delenv("SECRET_PW", raising=False)
        profile = ConnectionProfile(name="p", password="inline", password_env="SECRET_PW")
        assert profile.resolve_password() == "inline"

    def test_unsupported_engine_rejected(self):
        with pytest.raises(ValidationError):
            ConnectionProfile(name="p", engine="oracle")


class TestBackupJob:
    def test_key(self):
        job = BackupJob(connection="prod", databases=["a", "b"])
        assert job.key == ("prod", ("a", "b"))

    def test_duplicate_databases_rejected(self):
        with pytest.raises(ValidationError, match="Duplicate databases in job: a"):
            BackupJob(connection="prod", databases=["a", "b", "a"])

    def test_database_order_kept(self):
        job = BackupJob(connection="prod", databases=["zeta", "alpha"])
        assert job.databases == ["zeta", "alpha"]

    def test_key_changes_with_databases(self):
        first = BackupJob(connection="prod", databases=["a"])
        second = BackupJob(connection="prod", databases=["a", "b"])
        assert first.key != second.key


# ------------------------------------------------------------------
# Loader
# ------------------------------------------------------------------


class TestLoadConfig:
    def test_full_config(self, tmp_path):
        config = load_config(_write_config(tmp_path, FULL_CONFIG))

        assert isinstance(config, AppConfig)
        assert [c.name for c in config.connections] == ["prod", "staging"]
        assert config.connections[0].port == 3307
        assert config.jobs[0].databases == ["orders", "users"]
        assert config.jobs[0].schedule.as_seconds() == 1800
        assert config.jobs[1].schedule.as_seconds() == 3600
        assert config.upload.local.directory == Path("/mnt/mirror")
        assert config.upload.webhook.max_file_size_mb == 25

    def test_relative_backup_dir_anchored_at_config(self, tmp_path):
        config = load_config(_write_config(tmp_path, FULL_CONFIG))
        assert config.local_backup_dir == tmp_path / "dumps"

    def test_absolute_backup_dir_kept(self, tmp_path):
        target = tmp_path / "elsewhere"
        path = _write_config(tmp_path, f'local_backup_dir = "{target.as_posix()}"\n')
        assert load_config(path).local_backup_dir == target

    def test_empty_file_gives_defaults(self, tmp_path):
        config = load_config(_write_config(tmp_path, ""))
        assert config.connections == []
        assert config.jobs == []
        assert config.upload.local is None
        assert config.upload.webhook is None
        assert config.local_backup_dir == tmp_path / "backups"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "absent.toml")

    def test_invalid_toml(self, tmp_path):
        path = _write_config(tmp_path, "[[connections]\nname = ")
        with pytest.raises(ConfigError, match="Invalid TOML"):
            load_config(path)

    def test_validation_error(self, tmp_path):
        path = _write_config(
            tmp_path,
            """
            [[jobs]]
            connection = "prod"
            databases = ["a"]
            schedule = { unit = "hours", value = -1 }
            """,
        )
        with pytest.raises(ConfigError, match="Invalid configuration"):
            load_config(path)

    def test_duplicate_connection_names(self, tmp_path):
        path = _write_config(
            tmp_path,
            """
            [[connections]]
            name = "prod"

            [[connections]]
            name = "prod"
            """,
        )
        with pytest.raises(ConfigError, match="Duplicate connection names: prod"):
            load_config(path)


class TestDefaultConfigPath:
    def test_env_var(self, monkeypatch, tmp_path):
        monkeypatch.setenv(CONFIG_ENV_VAR, str(tmp_path / "custom.toml"))
        assert default_config_path() == tmp_path / "custom.toml"

    def test_cwd_fallback(self, monkeypatch, tmp_path):
        monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
        monkeypatch.chdir(tmp_path)
        assert default_config_path() == tmp_path / "db-backup.toml"

    def test_load_uses_env_var(self, monkeypatch, tmp_path):
        path = _write_config(tmp_path, FULL_CONFIG)
        monkeypatch.setenv(CONFIG_ENV_VAR, str(path))
        assert len(load_config().connections) == 2
