"""Pydantic models for backup configuration."""

import os
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator


# ============================================================================
# Connection Models
# ============================================================================


class ConnectionProfile(BaseModel):
    """Source database connection from the config file."""

    name: str
    engine: Literal["mysql"] = "mysql"
    host: str = "localhost"
    port: int = 3306
    username: str = "root"
    password: str = ""
    password_env: str | None = None  # env var holding the password, wins over `password`
    description: str = ""

    def resolve_password(self) -> str:
        """Return the password, reading ``password_env`` when it is set."""
        if self.password_env:
            return os.environ.get(self.password_env, self.password)
        return self.password


# ============================================================================
# Job Models
# ============================================================================


class Schedule(BaseModel):
    """Recurrence interval of a backup job."""

    unit: Literal["minutes", "hours", "days"] = "hours"
    value: int = Field(default=1, gt=0)

    def as_seconds(self) -> int:
        """Interval length in seconds."""
        multiplier = {"minutes": 60, "hours": 3600, "days": 86400}[self.unit]
        return self.value * multiplier

    def __str__(self) -> str:
        return f"Every {self.value} {self.unit[:-1]}(s)"


class BackupJob(BaseModel):
    """A scheduled backup of a fixed set of databases on one connection."""

    connection: str
    databases: list[str]
    schedule: Schedule = Field(default_factory=Schedule)

    @field_validator("databases")
    @classmethod
    def unique_databases(cls, value: list[str]) -> list[str]:
        duplicates = sorted({d for d in value if value.count(d) > 1})
        if duplicates:
            raise ValueError(f"Duplicate databases in job: {', '.join(duplicates)}")
        return value

    @property
    def key(self) -> tuple[str, tuple[str, ...]]:
        """Identity of this job for scheduling purposes."""
        return (self.connection, tuple(self.databases))


# ============================================================================
# Upload Models
# ============================================================================


class LocalSinkConfig(BaseModel):
    """Mirror directory that receives a copy of every archive."""

    directory: Path


class WebhookSinkConfig(BaseModel):
    """Discord-style webhook that receives a summary and the archive."""

    url: str
    username: str = "db-backup"
    max_file_size_mb: float = 8.0
    timeout: float = 60.0


class UploadConfig(BaseModel):
    """Configured sinks. Absent sections are disabled."""

    local: LocalSinkConfig | None = None
    webhook: WebhookSinkConfig | None = None


# ============================================================================
# Application Config
# ============================================================================


class AppConfig(BaseModel):
    """Complete configuration from db-backup.toml."""

    connections: list[ConnectionProfile] = Field(default_factory=list)
    jobs: list[BackupJob] = Field(default_factory=list)
    upload: UploadConfig = Field(default_factory=UploadConfig)
    local_backup_dir: Path = Path("backups")
