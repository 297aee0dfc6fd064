"""Configuration for the attendance approval service."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class ServerConfig:
    """HTTP server configuration."""
    host: str = "0.0.0.0"
    port: int = 8060
    reload: bool = False


@dataclass
class StoreConfig:
    """Durable local store configuration."""
    backend: str = "memory"  # memory | sqlite | redis
    key: str = "signup_requests"

    # SQLite backend
    sqlite_path: str = "attendance_requests.db"

    # File-backed mirror (backup copy)
    mirror_path: str = "signup_requests.yaml"
    mirror_enabled: bool = True
    mirror_mode: str = "snapshot"  # snapshot | write_through


@dataclass
class RedisConfig:
    """Redis connection configuration."""
    host: str = "localhost"
    port: int = 6379
    db: int = 0
    password: str | None = None
    prefix: str = "attendance:"
    socket_timeout: float = 5.0
    socket_connect_timeout: float = 5.0


@dataclass
class DirectoryConfig:
    """Identity / employee directory configuration."""
    mode: str = "memory"  # memory | http
    base_url: str = "http://localhost:3000"
    timeout_seconds: float = 10.0
    api_token: str | None = None


@dataclass
class WorkflowConfig:
    """Workflow engine configuration."""
    # YAML table of username -> profile defaults used to enrich signups
    profiles_file: str | None = None
    default_role: str = "employee"


@dataclass
class Config:
    """Main configuration container."""
    server: ServerConfig = field(default_factory=ServerConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    redis: RedisConfig = field(default_factory=RedisConfig)
    directory: DirectoryConfig = field(default_factory=DirectoryConfig)
    workflow: WorkflowConfig = field(default_factory=WorkflowConfig)

    @classmethod
    def from_dict(cls, data: dict) -> Config:
        """Create config from dictionary."""
        return cls(
            server=ServerConfig(**data.get("server", {})),
            store=StoreConfig(**data.get("store", {})),
            redis=RedisConfig(**data.get("redis", {})),
            directory=DirectoryConfig(**data.get("directory", {})),
            workflow=WorkflowConfig(**data.get("workflow", {})),
        )

    @classmethod
    def from_yaml(cls, path: str) -> Config:
        """Load config from YAML file."""
        import yaml
        with open(path, "r") as f:
            data = yaml.safe_load(f)
        return cls.from_dict(data or {})
