"""FastAPI application - Attendance Approval Service.

Hosts the signup / work-mode request workflow for the mobile app and the
reviewer screens. Accounts and employee records live in the external
directory; this service only decides when they change.
"""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from fastapi import FastAPI
from pydantic import BaseModel

from .config import Config
from .directory.base import EmployeeDirectory, IdentityDirectory
from .directory.http import HttpEmployeeDirectory, HttpIdentityDirectory
from .directory.memory import InMemoryEmployeeDirectory, InMemoryIdentityDirectory
from .profiles import EMPTY_PROFILES, load_profiles_from_yaml
from .requests import routes as request_routes
from .requests.engine import WorkflowEngine
from .requests.errors import StorageError
from .requests.repository import RequestRepository
from .requests.stats import RequestStatistics
from .store.base import KeyValueStore
from .store.memory import MemoryStore
from .store.mirror import MirrorFile
from .store.redis import RedisStore
from .store.sqlite import SqliteStore


logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "ATTENDANCE_CONFIG"


class HealthResponse(BaseModel):
    status: str
    store: dict[str, Any]
    mirror_inconsistencies: int


@dataclass
class Components:
    """Everything the lifespan builds and later tears down."""
    config: Config
    store: KeyValueStore
    repository: RequestRepository
    identity: IdentityDirectory
    employees: EmployeeDirectory
    engine: WorkflowEngine
    stats: RequestStatistics


def load_config() -> Config:
    """Load config from $ATTENDANCE_CONFIG, falling back to defaults."""
    path = os.environ.get(CONFIG_ENV_VAR)
    if path and Path(path).exists():
        logger.info(f"Loading config from {path}")
        return Config.from_yaml(path)
    if path:
        logger.warning(f"Config file not found: {path}, using defaults")
    return Config()


async def build_store(config: Config) -> KeyValueStore:
    """Create the primary key-value store for the configured backend."""
    backend = config.store.backend
    if backend == "sqlite":
        return SqliteStore(config.store.sqlite_path)
    if backend == "redis":
        store = RedisStore(config.redis)
        if not await store.connect():
            raise RuntimeError(f"Redis unavailable at {config.redis.host}:{config.redis.port}")
        return store
    if backend != "memory":
        raise ValueError(f"Unknown store backend: {backend}")
    return MemoryStore()


def build_directories(config: Config) -> tuple[IdentityDirectory, EmployeeDirectory]:
    """Create identity and employee directory clients."""
    if config.directory.mode == "http":
        return HttpIdentityDirectory(config.directory), HttpEmployeeDirectory(config.directory)
    if config.directory.mode != "memory":
        raise ValueError(f"Unknown directory mode: {config.directory.mode}")
    logger.warning("Using in-memory directories - accounts are not persisted")
    return InMemoryIdentityDirectory(), InMemoryEmployeeDirectory()


async def build_components(config: Config) -> Components:
    """Wire the store, repository, directories and engine from config."""
    if config.store.mirror_mode not in ("snapshot", "write_through"):
        raise ValueError(f"Unknown mirror mode: {config.store.mirror_mode}")

    store = await build_store(config)
    mirror = MirrorFile(config.store.mirror_path) if config.store.mirror_enabled else None
    repository = RequestRepository(
        store,
        mirror=mirror,
        key=config.store.key,
        write_through=config.store.mirror_mode == "write_through",
    )

    identity, employees = build_directories(config)

    profiles = EMPTY_PROFILES
    if config.workflow.profiles_file:
        profiles = load_profiles_from_yaml(config.workflow.profiles_file)

    engine = WorkflowEngine(
        repository,
        identity,
        employees=employees,
        profiles=profiles,
        default_role=config.workflow.default_role,
    )
    stats = RequestStatistics(repository, employees=employees)
    return Components(
        config=config,
        store=store,
        repository=repository,
        identity=identity,
        employees=employees,
        engine=engine,
        stats=stats,
    )


async def close_components(components: Components) -> None:
    """Snapshot the mirror, then release network clients and store connections."""
    store_config = components.config.store
    if store_config.mirror_enabled and store_config.mirror_mode == "snapshot":
        try:
            await components.repository.export_snapshot()
        except StorageError as e:
            logger.error(f"Shutdown snapshot failed: {e}")

    for client in (components.identity, components.employees):
        if isinstance(client, (HttpIdentityDirectory, HttpEmployeeDirectory)):
            await client.close()
    await components.store.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - startup and shutdown."""
    logger.info("Starting attendance approval service...")

    components = await build_components(load_config())
    app.state.components = components
    request_routes.configure(components.engine, components.stats)

    logger.info(
        f"Attendance approval service started "
        f"(store={components.config.store.backend}, directory={components.config.directory.mode})"
    )

    yield

    logger.info("Shutting down attendance approval service...")
    await close_components(components)
    logger.info("Attendance approval service stopped")


# Create FastAPI app
app = FastAPI(
    title="Attendance Approval Service",
    description="Signup and work-mode request approval workflow.",
    version="0.1.0",
    lifespan=lifespan,
)
app.include_router(request_routes.router)


@app.get("/health", response_model=HealthResponse)
async def health():
    """Health check endpoint."""
    components: Components = app.state.components
    store = components.store

    if isinstance(store, RedisStore):
        store_health = await store.health_check()
    elif isinstance(store, MemoryStore):
        store_health = {"status": "ok", **store.stats}
    else:
        store_health = {"status": "ok", "backend": components.config.store.backend}

    return HealthResponse(
        status="healthy",
        store=store_health,
        mirror_inconsistencies=components.repository.inconsistency_count,
    )


def run():
    """Run the service with uvicorn."""
    import uvicorn

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = load_config()
    uvicorn.run(
        "attendance_svc.main:app",
        host=config.server.host,
        port=config.server.port,
        reload=config.server.reload,
    )


if __name__ == "__main__":
    run()
