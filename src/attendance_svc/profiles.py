"""Profile defaults - read-only username -> profile table.

Known staff can be pre-registered with their department, position, work mode
and hire date. When one of them signs up, the missing profile fields of the
request are filled from this table.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping

import yaml

from .work_modes import WorkMode

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ProfileDefaults:
    """Default profile fields for a known username."""
    name: str = ""
    email: str = ""
    role: str = ""
    department: str = ""
    position: str = ""
    work_mode: WorkMode | None = None
    hire_date: str | None = None


ProfileTable = Mapping[str, ProfileDefaults]

EMPTY_PROFILES: ProfileTable = MappingProxyType({})


def _parse_profile(data: dict[str, Any]) -> ProfileDefaults:
    work_mode = None
    if data.get("work_mode"):
        try:
            work_mode = WorkMode.parse(data["work_mode"])
        except ValueError:
            logger.warning(f"Ignoring unknown work mode in profile: {data['work_mode']}")

    hire_date = data.get("hire_date")
    return ProfileDefaults(
        name=data.get("name", ""),
        email=data.get("email", ""),
        role=data.get("role", ""),
        department=data.get("department", ""),
        position=data.get("position", ""),
        work_mode=work_mode,
        hire_date=str(hire_date) if hire_date else None,
    )


def build_profile_table(data: Mapping[str, dict[str, Any]]) -> ProfileTable:
    """Build an immutable profile table from plain dictionaries."""
    return MappingProxyType({
        username: _parse_profile(fields or {})
        for username, fields in data.items()
    })


def load_profiles_from_yaml(path: str | Path) -> ProfileTable:
    """Load the profile table from a YAML file with a top-level ``profiles`` map."""
    path = Path(path)
    if not path.exists():
        logger.info(f"Profiles file not found: {path}")
        return EMPTY_PROFILES

    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if not data or "profiles" not in data:
        return EMPTY_PROFILES

    table = build_profile_table(data["profiles"] or {})
    logger.info(f"Loaded {len(table)} profile defaults from {path}")
    return table
