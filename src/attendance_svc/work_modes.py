"""Work modes - an employee's attendance policy classification."""

from __future__ import annotations

from enum import Enum


class WorkMode(str, Enum):
    """Where an employee is expected to work from."""
    IN_OFFICE = "in_office"
    SEMI_REMOTE = "semi_remote"
    FULLY_REMOTE = "fully_remote"

    @property
    def label(self) -> str:
        return WORK_MODE_LABELS[self]

    @property
    def description(self) -> str:
        return WORK_MODE_DESCRIPTIONS[self]

    @classmethod
    def parse(cls, value: str | WorkMode | None) -> WorkMode:
        """Accept a value ("semi_remote") or a label ("Semi-Remote")."""
        if isinstance(value, WorkMode):
            return value
        if not value:
            raise ValueError("Work mode is required")
        text = str(value).strip()
        for mode in cls:
            if text == mode.value or text.lower() == mode.label.lower():
                return mode
        raise ValueError(f"Unknown work mode: {value}")


WORK_MODE_LABELS = {
    WorkMode.IN_OFFICE: "In Office",
    WorkMode.SEMI_REMOTE: "Semi-Remote",
    WorkMode.FULLY_REMOTE: "Fully Remote",
}

WORK_MODE_DESCRIPTIONS = {
    WorkMode.IN_OFFICE: "Works from the office every day",
    WorkMode.SEMI_REMOTE: "Splits the week between office and home",
    WorkMode.FULLY_REMOTE: "Works remotely full time",
}


def all_work_modes() -> list[dict[str, str]]:
    """Work modes with their display fields, in declaration order."""
    return [
        {"value": m.value, "label": m.label, "description": m.description}
        for m in WorkMode
    ]
