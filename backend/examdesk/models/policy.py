"""Wizard validation policies.

Two historical flavours of the exam form disagree on how strict some rules
are. Each flavour is a named preset; the active one comes from settings.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict


class WizardPolicy(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = "custom"
    require_points_match: bool = False  # sum of question points must equal total_points
    require_session: bool = False
    require_center: bool = False
    require_students: bool = False
    seat_number_format: Literal["plain", "padded"] = "plain"

    @classmethod
    def named(cls, name: str) -> "WizardPolicy":
        try:
            return POLICIES[name]
        except KeyError:
            raise ValueError(f"Unknown wizard policy '{name}'. Known: {sorted(POLICIES)}")


STRICT = WizardPolicy(
    name="strict",
    require_points_match=True,
    require_students=True,
    seat_number_format="padded",
)

LENIENT = WizardPolicy(
    name="lenient",
    require_session=True,
    require_center=True,
    seat_number_format="plain",
)

POLICIES = {p.name: p for p in (STRICT, LENIENT)}
