"""
Item schema.

pydantic models describing a valid item record and its nested `effects`
structure. Field names follow Python conventions; the wire format uses
camelCase aliases (`stackSize`, `equipableSlot`, `shortArms`, ...).

Types are strict where JSON could be ambiguous: booleans are not numbers and
numeric strings are not numbers. Explicit nulls and non-finite numbers
are rejected.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictFloat,
    StrictInt,
    StrictStr,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from config import get_logger
from database.models import loads_finite_json


logger = get_logger("items.schema")

Number = Union[StrictInt, StrictFloat]


class EquipableSlot(str, Enum):
    """Equipment slot an item can occupy."""

    NONE = "NONE"
    HEAD = "HEAD"
    NECKLACE = "NECKLACE"
    TORSO = "TORSO"
    LEGS = "LEGS"
    BOOTS = "BOOTS"
    GLOVES = "GLOVES"
    RING = "RING"
    MAINHAND = "MAINHAND"
    OFFHAND = "OFFHAND"
    BACKPACK = "BACKPACK"
    AMMO = "AMMO"
    POCKET = "POCKET"


class WireModel(BaseModel):
    """Base model: camelCase on the wire, unknown keys dropped, no NaN or infinity.

    Optional fields may be omitted but not sent as null.
    """

    model_config = ConfigDict(alias_generator=to_camel, extra="ignore", allow_inf_nan=False)

    @field_validator("*", mode="before")
    @classmethod
    def _reject_null(cls, value: Any) -> Any:
        if value is None:
            raise ValueError("must not be null; omit the field instead")
        return value


class Proficiency(WireModel):
    level: StrictInt


class ProficiencySet(WireModel):
    """Named skill proficiencies; every skill is optional."""

    swords: Optional[Proficiency] = None
    short_arms: Optional[Proficiency] = None
    long_arms: Optional[Proficiency] = None
    daggers: Optional[Proficiency] = None
    special: Optional[Proficiency] = None
    bows: Optional[Proficiency] = None
    crossbows: Optional[Proficiency] = None
    thrown: Optional[Proficiency] = None
    pistols: Optional[Proficiency] = None
    smgs: Optional[Proficiency] = None
    rifles: Optional[Proficiency] = None
    shotguns: Optional[Proficiency] = None
    spells: Optional[Proficiency] = None
    miracles: Optional[Proficiency] = None
    summoning: Optional[Proficiency] = None
    gadgets: Optional[Proficiency] = None
    nanotech: Optional[Proficiency] = None
    drones: Optional[Proficiency] = None


class Attributes(WireModel):
    strength: Number


class Inventory(WireModel):
    slots: Number
    items: list[Any]


class VitalPool(WireModel):
    current: Optional[Number] = None
    max: Optional[Number] = None


class Stamina(WireModel):
    current: Number


class Vitals(WireModel):
    health: Optional[VitalPool] = None
    shields: Optional[VitalPool] = None
    barrier: Optional[VitalPool] = None
    stamina: Optional[Stamina] = None


class Effects(WireModel):
    """Gameplay modifiers attached to an item."""

    attributes: Optional[Attributes] = None
    proficiencies: Optional[dict[str, ProficiencySet]] = None
    inventory: Optional[Inventory] = None
    vitals: Optional[Vitals] = None

    @model_validator(mode="after")
    def _require_one_field(self) -> "Effects":
        if not any(getattr(self, name) is not None for name in self.model_fields_set):
            raise ValueError("Effects must have at least one field defined.")
        return self


class Item(WireModel):
    """A game item record as accepted by the upload endpoint."""

    id: StrictStr = Field(..., min_length=1)
    name: StrictStr = Field(..., min_length=1)
    description: StrictStr = Field(..., min_length=1)
    stack_size: StrictInt = Field(..., ge=1)
    equipable_slot: EquipableSlot
    targettable: StrictBool
    consumable: StrictBool
    effects: Effects

    @field_validator("effects", mode="before")
    @classmethod
    def _decode_effects(cls, value: Any) -> Any:
        # A JSON string is decoded; an undecodable one counts as missing.
        if isinstance(value, str):
            try:
                return loads_finite_json(value)
            except ValueError:
                return None
        return value


@dataclass(frozen=True)
class ValidationOutcome:
    """Result of validating one candidate record."""

    ok: bool
    item: Optional[Item] = None
    errors: list[str] = field(default_factory=list)


def format_errors(exc: ValidationError) -> list[str]:
    """Render pydantic errors as `dotted.path: message` strings."""

    out: list[str] = []
    for err in exc.errors(include_url=False):
        path = ".".join(str(p) for p in err.get("loc", ())) or "item"
        out.append(f"{path}: {err.get('msg', 'invalid value')}")
    return out


def validate_item(candidate: Any) -> ValidationOutcome:
    """Validate a candidate record, logging acceptance or rejection."""

    try:
        item = Item.model_validate(candidate)
    except ValidationError as e:
        errors = format_errors(e)
        item_id = candidate.get("id") if isinstance(candidate, dict) else None
        logger.warning("Invalid item input %r: %s", item_id, "; ".join(errors))
        return ValidationOutcome(ok=False, errors=errors)

    logger.info("Valid item input %r, processing...", item.id)
    return ValidationOutcome(ok=True, item=item)
