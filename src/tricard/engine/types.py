from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Literal, Mapping

from .errors import InvalidCardError, InvalidInputError

Rarity = Literal["legendary", "epic", "rare", "common"]

PROPERTY_SUM = 20
MIN_PROPERTY_VALUE = 1
MAX_PROPERTY_VALUE = 9


class Property(str, Enum):
    DECEPTION = "deception"
    MAGIC = "magic"
    ATTACK = "attack"


# Canonical order; also the tie-break order for highest/lowest lookups.
PROPERTIES: tuple[Property, ...] = (Property.DECEPTION, Property.MAGIC, Property.ATTACK)

LEGACY_PROPERTY_NAMES: dict[str, Property] = {
    "rock": Property.DECEPTION,
    "paper": Property.MAGIC,
    "scissors": Property.ATTACK,
}


def normalize_property(name: Property | str) -> Property:
    """Map a property name (current or legacy rock/paper/scissors) onto `Property`."""
    if isinstance(name, Property):
        return name
    if not isinstance(name, str):
        raise InvalidInputError(f"Invalid property name: {name!r}")
    key = name.strip().lower()
    if key in LEGACY_PROPERTY_NAMES:
        return LEGACY_PROPERTY_NAMES[key]
    try:
        return Property(key)
    except ValueError:
        raise InvalidInputError(f"Invalid property name: {name!r}") from None


def is_valid_value(value: object) -> bool:
    return (
        isinstance(value, int)
        and not isinstance(value, bool)
        and MIN_PROPERTY_VALUE <= value <= MAX_PROPERTY_VALUE
    )


@dataclass(frozen=True)
class PropertyValue:
    property: Property
    value: int


@dataclass(frozen=True)
class Card:
    """Immutable card. Equality and hashing use the three values; `id` is identity."""

    id: int = field(compare=False)
    deception: int
    magic: int
    attack: int

    def __post_init__(self) -> None:
        values = (self.deception, self.magic, self.attack)
        if not all(is_valid_value(v) for v in values):
            raise InvalidCardError(
                f"Each property must be an integer between {MIN_PROPERTY_VALUE} and "
                f"{MAX_PROPERTY_VALUE}. Got: {values}"
            )
        total = sum(values)
        if total != PROPERTY_SUM:
            raise InvalidCardError(f"Card properties must sum to {PROPERTY_SUM}. Got: {total}")

    def get(self, prop: Property | str) -> int:
        p = normalize_property(prop)
        if p is Property.DECEPTION:
            return self.deception
        if p is Property.MAGIC:
            return self.magic
        return self.attack

    def values(self) -> dict[Property, int]:
        return {p: self.get(p) for p in PROPERTIES}

    def highest(self) -> PropertyValue:
        best = PropertyValue(PROPERTIES[0], self.get(PROPERTIES[0]))
        for p in PROPERTIES[1:]:
            v = self.get(p)
            if v > best.value:
                best = PropertyValue(p, v)
        return best

    def lowest(self) -> PropertyValue:
        worst = PropertyValue(PROPERTIES[0], self.get(PROPERTIES[0]))
        for p in PROPERTIES[1:]:
            v = self.get(p)
            if v < worst.value:
                worst = PropertyValue(p, v)
        return worst

    @property
    def spread(self) -> int:
        return self.highest().value - self.lowest().value

    def is_balanced(self) -> bool:
        return self.spread <= 3

    def rarity(self) -> Rarity:
        spread = self.spread
        if spread <= 1:
            return "legendary"
        if spread <= 3:
            return "epic"
        if spread <= 5:
            return "rare"
        return "common"

    def is_identical(self, other: "Card") -> bool:
        return self == other

    def compact(self) -> str:
        return f"D{self.deception} M{self.magic} A{self.attack}"

    def __str__(self) -> str:
        return f"Deception: {self.deception}, Magic: {self.magic}, Attack: {self.attack}"

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "deception": self.deception,
            "magic": self.magic,
            "attack": self.attack,
            "rarity": self.rarity(),
            "balanced": self.is_balanced(),
        }

    @staticmethod
    def from_dict(d: Mapping[str, object]) -> "Card":
        cid = d.get("id")
        if not isinstance(cid, int) or isinstance(cid, bool):
            raise InvalidCardError(f"Card id must be an integer. Got: {cid!r}")
        return Card(
            id=cid,
            deception=d.get("deception"),  # type: ignore[arg-type]
            magic=d.get("magic"),  # type: ignore[arg-type]
            attack=d.get("attack"),  # type: ignore[arg-type]
        )

    @staticmethod
    def from_legacy(d: Mapping[str, object]) -> "Card":
        cid = d.get("id", 0)
        return Card(
            id=cid if isinstance(cid, int) else 0,
            deception=d.get("rock"),  # type: ignore[arg-type]
            magic=d.get("paper"),  # type: ignore[arg-type]
            attack=d.get("scissors"),  # type: ignore[arg-type]
        )
