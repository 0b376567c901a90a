from __future__ import annotations

from .errors import InvalidInputError
from .types import PROPERTIES, Property, is_valid_value, normalize_property

# key beats value. Every other dominance query derives from this table.
DOMINANCE: dict[Property, Property] = {
    Property.DECEPTION: Property.ATTACK,
    Property.ATTACK: Property.MAGIC,
    Property.MAGIC: Property.DECEPTION,
}

DISPLAY_NAMES: dict[Property, str] = {
    Property.DECEPTION: "Deception",
    Property.MAGIC: "Magic",
    Property.ATTACK: "Attack",
}


def display_name(prop: Property | str) -> str:
    return DISPLAY_NAMES[normalize_property(prop)]


def beats(a: Property | str, b: Property | str) -> bool:
    return DOMINANCE[normalize_property(a)] is normalize_property(b)


def beaten_by(prop: Property | str) -> Property:
    """The property that `prop` beats."""
    return DOMINANCE[normalize_property(prop)]


def counter_of(prop: Property | str) -> Property:
    """The property that beats `prop`."""
    target = normalize_property(prop)
    for winner, loser in DOMINANCE.items():
        if loser is target:
            return winner
    raise InvalidInputError(f"No counter property for: {prop!r}")


def _check_value(value: object) -> int:
    if not is_valid_value(value):
        raise InvalidInputError(f"Invalid property value: {value!r}")
    return value  # type: ignore[return-value]


def validate_round_input(
    prop_a: Property | str, val_a: object, prop_b: Property | str, val_b: object
) -> bool:
    try:
        normalize_property(prop_a)
        normalize_property(prop_b)
        _check_value(val_a)
        _check_value(val_b)
    except InvalidInputError:
        return False
    return True


def score(
    prop_a: Property | str, val_a: int, prop_b: Property | str, val_b: int
) -> tuple[int, int]:
    """Resolve one round and return (points_a, points_b).

    A side scores only when it has the dominant (or the same) property AND a
    strictly higher value; the winner takes the absolute difference.
    """
    pa = normalize_property(prop_a)
    pb = normalize_property(prop_b)
    va = _check_value(val_a)
    vb = _check_value(val_b)

    if pa is pb:
        if va > vb:
            return (va - vb, 0)
        if vb > va:
            return (0, vb - va)
        return (0, 0)

    if DOMINANCE[pa] is pb and va > vb:
        return (va - vb, 0)
    if DOMINANCE[pb] is pa and vb > va:
        return (0, vb - va)
    return (0, 0)


def winner_of(points_a: int, points_b: int) -> int | None:
    if points_a > points_b:
        return 0
    if points_b > points_a:
        return 1
    return None


def round_winner(
    prop_a: Property | str, val_a: int, prop_b: Property | str, val_b: int
) -> int | None:
    return winner_of(*score(prop_a, val_a, prop_b, val_b))


def explain(prop_a: Property | str, val_a: int, prop_b: Property | str, val_b: int) -> str:
    """Human-readable rationale for a round outcome. Display only."""
    pa = normalize_property(prop_a)
    pb = normalize_property(prop_b)
    na = DISPLAY_NAMES[pa]
    nb = DISPLAY_NAMES[pb]

    if pa is pb:
        if val_a > val_b:
            return f"Both played {na}, but Side A's value ({val_a}) was higher than Side B's ({val_b})"
        if val_b > val_a:
            return f"Both played {na}, but Side B's value ({val_b}) was higher than Side A's ({val_a})"
        return f"Both played {na} with the same value ({val_a})"

    a_beats = DOMINANCE[pa] is pb
    if a_beats and val_a > val_b:
        return f"{na} beats {nb}, and Side A's value ({val_a}) was higher"
    if not a_beats and val_b > val_a:
        return f"{nb} beats {na}, and Side B's value ({val_b}) was higher"
    if a_beats:
        return f"{na} beats {nb}, but Side A's value ({val_a}) was not higher than Side B's ({val_b})"
    # distinct properties in a 3-cycle: exactly one side dominates
    return f"{nb} beats {na}, but Side B's value ({val_b}) was not higher than Side A's ({val_a})"


def all_properties() -> list[Property]:
    return list(PROPERTIES)
