from __future__ import annotations

import logging
import random
from collections import Counter
from functools import lru_cache
from typing import Iterable, Sequence

from .errors import ExhaustedPoolError, InvalidCardError
from .types import (
    MAX_PROPERTY_VALUE,
    MIN_PROPERTY_VALUE,
    PROPERTIES,
    PROPERTY_SUM,
    Card,
    Property,
    Rarity,
    normalize_property,
)

logger = logging.getLogger(__name__)


def _triples(total: int) -> Iterable[tuple[int, int, int]]:
    # deception ascending, then magic ascending; ids depend on this order
    for deception in range(MIN_PROPERTY_VALUE, MAX_PROPERTY_VALUE + 1):
        for magic in range(MIN_PROPERTY_VALUE, MAX_PROPERTY_VALUE + 1):
            attack = total - deception - magic
            if MIN_PROPERTY_VALUE <= attack <= MAX_PROPERTY_VALUE:
                yield deception, magic, attack


@lru_cache(maxsize=1)
def generate_all() -> tuple[Card, ...]:
    """Every legal card, in a stable order with ids 0..N-1."""
    return tuple(
        Card(id=i, deception=d, magic=m, attack=a) for i, (d, m, a) in enumerate(_triples(PROPERTY_SUM))
    )


def universe_size(total: int = PROPERTY_SUM) -> int:
    return sum(1 for _ in _triples(total))


def card_by_id(card_id: int) -> Card:
    cards = generate_all()
    if not 0 <= card_id < len(cards):
        raise InvalidCardError(f"Unknown card id: {card_id}")
    return cards[card_id]


def _available(exclude: Iterable[Card]) -> list[Card]:
    excluded = {c.id for c in exclude}
    return [c for c in generate_all() if c.id not in excluded]


def random_card(exclude: Iterable[Card] = (), rng: random.Random | None = None) -> Card:
    pool = _available(exclude)
    if not pool:
        raise ExhaustedPoolError("No available cards to select from")
    return (rng or random).choice(pool)


def random_cards(
    n: int, exclude: Iterable[Card] = (), rng: random.Random | None = None
) -> list[Card]:
    """Sample up to `n` distinct cards.

    Stops early when the pool runs dry; a result shorter than `n` is a
    failure the caller must handle (see `deal_hand`).
    """
    if n <= 0:
        return []
    pool = _available(exclude)
    if len(pool) < n:
        logger.warning("Requested %d cards but only %d remain", n, len(pool))
    return (rng or random).sample(pool, min(n, len(pool)))


def deal_hand(n: int, exclude: Iterable[Card] = (), rng: random.Random | None = None) -> list[Card]:
    hand = random_cards(n, exclude, rng)
    if len(hand) != n:
        raise ExhaustedPoolError(f"Could only deal {len(hand)} of {n} cards")
    return hand


def _pick(pool: list[Card], count: int, rng: random.Random | None) -> list[Card]:
    return (rng or random).sample(pool, min(count, len(pool)))


def cards_by_rarity(rarity: Rarity, count: int = 1, rng: random.Random | None = None) -> list[Card]:
    pool = [c for c in generate_all() if c.rarity() == rarity]
    if not pool:
        raise ExhaustedPoolError(f"No cards found with rarity: {rarity}")
    return _pick(pool, count, rng)


def balanced_cards(count: int = 1, rng: random.Random | None = None) -> list[Card]:
    pool = [c for c in generate_all() if c.is_balanced()]
    if not pool:
        raise ExhaustedPoolError("No balanced cards available")
    return _pick(pool, count, rng)


def cards_with_high_property(
    prop: Property | str, min_value: int = 7, count: int = 1, rng: random.Random | None = None
) -> list[Card]:
    p = normalize_property(prop)
    pool = [c for c in generate_all() if c.get(p) >= min_value]
    if not pool:
        raise ExhaustedPoolError(f"No cards found with {p.value} >= {min_value}")
    return _pick(pool, count, rng)


def analyze_distribution(cards: Sequence[Card] | None = None) -> dict[str, object]:
    cards = generate_all() if cards is None else cards
    rarity = Counter(c.rarity() for c in cards)
    per_property: dict[str, dict[int, int]] = {}
    for p in PROPERTIES:
        per_property[p.value] = dict(sorted(Counter(c.get(p) for c in cards).items()))
    balanced = sum(1 for c in cards if c.is_balanced())
    return {
        "total_cards": len(cards),
        "rarity_distribution": dict(rarity),
        "property_distribution": per_property,
        "balanced_cards": balanced,
        "extreme_cards": len(cards) - balanced,
    }


def validate_cards(cards: Iterable[object]) -> bool:
    for c in cards:
        if not isinstance(c, Card):
            return False
        if c.deception + c.magic + c.attack != PROPERTY_SUM:
            return False
    return True
