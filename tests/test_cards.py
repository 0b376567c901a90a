from __future__ import annotations

import random

import pytest

from tricard.engine.cards import (
    analyze_distribution,
    balanced_cards,
    card_by_id,
    cards_by_rarity,
    cards_with_high_property,
    deal_hand,
    generate_all,
    random_card,
    random_cards,
    universe_size,
    validate_cards,
)
from tricard.engine.errors import ExhaustedPoolError, InvalidCardError, InvalidInputError
from tricard.engine.types import Card, Property, normalize_property


def test_universe_is_every_legal_triple() -> None:
    cards = generate_all()
    assert len(cards) == 36
    assert universe_size() == 36
    assert [c.id for c in cards] == list(range(36))
    assert len({(c.deception, c.magic, c.attack) for c in cards}) == 36
    for c in cards:
        assert c.deception + c.magic + c.attack == 20
        assert all(1 <= v <= 9 for v in (c.deception, c.magic, c.attack))


def test_universe_order_is_stable() -> None:
    cards = generate_all()
    assert (cards[0].deception, cards[0].magic, cards[0].attack) == (2, 9, 9)
    assert (cards[-1].deception, cards[-1].magic, cards[-1].attack) == (9, 9, 2)
    assert card_by_id(5) is cards[5]
    with pytest.raises(InvalidCardError):
        card_by_id(36)


def test_card_rejects_bad_values() -> None:
    with pytest.raises(InvalidCardError):
        Card(id=0, deception=10, magic=5, attack=5)
    with pytest.raises(InvalidCardError):
        Card(id=0, deception=0, magic=10, attack=10)
    with pytest.raises(InvalidCardError):
        Card(id=0, deception=5, magic=5, attack=5)
    with pytest.raises(InvalidCardError):
        Card(id=0, deception=True, magic=9, attack=9)  # type: ignore[arg-type]


def test_card_equality_ignores_id() -> None:
    a = Card(id=1, deception=6, magic=7, attack=7)
    b = Card(id=99, deception=6, magic=7, attack=7)
    assert a == b
    assert a.is_identical(b)
    assert a != Card(id=1, deception=7, magic=6, attack=7)


def test_highest_lowest_and_rarity() -> None:
    c = Card(id=0, deception=2, magic=9, attack=9)
    # ties resolve to the first property in canonical order
    assert c.highest().property is Property.MAGIC
    assert c.lowest().property is Property.DECEPTION
    assert c.spread == 7
    assert c.rarity() == "common"
    assert not c.is_balanced()

    assert Card(id=0, deception=7, magic=7, attack=6).rarity() == "legendary"
    assert Card(id=0, deception=8, magic=7, attack=5).rarity() == "epic"
    assert Card(id=0, deception=9, magic=7, attack=4).rarity() == "rare"
    assert Card(id=0, deception=8, magic=7, attack=5).is_balanced()


def test_card_dict_and_legacy_forms() -> None:
    c = Card(id=4, deception=3, magic=8, attack=9)
    d = c.to_dict()
    assert d["rarity"] == c.rarity()
    assert Card.from_dict(d) == c
    assert Card.from_dict(d).id == 4
    legacy = Card.from_legacy({"id": 2, "rock": 3, "paper": 8, "scissors": 9})
    assert legacy == c
    assert c.compact() == "D3 M8 A9"
    assert str(c) == "Deception: 3, Magic: 8, Attack: 9"


def test_normalize_property_accepts_legacy_names() -> None:
    assert normalize_property(" Rock ") is Property.DECEPTION
    assert normalize_property("paper") is Property.MAGIC
    assert normalize_property("SCISSORS") is Property.ATTACK
    assert normalize_property("magic") is Property.MAGIC
    with pytest.raises(InvalidInputError):
        normalize_property("lizard")
    with pytest.raises(InvalidInputError):
        normalize_property(3)  # type: ignore[arg-type]


def test_random_card_respects_exclusions() -> None:
    rng = random.Random(1)
    cards = generate_all()
    keep = cards[7]
    exclude = [c for c in cards if c.id != keep.id]
    assert random_card(exclude, rng) is keep
    with pytest.raises(ExhaustedPoolError):
        random_card(cards, rng)


def test_random_cards_are_distinct_and_short_when_pool_runs_dry() -> None:
    rng = random.Random(2)
    hand = random_cards(10, rng=rng)
    assert len({c.id for c in hand}) == 10
    cards = generate_all()
    assert len(random_cards(5, exclude=cards[:34], rng=rng)) == 2
    assert random_cards(0, rng=rng) == []


def test_deal_hand_raises_when_short() -> None:
    cards = generate_all()
    with pytest.raises(ExhaustedPoolError):
        deal_hand(3, exclude=cards[:35])
    assert len(deal_hand(3, rng=random.Random(3))) == 3


def test_seeded_dealing_is_reproducible() -> None:
    a = [c.id for c in random_cards(6, rng=random.Random(42))]
    b = [c.id for c in random_cards(6, rng=random.Random(42))]
    assert a == b


def test_filtered_pools() -> None:
    rng = random.Random(5)
    assert all(c.rarity() == "legendary" for c in cards_by_rarity("legendary", 3, rng))
    assert all(c.is_balanced() for c in balanced_cards(4, rng))
    high = cards_with_high_property("attack", min_value=9, count=50, rng=rng)
    assert high and all(c.attack == 9 for c in high)
    with pytest.raises(ExhaustedPoolError):
        cards_with_high_property(Property.MAGIC, min_value=10)


def test_analyze_distribution_and_validate() -> None:
    stats = analyze_distribution()
    assert stats["total_cards"] == 36
    assert stats["balanced_cards"] + stats["extreme_cards"] == 36  # type: ignore[operator]
    rarity = stats["rarity_distribution"]
    assert isinstance(rarity, dict)
    assert sum(rarity.values()) == 36
    assert validate_cards(generate_all())
    assert not validate_cards([generate_all()[0], "not a card"])
