from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import Literal, Protocol, Sequence

from .cards import generate_all
from .errors import InvalidInputError
from .match import MatchPhase, MatchState, select_card, select_property
from .rules import score
from .types import PROPERTIES, Card, Property, normalize_property

logger = logging.getLogger(__name__)

Difficulty = Literal["easy", "normal", "hard", "expert"]
DIFFICULTIES: tuple[Difficulty, ...] = ("easy", "normal", "hard", "expert")

EASY_NOISE = 1.0
NORMAL_NOISE = 0.05


@dataclass(frozen=True)
class AISpec:
    """AI tuning parameters.

    difficulty:
      None   = pure expected value, fully deterministic
      easy   = wide random noise on every evaluation
      normal = slight random noise
      hard   = adds a synergy bonus (playing the card's strongest stat)
      expert = synergy plus a bonus/penalty for absolute value
    """

    difficulty: Difficulty | None = None


def _check_difficulty(difficulty: str | None) -> None:
    if difficulty is not None and difficulty not in DIFFICULTIES:
        raise InvalidInputError(f"Unknown difficulty: {difficulty!r}")


def opponent_properties(opponent_used: Sequence[Property | str]) -> list[Property]:
    used = {normalize_property(p) for p in opponent_used}
    return [p for p in PROPERTIES if p not in used]


def expected_net(
    card: Card,
    prop: Property | str,
    opponent_pool: Sequence[Card] | None = None,
    opponent_used: Sequence[Property | str] = (),
) -> float:
    """Average of (my points - their points) over every opponent card and unused property.

    Treats the hidden card as uniform over `opponent_pool` and the opponent's
    choice as uniform over their unused properties. Not minimax.
    """
    mine = normalize_property(prop)
    my_value = card.get(mine)
    pool = generate_all() if opponent_pool is None else opponent_pool
    their_props = opponent_properties(opponent_used)

    total = 0
    scenarios = 0
    for opp_card in pool:
        for opp_prop in their_props:
            a, b = score(mine, my_value, opp_prop, opp_card.get(opp_prop))
            total += a - b
            scenarios += 1
    return total / scenarios if scenarios else 0.0


def card_synergy(card: Card, prop: Property | str) -> float:
    p = normalize_property(prop)
    if p is card.highest().property:
        return 0.5
    if p is card.lowest().property and card.get(p) < 5:
        return -0.3
    if card.is_balanced():
        return 0.2
    return 0.0


def positional_advantage(card: Card, prop: Property | str) -> float:
    value = card.get(prop)
    if value >= 8:
        return 0.3
    if value >= 6:
        return 0.1
    if value <= 2:
        return -0.2
    return 0.0


def apply_difficulty(
    base: float,
    card: Card,
    prop: Property | str,
    difficulty: Difficulty | None,
    rng: random.Random | None = None,
) -> float:
    r = rng or random
    if difficulty == "easy":
        return base + r.uniform(-EASY_NOISE, EASY_NOISE)
    if difficulty == "normal":
        return base + r.uniform(-NORMAL_NOISE, NORMAL_NOISE)
    if difficulty == "hard":
        return base + card_synergy(card, prop)
    if difficulty == "expert":
        return base + card_synergy(card, prop) + positional_advantage(card, prop)
    return base


def evaluate_move(
    card: Card,
    prop: Property | str,
    opponent_pool: Sequence[Card] | None = None,
    opponent_used: Sequence[Property | str] = (),
    difficulty: Difficulty | None = None,
    rng: random.Random | None = None,
) -> float:
    base = expected_net(card, prop, opponent_pool, opponent_used)
    return apply_difficulty(base, card, prop, difficulty, rng)


def choose_property(
    card: Card,
    available: Sequence[Property | str],
    opponent_pool: Sequence[Card] | None = None,
    opponent_used: Sequence[Property | str] = (),
    difficulty: Difficulty | None = None,
    rng: random.Random | None = None,
) -> Property:
    _check_difficulty(difficulty)
    candidates = [normalize_property(p) for p in available]
    if not candidates:
        raise InvalidInputError("No available properties to choose from")
    if len(candidates) == 1:
        return candidates[0]

    best = candidates[0]
    best_score = float("-inf")
    for p in candidates:
        s = evaluate_move(card, p, opponent_pool, opponent_used, difficulty, rng)
        # strict > keeps the first candidate on ties
        if s > best_score:
            best, best_score = p, s
    logger.debug("chose %s (%.3f) for %s", best.value, best_score, card.compact())
    return best


def choose_card_and_property(
    hand: Sequence[Card],
    available: Sequence[Property | str],
    opponent_pool: Sequence[Card] | None = None,
    opponent_used: Sequence[Property | str] = (),
    difficulty: Difficulty | None = None,
    rng: random.Random | None = None,
    used_cards: Sequence[int] = (),
) -> tuple[int, Property]:
    """Pick (index into `hand`, property) over every unused card and available property."""
    _check_difficulty(difficulty)
    indices = [i for i in range(len(hand)) if i not in used_cards]
    props = [normalize_property(p) for p in available]
    if not indices or not props:
        raise InvalidInputError("No available cards or properties to choose from")

    if len(props) == 1 and len(indices) == 1:
        return indices[0], props[0]

    if len(indices) == 1:
        i = indices[0]
        return i, choose_property(hand[i], props, opponent_pool, opponent_used, difficulty, rng)

    best: tuple[int, Property] = (indices[0], props[0])
    best_score = float("-inf")
    for i in indices:
        for p in props:
            s = evaluate_move(hand[i], p, opponent_pool, opponent_used, difficulty, rng)
            if s > best_score:
                best, best_score = (i, p), s
    return best


def score_card_for_selection(card: Card) -> float:
    high = card.highest().value
    total = high * 0.5
    if card.is_balanced():
        total += 2
    if high >= 8:
        total += 1
    if card.lowest().value <= 2:
        total -= 1
    return total


def _synergy_with_selected(card: Card, selected: Sequence[Card]) -> float:
    if not selected:
        return 0.0
    bonus = 0.0
    for p in PROPERTIES:
        covered = any(s.get(p) >= 7 for s in selected)
        if not covered and card.get(p) >= 7:
            bonus += 1
    return bonus


def choose_ai_cards(
    pool: Sequence[Card] | None = None,
    exclude: Sequence[Card] = (),
    difficulty: Difficulty | None = "normal",
    rng: random.Random | None = None,
    count: int = 3,
) -> list[Card]:
    """Draft a hand for the AI from `pool` (default: the whole universe)."""
    _check_difficulty(difficulty)
    r = rng or random
    excluded = {c.id for c in exclude}
    selectable = [c for c in (generate_all() if pool is None else pool) if c.id not in excluded]
    if len(selectable) < count:
        raise InvalidInputError(f"Need {count} cards to draft, only {len(selectable)} available")

    if difficulty == "easy":
        return r.sample(selectable, count)

    if difficulty == "hard":
        # sorted() is stable, so ties keep pool order
        return sorted(selectable, key=score_card_for_selection, reverse=True)[:count]

    if difficulty == "expert":
        chosen: list[Card] = []
        remaining = list(selectable)
        for _ in range(count):
            best = max(remaining, key=lambda c: score_card_for_selection(c) + _synergy_with_selected(c, chosen))
            chosen.append(best)
            remaining.remove(best)
        return chosen

    # normal (and None): mostly balanced cards plus one extreme card
    balanced = [c for c in selectable if c.is_balanced()]
    extreme = [c for c in selectable if not c.is_balanced()]
    chosen = r.sample(balanced, min(count - 1, len(balanced)))
    missing = count - len(chosen)
    rest = extreme if len(extreme) >= missing else [c for c in selectable if c not in chosen]
    chosen.extend(r.sample(rest, missing))
    return chosen


class MoveSource(Protocol):
    def choose_property(
        self, card: Card, available: Sequence[Property], opponent_used: Sequence[Property]
    ) -> Property: ...

    def choose_card_and_property(
        self,
        hand: Sequence[Card],
        available: Sequence[Property],
        opponent_used: Sequence[Property],
        used_cards: Sequence[int] = (),
    ) -> tuple[int, Property]: ...


@dataclass
class RandomMoveSource:
    rng: random.Random = field(default_factory=random.Random)

    def choose_property(
        self, card: Card, available: Sequence[Property], opponent_used: Sequence[Property]
    ) -> Property:
        if not available:
            raise InvalidInputError("No available properties to choose from")
        return normalize_property(self.rng.choice(list(available)))

    def choose_card_and_property(
        self,
        hand: Sequence[Card],
        available: Sequence[Property],
        opponent_used: Sequence[Property],
        used_cards: Sequence[int] = (),
    ) -> tuple[int, Property]:
        indices = [i for i in range(len(hand)) if i not in used_cards]
        if not indices or not available:
            raise InvalidInputError("No available cards or properties to choose from")
        return self.rng.choice(indices), normalize_property(self.rng.choice(list(available)))


@dataclass
class ExpectedValueMoveSource:
    spec: AISpec = field(default_factory=AISpec)
    opponent_pool: Sequence[Card] | None = None
    rng: random.Random | None = None

    def choose_property(
        self, card: Card, available: Sequence[Property], opponent_used: Sequence[Property]
    ) -> Property:
        return choose_property(
            card, available, self.opponent_pool, opponent_used, self.spec.difficulty, self.rng
        )

    def choose_card_and_property(
        self,
        hand: Sequence[Card],
        available: Sequence[Property],
        opponent_used: Sequence[Property],
        used_cards: Sequence[int] = (),
    ) -> tuple[int, Property]:
        return choose_card_and_property(
            hand,
            available,
            self.opponent_pool,
            opponent_used,
            self.spec.difficulty,
            self.rng,
            used_cards,
        )


def ai_take_turn(state: MatchState, player: int, source: MoveSource) -> bool:
    """Make `player`'s pending choice in the current phase, if any.

    Only the opponent's properties from resolved rounds are consulted; a
    commitment made this round stays hidden. Returns True if a move was made.
    """
    ps = state.players[player]
    opponent = state.opponent(player)

    if state.phase is MatchPhase.CARD_SELECTION:
        if ps.selected is not None:
            return False
        index, _ = source.choose_card_and_property(ps.cards, list(PROPERTIES), [], ps.used_cards)
        select_card(state, player, index)
        return True

    if state.phase is MatchPhase.PROPERTY_SELECTION:
        tracker = state.rounds
        assert tracker is not None
        if tracker.has_committed(player):
            return False
        assert ps.selected is not None
        opp_used = [r.properties[opponent] for r in tracker.results]
        prop = source.choose_property(
            ps.cards[ps.selected], tracker.available_properties(player), opp_used
        )
        select_property(state, player, prop)
        return True

    return False
