from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum

from .errors import InvalidInputError, PhaseViolationError, PropertyReusedError
from .rules import explain, score, winner_of
from .types import PROPERTIES, Card, Property, normalize_property

logger = logging.getLogger(__name__)

SIDES = (0, 1)


class RoundPhase(str, Enum):
    AWAITING_SELECTIONS = "awaiting_selections"
    RESOLVED = "resolved"


@dataclass(frozen=True)
class RoundResult:
    round: int
    properties: tuple[Property, Property]
    values: tuple[int, int]
    points: tuple[int, int]
    winner: int | None
    explanation: str
    auto_played: bool = False


def check_side(side: int) -> int:
    if side not in SIDES:
        raise InvalidInputError(f"Invalid side: {side!r}")
    return side


@dataclass
class RoundTracker:
    """The three rounds of one card-game, played with one card per side."""

    cards: tuple[Card, Card]
    rounds_per_card: int = 3
    current_round: int = 1
    phase: RoundPhase = RoundPhase.AWAITING_SELECTIONS
    results: list[RoundResult] = field(default_factory=list)
    used: tuple[list[Property], list[Property]] = field(default_factory=lambda: ([], []))
    pending: list[Property | None] = field(default_factory=lambda: [None, None])

    def available_properties(self, side: int) -> list[Property]:
        used = self.used[check_side(side)]
        return [p for p in PROPERTIES if p not in used]

    def is_property_available(self, side: int, prop: Property | str) -> bool:
        return normalize_property(prop) in self.available_properties(side)

    def only_one_property_left(self, side: int) -> bool:
        return len(self.available_properties(side)) == 1

    def has_committed(self, side: int) -> bool:
        return self.pending[check_side(side)] is not None

    def is_final_round(self) -> bool:
        return self.current_round == self.rounds_per_card

    def all_rounds_complete(self) -> bool:
        return len(self.results) >= self.rounds_per_card

    def is_ready(self) -> bool:
        return self.pending[0] is not None and self.pending[1] is not None

    def commit(self, side: int, prop: Property | str) -> RoundResult | None:
        """Commit `side`'s property for the current round.

        Returns the resolved round once both sides have committed, else None.
        Nothing is mutated when a check fails.
        """
        check_side(side)
        p = normalize_property(prop)
        if self.phase is not RoundPhase.AWAITING_SELECTIONS:
            raise PhaseViolationError(f"Cannot commit a property while {self.phase.value}")
        if self.pending[side] is not None:
            raise PhaseViolationError(f"Side {side} already committed a property this round")
        if p in self.used[side]:
            raise PropertyReusedError(f"Property {p.value} already used by side {side}")

        self.used[side].append(p)
        self.pending[side] = p
        logger.debug("Round %d: side %d committed %s", self.current_round, side, p.value)
        if self.is_ready():
            return self._resolve(auto_played=False)
        return None

    def _resolve(self, auto_played: bool) -> RoundResult:
        p0, p1 = self.pending
        assert p0 is not None and p1 is not None
        v0 = self.cards[0].get(p0)
        v1 = self.cards[1].get(p1)
        pts = score(p0, v0, p1, v1)
        result = RoundResult(
            round=self.current_round,
            properties=(p0, p1),
            values=(v0, v1),
            points=pts,
            winner=winner_of(*pts),
            explanation=explain(p0, v0, p1, v1),
            auto_played=auto_played,
        )
        self.results.append(result)
        self.phase = RoundPhase.RESOLVED
        return result

    def advance(self) -> None:
        if self.phase is not RoundPhase.RESOLVED:
            raise PhaseViolationError("Current round has not been resolved")
        if self.all_rounds_complete():
            raise PhaseViolationError("All rounds of this card-game are complete")
        self.current_round += 1
        self.pending = [None, None]
        self.phase = RoundPhase.AWAITING_SELECTIONS

    def should_auto_play(self) -> bool:
        return (
            self.phase is RoundPhase.AWAITING_SELECTIONS
            and self.is_final_round()
            and not self.has_committed(0)
            and not self.has_committed(1)
            and self.only_one_property_left(0)
            and self.only_one_property_left(1)
        )

    def auto_play(self) -> RoundResult:
        """Assign each side its single remaining property and resolve the round."""
        if not self.should_auto_play():
            raise PhaseViolationError("Round cannot be auto-played")
        for side in SIDES:
            p = self.available_properties(side)[0]
            self.used[side].append(p)
            self.pending[side] = p
        return self._resolve(auto_played=True)

    def summary(self) -> dict[str, object]:
        wins = [0, 0]
        ties = 0
        totals = [0, 0]
        for r in self.results:
            totals[0] += r.points[0]
            totals[1] += r.points[1]
            if r.winner is None:
                ties += 1
            else:
                wins[r.winner] += 1
        return {
            "total_rounds": len(self.results),
            "wins": wins,
            "ties": ties,
            "points": totals,
            "rounds": [
                {
                    "round": r.round,
                    "winner": r.winner,
                    "plays": [f"{r.properties[s].value} {r.values[s]}" for s in SIDES],
                    "score": f"{r.points[0]}-{r.points[1]}",
                }
                for r in self.results
            ],
        }

    def next_round_preview(self) -> dict[str, object] | None:
        if self.all_rounds_complete() or self.is_final_round():
            return None
        remaining = [self.available_properties(s) for s in SIDES]
        return {
            "next_round": self.current_round + 1,
            "available": remaining,
            "will_auto_play": self.current_round + 1 == self.rounds_per_card
            and all(len(r) == 1 for r in remaining),
        }
