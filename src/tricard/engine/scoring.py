from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Sequence

from .errors import InvalidInputError
from .rounds import RoundResult, check_side
from .rules import winner_of


@dataclass(frozen=True)
class ScoringConfig:
    """Bonus magnitudes added on top of raw round points.

    All zero (the default ruleset) reduces scoring to plain summation.
    """

    win_streak_bonus: int = 0
    perfect_round_bonus: int = 0
    comeback_bonus: int = 0
    streak_threshold: int = 3
    max_single_round_score: int = 8


@dataclass
class SideStats:
    total_points: int = 0
    rounds_won: int = 0
    rounds_lost: int = 0
    rounds_tied: int = 0
    cards_won: int = 0
    cards_lost: int = 0
    cards_tied: int = 0
    highest_single_round: int = 0
    average_per_round: float = 0.0
    best_streak: int = 0
    current_streak: int = 0
    comebacks: int = 0

    @property
    def rounds_played(self) -> int:
        return self.rounds_won + self.rounds_lost + self.rounds_tied

    def to_dict(self) -> dict[str, object]:
        return asdict(self)


@dataclass(frozen=True)
class ScoreEvent:
    side: int
    points: int
    source: str  # round | bonus_perfect_round | bonus_win_streak | bonus_comeback
    previous: int
    new: int


@dataclass(frozen=True)
class CardGameScore:
    card_game: int
    points: tuple[int, int]
    winner: int | None
    rounds: tuple[RoundResult, ...]


@dataclass
class ScoreAggregator:
    config: ScoringConfig = field(default_factory=ScoringConfig)
    scores: list[int] = field(default_factory=lambda: [0, 0])
    bonus: list[int] = field(default_factory=lambda: [0, 0])
    history: list[ScoreEvent] = field(default_factory=list)
    card_scores: list[CardGameScore] = field(default_factory=list)
    stats: tuple[SideStats, SideStats] = field(default_factory=lambda: (SideStats(), SideStats()))

    def add_points(self, side: int, points: int, source: str = "round") -> None:
        check_side(side)
        if points < 0:
            raise InvalidInputError("Points cannot be negative")
        previous = self.scores[side]
        self.scores[side] += points
        self.stats[side].total_points += points
        self.history.append(
            ScoreEvent(side=side, points=points, source=source, previous=previous, new=self.scores[side])
        )

    def _add_bonus(self, side: int, points: int, kind: str) -> None:
        if points > 0:
            self.add_points(side, points, f"bonus_{kind}")
            self.bonus[side] += points

    def process_round(self, result: RoundResult) -> None:
        for side in (0, 1):
            if result.points[side] > 0:
                self.add_points(side, result.points[side], "round")

        if result.winner is None:
            for s in self.stats:
                s.rounds_tied += 1
                s.current_streak = 0
        else:
            win = self.stats[result.winner]
            lose = self.stats[1 - result.winner]
            win.rounds_won += 1
            lose.rounds_lost += 1
            win.current_streak += 1
            win.best_streak = max(win.best_streak, win.current_streak)
            lose.current_streak = 0

        for side in (0, 1):
            st = self.stats[side]
            st.highest_single_round = max(st.highest_single_round, result.points[side])

        cfg = self.config
        for side in (0, 1):
            if result.points[side] == cfg.max_single_round_score:
                self._add_bonus(side, cfg.perfect_round_bonus, "perfect_round")
            if self.stats[side].current_streak >= cfg.streak_threshold:
                self._add_bonus(side, cfg.win_streak_bonus, "win_streak")

        self._update_averages()

    def _update_averages(self) -> None:
        for st in self.stats:
            if st.rounds_played > 0:
                st.average_per_round = st.total_points / st.rounds_played

    def complete_card_game(self, rounds: Sequence[RoundResult], card_game: int) -> CardGameScore:
        points = (sum(r.points[0] for r in rounds), sum(r.points[1] for r in rounds))
        result = CardGameScore(
            card_game=card_game,
            points=points,
            winner=winner_of(*points),
            rounds=tuple(rounds),
        )
        self.card_scores.append(result)

        if result.winner is None:
            for st in self.stats:
                st.cards_tied += 1
            return result

        w = result.winner
        self.stats[w].cards_won += 1
        self.stats[1 - w].cards_lost += 1
        # Won the card-game yet still behind on the running total.
        if self.scores[w] < self.scores[1 - w]:
            self.stats[w].comebacks += 1
            self._add_bonus(w, self.config.comeback_bonus, "comeback")
            self._update_averages()
        return result

    def winner(self) -> int | None:
        return winner_of(self.scores[0], self.scores[1])

    def difference(self) -> int:
        return self.scores[0] - self.scores[1]

    def breakdown(self) -> dict[str, object]:
        return {
            "scores": list(self.scores),
            "bonus": list(self.bonus),
            "difference": self.difference(),
            "winner": self.winner(),
            "card_scores": [
                {"card_game": c.card_game, "points": list(c.points), "winner": c.winner}
                for c in self.card_scores
            ],
            "statistics": [s.to_dict() for s in self.stats],
            "history": [asdict(e) for e in self.history],
        }
