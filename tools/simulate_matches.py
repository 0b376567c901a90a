"""
Play batches of headless AI matches and report win rates.

Useful for sanity-checking difficulty levels against a random baseline.
"""

from __future__ import annotations

import argparse
import logging
import random

from tricard.engine.ai import (
    DIFFICULTIES,
    AISpec,
    ExpectedValueMoveSource,
    MoveSource,
    RandomMoveSource,
    ai_take_turn,
    choose_ai_cards,
)
from tricard.engine.match import (
    MatchConfig,
    MatchPhase,
    MatchState,
    advance_to_next_card,
    advance_to_next_round,
    complete_card_game,
    start_match,
)

logger = logging.getLogger(__name__)


def play_match(
    sources: tuple[MoveSource, MoveSource],
    rng: random.Random,
    difficulty: str | None = "normal",
    config: MatchConfig | None = None,
) -> MatchState:
    """Draft two hands and drive a match to completion."""
    cfg = config or MatchConfig()
    hand0 = choose_ai_cards(difficulty=difficulty, rng=rng, count=cfg.hand_size)  # type: ignore[arg-type]
    hand1 = choose_ai_cards(exclude=hand0, difficulty=difficulty, rng=rng, count=cfg.hand_size)  # type: ignore[arg-type]
    state = start_match(hand0, hand1, config=cfg)

    while state.phase is not MatchPhase.GAME_OVER:
        if state.phase in (MatchPhase.CARD_SELECTION, MatchPhase.PROPERTY_SELECTION):
            for side in (0, 1):
                ai_take_turn(state, side, sources[side])
        elif state.phase is MatchPhase.ROUND_RESULT:
            assert state.rounds is not None
            if state.rounds.all_rounds_complete():
                complete_card_game(state)
            else:
                advance_to_next_round(state)
        elif state.phase is MatchPhase.CARD_COMPLETE:
            advance_to_next_card(state)
    return state


def run(matches: int, difficulty: str | None, opponent: str, seed: int) -> dict[str, int]:
    rng = random.Random(seed)
    ai = ExpectedValueMoveSource(spec=AISpec(difficulty=difficulty), rng=rng)  # type: ignore[arg-type]
    other: MoveSource
    if opponent == "random":
        other = RandomMoveSource(rng=rng)
    else:
        other = ExpectedValueMoveSource(spec=AISpec(difficulty=None), rng=rng)

    tally = {"ai": 0, "opponent": 0, "tie": 0}
    for n in range(matches):
        state = play_match((ai, other), rng, difficulty)
        assert state.result is not None
        winner = state.result.winner
        if winner is None:
            tally["tie"] += 1
        elif winner == 0:
            tally["ai"] += 1
        else:
            tally["opponent"] += 1
        logger.debug("match %d: %s", n, state.result.final_scores)
    return tally


def main() -> None:
    """CLI entrypoint for match simulation."""
    parser = argparse.ArgumentParser(description="Simulate AI card-game matches")
    parser.add_argument("--matches", type=int, default=200, help="Number of matches (default: 200)")
    parser.add_argument(
        "--difficulty",
        default="normal",
        choices=sorted(DIFFICULTIES),
        help="Difficulty of side 0 (default: normal)",
    )
    parser.add_argument(
        "--opponent",
        default="random",
        choices=["random", "expected-value"],
        help="Move source for side 1 (default: random)",
    )
    parser.add_argument("--seed", type=int, default=0, help="RNG seed (default: 0)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log every match")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    tally = run(args.matches, args.difficulty, args.opponent, args.seed)
    total = max(args.matches, 1)
    print(f"{args.matches} matches, side 0 = {args.difficulty}, side 1 = {args.opponent}")
    for key in ("ai", "opponent", "tie"):
        print(f"  {key:<9} {tally[key]:>5}  ({tally[key] / total:.1%})")


if __name__ == "__main__":
    main()
