from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Iterable, Sequence

from .actions import (
    Action,
    AdvanceCardAction,
    AdvanceRoundAction,
    AutoPlayRoundAction,
    CompleteCardGameAction,
    CompleteMatchAction,
    SelectCardAction,
    SelectPropertyAction,
)
from .errors import (
    CardAlreadyUsedError,
    EngineError,
    InvalidInputError,
    PhaseViolationError,
)
from .rounds import RoundResult, RoundTracker, check_side
from .scoring import ScoreAggregator, ScoringConfig
from .types import PROPERTIES, Card, Property, normalize_property

logger = logging.getLogger(__name__)

Event = dict[str, object]


@dataclass(frozen=True)
class MatchConfig:
    hand_size: int = 3
    card_games: int = 3
    rounds_per_card: int = 3
    auto_play_final_round: bool = True
    scoring: ScoringConfig = field(default_factory=ScoringConfig)


class MatchPhase(str, Enum):
    CARD_SELECTION = "card-selection"
    PROPERTY_SELECTION = "property-selection"
    ROUND_RESULT = "round-result"
    CARD_COMPLETE = "card-complete"
    GAME_OVER = "game-over"


@dataclass
class PlayerState:
    cards: list[Card]
    used_cards: list[int] = field(default_factory=list)
    selected: int | None = None

    def available_cards(self) -> list[int]:
        return [i for i in range(len(self.cards)) if i not in self.used_cards]


@dataclass(frozen=True)
class CardGameResult:
    card_game: int
    card_indices: tuple[int, int]
    rounds: tuple[RoundResult, ...]
    points: tuple[int, int]
    winner: int | None
    scores_after: tuple[int, int]


@dataclass(frozen=True)
class MatchResult:
    match_id: str
    winner: int | None
    final_scores: tuple[int, int]
    bonus: tuple[int, int]
    card_games: tuple[CardGameResult, ...]
    started_at: datetime
    ended_at: datetime
    duration_seconds: float


@dataclass(frozen=True)
class MatchView:
    card_game: int
    round: int
    phase: MatchPhase
    scores: tuple[int, int]
    instructions: str
    is_complete: bool


@dataclass
class StepResult:
    ok: bool
    events: list[Event]
    error: str | None = None


@dataclass
class MatchState:
    config: MatchConfig
    match_id: str
    started_at: datetime
    players: list[PlayerState]
    score: ScoreAggregator
    phase: MatchPhase = MatchPhase.CARD_SELECTION
    current_card_game: int = 1
    rounds: RoundTracker | None = None
    card_game_results: list[CardGameResult] = field(default_factory=list)
    result: MatchResult | None = None
    ended_at: datetime | None = None
    action_log: list[Action] = field(default_factory=list)
    event_log: list[Event] = field(default_factory=list)

    def opponent(self, player: int) -> int:
        return 1 - player

    @property
    def current_round(self) -> int:
        return self.rounds.current_round if self.rounds is not None else 1

    def selected_cards(self) -> tuple[Card, Card] | None:
        s0 = self.players[0].selected
        s1 = self.players[1].selected
        if s0 is None or s1 is None:
            return None
        return (self.players[0].cards[s0], self.players[1].cards[s1])


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


def _validate_hand(cards: Sequence[Card], size: int, label: str) -> list[Card]:
    hand = list(cards)
    if len(hand) != size:
        raise InvalidInputError(f"{label} must hold exactly {size} cards, got {len(hand)}")
    if not all(isinstance(c, Card) for c in hand):
        raise InvalidInputError(f"{label} contains a non-card entry")
    ids = [c.id for c in hand]
    if len(set(ids)) != len(ids):
        raise InvalidInputError(f"{label} contains duplicate cards: {ids}")
    return hand


def _validate_config(cfg: MatchConfig) -> None:
    if cfg.hand_size < 1:
        raise InvalidInputError(f"hand_size must be at least 1, got {cfg.hand_size}")
    # each card-game consumes one card per side
    if not 1 <= cfg.card_games <= cfg.hand_size:
        raise InvalidInputError(
            f"card_games must be between 1 and hand_size ({cfg.hand_size}), got {cfg.card_games}"
        )
    if not 1 <= cfg.rounds_per_card <= len(PROPERTIES):
        raise InvalidInputError(
            f"rounds_per_card must be between 1 and {len(PROPERTIES)}, got {cfg.rounds_per_card}"
        )


def start_match(
    cards0: Sequence[Card],
    cards1: Sequence[Card],
    config: MatchConfig | None = None,
    match_id: str | None = None,
    started_at: datetime | None = None,
) -> MatchState:
    cfg = config or MatchConfig()
    _validate_config(cfg)
    hand0 = _validate_hand(cards0, cfg.hand_size, "Side 0 hand")
    hand1 = _validate_hand(cards1, cfg.hand_size, "Side 1 hand")
    shared = {c.id for c in hand0} & {c.id for c in hand1}
    if shared:
        raise InvalidInputError(f"Both sides hold the same cards: {sorted(shared)}")

    state = MatchState(
        config=cfg,
        match_id=match_id or f"match_{uuid.uuid4().hex[:12]}",
        started_at=started_at or _utcnow(),
        players=[PlayerState(cards=hand0), PlayerState(cards=hand1)],
        score=ScoreAggregator(config=cfg.scoring),
    )
    state.event_log.append({"type": "MATCH_STARTED", "match_id": state.match_id})
    logger.debug("Started %s", state.match_id)
    return state


def _require_phase(state: MatchState, *phases: MatchPhase) -> None:
    if state.phase not in phases:
        allowed = ", ".join(p.value for p in phases)
        raise PhaseViolationError(f"Operation requires phase {allowed}; match is in {state.phase.value}")


def _tracker(state: MatchState) -> RoundTracker:
    if state.rounds is None:
        raise PhaseViolationError("No card-game in progress")
    return state.rounds


def _start_card_game(state: MatchState) -> None:
    cards = state.selected_cards()
    assert cards is not None
    for ps in state.players:
        assert ps.selected is not None
        ps.used_cards.append(ps.selected)
    state.rounds = RoundTracker(cards=cards, rounds_per_card=state.config.rounds_per_card)
    state.phase = MatchPhase.PROPERTY_SELECTION
    state.event_log.append(
        {
            "type": "CARD_GAME_STARTED",
            "card_game": state.current_card_game,
            "card_indices": [state.players[0].selected, state.players[1].selected],
        }
    )


def _record_round(state: MatchState, result: RoundResult) -> None:
    state.score.process_round(result)
    state.phase = MatchPhase.ROUND_RESULT
    state.event_log.append(
        {
            "type": "ROUND_RESOLVED",
            "card_game": state.current_card_game,
            "round": result.round,
            "properties": [p.value for p in result.properties],
            "values": list(result.values),
            "points": list(result.points),
            "winner": result.winner,
        }
    )
    logger.debug(
        "Card-game %d round %d resolved %s -> %s",
        state.current_card_game,
        result.round,
        [p.value for p in result.properties],
        result.points,
    )


def _select_card(state: MatchState, player: int, card_index: int) -> None:
    check_side(player)
    _require_phase(state, MatchPhase.CARD_SELECTION)
    ps = state.players[player]
    if not isinstance(card_index, int) or not 0 <= card_index < len(ps.cards):
        raise InvalidInputError(f"Invalid card index: {card_index!r}")
    if card_index in ps.used_cards:
        raise CardAlreadyUsedError(f"Card {card_index} already played by side {player}")

    ps.selected = card_index
    state.event_log.append({"type": "CARD_SELECTED", "player": player, "card_index": card_index})
    if state.selected_cards() is not None:
        _start_card_game(state)


def _select_property(state: MatchState, player: int, prop: Property | str) -> None:
    check_side(player)
    p = normalize_property(prop)
    _require_phase(state, MatchPhase.PROPERTY_SELECTION)
    tracker = _tracker(state)
    result = tracker.commit(player, p)
    state.event_log.append({"type": "PROPERTY_COMMITTED", "player": player, "round": tracker.current_round})
    if result is not None:
        _record_round(state, result)


def _auto_play_round(state: MatchState) -> None:
    _require_phase(state, MatchPhase.PROPERTY_SELECTION)
    result = _tracker(state).auto_play()
    state.event_log.append({"type": "ROUND_AUTO_PLAYED", "round": result.round})
    _record_round(state, result)


def _advance_round(state: MatchState) -> None:
    _require_phase(state, MatchPhase.ROUND_RESULT)
    tracker = _tracker(state)
    tracker.advance()
    state.phase = MatchPhase.PROPERTY_SELECTION
    state.event_log.append({"type": "ROUND_STARTED", "round": tracker.current_round})
    if state.config.auto_play_final_round and tracker.should_auto_play():
        _auto_play_round(state)


def _complete_card_game(state: MatchState) -> None:
    _require_phase(state, MatchPhase.ROUND_RESULT)
    tracker = _tracker(state)
    if not tracker.all_rounds_complete():
        raise PhaseViolationError(
            f"Card-game {state.current_card_game} still has rounds to play"
        )
    indices = (state.players[0].selected, state.players[1].selected)
    assert indices[0] is not None and indices[1] is not None
    scored = state.score.complete_card_game(tracker.results, state.current_card_game)
    state.card_game_results.append(
        CardGameResult(
            card_game=state.current_card_game,
            card_indices=(indices[0], indices[1]),
            rounds=scored.rounds,
            points=scored.points,
            winner=scored.winner,
            scores_after=(state.score.scores[0], state.score.scores[1]),
        )
    )
    state.phase = MatchPhase.CARD_COMPLETE
    state.event_log.append(
        {
            "type": "CARD_GAME_COMPLETED",
            "card_game": state.current_card_game,
            "points": list(scored.points),
            "winner": scored.winner,
        }
    )
    if state.current_card_game >= state.config.card_games:
        _complete_match(state)


def _advance_card(state: MatchState) -> None:
    _require_phase(state, MatchPhase.CARD_COMPLETE)
    if state.current_card_game >= state.config.card_games:
        raise PhaseViolationError("No card-games left to play")
    state.current_card_game += 1
    for ps in state.players:
        ps.selected = None
    state.rounds = None
    state.phase = MatchPhase.CARD_SELECTION


def _complete_match(state: MatchState) -> None:
    _require_phase(state, MatchPhase.CARD_COMPLETE)
    if len(state.card_game_results) < state.config.card_games:
        raise PhaseViolationError(
            f"Only {len(state.card_game_results)} of {state.config.card_games} card-games are complete"
        )
    ended = _utcnow()
    state.ended_at = ended
    state.phase = MatchPhase.GAME_OVER
    state.result = MatchResult(
        match_id=state.match_id,
        winner=state.score.winner(),
        final_scores=(state.score.scores[0], state.score.scores[1]),
        bonus=(state.score.bonus[0], state.score.bonus[1]),
        card_games=tuple(state.card_game_results),
        started_at=state.started_at,
        ended_at=ended,
        duration_seconds=(ended - state.started_at).total_seconds(),
    )
    state.event_log.append(
        {"type": "MATCH_COMPLETED", "winner": state.result.winner, "scores": list(state.result.final_scores)}
    )
    logger.info(
        "Match %s complete: winner=%s scores=%s",
        state.match_id,
        state.result.winner,
        state.result.final_scores,
    )


def _apply(state: MatchState, action: Action) -> None:
    if isinstance(action, SelectCardAction):
        _select_card(state, action.player, action.card_index)
    elif isinstance(action, SelectPropertyAction):
        _select_property(state, action.player, action.property)
    elif isinstance(action, AdvanceRoundAction):
        _advance_round(state)
    elif isinstance(action, AutoPlayRoundAction):
        _auto_play_round(state)
    elif isinstance(action, CompleteCardGameAction):
        _complete_card_game(state)
    elif isinstance(action, AdvanceCardAction):
        _advance_card(state)
    elif isinstance(action, CompleteMatchAction):
        _complete_match(state)
    else:
        raise InvalidInputError(f"Unknown action: {action!r}")
    # Only accepted actions are logged, so the log always replays cleanly.
    state.action_log.append(action)


def select_card(state: MatchState, player: int, card_index: int) -> MatchView:
    _apply(state, SelectCardAction(player=player, card_index=card_index))
    return view(state)


def select_property(state: MatchState, player: int, prop: Property | str) -> MatchView:
    _apply(state, SelectPropertyAction(player=player, property=normalize_property(prop)))
    return view(state)


def advance_to_next_round(state: MatchState) -> MatchView:
    _apply(state, AdvanceRoundAction())
    return view(state)


def auto_play_round(state: MatchState) -> MatchView:
    _apply(state, AutoPlayRoundAction())
    return view(state)


def complete_card_game(state: MatchState) -> MatchView:
    _apply(state, CompleteCardGameAction())
    return view(state)


def advance_to_next_card(state: MatchState) -> MatchView:
    _apply(state, AdvanceCardAction())
    return view(state)


def complete_match(state: MatchState) -> MatchView:
    """Finalize the match.

    `complete_card_game` already finalizes the match after the last
    card-game, so on a match driven through this module this always raises
    PhaseViolationError. Kept so drivers can issue the full lifecycle.
    """
    _apply(state, CompleteMatchAction())
    return view(state)


def step(state: MatchState, action: Action) -> StepResult:
    """Apply a single action, reporting rule violations instead of raising."""
    before = len(state.event_log)
    try:
        _apply(state, action)
    except EngineError as e:
        logger.debug("Rejected %r: %s", action, e)
        return StepResult(ok=False, events=[], error=str(e))
    return StepResult(ok=True, events=state.event_log[before:])


def replay(
    cards0: Sequence[Card],
    cards1: Sequence[Card],
    actions: Iterable[Action],
    config: MatchConfig | None = None,
    match_id: str | None = None,
    started_at: datetime | None = None,
) -> MatchState:
    """Rebuild a match from its action log. Raises on the first illegal action."""
    state = start_match(cards0, cards1, config=config, match_id=match_id, started_at=started_at)
    for a in actions:
        _apply(state, a)
    return state


def instructions(state: MatchState) -> str:
    if state.phase is MatchPhase.CARD_SELECTION:
        return f"Select card {state.current_card_game} of {state.config.card_games} to play"
    if state.phase is MatchPhase.PROPERTY_SELECTION:
        return f"Round {state.current_round}: Choose a property to play"
    if state.phase is MatchPhase.ROUND_RESULT:
        return f"Round {state.current_round} complete"
    if state.phase is MatchPhase.CARD_COMPLETE:
        return f"Card {state.current_card_game} complete"
    return "Match complete"


def view(state: MatchState) -> MatchView:
    return MatchView(
        card_game=state.current_card_game,
        round=state.current_round,
        phase=state.phase,
        scores=(state.score.scores[0], state.score.scores[1]),
        instructions=instructions(state),
        is_complete=state.phase is MatchPhase.GAME_OVER,
    )


def hand_view(state: MatchState, player: int, reveal: bool = True) -> list[dict[str, object]]:
    """Card list for display; `reveal=False` hides values (opponent's hand)."""
    ps = state.players[check_side(player)]
    return [
        {
            "index": i,
            "id": card.id,
            "used": i in ps.used_cards,
            "current": i == ps.selected,
            "values": {p.value: v for p, v in card.values().items()} if reveal else None,
            "rarity": card.rarity(),
        }
        for i, card in enumerate(ps.cards)
    ]


def available_properties(state: MatchState, player: int) -> list[Property]:
    if state.rounds is None:
        return []
    return state.rounds.available_properties(player)
