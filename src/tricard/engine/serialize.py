from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import Mapping

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
from .errors import CorruptStateError, EngineError
from .match import CardGameResult, MatchConfig, MatchState, PlayerState, replay
from .rounds import RoundResult, RoundTracker
from .schema import load_schema, validate_json
from .scoring import ScoringConfig
from .types import Card, normalize_property

logger = logging.getLogger(__name__)

STATE_VERSION = 1

_SIMPLE_ACTIONS: dict[str, type] = {
    "advance_round": AdvanceRoundAction,
    "auto_play_round": AutoPlayRoundAction,
    "complete_card_game": CompleteCardGameAction,
    "advance_card": AdvanceCardAction,
    "complete_match": CompleteMatchAction,
}


def action_to_dict(a: Action) -> dict[str, object]:
    if isinstance(a, SelectCardAction):
        return {"type": "select_card", "player": a.player, "card_index": a.card_index}
    if isinstance(a, SelectPropertyAction):
        return {"type": "select_property", "player": a.player, "property": normalize_property(a.property).value}
    for name, cls in _SIMPLE_ACTIONS.items():
        if isinstance(a, cls):
            return {"type": name}
    raise CorruptStateError(f"Cannot serialize action: {a!r}")


def action_from_dict(d: Mapping[str, object]) -> Action:
    kind = d.get("type")
    if kind == "select_card":
        return SelectCardAction(player=d["player"], card_index=d["card_index"])  # type: ignore[arg-type]
    if kind == "select_property":
        return SelectPropertyAction(
            player=d["player"],  # type: ignore[arg-type]
            property=normalize_property(d["property"]),  # type: ignore[arg-type]
        )
    if isinstance(kind, str) and kind in _SIMPLE_ACTIONS:
        return _SIMPLE_ACTIONS[kind]()
    raise CorruptStateError(f"Unknown action type: {kind!r}")


def _round_to_dict(r: RoundResult) -> dict[str, object]:
    return {
        "round": r.round,
        "properties": [p.value for p in r.properties],
        "values": list(r.values),
        "points": list(r.points),
        "winner": r.winner,
        "explanation": r.explanation,
        "auto_played": r.auto_played,
    }


def _tracker_to_dict(t: RoundTracker | None) -> dict[str, object] | None:
    if t is None:
        return None
    return {
        "phase": t.phase.value,
        "current_round": t.current_round,
        "results": [_round_to_dict(r) for r in t.results],
        "used": [[p.value for p in side] for side in t.used],
        "pending": [p.value if p is not None else None for p in t.pending],
    }


def _card_game_to_dict(c: CardGameResult) -> dict[str, object]:
    return {
        "card_game": c.card_game,
        "card_indices": list(c.card_indices),
        "rounds": [_round_to_dict(r) for r in c.rounds],
        "points": list(c.points),
        "winner": c.winner,
        "scores_after": list(c.scores_after),
    }


def _player_to_dict(p: PlayerState) -> dict[str, object]:
    return {
        "cards": [c.to_dict() for c in p.cards],
        "used_cards": list(p.used_cards),
        "selected": p.selected,
    }


def _config_to_dict(cfg: MatchConfig) -> dict[str, object]:
    s = cfg.scoring
    return {
        "hand_size": cfg.hand_size,
        "card_games": cfg.card_games,
        "rounds_per_card": cfg.rounds_per_card,
        "auto_play_final_round": cfg.auto_play_final_round,
        "scoring": {
            "win_streak_bonus": s.win_streak_bonus,
            "perfect_round_bonus": s.perfect_round_bonus,
            "comeback_bonus": s.comeback_bonus,
            "streak_threshold": s.streak_threshold,
            "max_single_round_score": s.max_single_round_score,
        },
    }


def export_state(state: MatchState) -> dict[str, object]:
    """Return a JSON-serializable tree of the full match state."""
    result = state.result
    return {
        "version": STATE_VERSION,
        "match_id": state.match_id,
        "started_at": state.started_at.isoformat(),
        "ended_at": state.ended_at.isoformat() if state.ended_at is not None else None,
        "config": _config_to_dict(state.config),
        "phase": state.phase.value,
        "current_card_game": state.current_card_game,
        "current_round": state.current_round,
        "players": [_player_to_dict(p) for p in state.players],
        "rounds": _tracker_to_dict(state.rounds),
        "card_game_results": [_card_game_to_dict(c) for c in state.card_game_results],
        "score": state.score.breakdown(),
        "result": None
        if result is None
        else {
            "winner": result.winner,
            "final_scores": list(result.final_scores),
            "bonus": list(result.bonus),
            "duration_seconds": result.duration_seconds,
        },
        "action_log": [action_to_dict(a) for a in state.action_log],
        "event_log": [dict(e) for e in state.event_log],
    }


def _parse_time(value: object, key: str) -> datetime:
    if not isinstance(value, str):
        raise CorruptStateError(f"{key} must be an ISO-8601 string")
    try:
        return datetime.fromisoformat(value)
    except ValueError as e:
        raise CorruptStateError(f"{key} is not a valid timestamp: {value!r}") from e


def _parse_config(d: Mapping[str, object]) -> MatchConfig:
    scoring = d["scoring"]
    if not isinstance(scoring, Mapping):
        raise CorruptStateError("config.scoring must be an object")
    return MatchConfig(
        hand_size=d["hand_size"],  # type: ignore[arg-type]
        card_games=d["card_games"],  # type: ignore[arg-type]
        rounds_per_card=d["rounds_per_card"],  # type: ignore[arg-type]
        auto_play_final_round=d["auto_play_final_round"],  # type: ignore[arg-type]
        scoring=ScoringConfig(**scoring),
    )


def import_state(tree: Mapping[str, object]) -> MatchState:
    """Rebuild a match from an exported tree.

    The tree is schema-checked, its action log is replayed on a fresh match
    built from the recorded hands, and the replayed state must export to the
    same tree. Any disagreement raises CorruptStateError.
    """
    validate_json(tree, load_schema(), context="match state")

    try:
        config = _parse_config(tree["config"])  # type: ignore[arg-type]
        hands = [
            [Card.from_dict(c) for c in p["cards"]]  # type: ignore[index]
            for p in tree["players"]  # type: ignore[union-attr]
        ]
        actions = [action_from_dict(a) for a in tree["action_log"]]  # type: ignore[union-attr]
        started_at = _parse_time(tree["started_at"], "started_at")
        state = replay(
            hands[0],
            hands[1],
            actions,
            config=config,
            match_id=tree["match_id"],  # type: ignore[arg-type]
            started_at=started_at,
        )
    except CorruptStateError:
        raise
    except (EngineError, ValueError, TypeError) as e:
        raise CorruptStateError(f"Match state does not replay: {e}") from e

    # Wall-clock fields are not reproducible by replay; take them from the tree.
    recorded = tree["result"]
    if state.result is not None and isinstance(recorded, Mapping) and tree["ended_at"] is not None:
        ended_at = _parse_time(tree["ended_at"], "ended_at")
        state.ended_at = ended_at
        state.result = replace(
            state.result,
            ended_at=ended_at,
            duration_seconds=recorded["duration_seconds"],  # type: ignore[arg-type]
        )

    rebuilt = export_state(state)
    mismatched = sorted(k for k in rebuilt if rebuilt[k] != tree.get(k))
    if mismatched:
        logger.warning("Imported state %s disagrees with its replay on %s", tree.get("match_id"), mismatched)
        raise CorruptStateError(f"Match state is inconsistent with its action log: {', '.join(mismatched)}")
    return state
