from __future__ import annotations

import pytest

from tricard.engine.actions import AdvanceCardAction, SelectPropertyAction
from tricard.engine.errors import (
    CardAlreadyUsedError,
    InvalidInputError,
    PhaseViolationError,
    PropertyReusedError,
)
from tricard.engine.match import (
    MatchConfig,
    MatchPhase,
    MatchState,
    advance_to_next_card,
    advance_to_next_round,
    auto_play_round,
    available_properties,
    complete_card_game,
    complete_match,
    hand_view,
    select_card,
    select_property,
    start_match,
    step,
)
from tricard.engine.scoring import ScoringConfig
from tricard.engine.serialize import export_state
from tricard.engine.types import Card, Property


def _hands() -> tuple[list[Card], list[Card]]:
    a = [
        Card(id=0, deception=2, magic=9, attack=9),
        Card(id=1, deception=7, magic=7, attack=6),
        Card(id=2, deception=4, magic=8, attack=8),
    ]
    b = [
        Card(id=3, deception=5, magic=8, attack=7),
        Card(id=4, deception=6, magic=6, attack=8),
        Card(id=5, deception=9, magic=6, attack=5),
    ]
    return a, b


def _new(config: MatchConfig | None = None) -> MatchState:
    a, b = _hands()
    return start_match(a, b, config=config, match_id="match_test")


def _play_card_game(state: MatchState, index: int, plays: list[tuple[str, str]]) -> None:
    select_card(state, 0, index)
    select_card(state, 1, index)
    for n, (pa, pb) in enumerate(plays):
        if n:
            advance_to_next_round(state)
        select_property(state, 0, pa)
        select_property(state, 1, pb)
    advance_to_next_round(state)  # final round auto-plays
    complete_card_game(state)


def test_start_match_validates_hands() -> None:
    a, b = _hands()
    with pytest.raises(InvalidInputError):
        start_match(a[:2], b)
    with pytest.raises(InvalidInputError):
        start_match([a[0], a[0], a[1]], b)
    with pytest.raises(InvalidInputError):
        start_match(a, [b[0], b[1], a[2]])
    state = start_match(a, b)
    assert state.match_id.startswith("match_")
    assert state.phase is MatchPhase.CARD_SELECTION
    assert state.event_log[0]["type"] == "MATCH_STARTED"


def test_first_card_game_flow() -> None:
    state = _new()
    v = select_card(state, 0, 0)
    assert v.phase is MatchPhase.CARD_SELECTION
    v = select_card(state, 1, 0)
    assert v.phase is MatchPhase.PROPERTY_SELECTION
    assert v.instructions == "Round 1: Choose a property to play"

    select_property(state, 0, "attack")
    v = select_property(state, 1, "attack")
    assert v.phase is MatchPhase.ROUND_RESULT
    assert v.scores == (2, 0)

    advance_to_next_round(state)
    select_property(state, 0, "deception")
    v = select_property(state, 1, "magic")
    assert v.scores == (2, 6)

    v = advance_to_next_round(state)
    # one property left each: the final round plays itself
    assert v.phase is MatchPhase.ROUND_RESULT
    assert v.round == 3
    assert v.scores == (6, 6)
    assert state.rounds is not None
    assert state.rounds.results[-1].auto_played

    v = complete_card_game(state)
    assert v.phase is MatchPhase.CARD_COMPLETE
    assert state.card_game_results[0].points == (6, 6)
    assert state.card_game_results[0].winner is None


def test_full_match_reaches_game_over() -> None:
    state = _new()
    _play_card_game(state, 0, [("attack", "attack"), ("deception", "magic")])
    advance_to_next_card(state)
    _play_card_game(state, 1, [("magic", "attack"), ("deception", "deception")])
    advance_to_next_card(state)
    _play_card_game(state, 2, [("attack", "magic"), ("magic", "deception")])

    assert state.phase is MatchPhase.GAME_OVER
    assert state.result is not None
    assert len(state.card_game_results) == 3
    totals = [sum(c.points[s] for c in state.card_game_results) for s in (0, 1)]
    assert list(state.result.final_scores) == totals
    assert state.result.final_scores == (state.score.scores[0], state.score.scores[1])
    assert state.result.duration_seconds >= 0
    assert state.event_log[-1]["type"] == "MATCH_COMPLETED"

    with pytest.raises(PhaseViolationError):
        complete_match(state)
    with pytest.raises(PhaseViolationError):
        advance_to_next_card(state)


def test_card_cannot_be_played_twice() -> None:
    state = _new()
    _play_card_game(state, 0, [("attack", "attack"), ("deception", "magic")])
    advance_to_next_card(state)
    with pytest.raises(CardAlreadyUsedError):
        select_card(state, 0, 0)
    with pytest.raises(InvalidInputError):
        select_card(state, 0, 3)
    assert state.players[0].available_cards() == [1, 2]


def test_phase_violations() -> None:
    state = _new()
    with pytest.raises(PhaseViolationError):
        select_property(state, 0, "magic")
    with pytest.raises(PhaseViolationError):
        advance_to_next_round(state)
    with pytest.raises(PhaseViolationError):
        complete_card_game(state)
    select_card(state, 0, 0)
    select_card(state, 1, 0)
    with pytest.raises(PhaseViolationError):
        select_card(state, 0, 1)
    select_property(state, 0, "magic")
    select_property(state, 1, "magic")
    with pytest.raises(PhaseViolationError):
        complete_card_game(state)
    with pytest.raises(PhaseViolationError):
        advance_to_next_card(state)


def test_rejected_actions_change_nothing() -> None:
    state = _new()
    select_card(state, 0, 0)
    select_card(state, 1, 0)
    select_property(state, 0, "attack")
    select_property(state, 1, "attack")
    advance_to_next_round(state)
    before = export_state(state)

    with pytest.raises(PropertyReusedError):
        select_property(state, 0, "attack")
    with pytest.raises(InvalidInputError):
        select_property(state, 0, "fire")
    r = step(state, SelectPropertyAction(player=1, property=Property.ATTACK))
    assert not r.ok
    assert r.error
    r = step(state, AdvanceCardAction())
    assert not r.ok

    assert export_state(state) == before


def test_step_reports_events() -> None:
    state = _new()
    select_card(state, 0, 1)
    select_card(state, 1, 1)
    step(state, SelectPropertyAction(player=0, property=Property.MAGIC))
    r = step(state, SelectPropertyAction(player=1, property=Property.ATTACK))
    assert r.ok
    assert [e["type"] for e in r.events] == ["PROPERTY_COMMITTED", "ROUND_RESOLVED"]


def test_manual_auto_play_when_disabled() -> None:
    state = _new(MatchConfig(auto_play_final_round=False))
    select_card(state, 0, 0)
    select_card(state, 1, 0)
    select_property(state, 0, "attack")
    select_property(state, 1, "attack")
    advance_to_next_round(state)
    with pytest.raises(PhaseViolationError):
        auto_play_round(state)
    select_property(state, 0, "deception")
    select_property(state, 1, "magic")
    v = advance_to_next_round(state)
    assert v.phase is MatchPhase.PROPERTY_SELECTION
    assert available_properties(state, 0) == [Property.MAGIC]
    v = auto_play_round(state)
    assert v.phase is MatchPhase.ROUND_RESULT
    assert v.scores == (6, 6)


def test_shorter_match_config() -> None:
    state = _new(MatchConfig(card_games=1))
    _play_card_game(state, 2, [("attack", "deception"), ("magic", "magic")])
    assert state.phase is MatchPhase.GAME_OVER
    assert state.result is not None


def test_hand_view_hides_values() -> None:
    state = _new()
    select_card(state, 0, 2)
    mine = hand_view(state, 0)
    theirs = hand_view(state, 1, reveal=False)
    assert mine[2]["current"] is True
    assert mine[0]["values"] == {"deception": 2, "magic": 9, "attack": 9}
    assert all(c["values"] is None for c in theirs)
    assert available_properties(state, 0) == []


def test_config_that_cannot_finish_is_rejected() -> None:
    a, b = _hands()
    with pytest.raises(InvalidInputError, match="card_games"):
        start_match(a, b, config=MatchConfig(card_games=4))
    with pytest.raises(InvalidInputError, match="card_games"):
        start_match(a, b, config=MatchConfig(card_games=0))
    with pytest.raises(InvalidInputError, match="rounds_per_card"):
        start_match(a, b, config=MatchConfig(rounds_per_card=4))
    with pytest.raises(InvalidInputError, match="hand_size"):
        start_match([], [], config=MatchConfig(hand_size=0, card_games=0))


def test_final_scores_include_configured_bonuses() -> None:
    state = _new(MatchConfig(scoring=ScoringConfig(win_streak_bonus=1, streak_threshold=1)))
    _play_card_game(state, 0, [("attack", "attack"), ("deception", "magic")])
    advance_to_next_card(state)
    _play_card_game(state, 1, [("magic", "attack"), ("deception", "deception")])
    advance_to_next_card(state)
    _play_card_game(state, 2, [("attack", "magic"), ("magic", "deception")])

    assert state.result is not None
    rounds = [r for c in state.card_game_results for r in c.rounds]
    assert len(rounds) == 9
    raw = [sum(r.points[s] for r in rounds) for s in (0, 1)]
    assert raw == [9, 7]
    # every round win earns one bonus point at threshold 1
    assert state.result.bonus == (4, 2)
    assert state.result.final_scores == (raw[0] + 4, raw[1] + 2)
