from __future__ import annotations

import random
from datetime import datetime, timezone

from tricard.engine.actions import (
    Action,
    AdvanceCardAction,
    AdvanceRoundAction,
    CompleteCardGameAction,
    SelectCardAction,
    SelectPropertyAction,
)
from tricard.engine.ai import choose_card_and_property, choose_property
from tricard.engine.cards import deal_hand
from tricard.engine.match import MatchPhase, MatchState, replay, start_match, step
from tricard.engine.serialize import export_state


def _choose_action(state: MatchState) -> Action:
    if state.phase is MatchPhase.CARD_SELECTION:
        p = 0 if state.players[0].selected is None else 1
        ps = state.players[p]
        index, _ = choose_card_and_property(ps.cards, ["deception", "magic", "attack"], used_cards=ps.used_cards)
        return SelectCardAction(player=p, card_index=index)

    if state.phase is MatchPhase.PROPERTY_SELECTION:
        tracker = state.rounds
        assert tracker is not None
        p = 0 if not tracker.has_committed(0) else 1
        ps = state.players[p]
        assert ps.selected is not None
        prop = choose_property(ps.cards[ps.selected], tracker.available_properties(p))
        return SelectPropertyAction(player=p, property=prop)

    if state.phase is MatchPhase.ROUND_RESULT:
        assert state.rounds is not None
        if state.rounds.all_rounds_complete():
            return CompleteCardGameAction()
        return AdvanceRoundAction()

    return AdvanceCardAction()


def _wall_clock_free(tree: dict[str, object]) -> dict[str, object]:
    out = dict(tree)
    out.pop("ended_at")
    result = out.pop("result")
    out["winner"] = result["winner"] if isinstance(result, dict) else None
    return out


def test_engine_determinism_replay() -> None:
    rng = random.Random(424242)
    hand0 = deal_hand(3, rng=rng)
    hand1 = deal_hand(3, exclude=hand0, rng=rng)
    started = datetime(2024, 1, 1, tzinfo=timezone.utc)

    state1 = start_match(hand0, hand1, match_id="match_replay", started_at=started)
    actions = []
    for _ in range(100):
        if state1.phase is MatchPhase.GAME_OVER:
            break
        a = _choose_action(state1)
        actions.append(a)
        assert step(state1, a).ok

    assert state1.phase is MatchPhase.GAME_OVER
    assert state1.action_log == actions

    state2 = replay(hand0, hand1, actions, match_id="match_replay", started_at=started)
    assert state2.event_log == state1.event_log
    assert _wall_clock_free(export_state(state2)) == _wall_clock_free(export_state(state1))


def test_replay_reproduces_partial_match() -> None:
    rng = random.Random(7)
    hand0 = deal_hand(3, rng=rng)
    hand1 = deal_hand(3, exclude=hand0, rng=rng)
    started = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)

    state1 = start_match(hand0, hand1, match_id="match_partial", started_at=started)
    for _ in range(9):
        step(state1, _choose_action(state1))

    state2 = replay(hand0, hand1, state1.action_log, match_id="match_partial", started_at=started)
    assert export_state(state2) == export_state(state1)
