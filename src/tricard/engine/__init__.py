"""Deterministic, headless rules engine for the Deception/Magic/Attack card game.

IMPORTANT: This package performs no I/O beyond loading its bundled schemas.
"""

from .actions import (
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
    CorruptStateError,
    EngineError,
    ExhaustedPoolError,
    InvalidCardError,
    InvalidInputError,
    PhaseViolationError,
    PropertyReusedError,
)
from .match import (
    MatchConfig,
    MatchPhase,
    MatchState,
    advance_to_next_card,
    advance_to_next_round,
    auto_play_round,
    complete_card_game,
    complete_match,
    replay,
    select_card,
    select_property,
    start_match,
    step,
    view,
)
from .scoring import ScoringConfig
from .serialize import export_state, import_state
from .types import Card, Property, Rarity

__all__ = [
    "AdvanceCardAction",
    "AdvanceRoundAction",
    "AutoPlayRoundAction",
    "Card",
    "CardAlreadyUsedError",
    "CompleteCardGameAction",
    "CompleteMatchAction",
    "CorruptStateError",
    "EngineError",
    "ExhaustedPoolError",
    "InvalidCardError",
    "InvalidInputError",
    "MatchConfig",
    "MatchPhase",
    "MatchState",
    "PhaseViolationError",
    "Property",
    "PropertyReusedError",
    "Rarity",
    "ScoringConfig",
    "SelectCardAction",
    "SelectPropertyAction",
    "advance_to_next_card",
    "advance_to_next_round",
    "auto_play_round",
    "complete_card_game",
    "complete_match",
    "export_state",
    "import_state",
    "replay",
    "select_card",
    "select_property",
    "start_match",
    "step",
    "view",
]
