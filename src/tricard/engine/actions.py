from __future__ import annotations

from dataclasses import dataclass

from .types import Property


@dataclass(frozen=True)
class SelectCardAction:
    player: int
    card_index: int


@dataclass(frozen=True)
class SelectPropertyAction:
    player: int
    property: Property


@dataclass(frozen=True)
class AdvanceRoundAction:
    pass


@dataclass(frozen=True)
class AutoPlayRoundAction:
    pass


@dataclass(frozen=True)
class CompleteCardGameAction:
    pass


@dataclass(frozen=True)
class AdvanceCardAction:
    pass


@dataclass(frozen=True)
class CompleteMatchAction:
    pass


Action = (
    SelectCardAction
    | SelectPropertyAction
    | AdvanceRoundAction
    | AutoPlayRoundAction
    | CompleteCardGameAction
    | AdvanceCardAction
    | CompleteMatchAction
)
