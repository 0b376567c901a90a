from __future__ import annotations


class EngineError(RuntimeError):
    """Base class for every rule violation raised by the engine."""


class InvalidCardError(EngineError):
    pass


class InvalidInputError(EngineError):
    pass


class PropertyReusedError(EngineError):
    pass


class CardAlreadyUsedError(EngineError):
    pass


class PhaseViolationError(EngineError):
    pass


class ExhaustedPoolError(EngineError):
    pass


class CorruptStateError(EngineError):
    pass
