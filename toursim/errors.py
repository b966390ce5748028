# toursim/errors.py
from __future__ import annotations


class ToursimError(Exception):
    """Base class for engine errors."""


class InvalidInputError(ToursimError, ValueError):
    """A caller passed something the engine refuses to guess about (negative distance, unknown mode...)."""


class InvalidTransitionError(ToursimError):
    """A tour stop was moved out of a terminal status."""


class RequirementsNotMetError(ToursimError):
    def __init__(self, missing):
        self.missing = list(missing)
        super().__init__("Requirements not met: " + "; ".join(self.missing))


class StaleStateError(ToursimError):
    """The player snapshot changed between reading it and applying a delta."""


class DoubleSettlementError(ToursimError):
    """A completed event was settled a second time."""
