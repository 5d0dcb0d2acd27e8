"""Error types raised by the projection engine."""


class BiocharCalcError(ValueError):
    """Base class for engine failures."""


class InvalidInputError(BiocharCalcError):
    """A numeric input invariant is violated."""


class UnsupportedScenarioError(BiocharCalcError):
    """No tabulated permanence coefficients exist for a (temperature, horizon) pair."""
