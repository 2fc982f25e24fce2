# sunheading/errors

"""
sunheading.errors

Central exception hierarchy for sunheading.

Rationale:
  - Modules raise specific, meaningful errors.
  - Callers can catch SunHeadingError (broad) or specific subclasses (narrow).
  - Only InputError is fatal for a file; NonComputableSample and
    DegenerateDistribution are recovered locally by the pipeline.
"""


class SunHeadingError(RuntimeError):
    """Base class for all sunheading runtime errors."""


# ---- Input errors ------------------------------

class InputError(SunHeadingError):
    """The source track could not be read or parsed."""

class InvalidGpxError(InputError):
    """GPX file could not be parsed or did not contain expected data structures."""


# ---- Analysis conditions -----------------------

class AnalysisError(SunHeadingError):
    """Conditions raised by the angular analysis engine."""

class NonComputableSample(AnalysisError):
    """A sample pair without a usable heading (no longitudinal movement, or a pause)."""

class DegenerateDistribution(AnalysisError):
    """A histogram statistic is undefined (zero IQR, zero max count, non-finite value)."""


# ---- Configuration errors ----------------------

class ConfigError(SunHeadingError):
    """Invalid configuration value or unparsable config file."""
