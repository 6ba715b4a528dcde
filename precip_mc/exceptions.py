"""
Exceptions raised by precip_mc.

Everything here is raised synchronously and propagated to the caller
(normally the transport engine's run manager, which aborts the run).
"""


class PrecipMCError(Exception):
    """Base exception for precip_mc."""
    pass


class InvalidConfigurationError(PrecipMCError, ValueError):
    """Unrecognised mode flag or out-of-range generator/field parameter."""

    def __init__(self, parameter: str, value, reason: str = ""):
        self.parameter = parameter
        self.value = value
        self.reason = reason
        message = f"Invalid value for '{parameter}': {value!r}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)


class FieldSingularityError(PrecipMCError, ValueError):
    """Field queried at the dipole origin (radial distance z == 0)."""
    pass


class SequenceError(PrecipMCError):
    """Base exception for replay sequence sources."""
    pass


class SequenceExhaustedError(SequenceError):
    """Replay source has no more values (empty or fully consumed file)."""
    pass


class SequenceParseError(SequenceError, ValueError):
    """Replay token could not be parsed as a float."""

    def __init__(self, source: str, token: str):
        self.source = source
        self.token = token
        super().__init__(f"Cannot parse {token!r} from {source} as a number")
