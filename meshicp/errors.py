"""Exceptions raised by the registration routines."""


class RegistrationError(Exception):
    """Base class for every error raised by meshicp."""


class DegenerateInputError(RegistrationError, ValueError):
    """
    Input carries too little information for the requested operation.

    Raised for empty point or face sets, fewer than 3 usable correspondences
    and out-of-range face indices.
    """


class ShapeMismatchError(RegistrationError, ValueError):
    """Paired arrays do not have matching shapes."""


class ConfigurationError(RegistrationError, ValueError):
    """A configuration value is outside its allowed range."""
