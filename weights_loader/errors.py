"""Exceptions raised while loading and orienting pretrained weights."""


class WeightsError(Exception):
    """Base class for every weights-loader failure."""


class NotFoundError(WeightsError, FileNotFoundError):
    """No serialized resource exists at the resolved address."""


class DecodeError(WeightsError, ValueError):
    """The byte stream could not be parsed as a float sequence."""


class ShapeMismatchError(WeightsError, ValueError):
    """Flat weights do not match the declared dimensions."""
