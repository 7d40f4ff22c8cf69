from .domain.errors import ConstructionMisuseError, InstantError, InstantRangeError, ParseError
from .domain.time import ONE_DAY, ONE_HOUR, ONE_MINUTE, ONE_SECOND, Instant

__all__ = [
    "Instant",
    "InstantError",
    "ConstructionMisuseError",
    "ParseError",
    "InstantRangeError",
    "ONE_SECOND",
    "ONE_MINUTE",
    "ONE_HOUR",
    "ONE_DAY",
]
