"""
Error taxonomy for range-proof construction and decoding.

Every error derives from RangeProofError, which is itself a ValueError so
callers that only care about "bad input" can keep catching ValueError.
"""


class RangeProofError(ValueError):
    """Base class for all range-proof errors."""


class ValueOutOfRange(RangeProofError):
    """Committed value cannot be represented by the ring digits."""


class MessageTooLong(RangeProofError):
    """Message does not fit in the free signature slots."""


class RingConsistencyError(RangeProofError):
    """A ring signature failed its self-check or verification."""


class MarkerNotFound(RangeProofError):
    """Decrypted signature grid carries no recognisable value marker."""


class PointDecodingError(RangeProofError):
    """Serialized point is malformed or not on the curve."""
