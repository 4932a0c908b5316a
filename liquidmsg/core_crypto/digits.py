"""
Base-4 digit decomposition of committed values.

Each ring of the range proof carries two bits of the value: ring i proves
that its digit is one of {0, 1, 2, 3} at weight 4^i.
"""

from typing import List, Sequence

from ..errors import ValueOutOfRange


NUM_RINGS = 26
DIGIT_BITS = 2
DIGIT_MASK = 3


def digit_weight(ring_index: int) -> int:
    """Positional weight 4^ring_index of a ring's digit."""
    return 1 << (DIGIT_BITS * ring_index)


def decompose(value: int, num_rings: int = NUM_RINGS) -> List[int]:
    """
    Split a value into base-4 digits, least significant first.

    Args:
        value: Committed value, 0 <= value < 4^num_rings
        num_rings: Number of digits

    Returns:
        digits with digits[i] = (value >> 2i) & 3

    Raises:
        ValueOutOfRange: If the value needs more digits than there are rings
    """
    if value < 0 or value >= digit_weight(num_rings):
        raise ValueOutOfRange(
            f"Value {value} outside [0, 2^{DIGIT_BITS * num_rings})"
        )
    return [(value >> (DIGIT_BITS * i)) & DIGIT_MASK for i in range(num_rings)]


def recompose(digits: Sequence[int]) -> int:
    """Inverse of decompose()."""
    value = 0
    for i, digit in enumerate(digits):
        if not 0 <= digit <= DIGIT_MASK:
            raise ValueError(f"Digit {digit} at ring {i} is not in [0, 3]")
        value += digit * digit_weight(i)
    return value
