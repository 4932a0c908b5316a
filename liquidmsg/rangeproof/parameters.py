"""
Range proof layout parameters.

The defaults describe the proofs Elements wallets produce for explicit
min_value = 1 and exponent 0: 26 rings of 4 keys (52-bit mantissa). Peers
parse proofs at fixed offsets, so the defaults must not change.
"""

from dataclasses import dataclass


# Header flag bits (first header byte)
FLAG_HAS_RANGE = 0x40
FLAG_HAS_MIN_VALUE = 0x20


@dataclass(frozen=True)
class ProofParameters:
    """Ring geometry and header contents of a range proof."""
    num_rings: int = 26
    ring_size: int = 4
    min_value: int = 1
    slot_size: int = 32

    def __post_init__(self):
        if not 2 <= self.num_rings <= 32:
            raise ValueError("num_rings must be between 2 and 32")
        if self.ring_size < 4:
            raise ValueError("ring_size must hold every base-4 digit")
        if self.min_value < 0:
            raise ValueError("min_value must be non-negative")
        if self.slot_size != 32:
            raise ValueError("slot_size must be 32: slots hold secp256k1 scalars")

    @property
    def last_ring(self) -> int:
        return self.num_rings - 1

    @property
    def max_value(self) -> int:
        """Exclusive upper bound of values the rings can carry."""
        return 1 << (2 * self.num_rings)

    @property
    def header(self) -> bytes:
        """Flags ‖ mantissa-1 ‖ 8-byte big-endian min_value."""
        flags = FLAG_HAS_RANGE | (FLAG_HAS_MIN_VALUE if self.min_value else 0)
        mantissa = 2 * self.num_rings
        header = bytes([flags, mantissa - 1])
        if self.min_value:
            header += self.min_value.to_bytes(8, 'big')
        return header

    @property
    def signs_size(self) -> int:
        return (self.num_rings + 6) >> 3

    @property
    def commitments_offset(self) -> int:
        return len(self.header) + self.signs_size

    @property
    def commitments_size(self) -> int:
        return (self.num_rings - 1) * self.slot_size

    @property
    def root_challenge_offset(self) -> int:
        return self.commitments_offset + self.commitments_size

    @property
    def signatures_offset(self) -> int:
        return self.root_challenge_offset + self.slot_size

    @property
    def grid_size(self) -> int:
        return self.num_rings * self.ring_size * self.slot_size

    @property
    def proof_size(self) -> int:
        return self.signatures_offset + self.grid_size

    def slot_offset(self, ring_index: int, column: int) -> int:
        """Byte offset of a slot inside the signature grid."""
        return (ring_index * self.ring_size + column) * self.slot_size


DEFAULT_PARAMETERS = ProofParameters()
