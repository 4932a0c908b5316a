"""
Range proof containers.

SerializedProof layout (default parameters):
    [header (10) | signs (4) | commitments (800) | e0 (32) | signatures (3328)]

    offset   0: header, flags ‖ mantissa-1 ‖ min_value
    offset  10: one quadratic-residue bit per ring except the last
    offset  14: x coordinate of each ring commitment except the last
    offset 814: shared root challenge e0
    offset 846: 26 x 4 signature scalars, row-major
"""

from dataclasses import dataclass, field
from typing import List, Optional, Union

from ..core_crypto.digits import decompose
from ..core_crypto.secp256k1 import SCALAR_SIZE
from .parameters import ProofParameters, DEFAULT_PARAMETERS


NonceLike = Union[bytes, bytearray, int]


def normalize_nonce(nonce: NonceLike) -> bytes:
    """Accept a 32-byte nonce or an integer scalar and return 32 bytes."""
    if isinstance(nonce, int):
        if not 0 <= nonce < (1 << 256):
            raise ValueError("Nonce must fit in 256 bits")
        return nonce.to_bytes(SCALAR_SIZE, 'big')
    if len(nonce) != SCALAR_SIZE:
        raise ValueError(f"Nonce must be {SCALAR_SIZE} bytes, got {len(nonce)}")
    return bytes(nonce)


def parse_hex32(value: str, name: str) -> bytes:
    """Decode a hex-encoded 32-byte field (asset id, asset blinder)."""
    try:
        data = bytes.fromhex(value)
    except ValueError as exc:
        raise ValueError(f"{name} is not valid hex") from exc
    if len(data) != SCALAR_SIZE:
        raise ValueError(f"{name} must be {SCALAR_SIZE} bytes, got {len(data)}")
    return data


@dataclass
class RangeProofConfig:
    """
    Everything the encoder needs for one confidential output.

    commitment and generator are the 33-byte encodings found in the
    transaction output (prefix 0x08/0x09 and 0x0a/0x0b). value is the
    amount carried by the rings, i.e. the output amount minus min_value.
    blinding_factor is the output's value blinding factor; the rings only
    add up to the output commitment when it is supplied.
    """
    commitment: bytes
    generator: bytes
    nonce: NonceLike
    value: int
    extra_commit: bytes = b""
    asset_id: str = "00" * 32
    asset_blinder: str = "00" * 32
    message: str = ""
    blinding_factor: int = 0


@dataclass
class SerializedProof:
    """Fixed-layout Borromean range proof."""
    header: bytes
    signs: bytes
    commitments: bytes
    root_challenge: bytes
    signatures: bytes
    params: ProofParameters = field(default=DEFAULT_PARAMETERS, repr=False, compare=False)

    def to_bytes(self) -> bytes:
        return (
            self.header +
            self.signs +
            self.commitments +
            self.root_challenge +
            self.signatures
        )

    @classmethod
    def from_bytes(cls, data: bytes,
                   params: ProofParameters = DEFAULT_PARAMETERS) -> 'SerializedProof':
        """
        Split a proof at its fixed offsets.

        Raises:
            ValueError: If the length or header does not match the parameters
        """
        if len(data) != params.proof_size:
            raise ValueError(
                f"Range proof must be {params.proof_size} bytes, got {len(data)}"
            )
        header = bytes(data[:len(params.header)])
        if header != params.header:
            raise ValueError(f"Unsupported range proof header {header.hex()}")

        return cls(
            header=header,
            signs=bytes(data[len(params.header):params.commitments_offset]),
            commitments=bytes(data[params.commitments_offset:params.root_challenge_offset]),
            root_challenge=bytes(data[params.root_challenge_offset:params.signatures_offset]),
            signatures=bytes(data[params.signatures_offset:]),
            params=params,
        )

    def to_hex(self) -> str:
        return self.to_bytes().hex()

    @classmethod
    def from_hex(cls, hex_str: str,
                 params: ProofParameters = DEFAULT_PARAMETERS) -> 'SerializedProof':
        return cls.from_bytes(bytes.fromhex(hex_str), params)

    def signature_grid(self) -> List[List[bytes]]:
        """Signature scalars as rows of 32-byte slots."""
        size = self.params.slot_size
        return [
            [
                self.signatures[self.params.slot_offset(i, j):self.params.slot_offset(i, j) + size]
                for j in range(self.params.ring_size)
            ]
            for i in range(self.params.num_rings)
        ]

    def responses(self) -> List[List[int]]:
        """Signature scalars as unreduced integers."""
        return [
            [int.from_bytes(slot, 'big') for slot in row]
            for row in self.signature_grid()
        ]


@dataclass
class DecodedProof:
    """
    Value and payload recovered from a proof.

    asset_id and asset_blinder are the raw decrypted slots (0, 0) and
    (0, 1); they are meaningless when the first ring's real digit sits in
    one of those slots.
    """
    value: int
    message: str
    asset_id: bytes
    asset_blinder: bytes
    marker_column: int
    raw_message: Optional[bytes] = field(default=None, repr=False)

    @property
    def digits(self) -> List[int]:
        return decompose(self.value)
