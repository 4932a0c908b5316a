"""
Keystream-derived secrets and pads of a range proof.

Sender and receiver replay the same keystream from the shared nonce, so
both arrive at the same ring secrets and the same per-slot pads. For each
ring, in order:

    rings 0..24:  discard 32 bytes, then draw 32-byte candidates until one
                  is a non-zero scalar below n; that is sec_i
    ring 25:      sec_25 = -(sec_0 + ... + sec_24)
    every ring:   one 32-byte pad per slot
"""

from dataclasses import dataclass
from typing import List

from ..core_crypto.keystream import KeystreamGenerator
from ..core_crypto.secp256k1 import N
from .parameters import ProofParameters, DEFAULT_PARAMETERS


@dataclass
class RingMaterial:
    secrets: List[int]
    pads: List[bytes]
    params: ProofParameters = DEFAULT_PARAMETERS

    def pad(self, ring_index: int, column: int) -> bytes:
        return self.pads[ring_index * self.params.ring_size + column]

    def keystream(self) -> bytes:
        """All pads, row-major, aligned with the signature grid."""
        return b''.join(self.pads)

    def apply(self, grid: bytes) -> bytes:
        """XOR a signature grid with the pads (encrypts and decrypts)."""
        if len(grid) != self.params.grid_size:
            raise ValueError(f"Grid must be {self.params.grid_size} bytes, got {len(grid)}")
        return bytes(a ^ b for a, b in zip(grid, self.keystream()))


def _draw_secret(rng: KeystreamGenerator) -> int:
    rng.generate(32)
    while True:
        candidate = int.from_bytes(rng.generate(32), 'big')
        if 0 < candidate < N:
            return candidate


def derive_ring_material(seed: bytes,
                         params: ProofParameters = DEFAULT_PARAMETERS) -> RingMaterial:
    """
    Replay the keystream for one output.

    Args:
        seed: Output of proof_keystream_seed()
        params: Proof geometry

    Returns:
        RingMaterial with num_rings secrets and num_rings * ring_size pads
    """
    rng = KeystreamGenerator(seed)
    secrets = []
    pads = []
    total = 0

    for i in range(params.num_rings):
        if i < params.last_ring:
            secret = _draw_secret(rng)
            total += secret
        else:
            secret = (-total) % N
        secrets.append(secret)

        for _ in range(params.ring_size):
            pads.append(rng.generate(params.slot_size))

    return RingMaterial(secrets=secrets, pads=pads, params=params)
