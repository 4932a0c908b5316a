"""
Range Proof Decoder

Receiver side of the channel. Anyone holding the shared nonce replays the
sender's keystream, strips the pads off the signature grid and reads the
value marker, the asset slots and the message. Verification needs no
nonce at all: it is the ordinary Borromean check every node performs.
"""

from ..core_crypto.digits import decompose
from ..core_crypto.keystream import proof_keystream_seed
from ..core_crypto.secp256k1 import decode_point, normalize_point_bytes
from ..errors import RingConsistencyError
from . import borromean
from .commitments import proof_message_hash, reconstruct_ring_grid
from .frame import (
    ASSET_BLINDER_SLOT, ASSET_ID_SLOT, decode_message, locate_value, trim_message,
)
from .material import RingMaterial, derive_ring_material
from .parameters import ProofParameters, DEFAULT_PARAMETERS
from .proof import DecodedProof, NonceLike, SerializedProof, normalize_nonce


def replay_ring_material(nonce: NonceLike, commitment: bytes, generator: bytes,
                         params: ProofParameters) -> RingMaterial:
    """Keystream secrets and pads for one output, as its sender drew them."""
    seed = proof_keystream_seed(
        normalize_nonce(nonce),
        normalize_point_bytes(commitment),
        normalize_point_bytes(generator),
        params.header,
    )
    return derive_ring_material(seed, params)


class RangeProofDecoder:
    """Reads value and message out of proofs of one geometry."""

    def __init__(self, params: ProofParameters = DEFAULT_PARAMETERS):
        self.params = params

    def decrypt_signature_grid(self, proof: bytes, nonce: NonceLike,
                               commitment: bytes, generator: bytes) -> bytes:
        """
        Remove the keystream pads from a proof's signature grid.

        Returns:
            The plaintext grid; real slots come out as random-looking bytes
        """
        serialized = SerializedProof.from_bytes(proof, self.params)
        material = replay_ring_material(nonce, commitment, generator, self.params)
        return material.apply(serialized.signatures)

    def decode(self, proof: bytes, nonce: NonceLike,
               commitment: bytes, generator: bytes) -> DecodedProof:
        """
        Recover the committed value and the embedded message.

        Args:
            proof: Serialized range proof
            nonce: Shared nonce of the output
            commitment: 33-byte value commitment of the output
            generator: 33-byte asset generator of the output

        Returns:
            DecodedProof

        Raises:
            MarkerNotFound: If the nonce does not belong to this proof
            ValueError: If the proof is malformed
        """
        params = self.params
        plain = self.decrypt_signature_grid(proof, nonce, commitment, generator)
        value, marker_column = locate_value(plain, params)
        digits = decompose(value, params.num_rings)

        raw = decode_message(plain, digits, params)
        size = params.slot_size
        asset_id = params.slot_offset(*ASSET_ID_SLOT)
        asset_blinder = params.slot_offset(*ASSET_BLINDER_SLOT)

        return DecodedProof(
            value=value,
            message=trim_message(raw),
            asset_id=plain[asset_id:asset_id + size],
            asset_blinder=plain[asset_blinder:asset_blinder + size],
            marker_column=marker_column,
            raw_message=raw,
        )


def decode_range_proof(proof: bytes, nonce: NonceLike, commitment: bytes, generator: bytes,
                       params: ProofParameters = DEFAULT_PARAMETERS) -> DecodedProof:
    """Decode with a one-off RangeProofDecoder."""
    return RangeProofDecoder(params).decode(proof, nonce, commitment, generator)


def verify_range_proof(proof: bytes, commitment: bytes, generator: bytes,
                       extra_commit: bytes = b"",
                       params: ProofParameters = DEFAULT_PARAMETERS) -> bool:
    """
    Check that a proof's rings sign for the output commitment.

    Returns:
        True

    Raises:
        RingConsistencyError: If any ring fails to close
        PointDecodingError: If the commitment or generator is invalid
        ValueError: If the proof is malformed
    """
    serialized = SerializedProof.from_bytes(proof, params)
    grid = reconstruct_ring_grid(
        serialized.signs,
        serialized.commitments,
        decode_point(commitment),
        decode_point(generator),
        params,
    )
    m = proof_message_hash(
        normalize_point_bytes(commitment),
        normalize_point_bytes(generator),
        serialized.header,
        serialized.signs,
        serialized.commitments,
        bytes(extra_commit),
        params,
    )
    if not borromean.verify(serialized.root_challenge, grid, serialized.responses(), m):
        raise RingConsistencyError("Range proof signature does not verify")
    return True
