"""
Range Proof Encoder

Builds a Borromean range proof whose signature grid doubles as an
encrypted message carrier:

1. Split the value into base-4 digits.
2. Replay the keystream to get ring secrets and slot pads.
3. Lay out the plaintext grid (asset slots, value marker, message) and
   XOR it with the pads. Each real slot decrypts to the ring nonce k_i,
   every other slot is a fake response s_ij.
4. Build the ring commitments and sign all rings at once.

The pads come from the shared nonce, so only the sender and the receiver
can tell the message slots from ordinary random responses.
"""

from ..core_crypto.digits import decompose
from ..core_crypto.keystream import proof_keystream_seed
from ..core_crypto.secp256k1 import N, decode_point, normalize_point_bytes, scalar_to_bytes
from . import borromean
from .commitments import build_ring_grid, proof_message_hash, serialize_ring_commitments
from .frame import build_plaintext_grid, encode_message
from .material import derive_ring_material
from .parameters import ProofParameters, DEFAULT_PARAMETERS
from .proof import RangeProofConfig, SerializedProof, normalize_nonce, parse_hex32


class RangeProofEncoder:
    """
    Produces serialized proofs for one proof geometry.

    Example:
        >>> encoder = RangeProofEncoder()
        >>> proof = encoder.encode(config)
        >>> len(proof)
        4174
    """

    def __init__(self, params: ProofParameters = DEFAULT_PARAMETERS):
        self.params = params

    def encode(self, config: RangeProofConfig) -> bytes:
        """
        Encode a value and message into a range proof.

        Args:
            config: Output fields, nonce, value and message

        Returns:
            proof_size bytes

        Raises:
            ValueOutOfRange: If the value does not fit the rings
            MessageTooLong: If the message exceeds the free-slot budget
            PointDecodingError: If the commitment or generator is invalid
            RingConsistencyError: If the keystream yields an unusable scalar
            ValueError: If the nonce, asset fields or message are malformed
        """
        params = self.params
        digits = decompose(config.value, params.num_rings)

        nonce = normalize_nonce(config.nonce)
        decode_point(config.commitment)
        value_generator = decode_point(config.generator)
        commitment = normalize_point_bytes(config.commitment)
        generator = normalize_point_bytes(config.generator)

        plaintext = build_plaintext_grid(
            digits,
            config.value,
            parse_hex32(config.asset_id, "asset id"),
            parse_hex32(config.asset_blinder, "asset blinder"),
            encode_message(config.message),
            params,
        )

        material = derive_ring_material(
            proof_keystream_seed(nonce, commitment, generator, params.header), params
        )
        scalars = material.apply(plaintext)
        size = params.slot_size
        responses = [
            [
                int.from_bytes(scalars[params.slot_offset(i, j):params.slot_offset(i, j) + size], 'big')
                for j in range(params.ring_size)
            ]
            for i in range(params.num_rings)
        ]

        # Real slots carry the ring nonce; their response is computed by sign()
        nonces = [responses[i][digits[i]] for i in range(params.num_rings)]
        for i in range(params.num_rings):
            responses[i][digits[i]] = 0

        secrets = list(material.secrets)
        secrets[params.last_ring] = (secrets[params.last_ring] + config.blinding_factor) % N

        grid = build_ring_grid(secrets, digits, value_generator, params)
        signs, commitments = serialize_ring_commitments(grid, params)
        m = proof_message_hash(
            commitment, generator, params.header, signs, commitments,
            bytes(config.extra_commit), params,
        )

        e0, signed = borromean.sign(grid, responses, nonces, secrets, digits, m)

        return SerializedProof(
            header=params.header,
            signs=signs,
            commitments=commitments,
            root_challenge=e0,
            signatures=b''.join(scalar_to_bytes(s) for row in signed for s in row),
            params=params,
        ).to_bytes()


def encode_range_proof(config: RangeProofConfig,
                       params: ProofParameters = DEFAULT_PARAMETERS) -> bytes:
    """Encode with a one-off RangeProofEncoder."""
    return RangeProofEncoder(params).encode(config)
