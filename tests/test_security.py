"""
Security tests for liquidmsg.

Tests specifically for security-related scenarios:
- Wrong keys and wrong outputs
- Leakage of plaintext into the proof
- Tampering
- Invalid inputs
"""

import hashlib
import os

import pytest
from liquidmsg.core_crypto.secp256k1 import N
from liquidmsg.errors import MarkerNotFound, RingConsistencyError
from liquidmsg.rangeproof import (
    SerializedProof, decode_range_proof, encode_range_proof,
    recover_blinding_factor, verify_range_proof,
)

from .conftest import NONCE, SCRIPT


MESSAGE = "attack at noon, bring the documents"


@pytest.fixture(scope="module")
def proof(make_config):
    config = make_config(123456, MESSAGE)
    return config, encode_range_proof(config)


class TestWrongKeys:
    """Only the nonce holder can read the proof."""

    def test_random_nonces_find_no_marker(self, proof):
        """Random nonces fail loudly instead of returning a wrong value."""
        config, data = proof
        for _ in range(20):
            with pytest.raises(MarkerNotFound):
                decode_range_proof(data, os.urandom(32), config.commitment, config.generator)

    def test_nonce_off_by_one_bit(self, proof):
        """A single flipped nonce bit is enough to fail."""
        config, data = proof
        nonce = bytearray(NONCE)
        nonce[-1] ^= 0x01
        with pytest.raises(MarkerNotFound):
            decode_range_proof(data, bytes(nonce), config.commitment, config.generator)

    def test_keystream_bound_to_commitment(self, proof, make_config):
        """The right nonce with another output's commitment fails."""
        config, data = proof
        other = make_config(1)
        with pytest.raises(MarkerNotFound):
            decode_range_proof(data, NONCE, other.commitment, config.generator)

    def test_rewind_needs_nonce(self, proof):
        """Blinding factor recovery fails with the wrong nonce."""
        config, data = proof
        with pytest.raises(MarkerNotFound):
            recover_blinding_factor(
                data, os.urandom(32), config.commitment, config.generator, SCRIPT
            )


class TestNoLeakage:
    """The serialized proof shows nothing of the plaintext."""

    def test_message_not_in_proof(self, proof):
        """Message bytes do not appear in the clear."""
        _, data = proof
        assert MESSAGE.encode() not in data
        assert MESSAGE.encode()[:8] not in data

    def test_value_not_in_proof(self, proof):
        """The value marker is encrypted."""
        _, data = proof
        assert (123456).to_bytes(8, 'big') * 3 not in data

    def test_zero_padding_not_visible(self, proof):
        """Zero-filled free slots do not show as zero runs."""
        _, data = proof
        signatures = SerializedProof.from_bytes(data).signatures
        assert bytes(32) not in signatures

    def test_responses_are_valid_scalars(self, proof):
        """Every slot, message-carrying or not, is a scalar in [1, n)."""
        _, data = proof
        for row in SerializedProof.from_bytes(data).responses():
            for s in row:
                assert 0 < s < N

    def test_different_nonce_different_grid(self, proof, make_config):
        """Same message under another nonce encrypts differently."""
        config, data = proof
        other_nonce = hashlib.sha256(b"another nonce").digest()
        other = encode_range_proof(make_config(123456, MESSAGE, nonce=other_nonce))
        first = SerializedProof.from_bytes(data).signatures
        second = SerializedProof.from_bytes(other).signatures
        assert first != second
        assert sum(a == b for a, b in zip(first, second)) < len(first) // 64


class TestTampering:
    """Modified proofs are caught."""

    def test_signature_bytes(self, proof):
        """A flipped signature byte fails verification or decoding."""
        config, data = proof
        offset = SerializedProof.from_bytes(data).params.signatures_offset + 3327
        tampered = bytearray(data)
        tampered[offset] ^= 0x80

        with pytest.raises(RingConsistencyError):
            verify_range_proof(bytes(tampered), config.commitment, config.generator, SCRIPT)

    def test_swapped_commitments(self, proof):
        """Reordering ring commitments breaks the rings."""
        config, data = proof
        params = SerializedProof.from_bytes(data).params
        start = params.commitments_offset
        tampered = bytearray(data)
        tampered[start:start + 32], tampered[start + 32:start + 64] = (
            data[start + 32:start + 64], data[start:start + 32]
        )
        with pytest.raises(RingConsistencyError):
            verify_range_proof(bytes(tampered), config.commitment, config.generator, SCRIPT)

    def test_signs_byte(self, proof):
        """Flipping a quadratic-residue bit negates a ring commitment."""
        config, data = proof
        tampered = bytearray(data)
        tampered[10] ^= 0x01
        with pytest.raises(RingConsistencyError):
            verify_range_proof(bytes(tampered), config.commitment, config.generator, SCRIPT)


class TestInvalidInputs:
    """Malformed inputs are rejected early."""

    def test_truncated_proof(self, proof):
        """Short proofs are not parsed."""
        config, data = proof
        with pytest.raises(ValueError):
            verify_range_proof(data[:100], config.commitment, config.generator)

    def test_empty_proof(self, proof):
        """Empty input is not a proof."""
        config, _ = proof
        with pytest.raises(ValueError):
            decode_range_proof(b"", NONCE, config.commitment, config.generator)

    def test_non_ascii_message(self, make_config):
        """Only ASCII text is encoded."""
        with pytest.raises(ValueError):
            encode_range_proof(make_config(1, "naïve"))
