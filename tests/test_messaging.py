"""
Unit tests for the Messaging module.

Tests:
- Blinding key pairs and shared nonce derivation
- lm:<salt>:<cipher> envelopes
- Stego channel send / receive / rewrite / balance
"""

import hashlib

import pytest
from liquidmsg.core_crypto.secp256k1 import G, base_mult
from liquidmsg.errors import MarkerNotFound, PointDecodingError
from liquidmsg.messaging.nonce import BlindingKeyPair, derive_shared_nonce
from liquidmsg.messaging.envelope import (
    MESSAGE_PREFIX, is_envelope, open_envelope, seal, sealed_length, xor_sha256_chain,
)
from liquidmsg.messaging.channel import ConfidentialOutput, StegoChannel
from liquidmsg.rangeproof import DEFAULT_PARAMETERS, pedersen_commit, serialize_commitment, serialize_generator

from .conftest import BLINDING_FACTOR, SCRIPT


class TestBlindingKeys:
    """Key pair handling and nonce agreement."""

    def test_generate(self):
        """Generated key pairs have both halves."""
        kp = BlindingKeyPair.generate()
        assert kp.private_key is not None
        assert len(kp.public_bytes()) == 33

    def test_from_private_value(self):
        """Key 1 has the generator as public key."""
        kp = BlindingKeyPair.from_private_value(1)
        assert kp.public_bytes() == G.compressed()
        assert kp.private_value == 1

    def test_from_private_bytes(self):
        """32-byte private keys load."""
        kp = BlindingKeyPair.from_private_bytes((5).to_bytes(32, 'big'))
        assert kp.public_bytes() == base_mult(5).compressed()

    def test_rejects_zero_key(self):
        """Zero is not a private key."""
        with pytest.raises(ValueError):
            BlindingKeyPair.from_private_value(0)

    def test_public_only(self):
        """Public-only pairs have no private value."""
        kp = BlindingKeyPair.from_public_bytes(base_mult(9).compressed())
        with pytest.raises(ValueError):
            kp.private_value

    def test_shared_nonce_agreement(self):
        """Both ends derive the same nonce."""
        alice = BlindingKeyPair.generate()
        bob = BlindingKeyPair.generate()
        assert (
            derive_shared_nonce(bob.public_bytes(), alice)
            == derive_shared_nonce(alice.public_bytes(), bob)
        )

    def test_shared_nonce_construction(self):
        """Double SHA-256 of the compressed shared point."""
        shared = base_mult(6)
        expected = hashlib.sha256(hashlib.sha256(shared.compressed()).digest()).digest()
        assert derive_shared_nonce(base_mult(2).compressed(), 3) == expected

    def test_invalid_nonce_commitment(self):
        """The nonce commitment must be a curve point."""
        with pytest.raises(PointDecodingError):
            derive_shared_nonce(b"\x02" + bytes(32), 3)


class TestEnvelope:
    """Message envelope format."""

    SALT = bytes(range(32))

    def test_format(self):
        """lm:<salt hex>:<cipher hex>."""
        frame = seal("hi", self.SALT)
        prefix, salt_hex, cipher_hex = frame.split(":")
        assert prefix == MESSAGE_PREFIX
        assert salt_hex == self.SALT.hex()
        assert len(cipher_hex) == 4

    def test_round_trip(self):
        """Sealed text opens."""
        text = "the quick brown fox jumps over the lazy dog " * 3
        assert open_envelope(seal(text)) == text

    def test_key_chain(self):
        """Key is SHA256(salt), then re-hashed every 32 bytes."""
        first = hashlib.sha256(self.SALT).digest()
        second = hashlib.sha256(first).digest()
        assert xor_sha256_chain(bytes(40), self.SALT) == first + second[:8]

    def test_xor_is_self_inverse(self):
        """Applying the chain twice restores the input."""
        data = b"some bytes to hide"
        assert xor_sha256_chain(xor_sha256_chain(data, self.SALT), self.SALT) == data

    def test_random_salts_differ(self):
        """Default salts are random."""
        assert seal("same") != seal("same")

    def test_opens_without_any_secret(self):
        """The envelope alone is enough to read the text: obfuscation only."""
        frame = seal("no secret needed", self.SALT)
        assert open_envelope(frame) == "no secret needed"

    def test_is_envelope(self):
        """Three colon-separated parts starting with lm."""
        assert is_envelope("lm:00:00")
        assert not is_envelope("lm:00")
        assert not is_envelope("xx:00:00")
        assert not is_envelope("")

    def test_rejects_non_envelope(self):
        """Wrong prefix or bad hex raises."""
        with pytest.raises(ValueError):
            open_envelope("hello")
        with pytest.raises(ValueError):
            open_envelope("lm:zz:00")

    def test_sealed_length(self):
        """Size helper matches the frame."""
        assert len(seal("abcde", self.SALT)) == sealed_length(5)


@pytest.fixture(scope="module")
def parties():
    return {
        'alice': StegoChannel(BlindingKeyPair.from_private_value(0xA11CE)),
        'bob': StegoChannel(BlindingKeyPair.from_private_value(0xB0B)),
        'eve': StegoChannel(BlindingKeyPair.from_private_value(0xE5E)),
    }


@pytest.fixture(scope="module")
def blank_output(value_generator):
    amount = 1000
    return ConfidentialOutput(
        value_commitment=serialize_commitment(
            pedersen_commit(amount, BLINDING_FACTOR, value_generator)
        ),
        asset_generator=serialize_generator(value_generator),
        script=SCRIPT,
    )


@pytest.fixture(scope="module")
def sent_output(parties, blank_output):
    return parties['alice'].send(
        blank_output, parties['bob'].public_key, "hello bob",
        value=1000 - DEFAULT_PARAMETERS.min_value,
        blinding_factor=BLINDING_FACTOR,
        salt=b"\x07" * 32,
    )


class TestStegoChannel:
    """End-to-end use of one output."""

    def test_requires_private_key(self):
        """A channel cannot be opened with a public key only."""
        with pytest.raises(ValueError):
            StegoChannel(BlindingKeyPair.from_public_bytes(base_mult(3).compressed()))

    def test_send_sets_nonce_commitment(self, parties, sent_output):
        """Output publishes the sender's blinding key."""
        assert sent_output.nonce_commitment == parties['alice'].public_key
        assert len(sent_output.range_proof) == 4174

    def test_recipient_reads_message(self, parties, sent_output):
        """Bob reads text and amount."""
        received = parties['bob'].receive(sent_output)
        assert received.text == "hello bob"
        assert received.value == 999
        assert received.amount == 1000
        assert not received.is_mine

    def test_sender_reads_own_message(self, parties, sent_output):
        """Alice reads what she sent using Bob's key."""
        received = parties['alice'].receive(sent_output, peer_key=parties['bob'].public_key)
        assert received.text == "hello bob"
        assert received.is_mine

    def test_outsider_cannot_read(self, parties, sent_output):
        """Eve's nonce finds no marker."""
        with pytest.raises(MarkerNotFound):
            parties['eve'].receive(sent_output)

    def test_verify(self, parties, sent_output):
        """Anyone can verify the proof."""
        assert parties['eve'].verify(sent_output)

    def test_embed_new_message(self, parties, sent_output):
        """Sender rewrites the message; the proof stays valid."""
        rewritten = parties['alice'].embed(sent_output, parties['bob'].public_key, "changed")
        assert rewritten.range_proof != sent_output.range_proof
        assert parties['bob'].receive(rewritten).text == "changed"
        assert parties['bob'].verify(rewritten)

    def test_balance_of(self, parties, sent_output):
        """Only decodable outputs count."""
        assert parties['bob'].balance_of([sent_output]) == 1000
        assert parties['eve'].balance_of([sent_output]) == 0

    def test_balance_skips_unusable_outputs(self, parties, blank_output, sent_output):
        """Outputs without a nonce commitment or proof do not abort the sum."""
        no_proof = ConfidentialOutput(
            blank_output.value_commitment, blank_output.asset_generator,
            nonce_commitment=parties['alice'].public_key,
        )
        bad_nonce_commitment = ConfidentialOutput(
            sent_output.value_commitment, sent_output.asset_generator,
            b"\x02" + bytes(32), sent_output.script, sent_output.range_proof,
        )
        truncated = ConfidentialOutput(
            sent_output.value_commitment, sent_output.asset_generator,
            sent_output.nonce_commitment, sent_output.script, sent_output.range_proof[:100],
        )
        outputs = [blank_output, no_proof, bad_nonce_commitment, truncated, sent_output]
        assert parties['bob'].balance_of(outputs) == 1000
