"""
Integration tests for liquidmsg.

Tests end-to-end workflows combining the channel with the audit logger.
"""

import json

import pytest
from liquidmsg.errors import MarkerNotFound
from liquidmsg.integration.event_logger import (
    EventLogger, EventType, ProofEvent, get_output_hash, GENESIS_HASH,
)
from liquidmsg.messaging import BlindingKeyPair, ConfidentialOutput, StegoChannel
from liquidmsg.rangeproof import (
    DEFAULT_PARAMETERS, pedersen_commit, serialize_commitment, serialize_generator,
)

from .conftest import BLINDING_FACTOR, SCRIPT


SECRET_TEXT = "rendezvous at dawn"


@pytest.fixture(scope="module")
def workflow(value_generator):
    """Alice sends, Bob verifies and reads, Eve tries, Alice rewrites."""
    logger = EventLogger()
    alice = StegoChannel(BlindingKeyPair.from_private_value(0xA11CE), event_logger=logger)
    bob = StegoChannel(BlindingKeyPair.from_private_value(0xB0B), event_logger=logger)
    eve = StegoChannel(BlindingKeyPair.from_private_value(0xE5E), event_logger=logger)

    amount = 5000
    output = ConfidentialOutput(
        value_commitment=serialize_commitment(
            pedersen_commit(amount, BLINDING_FACTOR, value_generator)
        ),
        asset_generator=serialize_generator(value_generator),
        script=SCRIPT,
    )

    output = alice.send(
        output, bob.public_key, SECRET_TEXT,
        value=amount - DEFAULT_PARAMETERS.min_value,
        blinding_factor=BLINDING_FACTOR,
    )
    bob.verify(output)
    received = bob.receive(output)
    with pytest.raises(MarkerNotFound):
        eve.receive(output)
    rewritten = alice.embed(output, bob.public_key, "new plan")

    return {
        'logger': logger,
        'output': output,
        'rewritten': rewritten,
        'received': received,
        'bob': bob,
    }


class TestChannelWorkflow:
    """Send, verify, read, rewrite."""

    def test_message_delivered(self, workflow):
        """Bob reads Alice's message and amount."""
        assert workflow['received'].text == SECRET_TEXT
        assert workflow['received'].amount == 5000

    def test_rewritten_output_delivered(self, workflow):
        """Bob reads the rewritten message from the same output."""
        bob = workflow['bob']
        rewritten = workflow['rewritten']
        assert rewritten.value_commitment == workflow['output'].value_commitment
        assert bob.receive(rewritten).text == "new plan"
        assert bob.verify(rewritten)

    def test_non_envelope_message_ignored(self, workflow):
        """Proofs whose text is not an envelope yield no message."""
        from liquidmsg.rangeproof import RangeProofConfig, encode_range_proof

        bob = workflow['bob']
        alice_keys = BlindingKeyPair.from_private_value(0xA11CE)
        output = workflow['output']
        proof = encode_range_proof(RangeProofConfig(
            commitment=output.value_commitment,
            generator=output.asset_generator,
            nonce=bob.shared_nonce(alice_keys.public_bytes()),
            value=4999,
            extra_commit=SCRIPT,
            message="plain text, no envelope",
            blinding_factor=BLINDING_FACTOR,
        ))
        plain = ConfidentialOutput(
            output.value_commitment, output.asset_generator,
            alice_keys.public_bytes(), SCRIPT, proof,
        )
        assert bob.receive(plain) is None
        assert workflow['logger'].get_events_by_type(EventType.FRAME_REJECTED)


class TestAuditLog:
    """Events recorded along the workflow."""

    def test_events_recorded(self, workflow):
        """Every step leaves an event."""
        logger = workflow['logger']
        types = [e.event_type for e in logger.get_all_events()]
        assert types[0] == EventType.CHANNEL_OPENED
        for expected in (
            EventType.PROOF_ENCODED,
            EventType.PROOF_VERIFIED,
            EventType.PROOF_DECODED,
            EventType.MARKER_NOT_FOUND,
            EventType.BLINDING_RECOVERED,
            EventType.MESSAGE_EMBEDDED,
        ):
            assert expected in types

    def test_events_keyed_by_output_hash(self, workflow):
        """Events name the output by the hash of its commitment."""
        logger = workflow['logger']
        commitment = workflow['output'].value_commitment
        events = logger.get_output_events(commitment)
        assert events
        assert all(e.output_hash == get_output_hash(commitment) for e in events)

    def test_no_plaintext_in_log(self, workflow):
        """Message text, values and commitments never reach the log."""
        exported = workflow['logger'].export_log()
        assert SECRET_TEXT not in exported
        assert "new plan" not in exported
        assert workflow['output'].value_commitment.hex() not in exported

    def test_integrity(self, workflow):
        """The hash chain is intact."""
        assert workflow['logger'].verify_integrity()

    def test_export_import(self, workflow):
        """Exported logs import with the same events."""
        logger = workflow['logger']
        imported = EventLogger.import_log(logger.export_log())
        assert len(imported.get_all_events()) == len(logger.get_all_events())
        assert imported.verify_integrity()

    def test_recent_events(self, workflow):
        """Most recent events come last."""
        logger = workflow['logger']
        recent = logger.get_recent_events(2)
        assert recent == logger.get_all_events()[-2:]


class TestEventLogger:
    """Logger behaviour on its own."""

    def test_first_event_links_to_genesis(self):
        """The chain starts from the all-zero hash."""
        logger = EventLogger()
        assert logger.get_all_events()[0].prev_hash == GENESIS_HASH

    def test_record_round_trip(self):
        """Records parse back to the same event."""
        event = ProofEvent(EventType.PROOF_DECODED, "ab" * 32, 1700000000, {'message_length': 5})
        assert ProofEvent.from_record(event.to_record()) == event

    def test_callbacks(self):
        """Callbacks see each new event."""
        seen = []
        logger = EventLogger()
        logger.add_callback(seen.append)
        logger.log_marker_not_found(b"\x08" * 33)
        logger.remove_callback(seen.append)
        logger.log_marker_not_found(b"\x08" * 33)
        assert len(seen) == 1
        assert seen[0].event_type == EventType.MARKER_NOT_FOUND

    def test_tampered_import_rejected(self):
        """Editing a record breaks the chain."""
        logger = EventLogger()
        logger.log_proof_encoded(b"\x08" * 33, 4174, 10)
        logger.log_proof_decoded(b"\x08" * 33, 10)
        records = json.loads(logger.export_log())
        first = json.loads(records[1])
        first['details']['size'] = 1
        records[1] = json.dumps(first, separators=(',', ':'), sort_keys=True)
        with pytest.raises(ValueError):
            EventLogger.import_log(json.dumps(records))

    def test_malformed_import_rejected(self):
        """Garbage is not a log."""
        with pytest.raises(ValueError):
            EventLogger.import_log("not json")
