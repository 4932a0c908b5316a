"""
Event Logger Module

Audit trail for the message channel. Every proof encoded, decoded,
verified or rewritten is recorded as a typed event; records are chained
by SHA-256 so that editing or dropping one breaks every later link.

Features:
- Proof encode / decode / verify events
- Message embedding and blinding-factor recovery events
- Privacy-preserving output hashes (SHA-256 of the value commitment)
- Never records message text, values, nonces or blinding factors
- Tamper-evident, exportable log

Author: liquidmsg
"""

import hashlib
import json
import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, List, Dict, Any, Callable


# ============================================================================
# Constants
# ============================================================================

EVENT_VERSION = "1.0"
GENESIS_HASH = "0" * 64


# ============================================================================
# Privacy Functions
# ============================================================================

def get_output_hash(commitment: bytes) -> str:
    """
    Compute privacy-preserving hash of a value commitment.

    Events about the same output correlate without the commitment itself
    (which identifies the output on chain) appearing in the log.

    Args:
        commitment: 33-byte value commitment

    Returns:
        Hex-encoded SHA-256 hash
    """
    return hashlib.sha256(bytes(commitment)).hexdigest()


def get_output_hash_short(commitment: bytes) -> str:
    """First 16 characters of the output hash, for display."""
    return get_output_hash(commitment)[:16]


# ============================================================================
# Event Types
# ============================================================================

class EventType(Enum):
    """Types of channel events that can be logged."""

    # Proof events
    PROOF_ENCODED = "proof_encoded"
    PROOF_DECODED = "proof_decoded"
    PROOF_VERIFIED = "proof_verified"
    PROOF_REJECTED = "proof_rejected"
    MARKER_NOT_FOUND = "marker_not_found"

    # Message events
    MESSAGE_EMBEDDED = "message_embedded"
    BLINDING_RECOVERED = "blinding_recovered"
    FRAME_REJECTED = "frame_rejected"

    # System events
    CHANNEL_OPENED = "channel_opened"


# ============================================================================
# Event Structure
# ============================================================================

@dataclass
class ProofEvent:
    """
    A channel event.

    output_hash identifies the output by hash only. prev_hash links the
    event to the record before it.
    """
    event_type: EventType
    output_hash: str
    timestamp: int
    details: Dict[str, Any] = field(default_factory=dict)
    prev_hash: str = GENESIS_HASH

    def to_record(self) -> str:
        """Convert event to a compact JSON record."""
        return json.dumps({
            'version': EVENT_VERSION,
            'type': self.event_type.value,
            'output': self.output_hash,
            'time': self.timestamp,
            'details': self.details,
            'prev': self.prev_hash,
        }, separators=(',', ':'), sort_keys=True)

    @classmethod
    def from_record(cls, record: str) -> 'ProofEvent':
        """Parse event from a JSON record."""
        data = json.loads(record)
        return cls(
            event_type=EventType(data['type']),
            output_hash=data['output'],
            timestamp=data['time'],
            details=data.get('details', {}),
            prev_hash=data.get('prev', GENESIS_HASH),
        )

    @property
    def record_hash(self) -> str:
        return hashlib.sha256(self.to_record().encode()).hexdigest()

    def __str__(self) -> str:
        dt = datetime.fromtimestamp(self.timestamp)
        return (
            f"[{dt.strftime('%Y-%m-%d %H:%M:%S')}] "
            f"{self.event_type.value} | "
            f"output:{self.output_hash[:8]}..."
        )


# ============================================================================
# Event Logger
# ============================================================================

class EventLogger:
    """
    Hash-chained event logger for the channel audit trail.
    """

    def __init__(self, events: Optional[List[ProofEvent]] = None, node: str = "liquidmsg"):
        """
        Initialize the event logger.

        Args:
            events: Optional existing event chain to continue
            node: Name recorded in the channel-opened event
        """
        self._events: List[ProofEvent] = list(events or [])
        self._callbacks: List[Callable[[ProofEvent], None]] = []

        if not self._events:
            self._log_system_event(EventType.CHANNEL_OPENED, {'node': node})

    def _log_system_event(self, event_type: EventType, details: Dict[str, Any]) -> None:
        """Log a system event (no output)."""
        self._add_event(event_type, "system", details)

    def _add_event(self, event_type: EventType, output_hash: str,
                   details: Optional[Dict[str, Any]] = None) -> ProofEvent:
        """Append an event to the chain."""
        prev_hash = self._events[-1].record_hash if self._events else GENESIS_HASH
        event = ProofEvent(
            event_type=event_type,
            output_hash=output_hash,
            timestamp=int(time.time()),
            details=details or {},
            prev_hash=prev_hash,
        )
        self._events.append(event)

        # Notify callbacks
        for callback in self._callbacks:
            callback(event)
        return event

    def add_callback(self, callback: Callable[[ProofEvent], None]) -> None:
        """Add a callback to be notified of new events."""
        self._callbacks.append(callback)

    def remove_callback(self, callback: Callable[[ProofEvent], None]) -> None:
        """Remove a callback."""
        if callback in self._callbacks:
            self._callbacks.remove(callback)

    # ========================================================================
    # Proof Events
    # ========================================================================

    def log_proof_encoded(self, commitment: bytes, proof_size: int,
                          message_length: int) -> ProofEvent:
        """
        Log a newly encoded proof.

        Args:
            commitment: Value commitment of the output (will be hashed)
            proof_size: Serialized proof size in bytes
            message_length: Length of the embedded frame (the text is not logged)

        Returns:
            The logged event
        """
        return self._add_event(
            EventType.PROOF_ENCODED,
            get_output_hash(commitment),
            {'size': proof_size, 'message_length': message_length},
        )

    def log_proof_decoded(self, commitment: bytes, message_length: int) -> ProofEvent:
        """Log a successful decode."""
        return self._add_event(
            EventType.PROOF_DECODED,
            get_output_hash(commitment),
            {'message_length': message_length},
        )

    def log_marker_not_found(self, commitment: bytes) -> ProofEvent:
        """Log a decode whose nonce did not match the proof."""
        return self._add_event(EventType.MARKER_NOT_FOUND, get_output_hash(commitment))

    def log_verification(self, commitment: bytes, success: bool,
                         reason: Optional[str] = None) -> ProofEvent:
        """Log the result of a Borromean verification."""
        details = {'success': success}
        if reason:
            details['reason'] = reason
        return self._add_event(
            EventType.PROOF_VERIFIED if success else EventType.PROOF_REJECTED,
            get_output_hash(commitment),
            details,
        )

    # ========================================================================
    # Message Events
    # ========================================================================

    def log_message_embedded(self, commitment: bytes, message_length: int) -> ProofEvent:
        """Log a proof rewritten to carry a new message."""
        return self._add_event(
            EventType.MESSAGE_EMBEDDED,
            get_output_hash(commitment),
            {'message_length': message_length},
        )

    def log_blinding_recovered(self, commitment: bytes) -> ProofEvent:
        """Log a blinding-factor recovery (the factor itself is not logged)."""
        return self._add_event(EventType.BLINDING_RECOVERED, get_output_hash(commitment))

    def log_frame_rejected(self, commitment: bytes, reason: str) -> ProofEvent:
        """Log decoded text that is not a message envelope."""
        return self._add_event(
            EventType.FRAME_REJECTED,
            get_output_hash(commitment),
            {'reason': reason},
        )

    # ========================================================================
    # Retrieval
    # ========================================================================

    def get_all_events(self) -> List[ProofEvent]:
        """Return every logged event, oldest first."""
        return list(self._events)

    def get_output_events(self, commitment: bytes) -> List[ProofEvent]:
        """Get all events for one output."""
        output_hash = get_output_hash(commitment)
        return [e for e in self._events if e.output_hash == output_hash]

    def get_events_by_type(self, event_type: EventType) -> List[ProofEvent]:
        """Get all events of a specific type."""
        return [e for e in self._events if e.event_type == event_type]

    def get_recent_events(self, count: int = 10) -> List[ProofEvent]:
        """Get the most recent events."""
        return self._events[-count:] if len(self._events) > count else list(self._events)

    def print_audit_log(self, last_n: Optional[int] = None) -> None:
        """Print the audit log in a readable format."""
        events = self._events
        if last_n:
            events = events[-last_n:]

        print("\n" + "=" * 70)
        print("CHANNEL AUDIT LOG")
        print("=" * 70)

        for event in events:
            print(event)
            if event.details:
                for k, v in event.details.items():
                    print(f"    {k}: {v}")

        print("=" * 70)
        print(f"Total events: {len(self._events)}")
        print("=" * 70)

    def verify_integrity(self) -> bool:
        """Verify that every event links to the record before it."""
        prev_hash = GENESIS_HASH
        for event in self._events:
            if event.prev_hash != prev_hash:
                return False
            prev_hash = event.record_hash
        return True

    def export_log(self) -> str:
        """Export the entire audit log as JSON."""
        return json.dumps([event.to_record() for event in self._events])

    @classmethod
    def import_log(cls, json_str: str) -> 'EventLogger':
        """
        Import an audit log from JSON.

        Raises:
            ValueError: If the records are malformed or the chain is broken
        """
        try:
            events = [ProofEvent.from_record(record) for record in json.loads(json_str)]
        except (json.JSONDecodeError, KeyError, TypeError) as exc:
            raise ValueError(f"Malformed audit log: {exc}") from exc
        logger = cls(events=events)
        if not logger.verify_integrity():
            raise ValueError("Audit log hash chain is broken")
        return logger


# ============================================================================
# Convenience Functions
# ============================================================================

def create_event_logger(node: str = "liquidmsg") -> EventLogger:
    """Create a new event logger."""
    return EventLogger(node=node)
