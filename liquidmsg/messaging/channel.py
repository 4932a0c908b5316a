"""
Stego Channel

Sends and reads messages hidden in the range proofs of confidential
outputs. A channel instance holds one party's blinding key pair; the
shared nonce of an output is derived from that key and the peer's
blinding public key, which is what the output publishes as its nonce
commitment.

Flow:
    sender:    nonce = derive(recipient pubkey, own key)
               proof = encode(value, envelope(text)) keyed by nonce
               output.nonce_commitment = own pubkey
    receiver:  nonce = derive(output.nonce_commitment, own key)
               value, envelope = decode(proof) keyed by nonce
"""

from dataclasses import dataclass, replace
from typing import Iterable, Optional

from ..errors import MarkerNotFound, RingConsistencyError
from ..integration.event_logger import EventLogger
from ..rangeproof.decoder import RangeProofDecoder, verify_range_proof
from ..rangeproof.encoder import RangeProofEncoder
from ..rangeproof.parameters import ProofParameters, DEFAULT_PARAMETERS
from ..rangeproof.proof import RangeProofConfig
from ..rangeproof.rewind import rewrite_proof_message
from .envelope import is_envelope, open_envelope, seal
from .nonce import BlindingKeyPair, derive_shared_nonce


@dataclass
class ConfidentialOutput:
    """
    The fields of a transaction output the channel reads or writes.

    value_commitment and asset_generator use the 33-byte CT encodings;
    nonce_commitment is a SEC1 public key; script is the output's
    scriptPubKey, committed to by the range proof.
    """
    value_commitment: bytes
    asset_generator: bytes
    nonce_commitment: bytes = b""
    script: bytes = b""
    range_proof: bytes = b""


@dataclass
class ReceivedMessage:
    """A message read from an output."""
    text: str
    value: int
    amount: int
    is_mine: bool = False


class StegoChannel:
    """
    One party's end of the message channel.

    Example:
        >>> alice = StegoChannel(BlindingKeyPair.generate())
        >>> bob = StegoChannel(BlindingKeyPair.generate())
        >>> output = alice.send(output, bob.public_key, "hi", value, blind)
        >>> bob.receive(output).text
        'hi'
    """

    def __init__(
        self,
        blinding_keys: BlindingKeyPair,
        event_logger: Optional[EventLogger] = None,
        params: ProofParameters = DEFAULT_PARAMETERS
    ):
        """
        Initialize the channel.

        Args:
            blinding_keys: Own blinding key pair (private key required)
            event_logger: Optional audit logger
            params: Proof geometry
        """
        if blinding_keys.private_key is None:
            raise ValueError("Channel needs a blinding private key")
        self._keys = blinding_keys
        self._logger = event_logger
        self._params = params
        self._encoder = RangeProofEncoder(params)
        self._decoder = RangeProofDecoder(params)

    @property
    def public_key(self) -> bytes:
        """Own blinding public key (33-byte SEC1)."""
        return self._keys.public_bytes()

    def shared_nonce(self, peer_key: bytes) -> bytes:
        """Nonce shared with the holder of peer_key."""
        return derive_shared_nonce(peer_key, self._keys)

    # ========================================================================
    # Sending
    # ========================================================================

    def send(
        self,
        output: ConfidentialOutput,
        recipient_key: bytes,
        text: str,
        value: int,
        blinding_factor: int,
        asset_id: str = "00" * 32,
        asset_blinder: str = "00" * 32,
        salt: Optional[bytes] = None
    ) -> ConfidentialOutput:
        """
        Build a fresh range proof carrying text for the recipient.

        Args:
            output: Output whose commitment and generator the proof covers
            recipient_key: Recipient blinding public key
            text: Message text
            value: Ring value (output amount minus min_value)
            blinding_factor: Output value blinding factor
            asset_id: Hex asset id stored in the proof
            asset_blinder: Hex asset blinder stored in the proof
            salt: Optional envelope salt

        Returns:
            A copy of output with its range proof and nonce commitment set
        """
        frame = seal(text, salt)
        proof = self._encoder.encode(RangeProofConfig(
            commitment=output.value_commitment,
            generator=output.asset_generator,
            nonce=self.shared_nonce(recipient_key),
            value=value,
            extra_commit=output.script,
            asset_id=asset_id,
            asset_blinder=asset_blinder,
            message=frame,
            blinding_factor=blinding_factor,
        ))

        if self._logger:
            self._logger.log_proof_encoded(output.value_commitment, len(proof), len(frame))

        return replace(output, nonce_commitment=self.public_key, range_proof=proof)

    def embed(
        self,
        output: ConfidentialOutput,
        recipient_key: bytes,
        text: str,
        salt: Optional[bytes] = None
    ) -> ConfidentialOutput:
        """
        Rewrite the message of a proof this party already built.

        The blinding factor is recovered from the existing proof, so the
        new proof still verifies against the output's commitment.

        Returns:
            A copy of output with the rewritten range proof
        """
        frame = seal(text, salt)
        proof = rewrite_proof_message(
            output.range_proof,
            self.shared_nonce(recipient_key),
            output.value_commitment,
            output.asset_generator,
            output.script,
            frame,
            self._params,
        )

        if self._logger:
            self._logger.log_blinding_recovered(output.value_commitment)
            self._logger.log_message_embedded(output.value_commitment, len(frame))

        return replace(output, range_proof=proof)

    # ========================================================================
    # Receiving
    # ========================================================================

    def receive(
        self,
        output: ConfidentialOutput,
        peer_key: Optional[bytes] = None
    ) -> Optional[ReceivedMessage]:
        """
        Read the message of an output.

        Args:
            output: Output to read
            peer_key: Recipient key, when reading an output this party sent;
                by default the output's nonce commitment is used

        Returns:
            The message, or None if the proof carries no envelope

        Raises:
            MarkerNotFound: If the output was not meant for this party
        """
        is_mine = peer_key is not None
        nonce = self.shared_nonce(peer_key if is_mine else output.nonce_commitment)

        try:
            decoded = self._decoder.decode(
                output.range_proof, nonce, output.value_commitment, output.asset_generator
            )
        except MarkerNotFound:
            if self._logger:
                self._logger.log_marker_not_found(output.value_commitment)
            raise

        if not is_envelope(decoded.message):
            if self._logger:
                self._logger.log_frame_rejected(output.value_commitment, "missing prefix")
            return None
        try:
            text = open_envelope(decoded.message)
        except ValueError:
            if self._logger:
                self._logger.log_frame_rejected(output.value_commitment, "malformed envelope")
            return None

        if self._logger:
            self._logger.log_proof_decoded(output.value_commitment, len(decoded.message))

        return ReceivedMessage(
            text=text,
            value=decoded.value,
            amount=decoded.value + self._params.min_value,
            is_mine=is_mine,
        )

    def verify(self, output: ConfidentialOutput) -> bool:
        """
        Verify an output's range proof.

        Raises:
            RingConsistencyError: If the proof does not verify
        """
        try:
            verify_range_proof(
                output.range_proof,
                output.value_commitment,
                output.asset_generator,
                output.script,
                self._params,
            )
        except RingConsistencyError as exc:
            if self._logger:
                self._logger.log_verification(output.value_commitment, False, str(exc))
            raise

        if self._logger:
            self._logger.log_verification(output.value_commitment, True)
        return True

    def balance_of(self, outputs: Iterable[ConfidentialOutput]) -> int:
        """
        Sum the amounts of the outputs this party can decode.

        Outputs keyed to someone else, outputs without a nonce commitment
        or range proof, and malformed outputs are skipped.
        """
        total = 0
        for output in outputs:
            if not output.nonce_commitment or not output.range_proof:
                continue
            try:
                nonce = self.shared_nonce(output.nonce_commitment)
                decoded = self._decoder.decode(
                    output.range_proof, nonce, output.value_commitment, output.asset_generator
                )
            except ValueError:
                continue
            total += decoded.value + self._params.min_value
        return total
