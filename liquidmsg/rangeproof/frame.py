"""
Plaintext layout of the signature grid.

Before encryption with the keystream pads, the 26 x 4 grid of 32-byte
slots holds:

    (0, 0)              asset id
    (0, 1)              asset blinder
    (i, digit_i)        zero; becomes the ring nonce k_i
    (25, marker)        value marker: 0x80, 7 zero bytes, value x 3 (8-byte BE)
    every other slot    message bytes, row-major, zero filled

The marker sits in the last column of the last ring, or one column
earlier when that ring's real digit is 3. The asset slots win over a real
digit of the first ring, as wallets do it.
"""

from typing import Iterator, List, Optional, Sequence, Tuple

from ..errors import MarkerNotFound, MessageTooLong
from .parameters import ProofParameters, DEFAULT_PARAMETERS


ASSET_ID_SLOT = (0, 0)
ASSET_BLINDER_SLOT = (0, 1)
MARKER_LEAD_BYTE = 0x80
VALUE_SIZE = 8
VALUE_COPIES = 3


def value_marker_column(digits: Sequence[int],
                        params: ProofParameters = DEFAULT_PARAMETERS) -> int:
    """Column of the last ring that carries the value marker."""
    column = params.ring_size - 1
    if digits[params.last_ring] == column:
        column -= 1
    return column


def free_slot_sequence(digits: Sequence[int],
                       params: ProofParameters = DEFAULT_PARAMETERS) -> Iterator[Tuple[int, int]]:
    """Yield the (ring, column) slots available to the message, in order."""
    marker = value_marker_column(digits, params)
    reserved = {ASSET_ID_SLOT, ASSET_BLINDER_SLOT, (params.last_ring, marker)}
    for ring in range(params.num_rings):
        for column in range(params.ring_size):
            if (ring, column) in reserved or column == digits[ring]:
                continue
            yield ring, column


def free_slot_budget(digits: Sequence[int],
                     params: ProofParameters = DEFAULT_PARAMETERS) -> int:
    """Message capacity in bytes (2400 or 2432 with default parameters)."""
    return sum(1 for _ in free_slot_sequence(digits, params)) * params.slot_size


def padding_length(digits: Sequence[int], message_length: int,
                   params: ProofParameters = DEFAULT_PARAMETERS) -> int:
    """
    Zero bytes that follow the message in the free slots.

    Raises:
        MessageTooLong: If the message exceeds the budget
    """
    budget = free_slot_budget(digits, params)
    if message_length > budget:
        raise MessageTooLong(
            f"Message of {message_length} bytes exceeds the {budget}-byte budget"
        )
    return budget - message_length


def encode_message(text: str) -> bytes:
    """
    Convert message text to the bytes stored in the grid.

    Raises:
        ValueError: If the text is not 7-bit ASCII or contains NUL
    """
    try:
        data = text.encode('ascii')
    except UnicodeEncodeError as exc:
        raise ValueError("Message must be 7-bit ASCII text") from exc
    if b'\x00' in data:
        raise ValueError("Message must not contain NUL characters")
    return data


def build_plaintext_grid(digits: Sequence[int], value: int, asset_id: bytes,
                         asset_blinder: bytes, message: bytes,
                         params: ProofParameters = DEFAULT_PARAMETERS) -> bytes:
    """
    Lay out the plaintext signature grid.

    Returns:
        grid_size bytes, slot (i, j) at params.slot_offset(i, j)

    Raises:
        MessageTooLong: If the message exceeds the free-slot budget
    """
    padding_length(digits, len(message), params)
    size = params.slot_size
    grid = bytearray(params.grid_size)

    grid[params.slot_offset(*ASSET_ID_SLOT):params.slot_offset(*ASSET_ID_SLOT) + size] = asset_id
    grid[params.slot_offset(*ASSET_BLINDER_SLOT):params.slot_offset(*ASSET_BLINDER_SLOT) + size] = asset_blinder

    marker = params.slot_offset(params.last_ring, value_marker_column(digits, params))
    grid[marker] = MARKER_LEAD_BYTE
    grid[marker + VALUE_SIZE:marker + size] = value.to_bytes(VALUE_SIZE, 'big') * VALUE_COPIES

    position = 0
    for ring, column in free_slot_sequence(digits, params):
        chunk = message[position:position + size]
        if not chunk:
            break
        start = params.slot_offset(ring, column)
        grid[start:start + len(chunk)] = chunk
        position += size

    return bytes(grid)


def _marker_value(slot: bytes) -> Optional[int]:
    copies = [slot[VALUE_SIZE * k:VALUE_SIZE * (k + 1)] for k in range(1, VALUE_COPIES + 1)]
    if slot[0] != MARKER_LEAD_BYTE or any(slot[1:VALUE_SIZE]) or len(set(copies)) != 1:
        return None
    return int.from_bytes(copies[0], 'big')


def locate_value(plain_grid: bytes,
                 params: ProofParameters = DEFAULT_PARAMETERS) -> Tuple[int, int]:
    """
    Find the value marker in a decrypted grid.

    The last two 8-byte groups of the final slot are compared first; if
    they differ the marker must be in the slot before it. A candidate slot
    is accepted only if it holds a complete marker whose value puts the
    last ring's real digit where the marker position says it is.

    Returns:
        (value, marker column)

    Raises:
        MarkerNotFound: If no marker is present (typically a wrong nonce)
    """
    size = params.slot_size
    last_column = params.ring_size - 1
    for column in (last_column, last_column - 1):
        start = params.slot_offset(params.last_ring, column)
        slot = plain_grid[start:start + size]
        if slot[size - 2 * VALUE_SIZE:size - VALUE_SIZE] != slot[size - VALUE_SIZE:]:
            continue

        value = _marker_value(slot)
        if value is None or value >= params.max_value:
            continue
        last_digit = (value >> (2 * params.last_ring)) & 3
        if (last_digit == last_column) != (column != last_column):
            continue
        return value, column

    raise MarkerNotFound("No value marker in the decrypted signature grid")


def decode_message(plain_grid: bytes, digits: Sequence[int],
                   params: ProofParameters = DEFAULT_PARAMETERS) -> bytes:
    """Concatenate the free slots of a decrypted grid."""
    size = params.slot_size
    chunks: List[bytes] = []
    for ring, column in free_slot_sequence(digits, params):
        start = params.slot_offset(ring, column)
        chunks.append(plain_grid[start:start + size])
    return b''.join(chunks)


def trim_message(raw: bytes) -> str:
    """Message text up to the first NUL byte."""
    return raw.split(b'\x00', 1)[0].decode('ascii', errors='replace')
