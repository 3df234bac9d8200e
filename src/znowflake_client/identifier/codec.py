"""
Identifier codec - bytes to integer to fields

Identifiers cross the wire as 8 bytes in network byte order (big-endian):
byte 0 is the most significant byte. Parsing checks the length first and
never truncates or pads.

Fun fact: "Big-endian" and "little-endian" come from Gulliver's Travels. Danny
Cohen borrowed the terms in his 1980 note "On Holy Wars and a Plea for Peace"!
"""

import struct

from pydantic import BaseModel, ConfigDict, field_validator

from znowflake_client.identifier.layout import ID_BITS, BitFieldConfig
from znowflake_client.identifier.models import DecodedIdentifier
from znowflake_client.kernel.errors import FormatError

ID_SIZE = 8
MAX_ID = (1 << ID_BITS) - 1

_U64_BE = struct.Struct("!Q")


def decode_bytes_to_u64(buffer: bytes) -> int:
    """
    Interpret exactly 8 bytes as a big-endian unsigned 64-bit integer

    Args:
        buffer: Raw payload received from the ID service

    Returns:
        The identifier as an int in [0, 2**64)

    Raises:
        FormatError: If buffer is not bytes-like or is not exactly 8 bytes long
    """
    if not isinstance(buffer, (bytes, bytearray, memoryview)):
        raise FormatError(f"identifier payload must be bytes, got {type(buffer).__name__}")
    size = len(buffer)
    if size != ID_SIZE:
        raise FormatError(
            f"identifier payload must be {ID_SIZE} bytes, got {size}",
            payload_size=size,
        )
    return _U64_BE.unpack(buffer)[0]


def encode_u64_be(value: int) -> bytes:
    """
    Serialize an identifier to 8 big-endian bytes

    Raises:
        FormatError: If value does not fit in an unsigned 64-bit integer
    """
    if not 0 <= value <= MAX_ID:
        raise FormatError(f"identifier {value} does not fit in {ID_BITS} unsigned bits")
    return _U64_BE.pack(value)


def decompose(value: int, cfg: BitFieldConfig) -> DecodedIdentifier:
    """
    Split an identifier into timestamp, machine number and sequence

    The time field is taken as everything above time_shift and is not masked
    to cfg.time_bits.

    Args:
        value: Identifier as an unsigned 64-bit integer
        cfg: Bit layout the identifier was minted with

    Returns:
        DecodedIdentifier with absolute timestamp in milliseconds
    """
    machine_id = (value >> cfg.machine_shift) & cfg.machine_mask
    sequence = value & cfg.seq_mask
    time_offset_ms = value >> cfg.time_shift

    return DecodedIdentifier(
        raw=value,
        timestamp_ms=cfg.epoch_ms + time_offset_ms,
        machine_id=machine_id,
        sequence=sequence,
    )


def compose(time_offset_ms: int, machine_id: int, sequence: int, cfg: BitFieldConfig) -> int:
    """
    Pack fields into an identifier the way the ID service does

    Args:
        time_offset_ms: Milliseconds since cfg.epoch_seconds
        machine_id: Machine number, at most cfg.machine_mask
        sequence: Sequence counter, at most cfg.seq_mask
        cfg: Bit layout to pack with

    Raises:
        ValueError: If a field is negative or wider than its slot
    """
    if not 0 <= machine_id <= cfg.machine_mask:
        raise ValueError(f"machine_id {machine_id} outside [0, {cfg.machine_mask}]")
    if not 0 <= sequence <= cfg.seq_mask:
        raise ValueError(f"sequence {sequence} outside [0, {cfg.seq_mask}]")
    if not 0 <= time_offset_ms < (1 << cfg.time_bits):
        raise ValueError(f"time offset {time_offset_ms} does not fit in {cfg.time_bits} bits")

    return (time_offset_ms << cfg.time_shift) | (machine_id << cfg.machine_shift) | sequence


class IdentifierBuffer(BaseModel):
    """
    Exactly 8 bytes holding one identifier in network byte order

    Build one with a named factory rather than the constructor:
    from_received_bytes() for a payload off the wire, empty_buffer() for a
    zeroed buffer, from_value() to encode an integer.
    """

    model_config = ConfigDict(frozen=True, strict=True)

    data: bytes

    @field_validator("data")
    @classmethod
    def _check_size(cls, data: bytes) -> bytes:
        if len(data) != ID_SIZE:
            raise FormatError(
                f"identifier buffer must be {ID_SIZE} bytes, got {len(data)}",
                payload_size=len(data),
            )
        return data

    @classmethod
    def from_received_bytes(cls, buffer: bytes) -> "IdentifierBuffer":
        """Wrap a received payload, validating its length"""
        decode_bytes_to_u64(buffer)
        return cls(data=bytes(buffer))

    @classmethod
    def empty_buffer(cls) -> "IdentifierBuffer":
        """A buffer of eight zero bytes"""
        return cls(data=bytes(ID_SIZE))

    @classmethod
    def from_value(cls, value: int) -> "IdentifierBuffer":
        return cls(data=encode_u64_be(value))

    @property
    def value(self) -> int:
        return decode_bytes_to_u64(self.data)

    def decode(self, cfg: BitFieldConfig) -> DecodedIdentifier:
        return decompose(self.value, cfg)
