"""Identifier layout, decoding and value types."""

from znowflake_client.identifier.codec import (
    ID_SIZE,
    IdentifierBuffer,
    compose,
    decode_bytes_to_u64,
    decompose,
    encode_u64_be,
)
from znowflake_client.identifier.layout import DEFAULT_LAYOUT, BitFieldConfig
from znowflake_client.identifier.models import DecodedIdentifier

__all__ = [
    "BitFieldConfig",
    "DEFAULT_LAYOUT",
    "DecodedIdentifier",
    "IdentifierBuffer",
    "ID_SIZE",
    "compose",
    "decode_bytes_to_u64",
    "decompose",
    "encode_u64_be",
]
