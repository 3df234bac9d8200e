"""
znowflake client - fetch and decode Snowflake-style identifiers

Asks a znowflake ID service for identifiers over a ZeroMQ REQ socket, one
request at a time, and breaks each 64-bit identifier into its timestamp,
machine number and sequence counter.

Fun fact: Twitter announced Snowflake in 2010 when it moved tweets off MySQL
auto-increment keys - k-sorted IDs without a central coordinator!
"""

from znowflake_client.config import ClientConfig, FailurePolicy
from znowflake_client.identifier import BitFieldConfig, DecodedIdentifier
from znowflake_client.session import Session, run_session
from znowflake_client.transport import TransportClient

__version__ = "0.1.0"
__all__ = [
    "BitFieldConfig",
    "ClientConfig",
    "DecodedIdentifier",
    "FailurePolicy",
    "Session",
    "TransportClient",
    "run_session",
    "__version__",
]
