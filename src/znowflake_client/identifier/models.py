"""
Identifier Domain Models

A DecodedIdentifier is the semantic view of one 64-bit identifier: when it
was minted, by which machine, and which slot of that millisecond it took.
"""

from datetime import datetime, timedelta, timezone

from pydantic import BaseModel, ConfigDict, Field

UNIX_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class DecodedIdentifier(BaseModel):
    """
    One identifier broken into its fields

    Attributes:
        raw: The identifier as a 64-bit unsigned integer
        timestamp_ms: Absolute Unix time in milliseconds (epoch + offset)
        machine_id: Machine number of the minting server
        sequence: Sequence counter within the millisecond
    """

    model_config = ConfigDict(frozen=True)

    raw: int = Field(ge=0)
    timestamp_ms: int = Field(ge=0)
    machine_id: int = Field(ge=0)
    sequence: int = Field(ge=0)

    @property
    def seconds(self) -> int:
        """Whole Unix seconds of the timestamp"""
        return self.timestamp_ms // 1000

    @property
    def millis_remainder(self) -> int:
        """Milliseconds past `seconds`"""
        return self.timestamp_ms - self.seconds * 1000

    @property
    def minted_at(self) -> datetime:
        """
        UTC datetime of `seconds`

        Raises:
            OverflowError: If the timestamp lies beyond what datetime can hold
        """
        return UNIX_EPOCH + timedelta(seconds=self.seconds)
