"""
Bit layout of a Snowflake-style identifier

The layout is the one contract shared by the ID service and every client:
which bits hold the timestamp offset, which hold the machine number, and which
hold the per-millisecond sequence counter. Shifts and masks are derived here
and nowhere else.

Fun fact: The default epoch, 1337000000, fell on 2012-05-14 12:53:20 UTC.
With 39 bits of milliseconds the layout runs out roughly 17.4 years later!
"""

from pydantic import BaseModel, ConfigDict, Field, model_validator

ID_BITS = 64

DEFAULT_TIME_BITS = 39
DEFAULT_MACHINE_BITS = 15
DEFAULT_SEQ_BITS = 10
DEFAULT_EPOCH_SECONDS = 1337000000


class BitFieldConfig(BaseModel):
    """
    Immutable description of the identifier's bit layout

    High bits to low bits: time offset (ms since epoch), machine number,
    sequence counter. The three widths must add up to 64.

    Attributes:
        time_bits: Width of the timestamp offset field
        machine_bits: Width of the machine number field
        seq_bits: Width of the sequence counter field
        epoch_seconds: Unix time (seconds) the timestamp offset counts from
    """

    model_config = ConfigDict(frozen=True)

    time_bits: int = Field(default=DEFAULT_TIME_BITS, ge=1, le=ID_BITS)
    machine_bits: int = Field(default=DEFAULT_MACHINE_BITS, ge=0, le=ID_BITS - 1)
    seq_bits: int = Field(default=DEFAULT_SEQ_BITS, ge=0, le=ID_BITS - 1)
    epoch_seconds: int = Field(default=DEFAULT_EPOCH_SECONDS, ge=0)

    @model_validator(mode="after")
    def _check_total_width(self) -> "BitFieldConfig":
        total = self.time_bits + self.machine_bits + self.seq_bits
        if total != ID_BITS:
            raise ValueError(
                f"bit widths must add up to {ID_BITS}, got {total} "
                f"({self.time_bits} + {self.machine_bits} + {self.seq_bits})"
            )
        return self

    @property
    def machine_shift(self) -> int:
        return self.seq_bits

    @property
    def time_shift(self) -> int:
        return self.machine_bits + self.seq_bits

    @property
    def machine_mask(self) -> int:
        return (1 << self.machine_bits) - 1

    @property
    def seq_mask(self) -> int:
        return (1 << self.seq_bits) - 1

    @property
    def epoch_ms(self) -> int:
        return self.epoch_seconds * 1000


# Layout used by the reference ID service
DEFAULT_LAYOUT = BitFieldConfig()
