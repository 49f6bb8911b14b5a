from typing import Protocol

from pydantic import BaseModel

# Only records appended after the read was issued.
LATEST = "$"
# Every record the stream still holds.
BEGINNING = "0"


class StreamRecord(BaseModel):
    stream: str
    record_id: str
    fields: dict[str, str]


class EventLog(Protocol):
    """Append-only log of flat key/value records addressed by record id."""

    async def start(self) -> None: ...

    async def stop(self) -> None: ...

    async def append(self, stream: str, fields: dict[str, str]) -> str: ...

    async def read(
        self,
        stream: str,
        after_id: str,
        block_ms: int,
        count: int,
    ) -> list[StreamRecord]: ...

    async def tail_id(self, stream: str) -> str:
        """Id of the newest record in stream, BEGINNING when it holds none."""
        ...

    async def ping(self) -> None: ...

    async def __aenter__(self) -> "EventLog": ...

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None: ...


def flatten_fields(fields: dict[str, str]) -> list[str]:
    """Wire form of a record: alternating keys and values."""
    flat: list[str] = []
    for key, value in fields.items():
        flat.extend((key, value))
    return flat


def unflatten_fields(flat: list[str]) -> dict[str, str]:
    if len(flat) % 2:
        raise ValueError(f"Odd number of items in record: {len(flat)}")
    return {flat[i]: flat[i + 1] for i in range(0, len(flat), 2)}
