import asyncio
from dataclasses import dataclass
from typing import Optional, Protocol, Sequence, runtime_checkable

ALLOWED_ROLES = frozenset({"user", "assistant"})


@dataclass(frozen=True)
class ChatTurn:
    """One prior message handed to a completion backend."""

    role: str
    content: str


@dataclass(frozen=True)
class RetryPolicy:
    """
    Per-attempt timeout plus bounded exponential backoff.

    Retry k (0-indexed) waits retry_delay_ms * 2**k; no jitter.
    """

    timeout_ms: int = 12000
    max_retries: int = 2
    retry_delay_ms: int = 1000

    @property
    def total_attempts(self) -> int:
        return self.max_retries + 1

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000

    def delay_ms(self, retry_index: int) -> int:
        return self.retry_delay_ms * (2 ** retry_index)


@runtime_checkable
class CompletionAdapter(Protocol):
    """Shared signature of every completion backend variant."""

    provider: str

    async def complete(
        self,
        history: Sequence[ChatTurn],
        cancel_event: Optional[asyncio.Event] = None,
    ) -> str:
        ...


def validate_history(history: Sequence[ChatTurn]) -> None:
    if not history:
        raise ValueError("history must contain at least one turn")
    for turn in history:
        if turn.role not in ALLOWED_ROLES:
            raise ValueError(f"Unsupported role in history: {turn.role!r}")
