"""PipelineRun — state of one orchestrator invocation.

A run is single-shot. It moves forward through

    IDLE → DISCOVERING → FETCHING → AGGREGATING → ARCHIVING → UPLOADING → DONE

and may drop into FAILED from any state except IDLE. No state is re-entered.
"""

import asyncio
from dataclasses import dataclass, field
from enum import Enum

from filerelay.contracts import FilePayload


class PipelineState(Enum):
    """Lifecycle states of a pipeline run, in order."""

    IDLE = "idle"
    DISCOVERING = "discovering"
    FETCHING = "fetching"
    AGGREGATING = "aggregating"
    ARCHIVING = "archiving"
    UPLOADING = "uploading"
    DONE = "done"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (PipelineState.DONE, PipelineState.FAILED)


_ORDER = [
    PipelineState.IDLE,
    PipelineState.DISCOVERING,
    PipelineState.FETCHING,
    PipelineState.AGGREGATING,
    PipelineState.ARCHIVING,
    PipelineState.UPLOADING,
    PipelineState.DONE,
]


@dataclass
class PipelineRun:
    """Transient aggregate for one invocation. Never persisted."""

    pattern: str
    destination: str
    cancel_event: asyncio.Event = field(default_factory=asyncio.Event)
    state: PipelineState = PipelineState.IDLE
    history: list[PipelineState] = field(default_factory=lambda: [PipelineState.IDLE])
    handles: list[str] = field(default_factory=list)
    payloads: list[FilePayload] = field(default_factory=list)
    archive: bytes | None = None
    result: str | None = None
    error: Exception | None = None

    def advance(self, new_state: PipelineState) -> None:
        """Move to ``new_state``.

        Raises:
            RuntimeError: On a backwards, repeated or skipped transition
        """
        if self.state.is_terminal:
            raise RuntimeError(f"Run already finished ({self.state.value})")
        if new_state is PipelineState.FAILED:
            if self.state is PipelineState.IDLE:
                raise RuntimeError("Run cannot fail before it starts")
        elif _ORDER.index(new_state) != _ORDER.index(self.state) + 1:
            raise RuntimeError(
                f"Invalid transition {self.state.value} -> {new_state.value}"
            )
        self.state = new_state
        self.history.append(new_state)

    def cancel(self) -> None:
        """Request cancellation. Honoured at the next suspension point."""
        self.cancel_event.set()

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()
