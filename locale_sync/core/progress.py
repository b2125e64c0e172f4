"""
Progress reporting for translation runs
"""

import sys
from dataclasses import asdict, dataclass, replace
from typing import Any, Callable, Dict, Optional, Protocol, TextIO, runtime_checkable

import structlog

logger = structlog.get_logger(__name__)


@dataclass
class ProgressEvent:
    """One progress notification."""
    type: str  # "progress", "error" or "complete"
    stage: str
    message: str
    progress: int
    translated: Optional[int] = None
    total: Optional[int] = None
    language: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}


@runtime_checkable
class ProgressSink(Protocol):
    """Receiver of progress events."""

    def on_progress(self, event: ProgressEvent) -> None:
        ...


class NullProgressSink:
    """Sink that discards every event."""

    def on_progress(self, event: ProgressEvent) -> None:
        pass


class CallbackProgressSink:
    """Adapts a plain callable to the sink interface."""

    def __init__(self, callback: Callable[[ProgressEvent], None]):
        self.callback = callback

    def on_progress(self, event: ProgressEvent) -> None:
        self.callback(event)


class ScaledProgressSink:
    """Maps the 0-100 progress of one sub-task onto a slice of an outer range.

    Used when several targets report through one sink, so the overall
    percentage never moves backwards.
    """

    def __init__(self, sink: ProgressSink, start: float, span: float):
        self.sink = sink
        self.start = start
        self.span = span

    def on_progress(self, event: ProgressEvent) -> None:
        scaled = round(self.start + event.progress * self.span / 100)
        self.sink.on_progress(replace(event, progress=scaled))


class ConsoleProgressBar:
    """Renders progress events as a text bar"""

    def __init__(self, stream: Optional[TextIO] = None, width: int = 10):
        self.stream = stream or sys.stdout
        self.width = width

    def render(self, event: ProgressEvent) -> str:
        percentage = max(0, min(100, event.progress))
        filled_cells = percentage * self.width // 100
        filled = "█" * filled_cells
        empty = "░" * (self.width - filled_cells)
        line = f"[{filled}{empty}] {percentage}% {event.message}"
        if event.translated is not None and event.total:
            line += f" ({event.translated}/{event.total})"
        return line

    def on_progress(self, event: ProgressEvent) -> None:
        self.stream.write(self.render(event) + "\n")
        self.stream.flush()


def as_sink(progress: Any) -> ProgressSink:
    """Normalize ``None``, a callable or a sink into a sink."""
    if progress is None:
        return NullProgressSink()
    if isinstance(progress, ProgressSink):
        return progress
    if callable(progress):
        return CallbackProgressSink(progress)
    raise TypeError(f"Unsupported progress receiver: {progress!r}")


def emit(sink: Optional[ProgressSink], event: ProgressEvent) -> None:
    """Deliver ``event`` to ``sink``; a failing sink is logged and ignored."""
    if sink is None:
        return
    try:
        sink.on_progress(event)
    except Exception as e:
        logger.warning("Progress sink failed", stage=event.stage, error=str(e))
