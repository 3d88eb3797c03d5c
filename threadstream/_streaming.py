"""RunStream: drives one run event stream from raw frames to merged aggregates."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from enum import Enum
import logging
import threading
from typing import TYPE_CHECKING, Any

import requests

from ._exceptions import StreamClosedError, StreamProtocolError
from ._merge import AggregateMerger
from ._types import ErrorObject, Message, Run, RunStep, Thread
from .streaming import Envelope, EventKind, iter_sse_frames, parse_event

if TYPE_CHECKING:
    from collections.abc import Generator

logger = logging.getLogger(__name__)

StreamUpdate = Run | RunStep | Message | Thread | ErrorObject | StreamProtocolError | Envelope

_AGGREGATED = frozenset({EventKind.RUN, EventKind.RUN_STEP, EventKind.MESSAGE})


class SessionState(str, Enum):
    IDLE = "idle"
    OPEN = "open"
    CLOSED = "closed"


class RunStream:
    """Iterable stream of run updates. Use as context manager, iterate, or call until_done().

    Each frame is parsed, merged into the in-flight Run, RunStep or Message,
    handed to ``on_event`` and then yielded, strictly in arrival order. The
    yielded objects are the aggregates themselves, so a Message keeps growing
    as its deltas arrive.

    Usage:
        with client.runs.stream(thread_id, assistant_id="asst_1") as stream:
            for update in stream:
                print(type(update).__name__)
        print(stream.run.status, stream.text)

        run = client.runs.create(thread_id, assistant_id="asst_1", on_event=print)
    """

    def __init__(
        self,
        response: requests.Response,
        on_event: Callable[[StreamUpdate], Any] | None = None,
        *,
        cancel_event: threading.Event | None = None,
        strict: bool = False,
    ):
        self._response = response
        self._on_event = on_event
        self._cancelled = cancel_event or threading.Event()
        self._strict = strict
        self._merger = AggregateMerger()
        self._state = SessionState.IDLE
        self._closed = False
        self._close_lock = threading.Lock()
        self.messages: list[Message] = []
        self.errors: list[ErrorObject] = []

    def _close(self) -> None:
        """Close the underlying response (idempotent)."""
        with self._close_lock:
            if not self._closed:
                self._closed = True
                self._response.close()
            self._state = SessionState.CLOSED

    def cancel(self) -> None:
        """Stop reading after the current frame and release the connection. Thread-safe."""
        self._cancelled.set()
        self._close()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def run(self) -> Run | None:
        """The run aggregate so far, or None if no run event has arrived."""
        return self._merger.run

    @property
    def text(self) -> str:
        """Text of every message streamed so far, in order."""
        return "".join(m.text for m in self.messages)

    def _envelopes(self) -> Generator[Envelope, None, None]:
        frames = iter_sse_frames(self._response)
        while not self._cancelled.is_set():
            try:
                frame = next(frames)
            except StopIteration:
                return
            except requests.RequestException as e:
                if self._cancelled.is_set():
                    return
                if self._merger.run is None:
                    raise StreamClosedError(f"Stream closed before any run event: {e}") from e
                logger.warning("Stream for run %s closed early: %s", self._merger.run.id, e)
                return
            except Exception:
                # closing the response from another thread can surface as anything
                if self._cancelled.is_set():
                    logger.debug("Stream read interrupted by cancellation")
                    return
                raise

            envelope = parse_event(frame.event, frame.data)
            if envelope.kind is EventKind.DONE:
                logger.debug("Stream done marker received")
                return
            yield envelope

    def _route(self, envelope: Envelope) -> StreamUpdate:
        if envelope.kind in _AGGREGATED:
            try:
                aggregate, is_first = self._merger.merge(envelope.payload)
            except StreamProtocolError as e:
                if self._strict:
                    raise
                logger.warning("Protocol violation on %s: %s", envelope.event, e)
                return e
            if is_first and isinstance(aggregate, Message):
                self.messages.append(aggregate)
            logger.debug("%s -> %s %s", envelope.event, type(aggregate).__name__, aggregate.id)
            return aggregate
        if envelope.kind is EventKind.ERROR:
            logger.warning("Error event in run stream: %s", envelope.payload.message)
            self.errors.append(envelope.payload)
            return envelope.payload
        if envelope.kind is EventKind.THREAD:
            return envelope.payload
        return envelope

    def __iter__(self) -> Iterator[StreamUpdate]:
        if self._state is not SessionState.IDLE:
            raise RuntimeError("RunStream can only be consumed once")
        self._state = SessionState.OPEN
        try:
            for envelope in self._envelopes():
                update = self._route(envelope)
                if self._on_event is not None:
                    self._on_event(update)
                yield update
        except Exception:
            # a failed call hands back nothing half-built
            self._merger.reset()
            self.messages.clear()
            raise
        finally:
            self._close()

    def until_done(self) -> Run | None:
        """Consume the whole stream, dispatching to on_event. Returns the final run."""
        if self._state is SessionState.IDLE:
            for _ in self:
                pass
        return self.run

    def __enter__(self) -> RunStream:
        return self

    def __exit__(self, *_: object) -> None:
        self._close()
