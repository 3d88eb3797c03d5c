"""
Assistants run stream protocol parser.

Reads server-sent-event frames (``event:`` name plus JSON ``data:``) from an
open HTTP response and classifies each one into a typed ``Envelope``.

Event names are dot-namespaced: ``thread.created``, ``thread.run.<phase>``,
``thread.run.step.<phase>``, ``thread.message.<phase>``, ``error`` and
``done``. Names outside that vocabulary become ``EventKind.UNKNOWN`` and keep
their raw data so callers can react to protocol additions.
"""

from collections.abc import Generator
from dataclasses import dataclass
from enum import Enum
import json
import logging
from typing import Any

from ._exceptions import StreamDecodeError
from ._types import ErrorObject, Message, MessageDelta, Run, RunStep, RunStepDelta, Thread

logger = logging.getLogger(__name__)


class EventKind(str, Enum):
    """Object kind an event describes."""

    THREAD = "thread"
    RUN = "run"
    RUN_STEP = "run_step"
    MESSAGE = "message"
    ERROR = "error"
    DONE = "done"
    UNKNOWN = "unknown"


class EventPhase(str, Enum):
    """Lifecycle phase carried by the event name suffix."""

    NONE = ""
    CREATED = "created"
    QUEUED = "queued"
    IN_PROGRESS = "in_progress"
    REQUIRES_ACTION = "requires_action"
    DELTA = "delta"
    COMPLETED = "completed"
    INCOMPLETE = "incomplete"
    FAILED = "failed"
    CANCELLING = "cancelling"
    CANCELLED = "cancelled"
    EXPIRED = "expired"


_P = EventPhase

# Longest prefix first: "thread.run.step." must win over "thread.run."
_VOCABULARY: tuple[tuple[str, EventKind, frozenset[EventPhase]], ...] = (
    (
        "thread.run.step.",
        EventKind.RUN_STEP,
        frozenset(
            {_P.CREATED, _P.IN_PROGRESS, _P.DELTA, _P.COMPLETED, _P.FAILED, _P.CANCELLED, _P.EXPIRED}
        ),
    ),
    (
        "thread.run.",
        EventKind.RUN,
        frozenset(
            {
                _P.CREATED,
                _P.QUEUED,
                _P.IN_PROGRESS,
                _P.REQUIRES_ACTION,
                _P.COMPLETED,
                _P.INCOMPLETE,
                _P.FAILED,
                _P.CANCELLING,
                _P.CANCELLED,
                _P.EXPIRED,
            }
        ),
    ),
    (
        "thread.message.",
        EventKind.MESSAGE,
        frozenset({_P.CREATED, _P.IN_PROGRESS, _P.DELTA, _P.COMPLETED, _P.INCOMPLETE}),
    ),
    ("thread.", EventKind.THREAD, frozenset({_P.CREATED})),
)

DONE_SENTINEL = "[DONE]"


@dataclass
class SSEFrame:
    """One server-sent event: its name and joined data lines."""

    event: str
    data: str


@dataclass
class Envelope:
    """A classified stream event.

    ``data`` is the decoded JSON for known kinds and the raw data string for
    unknown ones. ``payload`` is the typed partial object (``Run``,
    ``RunStep``/``RunStepDelta``, ``Message``/``MessageDelta``, ``Thread``,
    ``ErrorObject``), or ``None`` for ``done`` and unknown events.
    """

    event: str
    kind: EventKind
    phase: EventPhase
    data: Any
    payload: Any = None


def classify(event: str) -> tuple[EventKind, EventPhase]:
    """Split an event name into its object kind and phase."""
    if event == "error":
        return EventKind.ERROR, EventPhase.NONE
    if event == "done":
        return EventKind.DONE, EventPhase.NONE
    for prefix, kind, phases in _VOCABULARY:
        if event.startswith(prefix):
            try:
                phase = EventPhase(event[len(prefix) :])
            except ValueError:
                break
            if phase in phases:
                return kind, phase
            break
    return EventKind.UNKNOWN, EventPhase.NONE


def _decode_payload(kind: EventKind, phase: EventPhase, data: dict) -> Any:
    if kind is EventKind.RUN:
        return Run.from_dict(data)
    if kind is EventKind.RUN_STEP:
        return RunStepDelta.from_dict(data) if phase is EventPhase.DELTA else RunStep.from_dict(data)
    if kind is EventKind.MESSAGE:
        return MessageDelta.from_dict(data) if phase is EventPhase.DELTA else Message.from_dict(data)
    if kind is EventKind.THREAD:
        return Thread.from_dict(data)
    return ErrorObject.from_dict(data)


def parse_event(event: str, data: str) -> Envelope:
    """
    Classify one frame and decode its payload.

    Args:
        event: SSE event name, e.g. ``thread.run.step.delta``
        data: Raw data field of the frame

    Returns:
        Envelope for the frame

    Raises:
        StreamDecodeError: data of a known event kind is not a decodable object
    """
    kind, phase = classify(event)
    if kind is EventKind.UNKNOWN:
        logger.debug("Unknown stream event %r passed through", event)
        return Envelope(event=event, kind=kind, phase=phase, data=data)
    if kind is EventKind.DONE:
        return Envelope(event=event, kind=kind, phase=phase, data=data)

    try:
        decoded = json.loads(data)
    except json.JSONDecodeError as e:
        if kind is EventKind.ERROR:
            return _plain_error(event, data, data)
        raise StreamDecodeError(f"Invalid JSON in {event!r} event: {data[:200]}", event=event) from e
    if kind is EventKind.ERROR and not isinstance(decoded, dict):
        return _plain_error(event, data, decoded if isinstance(decoded, str) else data)
    if not isinstance(decoded, dict):
        raise StreamDecodeError(f"Expected an object in {event!r} event, got {decoded!r}", event=event)

    try:
        payload = _decode_payload(kind, phase, decoded)
    except (KeyError, TypeError, ValueError) as e:
        raise StreamDecodeError(f"Cannot decode {event!r} event: {e}", event=event) from e
    return Envelope(event=event, kind=kind, phase=phase, data=decoded, payload=payload)


def _plain_error(event: str, data: str, text: str) -> Envelope:
    # error frames are dispatched whatever their body looks like
    logger.debug("Non-object data in %r event wrapped as error message", event)
    return Envelope(
        event=event,
        kind=EventKind.ERROR,
        phase=EventPhase.NONE,
        data=data,
        payload=ErrorObject(message=text.strip() or "Unknown error"),
    )


def _frame_from_lines(lines: list[str]) -> SSEFrame | None:
    event = ""
    data_lines: list[str] = []
    for raw_line in lines:
        if not raw_line.strip() or raw_line.startswith(":"):
            continue
        name, _, value = raw_line.partition(":")
        if value.startswith(" "):
            value = value[1:]
        if name == "event":
            event = value.strip()
        elif name == "data":
            data_lines.append(value)
        # id: and retry: carry nothing the run stream uses

    if not data_lines and not event:
        return None
    data = "\n".join(data_lines)
    if not event and data.strip() == DONE_SENTINEL:
        event = "done"
    return SSEFrame(event=event, data=data)


def iter_sse_frames(response: object, decode_unicode: bool = True) -> Generator[SSEFrame, None, None]:
    """
    Read SSE frames from an HTTP response.

    Args:
        response: requests.Response object with streaming enabled
        decode_unicode: Decode lines as unicode

    Yields:
        SSEFrame objects, in arrival order
    """
    frame_lines: list[str] = []
    for line in response.iter_lines(decode_unicode=decode_unicode):  # type: ignore[attr-defined]
        if isinstance(line, bytes):
            line = line.decode("utf-8", errors="replace")

        # Empty line terminates an SSE frame.
        if line == "":
            if frame_lines:
                frame = _frame_from_lines(frame_lines)
                frame_lines = []
                if frame is not None:
                    yield frame
            continue

        frame_lines.append(line)

    # Flush trailing frame if stream ended without a final blank line.
    if frame_lines:
        frame = _frame_from_lines(frame_lines)
        if frame is not None:
            yield frame
