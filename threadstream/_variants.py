"""
Tolerant enum codec for API values that evolve faster than the client.

Every enumeration is a ``WireEnum``: members carry an integer ordinal as their
value and a snake_case wire name derived from the member name, unless the
class lists an override in ``__wire_names__``. Decoding accepts the wire
string in any common casing, or the ordinal, and falls back to the member
with ordinal 0 for anything it does not recognise. Encoding always produces
the wire string.
"""

from dataclasses import dataclass
from enum import Enum
import functools
import logging
import re
from typing import Any, ClassVar, TypeVar

logger = logging.getLogger(__name__)

E = TypeVar("E", bound="WireEnum")

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")
_SEPARATORS = re.compile(r"[\s\-]+")


def to_snake_case(name: str) -> str:
    """Normalize ``InProgress``, ``inProgress``, ``in-progress`` etc. to ``in_progress``."""
    name = _CAMEL_BOUNDARY.sub("_", name.strip())
    return _SEPARATORS.sub("_", name).lower()


@dataclass(frozen=True)
class WireTable:
    """Static member <-> wire string <-> ordinal mapping for one enum class."""

    by_wire: dict[str, Any]
    by_ordinal: dict[int, Any]
    to_wire: dict[Any, str]
    default: Any


@functools.cache
def wire_table(enum_cls: type[E]) -> WireTable:
    """Build (once per class) the lookup table used by the codec."""
    overrides: dict[str, str] = getattr(enum_cls, "__wire_names__", {})
    by_wire: dict[str, Any] = {}
    by_ordinal: dict[int, Any] = {}
    to_wire: dict[Any, str] = {}
    for member in enum_cls:
        wire = overrides.get(member.name) or to_snake_case(member.name)
        by_wire[wire] = member
        by_ordinal[member.value] = member
        to_wire[member] = wire
    if not to_wire:
        raise TypeError(f"{enum_cls.__name__} declares no members")
    default = by_ordinal.get(0, next(iter(enum_cls)))
    return WireTable(by_wire=by_wire, by_ordinal=by_ordinal, to_wire=to_wire, default=default)


def decode_enum(enum_cls: type[E], raw: Any) -> E:
    """Decode a wire value into ``enum_cls``. Never raises on unknown input."""
    if isinstance(raw, enum_cls):
        return raw
    table = wire_table(enum_cls)
    member = None
    # bool is an int subclass but never a valid ordinal on the wire
    if isinstance(raw, int) and not isinstance(raw, bool):
        member = table.by_ordinal.get(raw)
    elif isinstance(raw, str):
        member = table.by_wire.get(to_snake_case(raw))
    if member is None:
        if raw is not None:
            logger.debug(
                "Unknown %s value %r, using %s", enum_cls.__name__, raw, table.default.name
            )
        return table.default
    return member


def encode_enum(member: "WireEnum") -> str:
    """Return the registered wire string for ``member``."""
    return wire_table(type(member)).to_wire[member]


class WireEnum(Enum):
    """Base for API enumerations decoded through the tolerant codec."""

    __wire_names__: ClassVar[dict[str, str]] = {}

    @classmethod
    def decode(cls: type[E], raw: Any) -> E:
        return decode_enum(cls, raw)

    @property
    def wire(self) -> str:
        return encode_enum(self)

    def __str__(self) -> str:
        return self.wire


class RunStatus(WireEnum):
    """Run lifecycle status, in lifecycle order."""

    QUEUED = 0
    IN_PROGRESS = 1
    REQUIRES_ACTION = 2
    CANCELLING = 3
    CANCELLED = 4
    FAILED = 5
    COMPLETED = 6
    EXPIRED = 7
    INCOMPLETE = 8

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL_RUN


class RunStepStatus(WireEnum):
    IN_PROGRESS = 0
    CANCELLED = 1
    FAILED = 2
    COMPLETED = 3
    EXPIRED = 4

    @property
    def is_terminal(self) -> bool:
        return self is not RunStepStatus.IN_PROGRESS


class MessageStatus(WireEnum):
    IN_PROGRESS = 0
    INCOMPLETE = 1
    COMPLETED = 2

    @property
    def is_terminal(self) -> bool:
        return self is not MessageStatus.IN_PROGRESS


_TERMINAL_RUN = frozenset(
    {
        RunStatus.CANCELLED,
        RunStatus.FAILED,
        RunStatus.COMPLETED,
        RunStatus.EXPIRED,
        RunStatus.INCOMPLETE,
    }
)


class RunStepType(WireEnum):
    MESSAGE_CREATION = 0
    TOOL_CALLS = 1


class Role(WireEnum):
    USER = 0
    ASSISTANT = 1


class ContentType(WireEnum):
    TEXT = 0
    IMAGE_FILE = 1
    IMAGE_URL = 2


class AnnotationType(WireEnum):
    FILE_CITATION = 0
    FILE_PATH = 1


class ToolCallType(WireEnum):
    FUNCTION = 0
    CODE_INTERPRETER = 1
    FILE_SEARCH = 2


class IncompleteMessageReason(WireEnum):
    NONE = 0
    CONTENT_FILTER = 1
    MAX_TOKENS = 2
    RUN_CANCELLED = 3
    RUN_EXPIRED = 4
    RUN_FAILED = 5


class ChatResponseFormat(WireEnum):
    __wire_names__ = {"JSON": "json_object"}

    AUTO = 0
    TEXT = 1
    JSON = 2
    JSON_SCHEMA = 3


class ChunkingStrategyType(WireEnum):
    AUTO = 0
    STATIC = 1


class ToolChoiceType(WireEnum):
    AUTO = 0
    NONE = 1
    REQUIRED = 2
    FUNCTION = 3
    FILE_SEARCH = 4
    CODE_INTERPRETER = 5


class TruncationType(WireEnum):
    AUTO = 0
    LAST_MESSAGES = 1


class JobStatus(WireEnum):
    """Fine-tuning job status. The API has sent both strings and ordinals."""

    NOT_STARTED = 0
    VALIDATING_FILES = 1
    QUEUED = 2
    RUNNING = 3
    SUCCEEDED = 4
    FAILED = 5
    CANCELLED = 6
