"""
Discriminated-union values carried in run, assistant and vector store payloads.

Each union is a frozen dataclass whose ``type`` discriminator decides which
payload field may be set. Invalid combinations raise ``InvalidVariantError``
at construction, so a malformed value can never reach a request body.
``decode`` accepts every wire shape the API has used for the field;
``encode`` is the only place a request body gets its wire representation.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ._exceptions import InvalidVariantError
from ._variants import ChatResponseFormat, ChunkingStrategyType, ToolChoiceType, TruncationType


@dataclass(frozen=True)
class JsonSchema:
    """Schema payload of the ``json_schema`` response format."""

    name: str
    schema: dict[str, Any] | None = None
    description: str | None = None
    strict: bool | None = None

    @classmethod
    def from_dict(cls, data: dict) -> JsonSchema:
        return cls(
            name=data.get("name", ""),
            schema=data.get("schema"),
            description=data.get("description"),
            strict=data.get("strict"),
        )

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"name": self.name}
        if self.description is not None:
            body["description"] = self.description
        if self.schema is not None:
            body["schema"] = self.schema
        if self.strict is not None:
            body["strict"] = self.strict
        return body


@dataclass(frozen=True)
class ResponseFormat:
    """``response_format``: ``"auto"``, or ``{"type": ..., "json_schema": ...}``."""

    type: ChatResponseFormat = ChatResponseFormat.AUTO
    json_schema: JsonSchema | None = None

    def __post_init__(self) -> None:
        if self.type is ChatResponseFormat.JSON_SCHEMA and self.json_schema is None:
            raise InvalidVariantError(
                "response_format of type 'json_schema' requires a JsonSchema payload"
            )
        if self.type is not ChatResponseFormat.JSON_SCHEMA and self.json_schema is not None:
            raise InvalidVariantError(
                f"response_format of type '{self.type.wire}' cannot carry a json_schema"
            )

    @classmethod
    def auto(cls) -> ResponseFormat:
        return cls()

    @classmethod
    def text(cls) -> ResponseFormat:
        return cls(ChatResponseFormat.TEXT)

    @classmethod
    def json_object(cls) -> ResponseFormat:
        return cls(ChatResponseFormat.JSON)

    @classmethod
    def from_schema(cls, schema: JsonSchema) -> ResponseFormat:
        return cls(ChatResponseFormat.JSON_SCHEMA, schema)

    @classmethod
    def decode(cls, raw: Any) -> ResponseFormat:
        # null and bare strings ("auto") both mean the server picks
        if not isinstance(raw, dict):
            return cls()
        kind = ChatResponseFormat.decode(raw.get("type"))
        schema = None
        if kind is ChatResponseFormat.JSON_SCHEMA and isinstance(raw.get("json_schema"), dict):
            schema = JsonSchema.from_dict(raw["json_schema"])
        return cls(kind, schema)

    def encode(self) -> str | dict[str, Any]:
        if self.type is ChatResponseFormat.AUTO:
            return self.type.wire
        body: dict[str, Any] = {"type": self.type.wire}
        if self.json_schema is not None:
            body["json_schema"] = self.json_schema.to_dict()
        return body


@dataclass(frozen=True)
class StaticChunking:
    """Token window used by the ``static`` chunking strategy."""

    max_chunk_size_tokens: int = 800
    chunk_overlap_tokens: int = 400

    def __post_init__(self) -> None:
        if not 100 <= self.max_chunk_size_tokens <= 4096:
            raise InvalidVariantError("max_chunk_size_tokens must be between 100 and 4096")
        if not 0 <= self.chunk_overlap_tokens <= self.max_chunk_size_tokens // 2:
            raise InvalidVariantError(
                "chunk_overlap_tokens must not exceed half of max_chunk_size_tokens"
            )

    @classmethod
    def from_dict(cls, data: dict) -> StaticChunking:
        return cls(
            max_chunk_size_tokens=data.get("max_chunk_size_tokens", 800),
            chunk_overlap_tokens=data.get("chunk_overlap_tokens", 400),
        )

    def to_dict(self) -> dict[str, int]:
        return {
            "max_chunk_size_tokens": self.max_chunk_size_tokens,
            "chunk_overlap_tokens": self.chunk_overlap_tokens,
        }


@dataclass(frozen=True)
class ChunkingStrategy:
    """Vector store file chunking: ``auto`` or ``static`` with a token window."""

    type: ChunkingStrategyType = ChunkingStrategyType.AUTO
    static: StaticChunking | None = None

    def __post_init__(self) -> None:
        if self.type is ChunkingStrategyType.STATIC and self.static is None:
            object.__setattr__(self, "static", StaticChunking())
        elif self.type is ChunkingStrategyType.AUTO and self.static is not None:
            raise InvalidVariantError("chunking_strategy of type 'auto' cannot carry a static config")

    @classmethod
    def decode(cls, raw: Any) -> ChunkingStrategy:
        if not isinstance(raw, dict):
            return cls()
        kind = ChunkingStrategyType.decode(raw.get("type"))
        static = None
        if kind is ChunkingStrategyType.STATIC and isinstance(raw.get("static"), dict):
            static = StaticChunking.from_dict(raw["static"])
        return cls(kind, static)

    def encode(self) -> dict[str, Any]:
        body: dict[str, Any] = {"type": self.type.wire}
        if self.static is not None:
            body["static"] = self.static.to_dict()
        return body


_TOOL_CHOICE_MODES = frozenset({ToolChoiceType.AUTO, ToolChoiceType.NONE, ToolChoiceType.REQUIRED})


@dataclass(frozen=True)
class ToolChoice:
    """``tool_choice``: a mode string, or an object naming one tool."""

    type: ToolChoiceType = ToolChoiceType.AUTO
    function_name: str | None = None

    def __post_init__(self) -> None:
        if self.type is ToolChoiceType.FUNCTION and not self.function_name:
            raise InvalidVariantError("tool_choice of type 'function' requires a function name")
        if self.type is not ToolChoiceType.FUNCTION and self.function_name is not None:
            raise InvalidVariantError(
                f"tool_choice of type '{self.type.wire}' cannot name a function"
            )

    @classmethod
    def function(cls, name: str) -> ToolChoice:
        return cls(ToolChoiceType.FUNCTION, name)

    @classmethod
    def decode(cls, raw: Any) -> ToolChoice:
        if isinstance(raw, str):
            mode = ToolChoiceType.decode(raw)
            return cls(mode if mode in _TOOL_CHOICE_MODES else ToolChoiceType.AUTO)
        if not isinstance(raw, dict):
            return cls()
        kind = ToolChoiceType.decode(raw.get("type"))
        if kind is ToolChoiceType.FUNCTION:
            function = raw.get("function") or {}
            return cls(kind, function.get("name"))
        return cls(kind)

    def encode(self) -> str | dict[str, Any]:
        if self.type in _TOOL_CHOICE_MODES:
            return self.type.wire
        if self.type is ToolChoiceType.FUNCTION:
            return {"type": self.type.wire, "function": {"name": self.function_name}}
        return {"type": self.type.wire}


@dataclass(frozen=True)
class TruncationStrategy:
    """``truncation_strategy``: ``auto``, or keep only the ``last_messages`` newest."""

    type: TruncationType = TruncationType.AUTO
    last_messages: int | None = None

    def __post_init__(self) -> None:
        if self.type is TruncationType.LAST_MESSAGES:
            if self.last_messages is None or self.last_messages < 1:
                raise InvalidVariantError(
                    "truncation_strategy of type 'last_messages' requires last_messages >= 1"
                )
        elif self.last_messages is not None:
            raise InvalidVariantError("truncation_strategy of type 'auto' cannot set last_messages")

    @classmethod
    def decode(cls, raw: Any) -> TruncationStrategy:
        if not isinstance(raw, dict):
            return cls()
        kind = TruncationType.decode(raw.get("type"))
        if kind is TruncationType.LAST_MESSAGES:
            return cls(kind, raw.get("last_messages"))
        return cls(kind)

    def encode(self) -> dict[str, Any]:
        body: dict[str, Any] = {"type": self.type.wire}
        if self.last_messages is not None:
            body["last_messages"] = self.last_messages
        return body
