"""Tests for discriminated-union values."""

import pytest

from threadstream._exceptions import InvalidVariantError
from threadstream._formats import (
    ChunkingStrategy,
    JsonSchema,
    ResponseFormat,
    StaticChunking,
    ToolChoice,
    TruncationStrategy,
)
from threadstream._variants import (
    ChatResponseFormat,
    ChunkingStrategyType,
    ToolChoiceType,
    TruncationType,
)

SCHEMA = {"type": "object", "properties": {"score": {"type": "number"}}}


class TestResponseFormatDecode:
    def test_bare_auto_string(self):
        assert ResponseFormat.decode("auto") == ResponseFormat.auto()

    def test_null(self):
        assert ResponseFormat.decode(None).type is ChatResponseFormat.AUTO

    def test_any_bare_string_is_auto(self):
        assert ResponseFormat.decode("json_object").type is ChatResponseFormat.AUTO

    def test_text_object(self):
        fmt = ResponseFormat.decode({"type": "text"})
        assert fmt.type is ChatResponseFormat.TEXT
        assert fmt.json_schema is None

    def test_json_object(self):
        assert ResponseFormat.decode({"type": "json_object"}) == ResponseFormat.json_object()

    def test_json_schema_carries_schema(self):
        fmt = ResponseFormat.decode(
            {"type": "json_schema", "json_schema": {"name": "rank", "schema": SCHEMA, "strict": True}}
        )
        assert fmt.type is ChatResponseFormat.JSON_SCHEMA
        assert fmt.json_schema == JsonSchema(name="rank", schema=SCHEMA, strict=True)

    def test_unknown_type_is_auto(self):
        assert ResponseFormat.decode({"type": "xml"}).type is ChatResponseFormat.AUTO

    def test_schema_ignored_for_other_types(self):
        fmt = ResponseFormat.decode({"type": "text", "json_schema": {"name": "x"}})
        assert fmt == ResponseFormat.text()

    def test_json_schema_without_payload_fails(self):
        with pytest.raises(InvalidVariantError):
            ResponseFormat.decode({"type": "json_schema"})


class TestResponseFormatConstruction:
    def test_schema_variant_requires_schema(self):
        with pytest.raises(InvalidVariantError, match="json_schema"):
            ResponseFormat(ChatResponseFormat.JSON_SCHEMA)

    def test_schema_only_on_schema_variant(self):
        with pytest.raises(InvalidVariantError):
            ResponseFormat(ChatResponseFormat.TEXT, JsonSchema(name="x"))

    def test_invalid_variant_error_is_value_error(self):
        with pytest.raises(ValueError):
            ResponseFormat(ChatResponseFormat.JSON_SCHEMA)


class TestResponseFormatEncode:
    def test_auto_is_bare_string(self):
        assert ResponseFormat.auto().encode() == "auto"

    def test_json_object(self):
        assert ResponseFormat.json_object().encode() == {"type": "json_object"}

    def test_json_schema(self):
        fmt = ResponseFormat.from_schema(JsonSchema(name="rank", schema=SCHEMA))
        assert fmt.encode() == {"type": "json_schema", "json_schema": {"name": "rank", "schema": SCHEMA}}


class TestChunkingStrategy:
    def test_null_and_string_are_auto(self):
        assert ChunkingStrategy.decode(None) == ChunkingStrategy()
        assert ChunkingStrategy.decode("auto").type is ChunkingStrategyType.AUTO

    def test_static_gets_default_window(self):
        strategy = ChunkingStrategy(ChunkingStrategyType.STATIC)
        assert strategy.static == StaticChunking(800, 400)

    def test_decode_static(self):
        strategy = ChunkingStrategy.decode(
            {"type": "static", "static": {"max_chunk_size_tokens": 1000, "chunk_overlap_tokens": 200}}
        )
        assert strategy.static == StaticChunking(1000, 200)

    def test_auto_rejects_static_payload(self):
        with pytest.raises(InvalidVariantError):
            ChunkingStrategy(ChunkingStrategyType.AUTO, StaticChunking())

    @pytest.mark.parametrize("size, overlap", [(50, 0), (5000, 0), (800, 401), (800, -1)])
    def test_static_limits(self, size, overlap):
        with pytest.raises(InvalidVariantError):
            StaticChunking(size, overlap)

    def test_encode(self):
        assert ChunkingStrategy().encode() == {"type": "auto"}
        assert ChunkingStrategy(ChunkingStrategyType.STATIC).encode() == {
            "type": "static",
            "static": {"max_chunk_size_tokens": 800, "chunk_overlap_tokens": 400},
        }


class TestToolChoice:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("auto", ToolChoiceType.AUTO),
            ("none", ToolChoiceType.NONE),
            ("required", ToolChoiceType.REQUIRED),
            ("file_search", ToolChoiceType.AUTO),
            ("something_new", ToolChoiceType.AUTO),
            (None, ToolChoiceType.AUTO),
        ],
    )
    def test_decode_strings(self, raw, expected):
        assert ToolChoice.decode(raw).type is expected

    def test_decode_function(self):
        choice = ToolChoice.decode({"type": "function", "function": {"name": "get_weather"}})
        assert choice == ToolChoice.function("get_weather")

    def test_decode_file_search(self):
        assert ToolChoice.decode({"type": "file_search"}).type is ToolChoiceType.FILE_SEARCH

    def test_function_requires_name(self):
        with pytest.raises(InvalidVariantError):
            ToolChoice(ToolChoiceType.FUNCTION)

    def test_name_only_for_function(self):
        with pytest.raises(InvalidVariantError):
            ToolChoice(ToolChoiceType.AUTO, "get_weather")

    def test_encode(self):
        assert ToolChoice(ToolChoiceType.REQUIRED).encode() == "required"
        assert ToolChoice(ToolChoiceType.CODE_INTERPRETER).encode() == {"type": "code_interpreter"}
        assert ToolChoice.function("f").encode() == {"type": "function", "function": {"name": "f"}}


class TestTruncationStrategy:
    def test_decode(self):
        assert TruncationStrategy.decode({"type": "auto", "last_messages": None}) == TruncationStrategy()
        strategy = TruncationStrategy.decode({"type": "last_messages", "last_messages": 5})
        assert strategy.type is TruncationType.LAST_MESSAGES
        assert strategy.last_messages == 5

    def test_last_messages_requires_count(self):
        with pytest.raises(InvalidVariantError):
            TruncationStrategy(TruncationType.LAST_MESSAGES)
        with pytest.raises(InvalidVariantError):
            TruncationStrategy(TruncationType.LAST_MESSAGES, 0)

    def test_encode(self):
        assert TruncationStrategy().encode() == {"type": "auto"}
        assert TruncationStrategy(TruncationType.LAST_MESSAGES, 3).encode() == {
            "type": "last_messages",
            "last_messages": 3,
        }
