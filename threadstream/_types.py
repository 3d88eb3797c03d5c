"""Dataclass models mirroring the Assistants API objects and their stream deltas.

Every model records ``fields_set``: the wire fields that were present with a
non-null value when it was decoded. Merging partial updates relies on it to
tell "unchanged" apart from "set", so defaults are never mistaken for data.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any

from ._formats import ResponseFormat, ToolChoice, TruncationStrategy
from ._variants import (
    AnnotationType,
    ContentType,
    IncompleteMessageReason,
    JobStatus,
    MessageStatus,
    Role,
    RunStatus,
    RunStepStatus,
    RunStepType,
    ToolCallType,
)


def _present(cls: type, data: dict) -> frozenset[str]:
    """Names of ``cls`` fields that ``data`` carries with a non-null value."""
    names = {f.name for f in fields(cls)}
    return frozenset(key for key, value in data.items() if key in names and value is not None)


def _fields_set() -> Any:
    return field(default=frozenset(), repr=False, compare=False)


@dataclass
class Usage:
    """Token counters, reported once a run or step is close to finishing."""

    prompt_tokens: int | None = None
    completion_tokens: int | None = None
    total_tokens: int | None = None

    @classmethod
    def from_dict(cls, data: dict) -> Usage:
        return cls(
            prompt_tokens=data.get("prompt_tokens"),
            completion_tokens=data.get("completion_tokens"),
            total_tokens=data.get("total_tokens"),
        )


@dataclass
class LastError:
    code: str | None = None
    message: str | None = None

    @classmethod
    def from_dict(cls, data: dict) -> LastError:
        return cls(code=data.get("code"), message=data.get("message"))


@dataclass
class IncompleteDetails:
    reason: IncompleteMessageReason = IncompleteMessageReason.NONE

    @classmethod
    def from_dict(cls, data: dict) -> IncompleteDetails:
        return cls(reason=IncompleteMessageReason.decode(data.get("reason")))


@dataclass
class FunctionCall:
    name: str | None = None
    arguments: str = ""
    output: str | None = None
    fields_set: frozenset[str] = _fields_set()

    @classmethod
    def from_dict(cls, data: dict) -> FunctionCall:
        return cls(
            name=data.get("name"),
            arguments=data.get("arguments") or "",
            output=data.get("output"),
            fields_set=_present(cls, data),
        )


@dataclass
class CodeOutput:
    """One output of a code interpreter call: ``logs`` text or an ``image`` file."""

    index: int | None = None
    type: str = "logs"
    logs: str = ""
    image: dict | None = None
    fields_set: frozenset[str] = _fields_set()

    @classmethod
    def from_dict(cls, data: dict) -> CodeOutput:
        return cls(
            index=data.get("index"),
            type=data.get("type", "logs"),
            logs=data.get("logs") or "",
            image=data.get("image"),
            fields_set=_present(cls, data),
        )


@dataclass
class CodeInterpreterCall:
    input: str = ""
    outputs: list[CodeOutput] = field(default_factory=list)
    fields_set: frozenset[str] = _fields_set()

    @classmethod
    def from_dict(cls, data: dict) -> CodeInterpreterCall:
        return cls(
            input=data.get("input") or "",
            outputs=[CodeOutput.from_dict(o) for o in data.get("outputs") or []],
            fields_set=_present(cls, data),
        )


@dataclass
class ToolCall:
    """A tool invocation inside step details or a run's required action."""

    index: int | None = None
    id: str | None = None
    type: ToolCallType = ToolCallType.FUNCTION
    function: FunctionCall | None = None
    code_interpreter: CodeInterpreterCall | None = None
    file_search: dict | None = None
    fields_set: frozenset[str] = _fields_set()

    @classmethod
    def from_dict(cls, data: dict) -> ToolCall:
        function = data.get("function")
        code = data.get("code_interpreter")
        return cls(
            index=data.get("index"),
            id=data.get("id"),
            type=ToolCallType.decode(data.get("type")),
            function=FunctionCall.from_dict(function) if function is not None else None,
            code_interpreter=CodeInterpreterCall.from_dict(code) if code is not None else None,
            file_search=data.get("file_search"),
            fields_set=_present(cls, data),
        )


@dataclass
class RequiredAction:
    """What the caller must do before a ``requires_action`` run can continue."""

    type: str = "submit_tool_outputs"
    tool_calls: list[ToolCall] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> RequiredAction:
        submit = data.get("submit_tool_outputs") or {}
        return cls(
            type=data.get("type", "submit_tool_outputs"),
            tool_calls=[ToolCall.from_dict(t) for t in submit.get("tool_calls") or []],
        )


@dataclass
class Run:
    """One assistant execution against a thread."""

    id: str
    object: str = "thread.run"
    thread_id: str | None = None
    assistant_id: str | None = None
    status: RunStatus = RunStatus.QUEUED
    created_at: int | None = None
    started_at: int | None = None
    expires_at: int | None = None
    cancelled_at: int | None = None
    failed_at: int | None = None
    completed_at: int | None = None
    required_action: RequiredAction | None = None
    last_error: LastError | None = None
    incomplete_details: IncompleteDetails | None = None
    usage: Usage | None = None
    model: str | None = None
    instructions: str | None = None
    tools: list[dict] = field(default_factory=list)
    metadata: dict | None = None
    temperature: float | None = None
    top_p: float | None = None
    max_prompt_tokens: int | None = None
    max_completion_tokens: int | None = None
    truncation_strategy: TruncationStrategy | None = None
    response_format: ResponseFormat | None = None
    tool_choice: ToolChoice | None = None
    parallel_tool_calls: bool | None = None
    fields_set: frozenset[str] = _fields_set()

    @classmethod
    def from_dict(cls, data: dict) -> Run:
        required_action = data.get("required_action")
        last_error = data.get("last_error")
        incomplete = data.get("incomplete_details")
        usage = data.get("usage")
        truncation = data.get("truncation_strategy")
        return cls(
            id=data["id"],
            object=data.get("object", "thread.run"),
            thread_id=data.get("thread_id"),
            assistant_id=data.get("assistant_id"),
            status=RunStatus.decode(data.get("status")),
            created_at=data.get("created_at"),
            started_at=data.get("started_at"),
            expires_at=data.get("expires_at"),
            cancelled_at=data.get("cancelled_at"),
            failed_at=data.get("failed_at"),
            completed_at=data.get("completed_at"),
            required_action=(
                RequiredAction.from_dict(required_action) if required_action is not None else None
            ),
            last_error=LastError.from_dict(last_error) if last_error is not None else None,
            incomplete_details=(
                IncompleteDetails.from_dict(incomplete) if incomplete is not None else None
            ),
            usage=Usage.from_dict(usage) if usage is not None else None,
            model=data.get("model"),
            instructions=data.get("instructions"),
            tools=data.get("tools") or [],
            metadata=data.get("metadata"),
            temperature=data.get("temperature"),
            top_p=data.get("top_p"),
            max_prompt_tokens=data.get("max_prompt_tokens"),
            max_completion_tokens=data.get("max_completion_tokens"),
            truncation_strategy=(
                TruncationStrategy.decode(truncation) if truncation is not None else None
            ),
            response_format=(
                ResponseFormat.decode(data["response_format"]) if "response_format" in data else None
            ),
            tool_choice=ToolChoice.decode(data["tool_choice"]) if "tool_choice" in data else None,
            parallel_tool_calls=data.get("parallel_tool_calls"),
            fields_set=_present(cls, data),
        )


@dataclass
class StepDetails:
    """Either the message a step created, or the tool calls it made."""

    type: RunStepType = RunStepType.MESSAGE_CREATION
    message_id: str | None = None
    tool_calls: list[ToolCall] = field(default_factory=list)
    fields_set: frozenset[str] = _fields_set()

    @classmethod
    def from_dict(cls, data: dict) -> StepDetails:
        creation = data.get("message_creation") or {}
        present = set(_present(cls, data))
        if creation.get("message_id") is not None:
            present.add("message_id")
        return cls(
            type=RunStepType.decode(data.get("type")),
            message_id=creation.get("message_id"),
            tool_calls=[ToolCall.from_dict(t) for t in data.get("tool_calls") or []],
            fields_set=frozenset(present),
        )


@dataclass
class RunStep:
    """A discrete unit of work inside a run."""

    id: str
    object: str = "thread.run.step"
    run_id: str | None = None
    thread_id: str | None = None
    assistant_id: str | None = None
    type: RunStepType = RunStepType.MESSAGE_CREATION
    status: RunStepStatus = RunStepStatus.IN_PROGRESS
    step_details: StepDetails | None = None
    created_at: int | None = None
    expired_at: int | None = None
    cancelled_at: int | None = None
    failed_at: int | None = None
    completed_at: int | None = None
    last_error: LastError | None = None
    usage: Usage | None = None
    metadata: dict | None = None
    fields_set: frozenset[str] = _fields_set()

    @classmethod
    def from_dict(cls, data: dict) -> RunStep:
        details = data.get("step_details")
        last_error = data.get("last_error")
        usage = data.get("usage")
        return cls(
            id=data["id"],
            object=data.get("object", "thread.run.step"),
            run_id=data.get("run_id"),
            thread_id=data.get("thread_id"),
            assistant_id=data.get("assistant_id"),
            type=RunStepType.decode(data.get("type")),
            status=RunStepStatus.decode(data.get("status")),
            step_details=StepDetails.from_dict(details) if details is not None else None,
            created_at=data.get("created_at"),
            expired_at=data.get("expired_at"),
            cancelled_at=data.get("cancelled_at"),
            failed_at=data.get("failed_at"),
            completed_at=data.get("completed_at"),
            last_error=LastError.from_dict(last_error) if last_error is not None else None,
            usage=Usage.from_dict(usage) if usage is not None else None,
            metadata=data.get("metadata"),
            fields_set=_present(cls, data),
        )


@dataclass
class RunStepDelta:
    """``thread.run.step.delta`` payload: the changed part of one step's details."""

    id: str
    step_details: StepDetails | None = None
    fields_set: frozenset[str] = _fields_set()

    @classmethod
    def from_dict(cls, data: dict) -> RunStepDelta:
        delta = data.get("delta") or {}
        details = delta.get("step_details")
        present = {"id"} | _present(cls, delta)
        return cls(
            id=data["id"],
            step_details=StepDetails.from_dict(details) if details is not None else None,
            fields_set=frozenset(present),
        )


@dataclass
class Annotation:
    """A citation or file path reference inside a text block."""

    index: int | None = None
    type: AnnotationType = AnnotationType.FILE_CITATION
    text: str | None = None
    start_index: int | None = None
    end_index: int | None = None
    file_citation: dict | None = None
    file_path: dict | None = None
    fields_set: frozenset[str] = _fields_set()

    @classmethod
    def from_dict(cls, data: dict) -> Annotation:
        return cls(
            index=data.get("index"),
            type=AnnotationType.decode(data.get("type")),
            text=data.get("text"),
            start_index=data.get("start_index"),
            end_index=data.get("end_index"),
            file_citation=data.get("file_citation"),
            file_path=data.get("file_path"),
            fields_set=_present(cls, data),
        )


@dataclass
class Text:
    value: str = ""
    annotations: list[Annotation] = field(default_factory=list)
    fields_set: frozenset[str] = _fields_set()

    @classmethod
    def from_dict(cls, data: dict) -> Text:
        return cls(
            value=data.get("value") or "",
            annotations=[Annotation.from_dict(a) for a in data.get("annotations") or []],
            fields_set=_present(cls, data),
        )


@dataclass
class Content:
    """One content block of a message."""

    index: int | None = None
    type: ContentType = ContentType.TEXT
    text: Text | None = None
    image_file: dict | None = None
    image_url: dict | None = None
    fields_set: frozenset[str] = _fields_set()

    @classmethod
    def from_dict(cls, data: dict) -> Content:
        text = data.get("text")
        if isinstance(text, str):
            text = {"value": text}
        return cls(
            index=data.get("index"),
            type=ContentType.decode(data.get("type")),
            text=Text.from_dict(text) if text is not None else None,
            image_file=data.get("image_file"),
            image_url=data.get("image_url"),
            fields_set=_present(cls, data),
        )


@dataclass
class Message:
    """A unit of conversation content, possibly built up from deltas."""

    id: str
    object: str = "thread.message"
    thread_id: str | None = None
    run_id: str | None = None
    assistant_id: str | None = None
    role: Role = Role.ASSISTANT
    status: MessageStatus = MessageStatus.IN_PROGRESS
    content: list[Content] = field(default_factory=list)
    created_at: int | None = None
    completed_at: int | None = None
    incomplete_at: int | None = None
    incomplete_details: IncompleteDetails | None = None
    attachments: list[dict] = field(default_factory=list)
    metadata: dict | None = None
    fields_set: frozenset[str] = _fields_set()

    @classmethod
    def from_dict(cls, data: dict) -> Message:
        incomplete = data.get("incomplete_details")
        return cls(
            id=data["id"],
            object=data.get("object", "thread.message"),
            thread_id=data.get("thread_id"),
            run_id=data.get("run_id"),
            assistant_id=data.get("assistant_id"),
            role=Role.decode(data.get("role")),
            status=MessageStatus.decode(data.get("status")),
            content=[Content.from_dict(c) for c in data.get("content") or []],
            created_at=data.get("created_at"),
            completed_at=data.get("completed_at"),
            incomplete_at=data.get("incomplete_at"),
            incomplete_details=(
                IncompleteDetails.from_dict(incomplete) if incomplete is not None else None
            ),
            attachments=data.get("attachments") or [],
            metadata=data.get("metadata"),
            fields_set=_present(cls, data),
        )

    @property
    def text(self) -> str:
        """Concatenated value of every text block."""
        return "".join(c.text.value for c in self.content if c.text is not None)


@dataclass
class MessageDelta:
    """``thread.message.delta`` payload: new role and/or content fragments."""

    id: str
    role: Role | None = None
    content: list[Content] = field(default_factory=list)
    fields_set: frozenset[str] = _fields_set()

    @classmethod
    def from_dict(cls, data: dict) -> MessageDelta:
        delta = data.get("delta") or {}
        role = delta.get("role")
        present = {"id"} | _present(cls, delta)
        return cls(
            id=data["id"],
            role=Role.decode(role) if role is not None else None,
            content=[Content.from_dict(c) for c in delta.get("content") or []],
            fields_set=frozenset(present),
        )


@dataclass
class Thread:
    id: str
    object: str = "thread"
    created_at: int | None = None
    metadata: dict | None = None
    tool_resources: dict | None = None

    @classmethod
    def from_dict(cls, data: dict) -> Thread:
        return cls(
            id=data["id"],
            object=data.get("object", "thread"),
            created_at=data.get("created_at"),
            metadata=data.get("metadata"),
            tool_resources=data.get("tool_resources"),
        )


@dataclass
class ErrorObject:
    """Payload of an ``error`` stream event."""

    message: str
    code: str | None = None
    type: str | None = None
    param: str | None = None

    @classmethod
    def from_dict(cls, data: dict) -> ErrorObject:
        # accept both {"error": {...}} and the bare error object
        if isinstance(data.get("error"), dict):
            data = data["error"]
        return cls(
            message=data.get("message") or "Unknown error",
            code=data.get("code"),
            type=data.get("type"),
            param=data.get("param"),
        )


@dataclass
class Assistant:
    id: str
    object: str = "assistant"
    created_at: int | None = None
    name: str | None = None
    description: str | None = None
    model: str | None = None
    instructions: str | None = None
    tools: list[dict] = field(default_factory=list)
    tool_resources: dict | None = None
    metadata: dict | None = None
    temperature: float | None = None
    top_p: float | None = None
    response_format: ResponseFormat = field(default_factory=ResponseFormat)

    @classmethod
    def from_dict(cls, data: dict) -> Assistant:
        return cls(
            id=data["id"],
            object=data.get("object", "assistant"),
            created_at=data.get("created_at"),
            name=data.get("name"),
            description=data.get("description"),
            model=data.get("model"),
            instructions=data.get("instructions"),
            tools=data.get("tools") or [],
            tool_resources=data.get("tool_resources"),
            metadata=data.get("metadata"),
            temperature=data.get("temperature"),
            top_p=data.get("top_p"),
            response_format=ResponseFormat.decode(data.get("response_format")),
        )


@dataclass
class FineTuneJob:
    id: str
    model: str | None = None
    status: JobStatus = JobStatus.NOT_STARTED
    created_at: int | None = None
    finished_at: int | None = None
    fine_tuned_model: str | None = None
    training_file: str | None = None
    validation_file: str | None = None
    result_files: list[str] = field(default_factory=list)
    trained_tokens: int | None = None

    @classmethod
    def from_dict(cls, data: dict) -> FineTuneJob:
        return cls(
            id=data["id"],
            model=data.get("model"),
            status=JobStatus.decode(data.get("status")),
            created_at=data.get("created_at"),
            finished_at=data.get("finished_at"),
            fine_tuned_model=data.get("fine_tuned_model"),
            training_file=data.get("training_file"),
            validation_file=data.get("validation_file"),
            result_files=data.get("result_files") or [],
            trained_tokens=data.get("trained_tokens"),
        )
