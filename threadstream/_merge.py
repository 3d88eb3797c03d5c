"""
Coalesces partial run, run step and message updates into growing aggregates.

``AggregateMerger`` keeps one slot per object kind. The first partial for an
empty slot becomes the aggregate; later partials for the same identifier are
merged field by field:

- scalars listed in the partial's ``fields_set`` overwrite, everything else
  is left alone;
- text in a delta (message text, function arguments, code input, logs) is
  appended, text in a snapshot replaces;
- indexed lists (content blocks, annotations, tool calls, code outputs) merge
  by position, may grow by exactly one item per index, and reject gaps.

A merge is staged on a copy and committed only if it succeeds, so a rejected
partial leaves the aggregate as it was.
"""

from __future__ import annotations

from collections.abc import Callable
import copy
from dataclasses import fields
import logging
from typing import Any, TypeVar

from ._exceptions import StreamProtocolError
from ._types import (
    Annotation,
    CodeInterpreterCall,
    CodeOutput,
    Content,
    FunctionCall,
    Message,
    MessageDelta,
    Run,
    RunStep,
    RunStepDelta,
    StepDetails,
    Text,
    ToolCall,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

Aggregate = Run | RunStep | Message
Partial = Run | RunStep | RunStepDelta | Message | MessageDelta

RUN = "run"
RUN_STEP = "run_step"
MESSAGE = "message"


def _assign_present(target: Any, part: Any, skip: frozenset[str] = frozenset()) -> None:
    """Copy every field ``part`` carries onto ``target``, except ``skip``."""
    for name in part.fields_set - skip:
        setattr(target, name, getattr(part, name))
    target.fields_set = target.fields_set | part.fields_set


def _merge_indexed(
    target: list[T],
    parts: list[T],
    merge_item: Callable[[T, T, bool], None],
    delta: bool,
    kind: str,
) -> None:
    for position, part in enumerate(parts):
        index = part.index if part.index is not None else position  # type: ignore[attr-defined]
        if index < len(target):
            merge_item(target[index], part, delta)
        elif index == len(target):
            target.append(part)
        else:
            raise StreamProtocolError(
                f"{kind} index {index} skips past the {len(target)} known items", kind=kind
            )


def _merge_annotation(target: Annotation, part: Annotation, delta: bool) -> None:
    _assign_present(target, part, skip=frozenset({"index"}))


def _merge_text(target: Text, part: Text, delta: bool) -> None:
    if "value" in part.fields_set:
        target.value = target.value + part.value if delta else part.value
    _merge_indexed(target.annotations, part.annotations, _merge_annotation, delta, "annotation")
    target.fields_set = target.fields_set | part.fields_set


def _merge_content(target: Content, part: Content, delta: bool) -> None:
    _assign_present(target, part, skip=frozenset({"index", "text"}))
    if part.text is not None:
        if target.text is None:
            target.text = Text()
        _merge_text(target.text, part.text, delta)


def _merge_function(target: FunctionCall, part: FunctionCall, delta: bool) -> None:
    if "arguments" in part.fields_set:
        target.arguments = target.arguments + part.arguments if delta else part.arguments
    _assign_present(target, part, skip=frozenset({"arguments"}))


def _merge_output(target: CodeOutput, part: CodeOutput, delta: bool) -> None:
    if "logs" in part.fields_set:
        target.logs = target.logs + part.logs if delta else part.logs
    _assign_present(target, part, skip=frozenset({"index", "logs"}))


def _merge_code(target: CodeInterpreterCall, part: CodeInterpreterCall, delta: bool) -> None:
    if "input" in part.fields_set:
        target.input = target.input + part.input if delta else part.input
    _merge_indexed(target.outputs, part.outputs, _merge_output, delta, "code_interpreter output")
    target.fields_set = target.fields_set | part.fields_set


def _merge_tool_call(target: ToolCall, part: ToolCall, delta: bool) -> None:
    _assign_present(target, part, skip=frozenset({"index", "function", "code_interpreter"}))
    if part.function is not None:
        if target.function is None:
            target.function = FunctionCall()
        _merge_function(target.function, part.function, delta)
    if part.code_interpreter is not None:
        if target.code_interpreter is None:
            target.code_interpreter = CodeInterpreterCall()
        _merge_code(target.code_interpreter, part.code_interpreter, delta)


def _merge_step_details(target: StepDetails, part: StepDetails, delta: bool) -> None:
    _assign_present(target, part, skip=frozenset({"tool_calls"}))
    _merge_indexed(target.tool_calls, part.tool_calls, _merge_tool_call, delta, "tool_call")


def _merge_status(target: Aggregate, part: Partial) -> None:
    if "status" not in part.fields_set:
        return
    current, incoming = target.status, part.status  # type: ignore[union-attr]
    if current.is_terminal and not incoming.is_terminal:
        logger.warning(
            "Ignoring status regression of %s %s from %s to %s",
            type(target).__name__,
            target.id,
            current,
            incoming,
        )
        return
    target.status = incoming


def _merge_run(target: Run, part: Run) -> None:
    _merge_status(target, part)
    _assign_present(target, part, skip=frozenset({"id", "status"}))


def _merge_run_step(target: RunStep, part: RunStep | RunStepDelta) -> None:
    delta = isinstance(part, RunStepDelta)
    if not delta:
        _merge_status(target, part)
        _assign_present(target, part, skip=frozenset({"id", "status", "step_details"}))
    if part.step_details is not None:
        if target.step_details is None:
            target.step_details = StepDetails()
        _merge_step_details(target.step_details, part.step_details, delta)


def _merge_message(target: Message, part: Message | MessageDelta) -> None:
    delta = isinstance(part, MessageDelta)
    if delta:
        if part.role is not None:
            target.role = part.role
    else:
        _merge_status(target, part)
        _assign_present(target, part, skip=frozenset({"id", "status", "content"}))
    _merge_indexed(target.content, part.content, _merge_content, delta, "content")


def _commit(target: Any, staged: Any) -> None:
    for f in fields(target):
        setattr(target, f.name, getattr(staged, f.name))


def slot_for(partial: Partial) -> str:
    """Name of the slot a partial belongs to."""
    if isinstance(partial, Run):
        return RUN
    if isinstance(partial, (RunStep, RunStepDelta)):
        return RUN_STEP
    if isinstance(partial, (Message, MessageDelta)):
        return MESSAGE
    raise TypeError(f"Cannot aggregate {type(partial).__name__}")


class AggregateMerger:
    """
    Holds the in-flight Run, RunStep and Message of one stream session.

    Usage:
        merger = AggregateMerger()
        run, is_first = merger.merge(Run.from_dict(payload))
    """

    def __init__(self) -> None:
        self._slots: dict[str, Aggregate | None] = {RUN: None, RUN_STEP: None, MESSAGE: None}
        self._finished: dict[str, set[str]] = {RUN_STEP: set(), MESSAGE: set()}

    @property
    def run(self) -> Run | None:
        return self._slots[RUN]  # type: ignore[return-value]

    @property
    def run_step(self) -> RunStep | None:
        return self._slots[RUN_STEP]  # type: ignore[return-value]

    @property
    def message(self) -> Message | None:
        return self._slots[MESSAGE]  # type: ignore[return-value]

    def reset(self) -> None:
        """Discard every in-flight aggregate."""
        for kind in self._slots:
            self._slots[kind] = None
        for ids in self._finished.values():
            ids.clear()

    def merge(self, partial: Partial) -> tuple[Aggregate, bool]:
        """
        Merge a partial into its slot.

        Returns:
            The aggregate after the merge, and whether this partial opened it

        Raises:
            StreamProtocolError: the partial belongs to another object than the
                in-flight aggregate, reopens a finished step or message, or
                addresses a list index past its end
        """
        kind = slot_for(partial)
        current = self._slots[kind]
        is_first = current is None

        if current is None:
            if partial.id in self._finished.get(kind, ()):
                raise StreamProtocolError(
                    f"{kind} update for {partial.id} after it finished",
                    kind=kind,
                    received_id=partial.id,
                )
            aggregate = self._seed(partial)
        else:
            if partial.id and partial.id != current.id:
                raise StreamProtocolError(
                    f"{kind} update for {partial.id} while {current.id} is in flight",
                    kind=kind,
                    expected_id=current.id,
                    received_id=partial.id,
                )
            staged = copy.deepcopy(current)
            self._apply(kind, staged, partial)
            _commit(current, staged)
            aggregate = current

        # finished steps and messages leave room for the next one; the run stays
        if kind != RUN and aggregate.status.is_terminal:
            logger.debug("%s %s finished with status %s", kind, aggregate.id, aggregate.status)
            self._slots[kind] = None
            self._finished[kind].add(aggregate.id)
        else:
            self._slots[kind] = aggregate
        return aggregate, is_first

    def _seed(self, partial: Partial) -> Aggregate:
        if isinstance(partial, RunStepDelta):
            seed: Aggregate = RunStep(id=partial.id, fields_set=frozenset({"id"}))
        elif isinstance(partial, MessageDelta):
            seed = Message(id=partial.id, fields_set=frozenset({"id"}))
        else:
            return partial
        self._apply(slot_for(partial), seed, partial)
        return seed

    @staticmethod
    def _apply(kind: str, target: Any, partial: Any) -> None:
        if kind == RUN:
            _merge_run(target, partial)
        elif kind == RUN_STEP:
            _merge_run_step(target, partial)
        else:
            _merge_message(target, partial)
