"""Runs resource — start assistant runs and stream their progress."""

from __future__ import annotations

from collections.abc import Callable
import threading
from typing import TYPE_CHECKING, Any

from .._formats import ResponseFormat, ToolChoice, TruncationStrategy
from .._streaming import RunStream, StreamUpdate
from .._types import Run
from .._variants import ChatResponseFormat, ToolChoiceType
from ._utils import _build_body

if TYPE_CHECKING:
    from .._http import HTTPClient

Observer = Callable[[StreamUpdate], Any]


def _encode_response_format(value: ResponseFormat | ChatResponseFormat | None) -> Any:
    if value is None:
        return None
    if isinstance(value, ChatResponseFormat):
        value = ResponseFormat(value)
    return value.encode()


def _encode_tool_choice(value: ToolChoice | ToolChoiceType | None) -> Any:
    if value is None:
        return None
    if isinstance(value, ToolChoiceType):
        value = ToolChoice(value)
    return value.encode()


def _run_body(
    assistant_id: str,
    *,
    model: str | None = None,
    instructions: str | None = None,
    additional_instructions: str | None = None,
    additional_messages: list[dict] | None = None,
    tools: list[dict] | None = None,
    metadata: dict | None = None,
    temperature: float | None = None,
    top_p: float | None = None,
    max_prompt_tokens: int | None = None,
    max_completion_tokens: int | None = None,
    truncation_strategy: TruncationStrategy | None = None,
    response_format: ResponseFormat | ChatResponseFormat | None = None,
    tool_choice: ToolChoice | ToolChoiceType | None = None,
    parallel_tool_calls: bool | None = None,
) -> dict:
    """Run creation body. Enum and union fields go through their codec."""
    return _build_body(
        assistant_id=assistant_id,
        model=model,
        instructions=instructions,
        additional_instructions=additional_instructions,
        additional_messages=additional_messages,
        tools=tools,
        metadata=metadata,
        temperature=temperature,
        top_p=top_p,
        max_prompt_tokens=max_prompt_tokens,
        max_completion_tokens=max_completion_tokens,
        truncation_strategy=truncation_strategy.encode() if truncation_strategy else None,
        response_format=_encode_response_format(response_format),
        tool_choice=_encode_tool_choice(tool_choice),
        parallel_tool_calls=parallel_tool_calls,
    )


class Runs:
    """client.runs — create runs, stream their events, submit tool outputs.

    Every starting call comes in two flavours. ``create``-style methods take an
    optional ``on_event`` observer: with one, the run is streamed, every update
    is passed to it in order and the final Run is returned; without one, the
    API answers with a single Run snapshot. ``stream``-style methods return the
    RunStream itself for iteration.

    Extra keyword options (model, instructions, tools, response_format,
    tool_choice, truncation_strategy, ...) are those of the run creation body.
    """

    def __init__(self, http: HTTPClient):
        self._http = http

    def _open(
        self,
        path: str,
        body: dict,
        on_event: Observer | None,
        cancel_event: threading.Event | None,
    ) -> RunStream:
        body["stream"] = True
        resp = self._http.stream("POST", path, json=body)
        return RunStream(resp, on_event, cancel_event=cancel_event)

    def _start(
        self,
        path: str,
        body: dict,
        on_event: Observer | None,
        cancel_event: threading.Event | None,
    ) -> Run | None:
        if on_event is None:
            resp = self._http.request("POST", path, json=body)
            return Run.from_dict(resp.json())
        return self._open(path, body, on_event, cancel_event).until_done()

    def create(
        self,
        thread_id: str,
        *,
        assistant_id: str,
        on_event: Observer | None = None,
        cancel_event: threading.Event | None = None,
        **options: Any,
    ) -> Run | None:
        """Create a run on an existing thread.

        Returns None only when streaming and the stream ended without any run event.
        """
        body = _run_body(assistant_id, **options)
        return self._start(f"/threads/{thread_id}/runs", body, on_event, cancel_event)

    def stream(
        self,
        thread_id: str,
        *,
        assistant_id: str,
        on_event: Observer | None = None,
        cancel_event: threading.Event | None = None,
        **options: Any,
    ) -> RunStream:
        """Create a run on an existing thread and return its event stream."""
        body = _run_body(assistant_id, **options)
        return self._open(f"/threads/{thread_id}/runs", body, on_event, cancel_event)

    def create_thread_and_run(
        self,
        *,
        assistant_id: str,
        thread: dict | None = None,
        on_event: Observer | None = None,
        cancel_event: threading.Event | None = None,
        **options: Any,
    ) -> Run | None:
        """Create a thread (``{"messages": [...]}``) and run it in one request."""
        body = _run_body(assistant_id, **options)
        if thread is not None:
            body["thread"] = thread
        return self._start("/threads/runs", body, on_event, cancel_event)

    def stream_thread_and_run(
        self,
        *,
        assistant_id: str,
        thread: dict | None = None,
        on_event: Observer | None = None,
        cancel_event: threading.Event | None = None,
        **options: Any,
    ) -> RunStream:
        body = _run_body(assistant_id, **options)
        if thread is not None:
            body["thread"] = thread
        return self._open("/threads/runs", body, on_event, cancel_event)

    def submit_tool_outputs(
        self,
        thread_id: str,
        run_id: str,
        *,
        tool_outputs: list[dict],
        on_event: Observer | None = None,
        cancel_event: threading.Event | None = None,
    ) -> Run | None:
        """Answer a ``requires_action`` run with ``[{"tool_call_id", "output"}]``.

        All outputs must be submitted in a single request.
        """
        path = f"/threads/{thread_id}/runs/{run_id}/submit_tool_outputs"
        return self._start(path, {"tool_outputs": tool_outputs}, on_event, cancel_event)

    def stream_tool_outputs(
        self,
        thread_id: str,
        run_id: str,
        *,
        tool_outputs: list[dict],
        on_event: Observer | None = None,
        cancel_event: threading.Event | None = None,
    ) -> RunStream:
        path = f"/threads/{thread_id}/runs/{run_id}/submit_tool_outputs"
        return self._open(path, {"tool_outputs": tool_outputs}, on_event, cancel_event)
