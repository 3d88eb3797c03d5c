"""Tests for the Runs resource: request bodies and streamed results."""

import json
import threading

import pytest
import responses

from tests.utils.factories import message_payload, run_payload, text_delta
from tests.utils.mocks import sse_lines
from threadstream._formats import JsonSchema, ResponseFormat, ToolChoice, TruncationStrategy
from threadstream._http import HTTPClient
from threadstream._resources.runs import Runs
from threadstream._streaming import RunStream
from threadstream._types import Message, Run
from threadstream._variants import ChatResponseFormat, RunStatus, ToolChoiceType, TruncationType

BASE = "https://api.test/v1"

STREAM_BODY = "\n".join(
    sse_lines(
        ("thread.run.created", run_payload()),
        ("thread.run.in_progress", run_payload(status="in_progress")),
        ("thread.message.created", message_payload()),
        ("thread.message.delta", text_delta("msg_1", "Hi")),
        ("thread.message.completed", message_payload(status="completed")),
        ("thread.run.completed", run_payload(status="completed")),
        ("done", "[DONE]"),
    )
)


@pytest.fixture
def runs():
    return Runs(HTTPClient(api_key="sk-test", base_url=BASE, timeout=5))


def _body(call: int = 0) -> dict:
    return json.loads(responses.calls[call].request.body)


class TestCreate:
    @responses.activate
    def test_without_observer_returns_snapshot(self, runs):
        responses.add(responses.POST, f"{BASE}/threads/thread_1/runs", json=run_payload(), status=200)
        run = runs.create("thread_1", assistant_id="asst_1")
        assert isinstance(run, Run)
        assert run.status is RunStatus.QUEUED
        assert _body() == {"assistant_id": "asst_1"}

    @responses.activate
    def test_with_observer_streams(self, runs):
        responses.add(
            responses.POST,
            f"{BASE}/threads/thread_1/runs",
            body=STREAM_BODY,
            status=200,
            content_type="text/event-stream",
        )
        updates = []
        run = runs.create("thread_1", assistant_id="asst_1", on_event=updates.append)
        assert run.status is RunStatus.COMPLETED
        assert _body()["stream"] is True
        messages = [u for u in updates if isinstance(u, Message)]
        assert messages[-1].text == "Hi"

    @responses.activate
    def test_options_encoded(self, runs):
        responses.add(responses.POST, f"{BASE}/threads/thread_1/runs", json=run_payload(), status=200)
        runs.create(
            "thread_1",
            assistant_id="asst_1",
            instructions="Be brief",
            temperature=0.2,
            response_format=ResponseFormat.from_schema(JsonSchema(name="answer", schema={"type": "object"})),
            tool_choice=ToolChoice.function("lookup"),
            truncation_strategy=TruncationStrategy(TruncationType.LAST_MESSAGES, 4),
        )
        assert _body() == {
            "assistant_id": "asst_1",
            "instructions": "Be brief",
            "temperature": 0.2,
            "response_format": {"type": "json_schema", "json_schema": {"name": "answer", "schema": {"type": "object"}}},
            "tool_choice": {"type": "function", "function": {"name": "lookup"}},
            "truncation_strategy": {"type": "last_messages", "last_messages": 4},
        }

    @responses.activate
    def test_enum_shorthands(self, runs):
        responses.add(responses.POST, f"{BASE}/threads/thread_1/runs", json=run_payload(), status=200)
        runs.create(
            "thread_1",
            assistant_id="asst_1",
            response_format=ChatResponseFormat.JSON,
            tool_choice=ToolChoiceType.REQUIRED,
        )
        body = _body()
        assert body["response_format"] == {"type": "json_object"}
        assert body["tool_choice"] == "required"

    @responses.activate
    def test_auto_response_format_is_bare_string(self, runs):
        responses.add(responses.POST, f"{BASE}/threads/thread_1/runs", json=run_payload(), status=200)
        runs.create("thread_1", assistant_id="asst_1", response_format=ResponseFormat.auto())
        assert _body()["response_format"] == "auto"


class TestStream:
    @responses.activate
    def test_returns_run_stream(self, runs):
        responses.add(responses.POST, f"{BASE}/threads/thread_1/runs", body=STREAM_BODY, status=200)
        with runs.stream("thread_1", assistant_id="asst_1") as stream:
            assert isinstance(stream, RunStream)
            updates = list(stream)
        assert isinstance(updates[0], Run)
        assert stream.run.status is RunStatus.COMPLETED
        assert stream.text == "Hi"
        assert responses.calls[0].request.headers["Accept"] == "text/event-stream"

    @responses.activate
    def test_cancel_event_passed_through(self, runs):
        responses.add(responses.POST, f"{BASE}/threads/thread_1/runs", body=STREAM_BODY, status=200)
        cancel = threading.Event()
        stream = runs.stream("thread_1", assistant_id="asst_1", cancel_event=cancel)
        cancel.set()
        assert stream.cancelled
        assert stream.until_done() is None


class TestThreadAndRun:
    @responses.activate
    def test_create_thread_and_run(self, runs):
        responses.add(responses.POST, f"{BASE}/threads/runs", json=run_payload(), status=200)
        thread = {"messages": [{"role": "user", "content": "Hello"}]}
        runs.create_thread_and_run(assistant_id="asst_1", thread=thread)
        assert _body() == {"assistant_id": "asst_1", "thread": thread}

    @responses.activate
    def test_stream_thread_and_run(self, runs):
        responses.add(responses.POST, f"{BASE}/threads/runs", body=STREAM_BODY, status=200)
        stream = runs.stream_thread_and_run(assistant_id="asst_1")
        assert stream.until_done().status is RunStatus.COMPLETED
        assert _body() == {"assistant_id": "asst_1", "stream": True}


class TestToolOutputs:
    PATH = f"{BASE}/threads/thread_1/runs/run_1/submit_tool_outputs"
    OUTPUTS = [{"tool_call_id": "call_1", "output": "22C"}]

    @responses.activate
    def test_submit(self, runs):
        responses.add(responses.POST, self.PATH, json=run_payload(status="in_progress"), status=200)
        run = runs.submit_tool_outputs("thread_1", "run_1", tool_outputs=self.OUTPUTS)
        assert run.status is RunStatus.IN_PROGRESS
        assert _body() == {"tool_outputs": self.OUTPUTS}

    @responses.activate
    def test_submit_with_observer(self, runs):
        responses.add(responses.POST, self.PATH, body=STREAM_BODY, status=200)
        seen = []
        run = runs.submit_tool_outputs("thread_1", "run_1", tool_outputs=self.OUTPUTS, on_event=seen.append)
        assert run.status is RunStatus.COMPLETED
        assert seen
        assert _body() == {"tool_outputs": self.OUTPUTS, "stream": True}

    @responses.activate
    def test_stream_tool_outputs(self, runs):
        responses.add(responses.POST, self.PATH, body=STREAM_BODY, status=200)
        stream = runs.stream_tool_outputs("thread_1", "run_1", tool_outputs=self.OUTPUTS)
        assert isinstance(stream, RunStream)
        stream.until_done()
        assert stream.text == "Hi"
