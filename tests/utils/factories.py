"""Payload factories for run stream events."""

from typing import Any


def run_payload(run_id: str = "run_1", status: str = "queued", **extra: Any) -> dict:
    return {
        "id": run_id,
        "object": "thread.run",
        "thread_id": "thread_1",
        "assistant_id": "asst_1",
        "status": status,
        **extra,
    }


def step_payload(step_id: str = "step_1", status: str = "in_progress", **extra: Any) -> dict:
    return {
        "id": step_id,
        "object": "thread.run.step",
        "run_id": "run_1",
        "thread_id": "thread_1",
        "assistant_id": "asst_1",
        "status": status,
        **extra,
    }


def message_payload(msg_id: str = "msg_1", status: str = "in_progress", **extra: Any) -> dict:
    return {
        "id": msg_id,
        "object": "thread.message",
        "thread_id": "thread_1",
        "run_id": "run_1",
        "assistant_id": "asst_1",
        "role": "assistant",
        "status": status,
        "content": [],
        **extra,
    }


def text_delta(msg_id: str, value: str, index: int = 0, annotations: list | None = None) -> dict:
    text: dict[str, Any] = {"value": value}
    if annotations is not None:
        text["annotations"] = annotations
    return {
        "id": msg_id,
        "object": "thread.message.delta",
        "delta": {"content": [{"index": index, "type": "text", "text": text}]},
    }


def citation(index: int, file_id: str, start: int = 0) -> dict:
    return {
        "index": index,
        "type": "file_citation",
        "text": f"【{index}†source】",
        "start_index": start,
        "end_index": start + 10,
        "file_citation": {"file_id": file_id},
    }


def tool_call_delta(step_id: str, index: int, **call: Any) -> dict:
    return {
        "id": step_id,
        "object": "thread.run.step.delta",
        "delta": {
            "step_details": {"type": "tool_calls", "tool_calls": [{"index": index, **call}]}
        },
    }
