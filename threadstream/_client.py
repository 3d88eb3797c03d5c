"""Client facade for the Assistants API streaming surface."""

from __future__ import annotations

import os

from ._exceptions import AuthenticationError
from ._http import HTTPClient
from ._resources import Runs

DEFAULT_BASE_URL = "https://api.openai.com/v1"


class AssistantsClient:
    """Client for assistant runs.

    Usage:
        client = AssistantsClient(api_key="sk-...")
        run = client.runs.create("thread_1", assistant_id="asst_1", on_event=print)
        print(run.status, run.usage)
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        organization: str | None = None,
        timeout: float = 300,
    ):
        api_key = api_key or os.environ.get("OPENAI_API_KEY")
        if not api_key:
            raise AuthenticationError(
                "No API key provided. Pass api_key= or set OPENAI_API_KEY env var."
            )
        base_url = base_url or os.environ.get("OPENAI_BASE_URL") or DEFAULT_BASE_URL
        organization = organization or os.environ.get("OPENAI_ORGANIZATION")

        self._http = HTTPClient(
            api_key=api_key, base_url=base_url, timeout=timeout, organization=organization
        )
        self.runs = Runs(self._http)

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> AssistantsClient:
        return self

    def __exit__(self, *_: object) -> None:
        self.close()
