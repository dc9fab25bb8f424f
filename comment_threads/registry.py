from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

from comment_threads.errors import RegistryUnavailable
from comment_threads.http_client import HttpClient
from comment_threads.models import Thread

logger = logging.getLogger(__name__)

DEFAULT_API_BASE_URL = "https://api.github.com"


class GitHubThreadRegistry:
    """
    Threads of one GitHub project, backed by its issues.

    Scope:
    - List: GET /repos/<project>/issues (all states, every page)
    - Create: POST /repos/<project>/issues

    Every call goes to the network. Errors are raised as RegistryError
    subclasses and never handled here.
    """

    def __init__(
            self,
            project: str,
            http: HttpClient,
            api_base_url: str = DEFAULT_API_BASE_URL,
            per_page: int = 100,
            state: str = "all",
            labels: Sequence[str] = (),
    ):
        self.project = project.strip("/")
        self.http = http
        self.api_base_url = api_base_url.rstrip("/")
        self.per_page = per_page
        self.state = state
        self.labels = list(labels)

    @property
    def issues_url(self) -> str:
        return f"{self.api_base_url}/repos/{self.project}/issues"

    def list_threads(self) -> list[Thread]:
        """
        Fetch every thread of the project, in listing order.

        Pagination follows the Link: rel="next" header until it runs out;
        nothing is returned unless all pages were read.
        """
        threads: list[Thread] = []
        url: Optional[str] = self.issues_url
        params: Optional[dict[str, Any]] = {"state": self.state, "per_page": self.per_page}
        pages = 0

        while url:
            items, next_url = self.http.get_page(url, params=params)
            pages += 1
            if not isinstance(items, list):
                raise RegistryUnavailable(f"Expected a JSON list from {url}, got {type(items).__name__}")

            for item in items:
                # The issues endpoint also returns pull requests
                if "pull_request" in item:
                    continue
                threads.append(_thread_from_json(item))

            # next links already carry the query string
            url, params = next_url, None

        logger.info("Listed threads: project=%s count=%s pages=%s", self.project, len(threads), pages)
        return threads

    def create_thread(self, title: str, body: str) -> Thread:
        payload: dict[str, Any] = {"title": title, "body": body}
        if self.labels:
            payload["labels"] = self.labels

        logger.info("Creating thread: project=%s title=%r", self.project, title)
        item = self.http.post_json(self.issues_url, payload)
        if not isinstance(item, dict):
            raise RegistryUnavailable(f"Expected a JSON object from {self.issues_url}")

        thread = _thread_from_json(item)
        logger.info("Created thread: project=%s number=%s", self.project, thread.number)
        return thread


def _thread_from_json(item: dict[str, Any]) -> Thread:
    try:
        number = int(item["number"])
    except (KeyError, TypeError, ValueError) as e:
        raise RegistryUnavailable(f"Thread record without a usable number: {item!r:.200}") from e

    return Thread(
        number=number,
        title=item.get("title") or "",
        body=item.get("body") or "",
    )
