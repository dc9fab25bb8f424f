from __future__ import annotations

import logging
from typing import Iterable, Optional, Protocol, Sequence

from comment_threads.models import Post, ResolvedThread, Thread
from comment_threads.registry import DEFAULT_API_BASE_URL

logger = logging.getLogger(__name__)

DEFAULT_WEB_BASE_URL = "https://github.com"


class ThreadRegistry(Protocol):
    def list_threads(self) -> Sequence[Thread]: ...

    def create_thread(self, title: str, body: str) -> Thread: ...


def thread_url(project: str, number: int, web_base_url: str = DEFAULT_WEB_BASE_URL) -> str:
    return f"{web_base_url.rstrip('/')}/{project}/issues/{number}"


def reply_endpoint(project: str, number: int, api_base_url: str = DEFAULT_API_BASE_URL) -> str:
    return f"{api_base_url.rstrip('/')}/repos/{project}/issues/{number}/comments"


def find_thread(threads: Iterable[Thread], title: str) -> Optional[Thread]:
    """
    First thread whose title equals `title` exactly, in listing order.

    Later threads with the same title are ignored (logged, not raised).
    """
    match: Optional[Thread] = None
    shadowed: list[int] = []
    for thread in threads:
        if thread.title != title:
            continue
        if match is None:
            match = thread
        else:
            shadowed.append(thread.number)

    if match is not None and shadowed:
        logger.warning(
            "Ambiguous title, using first match: title=%r used=%s ignored=%s",
            title,
            match.number,
            shadowed,
        )
    return match


class Synchronizer:
    """
    Find-or-create one thread per post and bind its identity onto the post.

    Per post: Unresolved -> Listing -> Matched | Creating -> Resolved.
    Registry errors are not caught; the post is left unresolved and the
    caller decides what to do with the build.
    """

    def __init__(
            self,
            registry: ThreadRegistry,
            project: str,
            web_base_url: str = DEFAULT_WEB_BASE_URL,
            api_base_url: str = DEFAULT_API_BASE_URL,
    ):
        self.registry = registry
        self.project = project.strip("/")
        self.web_base_url = web_base_url
        self.api_base_url = api_base_url

    def resolve(self, post: Post) -> ResolvedThread:
        logger.debug("Listing threads for post=%s", post.label())
        threads = self.registry.list_threads()

        thread = find_thread(threads, post.title)
        created = thread is None
        if thread is None:
            logger.info("No thread for post=%s; creating", post.label())
            thread = self.registry.create_thread(post.title, post.summary or "")
        else:
            logger.debug("Matched post=%s to thread=%s", post.label(), thread.number)

        resolved = ResolvedThread(
            thread_number=thread.number,
            thread_url=thread_url(self.project, thread.number, self.web_base_url),
            reply_endpoint=reply_endpoint(self.project, thread.number, self.api_base_url),
            created=created,
        )
        post.bind(resolved)
        return resolved

    def resolve_all(self, posts: Iterable[Post]) -> list[ResolvedThread]:
        """Resolve posts one at a time, in order. Stops at the first error."""
        return [self.resolve(p) for p in posts]
