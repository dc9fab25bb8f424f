from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from comment_threads.errors import PostError, RegistryError
from comment_threads.http_client import HttpClient, HttpConfig
from comment_threads.posts import load_posts, save_post
from comment_threads.registry import GitHubThreadRegistry
from comment_threads.settings import load_settings
from comment_threads.synchronizer import Synchronizer

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s - %(message)s",
)

logger = logging.getLogger(__name__)


def _fail(message: str) -> None:
    print(f"comment thread sync failed: {message}", file=sys.stderr)


def main() -> int:
    """
    Give every post a discussion thread before the site is rendered.

    Any failure stops the run with a non-zero status: a post must not be
    published without a real thread behind it.
    """
    try:
        s = load_settings()
    except ValidationError as e:
        logger.error("Invalid configuration: %s", e)
        _fail(f"configuration: {e}")
        return 2

    logging.getLogger().setLevel(s.log_level)

    http = HttpClient(
        HttpConfig(
            timeout_sec=s.request_timeout_sec,
            user_agent=s.user_agent,
            token=s.github_access_token.get_secret_value(),
        )
    )

    registry = GitHubThreadRegistry(
        project=s.project,
        http=http,
        api_base_url=s.api_base_url,
        per_page=s.per_page,
        labels=s.labels,
    )

    sync = Synchronizer(
        registry,
        project=s.project,
        web_base_url=s.web_base_url,
        api_base_url=s.api_base_url,
    )

    try:
        posts = load_posts(Path(s.posts_dir), s.post_glob)
    except PostError as e:
        logger.error("Cannot load posts: %s", e)
        _fail(f"{e.kind}: {e}")
        return 1

    created = 0
    written = 0
    for post in posts:
        logger.info("Processing %s", post.label())
        try:
            resolved = sync.resolve(post)
            if s.write_back and save_post(post):
                written += 1
        except (RegistryError, PostError) as e:
            logger.error("Build aborted: post=%s kind=%s err=%s", post.label(), e.kind, e)
            _fail(f"post {post.label()}: {e.kind}: {e}")
            return 1

        created += int(resolved.created)
        logger.info("Resolved %s -> issue #%s", post.label(), resolved.thread_number)

    logger.info("Resolved posts: %s created=%s written=%s", len(posts), created, written)

    summary = [
        {
            "path": str(p.path),
            "title": p.title,
            "issue_num": p.thread_number,
            "thread": p.thread_url,
        }
        for p in posts
    ]
    print(json.dumps(summary, ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
