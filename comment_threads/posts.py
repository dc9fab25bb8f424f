from __future__ import annotations

import logging
import re
from datetime import date, datetime
from pathlib import Path
from typing import Any

import frontmatter
import yaml
from frontmatter.default_handlers import YAMLHandler

from comment_threads.errors import PostError
from comment_threads.models import Post

logger = logging.getLogger(__name__)

# Front matter keys the site templates read
ISSUE_NUM_KEY = "issue_num"
THREAD_KEY = "thread"
COMMENT_ENDPOINT_KEY = "comment_endpoint"

_FENCE_RE = YAMLHandler.FM_BOUNDARY


def load_post(path: Path) -> Post:
    """
    Read one post file.

    Raises:
        PostError: unreadable file, bad front matter, or missing/empty title
    """
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise PostError(str(path), f"cannot read: {e}") from e

    if not frontmatter.checks(text):
        raise PostError(str(path), "no front matter block")
    try:
        doc = frontmatter.loads(text)
    except (yaml.YAMLError, TypeError) as e:
        raise PostError(str(path), f"invalid front matter: {e}") from e

    fm = dict(doc.metadata)
    title = fm.get("title")
    if title is None or isinstance(title, (dict, list)):
        raise PostError(str(path), "missing title")
    # YAML reads unquoted yes/no/on/off as booleans
    if isinstance(title, bool):
        raise PostError(str(path), f"title parsed as boolean {title}; quote it")
    title = _scalar_to_str(title)
    if not title:
        raise PostError(str(path), "empty title")

    summary = fm.get("summary")
    summary = "" if summary is None else _scalar_to_str(summary)

    return Post(title=title, summary=summary, path=path, data=fm, body=doc.content)


def is_published(post: Post) -> bool:
    """Posts with `published: false` are never rendered, so they get no thread."""
    return post.data.get("published", True) is not False


def load_posts(posts_dir: Path, pattern: str = "*.md") -> list[Post]:
    """Load every published post under posts_dir (recursive), sorted by path."""
    if not posts_dir.is_dir():
        raise PostError(str(posts_dir), "posts directory not found")

    paths = sorted(p for p in posts_dir.rglob(pattern) if p.is_file())
    posts = []
    for path in paths:
        post = load_post(path)
        if not is_published(post):
            logger.info("Skipping unpublished post: %s", post.label())
            continue
        posts.append(post)

    logger.info("Loaded posts: dir=%s count=%s skipped=%s", posts_dir, len(posts), len(paths) - len(posts))
    return posts


def upsert_front_matter(text: str, values: dict[str, Any]) -> str:
    """
    Set top-level keys in the front matter of `text`, touching nothing else.

    Existing lines for those keys are replaced in place, missing keys are
    appended before the closing fence. Comments, quoting and flow style of
    the other keys, and the body, come back byte for byte.
    """
    fences = list(_FENCE_RE.finditer(text))
    if len(fences) < 2 or text[: fences[0].start()].strip("\ufeff \t\r\n"):
        raise ValueError("text has no front matter block")
    opening, closing = fences[0], fences[1]

    block = text[opening.end():closing.start()]
    lines = block.splitlines(keepends=True)
    pending = dict(values)

    for i, line in enumerate(lines):
        m = re.match(r"^([A-Za-z_][\w-]*)\s*:", line)
        if m and m.group(1) in pending:
            key = m.group(1)
            lines[i] = _render_line(key, pending.pop(key))

    if lines and not lines[-1].endswith("\n"):
        lines[-1] += "\n"
    elif not lines:
        lines = ["\n"]
    lines.extend(_render_line(k, v) for k, v in pending.items())

    return text[: opening.end()] + "".join(lines) + text[closing.start():]


def save_post(post: Post) -> bool:
    """
    Write the resolved thread fields into the post's front matter.

    Only the three thread keys are edited in the file's text. The file is
    only rewritten when a value changed.

    Returns:
        True if the file was rewritten
    """
    if post.path is None:
        raise ValueError("Post has no path to save to")
    if not post.is_resolved:
        raise ValueError(f"Post is not resolved: {post.label()}")

    wanted = {
        ISSUE_NUM_KEY: post.thread_number,
        THREAD_KEY: post.thread_url,
        COMMENT_ENDPOINT_KEY: post.reply_endpoint,
    }
    if all(post.data.get(k) == v for k, v in wanted.items()):
        return False

    try:
        text = post.path.read_text(encoding="utf-8")
        post.path.write_text(upsert_front_matter(text, wanted), encoding="utf-8")
    except (OSError, ValueError) as e:
        raise PostError(str(post.path), f"cannot write: {e}") from e

    post.data.update(wanted)
    logger.info("Wrote thread metadata: post=%s issue=%s", post.path, post.thread_number)
    return True


def _render_line(key: str, value: Any) -> str:
    return yaml.safe_dump({key: value}, default_flow_style=False, allow_unicode=True, width=4096)


def _scalar_to_str(value: Any) -> str:
    # YAML turns unquoted dates and numbers into non-strings
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)
