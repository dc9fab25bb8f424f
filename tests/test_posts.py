from __future__ import annotations

from pathlib import Path

import frontmatter
import pytest

from comment_threads.errors import PostError
from comment_threads.models import Post, ResolvedThread
from comment_threads.posts import load_post, load_posts, save_post, upsert_front_matter


def _write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def _resolved(n: int) -> ResolvedThread:
    return ResolvedThread(
        thread_number=n,
        thread_url=f"https://github.com/org/repo/issues/{n}",
        reply_endpoint=f"https://api.github.com/repos/org/repo/issues/{n}/comments",
    )


def test_load_post_reads_title_and_summary(tmp_path):
    path = _write(
        tmp_path / "2024-01-01-hello.md",
        "---\ntitle: Hello world\nsummary: First post\nlayout: post\n---\nBody text\n",
    )
    post = load_post(path)

    assert post.title == "Hello world"
    assert post.summary == "First post"
    assert post.body.strip() == "Body text"
    assert post.data["layout"] == "post"
    assert not post.is_resolved


def test_load_post_missing_summary_is_empty(tmp_path):
    path = _write(tmp_path / "a.md", "---\ntitle: A\n---\n")
    assert load_post(path).summary == ""


def test_load_post_non_string_title_is_stringified(tmp_path):
    path = _write(tmp_path / "a.md", "---\ntitle: 2024\n---\n")
    assert load_post(path).title == "2024"


def test_load_post_quoted_boolean_word_is_kept(tmp_path):
    path = _write(tmp_path / "a.md", "---\ntitle: 'No'\n---\n")
    assert load_post(path).title == "No"


@pytest.mark.parametrize(
    "text",
    [
        "no front matter\n",
        "---\nsummary: s\n---\n",
        "---\ntitle: ''\n---\n",
        "---\ntitle: [a, b\n---\n",
        "---\ntitle: No\n---\n",
        "---\ntitle: yes\n---\n",
    ],
)
def test_load_post_invalid_inputs(tmp_path, text):
    path = _write(tmp_path / "bad.md", text)
    with pytest.raises(PostError) as exc_info:
        load_post(path)
    assert exc_info.value.path == str(path)


def test_load_posts_is_sorted_and_recursive(tmp_path):
    _write(tmp_path / "b.md", "---\ntitle: B\n---\n")
    _write(tmp_path / "2023" / "a.md", "---\ntitle: A\n---\n")
    _write(tmp_path / "notes.txt", "ignored")

    posts = load_posts(tmp_path)
    assert [p.title for p in posts] == ["A", "B"]


def test_load_posts_skips_unpublished(tmp_path):
    _write(tmp_path / "2024-01-01-draft.md", "---\ntitle: Secret draft\npublished: false\n---\n")
    _write(tmp_path / "2024-01-02-live.md", "---\ntitle: Live\npublished: true\n---\n")
    _write(tmp_path / "2024-01-03-plain.md", "---\ntitle: Plain\n---\n")

    posts = load_posts(tmp_path)
    assert [p.title for p in posts] == ["Live", "Plain"]


def test_load_posts_missing_dir(tmp_path):
    with pytest.raises(PostError):
        load_posts(tmp_path / "nope")


def test_save_post_writes_thread_keys_and_keeps_rest(tmp_path):
    path = _write(tmp_path / "a.md", "---\ntitle: A\nlayout: post\n---\nBody\n")
    post = load_post(path)
    post.bind(_resolved(7))

    assert save_post(post) is True

    assert path.read_text(encoding="utf-8") == (
        "---\n"
        "title: A\n"
        "layout: post\n"
        "issue_num: 7\n"
        "thread: https://github.com/org/repo/issues/7\n"
        "comment_endpoint: https://api.github.com/repos/org/repo/issues/7/comments\n"
        "---\n"
        "Body\n"
    )


def test_save_post_keeps_comments_and_flow_lists(tmp_path):
    path = _write(tmp_path / "a.md", "---\n# layout comment\ntitle: A\ntags: [x, y]\ndate: 2024-01-01\n---\nBody\n")
    post = load_post(path)
    post.bind(_resolved(1))
    save_post(post)

    text = path.read_text(encoding="utf-8")
    assert text.startswith("---\n# layout comment\ntitle: A\ntags: [x, y]\ndate: 2024-01-01\nissue_num: 1\n")
    assert text.endswith("---\nBody\n")


def test_save_post_replaces_stale_keys_in_place(tmp_path):
    path = _write(
        tmp_path / "a.md",
        "---\ntitle: A\nissue_num: 2  # old\nthread: https://github.com/org/repo/issues/2\nlayout: post\n---\n",
    )
    post = load_post(path)
    post.bind(_resolved(5))
    save_post(post)

    doc = frontmatter.load(path)
    assert doc.metadata["issue_num"] == 5
    assert doc.metadata["thread"] == "https://github.com/org/repo/issues/5"
    assert doc.metadata["comment_endpoint"].endswith("/issues/5/comments")
    lines = path.read_text(encoding="utf-8").splitlines()
    assert lines[2] == "issue_num: 5"
    assert lines[4] == "layout: post"


def test_save_post_is_noop_when_unchanged(tmp_path):
    path = _write(tmp_path / "a.md", "---\ntitle: A\n---\n")
    post = load_post(path)
    post.bind(_resolved(1))
    assert save_post(post) is True

    again = load_post(path)
    again.bind(_resolved(1))
    before = path.stat().st_mtime_ns
    assert save_post(again) is False
    assert path.stat().st_mtime_ns == before


def test_save_post_requires_resolution(tmp_path):
    post = Post(title="A", path=tmp_path / "a.md")
    with pytest.raises(ValueError):
        save_post(post)


def test_upsert_front_matter_quotes_values_yaml_needs_quoted():
    out = upsert_front_matter("---\ntitle: A\n---\n", {"thread": "yes"})
    assert out == "---\ntitle: A\nthread: 'yes'\n---\n"


def test_upsert_front_matter_requires_a_block():
    with pytest.raises(ValueError):
        upsert_front_matter("just text\n", {"thread": "x"})
