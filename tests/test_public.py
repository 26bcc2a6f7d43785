"""
tests/test_public.py
"""
from __future__ import annotations

import re
import sqlite3
import uuid

import bloglet.blog as blog
from bloglet.blog import create_category, create_post, get_db, recent_posts

CARD_RE = re.compile(r'<article class="post-card">.*?href="/post/([0-9a-f]{32})"', re.S)


# ───────────────────────── helpers ────────────────────────────────────
def _add_post(*, title: str | None = None, content: str = "body",
              category: str | None = None, tags: list[str] | None = None) -> str:
    return create_post(
        title=title or f"post-{uuid.uuid4().hex[:8]}",
        content=content,
        category=category,
        tags=tags or [],
        db=get_db(),
    )


def _card_ids(html: str) -> list[str]:
    """Post ids of the main listing, in page order (sidebars excluded)."""
    return CARD_RE.findall(html)


# ───────────────────────── index ──────────────────────────────────────
def test_index_shows_six_newest(client):
    ids = [_add_post() for _ in range(7)]

    html = client.get("/").data.decode()
    assert _card_ids(html) == list(reversed(ids))[:6]


def test_index_lists_categories_by_name(client):
    tag = uuid.uuid4().hex[:6]
    create_category(f"Zeta {tag}", db=get_db())
    create_category(f"Alpha {tag}", db=get_db())

    html = client.get("/").data.decode()
    assert html.index(f"Alpha {tag}") < html.index(f"Zeta {tag}")


def test_index_popular_box_is_view_ordered(client):
    db = get_db()
    hot = _add_post(title="Hot one")
    db.execute("UPDATE post SET views = 1000000 WHERE id=?", (hot,))
    db.commit()

    html = client.get("/").data.decode()
    side = re.findall(r'<li class="side-post"><a href="/post/([0-9a-f]{32})"', html)
    assert len(side) <= 3
    assert side[0] == hot


def test_index_fails_soft_on_store_error(client, monkeypatch):
    def _broken(**_kw):
        raise sqlite3.OperationalError("database is locked")

    monkeypatch.setattr(blog, "recent_posts", _broken)
    rv = client.get("/")
    assert rv.status_code == 200
    assert b"No posts yet." in rv.data


# ───────────────────────── search ─────────────────────────────────────
def test_search_without_query_lists_everything(client):
    for _ in range(7):
        _add_post()

    html = client.get("/search").data.decode()
    expected = [r["id"] for r in recent_posts(db=get_db())]
    assert len(expected) > 6                # not the 6-post home slice
    assert _card_ids(html) == expected
    assert 'data-query=""' in html


def test_blank_query_is_treated_as_missing(client):
    html = client.get("/search?q=%20%20").data.decode()
    assert _card_ids(html) == [r["id"] for r in recent_posts(db=get_db())]


def test_search_matches_title_content_and_tags_case_insensitively(client):
    kw = f"Needle{uuid.uuid4().hex[:6]}"
    in_title = _add_post(title=f"A {kw} story")
    in_body = _add_post(content=f"deep inside: {kw.upper()}")
    in_tag = _add_post(tags=["misc", kw.lower()])
    _add_post(content="nothing to see")

    html = client.get(f"/search?q={kw.lower()}").data.decode()
    assert _card_ids(html) == [in_tag, in_body, in_title]    # newest first


def test_search_is_substring_not_token(client):
    pid = _add_post(content="unbelievable")
    html = client.get("/search?q=BELIEV").data.decode()
    assert pid in _card_ids(html)


def test_search_treats_like_wildcards_literally(client):
    _add_post(content="plain text only")
    html = client.get("/search?q=%25").data.decode()     # a literal "%"
    assert "plain text only" not in html


def test_search_fails_soft(client, monkeypatch):
    def _broken(*_a, **_kw):
        raise sqlite3.OperationalError("no such table: post")

    monkeypatch.setattr(blog, "search_posts", _broken)
    rv = client.get("/search?q=anything")
    assert rv.status_code == 200
    assert b"Nothing matched." in rv.data


# ───────────────────────── category ───────────────────────────────────
def test_category_filters_exact_slug(client):
    slug = f"cat-{uuid.uuid4().hex[:6]}"
    a = _add_post(category=slug)
    b = _add_post(category=slug)
    _add_post(category=slug.upper())        # different case → different slug
    _add_post(category=None)

    html = client.get(f"/category/{slug}").data.decode()
    assert _card_ids(html) == [b, a]


def test_category_page_uses_category_name(client):
    create_category("Long Reads", db=get_db())
    rv = client.get("/category/long-reads")
    assert b"<h2>Long Reads</h2>" in rv.data
