"""
tests/test_comments.py
"""
from __future__ import annotations

import smtplib
import uuid

import bloglet.blog as blog
from bloglet.blog import app, create_post, get_db

FORM = {"name": "Ada", "email": "ada@example.org", "comment": "Nice post!\nThanks."}


# ───────────────────────── helpers ────────────────────────────────────
def _add_post() -> str:
    return create_post(title="Commented", content="c", category=None, tags=[], db=get_db())


def _comments(post_id: str) -> list[dict]:
    rows = get_db().execute(
        "SELECT post_id, name, email, comment FROM comment WHERE post_id=? ORDER BY rowid",
        (post_id,),
    ).fetchall()
    return [dict(r) for r in rows]


def _enable_mail(monkeypatch) -> None:
    monkeypatch.setitem(app.config, "MAIL_SERVER", "smtp.test")
    monkeypatch.setitem(app.config, "MAIL_SENDER", "blog@test")
    monkeypatch.setitem(app.config, "MAIL_RECIPIENT", "owner@test")


# ───────────────────────── tests ──────────────────────────────────────
def test_comment_without_mail_config_is_success(client):
    pid = _add_post()
    rv = client.post(f"/post/{pid}/comment", data=FORM)
    assert rv.status_code == 302
    assert rv.headers["Location"].endswith(f"/post/{pid}?comment=success")
    assert _comments(pid) == [{"post_id": pid, **FORM}]


def test_comment_sends_notification(client, monkeypatch):
    _enable_mail(monkeypatch)
    sent = []
    monkeypatch.setattr(blog, "send_mail", sent.append)

    pid = _add_post()
    rv = client.post(f"/post/{pid}/comment", data=FORM)
    assert rv.headers["Location"].endswith("comment=success")

    (msg,) = sent
    assert msg["To"] == "owner@test"
    assert pid in msg["Subject"]
    body = msg.get_content()
    for part in ("Ada", "ada@example.org", "Nice post!", pid):
        assert part in body


def test_failed_notification_keeps_the_comment(client, monkeypatch):
    _enable_mail(monkeypatch)

    ok_pid = _add_post()
    monkeypatch.setattr(blog, "send_mail", lambda msg: None)
    ok = client.post(f"/post/{ok_pid}/comment", data=FORM)

    def _boom(msg):
        raise smtplib.SMTPServerDisconnected("gone")

    bad_pid = _add_post()
    monkeypatch.setattr(blog, "send_mail", _boom)
    bad = client.post(f"/post/{bad_pid}/comment", data=FORM)

    assert ok.headers["Location"].endswith("comment=success")
    assert bad.headers["Location"].endswith("comment=error")

    # identical persisted record either way
    strip = lambda rows: [{k: v for k, v in r.items() if k != "post_id"} for r in rows]
    assert strip(_comments(ok_pid)) == strip(_comments(bad_pid)) == [FORM]


def test_connection_error_counts_as_failure(client, monkeypatch):
    _enable_mail(monkeypatch)

    class _NoServer:
        def __init__(self, *a, **kw):
            raise ConnectionRefusedError("nobody home")

    monkeypatch.setattr(smtplib, "SMTP", _NoServer)
    pid = _add_post()
    rv = client.post(f"/post/{pid}/comment", data=FORM)
    assert rv.headers["Location"].endswith("comment=error")
    assert len(_comments(pid)) == 1


def test_comment_on_missing_post_is_still_stored(client):
    ghost = uuid.uuid4().hex
    client.post(f"/post/{ghost}/comment", data=FORM)
    assert _comments(ghost) == [{"post_id": ghost, **FORM}]


def test_comment_status_banner_and_order(client):
    pid = _add_post()
    client.post(f"/post/{pid}/comment", data={**FORM, "comment": "first"})
    client.post(f"/post/{pid}/comment", data={**FORM, "comment": "second"})

    html = client.get(f"/post/{pid}?comment=error").data.decode()
    assert "could not notify" in html
    assert html.index("second") < html.index("first")     # newest first


def test_send_mail_uses_starttls_and_login(monkeypatch):
    calls = []

    class _FakeSMTP:
        def __init__(self, host, port, timeout=None):
            calls.append(("connect", host, port))

        def __enter__(self):
            return self

        def __exit__(self, *exc):
            return False

        def starttls(self):
            calls.append(("starttls",))

        def login(self, user, password):
            calls.append(("login", user, password))

        def send_message(self, msg):
            calls.append(("send", msg["Subject"]))

    monkeypatch.setattr(smtplib, "SMTP", _FakeSMTP)
    monkeypatch.setitem(app.config, "MAIL_SERVER", "smtp.test")
    monkeypatch.setitem(app.config, "MAIL_PORT", 2525)
    monkeypatch.setitem(app.config, "MAIL_USE_TLS", True)
    monkeypatch.setitem(app.config, "MAIL_USERNAME", "bot")
    monkeypatch.setitem(app.config, "MAIL_PASSWORD", "pw")

    with app.app_context():
        msg = blog.comment_email(
            {"post_id": "p1", "name": "n", "email": "e", "comment": "c"}
        )
        blog.send_mail(msg)

    assert calls == [
        ("connect", "smtp.test", 2525),
        ("starttls",),
        ("login", "bot", "pw"),
        ("send", "New comment on post p1"),
    ]
