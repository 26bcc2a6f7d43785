#!/usr/bin/env python3
"""
A single-file blog with categories, comments, likes and a small admin area.
"""

import os
import re
import secrets
import smtplib
import sqlite3
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from email.message import EmailMessage
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from time import time
from urllib.parse import parse_qs
from zoneinfo import ZoneInfo, available_timezones

import boto3
import click
import markdown
from botocore.exceptions import BotoCoreError, ClientError
from flask import (
    Flask,
    abort,
    flash,
    g,
    redirect,
    render_template_string,
    request,
    send_from_directory,
    session,
    url_for,
)
from markupsafe import Markup
from werkzeug.middleware.proxy_fix import ProxyFix
from werkzeug.utils import secure_filename

################################################################################
# Imports & constants
################################################################################

ROOT = Path(__file__).parent
DB_FILE = ROOT / "blog.sqlite3"
UPLOAD_DIR = ROOT / "uploads"

ENV_FILE = ROOT / ".env"
SECRET_FILE = ROOT / ".secret_key"
SECRET_KEY = os.environ.get("BLOGLET_SECRET_KEY") or (
    SECRET_FILE.read_text().strip() if SECRET_FILE.exists() else secrets.token_hex(32)
)
if "BLOGLET_SECRET_KEY" not in os.environ:
    SECRET_FILE.write_text(SECRET_KEY)

HOME_RECENT = 6  # posts on the front page
SIDEBAR_COUNT = 3  # popular / recent boxes
EXCERPT_LEN = 220
SQLITE_TIMEOUT = 10
MAIL_TIMEOUT = 10
UPLOAD_MAX_BYTES = 32 * 1024 * 1024
COUNTER_COLUMNS = ("views", "likes")

R2_ENV_KEYS = (
    "R2_ACCOUNT_ID",
    "R2_ACCESS_KEY_ID",
    "R2_SECRET_ACCESS_KEY",
    "R2_BUCKET",
    "R2_PUBLIC_BASE",
    "R2_ENDPOINT",
)
R2_REQUIRED_KEYS = (
    "R2_ACCOUNT_ID",
    "R2_ACCESS_KEY_ID",
    "R2_SECRET_ACCESS_KEY",
    "R2_BUCKET",
)

SAFE_METHODS = {"GET", "HEAD", "OPTIONS", "TRACE"}
OVERRIDE_METHODS = {"PUT", "PATCH", "DELETE"}
_MD_STRIP_RE = re.compile(r"[#*_`>~\[\]]|!\[[^\]]*\]\([^)]*\)|\(https?://[^)]*\)")

_SCHEMA_READY: set[str] = set()

try:
    __version__ = version("bloglet")
except PackageNotFoundError:
    __version__ = "0.1.0-dev"


def _env_flag(name: str, default: bool) -> bool:
    val = os.environ.get(name)
    if val is None:
        return default
    return val.strip().lower() not in {"", "0", "false", "no", "off"}


################################################################################
# App + template filters
################################################################################
app = Flask(__name__)
app.url_map.strict_slashes = False
app.config.update(
    SECRET_KEY=SECRET_KEY,
    DATABASE=os.environ.get("BLOGLET_DATABASE", str(DB_FILE)),
    PORT=int(os.environ.get("PORT", "3000")),
    SITE_NAME=os.environ.get("BLOGLET_SITE_NAME", "bloglet"),
    TIMEZONE=os.environ.get("BLOGLET_TIMEZONE", "UTC"),
    ADMIN_USERNAME=os.environ.get("ADMIN_USERNAME", "admin"),
    ADMIN_PASSWORD=os.environ.get("ADMIN_PASSWORD", "admin123"),
    UPLOAD_FOLDER=os.environ.get("UPLOAD_FOLDER", str(UPLOAD_DIR)),
    MAX_CONTENT_LENGTH=UPLOAD_MAX_BYTES,
    MAIL_SERVER=os.environ.get("MAIL_SERVER", ""),
    MAIL_PORT=int(os.environ.get("MAIL_PORT", "587")),
    MAIL_USERNAME=os.environ.get("MAIL_USERNAME", ""),
    MAIL_PASSWORD=os.environ.get("MAIL_PASSWORD", ""),
    MAIL_USE_TLS=_env_flag("MAIL_USE_TLS", True),
)
app.config.update(
    MAIL_SENDER=os.environ.get("MAIL_SENDER")
    or app.config["MAIL_USERNAME"]
    or "bloglet@localhost",
)
app.config.update(
    MAIL_RECIPIENT=os.environ.get("MAIL_RECIPIENT") or app.config["MAIL_SENDER"],
    SESSION_COOKIE_SAMESITE="Lax",  # blocks most CSRF on simple links
    SESSION_COOKIE_HTTPONLY=True,
    SESSION_COOKIE_SECURE=_env_flag("SESSION_COOKIE_SECURE", False),
)


class MethodOverrideMiddleware:
    """
    Let HTML forms tunnel PUT / PATCH / DELETE through a POST.

    The wanted verb comes from the ``X-HTTP-Method-Override`` header or the
    ``_method`` query-string parameter (``/admin/posts/<id>?_method=PUT``).
    The body is never read here, so uploads stay untouched.
    """

    def __init__(self, wsgi_app, param: str = "_method"):
        self.wsgi_app = wsgi_app
        self.param = param

    def __call__(self, environ, start_response):
        if environ.get("REQUEST_METHOD", "").upper() == "POST":
            wanted = environ.get("HTTP_X_HTTP_METHOD_OVERRIDE", "")
            if not wanted:
                qs = parse_qs(environ.get("QUERY_STRING", ""))
                wanted = (qs.get(self.param) or [""])[0]
            wanted = wanted.strip().upper()
            if wanted in OVERRIDE_METHODS:
                environ["REQUEST_METHOD"] = wanted
                environ["bloglet.method_override"] = "POST"
        return self.wsgi_app(environ, start_response)


app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1)
app.wsgi_app = MethodOverrideMiddleware(app.wsgi_app)

MD_EXTENSION_CONFIGS = {
    "pymdownx.highlight": {
        "guess_lang": False,
        "noclasses": True,
        "pygments_style": "nord",
    },
}
BASE_MD_EXTENSIONS = [
    "pymdownx.extra",
    "pymdownx.magiclink",
    "pymdownx.tilde",
    "pymdownx.superfences",
    "pymdownx.highlight",
    "pymdownx.betterem",
]

md = markdown.Markdown(
    extensions=BASE_MD_EXTENSIONS,
    extension_configs=MD_EXTENSION_CONFIGS,
)


def render_markdown_html(text: str | None) -> str:
    md.reset()
    return md.convert(text or "")


@app.template_filter("md")
def md_filter(text: str | None) -> Markup:
    """Render post content (Markdown) to HTML."""
    return Markup(render_markdown_html(text))


@app.template_filter("excerpt")
def excerpt_filter(text: str | None, length: int = EXCERPT_LEN) -> str:
    plain = _MD_STRIP_RE.sub("", text or "")
    plain = re.sub(r"\s+", " ", plain).strip()
    if len(plain) <= length:
        return plain
    return f"{plain[:length].rstrip()}…"


def tz_name() -> str:
    tz = app.config.get("TIMEZONE", "UTC")
    return tz if tz in available_timezones() else "UTC"


@app.template_filter("ts")
def ts_filter(iso: str | None) -> str:
    if not iso:
        return ""
    try:
        dt = datetime.fromisoformat(iso)
    except ValueError:
        return iso
    return dt.astimezone(ZoneInfo(tz_name())).strftime("%Y.%m.%d %H:%M")


###############################################################################
# Database helpers
###############################################################################
def icontains(haystack: str | None, needle: str | None) -> int:
    """Case-insensitive substring test, registered as an SQL function."""
    if not haystack or not needle:
        return 0
    return int(needle.casefold() in haystack.casefold())


def get_db():
    if "db" not in g:
        path = app.config["DATABASE"]
        g.db = sqlite3.connect(path, timeout=SQLITE_TIMEOUT)
        g.db.row_factory = sqlite3.Row
        g.db.create_function("icontains", 2, icontains, deterministic=True)
        if path not in _SCHEMA_READY:
            create_schema(g.db)
            _SCHEMA_READY.add(path)
    return g.db


@app.teardown_appcontext
def close_db(error=None):
    db = g.pop("db", None)
    if db is not None:
        db.close()


def create_schema(db) -> None:
    """Create every table; safe to run against an existing database."""
    db.executescript(
        """
        PRAGMA journal_mode = WAL;

        ------------------------------------------------------------
        -- 1.  Posts
        ------------------------------------------------------------
        CREATE TABLE IF NOT EXISTS post (
            id           TEXT PRIMARY KEY,
            title        TEXT NOT NULL DEFAULT '',
            content      TEXT NOT NULL DEFAULT '',
            category     TEXT,                      -- category *slug*, no FK
            image        TEXT,
            image_source TEXT,                      -- upload | external
            views        INTEGER NOT NULL DEFAULT 0,
            likes        INTEGER NOT NULL DEFAULT 0,
            created_at   TEXT NOT NULL
        );

        CREATE INDEX IF NOT EXISTS idx_post_created  ON post(created_at);
        CREATE INDEX IF NOT EXISTS idx_post_category ON post(category);

        ------------------------------------------------------------
        -- 2.  Tags (ordered, per post)
        ------------------------------------------------------------
        CREATE TABLE IF NOT EXISTS post_tag (
            post_id TEXT    NOT NULL,
            ord     INTEGER NOT NULL,
            name    TEXT    NOT NULL,
            PRIMARY KEY (post_id, ord)
        );

        ------------------------------------------------------------
        -- 3.  Categories
        ------------------------------------------------------------
        CREATE TABLE IF NOT EXISTS category (
            id         TEXT PRIMARY KEY,
            name       TEXT NOT NULL,
            slug       TEXT NOT NULL,               -- not unique
            created_at TEXT NOT NULL
        );

        ------------------------------------------------------------
        -- 4.  Comments
        ------------------------------------------------------------
        CREATE TABLE IF NOT EXISTS comment (
            id         TEXT PRIMARY KEY,
            post_id    TEXT NOT NULL,               -- no FK, may dangle
            name       TEXT,
            email      TEXT,
            comment    TEXT,
            created_at TEXT NOT NULL
        );

        CREATE INDEX IF NOT EXISTS idx_comment_post ON comment(post_id, created_at);
        """
    )
    db.commit()


def init_db():
    create_schema(get_db())


# -------------------------------------------------------------------------
# Time helpers
# -------------------------------------------------------------------------
def utc_now() -> datetime:
    """Return an *aware* datetime in UTC."""
    return datetime.now(timezone.utc)


def now_iso() -> str:
    return utc_now().isoformat(timespec="seconds")


def new_id() -> str:
    return uuid.uuid4().hex


###############################################################################
# Content helpers
###############################################################################
def category_slug(name: str) -> str:
    """'My Category' → 'my-category'. Only spaces are replaced."""
    return name.lower().replace(" ", "-")


def parse_tags(raw: str | None) -> list[str]:
    """Split a comma-separated tag string, trimming and dropping empties."""
    return [t.strip() for t in (raw or "").split(",") if t.strip()]


def post_tags(post_id: str, *, db) -> list[str]:
    rows = db.execute(
        "SELECT name FROM post_tag WHERE post_id=? ORDER BY ord", (post_id,)
    ).fetchall()
    return [r["name"] for r in rows]


def sync_post_tags(post_id: str, tags: list[str], *, db) -> None:
    """Replace the tag list of *post_id*. Caller commits."""
    db.execute("DELETE FROM post_tag WHERE post_id=?", (post_id,))
    db.executemany(
        "INSERT INTO post_tag (post_id, ord, name) VALUES (?,?,?)",
        [(post_id, idx, name) for idx, name in enumerate(tags)],
    )


POST_ORDER = "ORDER BY p.created_at DESC, p.rowid DESC"


def recent_posts(*, db, limit: int | None = None):
    sql = f"SELECT p.* FROM post p {POST_ORDER}"
    if limit is None:
        return db.execute(sql).fetchall()
    return db.execute(f"{sql} LIMIT ?", (limit,)).fetchall()


def popular_posts(*, db, limit: int = SIDEBAR_COUNT):
    return db.execute(
        "SELECT p.* FROM post p ORDER BY p.views DESC, p.created_at DESC LIMIT ?",
        (limit,),
    ).fetchall()


def all_categories(*, db):
    return db.execute(
        "SELECT * FROM category ORDER BY name ASC, created_at ASC"
    ).fetchall()


def posts_in_category(slug: str, *, db):
    return db.execute(
        f"SELECT p.* FROM post p WHERE p.category = ? {POST_ORDER}", (slug,)
    ).fetchall()


def search_posts(q: str, *, db):
    """
    Case-insensitive substring match on title, content or any tag.
    No ranking: newest first.
    """
    return db.execute(
        f"""
        SELECT p.*
          FROM post p
         WHERE icontains(p.title, :q)
            OR icontains(p.content, :q)
            OR EXISTS (SELECT 1 FROM post_tag t
                        WHERE t.post_id = p.id AND icontains(t.name, :q))
        {POST_ORDER}
        """,
        {"q": q},
    ).fetchall()


def get_post(post_id: str, *, db):
    return db.execute("SELECT * FROM post WHERE id=?", (post_id,)).fetchone()


def get_category(category_id: str, *, db):
    return db.execute("SELECT * FROM category WHERE id=?", (category_id,)).fetchone()


def post_comments(post_id: str, *, db):
    return db.execute(
        "SELECT * FROM comment WHERE post_id=? ORDER BY created_at DESC, rowid DESC",
        (post_id,),
    ).fetchall()


def increment_counter(post_id: str, column: str, *, db) -> bool:
    """
    Bump ``views`` or ``likes`` by one in a single UPDATE statement.
    Returns True if a post row was touched.
    """
    if column not in COUNTER_COLUMNS:
        raise ValueError(f"not a counter column: {column}")
    cur = db.execute(
        f"UPDATE post SET {column} = {column} + 1 WHERE id=?", (post_id,)
    )
    db.commit()
    return cur.rowcount == 1


def create_post(
    *,
    title: str,
    content: str,
    category: str | None,
    tags: list[str],
    image=None,
    db,
) -> str:
    post_id = new_id()
    db.execute(
        """INSERT INTO post (id, title, content, category, image, image_source, created_at)
                  VALUES (?,?,?,?,?,?,?)""",
        (
            post_id,
            title,
            content,
            category,
            image.src if image else None,
            image.source if image else None,
            now_iso(),
        ),
    )
    sync_post_tags(post_id, tags, db=db)
    db.commit()
    return post_id


def create_category(name: str, *, db) -> str:
    category_id = new_id()
    db.execute(
        "INSERT INTO category (id, name, slug, created_at) VALUES (?,?,?,?)",
        (category_id, name, category_slug(name), now_iso()),
    )
    db.commit()
    return category_id


###############################################################################
# Media store
###############################################################################
@dataclass(frozen=True)
class UploadedImage:
    """Bytes we stored ourselves (local folder or R2 bucket)."""

    path: str
    source = "upload"

    @property
    def src(self) -> str:
        return self.path


@dataclass(frozen=True)
class ExternalImage:
    """A URL somebody pasted into the form."""

    url: str
    source = "external"

    @property
    def src(self) -> str:
        return self.url


def image_from_row(row) -> UploadedImage | ExternalImage | None:
    if row is None or not row["image"]:
        return None
    if row["image_source"] == ExternalImage.source:
        return ExternalImage(row["image"])
    return UploadedImage(row["image"])


def _read_env_file() -> dict[str, str]:
    env = {}
    if not ENV_FILE.exists():
        return env
    for ln in ENV_FILE.read_text().splitlines():
        ln = ln.strip()
        if not ln or ln.startswith("#") or "=" not in ln:
            continue
        k, v = ln.split("=", 1)
        env[k.strip()] = v.strip()
    return env


def r2_config() -> dict[str, str]:
    env_file = _read_env_file()
    cfg = {k: (os.environ.get(k) or env_file.get(k) or "").strip() for k in R2_ENV_KEYS}
    return {k: v for k, v in cfg.items() if v}


def r2_is_configured(cfg: dict[str, str] | None = None) -> bool:
    cfg = cfg or r2_config()
    return all(cfg.get(k) for k in R2_REQUIRED_KEYS)


def _r2_client(cfg: dict[str, str]):
    endpoint = (
        cfg.get("R2_ENDPOINT")
        or f"https://{cfg['R2_ACCOUNT_ID']}.r2.cloudflarestorage.com"
    )
    return boto3.client(
        "s3",
        endpoint_url=endpoint,
        region_name="auto",
        aws_access_key_id=cfg["R2_ACCESS_KEY_ID"],
        aws_secret_access_key=cfg["R2_SECRET_ACCESS_KEY"],
    )


def r2_object_url(cfg: dict[str, str], key: str) -> str:
    base = cfg.get("R2_PUBLIC_BASE")
    if base:
        base = base.rstrip("/")
        return f"{base}/{key.lstrip('/')}"
    return f"https://{cfg['R2_BUCKET']}.{cfg['R2_ACCOUNT_ID']}.r2.cloudflarestorage.com/{key.lstrip('/')}"


def upload_filename(original: str | None) -> str:
    """Prefix the sanitised name with the upload time in milliseconds."""
    name = secure_filename(original or "") or "upload"
    return f"{int(time() * 1000)}-{name}"


def store_upload(f) -> UploadedImage:
    """
    Persist an uploaded ``FileStorage`` and return where it can be fetched.

    R2 when configured, otherwise the local upload folder served at
    ``/uploads/<name>``.
    """
    filename = upload_filename(f.filename)
    cfg = r2_config()
    if r2_is_configured(cfg):
        key = f"uploads/{filename}"
        try:
            client = _r2_client(cfg)
            f.stream.seek(0)
            client.upload_fileobj(
                f.stream,
                cfg["R2_BUCKET"],
                key,
                ExtraArgs={"ContentType": (f.mimetype or "application/octet-stream")},
            )
        except (BotoCoreError, ClientError):
            app.logger.exception("R2 upload failed")
            raise
        return UploadedImage(r2_object_url(cfg, key))

    folder = Path(app.config["UPLOAD_FOLDER"])
    folder.mkdir(parents=True, exist_ok=True)
    f.save(folder / filename)
    return UploadedImage(url_for("uploaded_file", filename=filename))


def image_from_form() -> UploadedImage | ExternalImage | None:
    """An uploaded file wins over a pasted URL."""
    f = request.files.get("image")
    if f and f.filename:
        return store_upload(f)
    url = request.form.get("image_url", "").strip()
    if url:
        return ExternalImage(url)
    return None


###############################################################################
# Notifier
###############################################################################
def mail_configured() -> bool:
    return bool(app.config.get("MAIL_SERVER"))


def comment_email(comment: dict) -> EmailMessage:
    msg = EmailMessage()
    msg["Subject"] = f"New comment on post {comment['post_id']}"
    msg["From"] = app.config["MAIL_SENDER"]
    msg["To"] = app.config["MAIL_RECIPIENT"]
    msg.set_content(
        f"Name: {comment['name']}\n"
        f"Email: {comment['email']}\n"
        f"Post: {comment['post_id']}\n"
        f"\n{comment['comment']}\n"
    )
    return msg


def send_mail(msg: EmailMessage) -> None:
    cfg = app.config
    with smtplib.SMTP(cfg["MAIL_SERVER"], cfg["MAIL_PORT"], timeout=MAIL_TIMEOUT) as smtp:
        if cfg["MAIL_USE_TLS"]:
            smtp.starttls()
        if cfg["MAIL_USERNAME"]:
            smtp.login(cfg["MAIL_USERNAME"], cfg["MAIL_PASSWORD"])
        smtp.send_message(msg)


def notify_new_comment(comment: dict) -> bool:
    """
    Best-effort mail about a comment that is *already* committed.
    Never retried; a failure is logged and reported as False.
    """
    if not mail_configured():
        app.logger.info("MAIL_SERVER unset, no notification for comment %s", comment["id"])
        return True
    try:
        send_mail(comment_email(comment))
    except (smtplib.SMTPException, OSError):
        app.logger.exception("Comment notification failed (post %s)", comment["post_id"])
        return False
    return True


###############################################################################
# Authentication
###############################################################################
@dataclass(frozen=True)
class AuthContext:
    admin: bool = False


@app.before_request
def resolve_auth():
    g.auth = AuthContext(admin=session.get("logged_in") is True)


def current_auth() -> AuthContext:
    return g.get("auth") or AuthContext()


def is_admin() -> bool:
    return current_auth().admin


def login_required() -> None:
    if not is_admin():
        abort(redirect(url_for("admin_login")))


def check_credentials(username: str, password: str) -> bool:
    user_ok = secrets.compare_digest(
        username.encode(), app.config["ADMIN_USERNAME"].encode()
    )
    pass_ok = secrets.compare_digest(
        password.encode(), app.config["ADMIN_PASSWORD"].encode()
    )
    return user_ok and pass_ok


def _csrf_token() -> str:
    """One token per session (rotates on login)."""
    return session.get("csrf", "")


@app.before_request
def csrf_protect():
    # ➊ read-only verbs ⇒ always allowed
    if request.method in SAFE_METHODS:
        return

    # ➋ anonymous visitors (likes, comments, login) are not checked
    if not is_admin():
        return

    # ➌ for authenticated users we REQUIRE a valid token
    token = session.get("csrf", "")
    sent = request.form.get("csrf") or request.headers.get("X-CSRFToken", "")
    if not token or not secrets.compare_digest(token, sent):
        abort(403)


@app.after_request
def sec_headers(resp):
    resp.headers.update(
        {
            "X-Frame-Options": "DENY",
            "X-Content-Type-Options": "nosniff",
            "Referrer-Policy": "strict-origin-when-cross-origin",
        }
    )
    return resp


def site_name() -> str:
    return app.config.get("SITE_NAME") or "bloglet"


# Expose helpers to templates
app.jinja_env.globals.update(
    csrf_token=_csrf_token,
    is_admin=is_admin,
    site_name=site_name,
    post_image=image_from_row,
    version=__version__,
)
app.jinja_env.globals["post_tags"] = lambda pid: post_tags(pid, db=get_db())


###############################################################################
# Templates
###############################################################################


def wrap(body: str) -> str:
    """Glue prolog + page-specific body + epilog."""
    return TEMPL_PROLOG + body + TEMPL_EPILOG


TEMPL_PROLOG = """
<!doctype html>
<html lang="en">
<title>{{ title or site_name() }}</title>
<meta name="viewport" content="width=device-width, initial-scale=1">
<meta charset="utf-8">
<meta name="csrf-token" content="{{ csrf_token() }}">
<style>
html{font-size:62.5%;font-family:-apple-system,BlinkMacSystemFont,"Segoe UI",Roboto,"Helvetica Neue",Arial,sans-serif}
body{font-size:1.8rem;line-height:1.6;max-width:64em;margin:auto;color:#c9c9c9;background:#222;padding:13px}
a{color:#fff;text-decoration:underline;text-decoration-color:transparent;text-underline-offset:.18em}
a:hover{color:#c9c9c9;text-decoration-color:#c9c9c9}
h1,h2,h3{line-height:1.15;margin:2.5rem 0 1.2rem}
img{max-width:100%;height:auto}
pre{background:#4a4a4a;padding:1em;overflow-x:auto}
code{background:#4a4a4a;padding:0 .4em}
table{width:100%;border-collapse:collapse;margin-bottom:2rem}
td,th{padding:.5em;border-bottom:1px solid #4a4a4a;text-align:left}
input,textarea,select{color:#c9c9c9;padding:6px 10px;margin-bottom:10px;background:#2b2b2b;border:1px solid #555;border-radius:6px;box-sizing:border-box;width:100%}
button,.button{display:inline-block;padding:5px 12px;background:#fff;color:#222;border:1px solid #fff;border-radius:2px;cursor:pointer;text-decoration:none}
button.danger{background:#c00;border-color:#c00;color:#fff}
label{display:block;font-weight:600;margin-bottom:.3rem}
.layout{display:grid;grid-template-columns:1fr 16em;gap:2.5rem}
@media (max-width:760px){.layout{grid-template-columns:1fr}}
.nav-primary{display:flex;flex-wrap:wrap;gap:1.2rem;align-items:center;font-size:.9em;margin-bottom:1rem}
.nav-primary form{margin-left:auto;width:13rem}
.nav-primary input{margin:0;font-size:.85em}
nav a[aria-current=page]{text-decoration-color:currentColor;text-decoration-thickness:2px}
.post-card{padding-bottom:1.5em;margin-bottom:1.5em;border-bottom:1px solid #444}
.post-card h2{margin-top:.6rem}
.meta{color:#999;font-size:.75em}
.pill{display:inline-block;padding:.1em .6em;margin-right:.3em;background:#444;color:#fff;border-radius:1em;font-size:.85em;text-decoration:none}
.side h3{font-size:1em;margin-top:0}
.side ol{padding-left:1.2em}
.notice{padding:.6rem 1rem;border-radius:.4rem;background:#323232;margin-bottom:1.5rem}
.notice.error{background:#331414;color:#f9c0c0}
.inline{display:inline}
</style>
<body>
{% macro post_card(p) -%}
    <article class="post-card">
        {% set img = post_image(p) %}
        {% if img %}
            <img src="{{ img.src }}" alt="" loading="lazy">
        {% endif %}
        <h2><a href="{{ url_for('post_detail', post_id=p['id']) }}">{{ p['title'] }}</a></h2>
        <p>{{ p['content']|excerpt }}</p>
        <div class="meta">
            {% if p['category'] %}
                <a class="pill" href="{{ url_for('category', slug=p['category']) }}">{{ p['category'] }}</a>
            {% endif %}
            <time datetime="{{ p['created_at'] }}">{{ p['created_at']|ts }}</time>
            · {{ p['views'] }} views · {{ p['likes'] }} likes
            {% for t in post_tags(p['id']) %}<span class="pill">#{{ t }}</span>{% endfor %}
        </div>
    </article>
{%- endmacro %}
{% macro side_list(heading, rows) -%}
    <section class="side">
        <h3>{{ heading }}</h3>
        <ol>
        {%- for p in rows %}
            <li class="side-post"><a href="{{ url_for('post_detail', post_id=p['id']) }}">{{ p['title'] }}</a></li>
        {%- else %}
            <li>Nothing here yet.</li>
        {%- endfor %}
        </ol>
    </section>
{%- endmacro %}
<div class="container">
    <h1 style="margin-top:1rem;">
        <a href="{{ url_for('index') }}" style="text-decoration:none;">{{ site_name() }}</a>
    </h1>
    <nav aria-label="Primary" class="nav-primary">
        <a href="{{ url_for('index') }}"
           {% if request.endpoint=='index' %}aria-current="page"{% endif %}>Home</a>
        {% for c in categories or [] %}
            <a href="{{ url_for('category', slug=c['slug']) }}"
               {% if current_slug==c['slug'] %}aria-current="page"{% endif %}>{{ c['name'] }}</a>
        {% endfor %}
        {% if is_admin() %}
            <a href="{{ url_for('admin_dashboard') }}">Admin</a>
            <a href="{{ url_for('admin_logout') }}">Log&nbsp;out</a>
        {% else %}
            <a href="{{ url_for('admin_login') }}">Login</a>
        {% endif %}
        <form action="{{ url_for('search') }}" method="get">
            <input type="search" name="q" aria-label="Search posts" placeholder="Search"
                   value="{{ request.args.get('q','') }}">
        </form>
    </nav>
    {% with msgs = get_flashed_messages() %}
    {% if msgs %}
        <div role="status" class="notice">{{ msgs|join('<br>')|safe }}</div>
    {% endif %}
    {% endwith %}
    <main id="main-content">
"""

TEMPL_EPILOG = """
    </main>
    <footer style="margin-top:2em;padding-top:1.5em;font-size:.75em;color:#888;border-top:1px solid #444;">
        {{ site_name() }} · bloglet v{{ version }}
    </footer>
</div>
</body>
</html>
"""


TEMPL_INDEX = wrap("""{% block body %}
<div class="layout">
    <div>
    {% for p in posts %}
        {{ post_card(p) }}
    {% else %}
        <p>No posts yet.</p>
    {% endfor %}
    </div>
    <aside>
        {{ side_list('Most read', popular) }}
    </aside>
</div>
{% endblock %}
""")

TEMPL_SEARCH = wrap("""{% block body %}
<h2>{% if query %}Results for “{{ query }}”{% else %}All posts{% endif %}</h2>
<p class="meta" data-query="{{ query }}">{{ posts|length }} post{{ '' if posts|length == 1 else 's' }}</p>
<div class="layout">
    <div>
    {% for p in posts %}
        {{ post_card(p) }}
    {% else %}
        <p>Nothing matched.</p>
    {% endfor %}
    </div>
    <aside>
        {{ side_list('Most read', popular) }}
    </aside>
</div>
{% endblock %}
""")

TEMPL_CATEGORY = wrap("""{% block body %}
<h2>{{ current['name'] if current else current_slug }}</h2>
{% for p in posts %}
    {{ post_card(p) }}
{% else %}
    <p>No posts in this category.</p>
{% endfor %}
{% endblock %}
""")

TEMPL_POST = wrap("""{% block body %}
<div class="layout">
<div>
    <article>
        {% set img = post_image(post) %}
        {% if img %}
            <img src="{{ img.src }}" alt="">
        {% endif %}
        <h2>{{ post['title'] }}</h2>
        <div class="meta">
            {% if post['category'] %}
                <a class="pill" href="{{ url_for('category', slug=post['category']) }}">{{ post['category'] }}</a>
            {% endif %}
            <time datetime="{{ post['created_at'] }}">{{ post['created_at']|ts }}</time>
            · <span class="views">{{ post['views'] }} views</span>
            {% for t in tags %}<span class="pill">#{{ t }}</span>{% endfor %}
        </div>
        <div class="e-content">{{ post['content']|md }}</div>
        <button id="like-btn" type="button"
                data-url="{{ url_for('like_post', post_id=post['id']) }}">
            ♥ <span id="like-count">{{ post['likes'] }}</span>
        </button>
    </article>

    <section id="comments">
        <h3>Comments ({{ comments|length }})</h3>
        {% if comment_status == 'success' %}
            <p class="notice">Thanks, your comment was posted.</p>
        {% elif comment_status == 'error' %}
            <p class="notice error">Your comment was saved, but we could not notify the author.</p>
        {% endif %}
        {% for c in comments %}
            <div class="comment" style="margin-bottom:1.2rem;">
                <strong>{{ c['name'] }}</strong>
                <span class="meta">{{ c['created_at']|ts }}</span>
                <p style="margin:.3rem 0;white-space:pre-wrap;">{{ c['comment'] }}</p>
            </div>
        {% endfor %}
        <form method="post" action="{{ url_for('comment_post', post_id=post['id']) }}">
            {% if csrf_token() %}
            <input type="hidden" name="csrf" value="{{ csrf_token() }}">
            {% endif %}
            <label for="c-name">Name</label>
            <input id="c-name" name="name" required>
            <label for="c-email">Email</label>
            <input id="c-email" name="email" type="email" required>
            <label for="c-comment">Comment</label>
            <textarea id="c-comment" name="comment" rows="4" required></textarea>
            <button>Post comment</button>
        </form>
    </section>
</div>
<aside>
    {{ side_list('Most read', popular) }}
    {{ side_list('Latest', recent) }}
</aside>
</div>
<script>
(() => {
    const btn = document.getElementById('like-btn');
    if (!btn) return;
    btn.addEventListener('click', async () => {
        const token = document.querySelector('meta[name="csrf-token"]')?.content || '';
        const headers = token ? {'X-CSRFToken': token} : {};
        try {
            const res = await fetch(btn.dataset.url, {method: 'POST', headers});
            const data = await res.json();
            if (data.success && data.likes !== null) {
                document.getElementById('like-count').textContent = data.likes;
            }
        } catch (err) {
            console.log('like failed', err);
        }
    });
})();
</script>
{% endblock %}
""")


###############################################################################
# Public views
###############################################################################
@app.route("/")
def index():
    try:
        db = get_db()
        posts = recent_posts(db=db, limit=HOME_RECENT)
        categories = all_categories(db=db)
        popular = popular_posts(db=db)
    except sqlite3.Error:
        app.logger.exception("Front page query failed")
        posts, categories, popular = [], [], []

    return render_template_string(
        TEMPL_INDEX,
        posts=posts,
        categories=categories,
        popular=popular,
        title=site_name(),
    )


@app.route("/search")
def search():
    q = request.args.get("q", "").strip()
    try:
        db = get_db()
        posts = search_posts(q, db=db) if q else recent_posts(db=db)
        categories = all_categories(db=db)
        popular = popular_posts(db=db)
    except sqlite3.Error:
        app.logger.exception("Search failed for %r", q)
        posts, categories, popular = [], [], []

    return render_template_string(
        TEMPL_SEARCH,
        posts=posts,
        categories=categories,
        popular=popular,
        query=q,
        title=f"Search – {site_name()}",
    )


@app.route("/category/<slug>")
def category(slug):
    db = get_db()
    categories = all_categories(db=db)
    current = next((c for c in categories if c["slug"] == slug), None)
    return render_template_string(
        TEMPL_CATEGORY,
        posts=posts_in_category(slug, db=db),
        categories=categories,
        current=current,
        current_slug=slug,
        title=f"{current['name'] if current else slug} – {site_name()}",
    )


@app.route("/post/<post_id>")
def post_detail(post_id):
    db = get_db()

    # every request counts, repeats included
    if not increment_counter(post_id, "views", db=db):
        return redirect(url_for("index"))
    post = get_post(post_id, db=db)
    if post is None:
        return redirect(url_for("index"))

    return render_template_string(
        TEMPL_POST,
        post=post,
        tags=post_tags(post_id, db=db),
        comments=post_comments(post_id, db=db),
        popular=popular_posts(db=db),
        recent=recent_posts(db=db, limit=SIDEBAR_COUNT),
        categories=all_categories(db=db),
        current_slug=post["category"],
        comment_status=request.args.get("comment"),
        title=f"{post['title']} – {site_name()}",
    )


@app.route("/post/<post_id>/like", methods=["POST"])
def like_post(post_id):
    try:
        db = get_db()
        increment_counter(post_id, "likes", db=db)
        row = db.execute("SELECT likes FROM post WHERE id=?", (post_id,)).fetchone()
    except sqlite3.Error:
        app.logger.exception("Like failed (post %s)", post_id)
        return {"success": False}, 500
    return {"success": True, "likes": row["likes"] if row else None}


@app.route("/post/<post_id>/comment", methods=["POST"])
def comment_post(post_id):
    db = get_db()
    comment = {
        "id": new_id(),
        "post_id": post_id,
        "name": request.form.get("name", ""),
        "email": request.form.get("email", ""),
        "comment": request.form.get("comment", ""),
        "created_at": now_iso(),
    }
    # ① durable write first …
    db.execute(
        """INSERT INTO comment (id, post_id, name, email, comment, created_at)
                  VALUES (:id, :post_id, :name, :email, :comment, :created_at)""",
        comment,
    )
    db.commit()

    # ② … then the mail; its outcome only changes the marker
    status = "success" if notify_new_comment(comment) else "error"
    return redirect(url_for("post_detail", post_id=post_id, comment=status))


@app.route("/uploads/<path:filename>")
def uploaded_file(filename):
    return send_from_directory(app.config["UPLOAD_FOLDER"], filename)


###############################################################################
# Admin – session
###############################################################################
@app.route("/admin")
def admin_dashboard():
    login_required()
    db = get_db()
    stats = db.execute(
        """
        SELECT (SELECT COUNT(*) FROM post)                AS posts,
               (SELECT COUNT(*) FROM category)            AS categories,
               (SELECT COUNT(*) FROM comment)             AS comments,
               (SELECT COALESCE(SUM(views), 0) FROM post) AS views,
               (SELECT COALESCE(SUM(likes), 0) FROM post) AS likes
        """
    ).fetchone()
    latest = db.execute(
        """
        SELECT c.*, p.title AS post_title
          FROM comment c
          LEFT JOIN post p ON p.id = c.post_id
         ORDER BY c.created_at DESC, c.rowid DESC
         LIMIT 5
        """
    ).fetchall()
    return render_template_string(
        TEMPL_DASHBOARD, stats=stats, latest=latest, title=f"Admin – {site_name()}"
    )


TEMPL_DASHBOARD = wrap("""{% block body %}
<h2>Dashboard</h2>
<p>
    <a class="button" href="{{ url_for('admin_posts') }}">Posts</a>
    <a class="button" href="{{ url_for('admin_categories') }}">Categories</a>
    <a class="button" href="{{ url_for('admin_new_post') }}">New post</a>
</p>
<table>
    <tr><th>Posts</th><td class="stat-posts">{{ stats['posts'] }}</td></tr>
    <tr><th>Categories</th><td class="stat-categories">{{ stats['categories'] }}</td></tr>
    <tr><th>Comments</th><td class="stat-comments">{{ stats['comments'] }}</td></tr>
    <tr><th>Views</th><td class="stat-views">{{ stats['views'] }}</td></tr>
    <tr><th>Likes</th><td class="stat-likes">{{ stats['likes'] }}</td></tr>
</table>
<h3>Latest comments</h3>
{% for c in latest %}
    <p>
        <strong>{{ c['name'] }}</strong> &lt;{{ c['email'] }}&gt; on
        {% if c['post_title'] %}
            <a href="{{ url_for('post_detail', post_id=c['post_id']) }}">{{ c['post_title'] }}</a>
        {% else %}
            <em>a deleted post</em>
        {% endif %}
        <br><span class="meta">{{ c['comment']|excerpt(120) }}</span>
    </p>
{% else %}
    <p>No comments yet.</p>
{% endfor %}
{% endblock %}
""")


@app.route("/admin/login", methods=["GET"])
def admin_login():
    if is_admin():
        return redirect(url_for("admin_dashboard"))
    return render_template_string(
        TEMPL_LOGIN, error=bool(request.args.get("error")), title=f"Login – {site_name()}"
    )


@app.route("/admin/login", methods=["POST"])
def admin_login_submit():
    username = request.form.get("username", "").strip()
    password = request.form.get("password", "")

    if check_credentials(username, password):
        session.clear()
        session["logged_in"] = True
        session["csrf"] = secrets.token_hex(16)
        app.logger.info("Admin %r logged in", username)
        return redirect(url_for("admin_dashboard"))

    app.logger.warning("Rejected admin login for %r", username)
    return redirect(url_for("admin_login", error=1))


TEMPL_LOGIN = wrap("""{% block body %}
<h2>Admin login</h2>
{% if error %}
    <p class="notice error">Wrong username or password.</p>
{% endif %}
<form method="post" action="{{ url_for('admin_login_submit') }}" style="max-width:24em;">
    <label for="username">Username</label>
    <input id="username" name="username" autocomplete="username" required>
    <label for="password">Password</label>
    <input id="password" name="password" type="password" autocomplete="current-password" required>
    <button>Sign&nbsp;in</button>
</form>
{% endblock %}
""")


@app.route("/admin/logout")
def admin_logout():
    session.clear()
    return redirect(url_for("index"))


###############################################################################
# Admin – posts
###############################################################################
@app.route("/admin/posts", methods=["GET"])
def admin_posts():
    login_required()
    db = get_db()
    return render_template_string(
        TEMPL_ADMIN_POSTS,
        posts=recent_posts(db=db),
        title=f"Posts – {site_name()}",
    )


TEMPL_ADMIN_POSTS = wrap("""{% block body %}
<h2>Posts</h2>
<p><a class="button" href="{{ url_for('admin_new_post') }}">New post</a></p>
<table>
    <tr><th>Title</th><th>Category</th><th>Views</th><th>Likes</th><th>Created</th><th></th></tr>
    {% for p in posts %}
    <tr class="admin-post" data-id="{{ p['id'] }}">
        <td><a href="{{ url_for('post_detail', post_id=p['id']) }}">{{ p['title'] }}</a></td>
        <td>{{ p['category'] or '' }}</td>
        <td>{{ p['views'] }}</td>
        <td>{{ p['likes'] }}</td>
        <td>{{ p['created_at']|ts }}</td>
        <td>
            <a href="{{ url_for('admin_edit_post', post_id=p['id']) }}">Edit</a>
            <form class="inline" method="post"
                  action="{{ url_for('admin_delete_post', post_id=p['id']) }}?_method=DELETE"
                  onsubmit="return confirm('Delete this post?');">
                <input type="hidden" name="csrf" value="{{ csrf_token() }}">
                <button class="danger">Delete</button>
            </form>
        </td>
    </tr>
    {% else %}
    <tr><td colspan="6">No posts yet.</td></tr>
    {% endfor %}
</table>
{% endblock %}
""")


@app.route("/admin/posts/new")
def admin_new_post():
    login_required()
    return render_template_string(
        TEMPL_POST_FORM,
        post=None,
        tags=[],
        categories=all_categories(db=get_db()),
        title=f"New post – {site_name()}",
    )


@app.route("/admin/posts", methods=["POST"])
def admin_create_post():
    login_required()
    db = get_db()
    post_id = create_post(
        title=request.form.get("title", ""),
        content=request.form.get("content", ""),
        category=request.form.get("category") or None,
        tags=parse_tags(request.form.get("tags")),
        image=image_from_form(),
        db=db,
    )
    app.logger.info("Created post %s", post_id)
    flash("Post created.")
    return redirect(url_for("admin_posts"))


@app.route("/admin/posts/<post_id>/edit")
def admin_edit_post(post_id):
    login_required()
    db = get_db()
    post = get_post(post_id, db=db)
    if post is None:
        abort(404)
    return render_template_string(
        TEMPL_POST_FORM,
        post=post,
        tags=post_tags(post_id, db=db),
        categories=all_categories(db=db),
        title=f"Edit post – {site_name()}",
    )


@app.route("/admin/posts/<post_id>", methods=["PUT", "PATCH"])
def admin_update_post(post_id):
    login_required()
    db = get_db()
    if get_post(post_id, db=db) is None:
        app.logger.warning("Update of missing post %s ignored", post_id)
        flash("Post not found.")
        return redirect(url_for("admin_posts"))

    fields = {
        "title": request.form.get("title", ""),
        "content": request.form.get("content", ""),
        "category": request.form.get("category") or None,
    }
    image = image_from_form()
    if image is not None:  # keep the old image unless a new one came in
        fields.update(image=image.src, image_source=image.source)

    assignments = ", ".join(f"{k}=:{k}" for k in fields)
    db.execute(f"UPDATE post SET {assignments} WHERE id=:id", {**fields, "id": post_id})
    sync_post_tags(post_id, parse_tags(request.form.get("tags")), db=db)
    db.commit()
    flash("Post updated.")
    return redirect(url_for("admin_posts"))


@app.route("/admin/posts/<post_id>", methods=["DELETE"])
def admin_delete_post(post_id):
    login_required()
    db = get_db()
    cur = db.execute("DELETE FROM post WHERE id=?", (post_id,))
    db.execute("DELETE FROM post_tag WHERE post_id=?", (post_id,))
    db.commit()
    if cur.rowcount:
        flash("Post deleted.")
    else:
        app.logger.warning("Delete of missing post %s ignored", post_id)
    return redirect(url_for("admin_posts"))


TEMPL_POST_FORM = wrap("""{% block body %}
<h2>{{ 'Edit post' if post else 'New post' }}</h2>
{% if post %}
    {% set action = url_for('admin_update_post', post_id=post['id']) ~ '?_method=PUT' %}
{% else %}
    {% set action = url_for('admin_create_post') %}
{% endif %}
<form method="post" action="{{ action }}" enctype="multipart/form-data">
    <input type="hidden" name="csrf" value="{{ csrf_token() }}">
    <label for="title">Title</label>
    <input id="title" name="title" value="{{ post['title'] if post else '' }}" required>

    <label for="category">Category</label>
    <select id="category" name="category">
        <option value="">—</option>
        {% for c in categories %}
            <option value="{{ c['slug'] }}"
                {% if post and post['category'] == c['slug'] %}selected{% endif %}>{{ c['name'] }}</option>
        {% endfor %}
    </select>

    <label for="tags">Tags <small>(comma separated)</small></label>
    <input id="tags" name="tags" value="{{ tags|join(', ') }}">

    <label for="image">Image</label>
    {% set img = post_image(post) %}
    {% if img %}
        <p><img src="{{ img.src }}" alt="" style="max-height:8em;"><br>
           <small class="meta">{{ img.source }}: {{ img.src }}</small></p>
    {% endif %}
    <input id="image" name="image" type="file" accept="image/*">
    <input name="image_url" placeholder="…or an image URL">

    <label for="content">Content <small>(Markdown)</small></label>
    <textarea id="content" name="content" rows="14" required>{{ post['content'] if post else '' }}</textarea>

    <button>{{ 'Save' if post else 'Publish' }}</button>
    <a href="{{ url_for('admin_posts') }}" style="margin-left:1rem;">Cancel</a>
</form>
{% endblock %}
""")


###############################################################################
# Admin – categories
###############################################################################
@app.route("/admin/categories", methods=["GET"])
def admin_categories():
    login_required()
    return render_template_string(
        TEMPL_ADMIN_CATEGORIES,
        categories=all_categories(db=get_db()),
        title=f"Categories – {site_name()}",
    )


TEMPL_ADMIN_CATEGORIES = wrap("""{% block body %}
<h2>Categories</h2>
<p><a class="button" href="{{ url_for('admin_new_category') }}">New category</a></p>
<table>
    <tr><th>Name</th><th>Slug</th><th>Created</th><th></th></tr>
    {% for c in categories %}
    <tr class="admin-category" data-id="{{ c['id'] }}">
        <td>{{ c['name'] }}</td>
        <td><a href="{{ url_for('category', slug=c['slug']) }}">{{ c['slug'] }}</a></td>
        <td>{{ c['created_at']|ts }}</td>
        <td>
            <a href="{{ url_for('admin_edit_category', category_id=c['id']) }}">Edit</a>
            <form class="inline" method="post"
                  action="{{ url_for('admin_delete_category', category_id=c['id']) }}?_method=DELETE"
                  onsubmit="return confirm('Delete this category?');">
                <input type="hidden" name="csrf" value="{{ csrf_token() }}">
                <button class="danger">Delete</button>
            </form>
        </td>
    </tr>
    {% else %}
    <tr><td colspan="4">No categories yet.</td></tr>
    {% endfor %}
</table>
{% endblock %}
""")


@app.route("/admin/categories/new")
def admin_new_category():
    login_required()
    return render_template_string(
        TEMPL_CATEGORY_FORM, category=None, title=f"New category – {site_name()}"
    )


@app.route("/admin/categories", methods=["POST"])
def admin_create_category():
    login_required()
    category_id = create_category(request.form.get("name", ""), db=get_db())
    app.logger.info("Created category %s", category_id)
    flash("Category created.")
    return redirect(url_for("admin_categories"))


@app.route("/admin/categories/<category_id>/edit")
def admin_edit_category(category_id):
    login_required()
    category = get_category(category_id, db=get_db())
    if category is None:
        abort(404)
    return render_template_string(
        TEMPL_CATEGORY_FORM, category=category, title=f"Edit category – {site_name()}"
    )


@app.route("/admin/categories/<category_id>", methods=["PUT", "PATCH"])
def admin_update_category(category_id):
    login_required()
    db = get_db()
    name = request.form.get("name", "")
    # posts keep pointing at the old slug
    cur = db.execute(
        "UPDATE category SET name=?, slug=? WHERE id=?",
        (name, category_slug(name), category_id),
    )
    db.commit()
    if cur.rowcount:
        flash("Category updated.")
    else:
        app.logger.warning("Update of missing category %s ignored", category_id)
        flash("Category not found.")
    return redirect(url_for("admin_categories"))


@app.route("/admin/categories/<category_id>", methods=["DELETE"])
def admin_delete_category(category_id):
    login_required()
    db = get_db()
    cur = db.execute("DELETE FROM category WHERE id=?", (category_id,))
    db.commit()
    if cur.rowcount:
        flash("Category deleted.")
    else:
        app.logger.warning("Delete of missing category %s ignored", category_id)
    return redirect(url_for("admin_categories"))


TEMPL_CATEGORY_FORM = wrap("""{% block body %}
<h2>{{ 'Edit category' if category else 'New category' }}</h2>
{% if category %}
    {% set action = url_for('admin_update_category', category_id=category['id']) ~ '?_method=PUT' %}
{% else %}
    {% set action = url_for('admin_create_category') %}
{% endif %}
<form method="post" action="{{ action }}" style="max-width:28em;">
    <input type="hidden" name="csrf" value="{{ csrf_token() }}">
    <label for="name">Name</label>
    <input id="name" name="name" value="{{ category['name'] if category else '' }}" required>
    {% if category %}
        <p class="meta">Current slug: {{ category['slug'] }}. Renaming changes the slug;
           posts filed under the old slug are not moved.</p>
    {% endif %}
    <button>{{ 'Save' if category else 'Create' }}</button>
    <a href="{{ url_for('admin_categories') }}" style="margin-left:1rem;">Cancel</a>
</form>
{% endblock %}
""")


###############################################################################
# Error pages
###############################################################################
@app.errorhandler(404)
def not_found(exc):
    """Site-wide “Not Found” page."""
    return render_template_string(TEMPL_404, title=site_name()), 404


@app.errorhandler(500)
def internal_error(exc):
    """
    Generic 500 page for production.
    • In development the Werkzeug debugger still shows the traceback,
      because Flask bypasses this handler while debug is on.
    """
    return render_template_string(TEMPL_500, title=site_name()), 500


TEMPL_404 = wrap("""
{% block body %}
  <h2 style="margin-top:0">Page not found</h2>
  <p>The URL you asked for doesn’t exist.
     <a href="{{ url_for('index') }}">Back to the front page</a>
     or use the search box above.</p>
{% endblock %}
""")

TEMPL_500 = wrap("""
{% block body %}
  <h2 style="margin-top:0">Internal Server Error</h2>
  <p>Something went wrong on our side. Please try again in a minute.</p>
{% endblock %}
""")


###############################################################################
# CLI
###############################################################################
def _warn_default_credentials() -> None:
    if app.config["ADMIN_PASSWORD"] == "admin123":
        click.secho(
            "⚠  ADMIN_PASSWORD is still the built-in default – set it in the environment.",
            fg="yellow",
        )


@app.cli.command("init")
def cli_init():
    """Create the database tables."""
    init_db()  # no-op if already there
    click.secho(f"\n✅  Database ready at {app.config['DATABASE']}", fg="green")
    _warn_default_credentials()


@app.cli.command("seed-category")
@click.argument("name")
def cli_seed_category(name: str):
    """Add a category from the command line."""
    name = name.strip()
    if not name:
        raise click.BadParameter("name must not be empty", param_hint="NAME")
    create_category(name, db=get_db())
    click.echo(f"Category {name!r} created with slug {category_slug(name)!r}.")


###############################################################################
# main
###############################################################################
if __name__ == "__main__":
    import sys

    if len(sys.argv) > 1 and sys.argv[1] == "init":
        with app.app_context():
            init_db()
    else:
        app.run(debug=True, port=app.config["PORT"])
