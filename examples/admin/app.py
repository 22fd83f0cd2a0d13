"""Admin: screens for editing posts behind a login.

Demonstrates screens with actions, permission checks, session flash
messages, and redirect-back after a save. Serve ``app`` with any
ASGI server.
"""

import os
from dataclasses import dataclass, field
from html import escape

from roost import App, AppConfig, Redirect, Screen
from roost.http.forms import FormData
from roost.middleware import AuthConfig, AuthMiddleware, SessionConfig, SessionMiddleware
from roost.middleware.auth import login, logout

SECRET = os.environ.get("SESSION_SECRET_KEY", "dev-only-not-for-production")

app = App(AppConfig(secret_key=SECRET))


@dataclass(frozen=True, slots=True)
class Admin:
    id: str
    name: str
    is_authenticated: bool = True
    permissions: frozenset[str] = field(default_factory=frozenset)


USERS = {
    "editor": Admin(id="editor", name="Edith", permissions=frozenset({"posts.edit"})),
    "viewer": Admin(id="viewer", name="Vic"),
}

POSTS: dict[int, dict[str, str]] = {
    1: {"title": "Hello", "body": "First post"},
    2: {"title": "Roost", "body": "Screens on ASGI"},
}


async def load_user(user_id: str) -> Admin | None:
    return USERS.get(user_id)


app.middleware_group(
    "web",
    SessionMiddleware(SessionConfig(secret_key=SECRET)),
    AuthMiddleware(AuthConfig(load_user=load_user)),
)


def _flash(session: dict) -> str:
    message = session.pop("flash", None)
    return f'<p class="flash">{escape(message)}</p>' if message else ""


class PostListScreen(Screen):
    name = "Posts"

    def query(self, session: dict) -> dict:
        return {"posts": dict(POSTS), "flash": _flash(session)}

    def render(self, context) -> str:
        items = "".join(
            f'<li><a href="/posts/{pid}">{escape(post["title"])}</a></li>'
            for pid, post in context["posts"].items()
        )
        return f"<h1>Posts</h1>{context['flash']}<ul>{items}</ul>"


class PostEditScreen(Screen):
    name = "Edit post"
    permission = ("posts.edit",)

    def query(self, id: str, session: dict) -> dict:
        post = POSTS.get(int(id))
        if post is None:
            return {"title": "", "body": "", "flash": "Post not found."}
        return {**post, "flash": _flash(session)}

    def render(self, context) -> str:
        return (
            f"<h1>Edit post</h1>{context['flash']}"
            f'<form method="post">'
            f'<input name="title" value="{escape(context["title"])}">'
            f'<textarea name="body">{escape(context["body"])}</textarea>'
            f"</form>"
        )

    def save(self, id: str, form: FormData, session: dict) -> None:
        title = (form.get("title") or "").strip()
        if not title:
            session["flash"] = "Title is required."
            return
        POSTS[int(id)] = {"title": title, "body": form.get("body", "") or ""}
        session["flash"] = "Saved."

    def delete(self, id: str, session: dict) -> Redirect:
        POSTS.pop(int(id), None)
        session["flash"] = "Deleted."
        return Redirect("/posts", status=303)


app.register_screen("posts.index", PostListScreen)
app.register_screen("posts.edit", PostEditScreen)

app.screen("/posts", "posts.index", name="posts.index")
app.screen("/posts/{id:int}", "posts.edit", name="posts.edit")


@app.route("/login/{username}", methods=["POST"], middleware="web")
def do_login(username: str):
    user = USERS.get(username)
    if user is None:
        return "Unknown user", 404
    login(user)
    return Redirect("/posts")


@app.route("/logout", methods=["POST"], middleware="web")
def do_logout():
    logout()
    return Redirect("/posts")

