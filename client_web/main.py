"""
Exam portal web front. Holds the process-wide SessionManager (one "tab"), renders login/profile pages.
Any terminal session failure sends the browser back to /login.
GET /, /login, /profile, /logout, /status; POST /login. Port 8000.
"""
import html
import json
import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from client_web.config import DEFAULT_ORIGIN, STORE_URL
from exam_client import auth_api
from exam_client.config import LOGIN_REDIRECT_PATH
from exam_client.credential_store import SqlCredentialStore, StorageKey
from exam_client.endpoints import UserClass
from exam_client.inspector import token_claims
from exam_client.session import SessionManager

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the session manager over the durable store; close its HTTP client on shutdown."""
    app.state.session = SessionManager(store=SqlCredentialStore(STORE_URL))
    yield
    await app.state.session.aclose()


app = FastAPI(title="Exam Portal", version="0.1.0", lifespan=lifespan)


def get_session(request: Request) -> SessionManager:
    return request.app.state.session


def _page(title: str, body: str, status_code: int = 200) -> HTMLResponse:
    return HTMLResponse(
        f"""<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><title>{html.escape(title)}</title></head>
<body>
  <h1>{html.escape(title)}</h1>
  {body}
  <p><a href="/">Home</a></p>
</body>
</html>""",
        status_code=status_code,
    )


def _forced_redirect(session: SessionManager) -> RedirectResponse | None:
    """Turn a navigation forced by session teardown into a redirect."""
    location = session.navigator.consume()
    if location is None:
        return None
    return RedirectResponse(url=location, status_code=302)


@app.get("/health")
def health():
    """Health check endpoint."""
    return {"status": "ok", "service": "client_web"}


@app.get("/", response_class=HTMLResponse)
def home(session: SessionManager = Depends(get_session)):
    state = "Not signed in"
    if session.is_authenticated():
        claims = token_claims(session.store.get(StorageKey.ACCESS_TOKEN)) or {}
        state = f"Signed in as {html.escape(str(claims.get('email') or 'unknown'))}"
    return _page(
        "Exam Portal",
        f"""<p>{state}.</p>
  <p><a href="/login">Log in</a> | <a href="/profile">Profile</a> | <a href="/logout">Log out</a></p>""",
    )


@app.get("/login", response_class=HTMLResponse)
def login_form():
    return _page(
        "Log in",
        """<form method="post" action="/login">
    <label>Email <input type="email" name="email" required></label>
    <label>Password <input type="password" name="password" required></label>
    <label>Portal
      <select name="user_class">
        <option value="staff">Staff</option>
        <option value="examinee">Examinee</option>
      </select>
    </label>
    <label>Organization ID <input type="number" name="organization_id"></label>
    <button type="submit">Log in</button>
  </form>""",
    )


@app.post("/login")
async def login_submit(
    email: str = Form(...),
    password: str = Form(...),
    user_class: UserClass = Form(UserClass.STAFF),
    organization_id: int | None = Form(None),
    session: SessionManager = Depends(get_session),
):
    credentials = {"email": email, "password": password}
    if user_class is UserClass.EXAMINEE:
        if organization_id is None:
            org = await auth_api.resolve_organization(session, DEFAULT_ORIGIN)
            if not org["success"]:
                return _page("Login error", f"<p>{html.escape(org['message'])}</p>", status_code=400)
            organization_id = org["data"]["id"]
        credentials["organizationId"] = organization_id
        result = await auth_api.login_examinee(session, credentials)
    else:
        result = await auth_api.login(session, credentials)

    if not result["success"]:
        return _page("Login error", f"<p>{html.escape(result['message'])}</p>", status_code=400)
    session.navigator.consume()
    return RedirectResponse(url="/profile", status_code=303)


@app.get("/profile", response_class=HTMLResponse)
async def profile(session: SessionManager = Depends(get_session)):
    """Fetch /profile through the pipeline; expired access tokens are renewed transparently."""
    result = await auth_api.get_profile(session)
    redirect = _forced_redirect(session)
    if redirect is not None:
        return redirect
    if not result["success"]:
        return _page("Profile", f"<p>{html.escape(str(result['message']))}</p>", status_code=502)
    body = html.escape(json.dumps(result["data"], indent=2))
    return _page("Profile", f"<pre>{body}</pre>")


@app.get("/logout")
def logout(session: SessionManager = Depends(get_session)):
    auth_api.logout(session)
    return _forced_redirect(session) or RedirectResponse(url=LOGIN_REDIRECT_PATH, status_code=302)


@app.get("/status")
def status(session: SessionManager = Depends(get_session)):
    return {
        "authenticated": session.is_authenticated(),
        "loading": session.loading.count,
        "renewing": session.coordinator.renewing,
        "pending": session.coordinator.pending,
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "client_web.main:app",
        host="127.0.0.1",
        port=8000,
        reload=True,
    )
