from __future__ import annotations

import sqlite3
from typing import Any, Dict, List, Optional, Sequence

from fastapi import APIRouter, Body, Depends, FastAPI, HTTPException, Request, Response
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError

from blog_backend import __version__
from blog_backend.auth import (
    PasswordHasher,
    RegisterRequest,
    TokenIssuer,
    UserView,
    authenticate,
    bootstrap_user_if_needed,
    clear_session_cookie,
    create_user,
    read_session,
    set_session_cookie,
)
from blog_backend.config import DEV_JWT_SECRET, Config, load_config
from blog_backend.db import connect, init_db
from blog_backend.errors import AuthenticationError, ConflictError, HashingError, InternalError
from blog_backend.posts import create_post, delete_post, get_post, list_posts, update_post


def _debug(msg: str) -> None:
    print(f"[api] {msg}")


def _cfg(request: Request) -> Config:
    return request.app.state.cfg


def _hasher(request: Request) -> PasswordHasher:
    return request.app.state.hasher


def _tokens(request: Request) -> TokenIssuer:
    return request.app.state.tokens


# -----------------------------
# Auth
# -----------------------------

auth_router = APIRouter(prefix="/api/auth")


class SessionView(BaseModel):
    authenticated: bool
    user: Optional[UserView] = None


@auth_router.post("/register", response_model=UserView)
def auth_register(
    request: Request,
    response: Response,
    body: Optional[Dict[str, Any]] = Body(default=None),
) -> UserView:
    """Create an account and log it in.

    POST /api/auth/register  {"username": "gyu", "password": "mypass123"}
    """
    try:
        payload = RegisterRequest.model_validate(body or {})
    except ValidationError as e:
        raise RequestValidationError(e.errors()) from e

    cfg = _cfg(request)
    try:
        with connect(cfg.DB_PATH) as conn:
            user = create_user(
                conn,
                username=payload.username,
                password=payload.password,
                hasher=_hasher(request),
            )
        token = user.generate_token(_tokens(request))
    except (sqlite3.Error, HashingError) as e:
        raise InternalError("register_failed") from e

    set_session_cookie(response, token=token, cfg=cfg)
    return user.serialize()


async def _json_body_or_none(request: Request) -> Any:
    """Parsed JSON body, or None when there is no body or it is not JSON."""
    try:
        return await request.json()
    except ValueError:
        return None


@auth_router.post("/login", response_model=UserView)
def auth_login(
    request: Request,
    response: Response,
    body: Any = Depends(_json_body_or_none),
) -> UserView:
    # Unparseable bodies and missing, empty or non-string fields all look
    # exactly like a wrong password.
    data = body if isinstance(body, dict) else {}
    username = data.get("username")
    password = data.get("password")
    if not isinstance(username, str) or not isinstance(password, str):
        raise AuthenticationError()

    cfg = _cfg(request)
    try:
        with connect(cfg.DB_PATH) as conn:
            user = authenticate(conn, username, password, _hasher(request))
        token = user.generate_token(_tokens(request))
    except (sqlite3.Error, HashingError) as e:
        raise InternalError("login_failed") from e

    set_session_cookie(response, token=token, cfg=cfg)
    return user.serialize()


@auth_router.get("/check", response_model=SessionView)
def auth_check(request: Request) -> SessionView:
    user = read_session(request, cfg=_cfg(request), issuer=_tokens(request))
    return SessionView(authenticated=user is not None, user=user)


@auth_router.post("/logout")
def auth_logout(request: Request, response: Response) -> Dict[str, Any]:
    """Clear the session cookie. The token itself stays valid until it expires."""
    clear_session_cookie(response, _cfg(request))
    return {"ok": True}


# -----------------------------
# Posts
# -----------------------------

posts_router = APIRouter(prefix="/api/posts")


class PostWrite(BaseModel):
    title: str
    body: str


class PostPatch(BaseModel):
    title: Optional[str] = None
    body: Optional[str] = None


def _post_not_found() -> HTTPException:
    return HTTPException(status_code=404, detail="post_not_found")


def _post_id(raw: str) -> int:
    # Ids match by their exact decimal text; anything else is just not found.
    if len(raw) > 18 or not raw.isdecimal() or str(int(raw)) != raw:
        raise _post_not_found()
    return int(raw)


@posts_router.post("")
def posts_write(request: Request, payload: PostWrite) -> Dict[str, Any]:
    with connect(_cfg(request).DB_PATH) as conn:
        return create_post(conn, title=payload.title, body=payload.body)


@posts_router.get("")
def posts_list(request: Request) -> List[Dict[str, Any]]:
    with connect(_cfg(request).DB_PATH) as conn:
        return list_posts(conn)


@posts_router.get("/{post_id}")
def posts_read(request: Request, post_id: str) -> Dict[str, Any]:
    pid = _post_id(post_id)
    with connect(_cfg(request).DB_PATH) as conn:
        post = get_post(conn, pid)
    if post is None:
        raise _post_not_found()
    return post


@posts_router.delete("/{post_id}", status_code=204)
def posts_remove(request: Request, post_id: str) -> Response:
    pid = _post_id(post_id)
    with connect(_cfg(request).DB_PATH) as conn:
        removed = delete_post(conn, pid)
    if not removed:
        raise _post_not_found()
    return Response(status_code=204)


@posts_router.put("/{post_id}")
def posts_replace(request: Request, post_id: str, payload: PostWrite) -> Dict[str, Any]:
    pid = _post_id(post_id)
    with connect(_cfg(request).DB_PATH) as conn:
        post = update_post(conn, pid, payload.model_dump())
    if post is None:
        raise _post_not_found()
    return post


@posts_router.patch("/{post_id}")
def posts_update(request: Request, post_id: str, payload: PostPatch) -> Dict[str, Any]:
    pid = _post_id(post_id)
    fields = payload.model_dump(exclude_unset=True, exclude_none=True)
    with connect(_cfg(request).DB_PATH) as conn:
        post = update_post(conn, pid, fields)
    if post is None:
        raise _post_not_found()
    return post


# -----------------------------
# Error mapping
# -----------------------------


def _public_errors(errors: Sequence[Any]) -> List[Dict[str, Any]]:
    # Never echo submitted values back; the input may be a password.
    out: List[Dict[str, Any]] = []
    for err in errors:
        d = dict(err)
        d.pop("input", None)
        d.pop("url", None)
        out.append(d)
    return jsonable_encoder(out)


async def _on_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"detail": _public_errors(exc.errors())})


async def _on_conflict(request: Request, exc: ConflictError) -> JSONResponse:
    return JSONResponse(status_code=409, content={"detail": "username_exists"})


async def _on_authentication_error(request: Request, exc: AuthenticationError) -> JSONResponse:
    return JSONResponse(status_code=401, content={"detail": "invalid_credentials"})


async def _on_internal_error(request: Request, exc: InternalError) -> JSONResponse:
    cause = exc.__cause__
    _debug(f"{request.method} {request.url.path} failed: {exc} ({type(cause).__name__}: {cause})")
    return JSONResponse(status_code=500, content={"detail": "internal_error"})


# -----------------------------
# App
# -----------------------------


def create_app(cfg: Optional[Config] = None) -> FastAPI:
    cfg = cfg or load_config()

    app = FastAPI(title="Blog Backend", version=__version__)

    # CORS is mainly needed for local development (frontend dev server -> API).
    cors_origins = [o.strip() for o in (cfg.CORS_ALLOW_ORIGINS or "").split(",") if o.strip()]
    if cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    if cfg.AUTH_JWT_SECRET == DEV_JWT_SECRET:
        _debug("AUTH_JWT_SECRET is the development default; set a real secret in production")

    app.state.cfg = cfg
    app.state.hasher = PasswordHasher.from_config(cfg)
    app.state.tokens = TokenIssuer.from_config(cfg)

    init_db(cfg.DB_PATH)

    boot = bootstrap_user_if_needed(cfg, app.state.hasher)
    if boot:
        _debug(f"Bootstrapped initial user: username={boot.username}")

    app.add_exception_handler(RequestValidationError, _on_validation_error)
    app.add_exception_handler(ConflictError, _on_conflict)
    app.add_exception_handler(AuthenticationError, _on_authentication_error)
    app.add_exception_handler(InternalError, _on_internal_error)

    @app.get("/health")
    def health() -> Dict[str, Any]:
        return {"status": "ok"}

    app.include_router(auth_router)
    app.include_router(posts_router)
    return app
