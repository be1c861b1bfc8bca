"""Interactive login endpoints backed by the Flask session."""

from __future__ import annotations

from flask import Blueprint, Response, request

from persistent_login.api.deps import current_user_id, json_response, require_session, timing
from persistent_login.api.token_handler import get_token_handler
from persistent_login.schemas import LoginSchema, WhoAmISchema
from persistent_login.services._shared.errors import ServiceError
from persistent_login.services.auth import AuthService

bp = Blueprint("auth", __name__)

login_schema = LoginSchema()
whoami_schema = WhoAmISchema()


@bp.post("/login")
@timing
def login():
    """Verify credentials, start a session and optionally remember the login."""

    dto = login_schema.load(request.get_json(silent=True) or {})
    service = AuthService()
    try:
        identity = service.login(dto)
    except ServiceError as exc:
        raise service.translate_exceptions(exc) from exc

    handler = get_token_handler()
    handler.sessions.establish(identity.id)
    if dto.remember_me:
        handler.set_new_session_token(identity.id)
    return json_response({"data": whoami_schema.dump(identity)})


@bp.post("/logout")
@timing
def logout():
    """End the session and forget the remembered login of this browser."""

    handler = get_token_handler()
    handler.clear_session_token()
    handler.sessions.end()
    return Response(status=204)


@bp.get("/whoami")
@require_session
@timing
def whoami():
    """Return the user bound to the current session."""

    service = AuthService()
    try:
        identity = service.whoami(current_user_id())
    except ServiceError as exc:
        raise service.translate_exceptions(exc) from exc
    return json_response({"data": whoami_schema.dump(identity)})
