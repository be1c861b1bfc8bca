"""Listing of the current user's remembered logins."""

from __future__ import annotations

from flask import Blueprint

from persistent_login.api.deps import current_user_id, json_response, require_session, timing
from persistent_login.api.token_handler import get_token_handler
from persistent_login.schemas import PersistentLoginSchema

bp = Blueprint("persistent_logins", __name__)

persistent_logins_schema = PersistentLoginSchema(many=True)


@bp.get("")
@require_session
@timing
def list_persistent_logins():
    """Return the user's active tokens, oldest first, without credential values."""

    tokens = get_token_handler().manager.tokens_for_user(current_user_id())
    return json_response({"data": persistent_logins_schema.dump(tokens)})
