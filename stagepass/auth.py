"""Bearer-token authentication for the artist side of the API."""
from __future__ import annotations

from functools import wraps

from flask import current_app, g, jsonify, request
from itsdangerous import BadSignature, URLSafeTimedSerializer

from .extensions import db
from .models import ArtistAccount

TOKEN_SALT = "artist-auth-token"


def _serializer() -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(current_app.config["SECRET_KEY"], salt=TOKEN_SALT)


def build_token(payload: dict[str, object]) -> str:
    return _serializer().dumps(payload)


def get_artist_identity() -> int | None:
    """Extract the artist id from the Authorization header.

    Returns None if the header is missing, the token is invalid or expired
    (``SignatureExpired`` is a ``BadSignature``), or the account is gone.
    """
    auth_header = request.headers.get("Authorization", "")

    if not auth_header.startswith("Bearer "):
        return None

    token = auth_header[7:]

    try:
        payload = _serializer().loads(
            token, max_age=current_app.config.get("AUTH_TOKEN_MAX_AGE", 86400)
        )
    except BadSignature:
        return None

    artist_id = payload.get("artist_id") if isinstance(payload, dict) else None
    if artist_id is None or db.session.get(ArtistAccount, artist_id) is None:
        return None
    return artist_id


def artist_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        artist_id = get_artist_identity()
        if artist_id is None:
            return jsonify({"error": "unauthorized", "message": "Invalid or missing token"}), 401
        g.artist_id = artist_id
        return view(*args, **kwargs)

    return wrapper
