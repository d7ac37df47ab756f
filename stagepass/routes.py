"""HTTP routes for the StagePass backend."""
from __future__ import annotations

import re
from datetime import date, datetime, timezone

from flask import Blueprint, current_app, jsonify, request
from sqlalchemy import func, text
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.security import check_password_hash

from . import gallery, storage
from .auth import artist_required, build_token
from .billing import invoice_count_by_status, invoice_stats
from .extensions import db
from .models import ArtistAccount, Invoice, PhotoSubmission, PlaylistTrack, Tour, today

bp = Blueprint("api", __name__)

DURATION_PATTERN = re.compile(r"^\d{1,3}:[0-5]\d$")


def register_routes(app) -> None:
    from .routes_billing import bp_billing
    from .routes_photos import bp_photos

    app.register_blueprint(bp)
    app.register_blueprint(bp_photos)
    app.register_blueprint(bp_billing)


def _parse_date(value) -> date:
    if not isinstance(value, str):
        raise ValueError("date must be an ISO formatted string")
    return date.fromisoformat(value.strip())


@bp.get("/health")
def health_check() -> tuple[dict[str, str], int]:
    """
    Expose a simple uptime check endpoint.
    ---
    tags:
      - Health
    responses:
      200:
        description: Service is healthy and running.
    """
    return jsonify({"status": "ok"}), 200


@bp.get("/db-health")
def database_health() -> tuple[dict[str, str], int]:
    """Check connectivity to the configured database."""
    try:
        db.session.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        current_app.logger.exception("Database connectivity check failed", exc_info=exc)
        return jsonify({"database": "unavailable"}), 500

    return jsonify({"database": "ok"}), 200


@bp.post("/auth/login")
def login() -> tuple[dict[str, object], int]:
    """Authenticate an artist by email/password and return an access token.
    ---
    tags:
      - Authentication
    parameters:
      - name: body
        in: body
        required: true
        schema:
          type: object
          properties:
            email:
              type: string
            password:
              type: string
          required:
            - email
            - password
    responses:
      200:
        description: Login successful, returns access token
      400:
        description: Missing email or password
      401:
        description: Invalid credentials
    """
    payload = request.get_json(silent=True) or {}

    email = (payload.get("email") or "").strip().lower()
    password = payload.get("password") or ""

    if not email or not password:
        return (
            jsonify({"error": "invalid_payload", "message": "email and password are required"}),
            400,
        )

    account = ArtistAccount.query.filter_by(email=email).first()
    if not account or not check_password_hash(account.password_hash, password):
        return jsonify({"error": "unauthorized", "message": "invalid email or password"}), 401

    account.last_login_at = datetime.now(timezone.utc)
    try:
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to update last login timestamp", exc_info=exc)
        return jsonify({"error": "database_error"}), 500

    token = build_token({"artist_id": account.artist_id})
    return jsonify({"token": token, "artist": account.to_dict_basic()}), 200


# --- Fan landing & artist dashboard ---


@bp.get("/fan/overview")
def fan_overview() -> tuple[dict[str, object], int]:
    """Everything the public fan page shows: bio, next shows, playlist, featured photos."""
    try:
        limit = current_app.config.get("FAN_UPCOMING_LIMIT", 3)
        upcoming = (
            Tour.query.filter(Tour.date > today())
            .order_by(Tour.date.asc())
            .limit(limit)
            .all()
        )
        tracks = PlaylistTrack.query.order_by(PlaylistTrack.position.asc()).all()
        featured = (
            PhotoSubmission.query.filter(
                PhotoSubmission.status == "approved",
                PhotoSubmission.featured.is_(True),
            )
            .order_by(PhotoSubmission.created_at.desc())
            .all()
        )
    except SQLAlchemyError as exc:
        current_app.logger.exception("Failed to build fan overview", exc_info=exc)
        return jsonify({"error": "database_error"}), 500

    return jsonify({
        "artist": {
            "name": current_app.config.get("ARTIST_NAME"),
            "bio": current_app.config.get("ARTIST_BIO"),
        },
        "upcoming_tours": [tour.to_dict() for tour in upcoming],
        "playlist": [track.to_dict() for track in tracks],
        "featured_photos": [photo.to_dict() for photo in featured],
        "merch": {
            "available": False,
            "message": "Official merchandise is coming soon.",
        },
    }), 200


@bp.get("/artist/dashboard")
@artist_required
def artist_dashboard() -> tuple[dict[str, object], int]:
    try:
        current = today()
        upcoming_count = Tour.query.filter(Tour.date > current).count()
        past_count = Tour.query.filter(Tour.date <= current).count()
        photos = PhotoSubmission.query.all()
        invoices = Invoice.query.all()
        by_status = invoice_count_by_status()
    except SQLAlchemyError as exc:
        current_app.logger.exception("Failed to build artist dashboard", exc_info=exc)
        return jsonify({"error": "database_error"}), 500

    return jsonify({
        "tours": {"upcoming": upcoming_count, "past": past_count},
        "photos": gallery.photo_stats(photos),
        "invoices": invoice_stats(invoices, current),
        "invoices_by_status": by_status,
    }), 200


# --- Tours ---


@bp.get("/tours")
def list_tours() -> tuple[dict[str, object], int]:
    """List tours, optionally only upcoming or past ones.
    ---
    tags:
      - Tours
    parameters:
      - name: status
        in: query
        type: string
        enum: [upcoming, past]
    responses:
      200:
        description: Tours ordered by date (past tours newest first)
      400:
        description: Unknown status filter
    """
    status = (request.args.get("status") or "").strip().lower()
    if status not in ("", "upcoming", "past"):
        return jsonify({"error": "invalid_payload", "message": "status must be 'upcoming' or 'past'"}), 400

    try:
        query = Tour.query
        current = today()
        if status == "upcoming":
            query = query.filter(Tour.date > current).order_by(Tour.date.asc())
        elif status == "past":
            query = query.filter(Tour.date <= current).order_by(Tour.date.desc())
        else:
            query = query.order_by(Tour.date.asc())
        tours = query.all()
    except SQLAlchemyError as exc:
        current_app.logger.exception("Failed to fetch tours", exc_info=exc)
        return jsonify({"error": "database_error"}), 500

    return jsonify({"tours": [tour.to_dict() for tour in tours]}), 200


@bp.get("/tours/<int:tour_id>")
def get_tour(tour_id: int) -> tuple[dict[str, object], int]:
    tour = db.session.get(Tour, tour_id)
    if tour is None:
        return jsonify({"error": "not_found", "message": "tour not found"}), 404
    return jsonify({"tour": tour.to_dict()}), 200


@bp.post("/artist/tours")
@artist_required
def create_tour() -> tuple[dict[str, object], int]:
    """Schedule a new show. Status follows from the date."""
    payload = request.get_json(silent=True) or {}

    title = (payload.get("title") or "").strip()
    venue = (payload.get("venue") or "").strip()
    city = (payload.get("city") or "").strip()

    if not title or not venue or not city or not payload.get("date"):
        return (
            jsonify({"error": "invalid_payload", "message": "title, date, venue and city are required"}),
            400,
        )

    try:
        tour_date = _parse_date(payload.get("date"))
    except ValueError:
        return jsonify({"error": "invalid_payload", "message": "date must be YYYY-MM-DD"}), 400

    tour = Tour(title=title, date=tour_date, venue=venue, city=city)
    try:
        db.session.add(tour)
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to create tour", exc_info=exc)
        return jsonify({"error": "database_error"}), 500

    return jsonify({"message": "Tour created successfully", "tour": tour.to_dict()}), 201


@bp.put("/artist/tours/<int:tour_id>")
@artist_required
def update_tour(tour_id: int) -> tuple[dict[str, object], int]:
    tour = db.session.get(Tour, tour_id)
    if tour is None:
        return jsonify({"error": "not_found", "message": "tour not found"}), 404

    payload = request.get_json(silent=True) or {}

    for field in ("title", "venue", "city"):
        if field in payload:
            value = (payload.get(field) or "").strip()
            if not value:
                return jsonify({"error": "invalid_payload", "message": f"{field} cannot be empty"}), 400
            setattr(tour, field, value)

    if "date" in payload:
        try:
            tour.date = _parse_date(payload.get("date"))
        except ValueError:
            return jsonify({"error": "invalid_payload", "message": "date must be YYYY-MM-DD"}), 400

    try:
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to update tour", exc_info=exc)
        return jsonify({"error": "database_error"}), 500

    return jsonify({"message": "Tour updated successfully", "tour": tour.to_dict()}), 200


@bp.delete("/artist/tours/<int:tour_id>")
@artist_required
def delete_tour(tour_id: int) -> tuple[dict[str, str], int]:
    tour = db.session.get(Tour, tour_id)
    if tour is None:
        return jsonify({"error": "not_found", "message": "tour not found"}), 404

    # photo_submissions rows go with the tour; their stored objects follow after the commit
    keys = [photo.file_path for photo in tour.photos]
    try:
        db.session.delete(tour)
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to delete tour", exc_info=exc)
        return jsonify({"error": "database_error"}), 500

    for key in keys:
        storage.discard_photo(key)

    return jsonify({"message": "Tour deleted successfully"}), 200


# --- Playlist ---


def _ordered_tracks() -> list[PlaylistTrack]:
    return PlaylistTrack.query.order_by(PlaylistTrack.position.asc(), PlaylistTrack.track_id.asc()).all()


def _renumber(tracks: list[PlaylistTrack]) -> None:
    for index, track in enumerate(tracks):
        track.position = index


def _validate_duration(value) -> bool:
    return value is None or (isinstance(value, str) and bool(DURATION_PATTERN.match(value.strip())))


@bp.get("/playlist")
def get_playlist() -> tuple[dict[str, object], int]:
    try:
        tracks = _ordered_tracks()
    except SQLAlchemyError as exc:
        current_app.logger.exception("Failed to fetch playlist", exc_info=exc)
        return jsonify({"error": "database_error"}), 500
    return jsonify({"playlist": [track.to_dict() for track in tracks]}), 200


@bp.post("/artist/playlist")
@artist_required
def add_track() -> tuple[dict[str, object], int]:
    payload = request.get_json(silent=True) or {}

    title = (payload.get("title") or "").strip()
    artist = (payload.get("artist") or "").strip()
    duration = payload.get("duration")

    if not title or not artist:
        return jsonify({"error": "invalid_payload", "message": "title and artist are required"}), 400
    if not _validate_duration(duration):
        return jsonify({"error": "invalid_payload", "message": "duration must look like m:ss"}), 400

    try:
        last_position = db.session.query(func.max(PlaylistTrack.position)).scalar()
        track = PlaylistTrack(
            position=0 if last_position is None else last_position + 1,
            title=title,
            artist=artist,
            album=(payload.get("album") or "").strip() or None,
            duration=duration.strip() if duration else None,
            reason=(payload.get("reason") or "").strip() or None,
        )
        db.session.add(track)
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to add playlist track", exc_info=exc)
        return jsonify({"error": "database_error"}), 500

    return jsonify({"message": "Track added", "track": track.to_dict()}), 201


@bp.put("/artist/playlist/<int:track_id>")
@artist_required
def update_track(track_id: int) -> tuple[dict[str, object], int]:
    track = db.session.get(PlaylistTrack, track_id)
    if track is None:
        return jsonify({"error": "not_found", "message": "track not found"}), 404

    payload = request.get_json(silent=True) or {}

    for field in ("title", "artist"):
        if field in payload:
            value = (payload.get(field) or "").strip()
            if not value:
                return jsonify({"error": "invalid_payload", "message": f"{field} cannot be empty"}), 400
            setattr(track, field, value)

    if "duration" in payload:
        duration = payload.get("duration")
        if not _validate_duration(duration):
            return jsonify({"error": "invalid_payload", "message": "duration must look like m:ss"}), 400
        track.duration = duration.strip() if duration else None

    for field in ("album", "reason"):
        if field in payload:
            setattr(track, field, (payload.get(field) or "").strip() or None)

    try:
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to update playlist track", exc_info=exc)
        return jsonify({"error": "database_error"}), 500

    return jsonify({"message": "Track updated", "track": track.to_dict()}), 200


@bp.delete("/artist/playlist/<int:track_id>")
@artist_required
def remove_track(track_id: int) -> tuple[dict[str, str], int]:
    track = db.session.get(PlaylistTrack, track_id)
    if track is None:
        return jsonify({"error": "not_found", "message": "track not found"}), 404

    try:
        db.session.delete(track)
        db.session.flush()
        _renumber(_ordered_tracks())
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to remove playlist track", exc_info=exc)
        return jsonify({"error": "database_error"}), 500

    return jsonify({"message": "Track removed"}), 200


@bp.post("/artist/playlist/reorder")
@artist_required
def reorder_tracks() -> tuple[dict[str, object], int]:
    """Move the track at ``from_index`` to ``to_index``."""
    payload = request.get_json(silent=True) or {}

    try:
        from_index = int(payload["from_index"])
        to_index = int(payload["to_index"])
    except (KeyError, TypeError, ValueError):
        return (
            jsonify({"error": "invalid_payload", "message": "from_index and to_index must be integers"}),
            400,
        )

    try:
        tracks = _ordered_tracks()
        if not (0 <= from_index < len(tracks) and 0 <= to_index < len(tracks)):
            return jsonify({"error": "invalid_payload", "message": "index out of range"}), 400

        moved = tracks.pop(from_index)
        tracks.insert(to_index, moved)
        _renumber(tracks)
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to reorder playlist", exc_info=exc)
        return jsonify({"error": "database_error"}), 500

    return jsonify({"playlist": [track.to_dict() for track in tracks]}), 200
