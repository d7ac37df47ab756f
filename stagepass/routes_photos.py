"""Routes for fan photo galleries, photo upload and artist-side moderation."""
from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request
from sqlalchemy.exc import SQLAlchemyError

from . import gallery, storage
from .auth import artist_required
from .extensions import db
from .models import PHOTO_QUALITIES, PHOTO_STATUSES, PhotoSubmission, Tour

bp_photos = Blueprint("photos", __name__)

BULK_ACTIONS = ("approve", "reject", "delete")


def _approved_photos():
    return PhotoSubmission.query.filter(PhotoSubmission.status == "approved").order_by(
        PhotoSubmission.created_at.desc(), PhotoSubmission.photo_id.desc()
    )


def _set_status(photo: PhotoSubmission, status: str) -> None:
    photo.status = status
    if status == "rejected":
        photo.featured = False


# --- Fan side ---


@bp_photos.post("/tours/<int:tour_id>/photos")
def upload_photo(tour_id: int) -> tuple[dict[str, object], int]:
    """Upload a fan photo for a show. New submissions wait for moderation.
    ---
    tags:
      - Photos
    consumes:
      - multipart/form-data
    parameters:
      - name: photo
        in: formData
        type: file
        required: true
      - name: caption
        in: formData
        type: string
      - name: author_name
        in: formData
        type: string
      - name: author_email
        in: formData
        type: string
      - name: instagram_handle
        in: formData
        type: string
    responses:
      201:
        description: Photo stored and pending review
      400:
        description: Missing or unsupported file
      404:
        description: Tour not found
      413:
        description: File too large
      502:
        description: Object storage rejected the upload
      500:
        description: Database error
    """
    tour = db.session.get(Tour, tour_id)
    if tour is None:
        return jsonify({"error": "not_found", "message": "tour not found"}), 404

    file = request.files.get("photo")
    if file is None or not file.filename:
        return jsonify({"error": "invalid_payload", "message": "a photo file is required"}), 400

    extension = storage.file_extension(file.filename)
    is_image_type = (file.mimetype or "").startswith("image/")
    if extension not in storage.ALLOWED_EXTENSIONS or not is_image_type:
        return jsonify({"error": "invalid_payload", "message": "only image files can be uploaded"}), 400

    file.stream.seek(0, 2)
    size = file.stream.tell()
    file.stream.seek(0)
    if size > current_app.config["MAX_PHOTO_BYTES"]:
        return jsonify({"error": "file_too_large", "message": "photo exceeds the upload size limit"}), 413

    key = storage.build_photo_key(tour_id, file.filename)
    current_app.logger.info(
        "Uploading photo for tour %s: %s (%s bytes, %s) -> %s",
        tour_id, file.filename, size, file.mimetype, key,
    )

    try:
        file_url = storage.upload_photo(file.stream, key, file.mimetype)
    except storage.StorageError as exc:
        current_app.logger.exception("Photo upload to storage failed", exc_info=exc)
        return jsonify({"error": "upload_failed", "message": f"Upload failed: {exc}"}), 502

    photo = PhotoSubmission(
        tour_id=tour_id,
        file_path=key,
        file_url=file_url,
        caption=(request.form.get("caption") or "").strip() or None,
        author_name=(request.form.get("author_name") or "").strip() or None,
        author_email=(request.form.get("author_email") or "").strip().lower() or None,
        instagram_handle=(request.form.get("instagram_handle") or "").strip().lstrip("@") or None,
        status="pending",
        featured=False,
        likes=0,
        tags=[],
        file_size=size,
    )

    try:
        db.session.add(photo)
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to record photo submission", exc_info=exc)
        return jsonify({"error": "database_error", "message": f"Database error: {exc}"}), 500

    current_app.logger.info("Photo submission %s stored for tour %s", photo.photo_id, tour_id)
    return jsonify({
        "message": "Photo uploaded successfully. It is now pending review.",
        "photo": photo.to_dict(),
    }), 201


@bp_photos.get("/tours/<int:tour_id>/photos")
def get_photos_by_tour(tour_id: int) -> tuple[dict[str, object], int]:
    if db.session.get(Tour, tour_id) is None:
        return jsonify({"error": "not_found", "message": "tour not found"}), 404

    try:
        photos = _approved_photos().filter(PhotoSubmission.tour_id == tour_id).all()
    except SQLAlchemyError as exc:
        current_app.logger.exception("Failed to fetch tour photos", exc_info=exc)
        return jsonify({"error": "database_error"}), 500

    return jsonify({"tour_id": tour_id, "photos": [p.to_dict() for p in photos]}), 200


@bp_photos.get("/tours/<int:tour_id>/photos/featured")
def get_featured_photo(tour_id: int) -> tuple[dict[str, object], int]:
    if db.session.get(Tour, tour_id) is None:
        return jsonify({"error": "not_found", "message": "tour not found"}), 404

    photo = _approved_photos().filter(
        PhotoSubmission.tour_id == tour_id,
        PhotoSubmission.featured.is_(True),
    ).first()
    return jsonify({"photo": photo.to_dict() if photo else None}), 200


@bp_photos.get("/photos")
def get_all_photos() -> tuple[dict[str, object], int]:
    try:
        photos = _approved_photos().all()
    except SQLAlchemyError as exc:
        current_app.logger.exception("Failed to fetch photos", exc_info=exc)
        return jsonify({"error": "database_error"}), 500
    return jsonify({"photos": [p.to_dict() for p in photos]}), 200


@bp_photos.post("/photos/<int:photo_id>/like")
def like_photo(photo_id: int) -> tuple[dict[str, object], int]:
    photo = db.session.get(PhotoSubmission, photo_id)
    if photo is None or photo.status != "approved":
        return jsonify({"error": "not_found", "message": "photo not found"}), 404

    try:
        PhotoSubmission.query.filter_by(photo_id=photo_id).update(
            {PhotoSubmission.likes: PhotoSubmission.likes + 1}
        )
        db.session.commit()
        db.session.refresh(photo)
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to like photo", exc_info=exc)
        return jsonify({"error": "database_error"}), 500

    return jsonify({"id": photo.photo_id, "likes": photo.likes}), 200


# --- Artist moderation ---


@bp_photos.get("/artist/photos")
@artist_required
def list_photos() -> tuple[dict[str, object], int]:
    """All submissions with optional status/tour filters, search and sort.
    ---
    tags:
      - Moderation
    parameters:
      - name: status
        in: query
        type: string
        enum: [pending, approved, rejected]
      - name: tour_id
        in: query
        type: integer
      - name: q
        in: query
        type: string
      - name: sort
        in: query
        type: string
        enum: [recent, oldest, quality, likes, author]
        default: recent
    """
    status = (request.args.get("status") or "").strip().lower()
    search_text = (request.args.get("q") or "").strip()
    sort = (request.args.get("sort") or "recent").strip().lower()

    if status and status not in PHOTO_STATUSES:
        return jsonify({"error": "invalid_payload", "message": "unknown status"}), 400
    if sort not in gallery.SORT_OPTIONS:
        sort = "recent"

    try:
        tour_id = request.args.get("tour_id", type=int)
        query = PhotoSubmission.query
        if status:
            query = query.filter(PhotoSubmission.status == status)
        if tour_id is not None:
            query = query.filter(PhotoSubmission.tour_id == tour_id)
        photos = gallery.apply_sort(query, sort).all()
    except SQLAlchemyError as exc:
        current_app.logger.exception("Failed to fetch photo submissions", exc_info=exc)
        return jsonify({"error": "database_error"}), 500

    if search_text:
        photos = gallery.search(photos, search_text)

    return jsonify({
        "photos": [p.to_dict() for p in photos],
        "filters": {"status": status, "tour_id": tour_id, "q": search_text, "sort": sort},
    }), 200


@bp_photos.get("/artist/photos/pending")
@artist_required
def get_pending_photos() -> tuple[dict[str, object], int]:
    photos = gallery.apply_sort(
        PhotoSubmission.query.filter(PhotoSubmission.status == "pending"), "oldest"
    ).all()
    return jsonify({"photos": [p.to_dict() for p in photos]}), 200


@bp_photos.get("/artist/photos/rejected")
@artist_required
def get_rejected_photos() -> tuple[dict[str, object], int]:
    photos = gallery.apply_sort(
        PhotoSubmission.query.filter(PhotoSubmission.status == "rejected"), "recent"
    ).all()
    return jsonify({"photos": [p.to_dict() for p in photos]}), 200


@bp_photos.get("/artist/photos/stats")
@artist_required
def get_all_stats() -> tuple[dict[str, object], int]:
    return jsonify({"stats": gallery.photo_stats(PhotoSubmission.query.all())}), 200


@bp_photos.get("/artist/photos/contributors")
@artist_required
def get_top_contributors() -> tuple[dict[str, object], int]:
    photos = PhotoSubmission.query.order_by(PhotoSubmission.created_at.asc()).all()
    return jsonify({"contributors": gallery.top_contributors(photos)}), 200


@bp_photos.get("/artist/tours/<int:tour_id>/photos/stats")
@artist_required
def get_show_stats(tour_id: int) -> tuple[dict[str, object], int]:
    if db.session.get(Tour, tour_id) is None:
        return jsonify({"error": "not_found", "message": "tour not found"}), 404

    photos = PhotoSubmission.query.filter_by(tour_id=tour_id).all()
    return jsonify({"tour_id": tour_id, "stats": gallery.photo_stats(photos)}), 200


def _moderate(photo_id: int, status: str, message: str) -> tuple[dict[str, object], int]:
    photo = db.session.get(PhotoSubmission, photo_id)
    if photo is None:
        return jsonify({"error": "not_found", "message": "photo not found"}), 404

    try:
        _set_status(photo, status)
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to moderate photo", exc_info=exc)
        return jsonify({"error": "database_error"}), 500

    return jsonify({"message": message, "photo": photo.to_dict()}), 200


@bp_photos.post("/artist/photos/<int:photo_id>/approve")
@artist_required
def approve_photo(photo_id: int) -> tuple[dict[str, object], int]:
    return _moderate(photo_id, "approved", "Photo approved")


@bp_photos.post("/artist/photos/<int:photo_id>/reject")
@artist_required
def reject_photo(photo_id: int) -> tuple[dict[str, object], int]:
    return _moderate(photo_id, "rejected", "Photo rejected")


@bp_photos.post("/artist/photos/<int:photo_id>/feature")
@artist_required
def set_featured_photo(photo_id: int) -> tuple[dict[str, object], int]:
    """Feature one photo of a show; every other photo of that show is un-featured."""
    photo = db.session.get(PhotoSubmission, photo_id)
    if photo is None:
        return jsonify({"error": "not_found", "message": "photo not found"}), 404

    try:
        PhotoSubmission.query.filter(
            PhotoSubmission.tour_id == photo.tour_id,
            PhotoSubmission.photo_id != photo.photo_id,
            PhotoSubmission.featured.is_(True),
        ).update({PhotoSubmission.featured: False}, synchronize_session="fetch")
        photo.featured = True
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to feature photo", exc_info=exc)
        return jsonify({"error": "database_error"}), 500

    return jsonify({"message": "Photo featured", "photo": photo.to_dict()}), 200


@bp_photos.patch("/artist/photos/<int:photo_id>")
@artist_required
def update_photo(photo_id: int) -> tuple[dict[str, object], int]:
    photo = db.session.get(PhotoSubmission, photo_id)
    if photo is None:
        return jsonify({"error": "not_found", "message": "photo not found"}), 404

    payload = request.get_json(silent=True) or {}

    if "caption" in payload:
        photo.caption = (payload.get("caption") or "").strip() or None

    if "tags" in payload:
        tags = payload.get("tags")
        if not isinstance(tags, list) or not all(isinstance(t, str) for t in tags):
            return jsonify({"error": "invalid_payload", "message": "tags must be a list of strings"}), 400
        photo.tags = [t.strip() for t in tags if t.strip()]

    if "quality" in payload:
        quality = payload.get("quality")
        if quality not in PHOTO_QUALITIES:
            return jsonify({"error": "invalid_payload", "message": "quality must be high, medium or low"}), 400
        photo.quality = quality

    try:
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to update photo", exc_info=exc)
        return jsonify({"error": "database_error"}), 500

    return jsonify({"message": "Photo updated", "photo": photo.to_dict()}), 200


@bp_photos.delete("/artist/photos/<int:photo_id>")
@artist_required
def delete_photo(photo_id: int) -> tuple[dict[str, object], int]:
    photo = db.session.get(PhotoSubmission, photo_id)
    if photo is None:
        return jsonify({"error": "not_found", "message": "photo not found"}), 404

    key = photo.file_path
    try:
        db.session.delete(photo)
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to delete photo", exc_info=exc)
        return jsonify({"error": "database_error"}), 500

    storage.discard_photo(key)
    return jsonify({"message": "Photo deleted"}), 200


@bp_photos.post("/artist/photos/bulk")
@artist_required
def bulk_moderate() -> tuple[dict[str, object], int]:
    """Approve, reject or delete several submissions at once."""
    payload = request.get_json(silent=True) or {}
    action = (payload.get("action") or "").strip().lower()
    photo_ids = payload.get("photo_ids")

    if action not in BULK_ACTIONS:
        return jsonify({"error": "invalid_payload", "message": "action must be approve, reject or delete"}), 400
    if not isinstance(photo_ids, list) or not photo_ids:
        return jsonify({"error": "invalid_payload", "message": "photo_ids must be a non-empty list"}), 400

    try:
        ids = {int(pid) for pid in photo_ids}
    except (TypeError, ValueError):
        return jsonify({"error": "invalid_payload", "message": "photo_ids must be integers"}), 400

    try:
        photos = PhotoSubmission.query.filter(PhotoSubmission.photo_id.in_(ids)).all()
        processed = sorted(photo.photo_id for photo in photos)
        keys = [photo.file_path for photo in photos]
        for photo in photos:
            if action == "delete":
                db.session.delete(photo)
            else:
                _set_status(photo, "approved" if action == "approve" else "rejected")
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to apply bulk moderation", exc_info=exc)
        return jsonify({"error": "database_error"}), 500

    if action == "delete":
        for key in keys:
            storage.discard_photo(key)

    return jsonify({
        "action": action,
        "processed": processed,
        "not_found": sorted(ids - set(processed)),
    }), 200
