"""Query helpers shared by the photo gallery and moderation routes."""
from __future__ import annotations

from sqlalchemy import case, func

from .models import PhotoSubmission

SORT_OPTIONS = ("recent", "oldest", "quality", "likes", "author")

_QUALITY_RANK = case(
    (PhotoSubmission.quality == "high", 3),
    (PhotoSubmission.quality == "medium", 2),
    else_=1,
)


def _folded(value) -> str:
    return (value or "").casefold()


def matches(photo: PhotoSubmission, text: str) -> bool:
    """Case-insensitive substring match over caption, author, show details and each tag.

    The text is literal (``%`` and ``_`` are ordinary characters) and
    ``casefold`` handles non-ASCII letters regardless of the database.
    """
    needle = _folded(text)
    if not needle:
        return True

    tour = photo.tour
    fields = [photo.caption, photo.author_name]
    if tour is not None:
        fields += [tour.title, tour.venue, tour.city]
    fields += list(photo.tags or [])
    return any(needle in _folded(value) for value in fields)


def search(photos: list[PhotoSubmission], text: str) -> list[PhotoSubmission]:
    return [photo for photo in photos if matches(photo, text)]


def apply_sort(query, sort: str):
    if sort == "oldest":
        return query.order_by(PhotoSubmission.created_at.asc(), PhotoSubmission.photo_id.asc())
    if sort == "quality":
        return query.order_by(_QUALITY_RANK.desc(), PhotoSubmission.created_at.desc())
    if sort == "likes":
        return query.order_by(PhotoSubmission.likes.desc(), PhotoSubmission.created_at.desc())
    if sort == "author":
        return query.order_by(func.lower(PhotoSubmission.author_name).asc(), PhotoSubmission.photo_id.asc())
    return query.order_by(PhotoSubmission.created_at.desc(), PhotoSubmission.photo_id.desc())


def photo_stats(photos: list[PhotoSubmission]) -> dict[str, int]:
    return {
        "total": len(photos),
        "approved": sum(1 for p in photos if p.status == "approved"),
        "pending": sum(1 for p in photos if p.status == "pending"),
        "rejected": sum(1 for p in photos if p.status == "rejected"),
        "featured": sum(1 for p in photos if p.featured),
        "high_quality": sum(1 for p in photos if p.quality == "high"),
    }


def top_contributors(photos: list[PhotoSubmission]) -> list[dict[str, object]]:
    contributors: dict[str, dict[str, object]] = {}
    for photo in photos:
        name = photo.author_name or "Anonymous"
        entry = contributors.setdefault(
            name,
            {
                "name": name,
                "email": photo.author_email,
                "photo_count": 0,
                "approved_count": 0,
                "featured_count": 0,
            },
        )
        entry["photo_count"] += 1
        if photo.status == "approved":
            entry["approved_count"] += 1
        if photo.featured:
            entry["featured_count"] += 1

    # sorted() is stable, so ties keep first-seen order
    return sorted(contributors.values(), key=lambda c: c["photo_count"], reverse=True)
