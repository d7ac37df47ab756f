"""Database models for the StagePass backend."""
from __future__ import annotations

from datetime import date, datetime, timezone

from .extensions import db


def utc_now() -> datetime:
    """Return a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def today() -> date:
    return utc_now().date()


PHOTO_STATUSES = ("pending", "approved", "rejected")
PHOTO_QUALITIES = ("high", "medium", "low")
CLIENT_TYPES = ("venue", "label", "artist", "supervisor", "student", "other")
INVOICE_STATUSES = ("draft", "sent", "viewed", "paid", "overdue", "cancelled")
LINE_ITEM_CATEGORIES = (
    "performance",
    "recording",
    "collaboration",
    "merchandise",
    "licensing",
    "teaching",
    "session",
)


def _iso(value):
    return value.isoformat() if value else None


class ArtistAccount(db.Model):
    __tablename__ = "artist_accounts"

    artist_id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(150), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    last_login_at = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, nullable=False, default=utc_now)

    def to_dict_basic(self) -> dict[str, object]:
        return {
            "id": self.artist_id,
            "name": self.name,
            "email": self.email,
        }


class Tour(db.Model):
    __tablename__ = "tours"

    tour_id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False)
    date = db.Column(db.Date, nullable=False)
    venue = db.Column(db.String(200), nullable=False)
    city = db.Column(db.String(150), nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utc_now)
    updated_at = db.Column(
        db.DateTime,
        nullable=False,
        default=utc_now,
        onupdate=utc_now,
    )

    photos = db.relationship(
        "PhotoSubmission",
        back_populates="tour",
        cascade="all, delete-orphan",
    )

    @property
    def status(self) -> str:
        # A show dated today is already "past"
        return "upcoming" if self.date > today() else "past"

    @property
    def photo_count(self) -> int:
        return PhotoSubmission.query.filter_by(tour_id=self.tour_id, status="approved").count()

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.tour_id,
            "title": self.title,
            "date": self.date.isoformat(),
            "venue": self.venue,
            "city": self.city,
            "status": self.status,
            "photo_count": self.photo_count,
        }


class PhotoSubmission(db.Model):
    __tablename__ = "photo_submissions"

    photo_id = db.Column(db.Integer, primary_key=True)
    tour_id = db.Column(db.Integer, db.ForeignKey("tours.tour_id"), nullable=False)
    file_path = db.Column(db.String(500), nullable=False)
    file_url = db.Column(db.String(1000), nullable=False)
    caption = db.Column(db.Text)
    author_name = db.Column(db.String(150))
    author_email = db.Column(db.String(255))
    instagram_handle = db.Column(db.String(100))
    status = db.Column(
        db.Enum(
            *PHOTO_STATUSES,
            name="photo_status",
            native_enum=False,
            validate_strings=True,
        ),
        nullable=False,
        default="pending",
        server_default="pending",
    )
    featured = db.Column(db.Boolean, nullable=False, default=False, server_default="0")
    likes = db.Column(db.Integer, nullable=False, default=0, server_default="0")
    quality = db.Column(
        db.Enum(
            *PHOTO_QUALITIES,
            name="photo_quality",
            native_enum=False,
            validate_strings=True,
        ),
        nullable=False,
        default="medium",
        server_default="medium",
    )
    tags = db.Column(db.JSON, nullable=True, default=list)
    resolution = db.Column(db.String(30))
    file_size = db.Column(db.Integer)  # bytes
    content_score = db.Column(db.Integer)  # 0-100 moderation score
    created_at = db.Column(db.DateTime, nullable=False, default=utc_now)
    updated_at = db.Column(
        db.DateTime,
        nullable=False,
        default=utc_now,
        onupdate=utc_now,
    )

    tour = db.relationship("Tour", back_populates="photos")

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.photo_id,
            "tour_id": self.tour_id,
            "tour_title": self.tour.title if self.tour else None,
            "venue": self.tour.venue if self.tour else None,
            "city": self.tour.city if self.tour else None,
            "show_date": _iso(self.tour.date) if self.tour else None,
            "file_path": self.file_path,
            "file_url": self.file_url,
            "caption": self.caption,
            "author_name": self.author_name,
            "author_email": self.author_email,
            "instagram_handle": self.instagram_handle,
            "status": self.status,
            "featured": bool(self.featured),
            "likes": self.likes or 0,
            "quality": self.quality,
            "tags": list(self.tags or []),
            "resolution": self.resolution,
            "file_size": self.file_size,
            "content_score": self.content_score,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }


class PlaylistTrack(db.Model):
    __tablename__ = "playlist_tracks"

    track_id = db.Column(db.Integer, primary_key=True)
    position = db.Column(db.Integer, nullable=False, default=0)
    title = db.Column(db.String(200), nullable=False)
    artist = db.Column(db.String(200), nullable=False)
    album = db.Column(db.String(200))
    duration = db.Column(db.String(10))
    reason = db.Column(db.Text)

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.track_id,
            "position": self.position,
            "title": self.title,
            "artist": self.artist,
            "album": self.album,
            "duration": self.duration,
            "reason": self.reason,
        }


class Client(db.Model):
    __tablename__ = "clients"

    client_id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(150), nullable=False)
    email = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(30))
    address = db.Column(db.String(200))
    city = db.Column(db.String(100))
    state = db.Column(db.String(100))
    zip_code = db.Column(db.String(20))
    type = db.Column(
        db.Enum(
            *CLIENT_TYPES,
            name="client_type",
            native_enum=False,
            validate_strings=True,
        ),
        nullable=False,
        default="other",
        server_default="other",
    )
    notes = db.Column(db.Text)
    created_at = db.Column(db.DateTime, nullable=False, default=utc_now)

    invoices = db.relationship("Invoice", back_populates="client", lazy="dynamic")

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.client_id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "address": self.address,
            "city": self.city,
            "state": self.state,
            "zip_code": self.zip_code,
            "type": self.type,
            "notes": self.notes,
            "created_at": _iso(self.created_at),
        }


class Invoice(db.Model):
    __tablename__ = "invoices"

    invoice_id = db.Column(db.Integer, primary_key=True)
    invoice_number = db.Column(db.String(30), unique=True, nullable=False)
    client_id = db.Column(db.Integer, db.ForeignKey("clients.client_id"), nullable=False)
    status = db.Column(
        db.Enum(
            *INVOICE_STATUSES,
            name="invoice_status",
            native_enum=False,
            validate_strings=True,
        ),
        nullable=False,
        default="draft",
        server_default="draft",
    )
    issue_date = db.Column(db.Date, nullable=False)
    due_date = db.Column(db.Date, nullable=False)
    payment_terms = db.Column(db.String(20), nullable=False, default="Net 30")
    tax_rate = db.Column(db.Float, nullable=False, default=0.0)  # percent
    subtotal_cents = db.Column(db.Integer, nullable=False, default=0)
    tax_cents = db.Column(db.Integer, nullable=False, default=0)
    total_cents = db.Column(db.Integer, nullable=False, default=0)
    notes = db.Column(db.Text)
    payment_method = db.Column(db.String(50))
    paid_date = db.Column(db.Date)
    sent_date = db.Column(db.Date)
    viewed_date = db.Column(db.Date)
    reminders_sent = db.Column(db.Integer, nullable=False, default=0)
    last_reminder_at = db.Column(db.DateTime)
    payment_intent_id = db.Column(db.String(255), unique=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utc_now)
    updated_at = db.Column(
        db.DateTime,
        nullable=False,
        default=utc_now,
        onupdate=utc_now,
    )

    client = db.relationship("Client", back_populates="invoices")
    items = db.relationship(
        "InvoiceLineItem",
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="InvoiceLineItem.line_item_id",
    )

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.invoice_id,
            "invoice_number": self.invoice_number,
            "client_id": self.client_id,
            "client_name": self.client.name if self.client else None,
            "status": self.status,
            "issue_date": _iso(self.issue_date),
            "due_date": _iso(self.due_date),
            "payment_terms": self.payment_terms,
            "tax_rate": self.tax_rate,
            "items": [item.to_dict() for item in self.items],
            "subtotal_cents": self.subtotal_cents,
            "tax_cents": self.tax_cents,
            "total_cents": self.total_cents,
            "notes": self.notes,
            "payment_method": self.payment_method,
            "paid_date": _iso(self.paid_date),
            "sent_date": _iso(self.sent_date),
            "viewed_date": _iso(self.viewed_date),
            "reminders_sent": self.reminders_sent or 0,
            "last_reminder_at": _iso(self.last_reminder_at),
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }


class InvoiceLineItem(db.Model):
    __tablename__ = "invoice_line_items"

    line_item_id = db.Column(db.Integer, primary_key=True)
    invoice_id = db.Column(db.Integer, db.ForeignKey("invoices.invoice_id"), nullable=False)
    description = db.Column(db.String(255), nullable=False)
    quantity = db.Column(db.Float, nullable=False, default=1)
    rate_cents = db.Column(db.Integer, nullable=False, default=0)
    amount_cents = db.Column(db.Integer, nullable=False, default=0)
    category = db.Column(
        db.Enum(
            *LINE_ITEM_CATEGORIES,
            name="line_item_category",
            native_enum=False,
            validate_strings=True,
        ),
        nullable=False,
        default="performance",
        server_default="performance",
    )

    invoice = db.relationship("Invoice", back_populates="items")

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.line_item_id,
            "description": self.description,
            "quantity": self.quantity,
            "rate_cents": self.rate_cents,
            "amount_cents": self.amount_cents,
            "category": self.category,
        }
