"""pytest fixtures: an app bound to an in-memory database and an artist login."""
from __future__ import annotations

import sys
from pathlib import Path

import pytest
from werkzeug.security import generate_password_hash

# Ensure the project root is available on sys.path so tests can import the stagepass package.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from stagepass import create_app
from stagepass.extensions import db
from stagepass.models import ArtistAccount

ARTIST_EMAIL = "artist@example.com"
ARTIST_PASSWORD = "Secret123!"


@pytest.fixture
def app():
    app = create_app({
        "TESTING": True,
        "SECRET_KEY": "test-secret",
        "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
        "PHOTO_BUCKET": "test-bucket",
        "PHOTO_PUBLIC_BASE_URL": None,
        "STRIPE_SECRET_KEY": None,
        "STRIPE_WEBHOOK_SECRET": None,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def artist(app):
    account = ArtistAccount(
        name="Brand Nubian",
        email=ARTIST_EMAIL,
        password_hash=generate_password_hash(ARTIST_PASSWORD),
    )
    db.session.add(account)
    db.session.commit()
    return account


@pytest.fixture
def auth_headers(client, artist):
    response = client.post(
        "/auth/login",
        json={"email": ARTIST_EMAIL, "password": ARTIST_PASSWORD},
    )
    token = response.get_json()["token"]
    return {"Authorization": f"Bearer {token}"}
