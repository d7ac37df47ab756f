"""Tests for the tour archive and tour management endpoints."""
from __future__ import annotations

from datetime import timedelta
from unittest.mock import patch

import pytest
from botocore.exceptions import ClientError

from stagepass.extensions import db
from stagepass.models import PhotoSubmission, Tour, today


def _tour(title: str, days_from_today: int) -> Tour:
    tour = Tour(
        title=title,
        date=today() + timedelta(days=days_from_today),
        venue="Sony Hall",
        city="New York, NY",
    )
    db.session.add(tour)
    db.session.commit()
    return tour


@pytest.fixture
def tours(app):
    return {
        "soon": _tour("Soon", 10),
        "later": _tour("Later", 40),
        "last_month": _tour("Last Month", -30),
        "last_year": _tour("Last Year", -365),
    }


def test_list_tours_upcoming_in_date_order(client, tours) -> None:
    response = client.get("/tours?status=upcoming")

    assert response.status_code == 200
    titles = [t["title"] for t in response.get_json()["tours"]]
    assert titles == ["Soon", "Later"]
    assert all(t["status"] == "upcoming" for t in response.get_json()["tours"])


def test_list_tours_past_newest_first(client, tours) -> None:
    response = client.get("/tours?status=past")

    titles = [t["title"] for t in response.get_json()["tours"]]
    assert titles == ["Last Month", "Last Year"]


def test_list_tours_unknown_status_400(client) -> None:
    response = client.get("/tours?status=cancelled")

    assert response.status_code == 400
    assert response.get_json()["error"] == "invalid_payload"


def test_show_dated_today_counts_as_past(client) -> None:
    tour = _tour("Tonight", 0)

    response = client.get(f"/tours/{tour.tour_id}")

    assert response.get_json()["tour"]["status"] == "past"


def test_photo_count_only_counts_approved(client, tours) -> None:
    tour = tours["last_month"]
    for status in ("approved", "approved", "pending", "rejected"):
        db.session.add(PhotoSubmission(
            tour_id=tour.tour_id, file_path="k", file_url="u", status=status,
        ))
    db.session.commit()

    response = client.get(f"/tours/{tour.tour_id}")

    assert response.get_json()["tour"]["photo_count"] == 2


def test_get_tour_not_found_404(client) -> None:
    response = client.get("/tours/999")

    assert response.status_code == 404
    assert response.get_json()["error"] == "not_found"


def test_create_tour_derives_status(client, auth_headers) -> None:
    future = (today() + timedelta(days=5)).isoformat()

    response = client.post(
        "/artist/tours",
        json={"title": "Brand Nubian Live", "date": future, "venue": "MSG", "city": "New York, NY"},
        headers=auth_headers,
    )

    assert response.status_code == 201
    tour = response.get_json()["tour"]
    assert tour["status"] == "upcoming"
    assert tour["photo_count"] == 0
    assert Tour.query.count() == 1


def test_create_tour_missing_field_400(client, auth_headers) -> None:
    response = client.post(
        "/artist/tours",
        json={"title": "No Venue", "date": "2030-01-01", "city": "Denver, CO"},
        headers=auth_headers,
    )

    assert response.status_code == 400
    assert response.get_json()["error"] == "invalid_payload"


def test_create_tour_bad_date_400(client, auth_headers) -> None:
    response = client.post(
        "/artist/tours",
        json={"title": "T", "date": "next friday", "venue": "V", "city": "C"},
        headers=auth_headers,
    )

    assert response.status_code == 400


def test_create_tour_requires_artist(client) -> None:
    response = client.post(
        "/artist/tours",
        json={"title": "T", "date": "2030-01-01", "venue": "V", "city": "C"},
    )

    assert response.status_code == 401


def test_update_tour_moving_date_changes_status(client, auth_headers, tours) -> None:
    tour = tours["soon"]
    past = (today() - timedelta(days=3)).isoformat()

    response = client.put(
        f"/artist/tours/{tour.tour_id}",
        json={"date": past, "venue": "The Anthem"},
        headers=auth_headers,
    )

    assert response.status_code == 200
    body = response.get_json()["tour"]
    assert body["status"] == "past"
    assert body["venue"] == "The Anthem"
    assert body["title"] == "Soon"


def test_update_tour_not_found_404(client, auth_headers) -> None:
    response = client.put("/artist/tours/999", json={"title": "x"}, headers=auth_headers)

    assert response.status_code == 404


def test_delete_tour_removes_its_photos(client, auth_headers, tours) -> None:
    tour_id = tours["last_year"].tour_id
    db.session.add_all([
        PhotoSubmission(tour_id=tour_id, file_path=f"{tour_id}/1_abc123.jpg", file_url="u1"),
        PhotoSubmission(tour_id=tour_id, file_path=f"{tour_id}/2_def456.png", file_url="u2"),
    ])
    db.session.commit()

    with patch("stagepass.storage.boto3") as mock_boto3:
        response = client.delete(f"/artist/tours/{tour_id}", headers=auth_headers)

    assert response.status_code == 200
    assert db.session.get(Tour, tour_id) is None
    assert PhotoSubmission.query.filter_by(tour_id=tour_id).count() == 0
    deleted = {c.kwargs["Key"] for c in mock_boto3.client.return_value.delete_object.call_args_list}
    assert deleted == {f"{tour_id}/1_abc123.jpg", f"{tour_id}/2_def456.png"}


def test_delete_tour_succeeds_when_storage_cleanup_fails(client, auth_headers, tours) -> None:
    tour_id = tours["last_year"].tour_id
    db.session.add(PhotoSubmission(tour_id=tour_id, file_path=f"{tour_id}/1_abc123.jpg", file_url="u"))
    db.session.commit()

    with patch("stagepass.storage.boto3") as mock_boto3:
        mock_boto3.client.return_value.delete_object.side_effect = ClientError(
            {"Error": {"Code": "AccessDenied", "Message": "Access Denied"}}, "DeleteObject"
        )
        response = client.delete(f"/artist/tours/{tour_id}", headers=auth_headers)

    assert response.status_code == 200
    assert db.session.get(Tour, tour_id) is None
