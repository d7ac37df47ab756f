"""Object storage for fan photo uploads (S3 via boto3)."""
from __future__ import annotations

import random
import string
import time

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from flask import current_app

ALLOWED_EXTENSIONS = {"jpg", "jpeg", "png", "gif", "webp", "heic"}


class StorageError(Exception):
    """Raised when the object store rejects an upload or delete."""


def file_extension(filename: str | None) -> str:
    if filename and "." in filename:
        ext = filename.rsplit(".", 1)[-1].strip().lower()
        if ext:
            return ext
    return "jpg"


def build_photo_key(tour_id: int, filename: str | None) -> str:
    """Tour-scoped object key: ``<tour_id>/<epoch-ms>_<6 chars>.<ext>``."""
    timestamp = int(time.time() * 1000)
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=6))
    return f"{tour_id}/{timestamp}_{suffix}.{file_extension(filename)}"


def public_url(key: str) -> str:
    base_url = current_app.config.get("PHOTO_PUBLIC_BASE_URL")
    if base_url:
        return f"{base_url.rstrip('/')}/{key}"
    bucket_name = current_app.config["PHOTO_BUCKET"]
    return f"https://{bucket_name}.s3.amazonaws.com/{key}"


def upload_photo(fileobj, key: str, content_type: str | None = None) -> str:
    """Upload ``fileobj`` under ``key`` and return its public URL."""
    bucket_name = current_app.config["PHOTO_BUCKET"]
    cache_seconds = current_app.config.get("PHOTO_CACHE_SECONDS", 3600)
    try:
        s3_client = boto3.client("s3")
        s3_client.upload_fileobj(
            fileobj,
            bucket_name,
            key,
            ExtraArgs={
                "ContentType": content_type or "image/jpeg",
                "CacheControl": f"max-age={cache_seconds}",
            },
        )
    except (BotoCoreError, ClientError) as exc:
        raise StorageError(str(exc)) from exc
    return public_url(key)


def delete_photo(key: str) -> None:
    bucket_name = current_app.config["PHOTO_BUCKET"]
    try:
        boto3.client("s3").delete_object(Bucket=bucket_name, Key=key)
    except (BotoCoreError, ClientError) as exc:
        raise StorageError(str(exc)) from exc


def discard_photo(key: str | None) -> None:
    """Best-effort delete once the database row is gone; failures are only logged."""
    if not key:
        return
    try:
        delete_photo(key)
    except StorageError as exc:
        current_app.logger.warning("Failed to delete stored photo %s: %s", key, exc)
