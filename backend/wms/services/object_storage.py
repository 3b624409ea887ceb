# Overview: Object storage for product images; the services only thread opaque references.

from __future__ import annotations

import mimetypes
import os
import re
from pathlib import Path
from uuid import uuid4

import boto3
from botocore.exceptions import ClientError
from flask import current_app

_REF_PATTERN = re.compile(r"^[0-9a-f]{32}(\.[A-Za-z0-9]{1,10})?$")


class ObjectStorageError(Exception):
    """Raised when the storage backend rejects an operation."""


def new_ref(filename: str | None) -> str:
    return f"{uuid4().hex}{Path(filename or '').suffix.lower()}"


def is_valid_ref(ref: str | None) -> bool:
    return bool(ref) and _REF_PATTERN.match(ref) is not None


class LocalObjectStorage:
    """
    Stores uploaded files under a local directory.

    References are generated names (uuid + original extension), so a ref can
    never escape the storage root. All operations are idempotent on missing
    objects.
    """

    def __init__(self, root: str, url_prefix: str = "/uploads"):
        self.root = Path(root)
        self.url_prefix = url_prefix.rstrip("/")

    def put(self, stream, filename: str) -> str:
        self.root.mkdir(parents=True, exist_ok=True)
        ref = new_ref(filename)
        with open(self.root / ref, "wb") as fh:
            fh.write(stream.read())
        return ref

    def get_url(self, ref: str | None) -> str | None:
        path = self._path(ref)
        if path is None or not path.exists():
            return None
        return f"{self.url_prefix}/{ref}"

    def delete(self, ref: str | None) -> None:
        path = self._path(ref)
        if path is not None and path.exists():
            path.unlink()

    def _path(self, ref: str | None) -> Path | None:
        if not is_valid_ref(ref):
            return None
        return self.root / ref


class S3ObjectStorage:
    """
    Stores uploaded files in an S3 (or S3-compatible) bucket.

    Objects live under `location/<ref>`. URLs are presigned GET links that
    expire after `url_expires` seconds. Deleting a missing key succeeds.
    """

    def __init__(self, client, bucket_name: str, location: str = "media", url_expires: int = 3600):
        self.client = client
        self.bucket_name = bucket_name
        self.location = location.strip("/")
        self.url_expires = url_expires

    def _key(self, ref: str) -> str:
        return f"{self.location}/{ref}" if self.location else ref

    def put(self, stream, filename: str) -> str:
        ref = new_ref(filename)
        content_type = mimetypes.guess_type(filename or "")[0] or "application/octet-stream"
        try:
            self.client.put_object(
                Bucket=self.bucket_name,
                Key=self._key(ref),
                Body=stream.read(),
                ContentType=content_type,
            )
        except ClientError as e:
            error_code = e.response.get('Error', {}).get('Code', '')
            current_app.logger.error("S3 upload error for %s: %s", ref, error_code)
            raise ObjectStorageError(f"Upload failed ({error_code or 'unknown'})") from e
        return ref

    def get_url(self, ref: str | None) -> str | None:
        if not is_valid_ref(ref):
            return None
        try:
            return self.client.generate_presigned_url(
                'get_object',
                Params={'Bucket': self.bucket_name, 'Key': self._key(ref)},
                ExpiresIn=self.url_expires,
            )
        except ClientError as e:
            current_app.logger.error("Error generating presigned URL for %s: %s", ref, e)
            return None

    def delete(self, ref: str | None) -> None:
        if not is_valid_ref(ref):
            return
        try:
            self.client.delete_object(Bucket=self.bucket_name, Key=self._key(ref))
        except ClientError as e:
            error_code = e.response.get('Error', {}).get('Code', '')
            if error_code in ('404', 'NoSuchKey'):
                return
            raise ObjectStorageError(f"Delete failed ({error_code or 'unknown'})") from e


def _build_s3_storage(config) -> S3ObjectStorage:
    bucket = config.get("AWS_STORAGE_BUCKET_NAME")
    if not bucket:
        raise ValueError("AWS_STORAGE_BUCKET_NAME is required for the s3 storage backend")
    client = boto3.client(
        's3',
        aws_access_key_id=config.get("AWS_ACCESS_KEY_ID"),
        aws_secret_access_key=config.get("AWS_SECRET_ACCESS_KEY"),
        region_name=config.get("AWS_S3_REGION_NAME"),
        endpoint_url=config.get("AWS_S3_ENDPOINT_URL"),
    )
    return S3ObjectStorage(
        client,
        bucket,
        location=config.get("OBJECT_STORAGE_LOCATION", "media"),
        url_expires=config.get("OBJECT_STORAGE_URL_EXPIRES", 3600),
    )


def init_object_storage(app) -> None:
    backend = (app.config.get("OBJECT_STORAGE_BACKEND") or "local").lower()
    if backend == "s3":
        app.extensions["wms.storage"] = _build_s3_storage(app.config)
        return
    if backend != "local":
        raise ValueError(f"Unknown OBJECT_STORAGE_BACKEND: {backend}")

    root = app.config.get("OBJECT_STORAGE_DIR", "uploads")
    if not os.path.isabs(root):
        root = os.path.join(app.instance_path, root)
    app.extensions["wms.storage"] = LocalObjectStorage(
        root,
        url_prefix=app.config.get("OBJECT_STORAGE_URL_PREFIX", "/uploads"),
    )


def get_object_storage():
    return current_app.extensions["wms.storage"]


def image_url(ref: str | None) -> str | None:
    if not ref:
        return None
    return get_object_storage().get_url(ref)


def discard_refs(refs) -> None:
    """Delete objects whose owning rows are already gone; called after commit."""
    storage = get_object_storage()
    for ref in refs:
        if not ref:
            continue
        try:
            storage.delete(ref)
        except (OSError, ObjectStorageError):
            current_app.logger.exception("Failed to delete stored object %s", ref)
