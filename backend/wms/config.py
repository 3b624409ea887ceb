# backend/wms/config.py
from __future__ import annotations
import os


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    return int(raw)


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/wms.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///wms.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Caller identity: external auth id forwarded by the identity proxy
    AUTH_HEADER = os.environ.get("WMS_AUTH_HEADER", "X-Auth-User")

    # Fan-out bounds
    FANOUT_MAX_STORES = _env_int("WMS_FANOUT_MAX_STORES", 500)
    SEARCH_RESULT_LIMIT = _env_int("WMS_SEARCH_RESULT_LIMIT", 20)
    SEARCH_PER_STORE_LIMIT = _env_int("WMS_SEARCH_PER_STORE_LIMIT", 10)

    # Embeddings (search vectors are derived artifacts; unset key disables them)
    OPENAI_API_KEY = os.environ.get("OPENAI_API_KEY")
    EMBEDDING_MODEL = os.environ.get("WMS_EMBEDDING_MODEL", "text-embedding-3-small")
    EMBEDDING_DIMENSIONS = _env_int("WMS_EMBEDDING_DIMENSIONS", 768)
    EMBEDDING_TIMEOUT = _env_int("WMS_EMBEDDING_TIMEOUT", 30)

    # Background tasks run inline when eager (tests, CLI one-shots)
    TASKS_EAGER = os.environ.get("WMS_TASKS_EAGER", "false").lower() == "true"

    # Object storage for product images: "local" (directory) or "s3" (bucket)
    OBJECT_STORAGE_BACKEND = os.environ.get("WMS_OBJECT_STORAGE_BACKEND", "local")

    # local backend
    OBJECT_STORAGE_DIR = os.environ.get("WMS_OBJECT_STORAGE_DIR", "uploads")
    OBJECT_STORAGE_URL_PREFIX = os.environ.get("WMS_OBJECT_STORAGE_URL_PREFIX", "/uploads")

    # s3 backend (AWS or any S3-compatible endpoint)
    AWS_ACCESS_KEY_ID = os.environ.get("AWS_ACCESS_KEY_ID")
    AWS_SECRET_ACCESS_KEY = os.environ.get("AWS_SECRET_ACCESS_KEY")
    AWS_S3_REGION_NAME = os.environ.get("AWS_S3_REGION_NAME")
    AWS_S3_ENDPOINT_URL = os.environ.get("AWS_S3_ENDPOINT_URL")
    AWS_STORAGE_BUCKET_NAME = os.environ.get("AWS_STORAGE_BUCKET_NAME")
    OBJECT_STORAGE_LOCATION = os.environ.get("WMS_OBJECT_STORAGE_LOCATION", "media")
    OBJECT_STORAGE_URL_EXPIRES = _env_int("WMS_OBJECT_STORAGE_URL_EXPIRES", 3600)
