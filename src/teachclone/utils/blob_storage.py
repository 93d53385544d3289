"""
Blob storage for raw video bytes.

Keys are content-addressed (sha256 of the bytes). Two backends: a local
directory for development and tests, and Cloudflare R2 through the S3 API.
"""
import hashlib
import os
import re
from pathlib import Path
from typing import Optional, Tuple

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError
from loguru import logger

from teachclone.errors import StorageFailure
from teachclone.utils.config_loader import AppSettings, get_settings


def safe_key(s: str) -> str:
    s = s.strip()
    s = re.sub(r"[^a-zA-Z0-9._/-]+", "_", s)
    s = re.sub(r"_+", "_", s)
    return s


def content_key(data: bytes, filename: str = "", prefix: str = "videos") -> Tuple[str, str]:
    """Return (blob key, sha256 hex digest) for a payload"""
    digest = hashlib.sha256(data).hexdigest()
    ext = Path(filename).suffix.lower() if filename else ""
    return safe_key(f"{prefix}/{digest}{ext}"), digest


class BlobStore:
    def put_blob(self, key: str, data: bytes, content_type: str = "application/octet-stream") -> str:
        raise NotImplementedError

    def get_blob(self, key: str) -> Optional[bytes]:
        raise NotImplementedError

    def delete_blob(self, key: str) -> None:
        raise NotImplementedError


class LocalBlobStore(BlobStore):
    def __init__(self, root: str):
        self.root = Path(root).resolve()
        self.root.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        path = (self.root / safe_key(key)).resolve()
        if self.root not in path.parents:
            raise StorageFailure(f"Blob key escapes storage root: {key}")
        return path

    def put_blob(self, key: str, data: bytes, content_type: str = "application/octet-stream") -> str:
        path = self._path(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as e:
            raise StorageFailure(f"Could not write blob {key}: {e}") from e
        return key

    def get_blob(self, key: str) -> Optional[bytes]:
        path = self._path(key)
        if not path.is_file():
            return None
        try:
            return path.read_bytes()
        except OSError as e:
            raise StorageFailure(f"Could not read blob {key}: {e}") from e

    def delete_blob(self, key: str) -> None:
        path = self._path(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageFailure(f"Could not delete blob {key}: {e}") from e


def _get_bucket() -> str:
    bucket = os.getenv("R2_BUCKET")
    if not bucket:
        raise RuntimeError("Missing R2_BUCKET")
    return bucket


def r2_client():
    endpoint = os.getenv("R2_ENDPOINT")
    access_key = os.getenv("R2_ACCESS_KEY_ID")
    secret_key = os.getenv("R2_SECRET_ACCESS_KEY")
    if not endpoint or not access_key or not secret_key:
        raise RuntimeError(
            "Missing R2 config. Required: R2_ENDPOINT, R2_ACCESS_KEY_ID, R2_SECRET_ACCESS_KEY"
        )
    return boto3.client(
        "s3",
        endpoint_url=endpoint,
        aws_access_key_id=access_key,
        aws_secret_access_key=secret_key,
        region_name="auto",
        config=Config(signature_version="s3v4"),
    )


class R2BlobStore(BlobStore):
    def __init__(self, client=None, bucket: Optional[str] = None):
        self.s3 = client or r2_client()
        self.bucket = bucket or _get_bucket()

    def put_blob(self, key: str, data: bytes, content_type: str = "application/octet-stream") -> str:
        try:
            self.s3.put_object(Bucket=self.bucket, Key=key, Body=data, ContentType=content_type)
        except (ClientError, BotoCoreError) as e:
            raise StorageFailure(f"Could not upload blob {key}: {e}") from e
        return key

    def get_blob(self, key: str) -> Optional[bytes]:
        try:
            obj = self.s3.get_object(Bucket=self.bucket, Key=key)
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "")
            if code in ("NoSuchKey", "404", "NotFound"):
                return None
            raise StorageFailure(f"Could not download blob {key}: {e}") from e
        except BotoCoreError as e:
            raise StorageFailure(f"Could not download blob {key}: {e}") from e
        return obj["Body"].read()

    def delete_blob(self, key: str) -> None:
        try:
            self.s3.delete_object(Bucket=self.bucket, Key=key)
        except (ClientError, BotoCoreError) as e:
            raise StorageFailure(f"Could not delete blob {key}: {e}") from e


def get_blob_store(settings: Optional[AppSettings] = None) -> BlobStore:
    settings = settings or get_settings()
    if settings.blob_backend == "r2":
        logger.info("Using R2 blob storage")
        return R2BlobStore()
    return LocalBlobStore(settings.blob_dir)
