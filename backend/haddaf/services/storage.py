from __future__ import annotations
import io
import uuid
import structlog
from minio import Minio
from minio.error import S3Error
from haddaf.config import settings

log = structlog.get_logger()

VIDEO_MIME = "video/mp4"

def _parse_endpoint(ep: str) -> tuple[str, bool]:
    # Return (host:port, secure)
    secure = ep.startswith("https://")
    host = ep.replace("http://", "").replace("https://", "")
    return host, secure

def submission_storage_path(challenge_id, uid: str) -> str:
    return f"challenges/{challenge_id}/submissions/{uid}/{uuid.uuid4()}.mp4"


class MediaStore:
    """Blob storage for submission videos (any S3-compatible endpoint)."""

    def __init__(self, client: Minio, bucket: str):
        self._client = client
        self.bucket = bucket

    @classmethod
    def from_settings(cls) -> "MediaStore":
        host, secure = _parse_endpoint(settings.s3_endpoint)
        client = Minio(host, access_key=settings.s3_access_key, secret_key=settings.s3_secret_key, secure=secure)
        return cls(client, settings.s3_bucket_uploads)

    def ensure_bucket(self) -> None:
        try:
            if not self._client.bucket_exists(self.bucket):
                self._client.make_bucket(self.bucket)
        except S3Error as e:
            # Another instance may have created it between the two calls
            if e.code not in ("BucketAlreadyOwnedByYou", "BucketAlreadyExists"):
                raise

    def put_bytes(self, key: str, data: bytes, content_type: str) -> None:
        self._client.put_object(
            self.bucket, key, io.BytesIO(data), length=len(data), content_type=content_type
        )

    def get_bytes(self, key: str) -> tuple[bytes, str]:
        """
        Retrieve object from storage.
        Returns (data, content_type).
        """
        try:
            response = self._client.get_object(self.bucket, key)
            try:
                data = response.read()
                content_type = response.headers.get("Content-Type", "application/octet-stream")
            finally:
                response.close()
                response.release_conn()
            return data, content_type
        except S3Error as e:
            if e.code == "NoSuchKey":
                raise FileNotFoundError(f"Object not found: {key}")
            raise

    def delete(self, key: str) -> None:
        self._client.remove_object(self.bucket, key)


_store: MediaStore | None = None

def get_media_store() -> MediaStore:
    # Built on first use so importing the app never touches the network
    global _store
    if _store is None:
        store = MediaStore.from_settings()
        store.ensure_bucket()
        log.info("media_store_ready", bucket=store.bucket)
        _store = store
    return _store
