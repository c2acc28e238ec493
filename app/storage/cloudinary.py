"""
Cloudinary video upload over the REST upload API (signed requests, httpx sync client).
"""
import hashlib
import logging
import time
from dataclasses import dataclass
from typing import BinaryIO

import httpx
import pybreaker

from app.services.circuit_breaker import get_circuit_breaker
from app.storage.base import MediaStorage, UploadResult
from app.utils.metrics import upstream_request_duration_seconds

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CloudinaryConfig:
    cloud_name: str
    api_key: str
    api_secret: str
    api_url: str = "https://api.cloudinary.com/v1_1"
    timeout: float = 300.0

    @classmethod
    def from_settings(cls, settings) -> "CloudinaryConfig":
        return cls(
            cloud_name=settings.cloudinary_cloud_name,
            api_key=settings.cloudinary_api_key,
            api_secret=settings.cloudinary_api_secret,
            api_url=settings.cloudinary_api_url,
            timeout=settings.cloudinary_timeout,
        )


def sign_params(params: dict[str, str], api_secret: str) -> str:
    """Cloudinary signature: sha1 of sorted 'k=v' pairs joined by '&' followed by the secret."""
    to_sign = "&".join(f"{k}={params[k]}" for k in sorted(params) if params[k] not in (None, ""))
    return hashlib.sha1((to_sign + api_secret).encode("utf-8")).hexdigest()


def _error_message(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text or f"HTTP {resp.status_code}"
    err = body.get("error") if isinstance(body, dict) else None
    if isinstance(err, dict) and err.get("message"):
        return err["message"]
    return resp.text or f"HTTP {resp.status_code}"


class CloudinaryStorage(MediaStorage):
    """Upload-only Cloudinary client for video assets."""

    def __init__(self, config: CloudinaryConfig, transport: httpx.BaseTransport | None = None) -> None:
        self.config = config
        self._client = httpx.Client(timeout=config.timeout, transport=transport)
        self._breaker = get_circuit_breaker("cloudinary")

    @property
    def upload_url(self) -> str:
        return f"{self.config.api_url.rstrip('/')}/{self.config.cloud_name}/video/upload"

    def _post(self, filename: str, stream: BinaryIO, folder: str) -> httpx.Response:
        params = {"folder": folder, "timestamp": str(int(time.time()))}
        data = {
            **params,
            "api_key": self.config.api_key,
            "signature": sign_params(params, self.config.api_secret),
        }
        # TODO: switch to chunked upload (X-Unique-Upload-Id + Content-Range) for files above 100MB,
        # Cloudinary rejects larger single-request video uploads on most plans.
        resp = self._client.post(self.upload_url, data=data, files={"file": (filename, stream)})
        if resp.status_code >= 500:
            # only server-side failures count against the breaker
            resp.raise_for_status()
        return resp

    def upload_video(self, filename: str, stream: BinaryIO, folder: str) -> UploadResult:
        start = time.time()
        try:
            resp = self._breaker.call(self._post, filename, stream, folder)
        except pybreaker.CircuitBreakerError:
            logger.warning("cloudinary_circuit_open")
            return UploadResult(status_code=503, error_message="Media storage is temporarily unavailable")
        except httpx.HTTPStatusError as e:
            logger.warning("cloudinary_upload_failed", extra={"status_code": e.response.status_code})
            return UploadResult(status_code=e.response.status_code, error_message=_error_message(e.response))
        except httpx.HTTPError as e:
            logger.warning("cloudinary_transport_error", extra={"error": str(e)})
            return UploadResult(status_code=502, error_message=str(e) or type(e).__name__)
        finally:
            upstream_request_duration_seconds.labels(service="cloudinary").observe(time.time() - start)

        if resp.status_code != 200:
            logger.warning("cloudinary_upload_rejected", extra={"status_code": resp.status_code})
            return UploadResult(status_code=resp.status_code, error_message=_error_message(resp))

        try:
            body = resp.json()
        except ValueError:
            return UploadResult(status_code=502, error_message="Invalid response from media storage")
        secure_url = body.get("secure_url")
        if not secure_url:
            return UploadResult(status_code=502, error_message="Media storage returned no URL")
        return UploadResult(status_code=200, secure_url=secure_url, public_id=body.get("public_id"))
