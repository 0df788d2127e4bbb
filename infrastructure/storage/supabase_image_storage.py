import logging
from typing import Optional

import requests

from use_cases.errors import TransportError, classify_backend_error

log = logging.getLogger(__name__)

DEFAULT_BUCKET = "sugerencias-images"


class SupabaseImageStorage:
    def __init__(self, client, bucket: str = DEFAULT_BUCKET):
        self.client = client
        self.bucket = bucket

    def upload_image(self, name: str, content: bytes, content_type: str = "application/octet-stream") -> str:
        """Upload one image and return its public URL."""
        bucket = self.client.storage.from_(self.bucket)
        try:
            bucket.upload(name, content, {"content-type": content_type})
        except Exception as exc:
            log.error(f"❌ Upload of {name} to bucket {self.bucket} failed: {exc}")
            raise classify_backend_error(exc, TransportError) from exc
        public_url = bucket.get_public_url(name)
        log.info(f"✅ Uploaded {name} ({len(content)} bytes)")
        return public_url

    def download_image(self, url: str, timeout: int = 20) -> Optional[bytes]:
        if not url:
            return None
        try:
            r = requests.get(url, timeout=timeout)
            if r.status_code == 200:
                return r.content
            log.warning(f"⚠️ Image {url} returned HTTP {r.status_code}")
        except requests.RequestException as e:
            log.warning(f"⚠️ Network error while downloading {url}: {e}")
        return None
