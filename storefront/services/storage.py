import base64, binascii, io, mimetypes, re, uuid
from typing import Optional, Tuple
from minio import Minio
from storefront.core.config import Settings, settings
from storefront.core.errors import ServiceError

_DATA_URL = re.compile(r'^data:(?P<ctype>[\w/+.-]+);base64,(?P<data>.+)$', re.DOTALL)

class InvalidImage(ServiceError):
    status_code = 400
    message = 'Image must be a base64 data URL'

def decode_data_url(data_url: str) -> Tuple[bytes, str]:
    m = _DATA_URL.match(data_url.strip())
    if not m: raise InvalidImage()
    try:
        return base64.b64decode(m.group('data'), validate=True), m.group('ctype')
    except binascii.Error as exc:
        raise InvalidImage() from exc

class ImageStorage:
    """Product images in an S3-compatible bucket; URLs are stored on the product row."""

    def __init__(self, cfg: Settings = settings, client: Optional[Minio] = None):
        self.cfg = cfg
        self._client = client

    def _host(self) -> str:
        return self.cfg.S3_ENDPOINT.replace('http://','').replace('https://','')

    @property
    def client(self) -> Minio:
        if self._client is None:
            self._client = Minio(self._host(), access_key=self.cfg.S3_ACCESS_KEY, secret_key=self.cfg.S3_SECRET_KEY, secure=self.cfg.S3_SECURE)
        return self._client

    def ensure_bucket(self):
        if not self.client.bucket_exists(self.cfg.S3_BUCKET):
            self.client.make_bucket(self.cfg.S3_BUCKET)

    def upload_data_url(self, data_url: str) -> str:
        data, content_type = decode_data_url(data_url)
        self.ensure_bucket()
        key = f"products/{uuid.uuid4().hex}{mimetypes.guess_extension(content_type) or ''}"
        self.client.put_object(self.cfg.S3_BUCKET, key, io.BytesIO(data), length=len(data), content_type=content_type)
        scheme = 'https' if self.cfg.S3_SECURE else 'http'
        return f"{scheme}://{self._host()}/{self.cfg.S3_BUCKET}/{key}"

    def remove_by_url(self, url: str):
        prefix = f"/{self.cfg.S3_BUCKET}/"
        if prefix not in url: return
        self.client.remove_object(self.cfg.S3_BUCKET, url.split(prefix, 1)[1])
