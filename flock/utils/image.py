import logging
from enum import Enum
from io import BytesIO
from typing import NamedTuple, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from PIL import Image, UnidentifiedImageError

from flock.utils.http import JsonDownloader

logger = logging.getLogger(__name__)

class CoverStatus(str, Enum):
    UPLOADED = "UPLOADED"
    BAD_QUALITY = "BAD_QUALITY"
    NOT_FOUND = "NOT_FOUND"

class CoverResult(NamedTuple):
    status: CoverStatus
    key: Optional[str] = None
    size: int = 0

    @property
    def good_cover(self) -> bool:
        return self.status == CoverStatus.UPLOADED

def cover_key(book_id: str) -> str:
    return f"covers/{book_id}.jpg"

class CoverUploader:
    def __init__(
        self,
        bucket: Optional[str],
        s3_client=None,
        downloader: Optional[JsonDownloader] = None,
        min_bytes: int = 5000,
        width: int = 400
    ):
        """
        Args:
            bucket: Images bucket name
            s3_client: boto3 S3 client; created on first upload if omitted
            downloader: HTTP client used to fetch source images
            min_bytes: Payloads smaller than this are treated as placeholders
            width: Width covers are resized to
        """
        self.bucket = bucket
        self._s3_client = s3_client
        self.downloader = downloader or JsonDownloader(rate_limit=False)
        self.min_bytes = min_bytes
        self.width = width

    @property
    def s3_client(self):
        if self._s3_client is None:
            self._s3_client = boto3.client('s3')
        return self._s3_client

    def _process_image(self, image_data: bytes) -> bytes:
        """Resize to the configured width and re-encode as JPEG.

        Args:
            image_data: Raw image bytes

        Returns:
            Processed image as bytes
        """
        img = Image.open(BytesIO(image_data))

        # Convert to RGB if necessary (e.g., if PNG with transparency)
        if img.mode not in ('RGB', 'L'):
            img = img.convert('RGB')

        ratio = self.width / img.width
        new_height = max(1, int(img.height * ratio))
        img = img.resize((self.width, new_height), Image.Resampling.LANCZOS)

        output = BytesIO()
        img.save(output, format='JPEG', quality=85, optimize=True)
        return output.getvalue()

    def acquire_cover(self, source_url: Optional[str], book_id: str) -> CoverResult:
        """
        Fetch, check, resize and upload a cover to covers/{book_id}.jpg.

        Returns:
            NOT_FOUND when there is no URL or the fetch fails, BAD_QUALITY
            for payloads under min_bytes (nothing is uploaded), else UPLOADED.
        """
        if not source_url:
            return CoverResult(CoverStatus.NOT_FOUND)

        content = self.downloader.get_bytes(source_url)
        if content is None:
            return CoverResult(CoverStatus.NOT_FOUND)

        if len(content) < self.min_bytes:
            logger.info(f"BAD_QUALITY: Byte Length {len(content)}, URL: {source_url}")
            return CoverResult(CoverStatus.BAD_QUALITY, size=len(content))

        try:
            processed = self._process_image(content)
        except (UnidentifiedImageError, OSError, ValueError) as e:
            logger.info(f"BAD_QUALITY: could not decode image from {source_url}: {e}")
            return CoverResult(CoverStatus.BAD_QUALITY, size=len(content))

        key = cover_key(book_id)
        logger.info(f"Uploading cover {key} ...")
        self.upload(key, processed)
        return CoverResult(CoverStatus.UPLOADED, key=key, size=len(content))

    def upload(self, key: str, body: bytes) -> None:
        """PUT to the images bucket. Storage failures propagate."""
        try:
            self.s3_client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=body,
                ContentType='image/jpeg'
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Failed to upload {key}: {e}")
            raise
