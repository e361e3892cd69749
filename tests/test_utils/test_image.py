import pytest
from io import BytesIO
from unittest.mock import Mock
from botocore.exceptions import ClientError
from PIL import Image

from flock.utils.image import CoverStatus, CoverUploader, cover_key
from tests.utils import mock_downloader

URL = 'http://images.example/cover.jpg'

@pytest.fixture
def s3_client():
    return Mock()

def make_uploader(s3_client, images, **kwargs):
    return CoverUploader('flock-images', s3_client=s3_client,
                         downloader=mock_downloader(images=images), **kwargs)

def test_cover_key():
    assert cover_key('abc') == 'covers/abc.jpg'

def test_good_cover_is_resized_and_uploaded(s3_client, jpeg_bytes):
    uploader = make_uploader(s3_client, {URL: jpeg_bytes})

    result = uploader.acquire_cover(URL, 'book-1')

    assert result.status == CoverStatus.UPLOADED
    assert result.good_cover
    assert result.key == 'covers/book-1.jpg'
    s3_client.put_object.assert_called_once()
    kwargs = s3_client.put_object.call_args.kwargs
    assert kwargs['Bucket'] == 'flock-images'
    assert kwargs['Key'] == 'covers/book-1.jpg'
    assert kwargs['ContentType'] == 'image/jpeg'
    assert Image.open(BytesIO(kwargs['Body'])).width == 400

def test_small_payload_is_bad_quality_and_not_uploaded(s3_client):
    uploader = make_uploader(s3_client, {URL: b'x' * 4999})

    result = uploader.acquire_cover(URL, 'book-1')

    assert result.status == CoverStatus.BAD_QUALITY
    assert not result.good_cover
    assert result.size == 4999
    s3_client.put_object.assert_not_called()

def test_undecodable_payload_is_bad_quality(s3_client):
    uploader = make_uploader(s3_client, {URL: b'not an image' * 1000})

    result = uploader.acquire_cover(URL, 'book-1')

    assert result.status == CoverStatus.BAD_QUALITY
    s3_client.put_object.assert_not_called()

def test_missing_url_or_download_is_not_found(s3_client):
    uploader = make_uploader(s3_client, {})

    assert uploader.acquire_cover(None, 'book-1').status == CoverStatus.NOT_FOUND
    assert uploader.acquire_cover(URL, 'book-1').status == CoverStatus.NOT_FOUND
    s3_client.put_object.assert_not_called()

def test_threshold_is_configurable(s3_client, jpeg_bytes):
    uploader = make_uploader(s3_client, {URL: jpeg_bytes}, min_bytes=len(jpeg_bytes) + 1)
    assert uploader.acquire_cover(URL, 'book-1').status == CoverStatus.BAD_QUALITY

def test_upload_failure_propagates(s3_client, jpeg_bytes):
    s3_client.put_object.side_effect = ClientError(
        {'Error': {'Code': 'AccessDenied', 'Message': 'denied'}}, 'PutObject'
    )
    uploader = make_uploader(s3_client, {URL: jpeg_bytes})

    with pytest.raises(ClientError):
        uploader.acquire_cover(URL, 'book-1')
