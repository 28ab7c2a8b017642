"""
Storage Tests
Tests: object keys, local uploads, S3 uploads through an injected client,
factory configuration
"""

import re
from datetime import datetime

import pytest

from storage import LocalStorageProvider, S3StorageProvider, build_object_key, create_storage_provider


class RecordingS3Client:
    def __init__(self):
        self.calls = []

    def put_object(self, **kwargs):
        self.calls.append(kwargs)
        return {'ETag': '"abc"'}


def test_object_keys_are_unique_and_dated():
    when = datetime(2024, 3, 5, 9, 30)
    first = build_object_key('inspections', when)
    second = build_object_key('inspections', when)

    assert first != second
    assert re.fullmatch(r'inspections/2024/03/05/[0-9a-f-]{36}\.jpg', first)
    assert build_object_key('', when).startswith('2024/03/05/')


def test_local_upload_returns_file_url(tmp_path):
    storage = LocalStorageProvider(str(tmp_path))

    url = storage.upload(b'jpeg-bytes', 'inspections/a.jpg')

    assert url.startswith('file://')
    assert (tmp_path / 'inspections' / 'a.jpg').read_bytes() == b'jpeg-bytes'


def test_local_upload_with_public_url(tmp_path):
    storage = LocalStorageProvider(str(tmp_path), public_base_url='http://localhost:8000/uploads/')

    url = storage.upload_photo(b'jpeg-bytes', datetime(2024, 3, 5))

    assert url.startswith('http://localhost:8000/uploads/inspections/2024/03/05/')
    assert len(list(tmp_path.rglob('*.jpg'))) == 1


def test_s3_upload_puts_object():
    client = RecordingS3Client()
    storage = S3StorageProvider(bucket='photos', region='eu-west-1', client=client)

    url = storage.upload(b'jpeg-bytes', 'inspections/a.jpg')

    assert url == 'https://photos.s3.eu-west-1.amazonaws.com/inspections/a.jpg'
    assert client.calls == [{
        'Bucket': 'photos',
        'Key': 'inspections/a.jpg',
        'Body': b'jpeg-bytes',
        'ContentType': 'image/jpeg',
    }]


def test_factory_local(tmp_path):
    config_path = tmp_path / 'config.yaml'
    config_path.write_text(
        f"storage:\n  type: local\n  key_prefix: evidence\n  local:\n    base_path: {tmp_path / 'uploads'}\n"
    )

    storage = create_storage_provider(str(config_path))

    assert isinstance(storage, LocalStorageProvider)
    assert storage.key_prefix == 'evidence'


def test_factory_s3_requires_credentials(tmp_path, monkeypatch):
    monkeypatch.delenv('AWS_ACCESS_KEY_ID', raising=False)
    monkeypatch.delenv('AWS_SECRET_ACCESS_KEY', raising=False)
    config_path = tmp_path / 'config.yaml'
    config_path.write_text("storage:\n  type: s3\n  s3:\n    bucket: photos\n")

    with pytest.raises(ValueError):
        create_storage_provider(str(config_path))


def test_factory_rejects_unknown_type(tmp_path):
    config_path = tmp_path / 'config.yaml'
    config_path.write_text("storage:\n  type: ftp\n")

    with pytest.raises(ValueError):
        create_storage_provider(str(config_path))
