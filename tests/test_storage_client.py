import pytest

from bookclub.core.config import settings
from bookclub.services import storage_client


@pytest.fixture
def storage_settings(monkeypatch):
    def _apply(**values):
        for key, value in values.items():
            monkeypatch.setattr(settings, key, value)
    _apply(
        S3_ENDPOINT_URL="",
        S3_REGION="",
        S3_URL_STYLE="",
        AWS_ACCESS_KEY_ID="",
        AWS_SECRET_ACCESS_KEY="",
    )
    return _apply


def test_gcs_endpoint_signs_for_auto_region(storage_settings):
    storage_settings(
        S3_ENDPOINT_URL="https://storage.googleapis.com/",
        S3_REGION="us-east-1",
        S3_URL_STYLE="Path",
    )

    kwargs = storage_client.client_kwargs()

    assert kwargs["region_name"] == "auto"
    assert kwargs["endpoint_url"] == "https://storage.googleapis.com"
    assert kwargs["config"].s3 == {"addressing_style": "path"}


def test_other_endpoints_keep_configured_region(storage_settings):
    storage_settings(
        S3_ENDPOINT_URL="https://project.storage.example.co/storage/v1/s3",
        S3_REGION="ap-northeast-2",
        S3_URL_STYLE="sideways",
    )

    kwargs = storage_client.client_kwargs()

    assert kwargs["region_name"] == "ap-northeast-2"
    assert kwargs["config"] is None


def test_blank_settings_defer_to_boto_defaults(storage_settings):
    kwargs = storage_client.client_kwargs()

    assert kwargs["endpoint_url"] is None
    assert kwargs["region_name"] is None
    assert kwargs["aws_access_key_id"] is None
    assert kwargs["aws_secret_access_key"] is None


def test_get_s3_client_passes_kwargs_to_boto3(storage_settings, monkeypatch):
    storage_settings(AWS_ACCESS_KEY_ID="key", AWS_SECRET_ACCESS_KEY="secret")
    captured = {}

    def _fake_client(service_name, **kwargs):  # noqa: ANN001
        captured["service_name"] = service_name
        captured.update(kwargs)
        return object()

    monkeypatch.setattr(storage_client.boto3, "client", _fake_client)
    storage_client.get_s3_client()

    assert captured["service_name"] == "s3"
    assert captured["aws_access_key_id"] == "key"
    assert captured["aws_secret_access_key"] == "secret"


def test_object_url_joins_base_and_key(monkeypatch):
    monkeypatch.setattr(settings, "PUBLIC_STORAGE_BASE_URL", "https://cdn.test/gallery/")
    assert storage_client.object_url("/u/1-ab.png") == "https://cdn.test/gallery/u/1-ab.png"
