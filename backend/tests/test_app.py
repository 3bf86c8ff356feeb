import pytest

from marketplace.main import create_app
from marketplace.utils.crypto import EncryptionKeyError
from marketplace.utils.logger import redact


def test_app_refuses_to_start_without_key(test_settings):
    no_key = test_settings.model_copy(update={"STOREFRONT_ENCRYPTION_KEY": None})

    with pytest.raises(EncryptionKeyError):
        create_app(no_key)


def test_app_refuses_to_start_with_short_key(test_settings):
    bad_key = test_settings.model_copy(update={"STOREFRONT_ENCRYPTION_KEY": "c2hvcnQ="})

    with pytest.raises(EncryptionKeyError):
        create_app(bad_key)


def test_health_endpoints(client):
    assert client.get("/healthz").json() == {"status": "ok"}

    resp = client.get("/healthz/db")
    assert resp.status_code == 200
    assert resp.json()["database"] == "connected"


def test_responses_carry_request_id(client):
    resp = client.get("/healthz")

    assert len(resp.headers["X-Request-ID"]) == 8


def test_redact_masks_secrets():
    data = {"storeType": "amazon", "apiKey": "AKIA", "apiSecret": "s3cret", "storeName": ""}

    assert redact(data) == {"storeType": "amazon", "apiKey": "***", "apiSecret": "***", "storeName": ""}
    assert data["apiSecret"] == "s3cret"
    assert redact(None) == {}
