import pytest
from botocore.stub import Stubber

from vidtube.core.errors import UploadFailedError
from vidtube.features.media.services import MediaStore
from vidtube.utils.s3 import make_s3_client

BASE_URL = "http://s3.test"
BUCKET = "media"


@pytest.fixture
def s3_stub():
    client = make_s3_client(BASE_URL)
    with Stubber(client) as stubber:
        yield client, stubber


@pytest.fixture
def store(s3_stub):
    client, _ = s3_stub
    return MediaStore(bucket=BUCKET, public_base_url=BASE_URL, s3_client_factory=lambda: client)


# ---------- store ----------

def test_store_returns_public_url_and_removes_staged_file(store, s3_stub, jpeg_file):
    _, stubber = s3_stub
    stubber.add_response("put_object", {"ETag": '"abc"'})
    path = jpeg_file()

    stored = store.store(path, prefix="thumbnails", owner_id=7)

    assert stored.url.startswith(f"{BASE_URL}/{BUCKET}/thumbnails/users/7/")
    assert stored.url.endswith(".jpg")
    assert stored.duration_seconds is None
    assert not path.exists()
    stubber.assert_no_pending_responses()


def test_store_upload_failure_raises_upload_failed(store, s3_stub, jpeg_file):
    _, stubber = s3_stub
    stubber.add_client_error(
        "put_object",
        service_error_code="NoSuchBucket",
        service_message="The specified bucket does not exist",
        http_status_code=404,
    )
    path = jpeg_file()

    with pytest.raises(UploadFailedError):
        store.store(path, prefix="thumbnails", owner_id=7)

    assert not path.exists()


def test_store_unreadable_file_raises_upload_failed(store, tmp_path):
    with pytest.raises(UploadFailedError):
        store.store(tmp_path / "missing.jpg", prefix="thumbnails", owner_id=7)


# ---------- release ----------

def test_release_deletes_owned_object(store, s3_stub):
    _, stubber = s3_stub
    key = "thumbnails/users/7/2024-01-01/abc.jpg"
    stubber.add_response("delete_object", {}, expected_params={"Bucket": BUCKET, "Key": key})

    store.release(f"{BASE_URL}/{BUCKET}/{key}")

    stubber.assert_no_pending_responses()


def test_release_missing_object_is_not_an_error(store, s3_stub):
    _, stubber = s3_stub
    stubber.add_client_error("delete_object", service_error_code="NoSuchKey", http_status_code=404)

    store.release(f"{BASE_URL}/{BUCKET}/thumbnails/users/7/2024-01-01/gone.jpg")

    stubber.assert_no_pending_responses()


def test_release_foreign_url_makes_no_call(store, s3_stub):
    _, stubber = s3_stub

    # aucune réponse préparée : un appel S3 ferait échouer le Stubber
    store.release("https://elsewhere.example/other-bucket/file.jpg")
    store.release("")

    stubber.assert_no_pending_responses()


def test_release_other_s3_error_raises_upload_failed(store, s3_stub):
    _, stubber = s3_stub
    stubber.add_client_error("delete_object", service_error_code="AccessDenied", http_status_code=403)

    with pytest.raises(UploadFailedError):
        store.release(f"{BASE_URL}/{BUCKET}/thumbnails/users/7/2024-01-01/locked.jpg")
