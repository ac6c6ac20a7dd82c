import pytest

from app import create_app
from common.errors import NotFoundAppError
from common.storage import LocalContentStore, MemoryContentStore, build_content_store


def test_memory_store_round_trip():
    store = MemoryContentStore()
    stored = store.put(b"payload", "report final.pdf")
    assert stored.filename == "report_final.pdf"
    assert stored.size_bytes == 7
    assert len(store) == 1

    handle, data = store.get(stored.file_id)
    assert handle == stored
    assert data == b"payload"


def test_local_store_writes_prefixed_files(tmp_path):
    store = LocalContentStore(tmp_path / "out")
    stored = store.put(b"%PDF-1.4", "merged.pdf")
    assert stored.path == tmp_path / "out" / f"{stored.file_id}-merged.pdf"
    assert stored.path.read_bytes() == b"%PDF-1.4"

    handle, data = store.get(stored.file_id)
    assert handle.filename == "merged.pdf"
    assert data == b"%PDF-1.4"


@pytest.mark.parametrize("file_id", ["", "../etc/passwd", "0" * 32, "not-hex"])
def test_unknown_ids_are_not_found(tmp_path, file_id):
    for store in (MemoryContentStore(), LocalContentStore(tmp_path)):
        with pytest.raises(NotFoundAppError):
            store.get(file_id)


def test_build_content_store_from_config(tmp_path):
    assert isinstance(build_content_store({"CONTENT_STORE": "memory"}), MemoryContentStore)
    local = build_content_store({"CONTENT_STORE": "local", "OUTPUT_ROOT": str(tmp_path)})
    assert isinstance(local, LocalContentStore)
    with pytest.raises(ValueError):
        build_content_store({"CONTENT_STORE": "s3"})


def test_download_endpoint_serves_stored_files():
    app = create_app("TestingConfig")
    store = app.extensions["content_store"]
    stored = store.put(b"%PDF-1.4 test", "result.pdf")
    client = app.test_client()

    response = client.get(f"/api/download/{stored.file_id}")
    assert response.status_code == 200
    assert response.data == b"%PDF-1.4 test"
    assert response.mimetype == "application/pdf"
    assert "result.pdf" in response.headers["Content-Disposition"]

    missing = client.get("/api/download/" + "f" * 32)
    assert missing.status_code == 404
    assert missing.get_json()["error"]["code"] == "files.not_found"
