import zipfile
from io import BytesIO

from PyPDF2 import PdfReader


def _post(client, endpoint, query="", **fields):
    data = {}
    for key, value in fields.items():
        if isinstance(value, tuple):
            data[key] = (BytesIO(value[0]), value[1])
        elif isinstance(value, list):
            data[key] = [(BytesIO(content), name) for content, name in value]
        else:
            data[key] = value
    return client.post(
        f"/api/pdf_tools/{endpoint}{query}", data=data, content_type="multipart/form-data"
    )


def _download(client, payload) -> bytes:
    response = client.get(payload["download_url"])
    assert response.status_code == 200
    return response.data


def test_merge_stores_result_and_serves_download(client, blank_pdf):
    response = _post(
        client, "merge", files=[(blank_pdf(2), "a.pdf"), (blank_pdf(1), "b.pdf")]
    )
    assert response.status_code == 200
    payload = response.get_json()
    assert payload["success"] is True
    data = payload["data"]
    assert data["filename"] == "merged.pdf"
    assert data["total_files"] == 2
    assert len(data["file_id"]) == 32

    merged = _download(client, data)
    assert len(merged) == data["size_bytes"]
    assert len(PdfReader(BytesIO(merged)).pages) == 3


def test_merge_requires_two_files(client, blank_pdf):
    response = _post(client, "merge", files=[(blank_pdf(1), "a.pdf")])
    assert response.status_code == 400
    error = response.get_json()["error"]
    assert error["code"] == "pdf.invalid_upload"


def test_merge_rejects_non_pdf_upload(client, blank_pdf):
    response = _post(
        client, "merge", files=[(blank_pdf(1), "a.pdf"), (b"hello world", "b.pdf")]
    )
    assert response.status_code == 400
    assert response.get_json()["success"] is False


def test_split_all_streams_zip_when_download_requested(client, blank_pdf):
    response = _post(
        client, "split", query="?download=1", file=(blank_pdf(3), "report.pdf"), mode="all"
    )
    assert response.status_code == 200
    assert response.mimetype == "application/zip"
    assert "report_split.zip" in response.headers["Content-Disposition"]
    with zipfile.ZipFile(BytesIO(response.data)) as archive:
        assert archive.namelist() == [
            "report_page_1.pdf",
            "report_page_2.pdf",
            "report_page_3.pdf",
        ]


def test_split_range_extracts_selection(client, blank_pdf):
    response = _post(client, "split", file=(blank_pdf(10), "deck.pdf"), pages="2,4-6,11")
    assert response.status_code == 200
    data = response.get_json()["data"]
    assert data["filename"] == "deck_split.pdf"
    assert data["pages"] == [2, 4, 5, 6]
    assert data["page_count"] == 10
    assert len(PdfReader(BytesIO(_download(client, data))).pages) == 4


def test_split_reports_malformed_and_empty_selections(client, blank_pdf):
    response = _post(client, "split", file=(blank_pdf(3), "a.pdf"), pages="1,abc")
    assert response.status_code == 400
    error = response.get_json()["error"]
    assert error["code"] == "pdf.invalid_page_range"
    assert error["details"]["token"] == "abc"

    response = _post(client, "split", file=(blank_pdf(3), "a.pdf"), pages="8-9")
    assert response.status_code == 400
    assert response.get_json()["error"]["code"] == "pdf.empty_selection"


def test_split_requires_file(client):
    response = _post(client, "split", mode="all")
    assert response.status_code == 400
    assert response.get_json()["error"]["code"] == "pdf.file_missing"


def test_compress_reports_sizes_and_attempts(client, image_pdf):
    response = _post(client, "compress", file=(image_pdf((800, 800)), "photo.pdf"), quality="low")
    assert response.status_code == 200
    data = response.get_json()["data"]
    assert data["filename"] == "photo_compressed.pdf"
    assert data["compressed_size"] == data["size_bytes"]
    assert data["reduction"].endswith("%")
    assert data["target_met"] is None
    assert data["attempts"] == [
        {
            "quality": 30,
            "resize_ratio": 0.5,
            "size_bytes": data["compressed_size"],
            "recompressed": 1,
            "skipped": 0,
            "unsupported": 0,
        }
    ]
    assert data["skipped_images"] == []


def test_compress_with_unreachable_target(client, image_pdf):
    source = image_pdf((500, 500), noise=True)
    response = _post(client, "compress", file=(source, "a.pdf"), target_size_kb="1")
    data = response.get_json()["data"]
    assert data["target_met"] is False
    assert len(data["attempts"]) == 5


def test_compress_rejects_bad_options(client, image_pdf):
    bad_options = (
        {"target_size_kb": "nan"},
        {"target_size_kb": "inf"},
        {"target_size_kb": "1e400"},
        {"target_size_kb": "0"},
        {"quality": "ultra"},
    )
    for fields in bad_options:
        response = _post(client, "compress", file=(image_pdf((50, 50)), "a.pdf"), **fields)
        assert response.status_code == 400
        assert response.get_json()["error"]["code"] == "pdf.invalid_option"


def test_compress_rejects_unreadable_pdf(client):
    response = _post(client, "compress", file=(b"%PDF-1.7\nthis is not a pdf", "a.pdf"))
    assert response.status_code == 422
    assert response.get_json()["error"]["code"] == "pdf.unreadable"


def test_rotate_endpoint(client, blank_pdf):
    response = _post(client, "rotate", file=(blank_pdf(2), "scan.pdf"), degrees="180")
    data = response.get_json()["data"]
    assert data["filename"] == "scan_rotated.pdf"
    pages = PdfReader(BytesIO(_download(client, data))).pages
    assert [page.rotation for page in pages] == [180, 180]

    response = _post(client, "rotate", file=(blank_pdf(1), "scan.pdf"), degrees="45")
    assert response.status_code == 400
    assert response.get_json()["error"]["code"] == "pdf.invalid_rotation"

    for degrees in ("inf", "1e400"):
        response = _post(client, "rotate", file=(blank_pdf(1), "scan.pdf"), degrees=degrees)
        assert response.status_code == 400
        assert response.get_json()["error"]["code"] == "pdf.invalid_option"


def test_watermark_endpoint(client, text_pdf):
    response = _post(
        client,
        "watermark",
        file=(text_pdf("hello"), "memo.pdf"),
        text="DRAFT",
        position="bottom-right",
        color="#123456",
    )
    data = response.get_json()["data"]
    assert data["filename"] == "memo_watermarked.pdf"
    page = PdfReader(BytesIO(_download(client, data))).pages[0]
    assert "DRAFT" in page.extract_text()

    response = _post(client, "watermark", file=(text_pdf("x"), "memo.pdf"), opacity="2")
    assert response.status_code == 400
    error = response.get_json()["error"]
    assert error["code"] == "pdf.invalid_option"
    assert error["details"]["errors"][0]["loc"] == ["opacity"]

    response = _post(client, "watermark", file=(text_pdf("x"), "memo.pdf"), opacity="nan")
    assert response.status_code == 400


def test_protect_and_unlock_endpoints(client, blank_pdf):
    response = _post(client, "protect", file=(blank_pdf(1), "tax.pdf"))
    assert response.get_json()["error"]["code"] == "pdf.password_required"

    response = _post(client, "protect", file=(blank_pdf(1), "tax.pdf"), password="pw")
    data = response.get_json()["data"]
    assert data["filename"] == "tax_protected.pdf"
    protected = _download(client, data)
    assert PdfReader(BytesIO(protected)).is_encrypted

    response = _post(client, "protect", file=(protected, "tax.pdf"), password="pw")
    assert response.get_json()["error"]["code"] == "pdf.already_encrypted"

    response = _post(client, "unlock", file=(protected, "tax.pdf"), password="nope")
    assert response.status_code == 400
    assert response.get_json()["error"]["code"] == "pdf.invalid_password"

    response = _post(client, "unlock", file=(protected, "tax.pdf"), password="pw")
    data = response.get_json()["data"]
    assert data["filename"] == "tax_unlocked.pdf"
    assert not PdfReader(BytesIO(_download(client, data))).is_encrypted


def test_metadata_endpoint(client, blank_pdf):
    response = _post(client, "metadata", file=(blank_pdf(3), "a.pdf"))
    assert response.status_code == 200
    payload = response.get_json()["data"]
    assert payload["pages"] == 3
    assert payload["encrypted"] is False
