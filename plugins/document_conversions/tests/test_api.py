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
        f"/api/conversions/{endpoint}{query}", data=data, content_type="multipart/form-data"
    )


def test_pdf_to_jpg_zips_pages(client, text_pdf):
    response = _post(client, "pdf-to-jpg", file=(text_pdf("a", "b"), "scan.pdf"), dpi="72")
    assert response.status_code == 200
    data = response.get_json()["data"]
    assert data["filename"] == "scan_images.zip"
    assert data["page_count"] == 2

    archive = client.get(data["download_url"])
    with zipfile.ZipFile(BytesIO(archive.data)) as zipped:
        assert zipped.namelist() == ["scan_page_1.jpg", "scan_page_2.jpg"]


def test_pdf_to_jpg_validates_quality(client, text_pdf):
    response = _post(client, "pdf-to-jpg", file=(text_pdf("a"), "scan.pdf"), quality="0")
    assert response.status_code == 400
    assert response.get_json()["error"]["code"] == "conversion.invalid_option"


def test_non_finite_numbers_are_rejected(client, text_pdf, png):
    response = _post(client, "pdf-to-jpg", file=(text_pdf("a"), "scan.pdf"), dpi="inf")
    assert response.status_code == 400
    assert response.get_json()["error"]["code"] == "conversion.invalid_option"

    response = _post(client, "jpg-to-pdf", files=[(png(), "one.png")], margin="inf")
    assert response.status_code == 400
    assert response.get_json()["error"]["code"] == "conversion.invalid_option"


def test_jpg_to_pdf_streams_download(client, png):
    response = _post(
        client,
        "jpg-to-pdf",
        query="?download=1",
        files=[(png(), "one.png"), (png(size=(40, 90)), "two.png")],
        orientation="auto",
    )
    assert response.status_code == 200
    assert response.mimetype == "application/pdf"
    assert "images_to_pdf.pdf" in response.headers["Content-Disposition"]
    assert len(PdfReader(BytesIO(response.data)).pages) == 2


def test_jpg_to_pdf_rejects_bad_orientation_and_uploads(client, png):
    response = _post(client, "jpg-to-pdf", files=[(png(), "one.png")], orientation="diagonal")
    assert response.status_code == 400

    response = _post(client, "jpg-to-pdf", files=[(b"plain text", "one.png")])
    assert response.status_code == 400
    assert response.get_json()["error"]["code"] == "conversion.invalid_upload"


def test_word_to_pdf(client, docx_bytes):
    response = _post(client, "word-to-pdf", file=(docx_bytes("Hello there"), "letter.docx"))
    assert response.status_code == 200
    data = response.get_json()["data"]
    assert data["filename"] == "letter.pdf"


def test_legacy_word_documents_are_rejected(client):
    legacy = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1" + b"\x00" * 64
    response = _post(client, "word-to-pdf", file=(legacy, "letter.doc"))
    assert response.status_code == 400
    assert response.get_json()["error"]["code"] == "conversion.unsupported_format"


def test_pdf_to_office_formats(client, text_pdf):
    source = text_pdf("Some text")
    expected = {
        "pdf-to-word": "notes.docx",
        "pdf-to-excel": "notes.xlsx",
        "pdf-to-powerpoint": "notes.pptx",
    }
    for endpoint, filename in expected.items():
        response = _post(client, endpoint, file=(source, "notes.pdf"))
        assert response.status_code == 200, endpoint
        data = response.get_json()["data"]
        assert data["filename"] == filename
        download = client.get(data["download_url"])
        assert download.data.startswith(b"PK")


def test_powerpoint_to_pdf(client, pptx_bytes):
    response = _post(client, "powerpoint-to-pdf", file=(pptx_bytes(["Title"]), "deck.pptx"))
    assert response.status_code == 200
    assert response.get_json()["data"]["filename"] == "deck.pdf"

    response = _post(client, "powerpoint-to-pdf", file=(b"\xd0\xcf\x11\xe0", "deck.ppt"))
    assert response.get_json()["error"]["code"] == "conversion.unsupported_format"


def test_unreadable_pdf_is_unprocessable(client):
    response = _post(client, "pdf-to-word", file=(b"%PDF-1.4 garbage", "bad.pdf"))
    assert response.status_code == 422
    assert response.get_json()["error"]["code"] == "conversion.failed"
