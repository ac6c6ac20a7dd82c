"""Document conversion plugin."""

manifest = {
    "title": "Document Conversions",
    "summary": "Convert between PDF, images, Word, Excel and PowerPoint files.",
    "blueprint": "document_conversions",
    "category": "Conversion",
    "endpoints": [
        "pdf-to-jpg",
        "jpg-to-pdf",
        "word-to-pdf",
        "pdf-to-word",
        "pdf-to-excel",
        "pdf-to-powerpoint",
        "powerpoint-to-pdf",
    ],
}


__all__ = ["manifest"]
