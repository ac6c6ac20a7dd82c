"""PDF tools plugin."""

manifest = {
    "title": "PDF Tools",
    "summary": "Merge, split, compress, rotate, watermark and password-protect PDF files.",
    "blueprint": "pdf_tools",
    "category": "PDF",
    "endpoints": [
        "merge",
        "split",
        "compress",
        "rotate",
        "watermark",
        "protect",
        "unlock",
        "metadata",
    ],
}


__all__ = ["manifest"]
