import io
import os
from typing import BinaryIO, Union

import pdfplumber

# Below this many chars the PDF is treated as scanned / image-only
_MIN_TEXT_LEN = 10

SUPPORTED_EXTENSIONS = (".pdf", ".txt")


def extract_text_from_pdf(pdf: Union[str, BinaryIO]) -> str:
    """Extract text from a PDF path or file-like object using pdfplumber (text layer only)."""
    text_parts = []
    with pdfplumber.open(pdf) as doc:
        for page in doc.pages:
            t = page.extract_text() or ""
            if t.strip():
                text_parts.append(t)
    text = "\n\n".join(text_parts).strip()
    if len(text) < _MIN_TEXT_LEN:
        raise ValueError("PDF appears to be empty or contains only images")
    return text


def extract_upload_text(filename: str, data: bytes) -> str:
    """Text of an uploaded .pdf or .txt file. Raises ValueError for anything else."""
    ext = os.path.splitext(filename or "")[1].lower()
    if ext == ".pdf":
        return extract_text_from_pdf(io.BytesIO(data))
    if ext == ".txt":
        return data.decode("utf-8", errors="replace").replace("\r\n", "\n").strip()
    raise ValueError(f"Unsupported file type '{ext or filename}'. Upload one of: {', '.join(SUPPORTED_EXTENSIONS)}")
