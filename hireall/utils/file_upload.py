"""
CV Upload Utility - turn an uploaded CV into plain text for analysis.

Accepted uploads (max 5MB):
- PDF  (.pdf)   read page by page with PyPDF2
- Word (.docx)  paragraphs, then table rows, with python-docx
- Text (.txt)   utf-8, falling back to cp1252 / latin-1

The extracted text is tidied (NUL bytes dropped, runs of blank lines
collapsed) and cut to ``MAX_CV_CHARS`` so it fits the analysis request.
"""

import io
import logging
import re
import zipfile
from typing import Callable, Dict, NamedTuple

from docx import Document
from docx.opc.exceptions import PackageNotFoundError
from fastapi import UploadFile
from PyPDF2 import PdfReader
from PyPDF2.errors import PdfReadError

from hireall.core.errors import ErrorCode, PayloadTooLargeError, ValidationError

logger = logging.getLogger(__name__)

MAX_FILE_SIZE_MB = 5
MAX_FILE_SIZE_BYTES = MAX_FILE_SIZE_MB * 1024 * 1024
MAX_CV_CHARS = 50000
READ_CHUNK_BYTES = 64 * 1024

_BLANK_LINES = re.compile(r"\n{3,}")


class ExtractedCv(NamedTuple):
    text: str
    filename: str
    size: int
    content_type: str


def get_file_extension(filename: str) -> str:
    """``"My CV.PDF"`` -> ``".pdf"``; no dot -> ``""``."""
    if '.' not in filename:
        return ''
    return '.' + filename.rsplit('.', 1)[1].lower()


def read_pdf(content: bytes) -> str:
    try:
        reader = PdfReader(io.BytesIO(content))
        pages = [page.extract_text() or '' for page in reader.pages]
    except (PdfReadError, ValueError, OSError) as e:
        logger.warning("PDF extraction failed: %s", e)
        raise ValidationError(f"Error reading PDF: {e}", code=ErrorCode.FILE_UPLOAD_FAILED)
    return '\n'.join(p for p in pages if p)


def read_docx(content: bytes) -> str:
    try:
        doc = Document(io.BytesIO(content))
    except (PackageNotFoundError, zipfile.BadZipFile, ValueError, KeyError) as e:
        logger.warning("DOCX extraction failed: %s", e)
        raise ValidationError(f"Error reading DOCX: {e}", code=ErrorCode.FILE_UPLOAD_FAILED)

    lines = [para.text for para in doc.paragraphs if para.text.strip()]
    # Skills / experience grids are often laid out as tables
    for table in doc.tables:
        for row in table.rows:
            cells = [cell.text.strip() for cell in row.cells if cell.text.strip()]
            if cells:
                lines.append(' | '.join(cells))
    return '\n'.join(lines)


def read_txt(content: bytes) -> str:
    for encoding in ('utf-8', 'cp1252'):
        try:
            return content.decode(encoding)
        except UnicodeDecodeError:
            continue
    return content.decode('latin-1')


# extension -> (content type, reader)
READERS: Dict[str, tuple] = {
    '.pdf': ('application/pdf', read_pdf),
    '.docx': ('application/vnd.openxmlformats-officedocument.wordprocessingml.document', read_docx),
    '.txt': ('text/plain', read_txt),
}


def clean_cv_text(text: str) -> str:
    text = text.replace('\x00', '').replace('\r\n', '\n')
    return _BLANK_LINES.sub('\n\n', text).strip()[:MAX_CV_CHARS]


def extract_text(content: bytes, ext: str) -> str:
    """Run the reader for ``ext``; empty output is an upload failure."""
    reader: Callable[[bytes], str] = READERS[ext][1]
    text = clean_cv_text(reader(content))
    if not text:
        raise ValidationError(
            "Could not extract text from file. File may be empty or corrupted.",
            code=ErrorCode.FILE_UPLOAD_FAILED,
        )
    return text


async def read_limited(file: UploadFile, max_bytes: int) -> bytes:
    """Read ``file`` in chunks, stopping as soon as it passes ``max_bytes``."""
    chunks = []
    total = 0
    while True:
        chunk = await file.read(min(READ_CHUNK_BYTES, max_bytes + 1 - total))
        if not chunk:
            break
        chunks.append(chunk)
        total += len(chunk)
        if total > max_bytes:
            raise PayloadTooLargeError(f"File too large. Maximum size: {MAX_FILE_SIZE_MB}MB")
    return b"".join(chunks)


async def extract_cv_upload(file: UploadFile) -> ExtractedCv:
    """Validate the upload's name, type and size, then extract its text."""
    if not file.filename:
        raise ValidationError("No filename provided", code=ErrorCode.MISSING_REQUIRED_FIELD, field="file")

    ext = get_file_extension(file.filename)
    if ext not in READERS:
        raise ValidationError(
            f"Unsupported file type '{ext}'. Allowed: PDF, DOCX, TXT",
            code=ErrorCode.INVALID_FILE_TYPE,
            field="file",
        )

    content = await read_limited(file, MAX_FILE_SIZE_BYTES)

    return ExtractedCv(
        text=extract_text(content, ext),
        filename=file.filename,
        size=len(content),
        content_type=READERS[ext][0],
    )
