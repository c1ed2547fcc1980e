import re
from io import BytesIO
from pathlib import Path
from pdfminer.high_level import extract_text as pdf_extract
from docx import Document
import logging
logging.getLogger("pdfminer").setLevel(logging.ERROR)

PDF_TYPES = ("application/pdf",)
DOCX_TYPES = ("application/vnd.openxmlformats-officedocument.wordprocessingml.document",)
TXT_TYPES = ("text/plain",)
MAX_RESUME_BYTES = 10 * 1024 * 1024
IMAGE_TYPES = {"image/jpeg": "jpg", "image/jpg": "jpg", "image/png": "png", "image/webp": "webp"}
IMAGE_EXTENSIONS = {".jpg": "jpg", ".jpeg": "jpg", ".png": "png", ".webp": "webp"}
MAX_PROFILE_PICTURE_BYTES = 5 * 1024 * 1024


def read_txt(data: bytes) -> str:
    return data.decode("utf-8", errors="ignore")

def read_docx(data: bytes) -> str:
    doc = Document(BytesIO(data))
    return "\n".join([p.text for p in doc.paragraphs])

def read_pdf(data: bytes) -> str:
    return pdf_extract(BytesIO(data))

def clean_text(x: str) -> str:
    x = re.sub(r'\s+', ' ', x).strip()
    return x

def resume_kind(filename: str, content_type: str = None) -> str:
    """'pdf', 'docx' or 'txt' for a supported upload, else None"""
    ext = Path(filename or "").suffix.lower()
    if content_type in PDF_TYPES or ext == ".pdf":
        return "pdf"
    if content_type in DOCX_TYPES or ext == ".docx":
        return "docx"
    if content_type in TXT_TYPES or ext == ".txt":
        return "txt"
    return None

def extract_resume_text(data: bytes, kind: str) -> str:
    readers = {"pdf": read_pdf, "docx": read_docx, "txt": read_txt}
    return clean_text(readers[kind](data) or "")

def image_kind(filename: str, content_type: str = None) -> str:
    """'jpg', 'png' or 'webp' for a supported image upload, else None"""
    if content_type in IMAGE_TYPES:
        return IMAGE_TYPES[content_type]
    return IMAGE_EXTENSIONS.get(Path(filename or "").suffix.lower())
