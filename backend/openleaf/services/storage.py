import logging
import os
import uuid
import fitz
from openleaf.core.config import settings

logger = logging.getLogger(__name__)

PUBLIC_PREFIX = "/uploads"
PDF_TYPE = "application/pdf"
IMAGE_EXTENSIONS = {"image/jpeg": ".jpg", "image/png": ".png", "image/gif": ".gif", "image/webp": ".webp"}


class InvalidUpload(ValueError):
    pass


def _check_size(data: bytes) -> None:
    if len(data) > settings.max_upload_mb * 1024 * 1024:
        raise InvalidUpload(f"File exceeds {settings.max_upload_mb}MB limit")


def _write(folder: str, subdir: str, extension: str, data: bytes) -> str:
    os.makedirs(folder, exist_ok=True)
    name = f"{uuid.uuid4()}{extension.lower()}"
    with open(os.path.join(folder, name), "wb") as f:
        f.write(data)
    return f"{PUBLIC_PREFIX}/{subdir}/{name}"


def _open_pdf(data: bytes) -> fitz.Document:
    try:
        return fitz.open(stream=data, filetype="pdf")
    except (RuntimeError, ValueError) as exc:
        raise InvalidUpload("Book file is not a readable PDF") from exc


def save_book_file(content_type: str | None, data: bytes) -> str:
    if content_type != PDF_TYPE:
        raise InvalidUpload("Invalid file type")
    _check_size(data)
    doc = _open_pdf(data)
    try:
        if doc.page_count == 0:
            raise InvalidUpload("Book file has no pages")
    finally:
        doc.close()
    return _write(settings.books_dir, "books", ".pdf", data)


def save_cover_file(content_type: str | None, data: bytes) -> str:
    if content_type not in IMAGE_EXTENSIONS:
        raise InvalidUpload("Invalid file type")
    _check_size(data)
    return _write(settings.covers_dir, "covers", IMAGE_EXTENSIONS[content_type], data)


def render_cover(pdf_data: bytes) -> str | None:
    """Render page 1 of the PDF as a PNG cover; None when rendering fails."""
    try:
        doc = fitz.open(stream=pdf_data, filetype="pdf")
    except (RuntimeError, ValueError):
        logger.warning("Cover render skipped: unreadable PDF")
        return None
    try:
        page = doc.load_page(0)
        matrix = fitz.Matrix(settings.cover_render_scale, settings.cover_render_scale)
        png = page.get_pixmap(matrix=matrix).tobytes("png")
    except (RuntimeError, ValueError, IndexError):
        logger.warning("Cover render failed", exc_info=True)
        return None
    finally:
        doc.close()
    return _write(settings.covers_dir, "covers", ".png", png)


def local_path(url_path: str) -> str | None:
    if not url_path.startswith(PUBLIC_PREFIX + "/"):
        return None
    root = os.path.abspath(settings.upload_dir)
    candidate = os.path.abspath(os.path.join(root, url_path[len(PUBLIC_PREFIX) + 1:]))
    if os.path.commonpath([root, candidate]) != root:
        return None
    return candidate


def remove_stored_file(url_path: str) -> None:
    path = local_path(url_path)
    if not path:
        logger.warning("Refusing to delete file outside upload dir", extra={"path": url_path})
        return
    try:
        if os.path.exists(path):
            os.remove(path)
    except OSError:
        logger.warning("Failed to delete file", extra={"path": path})
