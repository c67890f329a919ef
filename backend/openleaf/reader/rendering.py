import logging
import fitz

logger = logging.getLogger(__name__)


class PdfRenderer:
    """Rasterizes PDF pages with PyMuPDF. Page numbers are 1-indexed."""

    def open(self, data: bytes) -> fitz.Document:
        return fitz.open(stream=data, filetype="pdf")

    def page_count(self, doc: fitz.Document) -> int:
        return doc.page_count

    def render(self, doc: fitz.Document, page_number: int, scale: float) -> bytes | None:
        try:
            page = doc.load_page(page_number - 1)
            pix = page.get_pixmap(matrix=fitz.Matrix(scale, scale))
            return pix.tobytes("png")
        except (RuntimeError, ValueError, IndexError):
            logger.warning("Error rendering page", extra={"page": page_number}, exc_info=True)
            return None

    def close(self, doc: fitz.Document) -> None:
        doc.close()
