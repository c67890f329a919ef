from openleaf.reader.client import LibraryAPIError, LibraryClient
from openleaf.reader.rendering import PdfRenderer
from openleaf.reader.scheduler import ManualClock, Scheduler
from openleaf.reader.session import ReaderSession, RenderedPage
from openleaf.reader.state import ReaderPhase, ReaderState, clamp_page, spread_pages

__all__ = [
    "LibraryAPIError",
    "LibraryClient",
    "PdfRenderer",
    "ManualClock",
    "Scheduler",
    "ReaderSession",
    "RenderedPage",
    "ReaderPhase",
    "ReaderState",
    "clamp_page",
    "spread_pages",
]
