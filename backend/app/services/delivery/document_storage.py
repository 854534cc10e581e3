"""
Document Storage

Stores rendered documents on the local filesystem and returns the public
URL they are served from. Failures surface as UpstreamError("store").
"""
import logging
from pathlib import Path

from ...config import Settings
from ...errors import UpstreamError
from .pdf_renderer import RenderedDocument

logger = logging.getLogger(__name__)

PUBLIC_PATH = "uploads/pdfs"


class LocalDocumentStorage:
    """Writes documents under settings.document_storage_dir."""

    def __init__(self, settings: Settings):
        self.directory = Path(settings.document_storage_dir)
        self.base_url = settings.public_base_url.rstrip("/")

    def url_for(self, file_name: str) -> str:
        return f"{self.base_url}/{PUBLIC_PATH}/{file_name}"

    def store(self, document: RenderedDocument) -> str:
        """Persist the document; returns its URL."""
        if not document.file_name or "/" in document.file_name or document.file_name.startswith("."):
            raise UpstreamError("store", f"Invalid file name {document.file_name!r}")
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            path = self.directory / document.file_name
            path.write_bytes(document.content)
        except OSError as e:
            logger.error(f"Failed to store {document.file_name}: {e}")
            raise UpstreamError("store", f"Could not write document: {e}", {"file_name": document.file_name}) from e

        url = self.url_for(document.file_name)
        logger.info(f"Stored {document.file_name} ({document.size_bytes} bytes) at {url}")
        return url
