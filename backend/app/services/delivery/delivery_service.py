"""
Document Delivery

render -> store -> build package -> deliver

Best effort: a failure at any step is logged and reported in the
DeliveryResult. Nothing here raises to the caller, and case state is
never touched.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional, Union

from ...config import Settings, get_settings
from ...errors import CaseEngineError, UpstreamError
from ...models.case_models import ActingUser, CaseAggregate
from ...models.document_model import DocumentModel
from .document_storage import LocalDocumentStorage
from .package_builder import PackageBuilder
from .pdf_renderer import PdfRenderer
from .webhook_sender import WebhookSender

logger = logging.getLogger(__name__)


@dataclass
class DeliveryResult:
    success: bool
    error: Optional[str] = None
    pdf_url: Optional[str] = None
    webhook_response: Any = None
    status_code: Optional[int] = None
    skipped: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "error": self.error,
            "pdfUrl": self.pdf_url,
            "webhookResponse": self.webhook_response,
            "statusCode": self.status_code,
            "skipped": self.skipped,
        }


class DocumentDeliveryService:
    """Publishes a generated document to storage and the automation webhook."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        renderer: Optional[PdfRenderer] = None,
        storage: Optional[LocalDocumentStorage] = None,
        sender: Optional[WebhookSender] = None,
        package_builder: Optional[PackageBuilder] = None,
    ):
        self.settings = settings or get_settings()
        self.renderer = renderer or PdfRenderer()
        self.storage = storage or LocalDocumentStorage(self.settings)
        self.package_builder = package_builder or PackageBuilder()
        if sender is None and self.settings.webhook_enabled:
            sender = WebhookSender(
                url=self.settings.webhook_url,
                timeout=self.settings.webhook_timeout_seconds,
            )
        self.sender = sender

    def publish(
        self,
        aggregate: Union[CaseAggregate, Mapping[str, Any]],
        acting_user: Optional[Union[ActingUser, Mapping[str, Any]]],
        document: DocumentModel,
        *,
        sent_at: Optional[datetime] = None,
    ) -> DeliveryResult:
        """
        Render and store the document, then send the package record.

        Returns:
            DeliveryResult; success is False with the failing step's message
            when rendering, storage or delivery fails. When no webhook is
            configured the stored document still counts as success with
            skipped=True.
        """
        case_id = document.case_id
        try:
            rendered = self.renderer.render(document)
            pdf_url = self.storage.store(rendered)
        except UpstreamError as e:
            logger.error(f"Delivery of case {case_id} failed during {e.operation}: {e.message}")
            return DeliveryResult(success=False, error=e.message)

        if self.sender is None:
            logger.info(f"No webhook configured; stored package for case {case_id} at {pdf_url}")
            return DeliveryResult(success=True, pdf_url=pdf_url, skipped=True)

        try:
            package = self.package_builder.build(
                aggregate,
                acting_user,
                pdf_url,
                sent_at=sent_at or datetime.now(timezone.utc),
                generated_at=document.generated_at,
                file_size=rendered.size_bytes,
            )
        except CaseEngineError as e:
            logger.error(f"Could not build webhook package for case {case_id}: {e.message}")
            return DeliveryResult(success=False, error=e.message, pdf_url=pdf_url)

        try:
            response = self.sender.deliver(package.to_dict())
        except UpstreamError as e:
            logger.error(f"Webhook delivery for case {case_id} failed: {e.message}")
            return DeliveryResult(
                success=False,
                error=e.message,
                pdf_url=pdf_url,
                status_code=e.details.get("status_code"),
            )

        logger.info(f"Delivered package for case {case_id} ({response.status_code})")
        return DeliveryResult(
            success=True,
            pdf_url=pdf_url,
            webhook_response=response.body,
            status_code=response.status_code,
        )
