"""
Document Delivery

Renders DocumentModels to PDF, stores them, and posts the package record
to the automation webhook.
"""

from .delivery_service import DeliveryResult, DocumentDeliveryService
from .document_storage import LocalDocumentStorage
from .package_builder import PackageBuilder, WebhookPackage
from .pdf_renderer import PdfRenderer, RenderedDocument
from .webhook_sender import DeliveryResponse, WebhookSender

__all__ = [
    'DeliveryResponse',
    'DeliveryResult',
    'DocumentDeliveryService',
    'LocalDocumentStorage',
    'PackageBuilder',
    'PdfRenderer',
    'RenderedDocument',
    'WebhookPackage',
    'WebhookSender',
]
