"""
Document Models - Structured, Pre-Rendering Documents

Documents are ASSEMBLED from typed blocks, then handed to a renderer.
A DocumentModel is immutable once built; the same case snapshot always
produces the same model (and the same content hash).

Section order is part of the contract: downstream consumers snapshot and
paginate by section sequence.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from hashlib import sha256
from typing import Any, Dict, Optional, Tuple, Union
import json


class DocumentKind(str, Enum):
    """Document variants produced by DocumentAssembler."""
    BILL_OF_SALE = "BILL_OF_SALE"
    SIGNED_BILL_OF_SALE = "SIGNED_BILL_OF_SALE"
    QUOTE_SUMMARY_BASIC = "QUOTE_SUMMARY_BASIC"
    QUOTE_SUMMARY_ANALYTIC = "QUOTE_SUMMARY_ANALYTIC"
    CASE_SUMMARY = "CASE_SUMMARY"
    COMPLETE_PACKAGE = "COMPLETE_PACKAGE"


class ParagraphStyle(str, Enum):
    """Presentation hint for a paragraph; the renderer maps it to a font/colour."""
    BODY = "body"
    HEADING = "heading"
    SUBHEADING = "subheading"
    NOTE = "note"
    BULLET = "bullet"
    POSITIVE = "positive"
    WARNING = "warning"


@dataclass(frozen=True)
class KeyValueRow:
    label: str
    value: str
    indent: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "key_value", "label": self.label, "value": self.value, "indent": self.indent}


@dataclass(frozen=True)
class Paragraph:
    text: str
    style: ParagraphStyle = ParagraphStyle.BODY
    indent: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "paragraph", "text": self.text, "style": self.style.value, "indent": self.indent}


@dataclass(frozen=True)
class CheckboxRow:
    """
    One option of a single-choice group.

    `detail` carries free text shown beside the option (the raw payment
    method next to "Other").
    """
    label: str
    checked: bool
    text: str = ""
    detail: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": "checkbox",
            "label": self.label,
            "checked": self.checked,
            "text": self.text,
            "detail": self.detail,
        }


@dataclass(frozen=True)
class SignatureBlock:
    """
    Signature line, or a captured signature image.

    image_base64 is the raw base64 payload (data-URL prefix stripped).
    """
    label: str
    printed_name: str = ""
    image_base64: Optional[str] = None
    signed_at_text: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": "signature",
            "label": self.label,
            "printed_name": self.printed_name,
            "has_image": self.image_base64 is not None,
            "signed_at_text": self.signed_at_text,
        }


Block = Union[KeyValueRow, Paragraph, CheckboxRow, SignatureBlock]


@dataclass(frozen=True)
class Section:
    """Titled run of blocks. new_page forces the renderer to start a fresh page."""
    title: str
    blocks: Tuple[Block, ...] = ()
    new_page: bool = False

    def rows(self) -> Dict[str, str]:
        """Key/value rows as a label -> value mapping (last label wins)."""
        return {b.label: b.value for b in self.blocks if isinstance(b, KeyValueRow)}

    def texts(self) -> Tuple[str, ...]:
        return tuple(b.text for b in self.blocks if isinstance(b, Paragraph))

    def checkboxes(self) -> Tuple[CheckboxRow, ...]:
        return tuple(b for b in self.blocks if isinstance(b, CheckboxRow))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "new_page": self.new_page,
            "blocks": [b.to_dict() for b in self.blocks],
        }


@dataclass(frozen=True)
class DocumentModel:
    """
    Complete document assembled from sections.

    generated_at is metadata only and is excluded from the content hash.
    """
    kind: DocumentKind
    title: str
    sections: Tuple[Section, ...] = ()
    subtitle: Optional[str] = None
    case_id: Optional[str] = None
    watermark: Optional[str] = None
    generated_at: Optional[datetime] = None
    metadata: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    def section_titles(self) -> Tuple[str, ...]:
        return tuple(s.title for s in self.sections)

    def find_section(self, title: str) -> Optional[Section]:
        """First section with the given title, or None."""
        for section in self.sections:
            if section.title == title:
                return section
        return None

    def content_hash(self) -> str:
        """
        Generate deterministic hash of document content.

        Used to verify document stability - same inputs = same hash.
        """
        content = {
            "kind": self.kind.value,
            "title": self.title,
            "subtitle": self.subtitle,
            "case_id": self.case_id,
            "watermark": self.watermark,
            "sections": [s.to_dict() for s in self.sections],
        }
        return sha256(json.dumps(content, sort_keys=True).encode()).hexdigest()[:16]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "kind": self.kind.value,
            "title": self.title,
            "subtitle": self.subtitle,
            "case_id": self.case_id,
            "watermark": self.watermark,
            "generated_at": self.generated_at.isoformat() if self.generated_at else None,
            "sections": [s.to_dict() for s in self.sections],
            "metadata": self.metadata,
            "content_hash": self.content_hash(),
        }
