"""
Document Assembly

Case aggregate -> DocumentModel (bill of sale, quote summaries,
case summary, complete package). No binary rendering happens here.
"""

from .bill_of_sale import SignatureCapture
from .document_assembler import DocumentAssembler

__all__ = [
    'DocumentAssembler',
    'SignatureCapture',
]
