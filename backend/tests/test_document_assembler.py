"""
Document Assembler Tests

Tests verify:
1. Complete package section order and page breaks
2. Signed bill of sale watermark and signature
3. Case summary layout
4. Determinism (same inputs -> same hash)
5. Input validation
"""

import pytest
from datetime import timedelta

from app.errors import ValidationError
from app.models.document_model import DocumentKind, SignatureBlock
from app.services.documents import DocumentAssembler, SignatureCapture


@pytest.fixture
def assembler(settings):
    return DocumentAssembler(settings=settings)


# =============================================================================
# COMPLETE PACKAGE
# =============================================================================

class TestCompletePackage:
    """Cover, quote summary, inspection report, bill of sale."""

    def test_section_order(self, assembler, full_case, fixed_timestamp):
        doc = assembler.assemble(DocumentKind.COMPLETE_PACKAGE, full_case, generated_at=fixed_timestamp)
        titles = doc.section_titles()

        assert doc.title == "VOS - COMPLETE CASE PACKAGE"
        assert titles[0] == "VOS - COMPLETE CASE PACKAGE"
        assert titles[1] == "QUOTE SUMMARY"
        assert titles[2:13] == (
            "VEHICLE IDENTIFICATION",
            "CUSTOMER INFORMATION",
            "MARKET VALUE ANALYSIS",
            "INSPECTION OVERVIEW",
            "DETAILED SECTION ANALYSIS",
            "OBD2 DIAGNOSTIC SUMMARY",
            "SAFETY ASSESSMENT",
            "MAINTENANCE ANALYSIS",
            "RISK ASSESSMENT",
            "PROFESSIONAL RECOMMENDATIONS",
            "VEHICLE DOCUMENTATION",
        )
        assert titles[13:19] == (
            "INSPECTION REPORT",
            "INSPECTION OVERVIEW",
            "DETAILED SECTION ANALYSIS",
            "OBD2 DIAGNOSTIC SUMMARY",
            "SAFETY ASSESSMENT",
            "PROFESSIONAL RECOMMENDATIONS",
        )
        assert titles[19] == "VEHICLE BILL OF SALE"
        assert titles[20] == "1. Seller Information"
        assert titles[-1] == "11. Signatures"
        assert len(titles) == 31

    def test_page_breaks(self, assembler, full_case, fixed_timestamp):
        doc = assembler.assemble(DocumentKind.COMPLETE_PACKAGE, full_case, generated_at=fixed_timestamp)
        breaks = [s.title for s in doc.sections if s.new_page]

        assert breaks == ["QUOTE SUMMARY", "INSPECTION REPORT", "VEHICLE BILL OF SALE"]

    def test_cover_contents(self, assembler, full_case, fixed_timestamp):
        doc = assembler.assemble(DocumentKind.COMPLETE_PACKAGE, full_case, generated_at=fixed_timestamp)
        cover = doc.sections[0]

        assert cover.rows()["Vehicle"] == "2018 Honda Accord"
        assert cover.rows()["Prepared"] == "March 5, 2024"
        assert cover.texts()[1:] == ("Quote Summary", "Inspection Report", "Bill of Sale")
        assert doc.metadata["contains"] == ["Quote Summary", "Inspection Report", "Bill of Sale"]

    def test_digest_omits_question_detail(self, assembler, full_case, fixed_timestamp):
        doc = assembler.assemble(DocumentKind.COMPLETE_PACKAGE, full_case, generated_at=fixed_timestamp)
        digest_detail = doc.sections[15]

        assert digest_detail.title == "DETAILED SECTION ANALYSIS"
        assert "Questions Answered" not in digest_detail.rows()


# =============================================================================
# BILL OF SALE VARIANTS
# =============================================================================

class TestSignedBillOfSale:
    """Signed variant: watermark plus captured signature."""

    def test_watermark_and_signature(self, assembler, full_case, fixed_timestamp):
        signature = SignatureCapture(image_data="data:image/png;base64,iVBORw0KGgo=", signed_at=fixed_timestamp)
        doc = assembler.assemble(
            DocumentKind.SIGNED_BILL_OF_SALE, full_case, generated_at=fixed_timestamp, signature=signature
        )

        assert doc.watermark == "SIGNED"
        last = doc.sections[-1]
        assert last.title == "Seller's Signature"
        block = last.blocks[0]
        assert isinstance(block, SignatureBlock)
        assert block.image_base64 == "iVBORw0KGgo="
        assert block.signed_at_text == "Signed on: March 5, 2024 at 2:07 PM"

    def test_without_signature(self, assembler, full_case, fixed_timestamp):
        doc = assembler.assemble(DocumentKind.SIGNED_BILL_OF_SALE, full_case, generated_at=fixed_timestamp)
        assert doc.sections[-1].texts() == ("No signature captured",)

    def test_unsigned_has_no_watermark(self, assembler, full_case, fixed_timestamp):
        doc = assembler.assemble(DocumentKind.BILL_OF_SALE, full_case, generated_at=fixed_timestamp)
        assert doc.watermark is None
        assert doc.title == "VEHICLE BILL OF SALE"


# =============================================================================
# CASE SUMMARY
# =============================================================================

class TestCaseSummary:
    """Case metadata, digests, bill of sale, inspection."""

    def test_layout(self, assembler, full_case, fixed_timestamp):
        doc = assembler.assemble(DocumentKind.CASE_SUMMARY, full_case, generated_at=fixed_timestamp)
        titles = doc.section_titles()

        assert doc.title == "Vehicle Offer Service - Case Summary"
        assert titles[:5] == (
            "Case Overview",
            "Customer Information",
            "Vehicle Information",
            "Transaction Details",
            "VEHICLE BILL OF SALE",
        )
        assert titles[-1] == "Vehicle Inspection Summary"
        assert doc.find_section("Case Overview").rows()["Created"] == "March 1, 2024"
        assert doc.find_section("Customer Information").rows()["Source"] == "Walk-In"
        assert doc.find_section("Transaction Details").rows()["Sale Price"] == "$15,500"

    def test_empty_case(self, assembler, fixed_timestamp):
        doc = assembler.assemble(DocumentKind.CASE_SUMMARY, {}, generated_at=fixed_timestamp)

        assert doc.find_section("Transaction Details").texts() == ("No transaction recorded",)
        assert doc.find_section("Vehicle Inspection Summary").texts() == ("No inspection recorded",)
        assert doc.find_section("Case Overview").rows()["Case ID"] == "Unknown"


# =============================================================================
# DETERMINISM AND VALIDATION
# =============================================================================

class TestAssemblerContract:
    """Hash stability and input checks."""

    def test_same_inputs_same_hash(self, assembler, full_case, fixed_timestamp):
        first = assembler.assemble(DocumentKind.COMPLETE_PACKAGE, full_case, generated_at=fixed_timestamp)
        second = assembler.assemble(DocumentKind.COMPLETE_PACKAGE, full_case, generated_at=fixed_timestamp)
        assert first.content_hash() == second.content_hash()
        assert first == second

    def test_bill_of_sale_hash_ignores_generation_time(self, assembler, full_case, fixed_timestamp):
        """With a recorded sale date, generation time does not change content."""
        first = assembler.assemble(DocumentKind.BILL_OF_SALE, full_case, generated_at=fixed_timestamp)
        later = assembler.assemble(
            DocumentKind.BILL_OF_SALE, full_case, generated_at=fixed_timestamp + timedelta(days=3)
        )
        assert first.content_hash() == later.content_hash()

    def test_kind_as_string(self, assembler, full_case, fixed_timestamp):
        doc = assembler.assemble("QUOTE_SUMMARY_BASIC", full_case, generated_at=fixed_timestamp)
        assert doc.kind == DocumentKind.QUOTE_SUMMARY_BASIC

    def test_unknown_kind(self, assembler, full_case):
        with pytest.raises(ValidationError):
            assembler.assemble("INVOICE", full_case)

    def test_malformed_field_names_path(self, assembler, full_case):
        full_case["vehicle"]["loanAmount"] = "lots"
        with pytest.raises(ValidationError) as exc:
            assembler.assemble(DocumentKind.QUOTE_SUMMARY_ANALYTIC, full_case)
        assert exc.value.details["field"] == "vehicle.loanAmount"

    def test_out_of_range_epoch_is_validation_error(self, assembler, full_case):
        full_case["createdAt"] = 10 ** 20
        with pytest.raises(ValidationError) as exc:
            assembler.assemble(DocumentKind.CASE_SUMMARY, full_case)
        assert exc.value.details["field"] == "case.createdAt"

    def test_package_uses_relative_imports(self):
        """Modules in the documents package import app code relatively."""
        from pathlib import Path
        from app.services import documents

        for module in Path(documents.__file__).parent.glob("*.py"):
            lines = module.read_text().splitlines()
            absolute = [line for line in lines if line.startswith(("from app.", "import app."))]
            assert absolute == [], f"{module.name}: {absolute}"

    def test_to_dict_is_json_ready(self, assembler, full_case, fixed_timestamp):
        import json
        doc = assembler.assemble(DocumentKind.COMPLETE_PACKAGE, full_case, generated_at=fixed_timestamp)
        payload = json.loads(json.dumps(doc.to_dict()))

        assert payload["kind"] == "COMPLETE_PACKAGE"
        assert payload["content_hash"] == doc.content_hash()
        assert len(payload["sections"]) == 31
