"""
Quote Summary Tests

Tests verify:
1. Market value banding and difference display
2. Analytic and basic section order
3. Critical answer detection (substring match)
4. OBD2 counts, including inconsistent scans
5. Default text when data is absent
"""

import pytest
from copy import deepcopy

from app.models.case_models import CaseAggregate
from app.models.document_model import DocumentKind
from app.services.documents import DocumentAssembler
from app.services.documents.formatting import (
    MarketPosition, analyze_market, format_currency, format_money, is_critical_answer, market_position,
)


ANALYTIC_ORDER = (
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


@pytest.fixture
def assembler(settings):
    return DocumentAssembler(settings=settings)


def _analytic(assembler, case, fixed_timestamp):
    return assembler.assemble(DocumentKind.QUOTE_SUMMARY_ANALYTIC, case, generated_at=fixed_timestamp)


# =============================================================================
# MARKET VALUE
# =============================================================================

class TestMarketValue:
    """Offer versus estimated value."""

    def test_twenty_percent_below_market(self, assembler, full_case, fixed_timestamp):
        section = _analytic(assembler, full_case, fixed_timestamp).find_section("MARKET VALUE ANALYSIS")

        assert section.rows()["MarketCheck Value"] == "$20,000"
        assert section.rows()["VOS Offer"] == "$16,000"
        assert section.rows()["Difference"] == "$4,000 (20.0%)"
        assert "Market Position: Significantly below market value" in section.texts()

    @pytest.mark.parametrize("percentage,position", [
        (15.1, MarketPosition.SIGNIFICANTLY_BELOW),
        (15, MarketPosition.BELOW),
        (5.5, MarketPosition.BELOW),
        (5, MarketPosition.AT),
        (0, MarketPosition.AT),
        (-5, MarketPosition.ABOVE),
        (-20, MarketPosition.ABOVE),
    ])
    def test_bands(self, percentage, position):
        assert market_position(percentage) == position

    def test_no_estimated_value(self, assembler, full_case, fixed_timestamp):
        case = deepcopy(full_case)
        case["vehicle"]["estimatedValue"] = None
        section = _analytic(assembler, case, fixed_timestamp).find_section("MARKET VALUE ANALYSIS")

        assert section.texts() == ("MarketCheck Estimated Value: Not available",)

    def test_zero_estimated_value_has_zero_percentage(self):
        analysis = analyze_market(0, 5000)
        assert analysis.percentage == 0
        assert analysis.position == MarketPosition.AT

    def test_offer_above_market_signs_difference(self, assembler, full_case, fixed_timestamp):
        case = deepcopy(full_case)
        case["quote"]["offerAmount"] = 24000
        section = _analytic(assembler, case, fixed_timestamp).find_section("MARKET VALUE ANALYSIS")

        assert section.rows()["VOS Offer"] == "$24,000"
        assert section.rows()["Difference"] == "-$4,000 (-20.0%)"

    def test_money_formatting(self):
        assert format_money(45000) == "45,000"
        assert format_money(1250.5) == "1,250.5"
        assert format_money(None) == "0"
        assert format_currency(-4000) == "-$4,000"
        assert format_currency(1250.5) == "$1,250.5"
        assert format_currency(None) == "$0"


# =============================================================================
# SECTION ORDER AND DEFAULTS
# =============================================================================

class TestAnalyticVariant:
    """Full analysis variant."""

    def test_section_order(self, assembler, full_case, fixed_timestamp):
        doc = _analytic(assembler, full_case, fixed_timestamp)

        assert doc.title == "VOS - VEHICLE OFFER SUMMARY"
        assert doc.section_titles() == ANALYTIC_ORDER

    def test_sections_emitted_for_empty_case(self, assembler, fixed_timestamp):
        doc = _analytic(assembler, {}, fixed_timestamp)

        assert doc.section_titles() == ANALYTIC_ORDER
        assert doc.find_section("SAFETY ASSESSMENT").texts() == ("No safety issues reported",)
        assert doc.find_section("PROFESSIONAL RECOMMENDATIONS").texts() == ("No recommendations provided",)
        assert doc.find_section("MAINTENANCE ANALYSIS").texts() == ("No maintenance items reported",)
        assert doc.find_section("OBD2 DIAGNOSTIC SUMMARY").texts() == ("No diagnostic codes recorded",)
        assert doc.find_section("INSPECTION OVERVIEW").rows()["Inspector"] == "Not assigned"
        assert doc.find_section("INSPECTION OVERVIEW").rows()["Overall Rating"] == "N/A/5"
        assert doc.find_section("RISK ASSESSMENT").rows() == {"Risk Score": "0/10", "Risk Level": "LOW RISK"}

    def test_noisy_answer_counts_as_critical(self, assembler, full_case, fixed_timestamp):
        """'noisy' contains 'no', so it is flagged."""
        section = _analytic(assembler, full_case, fixed_timestamp).find_section("DETAILED SECTION ANALYSIS")

        assert section.rows()["Questions Answered"] == "2/3"
        assert section.rows()["Critical Issues"] == "1"
        assert "Engine sound: noisy" in section.texts()

    @pytest.mark.parametrize("answer,critical", [
        ("noisy", True), ("Failed", True), ("minor issue", True), ("PROBLEM", True),
        ("good", False), ("", False), (None, False), (True, False),
    ])
    def test_critical_answer_heuristic(self, answer, critical):
        assert is_critical_answer(answer) is critical

    def test_negative_unknown_codes(self, assembler, full_case, fixed_timestamp):
        """More critical than extracted codes yields a negative unknown count."""
        case = deepcopy(full_case)
        case["quote"]["obd2Scan"] = {
            "extractedCodes": ["P0300"],
            "criticalCodes": [
                {"code": "P0300", "description": "Random misfire"},
                {"code": "P0420", "description": "Catalyst efficiency"},
            ],
        }
        section = _analytic(assembler, case, fixed_timestamp).find_section("OBD2 DIAGNOSTIC SUMMARY")

        assert section.rows()["Total Codes Found"] == "1"
        assert section.rows()["Critical Codes"] == "2"
        assert section.rows()["Unknown Codes"] == "-1"
        assert "P0420: Catalyst efficiency" in section.texts()

    def test_recommendation_overflow(self, assembler, full_case, fixed_timestamp):
        case = deepcopy(full_case)
        case["inspection"]["recommendations"] = [f"Item {n}" for n in range(1, 8)]
        texts = _analytic(assembler, case, fixed_timestamp).find_section("PROFESSIONAL RECOMMENDATIONS").texts()

        assert texts[:5] == ("1. Item 1", "2. Item 2", "3. Item 3", "4. Item 4", "5. Item 5")
        assert texts[5] == "... and 2 more recommendations"

    def test_critical_safety_warning(self, assembler, full_case, fixed_timestamp):
        case = deepcopy(full_case)
        case["inspection"]["safetyIssues"] = [{"severity": "critical"}, {"severity": "low"}]
        section = _analytic(assembler, case, fixed_timestamp).find_section("SAFETY ASSESSMENT")

        assert section.rows()["Critical Issues"] == "1"
        assert section.rows()["Low Priority"] == "1"
        assert "CRITICAL SAFETY ISSUES DETECTED" in section.texts()

    def test_risk_in_metadata(self, assembler, full_case, fixed_timestamp):
        doc = _analytic(assembler, full_case, fixed_timestamp)
        assert doc.metadata["risk"] == {"score": 0, "level": "LOW", "factors": []}

    def test_risk_factors_truncated_in_order(self, assembler, full_case, fixed_timestamp):
        """Five factors: the first three are listed, the rest summarized."""
        case = deepcopy(full_case)
        case["inspection"]["overallRating"] = 2.5
        case["inspection"]["safetyIssues"] = [{"severity": "critical", "description": "Brake line leak"}]
        case["quote"]["obd2Scan"] = {
            "extractedCodes": ["P0300", "P0420"],
            "criticalCodes": [
                {"code": "P0300", "description": "Random misfire"},
                {"code": "P0420", "description": "Catalyst efficiency"},
            ],
        }
        case["vehicle"].update({"titleStatus": "salvage", "loanStatus": "still-has-loan", "loanAmount": 5000})
        doc = _analytic(assembler, case, fixed_timestamp)
        section = doc.find_section("RISK ASSESSMENT")

        assert section.rows()["Risk Score"] == "10/10"
        assert section.rows()["Risk Level"] == "HIGH RISK"
        assert section.texts() == (
            "Risk Factors:",
            "Low overall inspection rating",
            "2 critical OBD2 codes",
            "1 critical safety issues",
            "... and 2 more",
        )
        assert len(doc.metadata["risk"]["factors"]) == 5


class TestBasicVariant:
    """Identification and inspection overview only."""

    def test_section_order(self, assembler, full_case, fixed_timestamp):
        doc = assembler.assemble(DocumentKind.QUOTE_SUMMARY_BASIC, full_case, generated_at=fixed_timestamp)

        assert doc.title == "VOS VEHICLE SUMMARY"
        assert doc.section_titles() == (
            "VEHICLE IDENTIFICATION",
            "CUSTOMER INFORMATION",
            "VEHICLE DOCUMENTATION OVERVIEW",
            "INSPECTION OVERVIEW",
            "DETAILED SECTION ANALYSIS",
        )
        assert "Title Status" not in doc.find_section("VEHICLE IDENTIFICATION").rows()
        assert "Source" not in doc.find_section("CUSTOMER INFORMATION").rows()

    @pytest.mark.parametrize("kind, title", [
        (DocumentKind.QUOTE_SUMMARY_BASIC, "ACME VEHICLE SUMMARY"),
        (DocumentKind.QUOTE_SUMMARY_ANALYTIC, "ACME - VEHICLE OFFER SUMMARY"),
    ])
    def test_title_uses_buyer_short_name(self, full_case, fixed_timestamp, kind, title):
        from app.config import BuyerProfile, Settings
        settings = Settings(buyer=BuyerProfile(name="Acme Auto Buyers", short_name="ACME"))
        doc = DocumentAssembler(settings=settings).assemble(kind, full_case, generated_at=fixed_timestamp)

        assert doc.title == title

    def test_scan_section_reports_code_count(self, assembler, full_case, fixed_timestamp):
        case = deepcopy(full_case)
        case["inspection"]["sections"].append({"name": "OBD2 Scan", "completed": True})
        case["quote"]["obd2Scan"] = {"extractedCodes": ["P0300", "P0171"], "criticalCodes": []}
        doc = assembler.assemble(DocumentKind.QUOTE_SUMMARY_BASIC, case, generated_at=fixed_timestamp)

        rows = doc.find_section("DETAILED SECTION ANALYSIS").rows()
        assert rows["Total Diagnostic Trouble Code(s)"] == "2"

    def test_aggregate_and_dict_inputs_agree(self, assembler, full_case, fixed_timestamp):
        from_dict = assembler.assemble(DocumentKind.QUOTE_SUMMARY_BASIC, full_case, generated_at=fixed_timestamp)
        from_model = assembler.assemble(
            DocumentKind.QUOTE_SUMMARY_BASIC, CaseAggregate.from_dict(full_case), generated_at=fixed_timestamp
        )
        assert from_dict.content_hash() == from_model.content_hash()
