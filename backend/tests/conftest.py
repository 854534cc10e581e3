"""
Shared fixtures: in-memory database, fixed timestamps, sample case snapshots.
"""

import pytest
from datetime import datetime, timezone

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.config import BuyerProfile, Settings
from app.database import Base
from app.models import db_models  # noqa: F401  registers tables on Base


# =============================================================================
# DATABASE
# =============================================================================

@pytest.fixture
def session_factory():
    """Session factory bound to a fresh in-memory SQLite database."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield factory
    engine.dispose()


@pytest.fixture
def db(session_factory):
    """Open session on the in-memory database."""
    session = session_factory()
    yield session
    session.close()


# =============================================================================
# SETTINGS AND TIME
# =============================================================================

@pytest.fixture
def settings(tmp_path):
    """Settings independent of the environment, storing documents under tmp_path."""
    return Settings(
        database_url="sqlite://",
        webhook_url="",
        document_storage_dir=str(tmp_path / "pdfs"),
        public_base_url="http://testserver",
        buyer=BuyerProfile(),
    )


@pytest.fixture
def fixed_timestamp():
    """Fixed UTC timestamp for determinism tests."""
    return datetime(2024, 3, 5, 14, 7, 0, tzinfo=timezone.utc)


# =============================================================================
# CASE SNAPSHOTS
# =============================================================================

@pytest.fixture
def full_case():
    """A completed-paperwork case snapshot in camelCase wire form."""
    return {
        "caseId": "case-001",
        "status": "active",
        "currentStage": 6,
        "createdAt": "2024-03-01T09:00:00Z",
        "customer": {
            "firstName": "Jane",
            "lastName": "Doe",
            "cellPhone": "555-0100",
            "homePhone": "555-0101",
            "email1": "jane@example.com",
            "source": "walk_in",
            "hearAboutVOS": "Friend",
            "customerId": "cust-9",
            "address": "9 Elm St",
            "city": "Springfield",
            "state": "IL",
            "zip": "62701",
        },
        "vehicle": {
            "year": "2018",
            "make": "Honda",
            "model": "Accord",
            "vin": "1HGCV1F30JA000001",
            "currentMileage": 45000,
            "color": "Blue",
            "licensePlate": "ABC123",
            "titleStatus": "clean",
            "loanStatus": "paid-off",
            "hasTitleInPossession": True,
            "titleInOwnName": True,
            "secondSetOfKeys": False,
            "estimatedValue": 20000,
        },
        "inspection": {
            "inspector": {"firstName": "Sam", "lastName": "Lee"},
            "overallRating": 4.5,
            "overallScore": 90,
            "maxPossibleScore": 100,
            "completedAt": "2024-03-03T15:00:00Z",
            "sections": [
                {
                    "id": "engine",
                    "name": "Engine",
                    "rating": 4,
                    "score": 18,
                    "maxScore": 20,
                    "completed": True,
                    "questions": [
                        {"id": "q1", "question": "Engine sound", "answer": "noisy"},
                        {"id": "q2", "question": "Oil level", "answer": "good"},
                        {"id": "q3", "question": "Leaks", "answer": ""},
                    ],
                },
            ],
            "recommendations": ["Replace wiper blades"],
            "safetyIssues": [],
            "maintenanceItems": [{"priority": "low", "description": "Cabin filter"}],
        },
        "quote": {
            "offerAmount": 16000,
            "estimatedValue": 20000,
            "status": "accepted",
            "offerDecision": {"decision": "accepted"},
            "generatedAt": "2024-03-04T10:00:00Z",
            "obd2Scan": {"extractedCodes": [], "criticalCodes": []},
        },
        "transaction": {
            "preferredPaymentMethod": "Check",
            "billOfSale": {
                "salePrice": 15500,
                "saleDate": "2024-03-05T00:00:00Z",
                "paymentMethod": "Cash",
                "odometerReading": 45010,
                "odometerAccurate": True,
                "baseVehiclePrice": 20000,
                "repairsAdjustment": 1500,
                "loanPayoff": 3000,
                "taxesPaidBy": "buyer",
                "agentName": "Alex Buyer",
            },
        },
    }
