"""
Pytest Configuration and Fixtures

Provides shared fixtures for all tests.
"""

from datetime import datetime
from pathlib import Path
from typing import Callable, List

import pytest

# Add src to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from appraisalcore.config import reset_config  # noqa: E402
from appraisalcore.core.models import ComparableSale, SubjectProperty  # noqa: E402


@pytest.fixture(scope="session")
def project_root() -> Path:
    """Get the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture(autouse=True)
def clean_config():
    """Reset the configuration singleton around every test."""
    reset_config()
    yield
    reset_config()


@pytest.fixture(scope="function")
def test_config(monkeypatch):
    """Create test configuration with debug logging.

    Args:
        monkeypatch: pytest monkeypatch fixture.

    Yields:
        Config object configured for testing.
    """
    monkeypatch.setenv("APPRAISALCORE_LOG_LEVEL", "DEBUG")

    from appraisalcore.config import get_config
    reset_config()

    config = get_config()
    yield config

    reset_config()


@pytest.fixture(scope="function")
def reference_date() -> datetime:
    """Fixed "today" for recency and seasonal adjustments."""
    return datetime(2024, 7, 15)


@pytest.fixture(scope="function")
def subject() -> SubjectProperty:
    """3 bed / 2 bath house on 500m2, built 2005."""
    return SubjectProperty(
        address="12 Kauri Street",
        suburb="Riverton",
        city="Springfield",
        property_type="house",
        bedrooms=3,
        bathrooms=2,
        land_size=500,
        year_built=2005,
    )


@pytest.fixture(scope="function")
def make_comparable() -> Callable[..., ComparableSale]:
    """Factory for comparables that match the ``subject`` fixture by default."""
    counter = {"n": 0}

    def make(**overrides) -> ComparableSale:
        counter["n"] += 1
        fields = {
            "id": f"comp-{counter['n']}",
            "address": f"{counter['n']} Rimu Road",
            "suburb": "Riverton",
            "city": "Springfield",
            "property_type": "house",
            "bedrooms": 3,
            "bathrooms": 2,
            "land_size": 500,
            "year_built": 2005,
            "similarity_score": 0.9,
        }
        fields.update(overrides)
        return ComparableSale(**fields)

    return make


@pytest.fixture(scope="function")
def market_comparables(make_comparable) -> List[ComparableSale]:
    """Five consistent recent sales plus one 1.2M outlier."""
    sales = [
        (480000, datetime(2024, 6, 2)),
        (490000, datetime(2024, 5, 20)),
        (500000, datetime(2024, 4, 11)),
        (510000, datetime(2024, 6, 28)),
        (520000, datetime(2024, 3, 30)),
        (1200000, datetime(2024, 5, 5)),
    ]
    return [make_comparable(sale_price=price, sale_date=sold) for price, sold in sales]


@pytest.fixture(scope="function")
def sample_request_data() -> dict:
    """Raw camelCase valuation request as sent by the appraisal workflow."""
    return {
        "subjectProperty": {
            "address": "12 Kauri Street",
            "suburb": "Riverton",
            "city": "Springfield",
            "propertyType": "House",
            "bedrooms": 3,
            "bathrooms": 2,
            "landSize": 500,
            "yearBuilt": 2005,
        },
        "comparableProperties": [
            {
                "id": "c1",
                "address": "1 Rimu Road",
                "suburb": "Riverton",
                "propertyType": "house",
                "bedrooms": 3,
                "bathrooms": 2,
                "landSize": 520,
                "yearBuilt": 2004,
                "salePrice": 505000,
                "saleDate": "2024-06-01",
                "similarityScore": 0.92,
            },
            {
                "id": "c2",
                "address": "7 Totara Lane",
                "suburb": "Riverton",
                "propertyType": "house",
                "bedrooms": 4,
                "bathrooms": 2,
                "landSize": 610,
                "yearBuilt": 2008,
                "salePrice": "545000",
                "saleDate": "15/05/2024",
                "similarityScore": 0.8,
            },
            {
                "id": "c3",
                "address": "3 Matai Place",
                "suburb": "Riverton",
                "propertyType": "house",
                "bedrooms": 3,
                "bathrooms": 1,
                "landSize": 480,
                "yearBuilt": 1998,
                "salePrice": 470000,
                "saleDate": "2024-04-20T00:00:00Z",
                "similarityScore": 0.85,
            },
        ],
        "avmEstimate": {
            "value": 515000,
            "low": 490000,
            "high": 540000,
            "confidence": 0.8,
            "source": "Valocity",
        },
        "marketStatistics": {
            "suburb": "Riverton",
            "medianPrice": 500000,
            "annualGrowth": 0.04,
        },
        "options": {"useAVM": True, "outlierMethod": "Combined"},
    }
