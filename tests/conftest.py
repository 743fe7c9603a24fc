"""
Pytest configuration and fixtures for testing.

Provides shared fact batches and aggregations used across the entity map
tests.
"""

from pathlib import Path

import pytest

from entitymap import DataTuple, TypedRecord
from tests.models import Person, StrictPerson


def pytest_configure(config):
    """
    Pytest hook that runs before test collection.

    Loads .env.test so ENTITYMAP_* variables are in place for any
    Settings built during the run.
    """
    from dotenv import load_dotenv

    test_env_path = Path(__file__).parent.parent / ".env.test"
    if test_env_path.exists():
        load_dotenv(test_env_path, override=True)
        print(f"Loaded test environment from {test_env_path}")


# =============================================================================
# Aggregation Fixtures
# =============================================================================


@pytest.fixture
def person_aggregation() -> TypedRecord:
    return TypedRecord(Person, {"identifier": "id", "name": "names"})


@pytest.fixture
def strict_person_aggregation() -> TypedRecord:
    return TypedRecord(StrictPerson, {"identifier": "id", "name": "names"})


# =============================================================================
# Fact Fixtures
# =============================================================================


@pytest.fixture
def people_facts() -> list[DataTuple]:
    """Two people with identifiers, names (cardinality-many) and ages."""
    return [
        DataTuple.assertion(0, "identifier", "a"),
        DataTuple.assertion(0, "name", "Bill Smith"),
        DataTuple.assertion(0, "age", 32),
        DataTuple.assertion(1, "identifier", "b"),
        DataTuple.assertion(1, "name", "Karina Jones"),
        DataTuple.assertion(1, "age", 64),
    ]


@pytest.fixture
def people_records() -> list[dict]:
    return [
        {"identifier": "bill_smith", "name": "Bill Smith", "age": 32},
        {"identifier": "bill_smith", "name": "William Smith", "age": 32},
        {"identifier": "karina_jones", "name": "Karina Jones", "age": 64},
        {"identifier": "jim_stewart", "name": "Jim Stewart", "age": 23},
    ]
