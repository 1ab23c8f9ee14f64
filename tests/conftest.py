"""
Pytest configuration and shared fixtures.
"""

import pytest
import pytest_asyncio

from catalog.service import CatalogService
from storage.record_store import RecordStore
from utilities.config import CatalogConfig


@pytest.fixture
def data_dir(tmp_path):
    """Directory for the collection files of one test."""
    return tmp_path / "data"


@pytest.fixture
def catalog_config(data_dir):
    """Catalog configuration pointing at a temporary data directory."""
    return CatalogConfig(
        data_dir=str(data_dir),
        jwt_secret="test-secret",
        log_level="WARNING",
        log_format="console",
    )


@pytest.fixture
def record_store(data_dir):
    """Record store over a temporary data directory."""
    return RecordStore(data_dir)


@pytest_asyncio.fixture
async def service(catalog_config):
    """Catalog service with initialized, empty collections."""
    catalog_service = CatalogService(catalog_config)
    await catalog_service.initialize_storage()
    return catalog_service


@pytest.fixture
def sample_book_fields():
    """Valid fields for creating a book."""
    return {
        "title": "T",
        "author": "Au",
        "genre": "Fiction",
        "publishedYear": 2020,
    }
