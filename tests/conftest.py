from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from mongo_session.database.connection import ConnectionDescriptor


@pytest.fixture
def descriptor():
    return ConnectionDescriptor(
        host="mongo.test",
        port=27018,
        username="usuario",
        password="micontraseña",
        database="biblioteca_test",
    )


@pytest.fixture
def mock_motor_client():
    """Patch the Motor client class used by the session module."""
    with patch("mongo_session.database.session.AsyncIOMotorClient") as client_cls:
        client = client_cls.return_value
        client.admin.command = AsyncMock(return_value={"ok": 1.0})
        client.close = MagicMock()
        database = MagicMock()
        database.command = AsyncMock()
        client.__getitem__.return_value = database
        yield client_cls


@pytest.fixture
def mock_collection():
    collection = MagicMock()
    collection.name = "libros"
    return collection
