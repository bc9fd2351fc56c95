import pytest

from adapters.sqlite import SQLiteAdapter
from bootstrap.sample_data import seed_sample_data
from utils.config import Settings


@pytest.fixture
def sqlite_settings(tmp_path):
    return Settings(db_engine="sqlite", sqlite_db_path=str(tmp_path / "querymind.db"), llm_provider="heuristic")


@pytest.fixture
def sqlite_adapter(sqlite_settings):
    return SQLiteAdapter(settings=sqlite_settings)


@pytest.fixture
def seeded_adapter(sqlite_adapter):
    seed_sample_data(sqlite_adapter)
    return sqlite_adapter


@pytest.fixture
def shop_schema_text():
    return (
        "users (\n"
        "  id INT [PK],\n"
        "  name VARCHAR\n"
        ")\n"
        "orders (\n"
        "  id INT [PK],\n"
        "  user_id INT [FK->users.id],\n"
        "  total_amount DECIMAL\n"
        ")"
    )
