"""Tests for engine and session setup"""
from sqlalchemy.pool import StaticPool

from conftest import PASSWORD_HASH
from marketplace.db import database
from marketplace.models.user import Profile, UserRole


def test_in_memory_database_shares_one_connection():
    engine = database.init_database("sqlite://")
    try:
        assert isinstance(engine.pool, StaticPool)
    finally:
        engine.dispose()


def test_file_database_sessions_are_isolated(tmp_path):
    engine = database.init_database(f"sqlite:///{tmp_path / 'marketplace.db'}")
    database.create_tables()
    assert not isinstance(engine.pool, StaticPool)

    writer = database.SessionLocal()
    reader = database.SessionLocal()
    try:
        writer.add(Profile(role=UserRole.CUSTOMER, phone="9555000001", name="Writer", password_hash=PASSWORD_HASH))
        writer.flush()

        # Uncommitted work stays on the writer's own connection
        assert reader.query(Profile).count() == 0

        writer.rollback()
        assert reader.query(Profile).count() == 0
        assert writer.query(Profile).count() == 0
    finally:
        writer.close()
        reader.close()
        engine.dispose()
