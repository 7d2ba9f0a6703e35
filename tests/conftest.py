"""Shared fixtures: an in-memory SQLite database behind a ConnectionManager."""

from __future__ import annotations

from typing import Iterator

import pytest

from db.config import ConnectionConfig
from db.database import Database
from db.driver import SQLITE
from db.init_db import create_tables
from db.manager import ConnectionManager
from repositories.post_repo import PostRepository


@pytest.fixture
def sqlite_config() -> ConnectionConfig:
    return ConnectionConfig(
        host="localhost",
        user="tester",
        password="",
        database=":memory:",
        port=5432,
    )


@pytest.fixture
def manager() -> Iterator[ConnectionManager]:
    manager = ConnectionManager(SQLITE)
    yield manager
    manager.close_connection()


@pytest.fixture
def db(manager: ConnectionManager, sqlite_config: ConnectionConfig) -> Database:
    database = manager.get_instance(sqlite_config)
    create_tables(database)
    return database


@pytest.fixture
def posts(db: Database) -> PostRepository:
    return PostRepository(db)
