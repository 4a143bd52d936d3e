"""Shared fixtures for batchmigrate tests."""

from pathlib import Path
from typing import Iterable, Sequence

import pytest
from sqlalchemy import create_engine, text

from batchmigrate.models.migration import DatabaseEndpoint, FileEndpoint, FileFormat


def sqlite_url(path: Path) -> str:
    return f"sqlite:///{path}"


def create_table(url: str, ddl: str, rows: Iterable[Sequence] = (), insert: str = "") -> None:
    """Create a table and optionally fill it, then release the file."""
    engine = create_engine(url)
    try:
        with engine.begin() as conn:
            conn.execute(text(ddl))
            for row in rows:
                conn.execute(text(insert), dict(row))
    finally:
        engine.dispose()


def fetch_all(url: str, sql: str) -> list:
    engine = create_engine(url)
    try:
        with engine.connect() as conn:
            return [tuple(row) for row in conn.execute(text(sql))]
    finally:
        engine.dispose()


@pytest.fixture
def people_csv(tmp_path: Path) -> Path:
    path = tmp_path / "people.csv"
    path.write_text("id,name\n1,a\n2,b\n", encoding="utf-8")
    return path


@pytest.fixture
def csv_endpoint(people_csv: Path) -> FileEndpoint:
    return FileEndpoint(path=str(people_csv), format=FileFormat.CSV)


@pytest.fixture
def source_db(tmp_path: Path) -> str:
    """A SQLite database with a populated ``people`` table."""
    url = sqlite_url(tmp_path / "source.db")
    create_table(
        url,
        "CREATE TABLE people (name VARCHAR(20), id INTEGER, score REAL)",
        rows=[
            {"id": 1, "name": "a", "score": 1.5},
            {"id": 2, "name": "b", "score": None},
            {"id": 3, "name": None, "score": 3.0},
        ],
        insert="INSERT INTO people (id, name, score) VALUES (:id, :name, :score)",
    )
    return url


@pytest.fixture
def source_table(source_db: str) -> DatabaseEndpoint:
    return DatabaseEndpoint(url=source_db, table="people")
