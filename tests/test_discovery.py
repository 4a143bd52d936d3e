"""Tests for source column discovery."""

import pytest
from sqlalchemy import create_engine

from batchmigrate.exceptions import DiscoveryError
from batchmigrate.models.migration import DatabaseEndpoint, FileEndpoint, FileFormat
from batchmigrate.models.record import ColumnDescriptor
from batchmigrate.services.discovery import ColumnDiscoverer
from batchmigrate.services.query_builder import QueryBuilder

from conftest import create_table, sqlite_url


@pytest.fixture
def connect():
    engines = []

    def _connect(url):
        engine = create_engine(url)
        engines.append(engine)
        return engine.connect()

    yield _connect
    for engine in engines:
        engine.dispose()


def test_csv_header_order(csv_endpoint):
    assert ColumnDiscoverer(csv_endpoint).discover() == ["id", "name"]


def test_csv_header_is_stripped(tmp_path):
    path = tmp_path / "in.csv"
    path.write_text("zeta ; alpha\n1;2\n", encoding="utf-8")
    endpoint = FileEndpoint(path=str(path), delimiter=";")
    assert ColumnDiscoverer(endpoint).discover() == ["zeta", "alpha"]


@pytest.mark.parametrize("content", ["", "a,,b\n", "a,b,a\n"])
def test_bad_csv_header(tmp_path, content):
    path = tmp_path / "in.csv"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(DiscoveryError):
        ColumnDiscoverer(FileEndpoint(path=str(path))).discover()


def test_xml_first_record_tags_in_document_order(tmp_path):
    path = tmp_path / "in.xml"
    path.write_text(
        "<records><record><name>a</name><id>1</id></record>"
        "<record><id>2</id><extra>x</extra></record></records>",
        encoding="utf-8",
    )
    endpoint = FileEndpoint(path=str(path), format=FileFormat.XML)
    assert ColumnDiscoverer(endpoint).discover() == ["name", "id"]


def test_xml_explicit_columns(tmp_path):
    path = tmp_path / "in.xml"
    path.write_text("<records/>", encoding="utf-8")
    endpoint = FileEndpoint(path=str(path), format=FileFormat.XML, columns=("b", "a"))
    assert ColumnDiscoverer(endpoint).discover() == ["b", "a"]


def test_xml_without_records(tmp_path):
    path = tmp_path / "in.xml"
    path.write_text("<records></records>", encoding="utf-8")
    with pytest.raises(DiscoveryError):
        ColumnDiscoverer(FileEndpoint(path=str(path), format=FileFormat.XML)).discover()


def test_table_columns_sorted(source_table, connect):
    discoverer = ColumnDiscoverer(source_table, connection=connect(source_table.url))
    assert discoverer.discover() == ["id", "name", "score"]


def test_raw_query_columns(source_db, connect):
    endpoint = DatabaseEndpoint(url=source_db, sql="SELECT score, name FROM people;  ")
    discoverer = ColumnDiscoverer(endpoint, connection=connect(source_db))
    assert discoverer.discover() == ["name", "score"]


def test_empty_table_is_an_error(tmp_path, connect):
    url = sqlite_url(tmp_path / "empty.db")
    create_table(url, "CREATE TABLE t (a INTEGER)")
    endpoint = DatabaseEndpoint(url=url, table="t")
    with pytest.raises(DiscoveryError) as exc_info:
        ColumnDiscoverer(endpoint, connection=connect(url)).discover()
    assert "no rows" in str(exc_info.value)


def test_missing_table_is_an_error(source_db, connect):
    endpoint = DatabaseEndpoint(url=source_db, table="nope")
    with pytest.raises(DiscoveryError):
        ColumnDiscoverer(endpoint, connection=connect(source_db)).discover()


def test_database_needs_connection(source_table):
    with pytest.raises(DiscoveryError):
        ColumnDiscoverer(source_table).discover()


def test_describe_table_types(source_table, connect):
    discoverer = ColumnDiscoverer(source_table, connection=connect(source_table.url))
    columns = discoverer.discover()
    assert discoverer.describe(columns) == [
        ColumnDescriptor("id", "INTEGER"),
        ColumnDescriptor("name", "VARCHAR(20)"),
        ColumnDescriptor("score", "REAL"),
    ]


def test_describe_raw_query_falls_back_to_text(source_db, connect):
    endpoint = DatabaseEndpoint(url=source_db, sql="SELECT id FROM people")
    discoverer = ColumnDiscoverer(endpoint, connection=connect(source_db))
    assert discoverer.describe(["id"]) == [ColumnDescriptor("id", "TEXT")]


def test_describe_files_as_text(csv_endpoint):
    assert ColumnDiscoverer(csv_endpoint).describe(["id", "name"]) == [
        ColumnDescriptor("id", "TEXT"),
        ColumnDescriptor("name", "TEXT"),
    ]


def test_probe_statements():
    builder = QueryBuilder()
    probe = builder.probe_query("SELECT a FROM t ;\n")
    assert probe.text == "SELECT a FROM t LIMIT 1"

    compiled = " ".join(str(builder.probe_table("people").compile()).split())
    assert compiled.startswith("SELECT * FROM people")
    assert "LIMIT" in compiled


def test_raw_query_colons_are_not_parameters():
    builder = QueryBuilder()
    statement = builder.probe_query("SELECT ':x' AS tag, a::int FROM t WHERE b = :y")
    compiled = statement.compile()
    assert compiled.params == {}
    assert str(compiled) == "SELECT ':x' AS tag, a::int FROM t WHERE b = :y LIMIT 1"
