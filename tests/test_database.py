import pytest

from multigit.core.exceptions import ConfigurationError
from multigit.persistence import DatabaseFactory, SQLiteDocumentStore, document_matches


def test_equality_and_array_containment():
    document = {"_id": "c1", "name": "SE", "students": ["u1", "u2"]}
    assert document_matches(document, {"name": "SE"})
    assert document_matches(document, {"students": "u2"})
    assert not document_matches(document, {"students": "u3"})
    assert document_matches(document, None)


def test_in_and_or_operators():
    document = {"_id": "t1", "teamSet": "ts1", "members": ["u1"]}
    assert document_matches(document, {"teamSet": {"$in": ["ts0", "ts1"]}})
    assert not document_matches(document, {"teamSet": {"$in": []}})
    assert document_matches(document, {"members": {"$in": ["u1", "u9"]}})
    assert document_matches(document, {"$or": [{"teamSet": "nope"}, {"members": "u1"}]})
    assert not document_matches(document, {"$or": [{"teamSet": "nope"}, {"members": "u2"}]})


def test_sqlite_save_replaces_existing_document(tmp_path):
    store = SQLiteDocumentStore(str(tmp_path / "store.db"))
    store.save("courses", {"_id": "c1", "name": "Old"})
    store.save("courses", {"_id": "c1", "name": "New"})

    assert store.find_by_id("courses", "c1") == {"_id": "c1", "name": "New"}
    assert store.count("courses") == 1


def test_sqlite_find_keeps_insertion_order_and_separates_collections(tmp_path):
    store = SQLiteDocumentStore(str(tmp_path / "store.db"))
    for number in (3, 1, 2):
        store.save("teams", {"_id": f"t{number}", "number": number, "teamSet": "ts"})
    store.save("teamsets", {"_id": "t1", "name": "clash"})

    assert [doc["_id"] for doc in store.find("teams", {"teamSet": "ts"})] == ["t3", "t1", "t2"]
    assert store.find_by_id("teamsets", "t1")["name"] == "clash"


def test_sqlite_delete_and_delete_many(tmp_path):
    store = SQLiteDocumentStore(str(tmp_path / "store.db"))
    store.save("teams", {"_id": "t1", "teamSet": "a"})
    store.save("teams", {"_id": "t2", "teamSet": "a"})
    store.save("teams", {"_id": "t3", "teamSet": "b"})

    assert store.delete("teams", "t3") is True
    assert store.delete("teams", "t3") is False
    assert store.delete_many("teams", {"teamSet": {"$in": ["a"]}}) == 2
    assert store.count("teams") == 0


def test_factory_rejects_unknown_backend():
    with pytest.raises(ConfigurationError):
        DatabaseFactory.create_database("postgres")


def test_factory_requires_mongodb_uri():
    with pytest.raises(ConfigurationError):
        DatabaseFactory.create_database("mongodb", uri=None)
