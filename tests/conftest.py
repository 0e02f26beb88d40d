import pytest
from fastapi.testclient import TestClient

from multigit.api.rest_api import MultigitRestAPI
from multigit.core.entities import Account, User
from multigit.core.enums import Role
from multigit.persistence import SQLiteDocumentStore
from multigit.persistence.repositories import AccountRepository, UserRepository


@pytest.fixture
def database(tmp_path):
    store = SQLiteDocumentStore(str(tmp_path / "multigit-test.db"))
    yield store
    store.close()


def make_person(database, identifier, name, email, role):
    """Store an approved account and its user; returns (account, user)."""
    user = User(identifier=identifier, name=name)
    UserRepository(database).save(user)
    account = Account(email=email, role=role, user=user.id, is_approved=True)
    AccountRepository(database).save(account)
    return account, user


@pytest.fixture
def faculty(database):
    return make_person(database, "F001", "Grace Hopper", "grace@example.edu", Role.FACULTY)


@pytest.fixture
def client(database):
    api = MultigitRestAPI(database)
    with TestClient(api.app) as test_client:
        yield test_client


def student_record(identifier, name, email=None, git_handle=None):
    record = {"identifier": identifier, "name": name, "email": email or f"{identifier.lower()}@example.edu"}
    if git_handle:
        record["gitHandle"] = git_handle
    return record
