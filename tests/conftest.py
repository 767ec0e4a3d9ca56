"""
Pytest configuration and shared fixtures.
"""

import copy
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient
from pymongo.errors import DuplicateKeyError

from bookstore.auth import TokenService, get_token_service
from bookstore.database import BookDatabaseService
from bookstore.main import app, get_book_service

TEST_SECRET = "test-secret-key"


def _lookup(document, path):
    value = document
    for part in path.split("."):
        if isinstance(value, list):
            index = int(part)
            if index >= len(value):
                return None
            value = value[index]
        elif isinstance(value, dict):
            if part not in value:
                return None
            value = value[part]
        else:
            return None
    return value


def _sort_documents(documents, spec):
    ordered = list(documents)
    for field, direction in reversed(spec):
        ordered.sort(
            key=lambda doc: (0, 0) if _lookup(doc, field) is None else (1, _lookup(doc, field)),
            reverse=direction == -1,
        )
    return ordered


def _text_matches(document, search):
    terms = [term.lower() for term in search.split()]
    if not terms:
        return False
    haystack = " ".join(
        [document.get("title", ""), document.get("description", "")]
        + list(document.get("authors", []))
    ).lower()
    return any(term in haystack for term in terms)


class FakeCursor:
    """Subset of the Motor cursor API used by the service layer."""

    def __init__(self, documents):
        self._documents = documents
        self._sort = []
        self._skip = 0
        self._limit = 0

    def sort(self, key_or_list, direction=None):
        if isinstance(key_or_list, str):
            self._sort = [(key_or_list, direction or 1)]
        else:
            self._sort = list(key_or_list)
        return self

    def skip(self, count):
        self._skip = count
        return self

    def limit(self, count):
        self._limit = count
        return self

    async def to_list(self, length=None):
        documents = _sort_documents(self._documents, self._sort)[self._skip:]
        if self._limit:
            documents = documents[:self._limit]
        if length:
            documents = documents[:length]
        return [copy.deepcopy(doc) for doc in documents]


class FakeCollection:
    """
    In-memory stand-in for an AsyncIOMotorCollection.

    Supports equality filters on ``_id``, ``$text`` search across the indexed
    fields, sort/skip/limit cursors and ``$sort``/``$limit`` pipelines. Set
    ``error`` to make every operation raise it.
    """

    def __init__(self, documents=None):
        self.documents = {doc["_id"]: copy.deepcopy(doc) for doc in documents or []}
        self.find_calls = []
        self.error = None
        self.database = SimpleNamespace(command=AsyncMock(return_value={"ok": 1}))

    def _check(self):
        if self.error is not None:
            raise self.error

    def _match(self, query):
        query = query or {}
        if "$text" in query:
            search = query["$text"]["$search"]
            return [doc for doc in self.documents.values() if _text_matches(doc, search)]
        return [
            doc for doc in self.documents.values()
            if all(doc.get(key) == value for key, value in query.items())
        ]

    def find(self, query=None, projection=None):
        self._check()
        self.find_calls.append(query)
        return FakeCursor(self._match(query))

    def aggregate(self, pipeline):
        self._check()
        cursor = FakeCursor(list(self.documents.values()))
        for stage in pipeline:
            if "$sort" in stage:
                cursor.sort(list(stage["$sort"].items()))
            elif "$limit" in stage:
                cursor.limit(stage["$limit"])
        return cursor

    async def find_one(self, query):
        self._check()
        matches = self._match(query)
        return copy.deepcopy(matches[0]) if matches else None

    async def insert_one(self, document):
        self._check()
        if document["_id"] in self.documents:
            raise DuplicateKeyError("E11000 duplicate key error")
        self.documents[document["_id"]] = copy.deepcopy(document)
        return SimpleNamespace(inserted_id=document["_id"], acknowledged=True)

    async def replace_one(self, query, replacement, upsert=False):
        self._check()
        matches = self._match(query)
        if matches:
            current = matches[0]
            modified = 0 if current == replacement else 1
            self.documents[current["_id"]] = copy.deepcopy(replacement)
            return SimpleNamespace(matched_count=1, modified_count=modified, upserted_id=None)
        if upsert:
            self.documents[replacement["_id"]] = copy.deepcopy(replacement)
            return SimpleNamespace(
                matched_count=0, modified_count=0, upserted_id=replacement["_id"]
            )
        return SimpleNamespace(matched_count=0, modified_count=0, upserted_id=None)

    async def delete_one(self, query):
        self._check()
        matches = self._match(query)
        if matches:
            del self.documents[matches[0]["_id"]]
            return SimpleNamespace(deleted_count=1)
        return SimpleNamespace(deleted_count=0)

    async def count_documents(self, query):
        self._check()
        return len(self._match(query))


@pytest.fixture
def sample_books():
    """Three stored books with sorted authors."""
    return [
        {
            "_id": 0,
            "title": "Dune",
            "authors": ["Frank Herbert"],
            "description": "Spice, sandworms and politics on Arrakis",
            "publicationYear": 1965,
        },
        {
            "_id": 1,
            "title": "Good Omens",
            "authors": ["Neil Gaiman", "Terry Pratchett"],
            "publicationYear": 1990,
        },
        {
            "_id": 2,
            "title": "Anathem",
            "authors": ["Neal Stephenson"],
            "description": "Monks of mathematics",
        },
    ]


@pytest.fixture
def fake_collection():
    """Empty in-memory books collection."""
    return FakeCollection()


@pytest.fixture
def collection_factory():
    """Build an in-memory collection from a list of documents."""
    return FakeCollection


@pytest.fixture
def seeded_collection(sample_books):
    return FakeCollection(sample_books)


@pytest.fixture
def token_service():
    return TokenService(secret_key=TEST_SECRET, algorithm="HS256", expires_hours=12)


@pytest.fixture
def auth_headers(token_service):
    """Authorization header carrying a valid raw token."""
    return {"Authorization": token_service.issue("admin")}


@pytest.fixture
def make_client(token_service):
    """Build a TestClient whose book service is backed by ``collection``."""
    def _make(collection):
        service = BookDatabaseService(collection)
        app.dependency_overrides[get_book_service] = lambda: service
        app.dependency_overrides[get_token_service] = lambda: token_service
        return TestClient(app)

    yield _make
    app.dependency_overrides.clear()
