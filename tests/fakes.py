"""
In-memory stand-ins for the parts of the Motor API the services use.

Each operation yields to the event loop once and then runs without awaiting,
so concurrent callers interleave between operations but every single
operation is atomic, like a single-document write in MongoDB.
"""
import asyncio
import copy
import uuid
from types import SimpleNamespace

from pymongo.errors import DuplicateKeyError, ServerSelectionTimeoutError

_MISSING = object()


def _matches(doc, filter):
    for key, condition in filter.items():
        value = doc.get(key, _MISSING)
        if isinstance(condition, dict) and condition and all(k.startswith("$") for k in condition):
            if value is _MISSING:
                return False
            for op, operand in condition.items():
                if op == "$lt" and not value < operand:
                    return False
                if op == "$gt" and not value > operand:
                    return False
                if op == "$in" and value not in operand:
                    return False
        elif condition is None:
            # Like MongoDB, null matches both null and missing fields
            if value is not _MISSING and value is not None:
                return False
        elif value is _MISSING or value != condition:
            return False
    return True


def _apply(doc, update, inserting=False):
    for key, value in update.get("$set", {}).items():
        doc[key] = value
    for key, amount in update.get("$inc", {}).items():
        doc[key] = doc.get(key, 0) + amount
    if inserting:
        for key, value in update.get("$setOnInsert", {}).items():
            doc[key] = value


class FakeCollection:
    def __init__(self, unique=()):
        self.docs = []
        self.unique = tuple(unique)

    def _check_unique(self, candidate, ignore=None):
        for field in self.unique:
            if candidate.get(field) is None:
                continue
            for doc in self.docs:
                if doc is not ignore and doc.get(field) == candidate[field]:
                    raise DuplicateKeyError(f"E11000 duplicate key error: {field}")

    def _find(self, filter):
        for doc in self.docs:
            if _matches(doc, filter):
                return doc
        return None

    def _upsert(self, filter, update):
        doc = {k: v for k, v in filter.items() if not isinstance(v, dict)}
        doc.setdefault("_id", uuid.uuid4().hex)
        _apply(doc, update, inserting=True)
        self._check_unique(doc)
        self.docs.append(doc)
        return doc

    async def create_index(self, *args, **kwargs):
        await asyncio.sleep(0)

    async def find_one(self, filter):
        await asyncio.sleep(0)
        doc = self._find(filter)
        return copy.deepcopy(doc) if doc else None

    async def insert_one(self, document):
        await asyncio.sleep(0)
        doc = copy.deepcopy(document)
        doc.setdefault("_id", uuid.uuid4().hex)
        self._check_unique(doc)
        self.docs.append(doc)
        return SimpleNamespace(inserted_id=doc["_id"])

    async def update_one(self, filter, update, upsert=False):
        await asyncio.sleep(0)
        doc = self._find(filter)
        if doc is None:
            if not upsert:
                return SimpleNamespace(matched_count=0, modified_count=0, upserted_id=None)
            created = self._upsert(filter, update)
            return SimpleNamespace(matched_count=0, modified_count=0, upserted_id=created["_id"])

        before = copy.deepcopy(doc)
        after = copy.deepcopy(doc)
        _apply(after, update)
        self._check_unique(after, ignore=doc)
        doc.clear()
        doc.update(after)
        return SimpleNamespace(matched_count=1, modified_count=int(before != after), upserted_id=None)

    async def find_one_and_update(self, filter, update, upsert=False, return_document=False):
        await asyncio.sleep(0)
        doc = self._find(filter)
        if doc is None:
            if not upsert:
                return None
            created = self._upsert(filter, update)
            return copy.deepcopy(created) if return_document else None

        before = copy.deepcopy(doc)
        _apply(doc, update)
        return copy.deepcopy(doc) if return_document else before

    async def delete_one(self, filter):
        await asyncio.sleep(0)
        doc = self._find(filter)
        if doc is None:
            return SimpleNamespace(deleted_count=0)
        self.docs.remove(doc)
        return SimpleNamespace(deleted_count=1)

    async def count_documents(self, filter):
        await asyncio.sleep(0)
        return sum(1 for doc in self.docs if _matches(doc, filter))


class FakeDatabase:
    UNIQUE = {
        "waitlist": ("email",),
        "subscriptions": ("user_id", "stripe_customer_id"),
    }

    def __init__(self):
        self.collections = {}

    def __getitem__(self, name):
        if name not in self.collections:
            self.collections[name] = FakeCollection(self.UNIQUE.get(name, ()))
        return self.collections[name]

    def __getattr__(self, name):
        if name.startswith("_"):
            raise AttributeError(name)
        return self[name]


class UnreachableCollection:
    """Every call fails with ``error``, by default the way Motor does when no server can be selected."""

    def __init__(self, error=None):
        self.error = error or ServerSelectionTimeoutError("No servers found yet")

    def __getattr__(self, name):
        async def fail(*args, **kwargs):
            raise self.error
        return fail


class UnreachableDatabase:
    def __init__(self, error=None):
        self.error = error

    def __getitem__(self, name):
        return UnreachableCollection(self.error)
