"""
In-memory stand-ins for Firestore, Firebase Auth and FCM used by the test suite.

FakeFirestore implements only the slice of the google-cloud-firestore client
API that FirestoreRepository touches: collection/document refs, FieldFilter
queries, order_by/limit, ArrayUnion updates and write batches.
"""

import copy
import itertools
from types import SimpleNamespace
from typing import Dict, List, Optional

from firebase_admin import firestore, messaging
from google.api_core import exceptions as google_exceptions

from sentinel.core.exceptions import AuthenticationError, ConflictError
from sentinel.models.user import AuthenticatedUser


def _apply_transforms(current: dict, changes: dict) -> dict:
    result = dict(current)
    for key, value in changes.items():
        if isinstance(value, firestore.ArrayUnion):
            existing = list(result.get(key) or [])
            for item in value.values:
                if item not in existing:
                    existing.append(item)
            result[key] = existing
        else:
            result[key] = copy.deepcopy(value)
    return result


def _matches(data: dict, field: str, op: str, value) -> bool:
    current = data.get(field)
    if op == "==":
        return current == value
    if op == "array_contains":
        return value in (current or [])
    if op == "in":
        return current in value
    if current is None:
        return False
    if op == "<":
        return current < value
    if op == ">":
        return current > value
    if op == "<=":
        return current <= value
    if op == ">=":
        return current >= value
    raise ValueError(f"Unsupported operator in fake: {op}")


class FakeSnapshot:
    def __init__(self, reference: "FakeDocumentRef", data: Optional[dict]):
        self.reference = reference
        self.id = reference.id
        self._data = data

    @property
    def exists(self) -> bool:
        return self._data is not None

    def to_dict(self) -> Optional[dict]:
        return copy.deepcopy(self._data) if self._data is not None else None


class FakeDocumentRef:
    def __init__(self, db: "FakeFirestore", collection: str, doc_id: str):
        self._db = db
        self._collection = collection
        self.id = doc_id

    @property
    def _docs(self) -> Dict[str, dict]:
        return self._db.data.setdefault(self._collection, {})

    def get(self) -> FakeSnapshot:
        self._db.check("get")
        return FakeSnapshot(self, self._docs.get(self.id))

    def set(self, data: dict) -> None:
        self._db.check("set")
        self._docs[self.id] = copy.deepcopy(data)

    def update(self, changes: dict) -> None:
        self._db.check("update")
        if self.id not in self._docs:
            raise google_exceptions.NotFound(f"No document to update: {self._collection}/{self.id}")
        self._docs[self.id] = _apply_transforms(self._docs[self.id], changes)

    def delete(self) -> None:
        self._db.check("delete")
        self._docs.pop(self.id, None)


class FakeQuery:
    def __init__(self, db: "FakeFirestore", collection: str, filters=(), order=None, limit_count=None):
        self._db = db
        self._collection = collection
        self._filters = list(filters)
        self._order = order
        self._limit = limit_count

    def where(self, filter=None):
        return FakeQuery(
            self._db, self._collection,
            self._filters + [(filter.field_path, filter.op_string, filter.value)],
            self._order, self._limit,
        )

    def order_by(self, field_path: str, direction: str = "ASCENDING"):
        return FakeQuery(self._db, self._collection, self._filters, (field_path, direction), self._limit)

    def limit(self, count: int):
        return FakeQuery(self._db, self._collection, self._filters, self._order, count)

    def stream(self):
        self._db.check("stream")
        self._db.queries.append((self._collection, list(self._filters)))

        docs = self._db.data.get(self._collection, {})
        matched = [
            (doc_id, data) for doc_id, data in docs.items()
            if all(_matches(data, field, op, value) for field, op, value in self._filters)
        ]
        if self._order is not None:
            field, direction = self._order
            matched = [item for item in matched if item[1].get(field) is not None]
            matched.sort(key=lambda item: item[1][field], reverse=direction == firestore.Query.DESCENDING)
        if self._limit is not None:
            matched = matched[:self._limit]

        for doc_id, data in matched:
            yield FakeSnapshot(FakeDocumentRef(self._db, self._collection, doc_id), data)


class FakeCollection(FakeQuery):
    def __init__(self, db: "FakeFirestore", name: str):
        super().__init__(db, name)
        self.id = name

    def document(self, doc_id: Optional[str] = None) -> FakeDocumentRef:
        if doc_id is None:
            doc_id = f"{self._collection}-{next(self._db.ids)}"
        return FakeDocumentRef(self._db, self._collection, doc_id)


class FakeBatch:
    def __init__(self, db: "FakeFirestore"):
        self._db = db
        self._ops = []

    def set(self, ref: FakeDocumentRef, data: dict) -> None:
        self._ops.append(("set", ref, data))

    def update(self, ref: FakeDocumentRef, changes: dict) -> None:
        self._ops.append(("update", ref, changes))

    def delete(self, ref: FakeDocumentRef) -> None:
        self._ops.append(("delete", ref, None))

    def commit(self) -> None:
        self._db.check("commit")
        # Validate first so a failing batch leaves nothing behind
        for op, ref, _ in self._ops:
            if op == "update" and ref.id not in ref._docs:
                raise google_exceptions.NotFound(f"No document to update: {ref._collection}/{ref.id}")
        for op, ref, data in self._ops:
            if op == "set":
                ref._docs[ref.id] = copy.deepcopy(data)
            elif op == "update":
                ref._docs[ref.id] = _apply_transforms(ref._docs[ref.id], data)
            else:
                ref._docs.pop(ref.id, None)
        self._db.commits += 1


class FakeFirestore:
    """
    Dict-backed Firestore client. Operations listed in `failing` raise
    RuntimeError to simulate transport faults.
    """

    def __init__(self):
        self.data: Dict[str, Dict[str, dict]] = {}
        self.queries: List = []
        self.failing = set()
        self.commits = 0
        self.ids = itertools.count(1)

    def check(self, operation: str) -> None:
        if operation in self.failing:
            raise RuntimeError(f"simulated Firestore failure on {operation}")

    def collection(self, name: str) -> FakeCollection:
        return FakeCollection(self, name)

    def batch(self) -> FakeBatch:
        return FakeBatch(self)

    def collections(self) -> List[FakeCollection]:
        self.check("collections")
        return [FakeCollection(self, name) for name in self.data]

    def docs(self, collection: str) -> Dict[str, dict]:
        return self.data.get(collection, {})


class FakeIdentityService:
    """Firebase Auth double. ID tokens have the form "token-<uid>"."""

    can_verify_passwords = True

    def __init__(self):
        self.accounts: Dict[str, dict] = {}
        self.deleted: List[str] = []
        self.calls: List[str] = []
        self._ids = itertools.count(1)

    def add_account(self, email: str, password: str = "secret123", uid: Optional[str] = None) -> str:
        uid = uid or f"uid-{next(self._ids)}"
        self.accounts[email] = {"uid": uid, "password": password}
        return uid

    def verify_token(self, id_token: str) -> AuthenticatedUser:
        if not id_token.startswith("token-"):
            raise AuthenticationError("Invalid or expired token")
        uid = id_token[len("token-"):]
        email = next((email for email, acc in self.accounts.items() if acc["uid"] == uid), None)
        return AuthenticatedUser(uid=uid, email=email)

    def lookup_by_email(self, email: str) -> Optional[str]:
        self.calls.append("lookup_by_email")
        account = self.accounts.get(email)
        return account["uid"] if account else None

    def create_account(self, email: str, password: str) -> str:
        self.calls.append("create_account")
        if email in self.accounts:
            raise ConflictError("User with this email already exists")
        return self.add_account(email, password)

    def delete_account(self, uid: str) -> None:
        self.calls.append("delete_account")
        self.deleted.append(uid)
        for email, account in list(self.accounts.items()):
            if account["uid"] == uid:
                del self.accounts[email]

    def verify_credentials(self, email: str, password: str) -> Dict[str, str]:
        self.calls.append("verify_credentials")
        account = self.accounts.get(email)
        if account is None or account["password"] != password:
            raise AuthenticationError("Invalid email or password")
        return {"uid": account["uid"], "id_token": f"token-{account['uid']}"}


class FakeSender:
    """
    Stands in for messaging.send_each_for_multicast. Tokens listed in
    `failures` fail with the mapped exception; every other token succeeds.
    """

    def __init__(self, failures: Optional[Dict[str, Exception]] = None, error: Optional[Exception] = None):
        self.failures = failures or {}
        self.error = error
        self.messages: List[messaging.MulticastMessage] = []

    def __call__(self, message: messaging.MulticastMessage):
        self.messages.append(message)
        if self.error is not None:
            raise self.error

        responses = []
        for token in message.tokens:
            exception = self.failures.get(token)
            responses.append(SimpleNamespace(success=exception is None, exception=exception))
        success_count = sum(1 for r in responses if r.success)
        return SimpleNamespace(
            success_count=success_count,
            failure_count=len(responses) - success_count,
            responses=responses,
        )

    @property
    def tokens(self) -> List[str]:
        return [token for message in self.messages for token in message.tokens]


class ImmediateExecutor:
    """Runs submitted work inline so background cleanup is observable in tests."""

    def __init__(self):
        self.submitted = 0

    def submit(self, fn, *args, **kwargs):
        self.submitted += 1
        fn(*args, **kwargs)


def unregistered_error() -> messaging.UnregisteredError:
    return messaging.UnregisteredError("Requested entity was not found.")


def auth_headers(user_id: str) -> dict:
    return {"Authorization": f"Bearer token-{user_id}"}
