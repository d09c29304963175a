"""MongoDB-backed stores (pymongo async client).

Collections: chat_sessions, users, lenders, kyc_documents, loan_reports,
applications, lender_messages. All id conversion happens in _to_doc/_from_doc.
"""

import logging
from datetime import timedelta
from enum import Enum
from typing import Any, Dict, List, Optional, Type, TypeVar

from pymongo import ASCENDING, DESCENDING, AsyncMongoClient, ReturnDocument

from graph.state import ChatSession
from schemas import (
    Application,
    ApplicationStatus,
    KYCDocument,
    KycStatus,
    Lender,
    LenderMessage,
    LoanReport,
    LoanType,
    Record,
    User,
    utcnow,
)
from stores.base import (
    ApplicationStore,
    DocumentStore,
    LenderStore,
    MessageStore,
    ReportStore,
    SessionStore,
    UserStore,
)
from stores.ids import from_store_id, to_object_id, to_store_id

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=Record)

# Reference fields stored as ObjectIds when they look like one
REFERENCE_FIELDS = ("userId", "lenderId", "reportId")


def _plain(value: Any) -> Any:
    """Enums → values, recursively, so BSON can encode the document."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_plain(v) for v in value]
    return value


def _to_doc(record: Record) -> Dict[str, Any]:
    doc = _plain(record.model_dump(by_alias=True, exclude={"id"}))
    for field in REFERENCE_FIELDS:
        if field in doc:
            doc[field] = to_store_id(doc[field])
    return doc


def _from_doc(model: Type[R], doc: Optional[Dict[str, Any]]) -> Optional[R]:
    if doc is None:
        return None
    doc = dict(doc)
    doc["id"] = str(doc.pop("_id"))
    for field in REFERENCE_FIELDS:
        if field in doc:
            doc[field] = from_store_id(doc[field])
    return model.model_validate(doc)


def _ref(value: str) -> Any:
    return to_store_id(value)


class MongoSessionStore(SessionStore):
    def __init__(self, db, ttl_seconds: int = 3600):
        self.collection = db["chat_sessions"]
        self.ttl_seconds = ttl_seconds

    async def ensure_indexes(self) -> None:
        await self.collection.create_index("expiresAt", expireAfterSeconds=0)

    async def get(self, session_id: str) -> Optional[ChatSession]:
        doc = await self.collection.find_one({"_id": session_id, "expiresAt": {"$gt": utcnow()}})
        if doc is None:
            return None
        return ChatSession.model_validate(doc["session"])

    async def save(self, session: ChatSession) -> None:
        await self.collection.replace_one(
            {"_id": session.session_id},
            {
                "session": session.to_json(),
                "expiresAt": utcnow() + timedelta(seconds=self.ttl_seconds),
            },
            upsert=True,
        )

    async def delete(self, session_id: str) -> None:
        await self.collection.delete_one({"_id": session_id})


class MongoUserStore(UserStore):
    def __init__(self, db):
        self.collection = db["users"]

    async def ensure_indexes(self) -> None:
        await self.collection.create_index("phone", sparse=True)
        await self.collection.create_index("pan", sparse=True)

    async def upsert_by_identity(self, user: User) -> User:
        identity = [{k: v} for k, v in (("phone", user.phone), ("pan", user.pan)) if v]
        if not identity:
            raise ValueError("upsert_by_identity needs a phone or a PAN")

        fields = _plain(user.model_dump(
            by_alias=True, exclude_none=True, exclude={"id", "created_at", "kyc_status"},
        ))
        fields["updatedAt"] = utcnow()
        doc = await self.collection.find_one_and_update(
            {"$or": identity},
            {
                "$set": fields,
                "$setOnInsert": {"createdAt": user.created_at, "kycStatus": user.kyc_status},
            },
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        return _from_doc(User, doc)

    async def get(self, user_id: str) -> Optional[User]:
        return _from_doc(User, await self.collection.find_one({"_id": to_object_id(user_id)}))

    async def find_by_identity(self, phone: Optional[str] = None, pan: Optional[str] = None) -> Optional[User]:
        query = {k: v for k, v in (("phone", phone), ("pan", pan)) if v}
        if not query:
            return None
        return _from_doc(User, await self.collection.find_one(query))

    async def update_kyc(self, user_id: str, user_score: int, kyc_status: KycStatus) -> None:
        await self.collection.update_one(
            {"_id": to_object_id(user_id)},
            {"$set": {"userScore": user_score, "kycStatus": kyc_status, "updatedAt": utcnow()}},
        )

    async def clear(self) -> None:
        await self.collection.delete_many({})


class MongoLenderStore(LenderStore):
    def __init__(self, db):
        self.collection = db["lenders"]

    async def ensure_indexes(self) -> None:
        await self.collection.create_index("email", unique=True)

    async def insert(self, lender: Lender) -> Lender:
        result = await self.collection.insert_one(_to_doc(lender))
        return lender.model_copy(update={"id": str(result.inserted_id)})

    async def get(self, lender_id: str) -> Optional[Lender]:
        return _from_doc(Lender, await self.collection.find_one({"_id": to_object_id(lender_id)}))

    async def find_by_email(self, email: str) -> Optional[Lender]:
        return _from_doc(Lender, await self.collection.find_one({"email": email}))

    async def list_active(self, loan_type: LoanType) -> List[Lender]:
        cursor = self.collection.find({"isActive": True, "loanTypes": loan_type.value})
        return [_from_doc(Lender, doc) async for doc in cursor]

    async def clear(self) -> None:
        await self.collection.delete_many({})


class MongoDocumentStore(DocumentStore):
    def __init__(self, db):
        self.collection = db["kyc_documents"]

    async def insert(self, document: KYCDocument) -> KYCDocument:
        result = await self.collection.insert_one(_to_doc(document))
        return document.model_copy(update={"id": str(result.inserted_id)})

    async def list_for_user(self, user_id: str) -> List[KYCDocument]:
        cursor = self.collection.find({"userId": _ref(user_id)}).sort("uploadedAt", ASCENDING)
        return [_from_doc(KYCDocument, doc) async for doc in cursor]

    async def clear(self) -> None:
        await self.collection.delete_many({})


class MongoReportStore(ReportStore):
    def __init__(self, db):
        self.collection = db["loan_reports"]

    async def insert(self, report: LoanReport) -> LoanReport:
        result = await self.collection.insert_one(_to_doc(report))
        return report.model_copy(update={"id": str(result.inserted_id)})

    async def get(self, report_id: str) -> Optional[LoanReport]:
        return _from_doc(LoanReport, await self.collection.find_one({"_id": to_object_id(report_id)}))

    async def list_for_lender(self, lender_id: str) -> List[LoanReport]:
        cursor = self.collection.find({"lenderId": _ref(lender_id)}).sort("createdAt", DESCENDING)
        return [_from_doc(LoanReport, doc) async for doc in cursor]

    async def clear(self) -> None:
        await self.collection.delete_many({})


class MongoApplicationStore(ApplicationStore):
    def __init__(self, db):
        self.collection = db["applications"]

    async def insert(self, application: Application) -> Application:
        result = await self.collection.insert_one(_to_doc(application))
        return application.model_copy(update={"id": str(result.inserted_id)})

    async def _list(self, query: Dict[str, Any]) -> List[Application]:
        cursor = self.collection.find(query).sort("createdAt", DESCENDING)
        return [_from_doc(Application, doc) async for doc in cursor]

    async def list_for_lender(self, lender_id: str) -> List[Application]:
        return await self._list({"lenderId": _ref(lender_id)})

    async def list_for_user(self, user_id: str) -> List[Application]:
        return await self._list({"userId": _ref(user_id)})

    async def update_status(
        self, application_id: str, lender_id: str, status: ApplicationStatus, message: Optional[str] = None
    ) -> bool:
        changes: Dict[str, Any] = {"status": status, "updatedAt": utcnow()}
        if message:
            changes["lenderMessage"] = message
        result = await self.collection.update_one(
            {"_id": to_object_id(application_id), "lenderId": _ref(lender_id)},
            {"$set": changes},
        )
        return result.matched_count > 0

    async def clear(self) -> None:
        await self.collection.delete_many({})


class MongoMessageStore(MessageStore):
    def __init__(self, db):
        self.collection = db["lender_messages"]

    async def append(self, message: LenderMessage) -> LenderMessage:
        result = await self.collection.insert_one(_to_doc(message))
        return message.model_copy(update={"id": str(result.inserted_id)})

    async def list(self, user_id: Optional[str] = None, lender_id: Optional[str] = None) -> List[LenderMessage]:
        query: Dict[str, Any] = {}
        if user_id:
            query["userId"] = _ref(user_id)
        if lender_id:
            query["lenderId"] = _ref(lender_id)
        cursor = self.collection.find(query).sort("createdAt", ASCENDING)
        return [_from_doc(LenderMessage, doc) async for doc in cursor]


def connect(url: str, database: str):
    """Open the async client; returns (client, db)."""
    client = AsyncMongoClient(url, tz_aware=True)
    logger.info("Connected to MongoDB database %s", database)
    return client, client[database]
