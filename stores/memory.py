"""In-process stores, used for local runs without MongoDB and in tests.

Each store keeps model copies behind a lock so callers can never mutate stored
state by holding on to a returned object.
"""

import threading
import time
from typing import Dict, List, Optional

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
from stores.ids import check_id, new_id


class InMemorySessionStore(SessionStore):
    def __init__(self, ttl_seconds: int = 3600, clock=time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._sessions: Dict[str, tuple[float, ChatSession]] = {}

    async def get(self, session_id: str) -> Optional[ChatSession]:
        with self._lock:
            entry = self._sessions.get(session_id)
            if entry is None:
                return None
            expires_at, session = entry
            if self._clock() >= expires_at:
                del self._sessions[session_id]
                return None
            return session.model_copy(deep=True)

    async def save(self, session: ChatSession) -> None:
        with self._lock:
            self._sessions[session.session_id] = (
                self._clock() + self.ttl_seconds,
                session.model_copy(deep=True),
            )

    async def delete(self, session_id: str) -> None:
        with self._lock:
            self._sessions.pop(session_id, None)


class InMemoryUserStore(UserStore):
    def __init__(self):
        self._lock = threading.Lock()
        self._users: Dict[str, User] = {}

    def _match(self, phone: Optional[str], pan: Optional[str]) -> Optional[User]:
        for user in self._users.values():
            if (phone and user.phone == phone) or (pan and user.pan == pan):
                return user
        return None

    async def upsert_by_identity(self, user: User) -> User:
        with self._lock:
            existing = self._match(user.phone, user.pan)
            if existing is None:
                stored = user.model_copy(update={"id": new_id(), "updated_at": utcnow()})
            else:
                changes = user.model_dump(
                    exclude_none=True, exclude={"id", "created_at", "kyc_status"},
                )
                changes["updated_at"] = utcnow()
                stored = existing.model_copy(update=changes)
            self._users[stored.id] = stored
            return stored.model_copy()

    async def get(self, user_id: str) -> Optional[User]:
        check_id(user_id)
        with self._lock:
            user = self._users.get(user_id)
            return user.model_copy() if user else None

    async def find_by_identity(self, phone: Optional[str] = None, pan: Optional[str] = None) -> Optional[User]:
        if not phone and not pan:
            return None
        with self._lock:
            for user in self._users.values():
                if (not phone or user.phone == phone) and (not pan or user.pan == pan):
                    return user.model_copy()
        return None

    async def update_kyc(self, user_id: str, user_score: int, kyc_status: KycStatus) -> None:
        check_id(user_id)
        with self._lock:
            user = self._users.get(user_id)
            if user is not None:
                self._users[user_id] = user.model_copy(update={
                    "user_score": user_score,
                    "kyc_status": kyc_status,
                    "updated_at": utcnow(),
                })

    async def clear(self) -> None:
        with self._lock:
            self._users.clear()


class InMemoryLenderStore(LenderStore):
    def __init__(self):
        self._lock = threading.Lock()
        self._lenders: Dict[str, Lender] = {}

    async def insert(self, lender: Lender) -> Lender:
        stored = lender.model_copy(update={"id": new_id()})
        with self._lock:
            self._lenders[stored.id] = stored
        return stored.model_copy()

    async def get(self, lender_id: str) -> Optional[Lender]:
        check_id(lender_id)
        with self._lock:
            lender = self._lenders.get(lender_id)
            return lender.model_copy() if lender else None

    async def find_by_email(self, email: str) -> Optional[Lender]:
        with self._lock:
            for lender in self._lenders.values():
                if lender.email == email:
                    return lender.model_copy()
        return None

    async def list_active(self, loan_type: LoanType) -> List[Lender]:
        with self._lock:
            return [
                lender.model_copy() for lender in self._lenders.values()
                if lender.is_active and loan_type in lender.loan_types
            ]

    async def clear(self) -> None:
        with self._lock:
            self._lenders.clear()


class InMemoryDocumentStore(DocumentStore):
    def __init__(self):
        self._lock = threading.Lock()
        self._documents: List[KYCDocument] = []

    async def insert(self, document: KYCDocument) -> KYCDocument:
        stored = document.model_copy(update={"id": new_id()}, deep=True)
        with self._lock:
            self._documents.append(stored)
        return stored.model_copy(deep=True)

    async def list_for_user(self, user_id: str) -> List[KYCDocument]:
        with self._lock:
            docs = [d.model_copy(deep=True) for d in self._documents if d.user_id == user_id]
        return sorted(docs, key=lambda d: d.uploaded_at)

    async def clear(self) -> None:
        with self._lock:
            self._documents.clear()


class InMemoryReportStore(ReportStore):
    def __init__(self):
        self._lock = threading.Lock()
        self._reports: Dict[str, LoanReport] = {}

    async def insert(self, report: LoanReport) -> LoanReport:
        stored = report.model_copy(update={"id": new_id()}, deep=True)
        with self._lock:
            self._reports[stored.id] = stored
        return stored.model_copy(deep=True)

    async def get(self, report_id: str) -> Optional[LoanReport]:
        check_id(report_id)
        with self._lock:
            report = self._reports.get(report_id)
            return report.model_copy(deep=True) if report else None

    async def list_for_lender(self, lender_id: str) -> List[LoanReport]:
        with self._lock:
            reports = [r.model_copy(deep=True) for r in self._reports.values() if r.lender_id == lender_id]
        return sorted(reports, key=lambda r: r.created_at, reverse=True)

    async def clear(self) -> None:
        with self._lock:
            self._reports.clear()


class InMemoryApplicationStore(ApplicationStore):
    def __init__(self):
        self._lock = threading.Lock()
        self._applications: Dict[str, Application] = {}

    async def insert(self, application: Application) -> Application:
        stored = application.model_copy(update={"id": new_id()})
        with self._lock:
            self._applications[stored.id] = stored
        return stored.model_copy()

    def _list(self, **match) -> List[Application]:
        with self._lock:
            apps = [
                a.model_copy() for a in self._applications.values()
                if all(getattr(a, k) == v for k, v in match.items())
            ]
        return sorted(apps, key=lambda a: a.created_at, reverse=True)

    async def list_for_lender(self, lender_id: str) -> List[Application]:
        return self._list(lender_id=lender_id)

    async def list_for_user(self, user_id: str) -> List[Application]:
        return self._list(user_id=user_id)

    async def update_status(
        self, application_id: str, lender_id: str, status: ApplicationStatus, message: Optional[str] = None
    ) -> bool:
        check_id(application_id)
        with self._lock:
            app = self._applications.get(application_id)
            if app is None or app.lender_id != lender_id:
                return False
            changes = {"status": status, "updated_at": utcnow()}
            if message:
                changes["lender_message"] = message
            self._applications[application_id] = app.model_copy(update=changes)
            return True

    async def clear(self) -> None:
        with self._lock:
            self._applications.clear()


class InMemoryMessageStore(MessageStore):
    def __init__(self):
        self._lock = threading.Lock()
        self._messages: List[LenderMessage] = []

    async def append(self, message: LenderMessage) -> LenderMessage:
        stored = message.model_copy(update={"id": new_id()}, deep=True)
        with self._lock:
            self._messages.append(stored)
        return stored.model_copy(deep=True)

    async def list(self, user_id: Optional[str] = None, lender_id: Optional[str] = None) -> List[LenderMessage]:
        with self._lock:
            msgs = [
                m.model_copy(deep=True) for m in self._messages
                if (user_id is None or m.user_id == user_id)
                and (lender_id is None or m.lender_id == lender_id)
            ]
        return sorted(msgs, key=lambda m: m.created_at)
