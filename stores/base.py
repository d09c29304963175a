"""Store interfaces.

Every method takes and returns schema models with string ids. Writes are
whole-record inserts/upserts keyed by a single id; nothing spans collections.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

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
)


class SessionStore(ABC):
    """Ephemeral chat sessions with expiry. Last write wins; there is no version check."""

    @abstractmethod
    async def get(self, session_id: str) -> Optional[ChatSession]: ...

    @abstractmethod
    async def save(self, session: ChatSession) -> None: ...

    @abstractmethod
    async def delete(self, session_id: str) -> None: ...


class UserStore(ABC):
    @abstractmethod
    async def upsert_by_identity(self, user: User) -> User:
        """Insert, or update the user matching ``user.phone`` OR ``user.pan``.

        Only identifiers that are set take part in the match, and unset fields
        never overwrite stored ones.
        """

    @abstractmethod
    async def get(self, user_id: str) -> Optional[User]: ...

    @abstractmethod
    async def find_by_identity(self, phone: Optional[str] = None, pan: Optional[str] = None) -> Optional[User]: ...

    @abstractmethod
    async def update_kyc(self, user_id: str, user_score: int, kyc_status: KycStatus) -> None: ...

    @abstractmethod
    async def clear(self) -> None: ...


class LenderStore(ABC):
    @abstractmethod
    async def insert(self, lender: Lender) -> Lender: ...

    @abstractmethod
    async def get(self, lender_id: str) -> Optional[Lender]: ...

    @abstractmethod
    async def find_by_email(self, email: str) -> Optional[Lender]: ...

    @abstractmethod
    async def list_active(self, loan_type: LoanType) -> List[Lender]: ...

    @abstractmethod
    async def clear(self) -> None: ...


class DocumentStore(ABC):
    @abstractmethod
    async def insert(self, document: KYCDocument) -> KYCDocument: ...

    @abstractmethod
    async def list_for_user(self, user_id: str) -> List[KYCDocument]:
        """All documents for the user, oldest first."""

    @abstractmethod
    async def clear(self) -> None: ...


class ReportStore(ABC):
    @abstractmethod
    async def insert(self, report: LoanReport) -> LoanReport: ...

    @abstractmethod
    async def get(self, report_id: str) -> Optional[LoanReport]: ...

    @abstractmethod
    async def list_for_lender(self, lender_id: str) -> List[LoanReport]:
        """Newest first."""

    @abstractmethod
    async def clear(self) -> None: ...


class ApplicationStore(ABC):
    @abstractmethod
    async def insert(self, application: Application) -> Application: ...

    @abstractmethod
    async def list_for_lender(self, lender_id: str) -> List[Application]:
        """Newest first."""

    @abstractmethod
    async def list_for_user(self, user_id: str) -> List[Application]:
        """Newest first."""

    @abstractmethod
    async def update_status(
        self, application_id: str, lender_id: str, status: ApplicationStatus, message: Optional[str] = None
    ) -> bool:
        """Set status (and lender message) if the application belongs to ``lender_id``."""

    @abstractmethod
    async def clear(self) -> None: ...


class MessageStore(ABC):
    """Append-only lender ↔ user message log."""

    @abstractmethod
    async def append(self, message: LenderMessage) -> LenderMessage: ...

    @abstractmethod
    async def list(self, user_id: Optional[str] = None, lender_id: Optional[str] = None) -> List[LenderMessage]:
        """Chronological messages, filtered by whichever ids are given."""
