"""Service wiring: stores, extraction port, credit bureau and chat engine in one place."""

import logging
from dataclasses import dataclass
from typing import Any, Optional

from config import (
    CREDIT_LOOKUP_DELAY,
    DATABASE_NAME,
    MONGODB_URL,
    PROVISIONAL_USER_SCORE,
    SESSION_TTL_SECONDS,
)
from extraction.factory import build_extractor
from extraction.port import ExtractionPort
from graph.chat_nodes import ChatDeps
from graph.engine import ChatEngine
from lending.credit import MockCreditBureau
from lending.matching import LenderMatcher
from stores import memory, mongo
from stores.base import (
    ApplicationStore,
    DocumentStore,
    LenderStore,
    MessageStore,
    ReportStore,
    SessionStore,
    UserStore,
)

logger = logging.getLogger(__name__)


@dataclass
class Services:
    sessions: SessionStore
    users: UserStore
    lenders: LenderStore
    documents: DocumentStore
    reports: ReportStore
    applications: ApplicationStore
    messages: MessageStore
    extractor: ExtractionPort
    credit_bureau: MockCreditBureau
    matcher: LenderMatcher
    engine: ChatEngine
    client: Optional[Any] = None        # Mongo client, closed on shutdown

    async def close(self) -> None:
        if self.client is not None:
            await self.client.close()


def _assemble(
    *,
    sessions: SessionStore,
    users: UserStore,
    lenders: LenderStore,
    documents: DocumentStore,
    reports: ReportStore,
    applications: ApplicationStore,
    messages: MessageStore,
    extractor: ExtractionPort,
    credit_delay: float,
    client: Optional[Any] = None,
) -> Services:
    bureau = MockCreditBureau(delay=credit_delay)
    matcher = LenderMatcher(lenders)
    engine = ChatEngine(ChatDeps(
        extractor=extractor,
        users=users,
        matcher=matcher,
        credit_bureau=bureau,
        provisional_score=PROVISIONAL_USER_SCORE,
    ))
    return Services(
        sessions=sessions,
        users=users,
        lenders=lenders,
        documents=documents,
        reports=reports,
        applications=applications,
        messages=messages,
        extractor=extractor,
        credit_bureau=bureau,
        matcher=matcher,
        engine=engine,
        client=client,
    )


def build_memory_services(
    extractor: Optional[ExtractionPort] = None,
    credit_delay: float = CREDIT_LOOKUP_DELAY,
    session_ttl: int = SESSION_TTL_SECONDS,
) -> Services:
    """Process-local stores; used for development and tests."""
    return _assemble(
        sessions=memory.InMemorySessionStore(ttl_seconds=session_ttl),
        users=memory.InMemoryUserStore(),
        lenders=memory.InMemoryLenderStore(),
        documents=memory.InMemoryDocumentStore(),
        reports=memory.InMemoryReportStore(),
        applications=memory.InMemoryApplicationStore(),
        messages=memory.InMemoryMessageStore(),
        extractor=extractor if extractor is not None else build_extractor(),
        credit_delay=credit_delay,
    )


async def build_mongo_services(
    url: str = MONGODB_URL,
    database: str = DATABASE_NAME,
    extractor: Optional[ExtractionPort] = None,
) -> Services:
    client, db = mongo.connect(url, database)
    sessions = mongo.MongoSessionStore(db, ttl_seconds=SESSION_TTL_SECONDS)
    users = mongo.MongoUserStore(db)
    lenders = mongo.MongoLenderStore(db)
    for store in (sessions, users, lenders):
        await store.ensure_indexes()

    return _assemble(
        sessions=sessions,
        users=users,
        lenders=lenders,
        documents=mongo.MongoDocumentStore(db),
        reports=mongo.MongoReportStore(db),
        applications=mongo.MongoApplicationStore(db),
        messages=mongo.MongoMessageStore(db),
        extractor=extractor if extractor is not None else build_extractor(),
        credit_delay=CREDIT_LOOKUP_DELAY,
        client=client,
    )


async def build_services() -> Services:
    """MongoDB when MONGODB_URL is set, in-memory otherwise."""
    if MONGODB_URL:
        return await build_mongo_services()
    logger.warning("MONGODB_URL not set, using in-memory stores (data is lost on restart)")
    return build_memory_services()
