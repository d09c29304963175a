from lending.matching import BUILTIN_OFFERS, LenderMatcher, match_offers
from schemas import Lender, LoanOffer, LoanType, OfferTerms
from stores.memory import InMemoryLenderStore


def offer(lender_id, rate, discount=0.5, min_score=50, loan_type=LoanType.PERSONAL):
    return LoanOffer(
        lender_id=lender_id, lender_name=lender_id.upper(), loan_type=loan_type,
        interest_rate=rate, tenure_options=[12, 24], max_amount=1_000_000,
        platform_discount=discount, eligibility_score=min_score,
    )


def test_filters_by_type_and_score():
    catalog = [
        offer("a", 10, min_score=80),
        offer("b", 11, min_score=60),
        offer("c", 9, loan_type=LoanType.HOME),
    ]
    assert [o.lender_id for o in match_offers(LoanType.PERSONAL, 70, "B", catalog)] == ["b"]


def test_eligibility_score_is_inclusive():
    assert match_offers(LoanType.PERSONAL, 60, "B", [offer("a", 10, min_score=60)])


def test_sorted_by_rate_then_larger_discount():
    catalog = [offer("a", 11), offer("b", 10, discount=0.25), offer("c", 10, discount=1.0)]
    assert [o.lender_id for o in match_offers(LoanType.PERSONAL, 70, "B", catalog)] == ["c", "b", "a"]


def test_builtin_catalog_for_personal():
    names = [o.lender_name for o in match_offers(LoanType.PERSONAL, 70, "B", BUILTIN_OFFERS)]
    assert names == ["HDFC Bank", "Axis Bank", "ICICI Bank"]


def test_builtin_catalog_has_nothing_for_gold():
    assert match_offers(LoanType.GOLD, 100, "A+", BUILTIN_OFFERS) == []


async def test_matcher_prefers_store_lenders():
    store = InMemoryLenderStore()
    await store.insert(Lender(
        name="Kotak", email="k@kotak.com", password_hash="x", company_name="Kotak Mahindra",
        registration_number="K1", loan_types=[LoanType.PERSONAL],
        terms=OfferTerms(interest_rate=9.9, eligibility_score=40),
    ))
    offers = await LenderMatcher(store).match(LoanType.PERSONAL, 70, "B")
    assert [o.lender_name for o in offers] == ["Kotak Mahindra"]
    assert offers[0].interest_rate == 9.9


async def test_matcher_skips_inactive_lenders():
    store = InMemoryLenderStore()
    await store.insert(Lender(
        name="Dormant", email="d@d.com", password_hash="x", company_name="Dormant Finance",
        registration_number="D1", loan_types=[LoanType.PERSONAL], is_active=False,
    ))
    offers = await LenderMatcher(store).match(LoanType.PERSONAL, 70, "B")
    assert "Dormant Finance" not in [o.lender_name for o in offers]


async def test_matcher_falls_back_when_store_is_empty():
    offers = await LenderMatcher(InMemoryLenderStore()).match(LoanType.HOME, 70, "B")
    assert [o.lender_id for o in offers] == ["lender4"]


async def test_matcher_falls_back_when_store_fails():
    class BrokenStore:
        async def list_active(self, loan_type):
            raise ConnectionError("mongo unreachable")

    offers = await LenderMatcher(BrokenStore()).match(LoanType.VEHICLE, 70, "B")
    assert [o.lender_name for o in offers] == ["Bajaj Finserv"]
