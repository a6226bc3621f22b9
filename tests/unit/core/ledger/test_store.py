"""
LedgerStore 테스트

조건부 UPDATE/DELETE, 활성 이름 유일성, 이름 조인 확인.
"""

import uuid
from datetime import timedelta
from decimal import Decimal

import pytest

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.constants import UNKNOWN_NAME
from core.domain.models import Customer, Transaction
from core.errors import DuplicateCustomerError, ValidationError
from core.ledger.store import LedgerStore, TransactionFilter
from core.ledger.types import TransactionStatus, TransactionType
from core.utils.timezone import now_utc


def make_customer(name: str = "Ada", created_by: str = "u-staff") -> Customer:
    return Customer(
        id=str(uuid.uuid4()),
        name=name,
        email=None,
        phone=None,
        address=None,
        is_active=True,
        created_by=created_by,
        created_at=now_utc(),
    )


def make_transaction(
    customer_id: str,
    type: TransactionType = TransactionType.DEBIT,
    amount: str = "100.00",
    description: str = "Groceries",
    created_by: str = "u-staff",
    offset_seconds: int = 0,
) -> Transaction:
    now = now_utc() + timedelta(seconds=offset_seconds)
    return Transaction(
        id=str(uuid.uuid4()),
        customer_id=customer_id,
        type=type,
        amount=Decimal(amount),
        description=description,
        status=TransactionStatus.PENDING,
        payment_method=None,
        notes=None,
        rejection_reason=None,
        created_by=created_by,
        created_at=now,
        approved_by=None,
        approved_at=None,
        updated_at=now,
    )


@pytest.fixture
def store(db: SQLiteAdapter) -> LedgerStore:
    return LedgerStore(db)


async def _add_customer(db: SQLiteAdapter, store: LedgerStore, name: str = "Ada") -> Customer:
    customer = make_customer(name)
    async with db.transaction() as conn:
        await store.insert_customer(conn, customer)
    return customer


async def _add_transaction(db: SQLiteAdapter, store: LedgerStore, txn: Transaction) -> None:
    async with db.transaction() as conn:
        await store.insert_transaction(conn, txn)


class TestCustomers:
    """고객 저장/조회 테스트"""

    @pytest.mark.asyncio
    async def test_insert_and_get(self, db: SQLiteAdapter, store: LedgerStore) -> None:
        customer = await _add_customer(db, store)

        loaded = await store.get_customer(customer.id)

        assert loaded is not None
        assert loaded.name == "Ada"
        assert loaded.is_active is True

    @pytest.mark.asyncio
    async def test_get_missing(self, store: LedgerStore) -> None:
        assert await store.get_customer("missing") is None

    @pytest.mark.asyncio
    async def test_duplicate_active_name_case_insensitive(
        self, db: SQLiteAdapter, store: LedgerStore
    ) -> None:
        await _add_customer(db, store, "Bob")

        with pytest.raises(DuplicateCustomerError):
            await _add_customer(db, store, "bob")

    @pytest.mark.asyncio
    async def test_name_reusable_after_deactivation(
        self, db: SQLiteAdapter, store: LedgerStore
    ) -> None:
        bob = await _add_customer(db, store, "Bob")
        async with db.transaction() as conn:
            assert await store.deactivate_customer(conn, bob.id, now_utc()) is True

        second = await _add_customer(db, store, "Bob")

        stored = await store.get_customer(second.id)
        assert stored is not None and stored.is_active is True
        old = await store.get_customer(bob.id)
        assert old is not None and old.is_active is False

    @pytest.mark.asyncio
    async def test_deactivate_twice(self, db: SQLiteAdapter, store: LedgerStore) -> None:
        customer = await _add_customer(db, store)
        async with db.transaction() as conn:
            assert await store.deactivate_customer(conn, customer.id, now_utc()) is True
            assert await store.deactivate_customer(conn, customer.id, now_utc()) is False

    @pytest.mark.asyncio
    async def test_summary_counts(self, db: SQLiteAdapter, store: LedgerStore) -> None:
        customer = await _add_customer(db, store)
        await _add_transaction(db, store, make_transaction(customer.id))
        await _add_transaction(db, store, make_transaction(customer.id, offset_seconds=1))

        summary = await store.get_customer_summary(customer.id)

        assert summary is not None
        assert summary.current_balance == Decimal("0.00")
        assert summary.total_transactions == 2
        assert summary.pending_transactions == 2
        assert summary.last_transaction_date is not None
        assert summary.balance_label == "Settled"

    @pytest.mark.asyncio
    async def test_list_search_and_inactive(self, db: SQLiteAdapter, store: LedgerStore) -> None:
        await _add_customer(db, store, "Ada")
        carl = await _add_customer(db, store, "Carl")
        async with db.transaction() as conn:
            await store.deactivate_customer(conn, carl.id, now_utc())

        active = await store.list_customer_summaries()
        everyone = await store.list_customer_summaries(include_inactive=True)
        searched = await store.list_customer_summaries(search="AD")

        assert [s.customer.name for s in active] == ["Ada"]
        assert [s.customer.name for s in everyone] == ["Ada", "Carl"]
        assert [s.customer.name for s in searched] == ["Ada"]

    @pytest.mark.asyncio
    async def test_search_escapes_wildcards(self, db: SQLiteAdapter, store: LedgerStore) -> None:
        await _add_customer(db, store, "Ada")

        assert await store.list_customer_summaries(search="%") == []


class TestTransactions:
    """거래 저장/조회 테스트"""

    @pytest.mark.asyncio
    async def test_insert_and_get_with_names(
        self, db: SQLiteAdapter, store: LedgerStore, directory
    ) -> None:
        customer = await _add_customer(db, store)
        txn = make_transaction(customer.id)
        await _add_transaction(db, store, txn)

        loaded = await store.get_transaction(txn.id)

        assert loaded is not None
        assert loaded.amount == Decimal("100.00")
        assert loaded.status == TransactionStatus.PENDING
        assert loaded.customer_name == "Ada"
        assert loaded.created_by_name == "Sam Staff"
        assert loaded.approved_by_name is None

    @pytest.mark.asyncio
    async def test_unknown_creator_name(self, db: SQLiteAdapter, store: LedgerStore) -> None:
        """디렉토리에 없는 사용자는 Unknown"""
        customer = await _add_customer(db, store)
        txn = make_transaction(customer.id, created_by="u-ghost")
        await _add_transaction(db, store, txn)

        loaded = await store.get_transaction(txn.id)

        assert loaded is not None
        assert loaded.created_by_name == UNKNOWN_NAME

    @pytest.mark.asyncio
    async def test_insert_for_unknown_customer(
        self, db: SQLiteAdapter, store: LedgerStore
    ) -> None:
        with pytest.raises(ValidationError, match="Unknown customer"):
            await _add_transaction(db, store, make_transaction("missing"))

    @pytest.mark.asyncio
    async def test_insert_for_inactive_customer(
        self, db: SQLiteAdapter, store: LedgerStore
    ) -> None:
        customer = await _add_customer(db, store)
        async with db.transaction() as conn:
            await store.deactivate_customer(conn, customer.id, now_utc())

        with pytest.raises(ValidationError, match="inactive"):
            await _add_transaction(db, store, make_transaction(customer.id))

    @pytest.mark.asyncio
    async def test_list_newest_first_and_filters(
        self, db: SQLiteAdapter, store: LedgerStore
    ) -> None:
        customer = await _add_customer(db, store)
        first = make_transaction(customer.id, description="Rice")
        second = make_transaction(
            customer.id, TransactionType.PAYMENT, "40", "Cash", offset_seconds=1
        )
        await _add_transaction(db, store, first)
        await _add_transaction(db, store, second)

        everything = await store.list_transactions()
        payments = await store.list_transactions(TransactionFilter(type=TransactionType.PAYMENT))
        searched = await store.list_transactions(TransactionFilter(search="rice"))
        paged = await store.list_transactions(TransactionFilter(limit=1, offset=1))

        assert [t.id for t in everything] == [second.id, first.id]
        assert [t.id for t in payments] == [second.id]
        assert [t.id for t in searched] == [first.id]
        assert [t.id for t in paged] == [first.id]

    @pytest.mark.asyncio
    async def test_count_pending(self, db: SQLiteAdapter, store: LedgerStore) -> None:
        customer = await _add_customer(db, store)
        await _add_transaction(db, store, make_transaction(customer.id))

        assert await store.count_pending() == 1


class TestConditionalWrites:
    """PENDING 조건부 쓰기 테스트"""

    @pytest.mark.asyncio
    async def test_transition_only_once(self, db: SQLiteAdapter, store: LedgerStore) -> None:
        customer = await _add_customer(db, store)
        txn = make_transaction(customer.id)
        await _add_transaction(db, store, txn)

        async with db.transaction() as conn:
            first = await store.transition_status(
                conn, txn.id, TransactionStatus.APPROVED, "u-manager", now_utc()
            )
            second = await store.transition_status(
                conn, txn.id, TransactionStatus.REJECTED, "u-admin", now_utc(), "late"
            )

        assert first is True
        assert second is False
        loaded = await store.get_transaction(txn.id)
        assert loaded is not None
        assert loaded.status == TransactionStatus.APPROVED
        assert loaded.approved_by == "u-manager"
        assert loaded.rejection_reason is None

    @pytest.mark.asyncio
    async def test_update_pending(self, db: SQLiteAdapter, store: LedgerStore) -> None:
        customer = await _add_customer(db, store)
        txn = make_transaction(customer.id)
        await _add_transaction(db, store, txn)

        async with db.transaction() as conn:
            updated = await store.update_pending(
                conn,
                txn.id,
                {"amount": Decimal("120"), "type": TransactionType.PAYMENT, "notes": None},
                now_utc(),
            )

        assert updated is True
        loaded = await store.get_transaction(txn.id)
        assert loaded is not None
        assert loaded.amount == Decimal("120.00")
        assert loaded.type == TransactionType.PAYMENT

    @pytest.mark.asyncio
    async def test_update_and_delete_refuse_terminal(
        self, db: SQLiteAdapter, store: LedgerStore
    ) -> None:
        customer = await _add_customer(db, store)
        txn = make_transaction(customer.id)
        await _add_transaction(db, store, txn)

        async with db.transaction() as conn:
            await store.transition_status(
                conn, txn.id, TransactionStatus.REJECTED, "u-manager", now_utc(), "typo"
            )
            assert await store.update_pending(conn, txn.id, {"notes": "x"}, now_utc()) is False
            assert await store.delete_pending(conn, txn.id) is False
            assert await store.get_status(conn, txn.id) == TransactionStatus.REJECTED

    @pytest.mark.asyncio
    async def test_delete_pending(self, db: SQLiteAdapter, store: LedgerStore) -> None:
        customer = await _add_customer(db, store)
        txn = make_transaction(customer.id)
        await _add_transaction(db, store, txn)

        async with db.transaction() as conn:
            assert await store.delete_pending(conn, txn.id) is True
            assert await store.get_status(conn, txn.id) is None
