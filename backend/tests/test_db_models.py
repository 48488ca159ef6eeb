"""
Tests for ORM database models.

Tests: defaults, unique constraints, the `metadata` column mapping,
relationships.
"""
import pytest
from sqlalchemy import select, text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload

from db_models import Order, Transaction, User, Wallet, WebhookEventRecord
from domain.enums import UserStatus


class TestUserModel:

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_defaults(self, db_session):
        user = User(email="d@example.com", full_name="Dee", role="client")
        db_session.add(user)
        await db_session.commit()

        assert len(user.id) == 36
        assert user.status == UserStatus.PENDING_KYC.value
        assert user.created_at is not None

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_email_is_unique(self, db_session):
        db_session.add(User(email="dup@example.com", full_name="One", role="client"))
        await db_session.commit()

        db_session.add(User(email="dup@example.com", full_name="Two", role="client"))
        with pytest.raises(IntegrityError):
            await db_session.commit()
        await db_session.rollback()

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_meta_maps_to_metadata_column(self, db_session):
        user = User(email="m@example.com", full_name="Em", role="client", meta={"lang": "yo"})
        db_session.add(user)
        await db_session.commit()

        raw = (await db_session.execute(
            text("SELECT metadata FROM users WHERE id = :id"), {"id": user.id}
        )).scalar_one()
        assert "yo" in raw


class TestWallet:

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_wallet_keyed_by_user(self, db_session, freelancer_user):
        wallet = await db_session.get(Wallet, freelancer_user.id)
        assert wallet.balance_cents == 0
        assert wallet.reserved_cents == 0


class TestOrderRelationships:

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_transactions_relationship(self, db_session, sample_order):
        db_session.add(Transaction(order_id=sample_order.id, type="escrow_credit", amount_cents=1, status="completed"))
        await db_session.commit()

        order = (await db_session.execute(
            select(Order).where(Order.id == sample_order.id).options(selectinload(Order.transactions))
            .execution_options(populate_existing=True)
        )).scalar_one()
        assert [t.amount_cents for t in order.transactions] == [1]


class TestWebhookEventRecord:

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_event_key_is_unique(self, db_session):
        db_session.add(WebhookEventRecord(event_key="charge.success:1", event="charge.success", outcome="processed"))
        await db_session.commit()

        db_session.add(WebhookEventRecord(event_key="charge.success:1", event="charge.success", outcome="processed"))
        with pytest.raises(IntegrityError):
            await db_session.commit()
        await db_session.rollback()
