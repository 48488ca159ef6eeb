"""
SQLAlchemy ORM models for the GigConnect backend.

Tables:
    users            - Supabase Auth users mirrored with role + status
    freelancers      - freelancer profile (1:1 users)
    clients          - client profile (1:1 users)
    gigs             - freelancer service listings
    orders           - client ↔ freelancer orders with escrow status
    transactions     - money movements attached to orders
    wallets          - per-user balance / reserved cents
    kyc_records      - identity verification submissions
    audit_logs       - operator, worker and notification trail
    webhook_events   - processed gateway deliveries (replay dedup key)
"""
import uuid
from datetime import datetime

from sqlalchemy import (
    Column, Integer, BigInteger, String, Float, Boolean, DateTime, Text, ForeignKey, JSON,
    Index,
)
from sqlalchemy.orm import relationship

from database import Base
from domain.enums import KYCStatus, OrderStatus, TransactionStatus, UserStatus


def _uuid() -> str:
    return str(uuid.uuid4())


class User(Base):
    """Platform users; `id` is the Supabase Auth user id."""
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=_uuid)
    email = Column(String(255), unique=True, nullable=False, index=True)
    full_name = Column(String(100), nullable=False)
    phone = Column(String(20), nullable=True)
    role = Column(String(20), nullable=False, index=True)  # client | freelancer | admin | moderator
    status = Column(String(20), nullable=False, default=UserStatus.PENDING_KYC.value)
    kyc_id = Column(String(36), nullable=True)
    meta = Column("metadata", JSON, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    freelancer = relationship("Freelancer", back_populates="user", uselist=False, lazy="select")
    client = relationship("Client", back_populates="user", uselist=False, lazy="select")
    wallet = relationship("Wallet", back_populates="user", uselist=False, lazy="select")


class Freelancer(Base):
    __tablename__ = "freelancers"

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(String(36), ForeignKey("users.id"), unique=True, nullable=False, index=True)
    tagline = Column(String(200), nullable=True)
    skills = Column(JSON, nullable=False, default=list)
    portfolio_public = Column(JSON, nullable=False, default=dict)
    bank_details = Column(JSON, nullable=False, default=dict)  # admin-only
    rating_avg = Column(Float, nullable=False, default=0.0)
    total_orders = Column(Integer, nullable=False, default=0)
    completed_orders = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="freelancer")


class Client(Base):
    __tablename__ = "clients"

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(String(36), ForeignKey("users.id"), unique=True, nullable=False, index=True)
    total_spent = Column(BigInteger, nullable=False, default=0)
    total_orders = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="client")


class Gig(Base):
    __tablename__ = "gigs"

    id = Column(String(36), primary_key=True, default=_uuid)
    freelancer_id = Column(String(36), ForeignKey("freelancers.id"), nullable=False, index=True)
    title = Column(String(120), nullable=False)
    description = Column(Text, nullable=False)
    price_cents = Column(BigInteger, nullable=False)
    currency = Column(String(3), nullable=False, default="NGN")
    delivery_days = Column(Integer, nullable=False)
    sample_media = Column(JSON, nullable=False, default=list)
    is_active = Column(Boolean, nullable=False, default=True)
    category = Column(String(50), nullable=False, index=True)
    tags = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        Index("ix_gigs_active_category", "is_active", "category"),
    )


class Order(Base):
    """
    Client ↔ freelancer order. `amount_cents` is in the currency's minor
    unit (kobo for NGN) and is never updated after creation.
    """
    __tablename__ = "orders"

    id = Column(String(36), primary_key=True, default=_uuid)
    client_id = Column(String(36), ForeignKey("clients.id"), nullable=False, index=True)
    freelancer_id = Column(String(36), ForeignKey("freelancers.id"), nullable=False, index=True)
    gig_id = Column(String(36), ForeignKey("gigs.id"), nullable=True)
    amount_cents = Column(BigInteger, nullable=False)
    currency = Column(String(3), nullable=False, default="NGN")
    status = Column(String(40), nullable=False, default=OrderStatus.PENDING_PAYMENT.value, index=True)
    custom_instructions = Column(Text, nullable=True)
    payment_reference = Column(String(120), nullable=True, index=True)
    escrow_release_tx_id = Column(String(36), nullable=True)
    delivery_date = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    client = relationship("Client", lazy="select")
    freelancer = relationship("Freelancer", lazy="select")
    transactions = relationship("Transaction", back_populates="order", lazy="select")

    __table_args__ = (
        # Cleanup / reconciliation scans
        Index("ix_orders_status_updated", "status", "updated_at"),
    )


class Transaction(Base):
    """Money movement attached to an order. Only status/metadata are patched."""
    __tablename__ = "transactions"

    id = Column(String(36), primary_key=True, default=_uuid)
    order_id = Column(String(36), ForeignKey("orders.id"), nullable=False, index=True)
    type = Column(String(20), nullable=False)
    amount_cents = Column(BigInteger, nullable=False)
    status = Column(String(20), nullable=False, default=TransactionStatus.PENDING.value)
    paystack_reference = Column(String(120), nullable=True, index=True)
    meta = Column("metadata", JSON, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    order = relationship("Order", back_populates="transactions")

    __table_args__ = (
        Index("ix_transactions_order_type_status", "order_id", "type", "status"),
    )


class Wallet(Base):
    __tablename__ = "wallets"

    user_id = Column(String(36), ForeignKey("users.id"), primary_key=True)
    balance_cents = Column(BigInteger, nullable=False, default=0)
    reserved_cents = Column(BigInteger, nullable=False, default=0)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="wallet")


class KYCRecord(Base):
    __tablename__ = "kyc_records"

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(String(36), ForeignKey("users.id"), unique=True, nullable=False, index=True)
    status = Column(String(20), nullable=False, default=KYCStatus.PENDING.value, index=True)
    docs = Column(JSON, nullable=False, default=dict)
    verified_by_admin_id = Column(String(36), nullable=True)
    verified_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    actor_id = Column(String(36), nullable=False, index=True)  # user id or "system"
    action = Column(String(64), nullable=False, index=True)
    target_type = Column(String(32), nullable=False)
    target_id = Column(String(64), nullable=True)
    details = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    __table_args__ = (
        Index("ix_audit_logs_target", "target_type", "target_id"),
    )


class WebhookEventRecord(Base):
    """
    Idempotency table for gateway webhooks.

    One row per processed delivery; a replay with the same event_key is
    acknowledged without touching orders or wallets again.
    """
    __tablename__ = "webhook_events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    event_key = Column(String(200), unique=True, nullable=False, index=True)
    event = Column(String(40), nullable=False)
    reference = Column(String(120), nullable=True, index=True)
    outcome = Column(String(40), nullable=False)  # processed | ignored
    payload = Column(JSON, nullable=True)
    received_at = Column(DateTime, default=datetime.utcnow, index=True)
