"""
Domain enums shared by models, services and routers.
"""

from enum import Enum


class UserRole(str, Enum):
    CLIENT = "client"
    FREELANCER = "freelancer"
    ADMIN = "admin"
    MODERATOR = "moderator"


class UserStatus(str, Enum):
    ACTIVE = "active"
    SUSPENDED = "suspended"
    PENDING_KYC = "pending_kyc"
    VERIFIED = "verified"


class OrderStatus(str, Enum):
    PENDING_PAYMENT = "pending_payment"
    PAYMENT_PENDING_VERIFICATION = "payment_pending_verification"
    IN_ESCROW = "in_escrow"
    IN_PROGRESS = "in_progress"
    DELIVERED = "delivered"
    REVISION_REQUESTED = "revision_requested"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    DISPUTED = "disputed"


class TransactionType(str, Enum):
    ESCROW_CREDIT = "escrow_credit"
    ESCROW_DEBIT = "escrow_debit"
    ADMIN_PAYOUT = "admin_payout"
    REFUND = "refund"
    WITHDRAWAL = "withdrawal"


class TransactionStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class KYCStatus(str, Enum):
    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"


class MessageType(str, Enum):
    TEXT = "text"
    IMAGE = "image"
    FILE = "file"
    PAYMENT_PROOF = "payment_proof"


class WebhookEvent(str, Enum):
    CHARGE_SUCCESS = "charge.success"
    CHARGE_FAILED = "charge.failed"
    TRANSFER_SUCCESS = "transfer.success"
    TRANSFER_FAILED = "transfer.failed"


# Statuses that may still authenticate against the API.
AUTHENTICATED_STATUSES = frozenset({UserStatus.ACTIVE, UserStatus.VERIFIED, UserStatus.PENDING_KYC})

# Statuses allowed to log in.
LOGIN_STATUSES = frozenset({UserStatus.ACTIVE, UserStatus.VERIFIED})

# Orders that can still be (re)assigned a payment reference.
PAYABLE_ORDER_STATUSES = frozenset({OrderStatus.PENDING_PAYMENT, OrderStatus.PAYMENT_PENDING_VERIFICATION})

# Orders whose escrow may be released to the freelancer.
RELEASABLE_ORDER_STATUSES = frozenset({OrderStatus.IN_ESCROW, OrderStatus.DELIVERED})

# Orders holding escrow (reserved on the freelancer wallet).
FUNDED_ORDER_STATUSES = frozenset({
    OrderStatus.IN_ESCROW,
    OrderStatus.IN_PROGRESS,
    OrderStatus.DELIVERED,
    OrderStatus.REVISION_REQUESTED,
    OrderStatus.DISPUTED,
})

# Status-endpoint moves each party may make. Operators may make any move the
# table allows.
CLIENT_TARGETS = frozenset({
    OrderStatus.PENDING_PAYMENT,
    OrderStatus.PAYMENT_PENDING_VERIFICATION,
    OrderStatus.REVISION_REQUESTED,
    OrderStatus.CANCELLED,
    OrderStatus.DISPUTED,
})
FREELANCER_TARGETS = frozenset({
    OrderStatus.IN_PROGRESS,
    OrderStatus.DELIVERED,
    OrderStatus.DISPUTED,
})

# Moves allowed through the user-facing status endpoint. The webhook, manual
# verification and payout paths set statuses directly; `completed` is only
# ever reached through escrow release.
ORDER_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING_PAYMENT: frozenset({
        OrderStatus.PAYMENT_PENDING_VERIFICATION,
        OrderStatus.CANCELLED,
    }),
    OrderStatus.PAYMENT_PENDING_VERIFICATION: frozenset({
        OrderStatus.PENDING_PAYMENT,
        OrderStatus.IN_ESCROW,
        OrderStatus.CANCELLED,
    }),
    OrderStatus.IN_ESCROW: frozenset({
        OrderStatus.IN_PROGRESS,
        OrderStatus.CANCELLED,
        OrderStatus.DISPUTED,
    }),
    OrderStatus.IN_PROGRESS: frozenset({
        OrderStatus.DELIVERED,
        OrderStatus.DISPUTED,
    }),
    OrderStatus.DELIVERED: frozenset({
        OrderStatus.REVISION_REQUESTED,
        OrderStatus.DISPUTED,
    }),
    OrderStatus.REVISION_REQUESTED: frozenset({
        OrderStatus.IN_PROGRESS,
        OrderStatus.DELIVERED,
        OrderStatus.DISPUTED,
    }),
    OrderStatus.DISPUTED: frozenset({
        OrderStatus.IN_PROGRESS,
        OrderStatus.DELIVERED,
        OrderStatus.CANCELLED,
    }),
    OrderStatus.COMPLETED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:
    return target in ORDER_TRANSITIONS.get(current, frozenset())
