"""
Pydantic models for request/response validation.
"""
import re
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from domain.constants import PHONE_PATTERN
from domain.enums import MessageType, OrderStatus, UserRole


class ApiModel(BaseModel):
    """Shared base - allows construction by Python name or camelCase alias."""
    model_config = ConfigDict(populate_by_name=True, from_attributes=True)


def _check_password_strength(value: str) -> str:
    if not (re.search(r"[a-z]", value) and re.search(r"[A-Z]", value) and re.search(r"\d", value)):
        raise ValueError("Password must contain a lowercase letter, an uppercase letter and a digit")
    return value


def _normalize_email(value: str) -> str:
    return value.strip().lower()


# ── Auth Models ─────────────────────────────────────────────────────

class SignupRequest(ApiModel):
    email: EmailStr
    password: str = Field(..., min_length=8)
    full_name: str = Field(..., min_length=2, max_length=100)
    phone: str = Field(..., pattern=PHONE_PATTERN)
    role: UserRole

    @field_validator("full_name", mode="before")
    @classmethod
    def _strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("email", mode="after")
    @classmethod
    def _lower_email(cls, v):
        return _normalize_email(v)

    @field_validator("password")
    @classmethod
    def _password_strength(cls, v):
        return _check_password_strength(v)


class LoginRequest(ApiModel):
    email: EmailStr
    password: str = Field(..., min_length=1)

    @field_validator("email", mode="after")
    @classmethod
    def _lower_email(cls, v):
        return _normalize_email(v)


class ProfileUpdateRequest(ApiModel):
    """Body for PUT /auth/me and PUT /users/{id}."""
    full_name: Optional[str] = Field(default=None, min_length=2, max_length=100)
    phone: Optional[str] = Field(default=None, pattern=PHONE_PATTERN)
    metadata: Optional[Dict[str, Any]] = None

    @field_validator("full_name", mode="before")
    @classmethod
    def _strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v


class RefreshRequest(ApiModel):
    refresh_token: str = Field(..., min_length=1)


class ForgotPasswordRequest(ApiModel):
    email: EmailStr

    @field_validator("email", mode="after")
    @classmethod
    def _lower_email(cls, v):
        return _normalize_email(v)


class ResetPasswordRequest(ApiModel):
    """`token` is the recovery access token from the reset email link."""
    password: str = Field(..., min_length=8)
    token: str = Field(..., min_length=1)

    @field_validator("password")
    @classmethod
    def _password_strength(cls, v):
        return _check_password_strength(v)


class SessionInfo(ApiModel):
    access_token: str
    refresh_token: Optional[str] = None
    expires_at: Optional[int] = None


class UserOut(ApiModel):
    id: str
    email: str
    full_name: str
    phone: Optional[str] = None
    role: str
    status: str
    kyc_id: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = Field(default=None, validation_alias="meta")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ── User / KYC Models ──────────────────────────────────────────────

class KYCSubmitRequest(ApiModel):
    docs: Dict[str, Any] = Field(..., min_length=1)


class FreelancerProfileUpdateRequest(ApiModel):
    tagline: Optional[str] = Field(default=None, max_length=200)
    skills: Optional[List[str]] = None
    portfolio_public: Optional[Dict[str, Any]] = None

    @field_validator("tagline", mode="before")
    @classmethod
    def _strip_tagline(cls, v):
        return v.strip() if isinstance(v, str) else v


class FreelancerOut(ApiModel):
    id: str
    user_id: str
    tagline: Optional[str] = None
    skills: List[str] = []
    portfolio_public: Dict[str, Any] = {}
    rating_avg: float = 0.0
    total_orders: int = 0
    completed_orders: int = 0


class ClientOut(ApiModel):
    id: str
    user_id: str
    total_spent: int = 0
    total_orders: int = 0


class KYCRecordOut(ApiModel):
    id: str
    user_id: str
    status: str
    docs: Dict[str, Any] = {}
    verified_by_admin_id: Optional[str] = None
    verified_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class WalletOut(ApiModel):
    user_id: str
    balance_cents: int
    reserved_cents: int
    updated_at: Optional[datetime] = None


class TransactionOut(ApiModel):
    id: str
    order_id: str
    type: str
    amount_cents: int
    status: str
    paystack_reference: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = Field(default=None, validation_alias="meta")
    created_at: Optional[datetime] = None


# ── Gig Models ──────────────────────────────────────────────────────

class GigCreateRequest(ApiModel):
    title: str = Field(..., min_length=3, max_length=120)
    description: str = Field(..., min_length=10)
    price_cents: int = Field(..., ge=1000)
    currency: str = Field(default="NGN", min_length=3, max_length=3)
    delivery_days: int = Field(..., ge=1, le=365)
    category: str = Field(..., min_length=2, max_length=50)
    tags: List[str] = []
    sample_media: List[str] = []


class GigUpdateRequest(ApiModel):
    title: Optional[str] = Field(default=None, min_length=3, max_length=120)
    description: Optional[str] = Field(default=None, min_length=10)
    price_cents: Optional[int] = Field(default=None, ge=1000)
    delivery_days: Optional[int] = Field(default=None, ge=1, le=365)
    category: Optional[str] = Field(default=None, min_length=2, max_length=50)
    tags: Optional[List[str]] = None
    sample_media: Optional[List[str]] = None
    is_active: Optional[bool] = None


class GigOut(ApiModel):
    id: str
    freelancer_id: str
    title: str
    description: str
    price_cents: int
    currency: str
    delivery_days: int
    sample_media: List[str] = []
    is_active: bool
    category: str
    tags: List[str] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ── Order Models ────────────────────────────────────────────────────

class OrderCreateRequest(ApiModel):
    freelancer_user_id: str = Field(..., alias="freelancerUserId", min_length=1)
    amount_cents: int = Field(..., ge=1000)
    currency: str = Field(..., min_length=1)
    project_id: Optional[str] = Field(default=None, alias="projectId")
    gig_id: Optional[str] = Field(default=None, alias="gigId")


class OrderStatusUpdateRequest(ApiModel):
    status: OrderStatus


class OrderOut(ApiModel):
    id: str
    client_id: str
    freelancer_id: str
    gig_id: Optional[str] = None
    amount_cents: int
    currency: str
    status: str
    custom_instructions: Optional[str] = None
    payment_reference: Optional[str] = None
    escrow_release_tx_id: Optional[str] = None
    delivery_date: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ── Payment Models ──────────────────────────────────────────────────

class PaymentInitiateRequest(ApiModel):
    order_id: str = Field(..., alias="orderId", min_length=1)


class PaymentVerifyRequest(ApiModel):
    reference: str = Field(..., min_length=1)


class PaymentAccount(ApiModel):
    bank_name: str
    account_number: str
    account_name: str
    instructions: str


class PaymentInitiateResponse(ApiModel):
    reference: str
    account: PaymentAccount


class PaymentStatusResponse(ApiModel):
    status: str
    payment_reference: Optional[str] = None


# ── Chat Models ─────────────────────────────────────────────────────

class ChatRoomCreateRequest(ApiModel):
    participant_id: str = Field(..., alias="participantId", min_length=1)
    order_id: Optional[str] = Field(default=None, alias="orderId")


class ChatMessageRequest(ApiModel):
    content: str = Field(default="", max_length=5000)
    type: MessageType = MessageType.TEXT
    attachments: List[Dict[str, Any]] = []
    order_id: Optional[str] = Field(default=None, alias="orderId")


# ── Project Models ──────────────────────────────────────────────────

class ProjectCreateRequest(ApiModel):
    title: str = Field(..., min_length=3, max_length=120)
    description: str = Field(..., min_length=10)
    category: str = Field(..., min_length=2)
    budget: float = Field(..., ge=0)
    delivery_time: str = Field(..., alias="deliveryTime", min_length=1)
    skills: List[str] = []
    attachments: List[Any] = []

    @field_validator("title", "description", "category", "delivery_time", mode="before")
    @classmethod
    def _strip(cls, v):
        return v.strip() if isinstance(v, str) else v


class ProjectUpdateRequest(ApiModel):
    title: Optional[str] = Field(default=None, min_length=3, max_length=120)
    description: Optional[str] = Field(default=None, min_length=10)
    category: Optional[str] = Field(default=None, min_length=2)
    budget: Optional[float] = Field(default=None, ge=0)
    delivery_time: Optional[str] = Field(default=None, alias="deliveryTime", min_length=1)
    skills: Optional[List[str]] = None
    attachments: Optional[List[Any]] = None
    status: Optional[str] = Field(default=None, pattern=r"^(open|in_progress|closed)$")


# ── Upload Models ───────────────────────────────────────────────────

class FileMetadataRequest(ApiModel):
    """Metadata of a file already stored in Cloudinary."""
    public_id: str = Field(..., alias="publicId", min_length=1)
    url: str = Field(..., min_length=1)
    filename: str = Field(..., min_length=1, max_length=255)
    content_type: str = Field(..., alias="contentType", min_length=1)
    size_bytes: int = Field(..., alias="sizeBytes", ge=0)
    folder: Optional[str] = None
    order_id: Optional[str] = Field(default=None, alias="orderId")
