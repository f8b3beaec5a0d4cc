"""
Database Schemas

Each Pydantic model here describes a MongoDB collection document (model name
lowercased is the collection name) or the public shape it is returned in.
Public models serialize with camelCase keys for the browser client.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Generic, List, Literal, Optional, TypeVar

from email_validator import EmailNotValidError, validate_email
from pydantic import AfterValidator, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def check_email_syntax(value: str) -> str:
    """Reject malformed addresses but keep the value exactly as submitted."""
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError as e:
        raise ValueError(f"value is not a valid email address: {e}")
    return value


# Stored and compared verbatim: no case folding of the domain part
SubmittedEmail = Annotated[str, AfterValidator(check_email_syntax)]


class Category(str, Enum):
    electronics = "electronics"
    clothing = "clothing"
    books = "books"
    home = "home"
    other = "other"


class PublicModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Collections

class User(BaseModel):
    email: SubmittedEmail = Field(..., description="Email address, unique, case-sensitive")
    password_hash: str = Field(..., description="BCrypt hashed password")
    role: Literal["user", "admin"] = "user"
    created_at: datetime = Field(default_factory=utcnow)


class Product(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    name: str = Field(..., max_length=100)
    description: str = Field(..., max_length=1000)
    category: Category
    price: float = Field(..., ge=0)
    rating: float = Field(default=0, ge=0, le=5)
    image: str = Field(..., description="Image URL")
    stock: int = Field(default=0, ge=0)
    num_reviews: int = Field(default=0, ge=0)
    user: Optional[str] = Field(None, description="Id of the admin who created it")
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class CartItem(BaseModel):
    product_id: str
    quantity: int = Field(..., ge=1)


class Cart(BaseModel):
    user_id: str
    items: List[CartItem] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


# Public shapes

class UserPublic(PublicModel):
    id: str
    email: str
    role: str
    created_at: Optional[datetime] = None


class ProductPublic(PublicModel):
    id: str
    name: str
    description: str
    category: str
    price: float
    rating: float = 0
    image: str
    stock: int = 0
    num_reviews: int = 0
    user: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CartLine(PublicModel):
    product_id: str
    quantity: int
    product: Optional[ProductPublic] = None


class CartPublic(PublicModel):
    items: List[CartLine] = Field(default_factory=list)
    total_items: int = 0
    subtotal: float = 0


class AuthPayload(PublicModel):
    token: str
    user: UserPublic


# Response envelopes

class Envelope(PublicModel, Generic[T]):
    success: bool = True
    data: T


class ProductPage(Envelope[List[ProductPublic]]):
    count: int
    total: int
    total_pages: int
    current_page: int


class Empty(BaseModel):
    pass
