from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional


def to_decimal(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # go through str so floats from JSON keep their printed value
    return Decimal(str(value))


def clean_optional(value: Optional[str]) -> Optional[str]:
    """Strip a free-text field and map blank input to None."""
    if value is None:
        return None
    value = value.strip()
    return value or None


class OrderStatus(Enum):
    PENDING = 'pending'
    PROCESSING = 'processing'
    DELIVERED = 'delivered'

    @property
    def progress(self) -> int:
        return {'pending': 33, 'processing': 66, 'delivered': 100}[self.value]

    @property
    def label(self) -> str:
        return self.value.capitalize()


class PaymentMethod(Enum):
    CASH_ON_DELIVERY = 'cod'
    MOBILE_WALLET_TRANSFER = 'upi'
    CARD = 'card'

    @property
    def label(self) -> str:
        return {
            'cod': 'Cash on Delivery',
            'upi': 'UPI / PhonePe',
            'card': 'Credit / Debit Card',
        }[self.value]


class UserRole(Enum):
    USER = 'user'
    ADMIN = 'admin'


@dataclass(frozen=True)
class Product:
    id: str
    name: str
    price: Decimal
    description: str = ''
    image_url: str = ''
    category: str = ''
    stock: int = 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Product':
        return cls(
            id=str(data['id']),
            name=data['name'],
            price=to_decimal(data['price']),
            description=data.get('description') or '',
            image_url=data.get('image_url') or '',
            category=data.get('category') or '',
            stock=int(data.get('stock') or 0),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'price': float(self.price),
            'image_url': self.image_url,
            'category': self.category,
            'stock': self.stock,
        }


@dataclass
class CartItem:
    product: Product
    quantity: int = 1

    @property
    def id(self) -> str:
        return self.product.id

    @property
    def name(self) -> str:
        return self.product.name

    @property
    def price(self) -> Decimal:
        return self.product.price

    @property
    def subtotal(self) -> Decimal:
        return self.product.price * self.quantity

    def copy(self) -> 'CartItem':
        return replace(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CartItem':
        return cls(product=Product.from_dict(data), quantity=int(data['quantity']))

    def to_dict(self) -> Dict[str, Any]:
        data = self.product.to_dict()
        data['quantity'] = self.quantity
        return data


def items_total(items: List[CartItem]) -> Decimal:
    return sum((item.subtotal for item in items), Decimal('0'))


@dataclass
class Order:
    id: str
    user_id: str
    items: List[CartItem]
    total: Decimal
    status: OrderStatus
    payment_method: PaymentMethod
    created_at: datetime

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self.items)


@dataclass
class UserProfile:
    id: str
    email: str
    name: Optional[str] = None
    phone_number: Optional[str] = None
    address: Optional[str] = None

    def __post_init__(self):
        self.name = clean_optional(self.name)
        self.phone_number = clean_optional(self.phone_number)
        self.address = clean_optional(self.address)


@dataclass(frozen=True)
class Identity:
    user_id: str
    email: str
    token: str = field(repr=False)
    role: UserRole = UserRole.USER
