"""Pytest fixtures for hostel store tests."""

import itertools
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from hostel_store.models.models import Identity, Order, Product, UserProfile, UserRole, clean_optional
from hostel_store.store.cart import CartStore
from hostel_store.store.checkout import CheckoutFlow
from hostel_store.utils.config import Settings
from hostel_store.utils.constants import CHECKOUT_KEY, DB_KEY, SETTINGS_KEY
from hostel_store.utils.errors import AuthError, RemoteServiceError


class FakeDatabase:
    """In-memory stand-in for Database with the same method contract."""

    def __init__(self, products=None):
        self.products = list(products or [])
        self.users = {}
        self.passwords = {}
        self.sessions = {}
        self.orders = []
        self.calls = []
        self.fail = set()
        self._ids = itertools.count(1)
        self._clock = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def _record(self, name):
        self.calls.append(name)
        if name in self.fail:
            raise RemoteServiceError(f"{name} failed")

    def sign_up(self, email, password):
        self._record('sign_up')
        email = email.strip().lower()
        if email in self.passwords:
            raise AuthError("User already registered")
        if len(password) < 6:
            raise AuthError("Password should be at least 6 characters")
        user_id = f"user-{next(self._ids)}"
        self.passwords[email] = (user_id, password)
        self.users[user_id] = UserProfile(id=user_id, email=email)
        return self._open(user_id, email)

    def sign_in(self, email, password):
        self._record('sign_in')
        email = email.strip().lower()
        if self.passwords.get(email, (None, None))[1] != password:
            raise AuthError("Invalid login credentials")
        return self._open(self.passwords[email][0], email)

    def _open(self, user_id, email):
        token = f"token-{next(self._ids)}"
        identity = Identity(user_id=user_id, email=email, token=token, role=UserRole.USER)
        self.sessions[token] = identity
        return identity

    def sign_out(self, token):
        self._record('sign_out')
        self.sessions.pop(token, None)

    def get_session(self, token):
        self._record('get_session')
        return self.sessions.get(token)

    def get_products(self):
        self._record('get_products')
        return sorted(self.products, key=lambda p: p.name)

    def create_order(self, user_id, items, total, status, payment_method):
        self._record('create_order')
        self._clock += timedelta(minutes=1)
        order = Order(
            id=f"order-{next(self._ids)}", user_id=user_id, items=items, total=total,
            status=status, payment_method=payment_method, created_at=self._clock,
        )
        self.orders.append(order)
        return order

    def get_orders(self, user_id, limit=None):
        self._record('get_orders')
        orders = sorted((o for o in self.orders if o.user_id == user_id), key=lambda o: o.created_at, reverse=True)
        return orders[:limit] if limit is not None else orders

    def get_profile(self, user_id):
        self._record('get_profile')
        if user_id not in self.users:
            raise RemoteServiceError("Profile not found")
        return self.users[user_id]

    def update_profile(self, user_id, name, phone_number, address):
        self._record('update_profile')
        profile = self.users[user_id]
        self.users[user_id] = UserProfile(
            id=user_id, email=profile.email, name=clean_optional(name),
            phone_number=clean_optional(phone_number), address=clean_optional(address),
        )
        return self.users[user_id]


@pytest.fixture
def noodles():
    return Product(id='p-noodles', name='Instant Noodles', price=Decimal('2.50'),
                   description='Spicy ramen cup', category='snacks', stock=10)


@pytest.fixture
def soda():
    return Product(id='p-soda', name='Cola', price=Decimal('1.00'),
                   description='Chilled can', category='drinks', stock=5)


@pytest.fixture
def chips():
    return Product(id='p-chips', name='Potato Chips', price=Decimal('1.75'),
                   description='Salted crisps', category='snacks', stock=0)


@pytest.fixture
def products(noodles, soda, chips):
    return [noodles, soda, chips]


@pytest.fixture
def db(products):
    return FakeDatabase(products)


@pytest.fixture
def cart():
    return CartStore()


@pytest.fixture
def identity(db):
    """A registered user with a live session token."""
    return db.sign_up('guest@hostel.test', 'secret123')


@pytest.fixture
def settings():
    return Settings(bot_token='123:abc', database_url='postgresql://localhost/test', payment_delay=0.0)


@pytest.fixture
def context(db, settings):
    """Minimal stand-in for the python-telegram-bot callback context."""
    return SimpleNamespace(
        user_data={},
        bot_data={DB_KEY: db, CHECKOUT_KEY: CheckoutFlow(db), SETTINGS_KEY: settings},
        args=[],
        bot=MagicMock(set_my_commands=AsyncMock()),
    )


def make_message_update(text=''):
    message = MagicMock()
    message.text = text
    message.reply_text = AsyncMock()
    message.delete = AsyncMock()
    return SimpleNamespace(message=message, callback_query=None)


def make_callback_update(data):
    query = MagicMock()
    query.data = data
    query.answer = AsyncMock()
    query.edit_message_text = AsyncMock()
    query.message.reply_text = AsyncMock()
    return SimpleNamespace(message=None, callback_query=query)
