"""Tests for the psycopg-backed Database, with connections mocked out."""

from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import MagicMock, patch
from uuid import UUID

import bcrypt
import psycopg
import pytest
from psycopg.errors import UniqueViolation
from psycopg.types.json import Jsonb

from hostel_store.database.database import Database
from hostel_store.models.models import CartItem, OrderStatus, PaymentMethod, UserRole
from hostel_store.utils.errors import AuthError, RemoteServiceError

USER_ID = UUID('3f2b8c1e-0000-4000-8000-000000000001')


@pytest.fixture
def cursor():
    return MagicMock()


@pytest.fixture
def connect(cursor):
    conn = MagicMock()
    conn.__enter__.return_value = conn
    conn.cursor.return_value.__enter__.return_value = cursor
    with patch('hostel_store.database.database.psycopg.connect', return_value=conn) as connect:
        yield connect


@pytest.fixture
def database():
    return Database('postgresql://localhost/hostel')


def test_requires_url():
    with pytest.raises(ValueError):
        Database(None)


def test_get_products_maps_rows(database, connect, cursor):
    cursor.fetchall.return_value = [
        (UUID(int=1), 'Cola', 'Chilled can', Decimal('1.00'), 'http://img/cola', 'drinks', 5),
    ]

    products = database.get_products()

    assert products[0].id == str(UUID(int=1))
    assert products[0].price == Decimal('1.00')
    assert products[0].stock == 5
    assert 'ORDER BY name' in cursor.execute.call_args[0][0]
    assert connect.call_args.kwargs['application_name'] == 'hostel_store_bot'


def test_connection_failure_becomes_remote_error(database):
    with patch('hostel_store.database.database.psycopg.connect', side_effect=psycopg.OperationalError("down")):
        with pytest.raises(RemoteServiceError) as exc_info:
            database.get_products()

    assert isinstance(exc_info.value.__cause__, psycopg.OperationalError)


def test_sign_in_with_wrong_password(database, connect, cursor):
    cursor.fetchone.return_value = (USER_ID, bcrypt.hashpw(b'right-password', bcrypt.gensalt(rounds=4)), 'user')

    with pytest.raises(AuthError):
        database.sign_in('guest@hostel.test', 'wrong-password')


def test_sign_in_opens_session(database, connect, cursor):
    cursor.fetchone.return_value = (USER_ID, bcrypt.hashpw(b'right-password', bcrypt.gensalt(rounds=4)), 'admin')

    identity = database.sign_in('  Guest@Hostel.TEST', 'right-password')

    assert identity.user_id == str(USER_ID)
    assert identity.email == 'guest@hostel.test'
    assert identity.role is UserRole.ADMIN
    session_insert = cursor.execute.call_args_list[-1][0]
    assert 'INSERT INTO sessions' in session_insert[0]
    assert session_insert[1][0] == identity.token


def test_sign_in_unknown_user(database, connect, cursor):
    cursor.fetchone.return_value = None

    with pytest.raises(AuthError):
        database.sign_in('nobody@hostel.test', 'whatever')


def test_sign_up_rejects_short_password_without_connecting(database, connect):
    with pytest.raises(AuthError):
        database.sign_up('guest@hostel.test', '123')

    connect.assert_not_called()


def test_sign_up_duplicate_email(database, connect, cursor):
    cursor.execute.side_effect = UniqueViolation("duplicate key")

    with pytest.raises(AuthError) as exc_info:
        database.sign_up('guest@hostel.test', 'secret123')

    assert exc_info.value.reason == "User already registered"


def test_get_session_without_token_skips_database(database, connect):
    assert database.get_session(None) is None
    connect.assert_not_called()


def test_get_session_expired(database, connect, cursor):
    cursor.fetchone.return_value = None

    assert database.get_session('old-token') is None


def test_create_order_stores_items_as_json(database, connect, cursor, noodles):
    created = datetime(2024, 1, 1, tzinfo=timezone.utc)
    items = [CartItem(noodles, 2)]
    cursor.fetchone.return_value = (
        UUID(int=9), USER_ID, [item.to_dict() for item in items], Decimal('5.00'), 'processing', 'upi', created,
    )

    order = database.create_order(str(USER_ID), items, Decimal('5.00'), OrderStatus.PROCESSING,
                                  PaymentMethod.MOBILE_WALLET_TRANSFER)

    params = cursor.execute.call_args[0][1]
    assert isinstance(params[1], Jsonb)
    assert params[3:] == ('processing', 'upi')
    assert order.items == items
    assert order.total == Decimal('5.00')
    assert order.payment_method is PaymentMethod.MOBILE_WALLET_TRANSFER


def test_get_orders_newest_first_with_limit(database, connect, cursor):
    cursor.fetchall.return_value = []

    database.get_orders(str(USER_ID), limit=5)

    query, params = cursor.execute.call_args[0]
    assert 'ORDER BY created_at DESC' in query
    assert query.endswith('LIMIT %s')
    assert params == [str(USER_ID), 5]


def test_get_profile_missing_row(database, connect, cursor):
    cursor.fetchone.return_value = None

    with pytest.raises(RemoteServiceError):
        database.get_profile(str(USER_ID))


def test_update_profile_stores_blank_as_null(database, connect, cursor):
    cursor.fetchone.return_value = (USER_ID, 'guest@hostel.test', 'Ana', None, None)

    profile = database.update_profile(str(USER_ID), 'Ana', '  ', '')

    assert cursor.execute.call_args[0][1] == ('Ana', None, None, str(USER_ID))
    assert profile.name == 'Ana'
    assert profile.phone_number is None
