import logging
import secrets
from datetime import timedelta
from typing import List, Optional

import bcrypt
import psycopg
from psycopg import Error
from psycopg.errors import UniqueViolation
from psycopg.types.json import Jsonb

from ..models.models import (
    CartItem, Identity, Order, OrderStatus, PaymentMethod, Product, UserProfile, UserRole,
    clean_optional, to_decimal,
)
from ..utils.errors import AuthError, RemoteServiceError

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6

SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    email TEXT NOT NULL UNIQUE,
    password_hash BYTEA NOT NULL,
    role TEXT NOT NULL DEFAULT 'user' CHECK (role IN ('user', 'admin')),
    name TEXT,
    phone_number TEXT,
    address TEXT,
    created_at TIMESTAMPTZ NOT NULL DEFAULT now()
);

CREATE TABLE IF NOT EXISTS sessions (
    token TEXT PRIMARY KEY,
    user_id UUID NOT NULL REFERENCES users (id) ON DELETE CASCADE,
    expires_at TIMESTAMPTZ NOT NULL
);

CREATE TABLE IF NOT EXISTS products (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    name TEXT NOT NULL,
    description TEXT NOT NULL DEFAULT '',
    price NUMERIC(10, 2) NOT NULL CHECK (price >= 0),
    image_url TEXT NOT NULL DEFAULT '',
    category TEXT NOT NULL DEFAULT '',
    stock INTEGER NOT NULL DEFAULT 0 CHECK (stock >= 0)
);

CREATE TABLE IF NOT EXISTS orders (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    user_id UUID NOT NULL REFERENCES users (id),
    items JSONB NOT NULL,
    total NUMERIC(10, 2) NOT NULL CHECK (total >= 0),
    status TEXT NOT NULL DEFAULT 'pending'
        CHECK (status IN ('pending', 'processing', 'delivered')),
    payment_method TEXT NOT NULL CHECK (payment_method IN ('cod', 'upi', 'card')),
    created_at TIMESTAMPTZ NOT NULL DEFAULT now()
);

CREATE INDEX IF NOT EXISTS orders_user_created_idx ON orders (user_id, created_at DESC);
"""

ORDER_COLUMNS = "id, user_id, items, total, status, payment_method, created_at"
PROFILE_COLUMNS = "id, email, name, phone_number, address"


def _norm_email(email: str) -> str:
    return (email or "").strip().lower()


def _row_to_order(row) -> Order:
    id, user_id, items, total, status, payment_method, created_at = row
    return Order(
        id=str(id),
        user_id=str(user_id),
        items=[CartItem.from_dict(item) for item in items or []],
        total=to_decimal(total),
        status=OrderStatus(status),
        payment_method=PaymentMethod(payment_method),
        created_at=created_at,
    )


def _row_to_profile(row) -> UserProfile:
    id, email, name, phone_number, address = row
    return UserProfile(id=str(id), email=email, name=name, phone_number=phone_number, address=address)


class Database:
    """PostgreSQL-backed data service: authentication plus table access.

    Each call opens a short-lived connection. psycopg errors never leave
    this class: credential problems become AuthError, everything else
    RemoteServiceError.
    """

    def __init__(self, database_url: Optional[str] = None, session_ttl: timedelta = timedelta(days=7)):
        self.DATABASE_URL = database_url
        if not self.DATABASE_URL:
            raise ValueError("DATABASE_URL environment variable is not set")
        self.session_ttl = session_ttl

    def get_connection(self) -> psycopg.Connection:
        return psycopg.connect(
            self.DATABASE_URL,
            connect_timeout=30,
            application_name='hostel_store_bot'
        )

    def check_connection(self) -> None:
        try:
            with self.get_connection() as conn:
                conn.execute("SELECT 1")
        except Error as e:
            raise RemoteServiceError(f"Database unavailable: {e}") from e

    def create_schema(self) -> None:
        try:
            with self.get_connection() as conn:
                conn.execute(SCHEMA)
                conn.commit()
        except Error as e:
            raise RemoteServiceError(f"Failed to create schema: {e}") from e

    # ---------- authentication ----------

    def _open_session(self, cur, user_id) -> str:
        token = secrets.token_urlsafe(32)
        cur.execute(
            "INSERT INTO sessions (token, user_id, expires_at) VALUES (%s, %s, now() + %s)",
            (token, user_id, self.session_ttl)
        )
        return token

    def sign_up(self, email: str, password: str) -> Identity:
        email = _norm_email(email)
        if not email or '@' not in email:
            raise AuthError("A valid email address is required")
        if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
            raise AuthError(f"Password should be at least {MIN_PASSWORD_LENGTH} characters")

        hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt())
        try:
            with self.get_connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(
                        "INSERT INTO users (email, password_hash) VALUES (%s, %s) RETURNING id, role",
                        (email, hashed)
                    )
                    user_id, role = cur.fetchone()
                    token = self._open_session(cur, user_id)
                conn.commit()
        except UniqueViolation as e:
            raise AuthError("User already registered") from e
        except Error as e:
            raise RemoteServiceError(f"Sign up failed: {e}") from e

        logger.info(f"Registered user {user_id}")
        return Identity(user_id=str(user_id), email=email, token=token, role=UserRole(role))

    def sign_in(self, email: str, password: str) -> Identity:
        email = _norm_email(email)
        if not email or not isinstance(password, str) or password == "":
            raise AuthError("Invalid login credentials")

        try:
            with self.get_connection() as conn:
                with conn.cursor() as cur:
                    cur.execute("SELECT id, password_hash, role FROM users WHERE email = %s", (email,))
                    row = cur.fetchone()
                    if not row or not bcrypt.checkpw(password.encode("utf-8"), bytes(row[1])):
                        raise AuthError("Invalid login credentials")
                    user_id, _, role = row
                    token = self._open_session(cur, user_id)
                conn.commit()
        except Error as e:
            raise RemoteServiceError(f"Sign in failed: {e}") from e

        return Identity(user_id=str(user_id), email=email, token=token, role=UserRole(role))

    def sign_out(self, token: str) -> None:
        try:
            with self.get_connection() as conn:
                conn.execute("DELETE FROM sessions WHERE token = %s", (token,))
                conn.commit()
        except Error as e:
            raise RemoteServiceError(f"Sign out failed: {e}") from e

    def get_session(self, token: Optional[str]) -> Optional[Identity]:
        if not token:
            return None
        try:
            with self.get_connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(
                        """
                        SELECT u.id, u.email, u.role
                        FROM sessions s
                        JOIN users u ON u.id = s.user_id
                        WHERE s.token = %s AND s.expires_at > now()
                        """,
                        (token,)
                    )
                    row = cur.fetchone()
        except Error as e:
            raise RemoteServiceError(f"Session lookup failed: {e}") from e

        if not row:
            return None
        user_id, email, role = row
        return Identity(user_id=str(user_id), email=email, token=token, role=UserRole(role))

    # ---------- tables ----------

    def get_products(self) -> List[Product]:
        try:
            with self.get_connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(
                        "SELECT id, name, description, price, image_url, category, stock "
                        "FROM products ORDER BY name"
                    )
                    return [
                        Product(
                            id=str(id), name=name, description=description, price=to_decimal(price),
                            image_url=image_url, category=category, stock=stock
                        )
                        for id, name, description, price, image_url, category, stock in cur.fetchall()
                    ]
        except Error as e:
            raise RemoteServiceError(f"Failed to fetch products: {e}") from e

    def create_order(self, user_id: str, items: List[CartItem], total, status: OrderStatus,
                     payment_method: PaymentMethod) -> Order:
        try:
            with self.get_connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(
                        f"INSERT INTO orders (user_id, items, total, status, payment_method) "
                        f"VALUES (%s, %s, %s, %s, %s) RETURNING {ORDER_COLUMNS}",
                        (
                            user_id,
                            Jsonb([item.to_dict() for item in items]),
                            total,
                            status.value,
                            payment_method.value,
                        )
                    )
                    row = cur.fetchone()
                conn.commit()
        except Error as e:
            raise RemoteServiceError(f"Failed to place order: {e}") from e

        return _row_to_order(row)

    def get_orders(self, user_id: str, limit: Optional[int] = None) -> List[Order]:
        query = f"SELECT {ORDER_COLUMNS} FROM orders WHERE user_id = %s ORDER BY created_at DESC"
        params = [user_id]
        if limit is not None:
            query += " LIMIT %s"
            params.append(limit)
        try:
            with self.get_connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(query, params)
                    return [_row_to_order(row) for row in cur.fetchall()]
        except Error as e:
            raise RemoteServiceError(f"Failed to fetch orders: {e}") from e

    def get_profile(self, user_id: str) -> UserProfile:
        try:
            with self.get_connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(f"SELECT {PROFILE_COLUMNS} FROM users WHERE id = %s", (user_id,))
                    row = cur.fetchone()
        except Error as e:
            raise RemoteServiceError(f"Failed to fetch profile: {e}") from e

        if not row:
            raise RemoteServiceError("Profile not found")
        return _row_to_profile(row)

    def update_profile(self, user_id: str, name: Optional[str], phone_number: Optional[str],
                       address: Optional[str]) -> UserProfile:
        try:
            with self.get_connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(
                        f"UPDATE users SET name = %s, phone_number = %s, address = %s "
                        f"WHERE id = %s RETURNING {PROFILE_COLUMNS}",
                        (clean_optional(name), clean_optional(phone_number), clean_optional(address), user_id)
                    )
                    row = cur.fetchone()
                conn.commit()
        except Error as e:
            raise RemoteServiceError(f"Failed to update profile: {e}") from e

        if not row:
            raise RemoteServiceError("Profile not found")
        return _row_to_profile(row)
