from typing import Optional

from telegram import Message, Update
from telegram.ext import ContextTypes

from ..database.database import Database
from ..models.models import Identity, PaymentMethod
from ..store.cart import CartStore
from ..store.checkout import CheckoutFlow
from ..store.session import SessionStore
from ..utils.constants import CART_KEY, CHECKOUT_KEY, DB_KEY, DEFAULT_PAYMENT_METHOD, PAYMENT_KEY, SESSION_KEY


def get_db(context: ContextTypes.DEFAULT_TYPE) -> Database:
    return context.bot_data[DB_KEY]


def get_checkout(context: ContextTypes.DEFAULT_TYPE) -> CheckoutFlow:
    return context.bot_data[CHECKOUT_KEY]


def get_cart(context: ContextTypes.DEFAULT_TYPE) -> CartStore:
    cart = context.user_data.get(CART_KEY)
    if cart is None:
        cart = context.user_data[CART_KEY] = CartStore()
    return cart


async def get_session(context: ContextTypes.DEFAULT_TYPE) -> SessionStore:
    """Return this user's session store, resolved against the database."""
    session = context.user_data.get(SESSION_KEY)
    if session is None:
        session = context.user_data[SESSION_KEY] = SessionStore(get_db(context))
    elif session.backend is None:
        session.attach(get_db(context))
    await session.ready()
    return session


async def current_identity(context: ContextTypes.DEFAULT_TYPE) -> Optional[Identity]:
    return (await get_session(context)).current_identity()


def get_payment_method(context: ContextTypes.DEFAULT_TYPE) -> PaymentMethod:
    return context.user_data.get(PAYMENT_KEY, DEFAULT_PAYMENT_METHOD)


def get_message(update: Update) -> Message:
    # Handle both direct command and callback query
    if update.callback_query:
        return update.callback_query.message
    return update.message
