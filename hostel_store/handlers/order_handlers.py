import asyncio
import logging

from telegram import Update
from telegram.ext import ContextTypes

from ..utils.constants import EMOJIS
from ..utils.errors import RemoteServiceError
from ..utils.formatters import format_order, format_orders
from .auth_handlers import check_auth
from .stores import get_db, get_message

logger = logging.getLogger(__name__)


async def command_orders(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    if update.callback_query:
        await update.callback_query.answer()

    identity = await check_auth(update, context, 'see your orders')
    if identity is None:
        return

    message = get_message(update)
    try:
        orders = await asyncio.to_thread(get_db(context).get_orders, identity.user_id)
    except RemoteServiceError as e:
        logger.error(f"Database error: {e}")
        await message.reply_text(f"{EMOJIS['ERROR']} Failed to fetch orders. Please try again.")
        return

    if not orders:
        await message.reply_text(format_orders(orders))
        return

    # Telegram caps message length, so send orders one by one
    await message.reply_text(f"{EMOJIS['PACKAGE']} Order History ({len(orders)}):")
    for order in orders:
        await message.reply_text(format_order(order))
