import logging
from typing import Optional

from telegram import Update
from telegram.error import TelegramError
from telegram.ext import ContextTypes, ConversationHandler

from ..models.models import Identity
from ..utils.constants import (
    EMAIL_KEY, EMOJIS, LOGIN_EMAIL, LOGIN_PASSWORD, PROFILE_DRAFT_KEY, REGISTER_EMAIL, REGISTER_PASSWORD,
)
from ..utils.errors import AuthError, RemoteServiceError
from ..utils.keyboards import create_main_menu_keyboard
from .stores import current_identity, get_cart, get_message, get_session

logger = logging.getLogger(__name__)


async def check_auth(update: Update, context: ContextTypes.DEFAULT_TYPE, action: str = 'continue') -> Optional[Identity]:
    identity = await current_identity(context)
    if identity is None:
        await get_message(update).reply_text(
            f"{EMOJIS['KEY']} Please log in to {action}. Use /login or /register."
        )
    return identity


async def _ask_email(update: Update, context: ContextTypes.DEFAULT_TYPE, next_state: int) -> int:
    if update.callback_query:
        await update.callback_query.answer()

    identity = await current_identity(context)
    if identity:
        await get_message(update).reply_text(f"{EMOJIS['PERSON']} You are already logged in as {identity.email}.")
        return ConversationHandler.END

    context.user_data.pop(EMAIL_KEY, None)
    await get_message(update).reply_text(f"{EMOJIS['EMAIL']} Enter your email address:")
    return next_state


async def command_login(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    return await _ask_email(update, context, LOGIN_EMAIL)


async def command_register(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    return await _ask_email(update, context, REGISTER_EMAIL)


async def handle_login_email(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    context.user_data[EMAIL_KEY] = update.message.text.strip()
    await update.message.reply_text(f"{EMOJIS['KEY']} Enter your password:")
    return LOGIN_PASSWORD


async def handle_register_email(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    context.user_data[EMAIL_KEY] = update.message.text.strip()
    await update.message.reply_text(f"{EMOJIS['KEY']} Choose a password (at least 6 characters):")
    return REGISTER_PASSWORD


async def _read_password(update: Update) -> str:
    password = update.message.text
    # Don't leave the password sitting in the chat history
    try:
        await update.message.delete()
    except TelegramError as e:
        logger.warning(f"Could not delete password message: {e}")
    return password


async def handle_login_password(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    password = await _read_password(update)
    email = context.user_data.pop(EMAIL_KEY, '')
    session = await get_session(context)

    try:
        identity = await session.sign_in(email, password)
    except AuthError as e:
        await update.message.reply_text(f"{EMOJIS['ERROR']} {e.reason}. Use /login to try again.")
        return ConversationHandler.END
    except RemoteServiceError as e:
        logger.error(f"Sign in failed: {e}")
        await update.message.reply_text(f"{EMOJIS['ERROR']} Sorry, we couldn't log you in. Please try again.")
        return ConversationHandler.END

    await update.message.reply_text(
        f"{EMOJIS['WAVE']} Welcome back, {identity.email}!",
        reply_markup=create_main_menu_keyboard(signed_in=True, cart_count=get_cart(context).item_count)
    )
    return ConversationHandler.END


async def handle_register_password(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    password = await _read_password(update)
    email = context.user_data.pop(EMAIL_KEY, '')
    session = await get_session(context)

    try:
        identity = await session.sign_up(email, password)
    except AuthError as e:
        await update.message.reply_text(f"{EMOJIS['ERROR']} {e.reason}. Use /register to try again.")
        return ConversationHandler.END
    except RemoteServiceError as e:
        logger.error(f"Sign up failed: {e}")
        await update.message.reply_text(f"{EMOJIS['ERROR']} Sorry, registration failed. Please try again.")
        return ConversationHandler.END

    await update.message.reply_text(
        f"{EMOJIS['CONFIRM']} Account created for {identity.email}!",
        reply_markup=create_main_menu_keyboard(signed_in=True, cart_count=get_cart(context).item_count)
    )
    return ConversationHandler.END


async def command_logout(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    session = await get_session(context)
    if session.current_identity() is None:
        await update.message.reply_text(f"{EMOJIS['WARNING']} You are not logged in.")
        return

    await session.sign_out()
    await update.message.reply_text(
        f"{EMOJIS['WAVE']} You have been logged out.",
        reply_markup=create_main_menu_keyboard(signed_in=False, cart_count=get_cart(context).item_count)
    )


async def cancel(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    # Only drop conversation scratch data; cart and session survive
    context.user_data.pop(EMAIL_KEY, None)
    context.user_data.pop(PROFILE_DRAFT_KEY, None)
    await update.message.reply_text(f"{EMOJIS['ERROR']} Operation cancelled.")
    return ConversationHandler.END
