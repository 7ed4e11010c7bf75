import asyncio
import logging

from telegram import Update
from telegram.ext import ContextTypes, ConversationHandler

from ..utils.constants import (
    CLEAR_FIELD, EMOJIS, PROFILE_ADDRESS, PROFILE_DRAFT_KEY, PROFILE_NAME, PROFILE_PHONE, SETTINGS_KEY,
)
from ..utils.errors import RemoteServiceError
from ..utils.formatters import format_profile
from ..utils.keyboards import create_profile_keyboard
from .auth_handlers import check_auth
from .stores import get_db, get_message

logger = logging.getLogger(__name__)

# state -> (field, prompt, next state)
PROFILE_STEPS = {
    PROFILE_NAME: ('name', 'full name', PROFILE_PHONE),
    PROFILE_PHONE: ('phone_number', 'phone number', PROFILE_ADDRESS),
    PROFILE_ADDRESS: ('address', 'delivery address', None),
}


async def command_profile(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    if update.callback_query:
        await update.callback_query.answer()

    identity = await check_auth(update, context, 'see your profile')
    if identity is None:
        return

    db = get_db(context)
    limit = context.bot_data[SETTINGS_KEY].recent_orders_limit
    message = get_message(update)
    try:
        profile = await asyncio.to_thread(db.get_profile, identity.user_id)
        orders = await asyncio.to_thread(db.get_orders, identity.user_id, limit)
    except RemoteServiceError as e:
        logger.error(f"Database error: {e}")
        await message.reply_text(f"{EMOJIS['ERROR']} Failed to fetch profile. Please try again.")
        return

    await message.reply_text(format_profile(profile, orders), reply_markup=create_profile_keyboard())


async def _ask_field(update: Update, context: ContextTypes.DEFAULT_TYPE, state: int) -> int:
    field, prompt, _ = PROFILE_STEPS[state]
    current = context.user_data[PROFILE_DRAFT_KEY].get(field) or 'not set'
    await get_message(update).reply_text(
        f"{EMOJIS['EDIT']} Enter your {prompt} (currently: {current}).\n"
        f"Send {CLEAR_FIELD} to clear it or /skip to keep it."
    )
    return state


async def command_edit_profile(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    if update.callback_query:
        await update.callback_query.answer()

    identity = await check_auth(update, context, 'edit your profile')
    if identity is None:
        return ConversationHandler.END

    try:
        profile = await asyncio.to_thread(get_db(context).get_profile, identity.user_id)
    except RemoteServiceError as e:
        logger.error(f"Database error: {e}")
        await get_message(update).reply_text(f"{EMOJIS['ERROR']} Failed to fetch profile. Please try again.")
        return ConversationHandler.END

    context.user_data[PROFILE_DRAFT_KEY] = {
        'name': profile.name,
        'phone_number': profile.phone_number,
        'address': profile.address,
    }
    return await _ask_field(update, context, PROFILE_NAME)


async def _advance(update: Update, context: ContextTypes.DEFAULT_TYPE, state: int) -> int:
    next_state = PROFILE_STEPS[state][2]
    if next_state is not None:
        return await _ask_field(update, context, next_state)
    return await _save_profile(update, context)


def _make_field_handler(state: int):
    field = PROFILE_STEPS[state][0]

    async def handle_field(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
        text = update.message.text.strip()
        context.user_data[PROFILE_DRAFT_KEY][field] = None if text == CLEAR_FIELD else text
        return await _advance(update, context, state)

    async def skip_field(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
        return await _advance(update, context, state)

    return handle_field, skip_field


handle_profile_name, skip_profile_name = _make_field_handler(PROFILE_NAME)
handle_profile_phone, skip_profile_phone = _make_field_handler(PROFILE_PHONE)
handle_profile_address, skip_profile_address = _make_field_handler(PROFILE_ADDRESS)


async def _save_profile(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    draft = context.user_data.pop(PROFILE_DRAFT_KEY)
    identity = await check_auth(update, context, 'edit your profile')
    if identity is None:
        return ConversationHandler.END

    try:
        profile = await asyncio.to_thread(
            get_db(context).update_profile,
            identity.user_id,
            draft['name'],
            draft['phone_number'],
            draft['address'],
        )
    except RemoteServiceError as e:
        logger.error(f"Database error: {e}")
        await update.message.reply_text(f"{EMOJIS['ERROR']} Failed to update profile. Please try again.")
        return ConversationHandler.END

    await update.message.reply_text(
        f"{EMOJIS['CONFIRM']} Profile updated successfully\n\n"
        f"{EMOJIS['PERSON']} Name: {profile.name or 'Not set'}\n"
        f"{EMOJIS['PHONE']} Phone: {profile.phone_number or 'Not set'}\n"
        f"{EMOJIS['LOCATION']} Address: {profile.address or 'Not set'}"
    )
    return ConversationHandler.END
