import logging

from telegram import Update
from telegram.ext import ContextTypes

from ..models.models import PaymentMethod
from ..utils.constants import EMOJIS, PAYMENT_KEY
from ..utils.errors import AuthenticationRequired, RemoteServiceError, StoreError
from ..utils.formatters import format_cart_text, format_order_confirmation
from ..utils.keyboards import create_cart_keyboard, create_main_menu_keyboard
from .stores import get_cart, get_checkout, get_message, get_payment_method, get_session

logger = logging.getLogger(__name__)


def _render_cart(context: ContextTypes.DEFAULT_TYPE, signed_in: bool):
    cart = get_cart(context)
    items = cart.items
    text = format_cart_text(items, cart.total)
    if not items:
        return text, create_main_menu_keyboard(signed_in=signed_in)
    return text, create_cart_keyboard(items, get_payment_method(context))


async def command_cart(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    if update.callback_query:
        await update.callback_query.answer()
    session = await get_session(context)
    text, keyboard = _render_cart(context, signed_in=session.current_identity() is not None)
    await get_message(update).reply_text(text, reply_markup=keyboard)


async def handle_cart_action(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Apply a +/-/remove/clear/payment button press and redraw the cart."""
    query = update.callback_query
    action, _, value = query.data.partition(':')
    cart = get_cart(context)

    if action == 'payment':
        method = PaymentMethod(value)
        if method is get_payment_method(context):
            await query.answer()
            return
        context.user_data[PAYMENT_KEY] = method
        await query.answer(f"Payment: {method.label}")
    elif action == 'cart_clear':
        cart.clear()
        await query.answer("Cart cleared")
    else:
        item = cart.get(value)
        if item is None:
            await query.answer("This item is no longer in your cart")
            return
        if action == 'cart_inc':
            cart.update_quantity(value, item.quantity + 1)
        elif action == 'cart_dec':
            cart.update_quantity(value, item.quantity - 1)
        elif action == 'cart_remove':
            cart.remove_item(value)
        await query.answer()

    session = await get_session(context)
    text, keyboard = _render_cart(context, signed_in=session.current_identity() is not None)
    await query.edit_message_text(text, reply_markup=keyboard)


async def handle_checkout(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    query = update.callback_query
    await query.answer()

    session = await get_session(context)
    cart = get_cart(context)
    payment_method = get_payment_method(context)

    async def announce():
        await query.message.reply_text(f"{EMOJIS['SHOPPING']} Processing your order...")

    try:
        order = await get_checkout(context).place_order(session, cart, payment_method, on_accepted=announce)
    except AuthenticationRequired:
        await query.message.reply_text(
            f"{EMOJIS['KEY']} Please log in to checkout. Use /login or /register, your cart will be kept."
        )
        return
    except RemoteServiceError as e:
        logger.error(f"Database error: {e}")
        await query.message.reply_text(
            f"{EMOJIS['ERROR']} Failed to place order. Your cart is unchanged, please try again."
        )
        return
    except StoreError as e:
        await query.message.reply_text(f"{EMOJIS['WARNING']} {e}")
        return

    await query.message.reply_text(format_order_confirmation(order))
    await query.message.reply_text(
        f"{EMOJIS['ARROW']} What would you like to do next?",
        reply_markup=create_main_menu_keyboard(signed_in=True)
    )
