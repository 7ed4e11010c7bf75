import asyncio
import logging
from typing import Dict, List

from telegram import Update
from telegram.ext import ContextTypes

from ..models.models import Product
from ..store.catalog import ALL_CATEGORIES, filter_products, list_categories, paginate
from ..utils.constants import CATEGORY_KEY, EMOJIS, PRODUCTS_KEY, PRODUCTS_PER_PAGE, SEARCH_KEY
from ..utils.errors import RemoteServiceError
from ..utils.formatters import format_product_list
from ..utils.keyboards import create_main_menu_keyboard, create_product_keyboard
from .stores import current_identity, get_cart, get_db, get_message

logger = logging.getLogger(__name__)


async def start(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    identity = await current_identity(context)
    commands = [
        ('start', 'Open the main menu'),
        ('products', 'Browse products'),
        ('search', 'Search products'),
        ('cart', 'View your cart'),
        ('orders', 'Your order history'),
        ('profile', 'Your profile'),
        ('login', 'Log in'),
        ('register', 'Create an account'),
        ('logout', 'Log out'),
    ]
    await context.bot.set_my_commands(commands)

    greeting = f", {identity.email}" if identity else ""
    await update.message.reply_text(
        f"{EMOJIS['WAVE']} Welcome to the Hostel Store{greeting}!\n"
        f"{EMOJIS['ARROW']} What would you like to do?",
        reply_markup=create_main_menu_keyboard(signed_in=identity is not None, cart_count=get_cart(context).item_count)
    )


async def _load_products(context: ContextTypes.DEFAULT_TYPE, refresh: bool = False) -> List[Product]:
    cached: Dict[str, Product] = context.user_data.get(PRODUCTS_KEY)
    if cached is None or refresh:
        products = await asyncio.to_thread(get_db(context).get_products)
        cached = context.user_data[PRODUCTS_KEY] = {p.id: p for p in products}
    return list(cached.values())


def _catalog_title(search: str, category: str) -> str:
    if search:
        title = f"Results for \"{search}\""
        return f"{title} in {category.capitalize()}" if category != ALL_CATEGORIES else title
    if category != ALL_CATEGORIES:
        return f"{category.capitalize()} Products"
    return "Available Products"


def _render_catalog(context: ContextTypes.DEFAULT_TYPE, products: List[Product], page: int = 0):
    """Render one page of the catalog under the stored search term and category."""
    search = context.user_data.get(SEARCH_KEY, '')
    category = context.user_data.get(CATEGORY_KEY, ALL_CATEGORIES)
    shown, page, page_count = paginate(filter_products(products, search=search, category=category),
                                       page, PRODUCTS_PER_PAGE)
    text = format_product_list(shown, title=_catalog_title(search, category), page=page, page_count=page_count)
    keyboard = create_product_keyboard(shown, list_categories(products), selected=category,
                                       page=page, page_count=page_count)
    return text, keyboard


async def _show_products(update: Update, context: ContextTypes.DEFAULT_TYPE, search: str = '') -> None:
    message = get_message(update)
    try:
        products = await _load_products(context, refresh=True)
    except RemoteServiceError as e:
        logger.error(f"Database error: {e}")
        await message.reply_text(f"{EMOJIS['ERROR']} Failed to fetch products. Please try again.")
        return

    context.user_data[SEARCH_KEY] = search
    context.user_data[CATEGORY_KEY] = ALL_CATEGORIES
    text, keyboard = _render_catalog(context, products)
    await message.reply_text(text, reply_markup=keyboard)


async def command_products(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    if update.callback_query:
        await update.callback_query.answer()
    await _show_products(update, context)


async def command_search(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    term = " ".join(context.args or []).strip()
    if not term:
        await update.message.reply_text(f"{EMOJIS['SEARCH']} Usage: /search <text>")
        return
    await _show_products(update, context, search=term)


async def handle_category(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    query = update.callback_query
    category = query.data.split(':', 1)[1]
    if context.user_data.get(CATEGORY_KEY) == category:
        await query.answer()
        return

    try:
        products = await _load_products(context)
    except RemoteServiceError as e:
        logger.error(f"Database error: {e}")
        await query.answer("Failed to fetch products", show_alert=True)
        return

    await query.answer()
    context.user_data[CATEGORY_KEY] = category
    text, keyboard = _render_catalog(context, products)
    await query.edit_message_text(text, reply_markup=keyboard)


async def handle_page(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    query = update.callback_query
    page = int(query.data.split(':', 1)[1])

    try:
        products = await _load_products(context)
    except RemoteServiceError as e:
        logger.error(f"Database error: {e}")
        await query.answer("Failed to fetch products", show_alert=True)
        return

    await query.answer()
    text, keyboard = _render_catalog(context, products, page=page)
    await query.edit_message_text(text, reply_markup=keyboard)


async def handle_add_to_cart(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    query = update.callback_query
    product_id = query.data.split(':', 1)[1]

    product = context.user_data.get(PRODUCTS_KEY, {}).get(product_id)
    if product is None:
        try:
            await _load_products(context, refresh=True)
        except RemoteServiceError as e:
            logger.error(f"Database error: {e}")
            await query.answer("Failed to fetch products", show_alert=True)
            return
        product = context.user_data[PRODUCTS_KEY].get(product_id)

    if product is None:
        await query.answer("This product is no longer available", show_alert=True)
        return
    if product.stock <= 0:
        await query.answer(f"{product.name} is out of stock", show_alert=True)
        return

    cart = get_cart(context)
    cart.add_item(product)
    await query.answer(f"Added {product.name} to cart ({cart.item_count} items)")
