from typing import List

from telegram import InlineKeyboardButton, InlineKeyboardMarkup

from ..models.models import CartItem, PaymentMethod, Product
from .constants import EMOJIS, PAYMENT_ICONS
from .formatters import format_money


def create_product_keyboard(products: List[Product], categories: List[str], selected: str = 'all',
                            page: int = 0, page_count: int = 1) -> InlineKeyboardMarkup:
    """Create a keyboard with category filters, an add button per product and page navigation."""
    category_row = [
        InlineKeyboardButton(
            f"• {category.capitalize()} •" if category == selected else category.capitalize(),
            callback_data=f'category:{category}'
        )
        for category in categories
    ]
    keyboard = [category_row[i:i + 3] for i in range(0, len(category_row), 3)]
    keyboard += [
        [InlineKeyboardButton(
            f"{EMOJIS['CART']} Add {product.name} - {format_money(product.price)}",
            callback_data=f'add:{product.id}'
        )]
        for product in products
    ]
    if page_count > 1:
        nav_row = []
        if page > 0:
            nav_row.append(InlineKeyboardButton(f"{EMOJIS['PREV']} Prev", callback_data=f'page:{page - 1}'))
        nav_row.append(InlineKeyboardButton(f"{page + 1}/{page_count}", callback_data='noop'))
        if page < page_count - 1:
            nav_row.append(InlineKeyboardButton(f"Next {EMOJIS['NEXT']}", callback_data=f'page:{page + 1}'))
        keyboard.append(nav_row)
    keyboard.append([InlineKeyboardButton(f"{EMOJIS['SHOPPING']} View Cart", callback_data='view_cart')])
    return InlineKeyboardMarkup(keyboard)


def create_cart_keyboard(items: List[CartItem], selected_payment: PaymentMethod) -> InlineKeyboardMarkup:
    """Create per-item quantity controls, payment choice and checkout buttons."""
    keyboard = []
    for item in items:
        keyboard.append([InlineKeyboardButton(f"{item.name} × {item.quantity}", callback_data='noop')])
        keyboard.append([
            InlineKeyboardButton(EMOJIS['MINUS'], callback_data=f'cart_dec:{item.id}'),
            InlineKeyboardButton(EMOJIS['PLUS'], callback_data=f'cart_inc:{item.id}'),
            InlineKeyboardButton(EMOJIS['TRASH'], callback_data=f'cart_remove:{item.id}'),
        ])

    for method in PaymentMethod:
        mark = EMOJIS['CONFIRM'] if method is selected_payment else PAYMENT_ICONS[method]
        keyboard.append([InlineKeyboardButton(f"{mark} {method.label}", callback_data=f'payment:{method.value}')])

    keyboard.append([
        InlineKeyboardButton(f"{EMOJIS['SHOPPING']} Place Order", callback_data='checkout'),
        InlineKeyboardButton(f"{EMOJIS['TRASH']} Clear", callback_data='cart_clear'),
    ])
    return InlineKeyboardMarkup(keyboard)


def create_main_menu_keyboard(signed_in: bool, cart_count: int = 0) -> InlineKeyboardMarkup:
    """Create the main menu keyboard."""
    cart_label = f"{EMOJIS['CART']} Cart ({cart_count})" if cart_count else f"{EMOJIS['CART']} Cart"
    keyboard = [
        [InlineKeyboardButton(f"{EMOJIS['SHOPPING']} Products", callback_data='view_products')],
        [InlineKeyboardButton(cart_label, callback_data='view_cart')],
    ]
    if signed_in:
        keyboard.append([
            InlineKeyboardButton(f"{EMOJIS['PACKAGE']} Orders", callback_data='view_orders'),
            InlineKeyboardButton(f"{EMOJIS['PERSON']} Profile", callback_data='view_profile'),
        ])
    else:
        keyboard.append([
            InlineKeyboardButton(f"{EMOJIS['KEY']} Log In", callback_data='login'),
            InlineKeyboardButton(f"{EMOJIS['PLUS']} Register", callback_data='register'),
        ])
    return InlineKeyboardMarkup(keyboard)


def create_profile_keyboard() -> InlineKeyboardMarkup:
    keyboard = [
        [InlineKeyboardButton(f"{EMOJIS['EDIT']} Edit Contact Info", callback_data='edit_profile')],
        [InlineKeyboardButton(f"{EMOJIS['PACKAGE']} View All Orders", callback_data='view_orders')],
    ]
    return InlineKeyboardMarkup(keyboard)
