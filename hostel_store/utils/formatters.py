from decimal import Decimal
from typing import List, Optional

from ..models.models import CartItem, Order, Product, UserProfile
from ..store.catalog import stock_label
from .constants import DESCRIPTION_LIMIT, EMOJIS, PAYMENT_ICONS, STATUS_ICONS


def format_money(amount: Decimal) -> str:
    return f"${amount:.2f}"


def format_cart_text(items: List[CartItem], total: Decimal) -> str:
    """Format cart contents with the running total."""
    if not items:
        return f"{EMOJIS['CART']} Your cart is empty."

    cart_lines = [
        f"• {item.name}: {item.quantity} × {format_money(item.price)} = {format_money(item.subtotal)}"
        for item in items
    ]
    cart_text = f"{EMOJIS['CART']} Shopping Cart:\n" + "\n".join(cart_lines)
    cart_text += f"\n\n{EMOJIS['MONEY']} Total: {format_money(total)}"
    return cart_text


def _shorten(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[:limit - 1].rstrip() + "…"


def format_product(product: Product) -> str:
    return (
        f"{EMOJIS['PRODUCT']} {product.name} [{product.category}]\n"
        f"{_shorten(product.description, DESCRIPTION_LIMIT)}\n"
        f"{format_money(product.price)} · {stock_label(product)}"
    )


def format_product_list(products: List[Product], title: str = "Available Products",
                        page: int = 0, page_count: int = 1) -> str:
    """Format one page of the catalog; `products` holds only that page's products."""
    if not products:
        return f"{EMOJIS['SEARCH']} No products found."
    if page_count > 1:
        title = f"{title} (page {page + 1}/{page_count})"
    return f"{EMOJIS['SHOPPING']} {title}:\n\n" + "\n\n".join(format_product(p) for p in products)


def format_progress(order: Order, width: int = 10) -> str:
    filled = round(width * order.status.progress / 100)
    return "▓" * filled + "░" * (width - filled)


def format_order(order: Order) -> str:
    """Format one order with its items, status progress and total."""
    lines = [
        f"{EMOJIS['PACKAGE']} Order #{order.id[:8]} "
        f"{STATUS_ICONS[order.status]} {order.status.label}",
        f"{order.created_at:%Y-%m-%d} at {order.created_at:%H:%M}",
        f"{PAYMENT_ICONS[order.payment_method]} {order.payment_method.label}",
        "",
    ]
    for item in order.items:
        lines.append(
            f"• {item.name}: {item.quantity} × {format_money(item.price)} = {format_money(item.subtotal)}"
        )
    lines.append("")
    lines.append(f"{format_progress(order)} Placed → Processing → Delivered")
    lines.append(f"{EMOJIS['MONEY']} Total: {format_money(order.total)}")
    return "\n".join(lines)


def format_order_confirmation(order: Order) -> str:
    return (
        f"{EMOJIS['CONFIRM']} Order placed successfully!\n\n"
        f"{format_order(order)}"
    )


def format_orders(orders: List[Order]) -> str:
    if not orders:
        return f"{EMOJIS['PACKAGE']} You haven't placed any orders yet."
    return "\n\n".join(format_order(order) for order in orders)


def _or_missing(value: Optional[str]) -> str:
    return value if value is not None else "Not set"


def format_profile(profile: UserProfile, recent_orders: List[Order]) -> str:
    """Format profile details followed by a short recent-order summary."""
    text = (
        f"{EMOJIS['PERSON']} {profile.name or 'Customer'}\n\n"
        f"{EMOJIS['ID']} Customer ID: {profile.id}\n"
        f"{EMOJIS['EMAIL']} Email: {profile.email}\n"
        f"{EMOJIS['PHONE']} Phone: {_or_missing(profile.phone_number)}\n"
        f"{EMOJIS['LOCATION']} Address: {_or_missing(profile.address)}\n\n"
        f"{EMOJIS['PACKAGE']} Recent Orders:\n"
    )
    if not recent_orders:
        return text + "No orders yet."
    return text + "\n".join(
        f"• {order.created_at:%Y-%m-%d} · {order.item_count} items · "
        f"{format_money(order.total)} · {order.status.label}"
        for order in recent_orders
    )
