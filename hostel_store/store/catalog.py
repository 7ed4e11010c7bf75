from typing import List, Tuple

from ..models.models import Product

ALL_CATEGORIES = 'all'


def filter_products(products: List[Product], search: str = '', category: str = ALL_CATEGORIES) -> List[Product]:
    """Match search text against name or description, then narrow by category."""
    term = (search or '').strip().lower()
    return [
        product for product in products
        if (term in product.name.lower() or term in product.description.lower())
        and (category == ALL_CATEGORIES or product.category == category)
    ]


def list_categories(products: List[Product]) -> List[str]:
    categories = [ALL_CATEGORIES]
    for product in products:
        if product.category and product.category not in categories:
            categories.append(product.category)
    return categories


def stock_label(product: Product) -> str:
    if product.stock > 0:
        return f"{product.stock} in stock"
    return "Out of stock"


def paginate(products: List[Product], page: int, per_page: int) -> Tuple[List[Product], int, int]:
    """Return the products on `page` with the clamped page number and page count."""
    page_count = max(1, -(-len(products) // per_page))
    page = min(max(page, 0), page_count - 1)
    start = page * per_page
    return products[start:start + per_page], page, page_count
