from ..models.models import OrderStatus, PaymentMethod

# Conversation states
LOGIN_EMAIL, LOGIN_PASSWORD, REGISTER_EMAIL, REGISTER_PASSWORD, PROFILE_NAME, PROFILE_PHONE, PROFILE_ADDRESS = range(7)

# Typed in a profile step to clear that field
CLEAR_FIELD = '-'

# Emojis for UI elements
EMOJIS = {
    'CART': '🛒',
    'MONEY': '💰',
    'PRODUCT': '💠',
    'CONFIRM': '✅',
    'WARNING': '⚠️',
    'ERROR': '❌',
    'PERSON': '👤',
    'LOCATION': '📍',
    'PHONE': '📞',
    'EMAIL': '📧',
    'ID': '🆔',
    'SHOPPING': '🛍️',
    'PACKAGE': '📦',
    'ARROW': '🔽',
    'WAVE': '👋',
    'PLUS': '➕',
    'MINUS': '➖',
    'TRASH': '🗑️',
    'SEARCH': '🔍',
    'EDIT': '✏️',
    'KEY': '🔑',
    'PREV': '◀️',
    'NEXT': '▶️',
}

PAYMENT_ICONS = {
    PaymentMethod.CASH_ON_DELIVERY: '🚚',
    PaymentMethod.MOBILE_WALLET_TRANSFER: '📱',
    PaymentMethod.CARD: '💳',
}

STATUS_ICONS = {
    OrderStatus.PENDING: '🕒',
    OrderStatus.PROCESSING: '⏳',
    OrderStatus.DELIVERED: '✅',
}

DEFAULT_PAYMENT_METHOD = PaymentMethod.CASH_ON_DELIVERY

# Catalog paging; keeps each catalog message under Telegram's 4096 character limit
PRODUCTS_PER_PAGE = 8
DESCRIPTION_LIMIT = 160

# Keys in context.user_data
CART_KEY = 'cart'
SESSION_KEY = 'session'
PRODUCTS_KEY = 'products'
PAYMENT_KEY = 'payment_method'
CATEGORY_KEY = 'category'
SEARCH_KEY = 'search'
PROFILE_DRAFT_KEY = 'profile_draft'
EMAIL_KEY = 'email'

# Keys in context.bot_data
DB_KEY = 'db'
CHECKOUT_KEY = 'checkout'
SETTINGS_KEY = 'settings'
