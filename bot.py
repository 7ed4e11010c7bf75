import logging

from dotenv import load_dotenv
from telegram import Update
from telegram.ext import (
    Application, CallbackQueryHandler, CommandHandler, ContextTypes, ConversationHandler, MessageHandler,
    PersistenceInput, PicklePersistence, filters,
)

from hostel_store.database.database import Database
from hostel_store.handlers.auth_handlers import (
    cancel, command_login, command_logout, command_register, handle_login_email, handle_login_password,
    handle_register_email, handle_register_password,
)
from hostel_store.handlers.cart_handlers import command_cart, handle_cart_action, handle_checkout
from hostel_store.handlers.order_handlers import command_orders
from hostel_store.handlers.product_handlers import (
    command_products, command_search, handle_add_to_cart, handle_category, handle_page, start,
)
from hostel_store.handlers.profile_handlers import (
    command_edit_profile, command_profile, handle_profile_address, handle_profile_name, handle_profile_phone,
    skip_profile_address, skip_profile_name, skip_profile_phone,
)
from hostel_store.store.checkout import CheckoutFlow
from hostel_store.utils.config import Settings, load_settings
from hostel_store.utils.constants import (
    CHECKOUT_KEY, DB_KEY, LOGIN_EMAIL, LOGIN_PASSWORD, PROFILE_ADDRESS, PROFILE_NAME, PROFILE_PHONE,
    REGISTER_EMAIL, REGISTER_PASSWORD, SETTINGS_KEY,
)

logger = logging.getLogger(__name__)

TEXT = filters.TEXT & ~filters.COMMAND


async def ignore(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    await update.callback_query.answer()


async def error_handler(update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
    logger.error("Unhandled error while processing an update", exc_info=context.error)


def build_application(settings: Settings) -> Application:
    builder = Application.builder().token(settings.bot_token)
    if settings.persistence_file:
        # Database and checkout flow are rebuilt on every start
        builder = builder.persistence(PicklePersistence(
            filepath=settings.persistence_file,
            store_data=PersistenceInput(bot_data=False, chat_data=False, callback_data=False),
        ))
    application = builder.build()

    db = Database(settings.database_url, session_ttl=settings.session_ttl)
    application.bot_data[DB_KEY] = db
    application.bot_data[CHECKOUT_KEY] = CheckoutFlow(db, payment_delay=settings.payment_delay)
    application.bot_data[SETTINGS_KEY] = settings

    auth_handler = ConversationHandler(
        entry_points=[
            CommandHandler('login', command_login),
            CommandHandler('register', command_register),
            CallbackQueryHandler(command_login, pattern='^login$'),
            CallbackQueryHandler(command_register, pattern='^register$'),
        ],
        states={
            LOGIN_EMAIL: [MessageHandler(TEXT, handle_login_email)],
            LOGIN_PASSWORD: [MessageHandler(TEXT, handle_login_password)],
            REGISTER_EMAIL: [MessageHandler(TEXT, handle_register_email)],
            REGISTER_PASSWORD: [MessageHandler(TEXT, handle_register_password)],
        },
        fallbacks=[CommandHandler('cancel', cancel)],
        allow_reentry=True
    )

    profile_handler = ConversationHandler(
        entry_points=[
            CommandHandler('edit_profile', command_edit_profile),
            CallbackQueryHandler(command_edit_profile, pattern='^edit_profile$'),
        ],
        states={
            PROFILE_NAME: [MessageHandler(TEXT, handle_profile_name), CommandHandler('skip', skip_profile_name)],
            PROFILE_PHONE: [MessageHandler(TEXT, handle_profile_phone), CommandHandler('skip', skip_profile_phone)],
            PROFILE_ADDRESS: [
                MessageHandler(TEXT, handle_profile_address),
                CommandHandler('skip', skip_profile_address)
            ],
        },
        fallbacks=[CommandHandler('cancel', cancel)],
        allow_reentry=True
    )

    # Conversations first so their text steps win over the plain handlers
    application.add_handler(auth_handler)
    application.add_handler(profile_handler)

    application.add_handler(CommandHandler("start", start))
    application.add_handler(CommandHandler("products", command_products))
    application.add_handler(CommandHandler("search", command_search))
    application.add_handler(CommandHandler("cart", command_cart))
    application.add_handler(CommandHandler("orders", command_orders))
    application.add_handler(CommandHandler("profile", command_profile))
    application.add_handler(CommandHandler("logout", command_logout))

    application.add_handler(CallbackQueryHandler(command_products, pattern='^view_products$'))
    application.add_handler(CallbackQueryHandler(command_cart, pattern='^view_cart$'))
    application.add_handler(CallbackQueryHandler(command_orders, pattern='^view_orders$'))
    application.add_handler(CallbackQueryHandler(command_profile, pattern='^view_profile$'))
    application.add_handler(CallbackQueryHandler(handle_category, pattern='^category:'))
    application.add_handler(CallbackQueryHandler(handle_page, pattern=r'^page:\d+$'))
    application.add_handler(CallbackQueryHandler(handle_add_to_cart, pattern='^add:'))
    application.add_handler(CallbackQueryHandler(
        handle_cart_action, pattern='^(cart_inc:|cart_dec:|cart_remove:|cart_clear$|payment:)'
    ))
    application.add_handler(CallbackQueryHandler(handle_checkout, pattern='^checkout$'))
    application.add_handler(CallbackQueryHandler(ignore, pattern='^noop$'))

    application.add_error_handler(error_handler)
    return application


def main():
    load_dotenv()
    settings = load_settings()

    # Enable logging
    logging.basicConfig(format='%(asctime)s - %(name)s - %(levelname)s - %(message)s', level=settings.log_level)
    logging.getLogger("httpx").setLevel(logging.WARNING)

    application = build_application(settings)

    logger.info("Starting bot...")
    application.run_polling(allowed_updates=Update.ALL_TYPES)


if __name__ == '__main__':
    main()
