import asyncio
import logging

from ..models.models import Order, OrderStatus, PaymentMethod, items_total
from ..utils.errors import AuthenticationRequired, CheckoutInProgress, EmptyCartError
from .cart import CartStore
from .session import SessionStore

logger = logging.getLogger(__name__)


class CheckoutFlow:
    """Turns a cart into an order record.

    The cart is cleared only after the backend confirmed the insert; any
    failure leaves it exactly as it was so the user can retry. The payment
    method is recorded as a label, nothing is charged.
    """

    def __init__(self, backend, payment_delay: float = 0.0, status: OrderStatus = OrderStatus.PROCESSING):
        self.backend = backend
        self.payment_delay = payment_delay
        self.status = status
        self._in_flight = set()

    async def place_order(self, session: SessionStore, cart: CartStore, payment_method: PaymentMethod,
                          on_accepted=None) -> Order:
        """Place an order for the cart.

        `on_accepted` is awaited once the login, empty-cart and in-flight
        checks have passed, before the payment delay.
        """
        identity = session.current_identity()
        if identity is None:
            raise AuthenticationRequired("checkout")
        if cart.is_empty:
            raise EmptyCartError()
        if id(cart) in self._in_flight:
            raise CheckoutInProgress()

        items = cart.items
        self._in_flight.add(id(cart))
        try:
            if on_accepted is not None:
                await on_accepted()
            if self.payment_delay > 0:
                await asyncio.sleep(self.payment_delay)

            order = await asyncio.to_thread(
                self.backend.create_order,
                identity.user_id,
                items,
                items_total(items),
                self.status,
                payment_method,
            )
        finally:
            self._in_flight.discard(id(cart))

        cart.clear()
        logger.info(f"Order {order.id} placed by {identity.user_id}: {order.total} via {payment_method.value}")
        return order
