class StoreError(Exception):
    """Base class for errors surfaced to the user as a notification."""

    pass


class AuthenticationRequired(StoreError):
    def __init__(self, action: str = 'continue'):
        self.action = action
        super().__init__(f"Please log in to {action}")


class AuthError(StoreError):
    """Raised by the data service for bad credentials or sessions."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


class RemoteServiceError(StoreError):
    """Any other failure from the data service."""

    pass


class EmptyCartError(StoreError):
    def __init__(self):
        super().__init__("Your cart is empty")


class CheckoutInProgress(StoreError):
    def __init__(self):
        super().__init__("Your order is already being processed")
