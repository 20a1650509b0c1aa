# app/domain/errors.py
"""
Domain errors raised by the services.

Each error knows its HTTP status and a stable code, the api layer
only has to render them (see app/api/errors.py).
"""


class ShopError(Exception):
    status_code = 400
    code = "bad_request"
    message = "Request could not be processed"

    def __init__(self, message: str | None = None):
        self.message = message or self.message
        super().__init__(self.message)


# cart

class DuplicateItem(ShopError):
    code = "duplicate_item"

    def __init__(self, product_id: int):
        self.product_id = product_id
        super().__init__("Item already exists in the cart")


class ProductNotFound(ShopError):
    status_code = 404
    code = "product_not_found"

    def __init__(self, product_id: int):
        self.product_id = product_id
        super().__init__("Product not found")


class ItemNotFound(ShopError):
    status_code = 404
    code = "item_not_found"

    def __init__(self, product_id: int):
        self.product_id = product_id
        super().__init__("Item not found in the cart")


class InsufficientStock(ShopError):
    code = "insufficient_stock"

    def __init__(self, product_id: int, requested: int, available: int):
        self.product_id = product_id
        self.requested = requested
        self.available = available
        super().__init__("Requested quantity exceeds available stock")


class InvalidQuantity(ShopError):
    code = "invalid_quantity"
    message = "Quantity must be at least 1"


class CartConflict(ShopError):
    status_code = 409
    code = "cart_conflict"
    message = "Cart was modified by another request, try again"


class CartBusy(ShopError):
    status_code = 409
    code = "cart_busy"
    message = "Cart is being modified by another request, try again"


# checkout / orders

class AddressRequired(ShopError):
    code = "address_required"
    message = "Shipping address is required"


class OrderCreationFailed(ShopError):
    status_code = 500
    code = "order_creation_failed"
    message = "Failed to create order"


class OrderNotFound(ShopError):
    status_code = 404
    code = "order_not_found"
    message = "Order not found"


class OrderAccessDenied(ShopError):
    status_code = 403
    code = "order_access_denied"
    message = "Order belongs to another user"


# identity

class UserAlreadyExists(ShopError):
    code = "user_exists"
    message = "User already exists"


class InvalidCredentials(ShopError):
    code = "invalid_credentials"
    message = "Incorrect email or password"


class AuthenticationFailed(ShopError):
    status_code = 403
    code = "authentication_error"
    message = "Invalid or missing token"


class UserNotFound(ShopError):
    status_code = 404
    code = "user_not_found"
    message = "User not found"
