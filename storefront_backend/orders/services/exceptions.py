# orders/services/exceptions.py


class PurchaseError(Exception):
    """Base purchase exception"""


class ProductUnavailableError(PurchaseError):
    pass


class OutOfStockError(PurchaseError):
    pass


class InvalidQuantityError(PurchaseError):
    pass


class OrderError(Exception):
    pass


class InvalidOrderTransitionError(OrderError):
    pass


class DuplicateRefundError(OrderError):
    pass


class InvoiceError(OrderError):
    pass
