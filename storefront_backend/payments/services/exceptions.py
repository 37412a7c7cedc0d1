# payments/services/exceptions.py


class DepositError(Exception):
    pass


class DepositAmountError(DepositError):
    pass


class DepositNotFound(DepositError):
    pass


class PaymentVerificationError(DepositError):
    pass


class PayPalError(RuntimeError):
    """Transport/API failure talking to PayPal."""


class PaymentPendingError(PaymentVerificationError):
    """PayPal accepted the payment but the capture has not settled yet."""
