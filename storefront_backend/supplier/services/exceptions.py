# supplier/services/exceptions.py


class SupplierError(Exception):
    """Base error for supplier API / proxy failures."""


class SupplierNotConfigured(SupplierError):
    pass


class ProxyFetchError(SupplierError):
    pass


class SupplierResponseError(SupplierError):
    """The supplier answered but reported failure (success != "true")."""

    def __init__(self, message: str, payload: dict | None = None):
        super().__init__(message)
        self.payload = payload or {}
