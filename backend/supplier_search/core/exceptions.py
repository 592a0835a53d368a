"""Custom exception classes for supplier search."""


class SupplierSearchException(Exception):
    """Base exception for all supplier search errors."""

    def __init__(self, message: str = "An unexpected error occurred"):
        self.message = message
        super().__init__(self.message)


class AdapterError(SupplierSearchException):
    """Raised when a source adapter fails to fetch or parse results."""

    def __init__(self, supplier: str, message: str):
        self.supplier = supplier
        super().__init__(f"Adapter error for {supplier}: {message}")


class ConfigurationError(SupplierSearchException):
    """Raised when an adapter is invoked without its required settings."""

    def __init__(self, supplier: str, setting: str):
        self.supplier = supplier
        self.setting = setting
        super().__init__(f"{supplier} is not configured: {setting} is not set")


class EstimateParseError(SupplierSearchException):
    """Raised when a generative model response holds no usable JSON array."""

    def __init__(self, provider: str, message: str):
        self.provider = provider
        super().__init__(f"Could not parse {provider} estimate: {message}")
