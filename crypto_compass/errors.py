"""Error taxonomy shared by the client, calculators and dashboard."""


class CompassError(Exception):
    """Base exception; carries a user-facing message and a stable code."""

    def __init__(self, message: str, code: str = "COMPASS_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class FetchFailure(CompassError):
    """Network error or non-success response from the market-data API."""

    def __init__(self, message: str = "Failed to fetch cryptocurrency data", status=None):
        self.status = status
        super().__init__(message, code="FETCH_FAILURE")


class InsufficientData(CompassError):
    """Fewer than two historical samples for the requested window."""

    def __init__(self, count: int):
        self.count = count
        super().__init__(f"Insufficient price data: got {count} sample(s), need at least 2",
                         code="INSUFFICIENT_DATA")


class InvalidPrice(CompassError):
    def __init__(self, price):
        self.price = price
        super().__init__(f"Cannot simulate from a starting price of {price!r}", code="INVALID_PRICE")


class InvalidAmount(CompassError):
    def __init__(self, amount):
        self.amount = amount
        super().__init__(f"Investment amount must be a positive number, got {amount!r}",
                         code="INVALID_AMOUNT")
