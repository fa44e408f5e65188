from typing import Optional


class BillingError(Exception):
    """Base dashboard error."""
    def __init__(self, msg: str = "", **ctx):
        super().__init__(msg)
        self.msg = msg
        self.ctx = ctx

    def __str__(self):
        base = self.msg or self.__class__.__name__
        if self.ctx:
            details = ", ".join(f"{k}={v}" for k, v in self.ctx.items())
            return f"{base} [{details}]"
        return base

class TransportError(BillingError):
    """Network failure, timeout or HTTP error status from a backing service."""
    def __init__(self, msg: str = "", status: Optional[int] = None, **ctx):
        super().__init__(msg, **ctx)
        self.status = status

class MalformedResponse(BillingError):
    """Payload did not have the expected shape."""

class UserInputError(BillingError):
    """Top-up amount missing, non-numeric or not positive."""

class OrderInFlightError(BillingError):
    """An order is already being created or settled."""

class SettlementTimeout(BillingError):
    """Order stayed in "new" longer than the configured number of polls."""
