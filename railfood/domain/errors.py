# railfood/domain/errors.py
from typing import Dict, Optional


class ApiError(RuntimeError):
    """Blad zwrocony przez backend albo przez warstwe sieciowa."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class CheckoutValidationError(ValueError):
    """Formularz dostawy ma bledy; field_errors zawiera jeden wpis na pole."""

    def __init__(self, field_errors: Dict[str, str]):
        super().__init__("Please correct the form errors")
        self.field_errors = dict(field_errors)


class EmptyCartError(ValueError):
    def __init__(self, message: str = "Your cart is empty. Add items to proceed."):
        super().__init__(message)


class TransitionNotAllowed(ValueError):
    def __init__(self, current, requested, role):
        super().__init__(
            f"Transition {current} -> {requested} is not allowed for role {role}"
        )
        self.current = current
        self.requested = requested
        self.role = role


class LoadCancelled(RuntimeError):
    """Widok zostal zamkniety zanim ponowne ladowanie sie wykonalo."""
