"""Custom exceptions for the order desk application."""

class OrderDeskError(Exception):
    """Base exception for all application errors."""
    def __init__(self, message="An internal error occurred", status_code=500, payload=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

    def to_dict(self):
        rv = dict(self.payload or ())
        rv['message'] = self.message
        rv['status'] = 'error'
        return rv

class ValidationError(OrderDeskError):
    """Raised at the mutation boundary when user input can't be accepted."""
    def __init__(self, message, status_code=400, payload=None):
        super().__init__(message, status_code, payload)

class NotFoundError(OrderDeskError):
    """Exception raised when a resource is not found."""
    def __init__(self, message="Resource not found", payload=None):
        super().__init__(message, 404, payload)

class InvalidQuantityError(ValidationError):
    """Raised when a cart line gets a zero, negative or fractional quantity."""
    def __init__(self, product_name, quantity):
        message = f"A quantidade de {product_name} deve ser positiva (recebido: {quantity})"
        super().__init__(message, payload={'field': 'quantity'})

class OrderNotReadyError(ValidationError):
    """Raised when an order is missing data needed before it can be priced and sent."""
    def __init__(self, problems):
        self.problems = list(problems)
        super().__init__('; '.join(self.problems), payload={'problems': self.problems})
