
class ApplicationError(Exception):
    """Base class for application-specific errors."""
    pass

class ValidationError(ApplicationError):
    """Raised when a request is missing or carries an invalid required field."""
    pass

class ProductNotFoundError(ApplicationError):
    """Raised when a product is not found."""
    pass

class LoginRequiredError(ApplicationError):
    """Raised when a page is requested without a valid session."""
    pass

class DatabaseError(ApplicationError):
    """Raised for general database-related errors not specifically handled."""
    def __init__(self, message="A database error occurred.", original_exception=None):
        super().__init__(message)
        self.original_exception = original_exception

class StorageError(ApplicationError):
    """Raised when an image upload to blob storage fails."""
    def __init__(self, message="A storage error occurred.", original_exception=None):
        super().__init__(message)
        self.original_exception = original_exception

class PartialBatchError(DatabaseError):
    """
    Raised when a batch upsert fails partway through.

    `applied` holds the product ids whose upsert was confirmed before the
    failure; those writes are not rolled back.
    """
    def __init__(self, message, applied=None, failed_product_id=None, original_exception=None):
        super().__init__(message, original_exception=original_exception)
        self.applied = list(applied or [])
        self.failed_product_id = failed_product_id

class GatewayError(ApplicationError):
    """Raised by client gateways when the server rejects a request."""
    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code

class CommitInProgressError(ApplicationError):
    """Raised when a batch commit is requested while another one is outstanding."""
    pass

class CommitTimeoutError(ApplicationError):
    """Raised when a batch commit does not complete within the editor timeout."""
    pass
