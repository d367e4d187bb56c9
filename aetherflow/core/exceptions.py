class AppError(Exception):
    code = "APP_ERROR"

    def __init__(self, message: str, status_code: int = 400, code: str | None = None):
        self.message = message
        self.status_code = status_code
        if code is not None:
            self.code = code
        super().__init__(message)


class ValidationError(AppError):
    code = "VALIDATION_ERROR"

    def __init__(self, message: str):
        super().__init__(message, status_code=400)


class NotFoundError(AppError):
    code = "RESOURCE_NOT_FOUND"

    def __init__(self, entity: str, id: str):
        super().__init__(f"{entity} not found: {id}", status_code=404)


class ForbiddenError(AppError):
    code = "FORBIDDEN"

    def __init__(self, message: str = "Forbidden"):
        super().__init__(message, status_code=403)


class DuplicateCredentialError(AppError):
    code = "DUPLICATE_CREDENTIAL"

    def __init__(self, provider: str):
        super().__init__(f"An API key for {provider} already exists", status_code=409)
        self.provider = provider


class InvalidCredentialError(AppError):
    code = "INVALID_CREDENTIAL"

    def __init__(self, provider: str, reason: str):
        super().__init__(f"{provider} rejected the API key: {reason}", status_code=400)
        self.provider = provider


class DecryptionError(AppError):
    """Stored ciphertext could not be decrypted (corrupted data or rotated key)."""

    code = "DECRYPTION_FAILURE"

    def __init__(self, message: str = "Stored API key could not be decrypted"):
        super().__init__(message, status_code=500)


class OptimizationError(AppError):
    code = "OPTIMIZATION_FAILURE"

    def __init__(self, provider: str, message: str):
        super().__init__(f"Provider {provider} failed: {message}", status_code=502)
        self.provider = provider


class ConfigurationError(AppError):
    code = "CONFIGURATION_ERROR"

    def __init__(self, message: str):
        super().__init__(message, status_code=500)
