class RecipeManagerError(Exception):
    pass


class ConfigError(RecipeManagerError):
    pass


class NotLoggedInError(RecipeManagerError):
    def __init__(self, message: str = "Please log in first") -> None:
        super().__init__(message)


class AuthError(RecipeManagerError):
    """Raised by the auth server for requests it rejects."""

    status_code = 400

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class RegistrationError(AuthError):
    pass


class DuplicateEmailError(RegistrationError):
    status_code = 409

    def __init__(self) -> None:
        super().__init__("Email is already registered")


class InvalidCredentialsError(AuthError):
    status_code = 401

    def __init__(self) -> None:
        super().__init__("Invalid credentials")
