from .auth_schemas import (
    LoginRequest, TokenResponse, UserCreate, UserResponse,
    PasswordResetRequest, PasswordResetConfirm
)

__all__ = [
    'LoginRequest', 'TokenResponse', 'UserCreate', 'UserResponse',
    'PasswordResetRequest', 'PasswordResetConfirm'
]
