"""
Authentication Use Cases

Login and refresh, shared by every role.
"""

from .login_use_case import LoginUseCase
from .refresh_token_use_case import RefreshTokenUseCase

__all__ = [
    "LoginUseCase",
    "RefreshTokenUseCase",
]
