"""
Security utilities for the application.
This module provides password hashing and verification, JWT access token
creation and verification, and input sanitizing helpers.
"""
import re
import secrets
from typing import Optional, Union, Any, Dict
from datetime import timedelta
from jose import jwt, JWTError
from passlib.context import CryptContext
from registrar.core.config import settings
from registrar.core.logging import logger
from registrar.utils.dates import utcnow

# Password context for hashing and verification
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")


class TokenManager:
    """JWT access token management."""

    @staticmethod
    def create_access_token(
        subject: Union[str, Any],
        expires_delta: Optional[timedelta] = None,
        additional_claims: Optional[Dict[str, Any]] = None
    ) -> str:
        """
        Create a JWT access token.

        Args:
            subject: The subject to encode in the token (the username)
            expires_delta: Optional expiration time delta
            additional_claims: Optional additional claims to include

        Returns:
            Encoded JWT token
        """
        now = utcnow()
        expire = now + (expires_delta or timedelta(
            minutes=settings.security.access_token_expire_minutes
        ))

        to_encode = {
            "exp": expire,
            "iat": now,
            "sub": str(subject),
            "type": "access",
            "jti": secrets.token_hex(16),
        }

        if additional_claims:
            to_encode.update(additional_claims)

        encoded_jwt = jwt.encode(
            to_encode,
            settings.security.secret_key_str,
            algorithm=settings.security.algorithm
        )

        logger.debug(f"Created access token for subject: {subject}")
        return encoded_jwt

    @staticmethod
    def verify_token(token: str, token_type: str = "access") -> Optional[Dict[str, Any]]:
        """
        Verify and decode a JWT token.

        Args:
            token: JWT token to verify
            token_type: Expected token type

        Returns:
            Decoded token payload or None if invalid or expired
        """
        try:
            payload = jwt.decode(
                token,
                settings.security.secret_key_str,
                algorithms=[settings.security.algorithm]
            )
        except JWTError as e:
            logger.warning(f"JWT verification error: {e}")
            return None

        if payload.get("type") != token_type:
            logger.warning(f"Invalid token type: expected {token_type}, got {payload.get('type')}")
            return None

        logger.debug(f"Token verified successfully for subject: {payload.get('sub')}")
        return payload


class PasswordManager:
    """Password management utilities."""

    @staticmethod
    def verify_password(plain_password: str, hashed_password: str) -> bool:
        """
        Verify a password against a hash.

        Returns:
            True if password matches hash, False otherwise
        """
        if not plain_password or not hashed_password:
            return False
        try:
            return pwd_context.verify(plain_password, hashed_password)
        except ValueError as e:
            logger.error(f"Password verification error: {e}")
            return False

    @staticmethod
    def get_password_hash(password: str) -> str:
        """Generate a bcrypt password hash."""
        return pwd_context.hash(password)


class SecurityUtils:
    """General security utilities."""

    @staticmethod
    def generate_reset_token() -> str:
        """Generate a URL-safe password reset token."""
        return secrets.token_urlsafe(32)

    @staticmethod
    def sanitize_input(input_string: Optional[str]) -> Optional[str]:
        """
        Sanitize free-text user input.

        Trims whitespace, drops control characters and escapes angle brackets.
        Empty results become None.
        """
        if input_string is None:
            return None
        cleaned = _CONTROL_CHARS.sub("", str(input_string)).strip()
        cleaned = cleaned.replace('<', '&lt;').replace('>', '&gt;')
        return cleaned or None


def create_access_token(
    subject: Union[str, Any],
    expires_delta: Optional[timedelta] = None,
    role: Optional[str] = None,
) -> str:
    """Create an access token for a username, optionally tagging the role."""
    claims = {"role": role} if role else None
    return TokenManager.create_access_token(subject, expires_delta, claims)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return PasswordManager.verify_password(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return PasswordManager.get_password_hash(password)
