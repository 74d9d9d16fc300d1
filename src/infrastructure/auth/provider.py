"""Identity provider protocol."""

from dataclasses import dataclass
from typing import Optional, Protocol
from uuid import UUID


@dataclass
class TokenUser:
    """Authenticated caller extracted from a bearer token."""

    id: UUID
    email: Optional[str] = None
    display_name: Optional[str] = None


class IAuthProvider(Protocol):
    """Protocol for identity providers.

    Study group services trust the user id handed to them; establishing
    it is entirely the provider's job.
    """

    async def validate_token(self, token: str) -> Optional[TokenUser]:
        """
        Validate a bearer token.

        Args:
            token: The bearer token to validate

        Returns:
            TokenUser if valid, None if invalid
        """
        ...

    def create_token(self, user: TokenUser) -> str:
        """
        Create a bearer token for a user.

        Args:
            user: The user to create a token for

        Returns:
            The generated token string
        """
        ...
