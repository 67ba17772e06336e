from datetime import datetime, timezone
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class TokenPair(BaseModel):
    model_config = ConfigDict(frozen=True)

    access_token: str
    refresh_token: Optional[str] = None


class TokenResponse(BaseModel):
    """
    AuthServer token endpoint payload.

    AuthServer has shipped both OAuth2 snake_case and camelCase field names;
    both are accepted here and only the snake_case attributes are used past this model.
    """

    model_config = ConfigDict(extra="ignore")

    access_token: Optional[str] = Field(None, validation_alias=AliasChoices("access_token", "accessToken"))
    refresh_token: Optional[str] = Field(None, validation_alias=AliasChoices("refresh_token", "refreshToken"))
    expires_in: Optional[int] = Field(None, validation_alias=AliasChoices("expires_in", "expiresIn"))
    token_type: Optional[str] = Field(None, validation_alias=AliasChoices("token_type", "tokenType"))


class TokenClaims(BaseModel):
    """Result of decoding an access token. `is_valid` is False for malformed tokens."""

    model_config = ConfigDict(frozen=True)

    is_valid: bool = False
    subject: Optional[str] = None
    role: Optional[str] = None
    user_id: Optional[str] = None
    expires_at: Optional[datetime] = None

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        if self.expires_at is None:
            return False
        return (now or datetime.now(timezone.utc)) >= self.expires_at


class Principal(BaseModel):
    model_config = ConfigDict(frozen=True)

    username: str
    role: str
    user_id: Optional[str] = None
    expires_at: Optional[datetime] = None


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)
