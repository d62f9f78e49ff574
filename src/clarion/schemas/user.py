"""User-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class UserRecord(BaseModel):
    """Validated view of a ``user_profile`` row."""

    id: str
    username: str
    user_id_handle: str
    followers_count: int = Field(..., ge=0)
    following_count: int = Field(..., ge=0)
    created_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True, extra="ignore")

    @property
    def initial(self) -> str:
        """First letter of the username, upper-cased, as shown in avatars."""
        return self.username[:1].upper() or "?"


class FollowResponse(BaseModel):
    """Result of toggling a follow."""

    user_id: str = Field(..., description="User that was followed or unfollowed")
    following: bool = Field(..., description="True if the caller now follows the user")


class FollowEdgeResponse(BaseModel):
    """One entry of a follower or following list."""

    user_id: str
    created_at: datetime | None = None


class TokenResponse(BaseModel):
    """Response returned after anonymous sign-in."""

    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(..., description="Token type (typically 'bearer')")
    user: UserRecord
