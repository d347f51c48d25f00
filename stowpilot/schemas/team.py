import uuid
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field

TEAM_ROLES = Literal["manager", "staff"]


class InvitationCreate(BaseModel):
    email: EmailStr
    full_name: str | None = Field(default=None, max_length=255)
    role: TEAM_ROLES
    permissions: dict[str, bool] = {}


class InvitationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    owner_id: uuid.UUID
    email: str
    full_name: str | None
    role: str
    permissions: dict
    status: str
    invited_at: datetime
    joined_at: datetime | None


class InvitationEnvelope(BaseModel):
    invitation: InvitationResponse


class InvitationListEnvelope(BaseModel):
    invitations: list[InvitationResponse]
