import logging
import uuid
from datetime import datetime, timezone

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from stowpilot.core.database import get_db
from stowpilot.core.deps import get_current_user, require_owner
from stowpilot.models.profile import Profile, TeamMember
from stowpilot.schemas.common import DeleteResponse
from stowpilot.schemas.team import (
    InvitationCreate,
    InvitationEnvelope,
    InvitationListEnvelope,
    InvitationResponse,
)
from stowpilot.services.mailer import send_invitation_email
from stowpilot.services.ownership import get_owned, scoped

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/team/invitations", tags=["team"])


@router.get("", response_model=InvitationListEnvelope)
async def list_invitations(
    status_filter: str | None = Query(default=None, alias="status"),
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    stmt = scoped(TeamMember, user.id).order_by(TeamMember.invited_at.desc())
    if status_filter:
        stmt = stmt.where(TeamMember.status == status_filter)
    result = await db.execute(stmt)
    return {"invitations": [InvitationResponse.model_validate(m) for m in result.scalars().all()]}


@router.post("", response_model=InvitationEnvelope, status_code=201)
async def create_invitation(
    payload: InvitationCreate,
    background_tasks: BackgroundTasks,
    owner: Profile = Depends(require_owner),
    db: AsyncSession = Depends(get_db),
):
    email = payload.email.strip().lower()
    existing = await db.execute(
        scoped(TeamMember, owner.id).where(
            func.lower(TeamMember.email) == email,
            TeamMember.status.in_(("active", "pending")),
        )
    )
    for member in existing.scalars().all():
        if member.status == "active":
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="This user is already a team member")
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="An invitation has already been sent to this email",
        )

    member = TeamMember(
        owner_id=owner.id,
        email=email,
        full_name=payload.full_name,
        role=payload.role,
        permissions=payload.permissions,
        status="pending",
    )
    db.add(member)
    # the invitation link must point at a committed row before it is mailed
    await db.commit()
    await db.refresh(member)
    logger.info("Owner %s invited %s as %s", owner.id, member.id, member.role)

    background_tasks.add_task(
        send_invitation_email,
        member.email,
        member.id,
        inviter=owner.full_name or owner.email,
        role=member.role,
        business_name=owner.business_name,
    )
    return {"invitation": InvitationResponse.model_validate(member)}


@router.post("/{invitation_id}/accept", response_model=InvitationEnvelope)
async def accept_invitation(
    invitation_id: uuid.UUID,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    # the invitee is not the owner, so this lookup is by id and recipient rather than owner
    member = await db.get(TeamMember, invitation_id)
    if member is None or member.status != "pending":
        raise HTTPException(status_code=404, detail="Invitation not found")
    if member.email.lower() != user.email.lower():
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="This invitation was sent to a different email address",
        )

    member.status = "active"
    member.joined_at = datetime.now(timezone.utc)
    if member.full_name is None:
        member.full_name = user.full_name
    if user.role != "owner":
        user.role = member.role

    await db.flush()
    await db.refresh(member)
    return {"invitation": InvitationResponse.model_validate(member)}


@router.delete("/{invitation_id}", response_model=DeleteResponse)
async def cancel_invitation(
    invitation_id: uuid.UUID,
    owner: Profile = Depends(require_owner),
    db: AsyncSession = Depends(get_db),
):
    member = await get_owned(db, TeamMember, invitation_id, owner.id)
    if member.status != "pending":
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Can only cancel pending invitations",
        )
    await db.delete(member)
    await db.flush()
    return {"success": True}
