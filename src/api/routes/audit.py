"""
Audit API Routes

Handles audit event retrieval endpoints.
"""

from typing import Any, Dict, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel

from src.api.error import raise_for_error
from src.app.services.token_codec import TokenClaims
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.audit import GetAuditEventsUseCase
from src.depends import get_current_account, get_unit_of_work
from src.domain.entities import AuditEventType

router = APIRouter(prefix="/audit", tags=["Audit"])


class AuditEventResponse(BaseModel):
    """Single audit event in response"""

    id: str
    event_type: str
    account_id: Optional[str]
    session_id: Optional[str]
    timestamp: str
    detail: Dict[str, Any]


class AuditEventsResponse(BaseModel):
    """GET /audit/events response payload"""

    events: List[AuditEventResponse]
    next_cursor: Optional[str]


@router.get(
    "/events",
    status_code=status.HTTP_200_OK,
    response_model=AuditEventsResponse,
)
async def get_audit_events(
    current_account: TokenClaims = Depends(get_current_account),
    uow: UnitOfWork = Depends(get_unit_of_work),
    account_id: Optional[UUID] = Query(None, description="Filter by account"),
    session_id: Optional[UUID] = Query(None, description="Filter by session"),
    event_type: Optional[AuditEventType] = Query(None, description="Filter by event type"),
    limit: int = Query(50, ge=1, le=100, description="Maximum number of events to return"),
    cursor: Optional[str] = Query(None, description="Pagination cursor"),
):
    """
    Get Session Audit Events

    Returns login, rotation, rejection and revocation events.
    Only accessible by administrators.

    Returns:
        - events: List of audit events ordered by newest first
        - next_cursor: Cursor for next page (null if no more events)

    Raises:
        - 401 Unauthorized: Invalid or expired access token
        - 403 Forbidden: Caller is not an administrator
        - 500 Internal Server Error: Server error
    """
    use_case = GetAuditEventsUseCase(uow)
    result = await use_case.execute(
        role=current_account.role.value,
        account_id=account_id,
        session_id=session_id,
        event_type=event_type,
        limit=limit,
        cursor=cursor,
    )

    if result.is_err():
        raise_for_error(result.error)

    return result.value
