"""
Campaigns router: CRUD, lifecycle events, manual runs and execution history.
"""
import logging
from datetime import datetime
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import ValidationError
from sqlalchemy.orm import Session
from sqlalchemy import desc

from ..database import get_db
from ..dependencies import get_current_user, get_owned_campaign, get_owned_store
from ..errors import CampaignBusyError, CampaignNotActiveError, InvalidTransitionError
from ..models import Campaign, CampaignExecutionLog, Store, User
from ..models.campaign import CampaignStatus
from ..models.execution_log import ExecutionTrigger
from ..schemas.campaign import (
    CampaignCreate,
    CampaignEventRequest,
    CampaignResponse,
    CampaignUpdate,
    CycleResultResponse,
    ExecutionLogResponse,
    SchedulePreviewResponse,
)
from ..services import campaign_schedule
from ..services.campaign_state import CampaignEvent, allowed_events, apply
from ..services.generation_orchestrator import GenerationOrchestrator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/campaigns", tags=["campaigns"])

# Changing any of these recomputes next_execution
SCHEDULE_FIELDS = {"frequency", "schedule_time", "schedule_day", "timezone", "start_date"}


def get_orchestrator(db: Session = Depends(get_db)) -> GenerationOrchestrator:
    return GenerationOrchestrator(db)


def to_response(campaign: Campaign) -> CampaignResponse:
    response = CampaignResponse.model_validate(campaign)
    response.allowed_events = allowed_events(campaign.status)
    return response


@router.get("/", response_model=List[CampaignResponse])
def list_campaigns(
    store_id: str = Query(None),
    status: str = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List campaigns of the current user's stores."""
    query = (
        db.query(Campaign)
        .join(Store, Campaign.store_id == Store.id)
        .filter(Store.user_id == current_user.id)
    )
    if store_id:
        query = query.filter(Campaign.store_id == store_id)
    if status:
        query = query.filter(Campaign.status == status)

    campaigns = query.order_by(desc(Campaign.created_at)).offset(skip).limit(limit).all()
    return [to_response(c) for c in campaigns]


@router.get("/{campaign_id}", response_model=CampaignResponse)
def get_campaign(
    campaign_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get a single campaign by ID (must belong to current user)."""
    return to_response(get_owned_campaign(db, campaign_id, current_user))


@router.post("/", response_model=CampaignResponse, status_code=201)
def create_campaign(
    campaign: CampaignCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Create a campaign in `draft` or `active` status."""
    get_owned_store(db, campaign.store_id, current_user)

    db_campaign = Campaign(**campaign.model_dump())
    if db_campaign.status == CampaignStatus.ACTIVE.value:
        campaign_schedule.reschedule(db_campaign, datetime.utcnow())

    db.add(db_campaign)
    db.commit()
    db.refresh(db_campaign)
    logger.info(f"Created campaign {db_campaign.id} ({db_campaign.status}) for store {db_campaign.store_id}")
    return to_response(db_campaign)


@router.patch("/{campaign_id}", response_model=CampaignResponse)
def update_campaign(
    campaign_id: str,
    update: CampaignUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Update a campaign; the merged configuration is re-validated as a whole."""
    campaign = get_owned_campaign(db, campaign_id, current_user)
    if campaign.is_terminal:
        raise HTTPException(status_code=400, detail=f"Campaign is {campaign.status}")

    update_data = update.model_dump(exclude_unset=True)
    if "frequency" in update_data and "schedule_day" not in update_data:
        update_data["schedule_day"] = None  # re-derive for the new frequency

    current = {
        name: getattr(campaign, name)
        for name in CampaignCreate.model_fields
        if name != "status"
    }
    try:
        merged = CampaignCreate.model_validate({**current, **update_data, "status": "draft"})
    except ValidationError as e:
        raise HTTPException(
            status_code=422,
            detail=[{"loc": list(err["loc"]), "msg": err["msg"], "type": err["type"]} for err in e.errors()],
        )

    merged_data = merged.model_dump(exclude={"store_id", "status"})
    for key in set(update_data) | {"schedule_day"}:
        setattr(campaign, key, merged_data[key])

    if SCHEDULE_FIELDS & set(update_data) and campaign.status in (
        CampaignStatus.ACTIVE.value, CampaignStatus.PAUSED.value
    ):
        campaign_schedule.reschedule(campaign, datetime.utcnow())

    db.commit()
    db.refresh(campaign)
    return to_response(campaign)


@router.delete("/{campaign_id}")
def delete_campaign(
    campaign_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Delete a campaign and its execution log; its articles are kept."""
    campaign = get_owned_campaign(db, campaign_id, current_user)
    if campaign.is_generating:
        raise HTTPException(status_code=409, detail="A generation is in progress for this campaign")

    db.delete(campaign)
    db.commit()
    return {"message": "Campaign deleted"}


@router.post("/{campaign_id}/events", response_model=CampaignResponse)
def apply_campaign_event(
    campaign_id: str,
    request: CampaignEventRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Apply a lifecycle event (activate, pause, resume, stop, complete)."""
    campaign = get_owned_campaign(db, campaign_id, current_user)

    try:
        new_status = apply(request.event, campaign.status)
    except InvalidTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))

    campaign.status = new_status.value
    event = CampaignEvent(request.event)
    if event in (CampaignEvent.ACTIVATE, CampaignEvent.RESUME):
        campaign_schedule.reschedule(campaign, datetime.utcnow())
    elif campaign.is_terminal:
        campaign.next_execution = None

    db.commit()
    db.refresh(campaign)
    logger.info(f"Campaign {campaign.id}: {event.value} -> {campaign.status}")
    return to_response(campaign)


@router.post("/{campaign_id}/run", response_model=CycleResultResponse)
async def run_campaign_now(
    campaign_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
):
    """Generate an article now, outside the schedule."""
    get_owned_campaign(db, campaign_id, current_user)

    try:
        result = await orchestrator.run_campaign_cycle(
            campaign_id, trigger=ExecutionTrigger.MANUAL.value
        )
    except CampaignBusyError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except CampaignNotActiveError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return result.to_dict()


@router.get("/{campaign_id}/executions", response_model=List[ExecutionLogResponse])
def list_executions(
    campaign_id: str,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Execution history of a campaign, newest first."""
    get_owned_campaign(db, campaign_id, current_user)
    return (
        db.query(CampaignExecutionLog)
        .filter(CampaignExecutionLog.campaign_id == campaign_id)
        .order_by(desc(CampaignExecutionLog.execution_time))
        .offset(skip)
        .limit(limit)
        .all()
    )


@router.get("/{campaign_id}/schedule/preview", response_model=SchedulePreviewResponse)
def preview_schedule(
    campaign_id: str,
    count: int = Query(5, ge=1, le=50),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Upcoming run times (UTC) for the campaign's current schedule."""
    campaign = get_owned_campaign(db, campaign_id, current_user)
    runs = []
    if not campaign.is_terminal:
        runs = campaign_schedule.upcoming_runs(campaign, datetime.utcnow(), count=count)
    return {"campaign_id": campaign.id, "timezone": campaign.timezone or "UTC", "runs": runs}
