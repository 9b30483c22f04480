"""
Event Routes
Event catalogue, creation and registration
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from portal.auth import SessionIdentity, get_current_identity, require_roles
from portal.roles import Role
from portal.schemas.event import (
    CreateEventRequest,
    EventResponse,
    EventRegisterRequest,
    EventRegisterResponse,
)
from portal.services import Services, get_services

router = APIRouter()

get_event_creator = require_roles(Role.GLOBAL_ADMIN, Role.STATE_ADMIN, Role.DISTRICT_ADMIN)


@router.get("", response_model=list[EventResponse])
async def list_events(
    state_id: Optional[int] = Query(None, alias="stateId"),
    services: Services = Depends(get_services)
):
    """Active events ordered by date"""
    return await services.events.list_events(state_id)


@router.get("/{event_id}", response_model=EventResponse)
async def get_event(event_id: int, services: Services = Depends(get_services)):
    return await services.events.get_event(event_id)


@router.post("", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
async def create_event(
    request: CreateEventRequest,
    identity: SessionIdentity = Depends(get_event_creator),
    services: Services = Depends(get_services)
):
    """
    Create an event

    State admins may only create events in their own state, district
    admins only in their own district.
    """
    return await services.events.create_event(identity, request)


@router.post("/{event_id}/register", response_model=EventRegisterResponse, status_code=status.HTTP_201_CREATED)
async def register_for_event(
    event_id: int,
    request: Optional[EventRegisterRequest] = None,
    identity: SessionIdentity = Depends(get_current_identity),
    services: Services = Depends(get_services)
):
    request = request or EventRegisterRequest()
    registration_id = await services.events.register_for(
        identity, event_id, member_id=request.member_id, suit_size=request.suit_size
    )
    return EventRegisterResponse(
        status="success",
        message="Registered. Complete payment to confirm your place.",
        registration_id=registration_id,
    )
