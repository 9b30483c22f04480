"""
Event Service
Event catalogue and member registration
"""

from datetime import datetime
from typing import Callable, Optional
import logging
from databases import Database
from sqlalchemy import and_
from portal.auth import SessionIdentity
from portal.database import row_to_dict
from portal.errors import (
    AlreadyRegisteredError,
    ForbiddenError,
    IneligibleError,
    NotFoundError,
    RegistrationClosedError,
)
from portal.models import Account, Event, EventRegistration
from portal.roles import Role, AccountStatus
from portal.schemas.event import CreateEventRequest, EventLevel, JURISDICTION_FREE_LEVELS

logger = logging.getLogger(__name__)

accounts = Account.__table__
events = Event.__table__
registrations = EventRegistration.__table__

# The unique constraint on (member_id, event_id) is the real guard; the
# existence check before it only gives a faster answer.
INSERT_REGISTRATION = """
INSERT INTO event_registrations (member_id, event_id, level, suit_size)
VALUES (:member_id, :event_id, :level, :suit_size)
ON CONFLICT (member_id, event_id) DO NOTHING
RETURNING id
"""


class EventService:
    """Service for events and event registrations"""

    def __init__(self, database: Database, clock: Callable[[], datetime] = datetime.utcnow):
        self.database = database
        self.clock = clock

    async def _get_account(self, account_id: int) -> Optional[dict]:
        row = await self.database.fetch_one(accounts.select().where(accounts.c.id == account_id))
        return row_to_dict(row, accounts)

    async def get_event(self, event_id: int) -> dict:
        row = await self.database.fetch_one(events.select().where(events.c.id == event_id))
        event = row_to_dict(row, events)
        if event is None:
            raise NotFoundError("Event not found")
        return event

    async def create_event(self, identity: SessionIdentity, data: CreateEventRequest) -> dict:
        """
        Create an event inside the creator's jurisdiction

        Global admins may create anywhere, state admins in their state,
        district admins in their district.
        """
        creator = await self._get_account(identity.account_id)
        if creator is None or creator["status"] != AccountStatus.ACTIVE.value:
            raise ForbiddenError("Only active administrators can create events")

        role = Role(creator["role"])
        if role == Role.GLOBAL_ADMIN:
            allowed = True
        elif role == Role.STATE_ADMIN:
            allowed = data.state_id == creator["state_id"]
        elif role == Role.DISTRICT_ADMIN:
            allowed = (
                data.state_id == creator["state_id"]
                and data.district_id == creator["district_id"]
            )
        else:
            allowed = False

        if not allowed:
            raise ForbiddenError("Event is outside your jurisdiction")

        event_id = await self.database.fetch_val(
            events.insert()
            .values(
                name=data.name,
                description=data.description,
                venue=data.venue,
                event_date=data.event_date,
                reg_start_date=data.reg_start_date,
                reg_end_date=data.reg_end_date,
                state_id=data.state_id,
                district_id=data.district_id,
                level=data.level.value,
                fee=data.fee,
                status="active",
                created_by=creator["id"],
            )
            .returning(events.c.id)
        )
        logger.info("Account %s created event %s", creator["id"], event_id)
        return await self.get_event(event_id)

    async def list_events(self, state_id: Optional[int] = None) -> list[dict]:
        """Active events ordered by date, optionally for one state"""
        query = events.select().where(events.c.status == "active")
        if state_id is not None:
            query = query.where(events.c.state_id == state_id)
        rows = await self.database.fetch_all(query.order_by(events.c.event_date, events.c.id))
        return [row_to_dict(row, events) for row in rows]

    @staticmethod
    def is_eligible(member: dict, event: dict) -> bool:
        """Jurisdiction match, waived for national and higher events"""
        if EventLevel(event["level"]) in JURISDICTION_FREE_LEVELS:
            return True
        if member["state_id"] != event["state_id"]:
            return False
        if event["district_id"] and member["district_id"] != event["district_id"]:
            return False
        return True

    async def register(self, member_id: int, event_id: int, suit_size: Optional[str] = None) -> int:
        """
        Record an unpaid registration of a member for an event

        Returns:
            Registration id

        Raises:
            NotFoundError, RegistrationClosedError, IneligibleError, AlreadyRegisteredError
        """
        event = await self.get_event(event_id)
        member = await self._get_account(member_id)
        if member is None or Role(member["role"]) != Role.MEMBER:
            raise NotFoundError("Member not found")

        now = self.clock()
        if event["status"] != "active" or now > event["reg_end_date"]:
            raise RegistrationClosedError()
        if now < event["reg_start_date"]:
            raise RegistrationClosedError("Registration has not opened yet")

        if member["status"] != AccountStatus.ACTIVE.value or not member["verified"]:
            raise IneligibleError("Member account is not active")
        if not self.is_eligible(member, event):
            raise IneligibleError()

        if await self.get_registration(member_id, event_id):
            raise AlreadyRegisteredError()

        registration_id = await self.database.fetch_val(
            INSERT_REGISTRATION,
            {
                "member_id": member_id,
                "event_id": event_id,
                "level": event["level"],
                "suit_size": suit_size,
            },
        )
        if registration_id is None:
            raise AlreadyRegisteredError()

        logger.info("Member %s registered for event %s", member_id, event_id)
        return registration_id

    async def register_for(
        self,
        identity: SessionIdentity,
        event_id: int,
        member_id: Optional[int] = None,
        suit_size: Optional[str] = None
    ) -> int:
        """
        Register on behalf of the caller

        Members register themselves; club admins may register members of their club.
        """
        if member_id is None or member_id == identity.account_id:
            return await self.register(identity.account_id, event_id, suit_size)

        if identity.role != Role.CLUB_ADMIN:
            raise ForbiddenError("You can only register yourself")

        caller = await self._get_account(identity.account_id)
        member = await self._get_account(member_id)
        if member is None:
            raise NotFoundError("Member not found")
        if caller is None or caller["club_id"] is None or member["club_id"] != caller["club_id"]:
            raise ForbiddenError("Member does not belong to your club")

        return await self.register(member_id, event_id, suit_size)

    async def get_registration(self, member_id: int, event_id: int) -> Optional[dict]:
        row = await self.database.fetch_one(
            registrations.select().where(
                and_(registrations.c.member_id == member_id, registrations.c.event_id == event_id)
            )
        )
        return row_to_dict(row, registrations)
