import json
import logging
import time
from collections.abc import Callable
from datetime import date

from pydantic import TypeAdapter, ValidationError

from schedule_app.core.dates import format_date, parse_date
from schedule_app.models.appointment import Appointment, AppointmentCreate
from schedule_app.models.identity import Identity
from schedule_app.services.store_service import KeyValueStore, appointments_key, unavailable_key

logger = logging.getLogger(__name__)

_appointment_list = TypeAdapter(list[Appointment])


class AppointmentRepository:
    """Appointments and unavailable dates of one identity.

    The collection is kept sorted by ``date`` then ``time`` and every
    mutation writes the whole collection back to the store. An empty
    collection deletes the stored key instead of writing an empty list,
    so a stale value can never come back on the next load.
    """

    def __init__(self, store: KeyValueStore, identity: Identity):
        self.store = store
        self.identity = identity
        self._appointments: list[Appointment] = []
        self._unavailable: set[date] = set()
        self._last_id = 0

    @property
    def appointments(self) -> list[Appointment]:
        return list(self._appointments)

    @property
    def unavailable_dates(self) -> list[date]:
        return sorted(self._unavailable)

    async def load(self) -> "AppointmentRepository":
        uid = self.identity.uid
        raw = await self.store.get(appointments_key(uid))
        try:
            self._appointments = _appointment_list.validate_json(raw) if raw else []
        except ValidationError as e:
            logger.warning("Discarding malformed appointments for %s: %s", uid, e)
            self._appointments = []
        raw = await self.store.get(unavailable_key(uid))
        try:
            self._unavailable = {parse_date(d) for d in json.loads(raw)} if raw else set()
        except (ValueError, TypeError) as e:
            logger.warning("Discarding malformed unavailable dates for %s: %s", uid, e)
            self._unavailable = set()
        self._sort()
        self._last_id = max((_numeric_id(a.id) for a in self._appointments), default=0)
        logger.debug(
            "Loaded %d appointment(s), %d unavailable date(s) for %s",
            len(self._appointments),
            len(self._unavailable),
            uid,
        )
        return self

    def get(self, appointment_id: str) -> Appointment | None:
        return next((a for a in self._appointments if a.id == appointment_id), None)

    def query(self, predicate: Callable[[Appointment], bool]) -> list[Appointment]:
        return [a for a in self._appointments if predicate(a)]

    def on_date(self, d: date) -> list[Appointment]:
        return self.query(lambda a: a.date == d)

    def is_unavailable(self, d: date) -> bool:
        return d in self._unavailable

    async def add(self, data: AppointmentCreate) -> Appointment:
        appointment = Appointment(id=self._next_id(), **data.model_dump(exclude={"id"}))
        self._appointments.append(appointment)
        self._sort()
        await self._persist_appointments()
        return appointment

    async def update(self, appointment_id: str, data: AppointmentCreate) -> Appointment | None:
        """Replace the record in place; ``None`` if the id is unknown."""
        for i, existing in enumerate(self._appointments):
            if existing.id == appointment_id:
                updated = Appointment(id=appointment_id, **data.model_dump(exclude={"id"}))
                self._appointments[i] = updated
                self._sort()
                await self._persist_appointments()
                return updated
        return None

    async def remove(self, appointment_id: str) -> bool:
        remaining = [a for a in self._appointments if a.id != appointment_id]
        if len(remaining) == len(self._appointments):
            return False
        self._appointments = remaining
        await self._persist_appointments()
        return True

    async def toggle_unavailable(self, d: date) -> bool:
        """Flip membership of ``d``; returns whether it is now unavailable."""
        if d in self._unavailable:
            self._unavailable.discard(d)
        else:
            self._unavailable.add(d)
        await self._persist_unavailable()
        return d in self._unavailable

    def _sort(self) -> None:
        self._appointments.sort(key=lambda a: a.sort_key)

    def _next_id(self) -> str:
        # Creation timestamp in ms, bumped to stay strictly increasing
        self._last_id = max(int(time.time() * 1000), self._last_id + 1)
        return str(self._last_id)

    async def _persist_appointments(self) -> None:
        key = appointments_key(self.identity.uid)
        if self._appointments:
            await self.store.set(key, _appointment_list.dump_json(self._appointments).decode())
        else:
            await self.store.remove(key)

    async def _persist_unavailable(self) -> None:
        key = unavailable_key(self.identity.uid)
        if self._unavailable:
            await self.store.set(key, json.dumps([format_date(d) for d in self.unavailable_dates]))
        else:
            await self.store.remove(key)


def _numeric_id(appointment_id: str) -> int:
    return int(appointment_id) if appointment_id.isdigit() else 0
