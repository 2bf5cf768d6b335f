"""
Appointment scheduling.

Appointments live in a fixed daily window from 08:00 to 17:00 and each
``(date, time)`` pair can hold at most one appointment that is not
canceled.  Every status change is checked against
:data:`core.services.transitions.APPOINTMENT_TRANSITIONS`; once an
appointment is COMPLETED it can no longer be edited or removed.

Reads always join the patient and the creating user (``select_related``)
so callers get the appointment together with its relations.
"""
from __future__ import annotations

import logging
import re
from datetime import date, datetime, time, timedelta
from typing import Any, Dict, List, Optional, Union

from django.db import IntegrityError, transaction
from django.utils import timezone

from core.exceptions import ConflictError, NotFoundError, ValidationError
from core.models import Appointment
from core.services.audit import log_action
from core.services.broadcast import broadcast_schedule_change
from core.services.patients import get_patient
from core.services.principal import Principal
from core.services.transitions import can_transition

logger = logging.getLogger(__name__)

OPENING_TIME = time(8, 0)
CLOSING_TIME = time(17, 0)
SLOT_MINUTES = 30

ACTIVE_STATUSES = (Appointment.STATUS_SCHEDULED, Appointment.STATUS_IN_PROGRESS)

_TIME_RE = re.compile(r'^([0-1]?[0-9]|2[0-3]):([0-5][0-9])$')
_DATE_RE = re.compile(r'^\d{4}-\d{2}-\d{2}$')

DateLike = Union[str, date]
TimeLike = Union[str, time]


# ---------------------------------------------------------------------------
# Parsing & validation helpers
# ---------------------------------------------------------------------------

def parse_date(value: DateLike) -> date:
    """Parse a ``YYYY-MM-DD`` string (or pass a date through)."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not _DATE_RE.match(value.strip()):
        raise ValidationError('invalid date, use the YYYY-MM-DD format')
    try:
        return datetime.strptime(value.strip(), '%Y-%m-%d').date()
    except ValueError as exc:
        raise ValidationError('invalid date, use the YYYY-MM-DD format') from exc


def parse_time(value: TimeLike) -> time:
    """Parse an ``HH:MM`` string at minute granularity."""
    if isinstance(value, time):
        return value.replace(second=0, microsecond=0)
    match = _TIME_RE.match(value.strip()) if isinstance(value, str) else None
    if not match:
        raise ValidationError('invalid time, use the HH:MM format (e.g. 14:30)')
    return time(int(match.group(1)), int(match.group(2)))


def is_within_opening_hours(slot: time) -> bool:
    # 17:00 is bookable, 17:01 is not
    return OPENING_TIME <= slot <= CLOSING_TIME


def _ensure_bookable_date(day: date) -> None:
    if day < timezone.localdate():
        raise ValidationError('appointments cannot be booked in the past')


def _ensure_bookable_time(slot: time) -> None:
    if not is_within_opening_hours(slot):
        raise ValidationError('time must be between 08:00 and 17:00')


def has_time_conflict(day: date, slot: time, exclude_id: Optional[int] = None) -> bool:
    qs = (
        Appointment.objects.select_for_update()
        .filter(date=day, time=slot)
        .exclude(status=Appointment.STATUS_CANCELED)
    )
    if exclude_id:
        qs = qs.exclude(id=exclude_id)
    return qs.exists()


def canonical_slots() -> List[str]:
    """Every half hour from 08:00 to 16:30, plus the single 17:00 slot."""
    slots = []
    current = datetime.combine(date.min, OPENING_TIME)
    end = datetime.combine(date.min, CLOSING_TIME)
    while current < end:
        slots.append(current.strftime('%H:%M'))
        current += timedelta(minutes=SLOT_MINUTES)
    slots.append(CLOSING_TIME.strftime('%H:%M'))
    return slots


def _appointments():
    return Appointment.objects.select_related('patient', 'created_by')


def _actor_id(actor: Optional[Principal]) -> Optional[int]:
    return actor.id if actor else None


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------

def create_appointment(*, patient_id: int, appointment_date: DateLike, appointment_time: TimeLike,
                       observations: Optional[str] = None, creator_id: int) -> Appointment:
    get_patient(patient_id)
    day = parse_date(appointment_date)
    _ensure_bookable_date(day)
    slot = parse_time(appointment_time)
    _ensure_bookable_time(slot)

    try:
        with transaction.atomic():
            if has_time_conflict(day, slot):
                raise ConflictError('an appointment already exists for this date and time')
            appointment = Appointment.objects.create(
                patient_id=patient_id,
                date=day,
                time=slot,
                observations=observations,
                status=Appointment.STATUS_SCHEDULED,
                created_by_id=creator_id,
            )
            log_action(user_id=creator_id, action='appointment_create', object_type='appointment',
                       object_id=appointment.id, detail={'date': day.isoformat(), 'time': slot.strftime('%H:%M')})
            broadcast_schedule_change(appointment, 'created')
    except IntegrityError as exc:
        raise ConflictError('an appointment already exists for this date and time') from exc

    logger.info('appointment %s booked for %s %s', appointment.id, day, slot.strftime('%H:%M'))
    return get_appointment(appointment.id)


def list_appointments() -> List[Appointment]:
    return list(_appointments().order_by('date', 'time'))


def list_appointments_by_date(day: DateLike) -> List[Appointment]:
    day = parse_date(day)
    return list(_appointments().filter(date=day).order_by('time'))


def list_appointments_by_patient(patient_id: int) -> List[Appointment]:
    get_patient(patient_id)
    return list(_appointments().filter(patient_id=patient_id).order_by('-date', '-time'))


def get_appointment(appointment_id: int) -> Appointment:
    appointment = _appointments().filter(id=appointment_id).first()
    if not appointment:
        raise NotFoundError(f'appointment {appointment_id} not found')
    return appointment


def update_appointment(appointment_id: int, changes: Dict[str, Any], *,
                       actor: Optional[Principal] = None) -> Appointment:
    """Apply a partial update.

    Recognised keys: ``patient_id``, ``date``, ``time``, ``observations``
    and ``status``.  Date and time are revalidated and conflict-checked
    against every other appointment when either of them is present.
    """
    try:
        with transaction.atomic():
            appointment = Appointment.objects.select_for_update().filter(id=appointment_id).first()
            if not appointment:
                raise NotFoundError(f'appointment {appointment_id} not found')
            if appointment.status == Appointment.STATUS_COMPLETED:
                raise ValidationError('completed appointments cannot be changed')

            if changes.get('patient_id'):
                get_patient(changes['patient_id'])
                appointment.patient_id = changes['patient_id']

            if changes.get('date') or changes.get('time'):
                day = appointment.date
                if changes.get('date'):
                    day = parse_date(changes['date'])
                    _ensure_bookable_date(day)
                slot = appointment.time
                if changes.get('time'):
                    slot = parse_time(changes['time'])
                    _ensure_bookable_time(slot)
                if has_time_conflict(day, slot, exclude_id=appointment.id):
                    raise ConflictError('an appointment already exists for this date and time')
                appointment.date = day
                appointment.time = slot

            if 'observations' in changes:
                appointment.observations = changes['observations']

            old_status = appointment.status
            new_status = changes.get('status')
            if new_status:
                if not can_transition(old_status, new_status):
                    raise ValidationError(f'cannot change status from {old_status} to {new_status}')
                appointment.status = new_status

            appointment.save()
            log_action(user_id=_actor_id(actor), action='appointment_update', object_type='appointment',
                       object_id=appointment.id,
                       detail={'fields': sorted(changes.keys()), 'from': old_status, 'to': appointment.status})
            broadcast_schedule_change(appointment, 'updated')
    except IntegrityError as exc:
        raise ConflictError('an appointment already exists for this date and time') from exc

    if new_status and new_status != old_status:
        logger.info('appointment %s status %s -> %s', appointment.id, old_status, new_status)
    return get_appointment(appointment.id)


def update_appointment_status(appointment_id: int, status: str, *,
                              actor: Optional[Principal] = None) -> Appointment:
    appointment = get_appointment(appointment_id)
    current = appointment.status
    if current == Appointment.STATUS_COMPLETED and status == Appointment.STATUS_CANCELED:
        raise ValidationError('a completed appointment cannot be canceled')
    if current == Appointment.STATUS_COMPLETED and status == Appointment.STATUS_SCHEDULED:
        raise ValidationError('a completed appointment cannot go back to SCHEDULED')
    if not can_transition(current, status):
        raise ValidationError(f'cannot change status from {current} to {status}')
    return update_appointment(appointment_id, {'status': status}, actor=actor)


def remove_appointment(appointment_id: int, *, actor: Optional[Principal] = None) -> None:
    appointment = get_appointment(appointment_id)
    if appointment.status == Appointment.STATUS_COMPLETED:
        raise ValidationError('completed appointments cannot be removed')

    with transaction.atomic():
        # the consultation row, if any, cascades
        deleted, per_model = Appointment.objects.filter(id=appointment_id).delete()
        if not per_model.get(Appointment._meta.label):
            raise NotFoundError(f'appointment {appointment_id} not found')
        log_action(user_id=_actor_id(actor), action='appointment_delete', object_type='appointment',
                   object_id=appointment_id, detail={'status': appointment.status})
        broadcast_schedule_change(appointment, 'deleted')
    logger.info('appointment %s removed', appointment_id)


def get_available_time_slots(day: DateLike) -> List[str]:
    day = parse_date(day)
    occupied = {
        t.strftime('%H:%M')
        for t in Appointment.objects.filter(date=day, status__in=ACTIVE_STATUSES).values_list('time', flat=True)
    }
    return [slot for slot in canonical_slots() if slot not in occupied]
