"""
Legal status transitions for appointments and consultations.

Every status change in the services goes through :func:`can_transition`
or :func:`can_transition_consultation`, including the ones cascaded from a
consultation onto its appointment.
"""
from core.models import Appointment, Consultation

_SCHEDULED = Appointment.STATUS_SCHEDULED
_IN_PROGRESS = Appointment.STATUS_IN_PROGRESS
_COMPLETED = Appointment.STATUS_COMPLETED
_CANCELED = Appointment.STATUS_CANCELED

APPOINTMENT_TRANSITIONS = {
    _SCHEDULED: {_SCHEDULED, _IN_PROGRESS, _COMPLETED, _CANCELED},
    # back to SCHEDULED when the consultation is removed
    _IN_PROGRESS: {_SCHEDULED, _IN_PROGRESS, _COMPLETED, _CANCELED},
    _COMPLETED: set(),
    _CANCELED: {_CANCELED},
}

CONSULTATION_TRANSITIONS = {
    Consultation.STATUS_IN_PROGRESS: {Consultation.STATUS_IN_PROGRESS, Consultation.STATUS_COMPLETED},
    Consultation.STATUS_COMPLETED: {Consultation.STATUS_COMPLETED},
}


def can_transition(current: str, new: str) -> bool:
    """Return True if an appointment may move from ``current`` to ``new``."""
    return new in APPOINTMENT_TRANSITIONS.get(current, set())


def can_transition_consultation(current: str, new: str) -> bool:
    return new in CONSULTATION_TRANSITIONS.get(current, set())
