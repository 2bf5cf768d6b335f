"""Push committed appointment changes to connected schedule screens."""
from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.db import transaction

from core.models import Appointment

SCHEDULE_GROUP = 'schedule'


def schedule_event(appointment: Appointment, action: str) -> dict:
    return {
        'type': 'schedule.changed',
        'action': action,
        'appointmentId': appointment.id,
        'date': appointment.date.isoformat(),
        'time': appointment.time.strftime('%H:%M'),
        'status': appointment.status,
    }


def broadcast_schedule_change(appointment: Appointment, action: str) -> None:
    """Queue a ``schedule.changed`` event to be sent once the transaction commits."""
    channel_layer = get_channel_layer()
    if channel_layer is None:
        return
    event = schedule_event(appointment, action)
    transaction.on_commit(lambda: async_to_sync(channel_layer.group_send)(SCHEDULE_GROUP, event))
