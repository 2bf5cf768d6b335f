from datetime import time, timedelta

import pytest
from django.utils import timezone

from core.exceptions import ConflictError, NotFoundError, ValidationError
from core.models import Appointment, AuditEvent
from core.services import scheduling
from core.services.broadcast import schedule_event
from core.services.principal import Principal
from core.tests.factories import make_patient

pytestmark = pytest.mark.django_db


def book(patient, user, day, slot='09:00', **extra):
    return scheduling.create_appointment(
        patient_id=patient.id, appointment_date=day, appointment_time=slot, creator_id=user.id, **extra
    )


def test_create_appointment_is_scheduled_with_relations(patient, secretary, tomorrow):
    a = book(patient, secretary, tomorrow.isoformat(), '09:00', observations='first visit')
    assert a.status == Appointment.STATUS_SCHEDULED
    assert a.time == time(9, 0)
    assert a.patient.first_name == 'Maria'
    assert a.created_by.username == 'secretaria'
    assert AuditEvent.objects.filter(action='appointment_create', object_id=a.id).exists()


def test_create_appointment_accepts_single_digit_hour(patient, secretary, tomorrow):
    a = book(patient, secretary, tomorrow, '9:30')
    assert a.time == time(9, 30)


@pytest.mark.parametrize('slot', ['07:59', '17:01', '17:30', '23:00'])
def test_time_outside_opening_hours_is_rejected(patient, secretary, tomorrow, slot):
    with pytest.raises(ValidationError):
        book(patient, secretary, tomorrow, slot)


@pytest.mark.parametrize('slot', ['08:00', '17:00'])
def test_opening_hour_boundaries_are_bookable(patient, secretary, tomorrow, slot):
    assert book(patient, secretary, tomorrow, slot).time.strftime('%H:%M') == slot


@pytest.mark.parametrize('slot', ['9h00', '25:00', '12:60', ''])
def test_malformed_time_is_rejected(patient, secretary, tomorrow, slot):
    with pytest.raises(ValidationError):
        book(patient, secretary, tomorrow, slot)


@pytest.mark.parametrize('day', ['10/01/2030', '2030-13-01', '2030-02-30', 'tomorrow'])
def test_malformed_date_is_rejected(patient, secretary, day):
    with pytest.raises(ValidationError):
        book(patient, secretary, day)


def test_past_date_is_rejected(patient, secretary):
    yesterday = timezone.localdate() - timedelta(days=1)
    with pytest.raises(ValidationError):
        book(patient, secretary, yesterday)


def test_today_is_bookable(patient, secretary):
    assert book(patient, secretary, timezone.localdate(), '17:00').id


def test_unknown_patient_is_not_found(secretary, tomorrow):
    with pytest.raises(NotFoundError):
        scheduling.create_appointment(patient_id=9999, appointment_date=tomorrow, appointment_time='09:00',
                                      creator_id=secretary.id)


def test_double_booking_is_a_conflict(patient, secretary, tomorrow):
    book(patient, secretary, tomorrow, '10:00')
    other = make_patient(cpf='529.982.247-25', first_name='João')
    with pytest.raises(ConflictError):
        book(other, secretary, tomorrow, '10:00')


def test_canceled_appointment_frees_its_slot(patient, secretary, tomorrow):
    a = book(patient, secretary, tomorrow, '10:00')
    scheduling.update_appointment_status(a.id, Appointment.STATUS_CANCELED)
    again = book(patient, secretary, tomorrow, '10:00')
    assert again.id != a.id


def test_constraint_race_becomes_conflict(patient, secretary, tomorrow, monkeypatch):
    book(patient, secretary, tomorrow, '11:00')
    # simulate a concurrent writer that passed the check before the first commit
    monkeypatch.setattr(scheduling, 'has_time_conflict', lambda *a, **k: False)
    with pytest.raises(ConflictError):
        book(patient, secretary, tomorrow, '11:00')
    assert Appointment.objects.filter(date=tomorrow, time=time(11, 0)).count() == 1


def test_update_to_its_own_slot_is_not_a_conflict(patient, secretary, tomorrow):
    a = book(patient, secretary, tomorrow, '10:00')
    updated = scheduling.update_appointment(a.id, {'date': tomorrow, 'time': '10:00', 'observations': 'moved'})
    assert updated.observations == 'moved'


def test_update_into_taken_slot_is_a_conflict(patient, secretary, tomorrow):
    book(patient, secretary, tomorrow, '10:00')
    b = book(patient, secretary, tomorrow, '10:30')
    with pytest.raises(ConflictError):
        scheduling.update_appointment(b.id, {'time': '10:00'})


def test_update_checks_time_against_existing_date(patient, secretary, tomorrow):
    a = book(patient, secretary, tomorrow, '10:00')
    with pytest.raises(ValidationError):
        scheduling.update_appointment(a.id, {'time': '18:00'})
    moved = scheduling.update_appointment(a.id, {'date': tomorrow + timedelta(days=1)})
    assert moved.date == tomorrow + timedelta(days=1)
    assert moved.time == time(10, 0)


def test_update_missing_appointment_is_not_found():
    with pytest.raises(NotFoundError):
        scheduling.update_appointment(12345, {'observations': 'x'})


def test_completed_appointment_is_immutable(patient, secretary, tomorrow):
    a = book(patient, secretary, tomorrow)
    scheduling.update_appointment_status(a.id, Appointment.STATUS_COMPLETED)
    with pytest.raises(ValidationError):
        scheduling.update_appointment(a.id, {'observations': 'late note'})
    with pytest.raises(ValidationError):
        scheduling.update_appointment_status(a.id, Appointment.STATUS_CANCELED)
    with pytest.raises(ValidationError):
        scheduling.update_appointment_status(a.id, Appointment.STATUS_SCHEDULED)
    with pytest.raises(ValidationError):
        scheduling.remove_appointment(a.id)


def test_canceled_is_terminal(patient, secretary, tomorrow):
    a = book(patient, secretary, tomorrow)
    scheduling.update_appointment_status(a.id, Appointment.STATUS_CANCELED)
    with pytest.raises(ValidationError):
        scheduling.update_appointment_status(a.id, Appointment.STATUS_SCHEDULED)


def test_status_update_is_audited_with_actor(patient, secretary, tomorrow):
    a = book(patient, secretary, tomorrow)
    scheduling.update_appointment_status(a.id, Appointment.STATUS_IN_PROGRESS, actor=Principal.from_user(secretary))
    event = AuditEvent.objects.filter(action='appointment_update', object_id=a.id).latest('id')
    assert event.user_id == secretary.id
    assert event.detail['from'] == Appointment.STATUS_SCHEDULED
    assert event.detail['to'] == Appointment.STATUS_IN_PROGRESS


def test_remove_appointment(patient, secretary, tomorrow):
    a = book(patient, secretary, tomorrow)
    scheduling.remove_appointment(a.id)
    assert not Appointment.objects.filter(id=a.id).exists()
    with pytest.raises(NotFoundError):
        scheduling.remove_appointment(a.id)


def test_listings(patient, secretary, tomorrow):
    other = make_patient(cpf='529.982.247-25', first_name='João')
    book(patient, secretary, tomorrow, '14:00')
    book(other, secretary, tomorrow, '08:30')
    book(patient, secretary, tomorrow + timedelta(days=1), '08:00')

    by_date = scheduling.list_appointments_by_date(tomorrow.isoformat())
    assert [a.time.strftime('%H:%M') for a in by_date] == ['08:30', '14:00']

    by_patient = scheduling.list_appointments_by_patient(patient.id)
    assert [a.date for a in by_patient] == [tomorrow + timedelta(days=1), tomorrow]

    assert len(scheduling.list_appointments()) == 3
    with pytest.raises(NotFoundError):
        scheduling.list_appointments_by_patient(9999)


def test_canonical_slots():
    slots = scheduling.canonical_slots()
    assert len(slots) == 19
    assert slots[0] == '08:00'
    assert slots[-2:] == ['16:30', '17:00']


def test_available_slots_exclude_active_appointments(patient, secretary, tomorrow):
    book(patient, secretary, tomorrow, '08:00')
    in_progress = book(patient, secretary, tomorrow, '08:30')
    scheduling.update_appointment_status(in_progress.id, Appointment.STATUS_IN_PROGRESS)
    canceled = book(patient, secretary, tomorrow, '09:00')
    scheduling.update_appointment_status(canceled.id, Appointment.STATUS_CANCELED)

    slots = scheduling.get_available_time_slots(tomorrow)
    assert '08:00' not in slots
    assert '08:30' not in slots
    assert '09:00' in slots
    assert len(slots) == 17


def test_available_slots_reject_bad_date():
    with pytest.raises(ValidationError):
        scheduling.get_available_time_slots('2030/01/10')


def test_changes_are_broadcast_after_commit(patient, secretary, tomorrow, django_capture_on_commit_callbacks):
    with django_capture_on_commit_callbacks() as callbacks:
        a = book(patient, secretary, tomorrow, '15:00')
    assert len(callbacks) == 1

    event = schedule_event(a, 'created')
    assert event == {
        'type': 'schedule.changed',
        'action': 'created',
        'appointmentId': a.id,
        'date': tomorrow.isoformat(),
        'time': '15:00',
        'status': Appointment.STATUS_SCHEDULED,
    }
