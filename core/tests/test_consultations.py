from datetime import timedelta

import pytest
from django.test import override_settings

from core.exceptions import DecryptionError, ForbiddenError, NotFoundError, ValidationError
from core.models import Appointment, Consultation
from core.services import consultations, scheduling
from core.services.principal import Principal

pytestmark = pytest.mark.django_db


@pytest.fixture
def appointment(patient, secretary, tomorrow):
    return scheduling.create_appointment(
        patient_id=patient.id, appointment_date=tomorrow, appointment_time='09:00', creator_id=secretary.id
    )


@pytest.fixture
def opened(author, appointment, cipher):
    return consultations.create_consultation(
        author, appointment_id=appointment.id, notes='anxiety', diagnosis='F41.1', cipher=cipher
    )


def test_create_moves_appointment_in_progress(opened, appointment):
    assert opened.status == Consultation.STATUS_IN_PROGRESS
    assert opened.notes == 'anxiety'
    assert opened.diagnosis == 'F41.1'
    assert opened.treatment_plan is None
    appointment.refresh_from_db()
    assert appointment.status == Appointment.STATUS_IN_PROGRESS


def test_fields_are_stored_encrypted(opened):
    row = Consultation.objects.get(id=opened.id)
    assert row.notes_encrypted and row.notes_encrypted != 'anxiety'
    assert len(row.notes_iv) == 32
    assert row.treatment_plan_encrypted is None and row.treatment_plan_iv is None
    assert row.attention_points_encrypted is None and row.attention_points_iv is None


def test_second_consultation_for_same_appointment_fails(opened, author, appointment, cipher):
    with pytest.raises(ValidationError):
        consultations.create_consultation(author, appointment_id=appointment.id, cipher=cipher)


def test_create_for_missing_appointment_is_not_found(author, cipher):
    with pytest.raises(NotFoundError):
        consultations.create_consultation(author, appointment_id=4242, cipher=cipher)


@pytest.mark.parametrize('status', [Appointment.STATUS_COMPLETED, Appointment.STATUS_CANCELED])
def test_create_requires_active_appointment(author, appointment, cipher, status):
    scheduling.update_appointment_status(appointment.id, status)
    with pytest.raises(ValidationError):
        consultations.create_consultation(author, appointment_id=appointment.id, cipher=cipher)
    assert not Consultation.objects.exists()


def test_create_completed_also_completes_appointment(author, appointment, cipher):
    record = consultations.create_consultation(
        author, appointment_id=appointment.id, notes='single visit', status=Consultation.STATUS_COMPLETED,
        cipher=cipher,
    )
    assert record.status == Consultation.STATUS_COMPLETED
    appointment.refresh_from_db()
    assert appointment.status == Appointment.STATUS_COMPLETED


def test_non_author_professional_is_forbidden(opened, other_professional, cipher):
    with pytest.raises(ForbiddenError):
        consultations.get_consultation(opened.id, Principal.from_user(other_professional), cipher=cipher)


def test_secretary_sees_masked_record(opened, secretary, cipher):
    record = consultations.get_consultation(opened.id, Principal.from_user(secretary), cipher=cipher)
    assert record.id == opened.id
    assert record.status == Consultation.STATUS_IN_PROGRESS
    assert record.notes is None and record.diagnosis is None


def test_author_reads_clear_text(opened, author, cipher):
    record = consultations.get_consultation(opened.id, author, cipher=cipher)
    assert record.notes == 'anxiety'
    assert record.appointment.patient.first_name == 'Maria'


def test_get_missing_is_not_found(author, cipher):
    with pytest.raises(NotFoundError):
        consultations.get_consultation(999, author, cipher=cipher)


def test_listing_scopes_professionals_to_their_own(opened, author, other_professional, admin_user, cipher):
    assert [r.id for r in consultations.list_consultations(author, cipher=cipher)] == [opened.id]
    assert consultations.list_consultations(Principal.from_user(other_professional), cipher=cipher) == []
    records = consultations.list_consultations(Principal.from_user(admin_user), cipher=cipher)
    assert [r.id for r in records] == [opened.id]
    assert records[0].notes is None


def test_patient_listing_masks_per_item(opened, patient, other_professional, cipher):
    records = consultations.list_patient_consultations(
        patient.id, Principal.from_user(other_professional), cipher=cipher
    )
    assert [r.id for r in records] == [opened.id]
    assert records[0].notes is None


def test_update_reencrypts_with_fresh_iv(opened, author, cipher):
    before = Consultation.objects.get(id=opened.id)
    record = consultations.update_consultation(opened.id, {'notes': 'anxiety, improving'}, author, cipher=cipher)
    after = Consultation.objects.get(id=opened.id)
    assert record.notes == 'anxiety, improving'
    assert after.notes_iv != before.notes_iv
    assert after.diagnosis_iv == before.diagnosis_iv


def test_update_with_empty_value_clears_field(opened, author, cipher):
    record = consultations.update_consultation(opened.id, {'diagnosis': ''}, author, cipher=cipher)
    assert record.diagnosis is None
    assert Consultation.objects.get(id=opened.id).diagnosis_encrypted is None


def test_update_by_non_author_is_forbidden(opened, other_professional, secretary, cipher):
    for user in (other_professional, secretary):
        with pytest.raises(ForbiddenError):
            consultations.update_consultation(opened.id, {'notes': 'x'}, Principal.from_user(user), cipher=cipher)


def test_conclude_completes_both(opened, author, appointment, cipher):
    record = consultations.conclude_consultation(opened.id, author, cipher=cipher)
    assert record.status == Consultation.STATUS_COMPLETED
    appointment.refresh_from_db()
    assert appointment.status == Appointment.STATUS_COMPLETED
    with pytest.raises(ValidationError):
        scheduling.remove_appointment(appointment.id)


def test_completed_consultation_rejects_content_edits(opened, author, cipher):
    consultations.conclude_consultation(opened.id, author, cipher=cipher)
    with pytest.raises(ValidationError):
        consultations.update_consultation(opened.id, {'notes': 'late'}, author, cipher=cipher)
    with pytest.raises(ValidationError):
        consultations.update_consultation(
            opened.id, {'status': Consultation.STATUS_IN_PROGRESS}, author, cipher=cipher
        )


def test_remove_reverts_appointment(opened, author, appointment):
    consultations.remove_consultation(opened.id, author)
    assert not Consultation.objects.filter(id=opened.id).exists()
    appointment.refresh_from_db()
    assert appointment.status == Appointment.STATUS_SCHEDULED


def test_remove_rules(opened, author, other_professional, secretary, cipher):
    with pytest.raises(ForbiddenError):
        consultations.remove_consultation(opened.id, Principal.from_user(other_professional))
    with pytest.raises(ForbiddenError):
        consultations.remove_consultation(opened.id, Principal.from_user(secretary))
    consultations.conclude_consultation(opened.id, author, cipher=cipher)
    with pytest.raises(ValidationError):
        consultations.remove_consultation(opened.id, author)
    with pytest.raises(NotFoundError):
        consultations.remove_consultation(31337, author)


def test_deleting_appointment_cascades_to_consultation(opened, appointment):
    scheduling.remove_appointment(appointment.id)
    assert not Consultation.objects.filter(id=opened.id).exists()


def test_history_is_sorted_by_appointment_date(patient, secretary, author, tomorrow, cipher):
    later = scheduling.create_appointment(
        patient_id=patient.id, appointment_date=tomorrow + timedelta(days=7), appointment_time='10:00',
        creator_id=secretary.id,
    )
    earlier = scheduling.create_appointment(
        patient_id=patient.id, appointment_date=tomorrow, appointment_time='16:00', creator_id=secretary.id,
    )
    consultations.create_consultation(author, appointment_id=later.id, notes='follow-up', cipher=cipher)
    consultations.create_consultation(author, appointment_id=earlier.id, notes='first', cipher=cipher)

    history = consultations.get_patient_consultation_history(patient.id, author, cipher=cipher)
    assert history.patient_id == patient.id
    assert history.patient_name == 'Maria'
    assert [e.consultation.notes for e in history.history] == ['first', 'follow-up']
    assert history.history[0].formatted_date == tomorrow.strftime('%d/%m/%Y')


@override_settings(CLINIC_HISTORY_DATE_FORMAT='%Y-%m-%d')
def test_history_date_format_is_configurable(opened, patient, author, tomorrow, cipher):
    history = consultations.get_patient_consultation_history(patient.id, author, cipher=cipher)
    assert history.history[0].formatted_date == tomorrow.isoformat()


def test_history_without_consultations_is_not_found(patient, author, cipher):
    with pytest.raises(NotFoundError):
        consultations.get_patient_consultation_history(patient.id, author, cipher=cipher)


def _corrupt_notes(consultation_id):
    Consultation.objects.filter(id=consultation_id).update(notes_encrypted='00' * 20)


def test_listings_mask_a_field_that_fails_to_decrypt(opened, author, patient, cipher):
    _corrupt_notes(opened.id)

    [record] = consultations.list_consultations(author, cipher=cipher)
    assert record.notes is None
    assert record.diagnosis == 'F41.1'

    [record] = consultations.list_patient_consultations(patient.id, author, cipher=cipher)
    assert record.notes is None

    history = consultations.get_patient_consultation_history(patient.id, author, cipher=cipher)
    assert history.history[0].consultation.notes is None
    assert history.history[0].consultation.diagnosis == 'F41.1'


def test_single_fetch_raises_when_a_field_fails_to_decrypt(opened, author, cipher):
    _corrupt_notes(opened.id)
    with pytest.raises(DecryptionError):
        consultations.get_consultation(opened.id, author, cipher=cipher)
