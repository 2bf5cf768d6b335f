"""
Clinical consultations.

A consultation belongs to exactly one appointment and to the professional
who opened it.  Its sensitive fields are encrypted under that
professional's key context, and every record leaving this module goes
through :func:`to_record`, which decrypts them for the author and blanks
them for everyone else.

Listing is soft (other users get the metadata with the clinical fields set
to ``None``) while fetching a single consultation is hard for professionals:
a professional who is not the author gets a :class:`ForbiddenError`.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from django.conf import settings
from django.db import IntegrityError, transaction

from core.exceptions import DecryptionError, ForbiddenError, NotFoundError, ValidationError
from core.models import Appointment, Consultation
from core.services import scheduling
from core.services.audit import log_action
from core.services.crypto import FieldCipher, get_cipher
from core.services.principal import Principal
from core.services.transitions import can_transition_consultation

logger = logging.getLogger(__name__)

SENSITIVE_FIELDS = Consultation.SENSITIVE_FIELDS


@dataclass(frozen=True)
class ConsultationRecord:
    """A consultation with its appointment and the clinical fields as the caller may see them."""
    id: int
    appointment_id: int
    appointment: Appointment
    professional_id: int
    status: str
    created_at: datetime
    updated_at: datetime
    notes: Optional[str] = None
    diagnosis: Optional[str] = None
    treatment_plan: Optional[str] = None
    attention_points: Optional[str] = None


@dataclass(frozen=True)
class HistoryEntry:
    formatted_date: str
    consultation: ConsultationRecord


@dataclass(frozen=True)
class PatientHistory:
    patient_id: int
    patient_name: str
    history: List[HistoryEntry] = field(default_factory=list)


def _consultations():
    return Consultation.objects.select_related(
        'appointment', 'appointment__patient', 'appointment__created_by'
    )


def _store(consultation: Consultation, name: str, value: Optional[str], cipher: FieldCipher) -> None:
    encrypted = cipher.encrypt(value, consultation.professional_id)
    setattr(consultation, f'{name}_encrypted', encrypted.encrypted_text)
    setattr(consultation, f'{name}_iv', encrypted.iv)


def to_record(consultation: Consultation, requester_id: int, cipher: Optional[FieldCipher] = None, *,
              strict: bool = True) -> ConsultationRecord:
    """Shape a consultation for ``requester_id``; only the author sees clinical content.

    With ``strict`` off a field that fails to decrypt is logged and returned
    as ``None`` instead of raising.
    """
    cipher = cipher or get_cipher()
    clinical: Dict[str, Optional[str]] = {name: None for name in SENSITIVE_FIELDS}
    if consultation.professional_id == requester_id:
        for name in SENSITIVE_FIELDS:
            try:
                clinical[name] = cipher.decrypt(
                    getattr(consultation, f'{name}_encrypted'),
                    getattr(consultation, f'{name}_iv'),
                    consultation.professional_id,
                )
            except DecryptionError:
                if strict:
                    raise
                logger.warning('consultation %s field %s could not be decrypted, masked', consultation.id, name)
    return ConsultationRecord(
        id=consultation.id,
        appointment_id=consultation.appointment_id,
        appointment=consultation.appointment,
        professional_id=consultation.professional_id,
        status=consultation.status,
        created_at=consultation.created_at,
        updated_at=consultation.updated_at,
        **clinical,
    )


def _load(consultation_id: int) -> Consultation:
    consultation = _consultations().filter(id=consultation_id).first()
    if not consultation:
        raise NotFoundError(f'consultation {consultation_id} not found')
    return consultation


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------

def create_consultation(principal: Principal, *, appointment_id: int, notes: Optional[str] = None,
                        diagnosis: Optional[str] = None, treatment_plan: Optional[str] = None,
                        attention_points: Optional[str] = None, status: Optional[str] = None,
                        cipher: Optional[FieldCipher] = None) -> ConsultationRecord:
    cipher = cipher or get_cipher()
    status = status or Consultation.STATUS_IN_PROGRESS
    appointment = scheduling.get_appointment(appointment_id)

    if Consultation.objects.filter(appointment_id=appointment.id).exists():
        raise ValidationError('this appointment already has a consultation')
    if appointment.status not in (Appointment.STATUS_SCHEDULED, Appointment.STATUS_IN_PROGRESS):
        raise ValidationError('only SCHEDULED or IN_PROGRESS appointments can start a consultation')

    values = {
        'notes': notes,
        'diagnosis': diagnosis,
        'treatment_plan': treatment_plan,
        'attention_points': attention_points,
    }
    try:
        with transaction.atomic():
            scheduling.update_appointment_status(appointment.id, Appointment.STATUS_IN_PROGRESS, actor=principal)
            consultation = Consultation(appointment_id=appointment.id, professional_id=principal.id, status=status)
            for name, value in values.items():
                _store(consultation, name, value, cipher)
            consultation.save()
            if status == Consultation.STATUS_COMPLETED:
                scheduling.update_appointment_status(appointment.id, Appointment.STATUS_COMPLETED, actor=principal)
            log_action(user_id=principal.id, action='consultation_create', object_type='consultation',
                       object_id=consultation.id, detail={'appointmentId': appointment.id, 'status': status})
    except IntegrityError as exc:
        raise ValidationError('this appointment already has a consultation') from exc

    logger.info('consultation %s opened for appointment %s by %s', consultation.id, appointment.id, principal.id)
    return to_record(_load(consultation.id), principal.id, cipher)


def list_consultations(principal: Principal, *, cipher: Optional[FieldCipher] = None) -> List[ConsultationRecord]:
    cipher = cipher or get_cipher()
    qs = _consultations()
    if principal.is_professional:
        qs = qs.filter(professional_id=principal.id)
    return [to_record(c, principal.id, cipher, strict=False) for c in qs.order_by('-created_at', '-id')]


def get_consultation(consultation_id: int, principal: Principal, *,
                     cipher: Optional[FieldCipher] = None) -> ConsultationRecord:
    consultation = _load(consultation_id)
    if principal.is_professional and consultation.professional_id != principal.id:
        logger.warning('professional %s denied access to consultation %s', principal.id, consultation_id)
        raise ForbiddenError('you are not allowed to view this consultation')
    return to_record(consultation, principal.id, cipher)


def list_patient_consultations(patient_id: int, principal: Principal, *,
                               cipher: Optional[FieldCipher] = None) -> List[ConsultationRecord]:
    cipher = cipher or get_cipher()
    qs = _consultations().filter(appointment__patient_id=patient_id).order_by('-created_at', '-id')
    return [to_record(c, principal.id, cipher, strict=False) for c in qs]


def update_consultation(consultation_id: int, changes: Dict[str, Any], principal: Principal, *,
                        cipher: Optional[FieldCipher] = None) -> ConsultationRecord:
    """Re-encrypt provided clinical fields and apply a status change.

    A key that is present with an empty value clears that field.  Setting
    the status to COMPLETED also completes the appointment.
    """
    cipher = cipher or get_cipher()
    with transaction.atomic():
        consultation = Consultation.objects.select_for_update().filter(id=consultation_id).first()
        if not consultation:
            raise NotFoundError(f'consultation {consultation_id} not found')
        if consultation.professional_id != principal.id:
            logger.warning('user %s tried to update consultation %s', principal.id, consultation_id)
            raise ForbiddenError('only the authoring professional can update this consultation')

        new_status = changes.get('status')
        if consultation.status == Consultation.STATUS_COMPLETED and not new_status:
            raise ValidationError('completed consultations cannot be changed')
        if new_status and not can_transition_consultation(consultation.status, new_status):
            raise ValidationError(f'cannot change consultation status from {consultation.status} to {new_status}')

        for name in SENSITIVE_FIELDS:
            if name in changes:
                _store(consultation, name, changes[name], cipher)

        if new_status:
            consultation.status = new_status
            if new_status == Consultation.STATUS_COMPLETED:
                scheduling.update_appointment_status(
                    consultation.appointment_id, Appointment.STATUS_COMPLETED, actor=principal
                )

        consultation.save()
        log_action(user_id=principal.id, action='consultation_update', object_type='consultation',
                   object_id=consultation.id,
                   detail={'fields': sorted(k for k in changes if k in SENSITIVE_FIELDS), 'status': consultation.status})

    if new_status == Consultation.STATUS_COMPLETED:
        logger.info('consultation %s concluded by %s', consultation_id, principal.id)
    return to_record(_load(consultation_id), principal.id, cipher)


def remove_consultation(consultation_id: int, principal: Principal) -> None:
    record = _load(consultation_id)
    if principal.is_professional and record.professional_id != principal.id:
        raise ForbiddenError('you are not allowed to view this consultation')
    if record.status == Consultation.STATUS_COMPLETED:
        raise ValidationError('completed consultations cannot be removed')
    if record.professional_id != principal.id:
        raise ForbiddenError('only the authoring professional can remove this consultation')

    with transaction.atomic():
        scheduling.update_appointment_status(record.appointment_id, Appointment.STATUS_SCHEDULED, actor=principal)
        deleted, per_model = Consultation.objects.filter(id=consultation_id).delete()
        if not per_model.get(Consultation._meta.label):
            raise NotFoundError(f'consultation {consultation_id} not found')
        log_action(user_id=principal.id, action='consultation_delete', object_type='consultation',
                   object_id=consultation_id, detail={'appointmentId': record.appointment_id})
    logger.info('consultation %s removed, appointment %s back to SCHEDULED', consultation_id, record.appointment_id)


def conclude_consultation(consultation_id: int, principal: Principal, *,
                          cipher: Optional[FieldCipher] = None) -> ConsultationRecord:
    return update_consultation(consultation_id, {'status': Consultation.STATUS_COMPLETED}, principal, cipher=cipher)


def get_patient_consultation_history(patient_id: int, principal: Principal, *,
                                     cipher: Optional[FieldCipher] = None) -> PatientHistory:
    records = list_patient_consultations(patient_id, principal, cipher=cipher)
    if not records:
        raise NotFoundError(f'no consultations found for patient {patient_id}')

    records.sort(key=lambda r: (r.appointment.date, r.appointment.time))
    patient_name = getattr(records[0].appointment.patient, 'first_name', '') or 'Patient'
    date_format = settings.CLINIC_HISTORY_DATE_FORMAT
    return PatientHistory(
        patient_id=patient_id,
        patient_name=patient_name,
        history=[HistoryEntry(formatted_date=r.appointment.date.strftime(date_format), consultation=r) for r in records],
    )
