import logging
from typing import Any, Dict

from django.db import IntegrityError, transaction

from core.exceptions import ConflictError, NotFoundError, ValidationError
from core.models import Patient

logger = logging.getLogger(__name__)


def _ensure_billing_complete(values: Dict[str, Any]) -> None:
    missing = [f for f in Patient.BILLING_FIELDS if not values.get(f)]
    if missing:
        raise ValidationError('incomplete billing address: ' + ', '.join(missing))


def get_patient(patient_id: int) -> Patient:
    patient = Patient.objects.filter(id=patient_id).first()
    if not patient:
        raise NotFoundError(f'patient {patient_id} not found')
    return patient


def get_patient_by_cpf(cpf: str) -> Patient:
    patient = Patient.objects.filter(cpf=cpf).first()
    if not patient:
        raise NotFoundError(f'patient with cpf {cpf} not found')
    return patient


def list_patients():
    return list(Patient.objects.order_by('first_name', 'last_name'))


def create_patient(data: Dict[str, Any]) -> Patient:
    data = dict(data)
    if Patient.objects.filter(cpf=data.get('cpf')).exists():
        raise ConflictError('cpf already registered')
    if data.get('use_same_address', True):
        for f in Patient.BILLING_FIELDS:
            data[f] = None
    else:
        _ensure_billing_complete(data)
    try:
        with transaction.atomic():
            patient = Patient.objects.create(**data)
    except IntegrityError as exc:
        raise ConflictError('cpf already registered') from exc
    logger.info('patient %s registered', patient.id)
    return patient


def update_patient(patient_id: int, changes: Dict[str, Any]) -> Patient:
    patient = get_patient(patient_id)
    changes = dict(changes)

    new_cpf = changes.get('cpf')
    if new_cpf and new_cpf != patient.cpf and Patient.objects.filter(cpf=new_cpf).exclude(id=patient.id).exists():
        raise ConflictError('cpf already registered')

    if changes.get('use_same_address') is False:
        merged = {f: changes.get(f) or getattr(patient, f) for f in Patient.BILLING_FIELDS}
        _ensure_billing_complete(merged)
    elif changes.get('use_same_address') is True:
        for f in Patient.BILLING_FIELDS:
            changes[f] = None

    for field, value in changes.items():
        setattr(patient, field, value)
    try:
        with transaction.atomic():
            patient.save()
    except IntegrityError as exc:
        raise ConflictError('cpf already registered') from exc
    return patient


def remove_patient(patient_id: int) -> None:
    deleted, per_model = Patient.objects.filter(id=patient_id).delete()
    if not per_model.get(Patient._meta.label):
        raise NotFoundError(f'patient {patient_id} not found')
    logger.info('patient %s removed', patient_id)
