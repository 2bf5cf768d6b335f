from rest_framework import serializers

from core.models import Consultation
from core.serializers.appointment import appointment_payload

STATUSES = [s for s, _ in Consultation.STATUS_CHOICES]

# camelCase API name -> service keyword
FIELD_NAMES = {
    'notes': 'notes',
    'diagnosis': 'diagnosis',
    'treatmentPlan': 'treatment_plan',
    'attentionPoints': 'attention_points',
    'status': 'status',
}


class ConsultationCreateSerializer(serializers.Serializer):
    appointmentId = serializers.IntegerField(min_value=1)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    diagnosis = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    treatmentPlan = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    attentionPoints = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    status = serializers.ChoiceField(choices=STATUSES, required=False)

    def to_kwargs(self) -> dict:
        data = dict(self.validated_data)
        kwargs = {'appointment_id': data.pop('appointmentId')}
        kwargs.update({FIELD_NAMES[k]: v for k, v in data.items()})
        return kwargs


class ConsultationUpdateSerializer(serializers.Serializer):
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    diagnosis = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    treatmentPlan = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    attentionPoints = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    status = serializers.ChoiceField(choices=STATUSES, required=False)

    def to_changes(self) -> dict:
        return {FIELD_NAMES[k]: v for k, v in self.validated_data.items()}


def consultation_payload(record) -> dict:
    """Serialize a :class:`~core.services.consultations.ConsultationRecord`."""
    return {
        'id': record.id,
        'appointmentId': record.appointment_id,
        'appointment': appointment_payload(record.appointment),
        'professionalId': record.professional_id,
        'notes': record.notes,
        'diagnosis': record.diagnosis,
        'treatmentPlan': record.treatment_plan,
        'attentionPoints': record.attention_points,
        'status': record.status,
        'createdAt': record.created_at.isoformat() if record.created_at else None,
        'updatedAt': record.updated_at.isoformat() if record.updated_at else None,
    }


def history_payload(history) -> dict:
    return {
        'patientId': history.patient_id,
        'patientName': history.patient_name,
        'history': [
            {'date': entry.formatted_date, 'consultation': consultation_payload(entry.consultation)}
            for entry in history.history
        ],
    }
