import bleach
from rest_framework import serializers

from core.models import Appointment
from core.serializers.patient import patient_summary

TIME_PATTERN = r'^([0-1]?[0-9]|2[0-3]):([0-5][0-9])$'
TIME_MESSAGE = 'invalid time, use the HH:MM format (e.g. 14:30)'

STATUSES = [s for s, _ in Appointment.STATUS_CHOICES]


def _clean_observations(v):
    if v is None:
        return None
    return bleach.clean(v.strip(), strip=True)


class AppointmentCreateSerializer(serializers.Serializer):
    patientId = serializers.IntegerField(min_value=1)
    appointmentDate = serializers.DateField(format='%Y-%m-%d', input_formats=['%Y-%m-%d'])
    appointmentTime = serializers.RegexField(TIME_PATTERN, error_messages={'invalid': TIME_MESSAGE})
    observations = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=2000)

    def validate_observations(self, v):
        return _clean_observations(v)


class AppointmentUpdateSerializer(serializers.Serializer):
    patientId = serializers.IntegerField(min_value=1, required=False)
    appointmentDate = serializers.DateField(required=False, input_formats=['%Y-%m-%d'])
    appointmentTime = serializers.RegexField(TIME_PATTERN, required=False, error_messages={'invalid': TIME_MESSAGE})
    observations = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=2000)
    status = serializers.ChoiceField(choices=STATUSES, required=False)

    def validate_observations(self, v):
        return _clean_observations(v)

    def to_changes(self) -> dict:
        """Translate validated camelCase input into scheduling service keys."""
        data = self.validated_data
        names = {
            'patientId': 'patient_id',
            'appointmentDate': 'date',
            'appointmentTime': 'time',
            'observations': 'observations',
            'status': 'status',
        }
        return {names[k]: v for k, v in data.items()}


class AppointmentStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=STATUSES)


class AvailableTimesQuerySerializer(serializers.Serializer):
    date = serializers.DateField(input_formats=['%Y-%m-%d'])


def appointment_payload(a: Appointment) -> dict:
    return {
        'id': a.id,
        'patientId': a.patient_id,
        'patient': patient_summary(a.patient),
        'appointmentDate': a.date.isoformat(),
        'appointmentTime': a.time.strftime('%H:%M'),
        'observations': a.observations,
        'status': a.status,
        'createdBy': a.created_by_id,
        'createdByName': (a.created_by.get_full_name() or a.created_by.username) if a.created_by_id else None,
        'createdAt': a.created_at.isoformat() if a.created_at else None,
        'updatedAt': a.updated_at.isoformat() if a.updated_at else None,
    }
