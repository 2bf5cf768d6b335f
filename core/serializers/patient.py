import bleach
from rest_framework import serializers

from core.models import Patient

# camelCase API name -> model field
FIELD_NAMES = {
    'cpf': 'cpf',
    'firstName': 'first_name',
    'lastName': 'last_name',
    'birthDate': 'birth_date',
    'homeZipCode': 'home_zip_code',
    'homeStreet': 'home_street',
    'homeNumber': 'home_number',
    'homeNeighborhood': 'home_neighborhood',
    'homeState': 'home_state',
    'homeCity': 'home_city',
    'useSameAddress': 'use_same_address',
    'billingZipCode': 'billing_zip_code',
    'billingStreet': 'billing_street',
    'billingNumber': 'billing_number',
    'billingNeighborhood': 'billing_neighborhood',
    'billingState': 'billing_state',
    'billingCity': 'billing_city',
    'phone': 'phone',
    'whatsapp': 'whatsapp',
    'email': 'email',
}


class PatientSerializer(serializers.Serializer):
    cpf = serializers.RegexField(r'^\d{3}\.?\d{3}\.?\d{3}-?\d{2}$', error_messages={'invalid': 'invalid cpf'})
    firstName = serializers.CharField(max_length=100)
    lastName = serializers.CharField(max_length=100)
    birthDate = serializers.DateField(input_formats=['%Y-%m-%d'])
    homeZipCode = serializers.CharField(max_length=9)
    homeStreet = serializers.CharField(max_length=255)
    homeNumber = serializers.CharField(max_length=20)
    homeNeighborhood = serializers.CharField(max_length=100)
    homeState = serializers.CharField(min_length=2, max_length=2)
    homeCity = serializers.CharField(max_length=100)
    useSameAddress = serializers.BooleanField(required=False, default=True)
    billingZipCode = serializers.CharField(max_length=9, required=False, allow_null=True, allow_blank=True)
    billingStreet = serializers.CharField(max_length=255, required=False, allow_null=True, allow_blank=True)
    billingNumber = serializers.CharField(max_length=20, required=False, allow_null=True, allow_blank=True)
    billingNeighborhood = serializers.CharField(max_length=100, required=False, allow_null=True, allow_blank=True)
    billingState = serializers.CharField(max_length=2, required=False, allow_null=True, allow_blank=True)
    billingCity = serializers.CharField(max_length=100, required=False, allow_null=True, allow_blank=True)
    phone = serializers.CharField(max_length=20)
    whatsapp = serializers.CharField(max_length=20, required=False, allow_blank=True)
    email = serializers.EmailField(required=False, allow_blank=True)

    def validate_firstName(self, v):
        v = bleach.clean((v or '').strip(), strip=True)
        if len(v) < 2:
            raise serializers.ValidationError('first name needs at least 2 characters')
        return v

    def validate_lastName(self, v):
        return bleach.clean((v or '').strip(), strip=True)

    def to_model_data(self) -> dict:
        return {FIELD_NAMES[k]: v for k, v in self.validated_data.items()}


def patient_summary(p: Patient) -> dict:
    return {
        'id': p.id,
        'firstName': p.first_name,
        'lastName': p.last_name,
        'cpf': p.cpf,
    }


def patient_payload(p: Patient) -> dict:
    data = {api: getattr(p, field) for api, field in FIELD_NAMES.items()}
    data['birthDate'] = p.birth_date.isoformat() if p.birth_date else None
    data['id'] = p.id
    data['createdAt'] = p.created_at.isoformat() if p.created_at else None
    data['updatedAt'] = p.updated_at.isoformat() if p.updated_at else None
    return data
