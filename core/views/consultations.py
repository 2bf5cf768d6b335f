"""
Consultation endpoints.

Every handler passes the caller as a :class:`Principal` into
:mod:`core.services.consultations`, which decides what clinical content the
caller may see.  Writes are limited to professionals here; authorship is
checked by the service.
"""
from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..permissions import IsClinicStaff, IsProfessional, IsProfessionalOrReadOnly
from ..serializers.consultation import (
    ConsultationCreateSerializer,
    ConsultationUpdateSerializer,
    consultation_payload,
    history_payload,
)
from ..services import consultations
from ..services.principal import Principal


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsClinicStaff, IsProfessionalOrReadOnly])
def consultation_list(request):
    principal = Principal.from_user(request.user)
    if request.method == 'GET':
        data = [consultation_payload(r) for r in consultations.list_consultations(principal)]
        return Response({'ok': True, 'data': data})
    s = ConsultationCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    record = consultations.create_consultation(principal, **s.to_kwargs())
    return Response({'ok': True, 'data': consultation_payload(record)}, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsClinicStaff, IsProfessionalOrReadOnly])
def consultation_detail(request, pk: int):
    principal = Principal.from_user(request.user)
    if request.method == 'GET':
        return Response({'ok': True, 'data': consultation_payload(consultations.get_consultation(pk, principal))})
    if request.method == 'DELETE':
        consultations.remove_consultation(pk, principal)
        return Response(status=status.HTTP_204_NO_CONTENT)
    s = ConsultationUpdateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    record = consultations.update_consultation(pk, s.to_changes(), principal)
    return Response({'ok': True, 'data': consultation_payload(record)})


@api_view(['PATCH'])
@permission_classes([IsAuthenticated, IsProfessional])
def consultation_conclude(request, pk: int):
    record = consultations.conclude_consultation(pk, Principal.from_user(request.user))
    return Response({'ok': True, 'data': consultation_payload(record)})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsClinicStaff])
def patient_consultations(request, patient_id: int):
    records = consultations.list_patient_consultations(patient_id, Principal.from_user(request.user))
    return Response({'ok': True, 'data': [consultation_payload(r) for r in records]})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsClinicStaff])
def patient_history(request, patient_id: int):
    history = consultations.get_patient_consultation_history(patient_id, Principal.from_user(request.user))
    return Response({'ok': True, 'data': history_payload(history)})
