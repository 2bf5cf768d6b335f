"""
Appointment endpoints.

Thin wrappers around :mod:`core.services.scheduling`: input shape is
checked by the serializers, everything else (opening hours, past dates,
slot conflicts, status transitions) is decided by the service and any
domain error it raises is rendered by ``core.exceptions``.
"""
from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..permissions import IsClinicStaff
from ..serializers.appointment import (
    AppointmentCreateSerializer,
    AppointmentStatusSerializer,
    AppointmentUpdateSerializer,
    AvailableTimesQuerySerializer,
    appointment_payload,
)
from ..services import scheduling
from ..services.principal import Principal


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsClinicStaff])
def appointments(request):
    if request.method == 'GET':
        data = [appointment_payload(a) for a in scheduling.list_appointments()]
        return Response({'ok': True, 'data': data})
    s = AppointmentCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    appointment = scheduling.create_appointment(
        patient_id=s.validated_data['patientId'],
        appointment_date=s.validated_data['appointmentDate'],
        appointment_time=s.validated_data['appointmentTime'],
        observations=s.validated_data.get('observations'),
        creator_id=request.user.id,
    )
    return Response({'ok': True, 'data': appointment_payload(appointment)}, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsClinicStaff])
def appointments_by_date(request, day: str):
    data = [appointment_payload(a) for a in scheduling.list_appointments_by_date(day)]
    return Response({'ok': True, 'data': data})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsClinicStaff])
def appointments_by_patient(request, patient_id: int):
    data = [appointment_payload(a) for a in scheduling.list_appointments_by_patient(patient_id)]
    return Response({'ok': True, 'data': data})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsClinicStaff])
def available_times(request):
    q = AvailableTimesQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    day = q.validated_data['date']
    return Response({'ok': True, 'date': day.isoformat(), 'data': scheduling.get_available_time_slots(day)})


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsClinicStaff])
def appointment_detail(request, pk: int):
    actor = Principal.from_user(request.user)
    if request.method == 'GET':
        return Response({'ok': True, 'data': appointment_payload(scheduling.get_appointment(pk))})
    if request.method == 'DELETE':
        scheduling.remove_appointment(pk, actor=actor)
        return Response(status=status.HTTP_204_NO_CONTENT)
    s = AppointmentUpdateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    appointment = scheduling.update_appointment(pk, s.to_changes(), actor=actor)
    return Response({'ok': True, 'data': appointment_payload(appointment)})


@api_view(['PATCH'])
@permission_classes([IsAuthenticated, IsClinicStaff])
def appointment_status(request, pk: int):
    s = AppointmentStatusSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    appointment = scheduling.update_appointment_status(
        pk, s.validated_data['status'], actor=Principal.from_user(request.user)
    )
    return Response({'ok': True, 'data': appointment_payload(appointment)})
