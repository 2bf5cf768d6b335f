from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from core.permissions import IsClinicStaff
from core.serializers.patient import PatientSerializer, patient_payload
from core.services import patients as patient_service


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsClinicStaff])
def patients(request):
    if request.method == 'GET':
        return Response({'ok': True, 'data': [patient_payload(p) for p in patient_service.list_patients()]})
    s = PatientSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    patient = patient_service.create_patient(s.to_model_data())
    return Response({'ok': True, 'data': patient_payload(patient)}, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsClinicStaff])
def patient_detail(request, pk: int):
    if request.method == 'GET':
        return Response({'ok': True, 'data': patient_payload(patient_service.get_patient(pk))})
    if request.method == 'DELETE':
        patient_service.remove_patient(pk)
        return Response(status=status.HTTP_204_NO_CONTENT)
    s = PatientSerializer(data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    patient = patient_service.update_patient(pk, s.to_model_data())
    return Response({'ok': True, 'data': patient_payload(patient)})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsClinicStaff])
def patient_by_cpf(request, cpf: str):
    return Response({'ok': True, 'data': patient_payload(patient_service.get_patient_by_cpf(cpf))})
