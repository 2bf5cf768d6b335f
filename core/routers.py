"""
URL mappings for the clinic backend API.

Trailing slashes are deliberately omitted (``APPEND_SLASH = False``) to
match what the front-end calls.
"""
from django.urls import path
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from .views import appointments, consultations, health, patients, users

urlpatterns = [
    path('healthz', health.healthz),
    # Authentication
    path('api/auth/token', TokenObtainPairView.as_view(), name='token-obtain'),
    path('api/auth/token/refresh', TokenRefreshView.as_view(), name='token-refresh'),
    # Appointments
    path('api/appointments', appointments.appointments),
    path('api/appointments/available-times', appointments.available_times),
    path('api/appointments/date/<str:day>', appointments.appointments_by_date),
    path('api/appointments/patient/<int:patient_id>', appointments.appointments_by_patient),
    path('api/appointments/<int:pk>', appointments.appointment_detail),
    path('api/appointments/<int:pk>/status', appointments.appointment_status),
    # Consultations
    path('api/consultations', consultations.consultation_list),
    path('api/consultations/<int:pk>', consultations.consultation_detail),
    path('api/consultations/<int:pk>/conclude', consultations.consultation_conclude),
    path('api/consultations/patient/<int:patient_id>', consultations.patient_consultations),
    path('api/consultations/patient/<int:patient_id>/history', consultations.patient_history),
    # Patients
    path('api/patients', patients.patients),
    path('api/patients/<int:pk>', patients.patient_detail),
    path('api/patients/cpf/<str:cpf>', patients.patient_by_cpf),
    # Staff accounts
    path('api/users', users.users),
    path('api/users/profile', users.profile),
    path('api/users/profile/change-password', users.change_password),
    path('api/users/<int:pk>', users.user_detail),
]
