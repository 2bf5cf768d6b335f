"""
Database models for the clinic backend.

These models capture the core concepts of the system: staff users with a
clinic role, patients, appointments occupying a scheduling slot and the
clinical consultation recorded for an appointment.  Sensitive consultation
content is never stored in clear text; each field is kept as a ciphertext
and initialisation vector pair (see :mod:`core.services.crypto`).
"""
from __future__ import annotations

from django.contrib.auth.models import AbstractUser
from django.db import models
from django.db.models import Q


class User(AbstractUser):
    """Custom user model carrying the clinic role.

    Professionals author consultations and are the only users able to read
    the clinical content they wrote.  Secretaries and administrators run the
    agenda and the patient registry.
    """
    ROLE_ADMIN = 'admin'
    ROLE_PROFESSIONAL = 'professional'
    ROLE_SECRETARY = 'secretary'
    ROLE_CHOICES = [
        (ROLE_ADMIN, 'Administrator'),
        (ROLE_PROFESSIONAL, 'Health professional'),
        (ROLE_SECRETARY, 'Secretary'),
    ]
    role = models.CharField(max_length=16, choices=ROLE_CHOICES, default=ROLE_SECRETARY)

    def __str__(self) -> str:
        return f"{self.username} ({self.role})"


class Patient(models.Model):
    """A patient of the clinic with home and billing addresses."""
    cpf = models.CharField(max_length=14, unique=True)
    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100)
    birth_date = models.DateField()

    home_zip_code = models.CharField(max_length=9)
    home_street = models.CharField(max_length=255)
    home_number = models.CharField(max_length=20)
    home_neighborhood = models.CharField(max_length=100)
    home_state = models.CharField(max_length=2)
    home_city = models.CharField(max_length=100)

    use_same_address = models.BooleanField(default=True)
    billing_zip_code = models.CharField(max_length=9, null=True, blank=True)
    billing_street = models.CharField(max_length=255, null=True, blank=True)
    billing_number = models.CharField(max_length=20, null=True, blank=True)
    billing_neighborhood = models.CharField(max_length=100, null=True, blank=True)
    billing_state = models.CharField(max_length=2, null=True, blank=True)
    billing_city = models.CharField(max_length=100, null=True, blank=True)

    phone = models.CharField(max_length=20)
    whatsapp = models.CharField(max_length=20, blank=True)
    email = models.EmailField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    BILLING_FIELDS = (
        'billing_zip_code',
        'billing_street',
        'billing_number',
        'billing_neighborhood',
        'billing_state',
        'billing_city',
    )

    def __str__(self) -> str:
        return f"{self.first_name} {self.last_name} ({self.cpf})"


class Appointment(models.Model):
    """A booked slot in the clinic agenda.

    At most one non-canceled appointment may hold a given ``(date, time)``
    pair.  The service layer checks this before writing and the partial
    unique constraint below rejects whatever slips through concurrently.
    """
    STATUS_SCHEDULED = 'SCHEDULED'
    STATUS_IN_PROGRESS = 'IN_PROGRESS'
    STATUS_COMPLETED = 'COMPLETED'
    STATUS_CANCELED = 'CANCELED'
    STATUS_CHOICES = [
        (STATUS_SCHEDULED, 'Scheduled'),
        (STATUS_IN_PROGRESS, 'In progress'),
        (STATUS_COMPLETED, 'Completed'),
        (STATUS_CANCELED, 'Canceled'),
    ]

    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name='appointments')
    date = models.DateField(db_index=True)
    time = models.TimeField()
    observations = models.TextField(blank=True, null=True)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_SCHEDULED, db_index=True)
    created_by = models.ForeignKey(User, on_delete=models.PROTECT, related_name='appointments_created')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['date', 'time']
        constraints = [
            models.UniqueConstraint(
                fields=['date', 'time'],
                condition=~Q(status='CANCELED'),
                name='uniq_active_appointment_slot',
            ),
        ]
        indexes = [
            models.Index(fields=['patient', 'date', 'time'], name='core_appoin_patient_4b1c2e_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.date:%Y-%m-%d} {self.time:%H:%M} {self.status} p={self.patient_id}"


class Consultation(models.Model):
    """The clinical record of one appointment.

    The four sensitive fields are encrypted under a key bound to the
    authoring professional, so only that user can read them back.
    """
    STATUS_IN_PROGRESS = 'IN_PROGRESS'
    STATUS_COMPLETED = 'COMPLETED'
    STATUS_CHOICES = [
        (STATUS_IN_PROGRESS, 'In progress'),
        (STATUS_COMPLETED, 'Completed'),
    ]

    SENSITIVE_FIELDS = ('notes', 'diagnosis', 'treatment_plan', 'attention_points')

    appointment = models.OneToOneField(Appointment, on_delete=models.CASCADE, related_name='consultation')
    professional = models.ForeignKey(User, on_delete=models.PROTECT, related_name='consultations')

    notes_encrypted = models.TextField(null=True, blank=True)
    notes_iv = models.CharField(max_length=32, null=True, blank=True)
    diagnosis_encrypted = models.TextField(null=True, blank=True)
    diagnosis_iv = models.CharField(max_length=32, null=True, blank=True)
    treatment_plan_encrypted = models.TextField(null=True, blank=True)
    treatment_plan_iv = models.CharField(max_length=32, null=True, blank=True)
    attention_points_encrypted = models.TextField(null=True, blank=True)
    attention_points_iv = models.CharField(max_length=32, null=True, blank=True)

    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_IN_PROGRESS)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=['professional', 'created_at'], name='core_consul_profess_8d0f3a_idx'),
        ]

    def __str__(self) -> str:
        return f"consultation {self.id} appt={self.appointment_id} by={self.professional_id}"


class AuditEvent(models.Model):
    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True)
    action = models.CharField(max_length=64)
    object_type = models.CharField(max_length=64, blank=True, null=True)
    object_id = models.BigIntegerField(blank=True, null=True)
    detail = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['action', 'created_at'], name='core_audite_action_5e7a91_idx'),
            models.Index(fields=['object_type', 'object_id', 'created_at'], name='core_audite_object__c3b8d2_idx'),
        ]

    def __str__(self):
        return f"{self.action}:{self.object_type}#{self.object_id} by {self.user_id}"
