"""Core application for the clinic backend.

This package contains the models, services, serializers, views and route
registrations for patients, appointment scheduling and consultations.
"""
