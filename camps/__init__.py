"""Camps application for the MediCamp backend.

Models, services, serializers, views and route registrations for the
camp catalogue, participant registrations and payments.
"""
