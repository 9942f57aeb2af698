"""
SUS Portal

A FastAPI-based service for the national health-system portal demo: patient
and doctor accounts, doctor-published appointment slots and patient bookings,
persisted in namespaced record collections.
"""

__version__ = "1.0.0"
