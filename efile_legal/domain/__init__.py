"""
Domain layer - Core intake and administration logic.

This module contains the wizard state machine, the category catalog and the
models exchanged with the backend, isolated from Flask and HTTP concerns.
"""
