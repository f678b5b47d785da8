"""
clinicslots - Appointment availability engine for clinics.
"""

__version__ = "1.0.0"
