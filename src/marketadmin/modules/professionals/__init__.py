"""Professional listings."""

from marketadmin.modules.professionals.models import Professional, ProfessionalStatus


__all__ = [
    "Professional",
    "ProfessionalStatus",
]
