"""SQLAlchemy ORM models.

All models are exported from this module for convenient imports:
    from profile_builder.models import Company, Employer, CandidateProfile

Models are organized by domain:
- company.py: Company, Employer (employer wizards)
- candidate.py: CandidateProfile (candidate wizard)
"""

from profile_builder.models.base import Base, TimestampMixin
from profile_builder.models.candidate import CandidateProfile
from profile_builder.models.company import Company, Employer

__all__ = [
    # Base classes
    "Base",
    "TimestampMixin",
    # Employer side
    "Company",
    "Employer",
    # Candidate side
    "CandidateProfile",
]
