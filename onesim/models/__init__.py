# Models package init
"""
OneSim Backend: ORM Models
==========================

Importing this package registers every table on `Base.metadata`.
"""

from onesim.models.case import Case, CaseAssignment, StudentAnswer
from onesim.models.patient import Patient
from onesim.models.user import User

__all__ = ["Case", "CaseAssignment", "Patient", "StudentAnswer", "User"]
