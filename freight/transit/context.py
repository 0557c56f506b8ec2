"""
Operator context passed into every transit engine call.
"""

from dataclasses import dataclass
from typing import Any, Optional

from .models import Branch


@dataclass(frozen=True)
class BranchContext:
    """
    The branch an operator is working from, and who they are.

    Assignments take their origin branch from here, and the audit trail
    records the user.
    """

    branch: Branch
    user: Optional[Any] = None

    @property
    def branch_id(self):
        return self.branch.id
