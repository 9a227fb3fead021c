from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Principal:
    """Authenticated caller as handed over by the auth layer."""

    user_id: int
    role: str
    company_id: int
    branch_id: Optional[int] = None

    @classmethod
    def from_membership(cls, membership):
        return cls(
            user_id=membership.user_id,
            role=membership.role,
            company_id=membership.company_id,
            branch_id=membership.branch_id,
        )
