from .account import Account
from .lead import Lead, LeadStatus

__all__ = [
    "Account",
    "Lead",
    "LeadStatus",
]
