"""
BOL Command Layer — Policy Outcomes
=====================================
Policies judge intent. A denied intent is explained by a
RejectionReason, never by a bare string.
"""

from core.commands.rejection import (
    ReasonCode,
    RejectionReason,
)

__all__ = [
    "ReasonCode",
    "RejectionReason",
]
