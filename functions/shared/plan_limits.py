"""
Plan identifiers and per-plan usage limits.

The limits table is static configuration: resolved once into the settings
object and never mutated. Resolution never fails; anything unknown is
treated as the freemium tier.
"""

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional

from .constants import ANONYMOUS_LIMITS, PLAN_LIMITS
from .types import PlanLimitsBody


class Plan(str, Enum):
    """Canonical plan identifiers shared by limit resolution and entitlement updates."""

    ANONYMOUS = "anonymous"
    FREEMIUM = "freemium"
    MONTHLY_TRIAL = "monthly_trial"
    YEARLY_TRIAL = "yearly_trial"
    MONTHLY_PREMIUM = "monthly_premium"
    YEARLY_PREMIUM = "yearly_premium"
    PREMIUM = "premium"


@dataclass(frozen=True)
class PlanLimits:
    max_messages: int
    max_voice_notes: int

    @classmethod
    def from_dict(cls, data: Mapping) -> "PlanLimits":
        return cls(
            max_messages=int(data["maxMessages"]),
            max_voice_notes=int(data["maxVoiceNotes"]),
        )

    def to_dict(self) -> PlanLimitsBody:
        return {"maxMessages": self.max_messages, "maxVoiceNotes": self.max_voice_notes}


@dataclass(frozen=True)
class PlanLimitTable:
    """Immutable plan -> limits mapping plus the anonymous tier."""

    plans: Mapping[str, PlanLimits]
    anonymous: PlanLimits

    @classmethod
    def from_config(cls, plans: Mapping[str, Mapping], anonymous: Mapping) -> "PlanLimitTable":
        resolved = {name: PlanLimits.from_dict(limits) for name, limits in plans.items()}
        if Plan.FREEMIUM.value not in resolved:
            raise ValueError("Plan limits must define the freemium tier")
        return cls(
            plans=MappingProxyType(resolved),
            anonymous=PlanLimits.from_dict(anonymous),
        )


DEFAULT_PLAN_LIMITS = PlanLimitTable.from_config(PLAN_LIMITS, ANONYMOUS_LIMITS)


def resolve_plan_limits(plan: Optional[str], table: Optional[PlanLimitTable] = None) -> PlanLimits:
    """
    Get the usage limits for a plan.

    Args:
        plan: Plan identifier (may be unknown or None)
        table: Limits table, defaults to the built-in one

    Returns:
        PlanLimits for the plan, or the freemium limits if the plan is unknown
    """
    table = table or DEFAULT_PLAN_LIMITS
    if isinstance(plan, Plan):
        plan = plan.value
    if not isinstance(plan, str):
        plan = ""
    return table.plans.get(plan, table.plans[Plan.FREEMIUM.value])


def anonymous_limits(table: Optional[PlanLimitTable] = None) -> PlanLimits:
    """Limits for visitors without an account."""
    return (table or DEFAULT_PLAN_LIMITS).anonymous
