"""
Daily usage quotas.

Combines a profile's (or anonymous device's) counters with the plan limits
table and decides whether another message may be sent. Counters are kept
by the chat backend; this module only reads them.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from .errors import QuotaExceededError
from .plan_limits import Plan, PlanLimitTable, PlanLimits, anonymous_limits, resolve_plan_limits
from .types import UsageBody

logger = logging.getLogger(__name__)

MESSAGE_LIMIT_MESSAGE = "Daily message limit exceeded"
VOICE_NOTE_LIMIT_MESSAGE = "Voice note limit exceeded"
GREETING_MESSAGE = "Hello"
VOICE_MESSAGE_TYPE = "voice"

TRIAL_PLANS = frozenset((Plan.MONTHLY_TRIAL.value, Plan.YEARLY_TRIAL.value))


@dataclass(frozen=True)
class UsageSnapshot:
    plan: str
    messages_used: int
    voice_notes_used: int
    limits: Optional[PlanLimits]  # None means unlimited

    @property
    def unlimited(self) -> bool:
        return self.limits is None

    def to_dict(self) -> UsageBody:
        return {
            "messagesUsed": self.messages_used,
            "voiceNotesUsed": self.voice_notes_used,
            "maxMessages": None if self.limits is None else self.limits.max_messages,
            "maxVoiceNotes": None if self.limits is None else self.limits.max_voice_notes,
        }


def _count(value: Any) -> int:
    # voice_notes_used is a boolean flag on older records
    if isinstance(value, bool):
        return int(value)
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if not isinstance(value, str) or not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        logger.warning(f"Unparseable trial end date: {value}")
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def trial_expired(profile: Mapping, now: Optional[datetime] = None) -> bool:
    """True if the profile is on a trial plan whose end date has passed."""
    if profile.get("current_plan") not in TRIAL_PLANS:
        return False
    trial_end = _parse_timestamp(profile.get("trial_end_date"))
    if trial_end is None:
        return False
    return (now or datetime.now(timezone.utc)) > trial_end


def effective_plan(profile: Mapping, now: Optional[datetime] = None) -> str:
    """The plan to apply for this request; an expired trial counts as freemium."""
    if trial_expired(profile, now):
        return Plan.FREEMIUM.value
    plan = profile.get("current_plan")
    return plan if isinstance(plan, str) and plan else Plan.FREEMIUM.value


def usage_for_profile(
    profile: Mapping,
    table: Optional[PlanLimitTable] = None,
    now: Optional[datetime] = None,
) -> UsageSnapshot:
    plan = effective_plan(profile, now)
    return UsageSnapshot(
        plan=plan,
        messages_used=_count(profile.get("daily_messages_used")),
        voice_notes_used=_count(profile.get("voice_notes_used")),
        limits=None if profile.get("is_judge") else resolve_plan_limits(plan, table),
    )


def usage_for_device(device: Mapping, table: Optional[PlanLimitTable] = None) -> UsageSnapshot:
    return UsageSnapshot(
        plan=Plan.ANONYMOUS.value,
        messages_used=_count(device.get("messages_today")),
        voice_notes_used=_count(device.get("voice_notes_used")),
        limits=anonymous_limits(table),
    )


def is_initial_greeting(message: Optional[str]) -> bool:
    """Session-opening greetings are free and never count against a quota."""
    return not message or not message.strip() or message == GREETING_MESSAGE


def check_quota(usage: UsageSnapshot, message: Optional[str], message_type: Optional[str] = None) -> None:
    """
    Reject the message if it would exceed the daily limits.

    Raises:
        QuotaExceededError: message or voice-note limit reached
    """
    if usage.unlimited or is_initial_greeting(message):
        return

    if usage.messages_used >= usage.limits.max_messages:
        logger.info(f"Message limit reached on plan {usage.plan}")
        raise QuotaExceededError(MESSAGE_LIMIT_MESSAGE)

    if message_type == VOICE_MESSAGE_TYPE and usage.voice_notes_used >= usage.limits.max_voice_notes:
        logger.info(f"Voice note limit reached on plan {usage.plan}")
        raise QuotaExceededError(VOICE_NOTE_LIMIT_MESSAGE)
