from datetime import datetime
from typing import Callable, Optional

from pydantic import BaseModel

from skinscore.services.allowance import (
    Allowance,
    Quota,
    SCAN_QUOTA,
    CHAT_QUOTA,
    compute_allowance,
    is_expired,
    period_start,
)
from skinscore.services.entitlement_store import EntitlementStore, entitlement_store
from skinscore.schemas.profile import Profile

import logging

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 3


class GateDecision(BaseModel):
    permitted: bool
    allowance: Allowance
    period_start: Optional[datetime] = None

    class Config:
        frozen = True


class AllowanceGate:
    """
    Request-time check for a quota-limited action.

    ``check`` is read-only. ``consume`` decides and, when it permits, counts
    the use with a conditional write so concurrent requests cannot push a
    free account past its limit.
    """

    def __init__(
        self,
        quota: Quota,
        store: EntitlementStore = entitlement_store,
        total_field: Optional[str] = None,
        clock: Callable[[], datetime] = datetime.utcnow
    ):
        self.quota = quota
        self.store = store
        self.total_field = total_field
        self.clock = clock

    def _allowance(self, profile: Profile, now: datetime) -> Allowance:
        return compute_allowance(
            is_premium=profile.is_premium,
            usage_count=getattr(profile, self.quota.counter_field),
            limit=self.quota.limit,
            last_reset_at=getattr(profile, self.quota.reset_field),
            now=now,
            period=self.quota.period,
        )

    async def check(self, user_id: str, email: Optional[str] = None) -> Allowance:
        profile = await self.store.get_or_create_profile(user_id, email)
        return self._allowance(profile, self.clock())

    async def consume(self, user_id: str, email: Optional[str] = None) -> GateDecision:
        allowance = None
        for attempt in range(MAX_ATTEMPTS):
            now = self.clock()
            profile = await self.store.get_or_create_profile(user_id, email)
            allowance = self._allowance(profile, now)

            if not allowance.permitted:
                logger.info(f"{self.quota.name} quota exhausted for user {user_id}")
                return GateDecision(permitted=False, allowance=allowance)

            if allowance.unlimited:
                if self.total_field:
                    await self.store.increment_counter(user_id, self.total_field)
                return GateDecision(permitted=True, allowance=allowance)

            stored_reset = getattr(profile, self.quota.reset_field)
            new_period = None
            if is_expired(self.quota.period, stored_reset, now):
                new_period = period_start(self.quota.period, now)

            charged = await self.store.charge_usage(
                user_id,
                counter_field=self.quota.counter_field,
                reset_field=self.quota.reset_field,
                expected_reset_at=stored_reset,
                limit=self.quota.limit,
                new_period_start=new_period,
                also_increment=self.total_field,
            )
            if charged:
                used = allowance.used + 1
                charged_period = new_period or stored_reset
                return GateDecision(
                    permitted=True,
                    allowance=compute_allowance(
                        is_premium=False,
                        usage_count=used,
                        limit=self.quota.limit,
                        last_reset_at=charged_period,
                        now=now,
                        period=self.quota.period,
                    ),
                    period_start=charged_period,
                )

            logger.info(
                f"Concurrent {self.quota.name} usage update for user {user_id}, "
                f"retrying (attempt {attempt + 1})"
            )

        logger.warning(f"Gave up charging {self.quota.name} quota for user {user_id}")
        return GateDecision(permitted=False, allowance=allowance)

    async def refund(self, user_id: str, decision: GateDecision) -> None:
        """Return a use charged by ``consume`` when the action itself failed."""
        if not decision.permitted:
            return
        if decision.allowance.unlimited:
            if self.total_field:
                await self.store.increment_counter(user_id, self.total_field, -1)
            return
        refunded = await self.store.refund_usage(
            user_id,
            counter_field=self.quota.counter_field,
            reset_field=self.quota.reset_field,
            period_start=decision.period_start,
            also_decrement=self.total_field,
        )
        if refunded:
            logger.info(f"Refunded one {self.quota.name} use to user {user_id}")


scan_gate = AllowanceGate(SCAN_QUOTA, total_field="total_scans")
chat_gate = AllowanceGate(CHAT_QUOTA)
