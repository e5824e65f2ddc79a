"""plan.reminders evaluator: reminders one hour before each daily slot, plan expiry."""
from __future__ import annotations

import logging
from datetime import date, datetime, timedelta

from notifier.dispatcher import Dispatcher
from notifier.errors import DataShapeError
from notifier.models import (
    EvaluatorReport,
    NotificationPlan,
    PlanOutcome,
    ScheduleEntry,
    TickContext,
)
from notifier.resolver import RecipientResolver
from notifier.store.base import Store
from notifier.templates import plan_reminder
from notifier.timeutil import day_key, fire_moment, hhmm, minute_floor, parse_hhmm

logger = logging.getLogger(__name__)

DEFAULT_LEAD_MINUTES = 60


class PlanReminderEvaluator:
    """Fires reminders for today's schedule entries and retires plans on their end date.

    A plan carries two anchors (`time`, `time_second`). Every entry scheduled
    on a day fires at each anchor minus the lead (one hour by default). Anchors
    earlier than the lead roll back onto the previous day, so tomorrow's
    entries are checked as well.

    On the plan's end date the plan is deactivated in the first tick at or
    after its last fire moment of that day, and every plan instance scheduled
    on that day is marked inactive.
    """

    id = "plan.reminders"

    def __init__(
        self,
        store: Store,
        dispatcher: Dispatcher,
        lead_minutes: int = DEFAULT_LEAD_MINUTES,
        dry_run: bool = False,
    ):
        self.store = store
        self.dispatcher = dispatcher
        self.resolver = RecipientResolver(store)
        self.lead = timedelta(minutes=int(lead_minutes))
        self.dry_run = dry_run

    @classmethod
    def from_context(cls, ctx: TickContext, options: dict) -> PlanReminderEvaluator:
        return cls(
            ctx.store,
            ctx.dispatcher,
            lead_minutes=options.get("lead_minutes", DEFAULT_LEAD_MINUTES),
            dry_run=ctx.dry_run,
        )

    def evaluate(self, now: datetime) -> EvaluatorReport:
        report = EvaluatorReport(self.id)
        current = minute_floor(now)
        today = current.date()
        try:
            plans = self.store.active_plans(today)
        except Exception as e:
            logger.exception("loading active plans for %s failed: %s", day_key(today), e)
            report.errors += 1
            return report
        logger.info("Checking %s active plan(s) for %s at %s", len(plans), day_key(today), hhmm(current))

        for plan in plans:
            try:
                report.plans.append(self._evaluate_plan(plan, current, report))
            except Exception as e:
                logger.exception("plan %s failed: %s", plan.id, e)
                report.errors += 1
        return report

    def fire_moments(self, plan: NotificationPlan, day: date) -> list[datetime]:
        """Both reminder moments for entries scheduled on `day`; bad anchors are skipped."""
        moments: list[datetime] = []
        for field_name, raw in (("time", plan.time), ("timeSecond", plan.time_second)):
            try:
                moments.append(fire_moment(day, parse_hhmm(raw), self.lead))
            except DataShapeError as e:
                logger.warning("plan %s: %s skipped: %s", plan.id, field_name, e)
        return moments

    def _evaluate_plan(self, plan: NotificationPlan, current: datetime, report: EvaluatorReport) -> PlanOutcome:
        outcome = PlanOutcome(plan.id)
        today = current.date()

        for day in (today, today + timedelta(days=1)):
            if day > plan.end_date:
                continue
            entries = plan.entries_on(day)
            if not entries or current not in self.fire_moments(plan, day):
                continue
            for entry in entries:
                try:
                    if self._remind(entry, current):
                        outcome.fired_entry_ids.append(entry.id)
                        report.dispatched += 1
                    else:
                        report.skipped += 1
                except Exception as e:
                    logger.exception("plan %s entry %s failed: %s", plan.id, entry.id, e)
                    report.errors += 1

        if plan.end_date == today and self._expiry_due(plan, current):
            self._expire(plan, today, outcome, report)
        return outcome

    def _remind(self, entry: ScheduleEntry, current: datetime) -> bool:
        logger.info("Plan entry %s due: reminder for %s (%s)", entry.id, entry.name, entry.time)
        tokens = self.resolver.resolve(entry.group, current)
        if not tokens:
            logger.warning("Plan entry %s has no tokens to send to", entry.id)
            return False
        result = self.dispatcher.dispatch(plan_reminder(entry, tokens))
        logger.info("Plan entry %s: sent %s/%s", entry.id, result.success, result.requested)
        return True

    def _expiry_due(self, plan: NotificationPlan, current: datetime) -> bool:
        today = current.date()
        if not plan.entries_on(today):
            return True
        pending = [m for m in self.fire_moments(plan, today) if m.date() == today]
        return not pending or current >= max(pending)

    def _expire(self, plan: NotificationPlan, today: date, outcome: PlanOutcome, report: EvaluatorReport) -> None:
        instance_ids = list(dict.fromkeys(e.id for e in plan.entries_on(today) if e.id))
        if self.dry_run:
            logger.info("Dry-run: would deactivate plan %s and instances %s", plan.id, instance_ids)
            outcome.expired = True
            return
        self.store.deactivate_plan(plan.id)
        outcome.expired = True
        logger.info("Plan %s deactivated (ends %s)", plan.id, day_key(today))
        for instance_id in instance_ids:
            try:
                self.store.deactivate_plan_instance(instance_id)
                outcome.expired_instance_ids.append(instance_id)
                logger.info("Plan instance %s deactivated", instance_id)
            except Exception as e:
                logger.exception("deactivating plan instance %s failed: %s", instance_id, e)
                report.errors += 1
