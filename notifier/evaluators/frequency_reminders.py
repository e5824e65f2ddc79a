"""frequency.suggestions evaluator: periodic activity suggestions per user."""
from __future__ import annotations

import logging
import random
from datetime import datetime

from notifier.dispatcher import Dispatcher
from notifier.models import Activity, EvaluatorReport, PauseWindow, TickContext
from notifier.resolver import RecipientResolver
from notifier.store.base import Store
from notifier.templates import activity_suggestion
from notifier.timeutil import hhmm, minute_floor

logger = logging.getLogger(__name__)

DEFAULT_START_HOUR = 8
DEFAULT_END_HOUR = 23


def frequency_due(frequency: int, moment: datetime, start_hour: int = DEFAULT_START_HOUR, end_hour: int = DEFAULT_END_HOUR) -> bool:
    """True on the hour, inside [start_hour, end_hour], every `frequency` hours from start_hour."""
    if frequency <= 0 or moment.minute != 0:
        return False
    if moment.hour < start_hour or moment.hour > end_hour:
        return False
    return (moment.hour - start_hour) % frequency == 0


class FrequencyReminderEvaluator:
    id = "frequency.suggestions"

    def __init__(
        self,
        store: Store,
        dispatcher: Dispatcher,
        rng: random.Random | None = None,
        start_hour: int = DEFAULT_START_HOUR,
        end_hour: int = DEFAULT_END_HOUR,
    ):
        self.store = store
        self.dispatcher = dispatcher
        self.resolver = RecipientResolver(store)
        self.rng = rng or random.Random()
        self.start_hour = int(start_hour)
        self.end_hour = int(end_hour)

    @classmethod
    def from_context(cls, ctx: TickContext, options: dict) -> FrequencyReminderEvaluator:
        return cls(
            ctx.store,
            ctx.dispatcher,
            rng=ctx.rng,
            start_hour=options.get("start_hour", DEFAULT_START_HOUR),
            end_hour=options.get("end_hour", DEFAULT_END_HOUR),
        )

    def evaluate(self, now: datetime, activities: list[Activity] | None = None) -> EvaluatorReport:
        """Send one random activity to every user whose frequency is due at `now`.

        `activities` defaults to the store's full list, fetched only when the
        current minute can fire at all.
        """
        report = EvaluatorReport(self.id)
        current = minute_floor(now)
        if current.minute != 0 or not self.start_hour <= current.hour <= self.end_hour:
            return report

        try:
            if activities is None:
                activities = self.store.activities()
            windows = self.store.pause_windows()
        except Exception as e:
            logger.exception("loading activities/frequencies failed: %s", e)
            report.errors += 1
            return report
        logger.info("Checking %s frequency record(s) at %s", len(windows), hhmm(current))

        for window in windows:
            if not window.notifi_active or not window.frequency or window.frequency <= 0:
                continue
            if not frequency_due(window.frequency, current, self.start_hour, self.end_hour):
                continue
            try:
                if self._suggest(window, activities):
                    report.dispatched += 1
                else:
                    report.skipped += 1
            except Exception as e:
                logger.exception("frequency reminder for user %s failed: %s", window.user_id, e)
                report.errors += 1
        return report

    def _suggest(self, window: PauseWindow, activities: list[Activity]) -> bool:
        if not activities:
            logger.warning("No activities available, suggestion for user %s skipped", window.user_id)
            return False
        activity = self.rng.choice(activities)
        tokens = self.resolver.devices_for_user(window.user_id)
        if not tokens:
            logger.info("User %s has no devices", window.user_id)
            return False
        result = self.dispatcher.dispatch(activity_suggestion(activity, tokens))
        logger.info(
            "Frequency reminder sent to %s: %s device(s), activity %s",
            window.user_id,
            result.success,
            activity.id,
        )
        return True
