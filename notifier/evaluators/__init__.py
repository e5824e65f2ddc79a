# Evaluator registry
from __future__ import annotations

from notifier.evaluators.frequency_reminders import FrequencyReminderEvaluator
from notifier.evaluators.plan_reminders import PlanReminderEvaluator

EVALUATORS: dict[str, type] = {
    "plan.reminders": PlanReminderEvaluator,
    "frequency.suggestions": FrequencyReminderEvaluator,
}

# Order used when the config does not list evaluators.
DEFAULT_EVALUATORS = ["plan.reminders", "frequency.suggestions"]


def get_evaluator(evaluator_id: str):
    """Return evaluator class for evaluator_id; raises KeyError if unknown."""
    if evaluator_id not in EVALUATORS:
        raise KeyError(f"Unknown evaluator_id: {evaluator_id}")
    return EVALUATORS[evaluator_id]
