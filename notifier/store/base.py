"""Store abstraction: the document store holding plans, users, pauses, devices."""
from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date

from notifier.models import Activity, NotificationPlan, PauseWindow


class Store(ABC):
    """Read snapshots per tick; the only writes are the two deactivation flags."""

    @abstractmethod
    def active_plans(self, today: date) -> list[NotificationPlan]:
        """Plans with isActive and startDate <= today <= endDate."""
        ...

    @abstractmethod
    def deactivate_plan(self, plan_id: str) -> None:
        """Set isActive=false on a notification plan."""
        ...

    @abstractmethod
    def deactivate_plan_instance(self, instance_id: str) -> None:
        """Set estado=false on a plan instance."""
        ...

    @abstractmethod
    def group_user_ids(self, group_id: str) -> list[str]:
        ...

    @abstractmethod
    def available_user_ids(self, user_ids: list[str], hhmm: str) -> list[str]:
        """User ids among `user_ids` with an active pause window covering hhmm."""
        ...

    @abstractmethod
    def device_tokens(self, user_id: str) -> list[str]:
        ...

    @abstractmethod
    def pause_windows(self) -> list[PauseWindow]:
        ...

    @abstractmethod
    def activities(self) -> list[Activity]:
        ...
