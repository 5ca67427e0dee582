"""
Economic Event Scheduler

Owns the single predicted-econ-event slot. Active effects are not stored
here: callers pass them back in on every request, and the scheduler only
decides whether a new event starts.
"""

import logging
import random
import threading
from typing import List, Optional, Sequence

from simulation.config import (
    SECTORS,
    ECON_MIN_GAP_DAYS,
    ECON_FORCED_GAP_DAYS,
    ECON_EVENT_PROBABILITY,
    ECON_EVENT_DURATIONS,
)
from simulation.models.schemas import EconEvent, PredictedEconEvent

logger = logging.getLogger(__name__)


def last_event_day(active_effects: Sequence[EconEvent], current_day: int) -> int:
    """Latest start day among active effects; 0 when there are none"""
    if not active_effects:
        return 0
    return max(
        effect.start_day if effect.start_day is not None else current_day
        for effect in active_effects
    )


class EconEventScheduler:
    """
    Produces sector-wide econ events on a 6-10 day cadence

    Each instance holds its own predicted-event slot guarded by a lock, so
    independent game services (and tests) never share state.
    """

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()
        self._predicted: Optional[PredictedEconEvent] = None
        self._lock = threading.Lock()

    @property
    def predicted(self) -> Optional[PredictedEconEvent]:
        """Current predicted event, if any"""
        with self._lock:
            return self._predicted

    def _draw_event_fields(self) -> dict:
        sector = self.rng.choice(SECTORS)
        days_left = self.rng.randint(min(ECON_EVENT_DURATIONS), max(ECON_EVENT_DURATIONS))
        direction = "positive" if self.rng.random() > 0.5 else "negative"
        return {
            "sector": sector,
            "headline": f"{direction.capitalize()} Market Shift in {sector}",
            "days_left": days_left,
            "direction": direction,
        }

    def maybe_schedule_event(
        self,
        active_effects: Sequence[EconEvent],
        current_day: int
    ) -> Optional[EconEvent]:
        """
        Possibly start a fresh econ event tomorrow

        No event can start until 6 days after the latest active one. From
        day 6 to 9 the chance is 50%, and from day 10 on it is certain.

        Args:
            active_effects: Effects currently in play (caller-held)
            current_day: Last completed day

        Returns:
            New event starting on current_day + 1, or None
        """
        days_since = current_day - last_event_day(active_effects, current_day)
        if days_since < ECON_MIN_GAP_DAYS:
            return None

        probability = 1.0 if days_since >= ECON_FORCED_GAP_DAYS else ECON_EVENT_PROBABILITY
        if self.rng.random() >= probability:
            return None

        event = EconEvent(start_day=current_day + 1, **self._draw_event_fields())
        logger.info(f"Scheduled econ event '{event.headline}' starting day {event.start_day}")
        return event

    def promote_predicted_event(self, current_day: int, days: int) -> Optional[EconEvent]:
        """
        Activate the predicted event if it triggers within this batch

        A prediction whose day is in (current_day, current_day + days] is
        converted to an active event and the slot is cleared. A prediction
        already at or before current_day is stale and is discarded.
        """
        with self._lock:
            predicted = self._predicted
            if predicted is None:
                return None
            if predicted.day <= current_day:
                logger.info(f"Discarding expired econ prediction for day {predicted.day}")
                self._predicted = None
                return None
            if predicted.day > current_day + days:
                return None
            self._predicted = None

        event = predicted.activate()
        logger.info(f"Promoted predicted econ event '{event.headline}' on day {event.start_day}")
        return event

    def events_for_batch(
        self,
        active_effects: Sequence[EconEvent],
        current_day: int,
        days: int
    ) -> List[EconEvent]:
        """At most one new event per simulated batch; a promoted prediction wins"""
        promoted = self.promote_predicted_event(current_day, days)
        if promoted is not None:
            return [promoted]
        scheduled = self.maybe_schedule_event(active_effects, current_day)
        return [scheduled] if scheduled is not None else []

    def predict_econ_event(
        self,
        active_effects: Sequence[EconEvent],
        current_day: int
    ) -> PredictedEconEvent:
        """
        Announce the next econ event ahead of time

        Returns the stored prediction unchanged while its day is still in the
        future. Otherwise a new one is drawn 6-10 days out, pulled in so the
        gap since the last active event never exceeds 10 days, and never
        earlier than tomorrow.

        Args:
            active_effects: Effects currently in play (caller-held)
            current_day: Last completed day

        Returns:
            The stored PredictedEconEvent
        """
        with self._lock:
            if self._predicted is not None and current_day >= self._predicted.day:
                self._predicted = None
            if self._predicted is not None:
                return self._predicted

            days_since = current_day - last_event_day(active_effects, current_day)
            days_until = self.rng.randint(ECON_MIN_GAP_DAYS, ECON_FORCED_GAP_DAYS)
            if days_since >= ECON_MIN_GAP_DAYS:
                days_until = max(1, min(days_until, ECON_FORCED_GAP_DAYS - days_since))

            self._predicted = PredictedEconEvent(day=current_day + days_until, **self._draw_event_fields())
            logger.info(f"Predicted econ event '{self._predicted.headline}' for day {self._predicted.day}")
            return self._predicted
