# fieldforce/visit_compliance/status_bird.py
"""
Doctor status bird: a per-doctor marker the delegate clicks through
grey → yellow → green → grey. Purely a UI annotation; it does not take
part in any metric.
"""

import logging
from typing import Dict

from .constants import BIRD_CYCLE, BIRD_COLORS, BIRD_LABELS, BIRD_STORE_KEY

logger = logging.getLogger(__name__)


class DoctorStatusBird:
    """
    Usage:
        birds = DoctorStatusBird(SessionStateStore())
        status = birds.get(doctor_id)       # 'grey' by default
        status = birds.cycle(doctor_id)     # next status, persisted
    """

    def __init__(self, store, key: str = BIRD_STORE_KEY):
        self.store = store
        self.key = key

    def _load(self) -> Dict[str, str]:
        statuses = self.store.get(self.key) or {}
        return dict(statuses) if isinstance(statuses, dict) else {}

    def get(self, doctor_id: str) -> str:
        status = self._load().get(str(doctor_id))
        return status if status in BIRD_CYCLE else BIRD_CYCLE[0]

    def cycle(self, doctor_id: str) -> str:
        current = self.get(doctor_id)
        next_status = BIRD_CYCLE[(BIRD_CYCLE.index(current) + 1) % len(BIRD_CYCLE)]

        statuses = self._load()
        statuses[str(doctor_id)] = next_status
        self.store.set(self.key, statuses)

        logger.debug(f"Status bird for doctor {doctor_id}: {current} -> {next_status}")
        return next_status

    @staticmethod
    def color(status: str) -> str:
        return BIRD_COLORS.get(status, BIRD_COLORS[BIRD_CYCLE[0]])

    @staticmethod
    def label(status: str) -> str:
        return BIRD_LABELS.get(status, BIRD_LABELS[BIRD_CYCLE[0]])
