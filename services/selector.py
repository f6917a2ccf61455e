"""Sticky weighted-random variant selection.

The same algorithm serves page-level A/B tests and in-block variants; only the
storage key and the payload differ. The control ("original") is synthesized
on every call and receives whatever share the explicit variants leave over.
Declared shares above 100% in total are accepted as-is: the control floors at
zero and the draw runs over the declared total.
"""
from dataclasses import dataclass
from typing import Any, Callable, Sequence
from services.storage import Storage
import logging
import random

logger = logging.getLogger(__name__)

CONTROL_VARIANT_ID = "original"
CONTROL_VARIANT_NAME = "Original"

PAGE_TEST_KEY_PREFIX = "pb_ab_variant_"
BLOCK_TEST_KEY_PREFIX = "pb_ab_variant_block_"


def page_test_key(test_id: str) -> str:
    return f"{PAGE_TEST_KEY_PREFIX}{test_id}"


def block_test_key(block_id: str) -> str:
    return f"{BLOCK_TEST_KEY_PREFIX}{block_id}"


@dataclass(frozen=True)
class Variant:
    id: str
    name: str
    traffic_percentage: float
    payload: Any = None


@dataclass(frozen=True)
class Selection:
    variant_id: str
    variant_name: str
    payload: Any
    persisted: bool = False

    @property
    def is_control(self) -> bool:
        return self.variant_id == CONTROL_VARIANT_ID


def build_candidates(variants: Sequence[Variant], control_payload: Any) -> list[Variant]:
    """Control first, then the explicit variants in their declared order."""
    declared = sum(v.traffic_percentage for v in variants)
    control = Variant(
        id=CONTROL_VARIANT_ID,
        name=CONTROL_VARIANT_NAME,
        traffic_percentage=max(0, 100 - declared),
        payload=control_payload,
    )
    return [control, *variants]


def weighted_pick(candidates: Sequence[Variant], draw: float) -> Variant:
    """Pick by walking cumulative weights; ``draw`` is uniform in [0, 1).

    Candidates with no weight are never picked. When nothing matches
    (every weight is zero) the first candidate wins.
    """
    total = sum(c.traffic_percentage for c in candidates)
    target = draw * total

    cumulative = 0.0
    for candidate in candidates:
        if candidate.traffic_percentage <= 0:
            continue
        cumulative += candidate.traffic_percentage
        if cumulative >= target:
            return candidate

    return candidates[0]


class VariantSelector:
    def __init__(self, storage: Storage, rng: Callable[[], float] = random.random):
        self.storage = storage
        self.rng = rng

    def resolve_variant(self, test_key: str, variants: Sequence[Variant], control_payload: Any) -> Selection:
        """Return the visitor's variant for ``test_key``, assigning one if needed."""
        candidates = build_candidates(variants, control_payload)

        # No explicit variants: nothing is being tested
        if not variants:
            control = candidates[0]
            return Selection(control.id, control.name, control.payload)

        stored_id = self.storage.get(test_key)
        if stored_id:
            for candidate in candidates:
                if candidate.id == stored_id:
                    logger.debug("sticky assignment for %s: %s", test_key, stored_id)
                    return Selection(candidate.id, candidate.name, candidate.payload)
            logger.info("stored variant %s for %s is gone, re-assigning", stored_id, test_key)

        chosen = weighted_pick(candidates, self.rng())
        self.storage.set(test_key, chosen.id)
        logger.info("assigned %s to variant %s", test_key, chosen.id)
        return Selection(chosen.id, chosen.name, chosen.payload, persisted=True)
