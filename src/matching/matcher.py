"""
Nearest-neighbour matching of descriptors against enrolled signatures.

Two policies are supported:
- LabeledMatcher: one class per enrolled entry, reported under the entry's
  label, accepted below 0.6.
- NearestMatcher: single closest signature, accepted below 0.5.
"""

from __future__ import annotations

import logging
import math
from typing import Iterable, Optional, Sequence

import numpy as np

from errors import MismatchError
from models.signature import FaceSignature, MatchResult

LABELED_THRESHOLD = 0.6
NEAREST_THRESHOLD = 0.5

POLICIES = ("labeled", "nearest")


def euclidean_distance(a: Sequence[float], b: Sequence[float]) -> float:
    """
    sqrt(sum((a_i - b_i)^2)), never normalised or clipped.

    Raises:
        MismatchError: The descriptors have different lengths.
    """
    if len(a) != len(b):
        raise MismatchError(f"descriptor length mismatch: {len(a)} != {len(b)}")
    diff = np.asarray(a, dtype=np.float64) - np.asarray(b, dtype=np.float64)
    return float(np.sqrt(np.sum(diff * diff)))


def _distance_or_inf(query: Sequence[float], signature: FaceSignature) -> float:
    try:
        return euclidean_distance(query, signature.descriptor)
    except MismatchError as e:
        logging.debug(f"Signature {signature.id} disqualified: {e}")
        return math.inf


class Matcher:
    """Matcher interface."""

    policy: str = ""

    def __init__(self, threshold: float):
        self.threshold = threshold

    def find_best_match(
        self, descriptor: Sequence[float], signatures: Iterable[FaceSignature]
    ) -> Optional[MatchResult]:
        raise NotImplementedError


class NearestMatcher(Matcher):
    """Accept the single globally closest signature if it is under the threshold."""

    policy = "nearest"

    def __init__(self, threshold: float = NEAREST_THRESHOLD):
        super().__init__(threshold)

    def find_best_match(
        self, descriptor: Sequence[float], signatures: Iterable[FaceSignature]
    ) -> Optional[MatchResult]:
        best: Optional[FaceSignature] = None
        best_distance = math.inf
        for signature in signatures:
            distance = _distance_or_inf(descriptor, signature)
            if distance < best_distance:
                best, best_distance = signature, distance

        if best is None or not best_distance < self.threshold:
            return None
        return MatchResult(signature=best, distance=best_distance)


class LabeledMatcher(Matcher):
    """
    One labeled class per registry entry, built in registry order.

    Each entry is scored on its own, so a second enrollment of the same
    person never dilutes a close hit on the first. The closest entry wins,
    ties going to the earlier one; the reported signature is the first
    registry entry carrying the winning label.
    """

    policy = "labeled"

    def __init__(self, threshold: float = LABELED_THRESHOLD):
        super().__init__(threshold)

    def find_best_match(
        self, descriptor: Sequence[float], signatures: Iterable[FaceSignature]
    ) -> Optional[MatchResult]:
        first_by_label = {}
        best_label: Optional[str] = None
        best_distance = math.inf
        for signature in signatures:
            first_by_label.setdefault(signature.name, signature)
            distance = _distance_or_inf(descriptor, signature)
            if distance < best_distance:
                best_label, best_distance = signature.name, distance

        if best_label is None or not best_distance < self.threshold:
            return None
        return MatchResult(signature=first_by_label[best_label], distance=best_distance)


def create_matcher(policy: str, threshold: Optional[float] = None) -> Matcher:
    """Create a matcher for policy, using the policy's default threshold unless given."""
    if policy == "labeled":
        return LabeledMatcher() if threshold is None else LabeledMatcher(threshold)
    if policy == "nearest":
        return NearestMatcher() if threshold is None else NearestMatcher(threshold)
    raise ValueError(f"matching.policy must be one of: {', '.join(POLICIES)}")


def default_policy_for(detection_backend: str) -> str:
    """The face model pairs with the labeled matcher, the colour heuristic with nearest."""
    return "labeled" if detection_backend == "descriptor" else "nearest"
