from .matcher import (
    LABELED_THRESHOLD,
    NEAREST_THRESHOLD,
    LabeledMatcher,
    Matcher,
    NearestMatcher,
    create_matcher,
    default_policy_for,
    euclidean_distance,
)

__all__ = [
    "LABELED_THRESHOLD",
    "NEAREST_THRESHOLD",
    "LabeledMatcher",
    "Matcher",
    "NearestMatcher",
    "create_matcher",
    "default_policy_for",
    "euclidean_distance",
]
