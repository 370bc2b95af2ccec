"""Classification rules package."""

from club_ledger.classification.rules import (
    ACTIVITY_RULES,
    CLIENT_ACTIVITIES,
    RESERVED_CATEGORIES,
    CategoryDescriptor,
    Classification,
    ReducerBucket,
    bucket_for,
    build_draft,
    classify,
)

__all__ = [
    "ACTIVITY_RULES",
    "CLIENT_ACTIVITIES",
    "RESERVED_CATEGORIES",
    "CategoryDescriptor",
    "Classification",
    "ReducerBucket",
    "bucket_for",
    "build_draft",
    "classify",
]
