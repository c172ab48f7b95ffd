"""
Domain layer package housing part planning and part set ordering rules.
"""

from .part_set import PartSet, finalize_parts
from .planning import (
    MAX_PART_COUNT,
    PartDescriptor,
    plan_parts,
    plan_ranges,
    validate_chunk_size,
    validate_part_size,
)

__all__ = [
    "MAX_PART_COUNT",
    "PartDescriptor",
    "PartSet",
    "finalize_parts",
    "plan_parts",
    "plan_ranges",
    "validate_chunk_size",
    "validate_part_size",
]
