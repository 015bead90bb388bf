"""Filtering and ordering of the listed spots."""

from __future__ import annotations

import random
from collections.abc import Iterable, Sequence

from .civil_time import combine, days_between, format_date, is_within_range
from .const import STATUS_AVAILABLE
from .exceptions import ValidationError
from .models import Filters, SortMode, Spot

SORT_OPTIONS: tuple[tuple[SortMode, str], ...] = (
    ("random", "Random"),
    ("soonest", "Soonest Available"),
    ("longest", "Longest Duration"),
)


def shuffle_order(spot_ids: Iterable[str], rng: random.Random | None = None) -> tuple[str, ...]:
    """Build the random-sort permutation for one fetch of the spot list."""
    order = list(spot_ids)
    (rng or random).shuffle(order)
    return tuple(order)


def _matches(spot: Spot, filters: Filters) -> bool:
    if spot.status != STATUS_AVAILABLE:
        return False
    if filters.date and not is_within_range(filters.date, spot.available_from, spot.available_to):
        return False
    if filters.venmo and filters.venmo.lower() not in spot.venmo.lower():
        return False
    if filters.size and spot.size != filters.size:
        return False
    if filters.floor and spot.floor != filters.floor:
        return False
    return True


def select_spots(
    spots: Iterable[Spot],
    filters: Filters | None = None,
    sort_mode: SortMode = "random",
    shuffled_order: Sequence[str] = (),
) -> list[Spot]:
    """Return the visible spots in display order.

    Pure function of its inputs: the random order comes from ``shuffled_order``
    so repeated calls against the same fetch agree with each other.
    """
    active = filters or Filters()
    result = [spot for spot in spots if _matches(spot, active)]
    if sort_mode == "random":
        positions = {spot_id: index for index, spot_id in enumerate(shuffled_order)}
        unknown = len(positions)
        result.sort(key=lambda spot: positions.get(spot.id, unknown))
    elif sort_mode == "soonest":
        result.sort(key=lambda spot: spot.available_from)
    elif sort_mode == "longest":
        result.sort(
            key=lambda spot: days_between(spot.available_from, spot.available_to),
            reverse=True,
        )
    else:
        raise ValidationError(f"Unknown sort mode: {sort_mode}.", field="sort_mode")
    return result


def results_summary(count: int, filters: Filters | None = None) -> str:
    noun = "spot" if count == 1 else "spots"
    summary = f"{count} {noun} available"
    if filters is not None and filters.date:
        label = format_date(combine(filters.date, "00:00"))
        if label:
            summary = f"{summary} on {label}"
    return summary
