"""Attach coordinates to the places named in a travel plan."""

from __future__ import annotations

import asyncio
import logging

from tripwise.schemas.travel import Coordinates, TravelPlan

from .resolver import PlaceResolver

logger = logging.getLogger(__name__)


async def locate_plan(plan: TravelPlan, resolver: PlaceResolver) -> TravelPlan:
    """Resolve every activity and recommendation location in place.

    Lookups run concurrently but the resolver's queue keeps them within its
    cap. Entries whose location cannot be resolved keep ``coordinates=None``.
    """
    targets = [a for day in plan.itinerary for a in day.activities if a.location and a.location.strip()]
    targets += [r for r in plan.recommendations if r.location and r.location.strip()]
    if not targets:
        return plan

    points = await asyncio.gather(*(resolver.resolve(t.location) for t in targets))

    located = 0
    for target, point in zip(targets, points):
        if point is not None:
            target.coordinates = Coordinates(lat=point.lat, lng=point.lng)
            located += 1
    logger.info("Located %d of %d places for plan %s", located, len(targets), plan.id)
    return plan
