"""Geocoding endpoints backed by the shared place resolver."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from tripwise.core.dependencies import get_place_resolver
from tripwise.schemas.travel import Coordinates, TravelPlan
from tripwise.services.geo.contracts import GeoPoint
from tripwise.services.geo.resolver import PlaceResolver

router = APIRouter()


class GeocodeResponse(BaseModel):
    address: str
    status: str
    coordinates: Coordinates | None = None
    error: str | None = None


class ReverseGeocodeResponse(BaseModel):
    coordinates: Coordinates
    address: str | None = None


@router.get("/geo/geocode", response_model=GeocodeResponse, summary="Resolve a place name to coordinates")
async def geocode_endpoint(
    address: str = Query(..., min_length=1, max_length=200),
    international: bool | None = None,
    resolver: PlaceResolver = Depends(get_place_resolver),
):
    outcome = await resolver.lookup(address, international=international)
    return GeocodeResponse(
        address=address,
        status=outcome.status.value,
        coordinates=Coordinates(lat=outcome.point.lat, lng=outcome.point.lng) if outcome.point else None,
        error=outcome.error,
    )


@router.get("/geo/reverse", response_model=ReverseGeocodeResponse, summary="Resolve coordinates to an address")
async def reverse_geocode_endpoint(
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
    resolver: PlaceResolver = Depends(get_place_resolver),
):
    address = await resolver.reverse(GeoPoint(lat=lat, lng=lng))
    return ReverseGeocodeResponse(coordinates=Coordinates(lat=lat, lng=lng), address=address)


@router.post("/geo/plan-locations", response_model=TravelPlan, summary="Attach coordinates to a plan")
async def plan_locations_endpoint(
    plan: TravelPlan,
    resolver: PlaceResolver = Depends(get_place_resolver),
):
    from tripwise.services.geo.plan_locator import locate_plan

    return await locate_plan(plan, resolver)
