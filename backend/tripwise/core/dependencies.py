import logging

from fastapi import HTTPException, Request

from tripwise.core.config import get_settings
from tripwise.core.errors import MissingConfigurationError
from tripwise.services.geo.resolver import PlaceResolver, create_place_resolver

logger = logging.getLogger(__name__)


def get_place_resolver(request: Request) -> PlaceResolver:
    """The app-wide resolver, built on first use when startup did not create one."""
    resolver = getattr(request.app.state, "place_resolver", None)
    if resolver is not None:
        return resolver
    try:
        resolver = create_place_resolver(get_settings())
    except MissingConfigurationError as exc:
        logger.warning("Geocoding unavailable: %s", exc)
        raise HTTPException(503, str(exc)) from exc
    request.app.state.place_resolver = resolver
    return resolver
