"""TomTom client components (session, response helpers, Snap to Roads adapter)."""

from .session import create_default_session, get_default_session  # noqa: F401
from .snap_to_roads import (  # noqa: F401
    SnapToRoadsClient,
    build_request_params,
    build_request_payload,
    convert_to_kmh,
    parse_snap_response,
)
