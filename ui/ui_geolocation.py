import logging
import threading

import requests
from pydantic import ValidationError

from schemas import LatLng


logger = logging.getLogger(__name__)


def parse_location(raw: str | None) -> LatLng | None:
    """Parse a ``"lat,lon"`` string. Returns None for anything else."""
    text = (raw or "").strip()
    if not text or "," not in text:
        return None
    lat_s, lon_s = text.split(",", 1)
    try:
        return LatLng(latitude=float(lat_s), longitude=float(lon_s))
    except (ValueError, ValidationError):
        return None


def location_from_payload(data) -> LatLng | None:
    if not isinstance(data, dict):
        return None
    lat = data.get("latitude", data.get("lat"))
    lon = data.get("longitude", data.get("lon"))
    if lat is None or lon is None:
        return None
    try:
        return LatLng(latitude=float(lat), longitude=float(lon))
    except (TypeError, ValueError, ValidationError):
        return None


def lookup_location(url: str, timeout_s: float = 5.0) -> LatLng | None:
    """
    One best-effort lookup of the current coordinates.

    Returns None (after logging) on any network, status or payload problem.
    """
    if not url:
        return None
    try:
        resp = requests.get(url, timeout=timeout_s)
        resp.raise_for_status()
        data = resp.json()
    except (requests.RequestException, ValueError) as exc:
        logger.warning("Could not get geolocation: %s", exc)
        return None
    location = location_from_payload(data)
    if location is None:
        logger.warning("Geolocation response had no coordinates")
    return location


def start_location_lookup(
    *,
    page,
    ui_call,
    state: dict,
    url: str,
    timeout_s: float,
    fixed: str = "",
    on_located=None,
) -> None:
    fixed_location = parse_location(fixed)
    if fixed_location is not None:
        state["location"] = fixed_location
        return
    if fixed:
        logger.warning("Ignoring unparsable fixed location %r", fixed)

    def worker():
        location = lookup_location(url, timeout_s)
        if location is None:
            return

        def store():
            state["location"] = location
            if on_located is not None:
                on_located(location)

        ui_call(page, store)

    threading.Thread(target=worker, daemon=True).start()
