"""GPX 1.1 export of a planned route."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional, Sequence

from ...config import settings
from ...models.domain import Waypoint
from ..outputs.routing_formatter import build_ordered_stops
from ..routing.models import PlanResult

GPX_NAMESPACE = "http://www.topografix.com/GPX/1/1"
GPX_MEDIA_TYPE = "application/gpx+xml"


def escape_xml(text: Optional[str]) -> str:
    if not text:
        return ""
    return (
        text.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
        .replace("'", "&apos;")
    )


def build_gpx(
    result: PlanResult,
    selection: Sequence[Waypoint],
    *,
    now: Optional[datetime] = None,
    creator: Optional[str] = None,
    track_name: Optional[str] = None,
) -> str:
    """Serialize the ordered route as a single GPX track.

    One ``trkpt`` per visited location, numbered in visiting order. Round
    trips repeat the first point at the end of the segment.
    """
    timestamp = (now or datetime.now(timezone.utc)).isoformat().replace("+00:00", "Z")
    creator = creator or settings.gpx_creator
    track_name = track_name or settings.gpx_track_name

    points = [(stop.latitude, stop.longitude, stop.name, stop.center) for stop in build_ordered_stops(result, selection)]
    if result.round_trip and len(points) > 1:
        points.append(points[0])

    parts = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        f'<gpx version="1.1" creator="{escape_xml(creator)}" xmlns="{GPX_NAMESPACE}">',
        f"  <metadata><name>{escape_xml(f'{track_name} Export - {timestamp}')}</name><time>{timestamp}</time></metadata>",
        f"  <trk><name>{escape_xml(track_name)}</name><trkseg>",
    ]
    for position, (lat, lon, name, description) in enumerate(points, start=1):
        desc = f"<desc>{escape_xml(description)}</desc>" if description else ""
        parts.append(
            f'      <trkpt lat="{lat:.6f}" lon="{lon:.6f}">'
            f"<name>{escape_xml(f'{position}. {name}')}</name>{desc}</trkpt>"
        )
    parts.append("    </trkseg></trk></gpx>")
    return "\n".join(parts)


def gpx_filename(now: Optional[datetime] = None, *, extension: str = "gpx") -> str:
    stamp = (now or datetime.now(timezone.utc)).strftime("%Y%m%dT%H%M%SZ")
    return f"route-{stamp}.{extension}"
