from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from astropy import units as u
from astropy.constants import R_earth, au

AU_KM = float(au.to(u.km).value)
EARTH_RADIUS_KM = float(R_earth.to(u.km).value)
EARTH_RADIUS_AU = EARTH_RADIUS_KM / AU_KM

OBS80_LINE_LENGTH = 80

OBS_CODES_URL = "https://minorplanetcenter.net/iau/lists/ObsCodes.html"
CACHE_PATH = Path.home() / ".cache" / "neotrack" / "obscode.dat"


@dataclass(frozen=True)
class TrackletThresholds:
    """Time spans (days) used when splitting an observer's run into tracklets."""

    single_span: float = 0.042  # about 1 hour
    short_span: float = 0.125  # about 3 hours
    short_max_obs: int = 5
    wide_span: float = 0.25  # about 6 hours
    night_span: float = 0.5


DEFAULT_THRESHOLDS = TrackletThresholds()
