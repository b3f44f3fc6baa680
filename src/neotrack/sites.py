"""Observatory codes and their parallax constants.

The table comes from the MPC list of observatory codes (``obscode.dat``).
Each data line is fixed-column::

    000   0.0000 0.62411 +0.77873 Greenwich
    644 243.140220.836325+0.546877Palomar Mountain/NEAT

Columns 1-3 hold the code, 5-13 east longitude in degrees, 14-21 rho*cos(phi')
and 22-30 rho*sin(phi') in Earth radii.  Space-based "sites" leave the
numeric fields blank or zero.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

import requests
from astropy import units as u
from astropy.coordinates import EarthLocation

from .constants import AU_KM, CACHE_PATH, EARTH_RADIUS_AU, OBS_CODES_URL
from .errors import ObscodeError

logger = logging.getLogger(__name__)

_PARALLAX_CACHE: dict[Path, dict[str, "ParallaxConstant | None"]] = {}


@dataclass(frozen=True)
class ParallaxConstant:
    lon_deg: float
    rho_cos_phi: float  # AU
    rho_sin_phi: float  # AU
    description: str | None = None

    @property
    def lon_rad(self) -> float:
        return math.radians(self.lon_deg)

    @property
    def rho(self) -> float:
        return math.hypot(self.rho_cos_phi, self.rho_sin_phi)

    def to_location(self) -> EarthLocation:
        lam = self.lon_rad
        x = self.rho_cos_phi * math.cos(lam) * AU_KM
        y = self.rho_cos_phi * math.sin(lam) * AU_KM
        z = self.rho_sin_phi * AU_KM
        return EarthLocation.from_geocentric(x * u.km, y * u.km, z * u.km)


# Outer membership: code known.  Value None: known, no fixed-site correction.
ParallaxMap = Mapping[str, Optional[ParallaxConstant]]


def _parse_field(text: str, lo: float, hi: float, *, inclusive_hi: bool = True) -> float | None:
    """Return the field value, 0.0 for a blank field, None if invalid."""
    ts = text.strip()
    if not ts:
        return 0.0
    try:
        val = float(ts)
    except ValueError:
        return None
    if not math.isfinite(val) or val < lo or val > hi or (not inclusive_hi and val == hi):
        return None
    return val


def _parse_line(line: str) -> tuple[str, ParallaxConstant | None] | None:
    if len(line) < 30:
        return None  # <pre> and other markup
    lon = _parse_field(line[4:13], 0.0, 360.0, inclusive_hi=False)
    if lon is None:
        return None  # includes the column heading line
    rho_cos = _parse_field(line[13:21], 0.0, 1.0)
    if rho_cos is None:
        return None
    rho_sin = _parse_field(line[21:30], -1.0, 1.0)
    if rho_sin is None:
        return None
    code = line[0:3]
    if rho_cos == 0.0 and rho_sin == 0.0:
        return code, None
    name = line[30:].strip() or None
    return code, ParallaxConstant(
        lon_deg=lon,
        rho_cos_phi=rho_cos * EARTH_RADIUS_AU,
        rho_sin_phi=rho_sin * EARTH_RADIUS_AU,
        description=name,
    )


def read_obscode_dat(text: str) -> dict[str, ParallaxConstant | None]:
    """Parse obscode.dat text into a map of code -> parallax constant.

    Lines that do not parse as data are ignored, so the HTML rendering of the
    list can be read directly.  Sites without parallax constants map to None.
    """
    entries: dict[str, ParallaxConstant | None] = {}
    for line in text.splitlines():
        parsed = _parse_line(line)
        if parsed is None:
            continue
        code, par = parsed
        entries[code] = par
    if not entries:
        raise ObscodeError("Obscode data unreadable")
    return entries


def read_obscode_file(path: Path) -> dict[str, ParallaxConstant | None]:
    try:
        return read_obscode_dat(Path(path).read_text())
    except ObscodeError as exc:
        raise ObscodeError(f"file {path}: {exc}") from exc


def fetch_obscode_dat(path: Path = CACHE_PATH, *, timeout: float = 30.0) -> Path:
    resp = requests.get(OBS_CODES_URL, timeout=timeout)
    resp.raise_for_status()
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(resp.text)
    logger.info("Fetched observatory codes from %s into %s", OBS_CODES_URL, path)
    return path


def load_parallax_map(path: Path | None = None, refresh: bool = False) -> ParallaxMap:
    """Load (and memoize) the parallax table, fetching it when not cached."""
    path = Path(path) if path is not None else CACHE_PATH
    if not refresh and path in _PARALLAX_CACHE:
        return _PARALLAX_CACHE[path]
    if refresh or not path.exists():
        fetch_obscode_dat(path)
    entries = read_obscode_file(path)
    logger.info("Loaded %d observatory codes from %s", len(entries), path)
    _PARALLAX_CACHE[path] = entries
    return entries
