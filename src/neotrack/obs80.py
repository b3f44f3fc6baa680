"""Decoder for the MPC 80 column optical observation format.

Column layout (1-indexed, inclusive) of the fields read here::

    1-12   designation            15     note 2 ('S' satellite, 's' line 2)
    16-32  date, YYYY MM DD.ddddd 33-44  RA   HH MM SS.sss
    45-56  Dec  sDD MM SS.ss      66-70  magnitude
    71     band                   78-80  observatory code

Line 2 of a satellite observation carries the geocentric offset of the
observer: units flag in column 33, then signed X, Y, Z in columns 35-46,
47-58 and 59-70.
"""
from __future__ import annotations

import math
import re

import numpy as np

from .constants import AU_KM, OBS80_LINE_LENGTH
from .errors import (
    AngleError,
    DateError,
    LengthError,
    MagnitudeError,
    MismatchError,
    OffsetError,
    UnknownSiteError,
)
from .models import Observation, SatelliteObservation, SiteObservation
from .sites import ParallaxMap

# Day count offsets for a year starting in March, indexed by month.
_MONTH_OFFSET = (0, 306, 337, 0, 31, 61, 92, 122, 153, 184, 214, 245, 275)
_MJD_OFFSET = 678882

_BAND_CORRECTION = {"V": 0.0, "B": -0.8}
_DEFAULT_BAND_CORRECTION = 0.4

# ASCII only; int() and float() also take underscores and non-ASCII digits.
_INT_RE = re.compile(r"[+-]?[0-9]+")
_FLOAT_RE = re.compile(r"[+-]?([0-9]+(\.[0-9]*)?|\.[0-9]+)([eE][+-]?[0-9]+)?")


def _atoi(text: str) -> int:
    if not _INT_RE.fullmatch(text):
        raise ValueError(f"invalid integer {text!r}")
    return int(text)


def _atof(text: str) -> float:
    if not _FLOAT_RE.fullmatch(text):
        raise ValueError(f"invalid number {text!r}")
    return float(text)


def parse_obs80_date(text: str) -> float:
    """Convert a "yyyy mm dd.ddd" date to MJD.

    At least 10 characters are required; longer strings allow a decimal day.
    """
    if len(text) < 10:
        raise DateError(f"Invalid date ({text!r})")
    try:
        year = _atoi(text[:4])
        month = _atoi(text[5:7].strip())
        day = _atof(text[8:].strip())
    except ValueError as exc:
        raise DateError(f"Invalid date ({text!r})") from exc
    if not 1 <= month <= 12 or day < 0:
        raise DateError(f"Invalid date ({text!r})")
    # January and February count as months 13 and 14 of the previous year.
    z = year - 1 if month < 3 else year
    mjd = _MONTH_OFFSET[month] + 365 * z + z // 4 - z // 100 + z // 400 - _MJD_OFFSET + day
    if mjd < 0:
        raise DateError(f"Date before MJD 0 ({text!r})")
    return float(mjd)


def _hms_seconds(h: str, m: str, s: str) -> float:
    return (_atoi(h.strip()) * 60 + _atoi(m.strip())) * 60 + _atof(s.strip())


def check_line(line: str) -> None:
    """Raise LengthError unless line is exactly 80 ASCII characters."""
    if len(line) != OBS80_LINE_LENGTH:
        raise LengthError(f"observation line length = {len(line)}, want {OBS80_LINE_LENGTH}")
    if not line.isascii():
        raise LengthError("observation line contains non-ASCII characters")


def is_sat_continuation(line: str) -> bool:
    return len(line) > 14 and line[14] == "s"


def parse_obs80(line: str, parallax_map: ParallaxMap) -> tuple[str, Observation]:
    """Decode one 80 column observation line.

    Returns the trimmed designation and either a SiteObservation or, for a
    satellite line or a site without parallax constants, a
    SatelliteObservation still waiting for its second line.
    """
    check_line(line)
    desig = line[:12].strip()
    mjd = parse_obs80_date(line[15:32])

    try:
        ra_sec = _hms_seconds(line[32:34], line[35:37], line[38:44])
    except ValueError as exc:
        raise AngleError(f"Invalid RA ({line[32:44]!r}), {exc}") from exc
    try:
        dec_sec = _hms_seconds(line[45:47], line[48:50], line[51:56])
    except ValueError as exc:
        raise AngleError(f"Invalid Dec ({line[44:56]!r}), {exc}") from exc
    ra = ra_sec * math.pi / (12 * 3600)
    dec = dec_sec * math.pi / (180 * 3600)
    if line[44] == "-":
        dec = -dec

    mag = None
    if ts := line[65:70].strip():
        try:
            mag = _atof(ts)
        except ValueError as exc:
            raise MagnitudeError(f"Invalid mag ({ts!r}), {exc}") from exc
        mag += _BAND_CORRECTION.get(line[70], _DEFAULT_BAND_CORRECTION)

    code = line[77:80]
    if code not in parallax_map:
        raise UnknownSiteError(code)
    par = parallax_map[code]

    obs: Observation
    if par is None or line[14] == "S":
        obs = SatelliteObservation(
            desig=desig, mjd=mjd, ra_rad=ra, dec_rad=dec, mag=mag, qual=code, sat=code
        )
    else:
        obs = SiteObservation(
            desig=desig, mjd=mjd, ra_rad=ra, dec_rad=dec, mag=mag, qual=code, parallax=par
        )
    return desig, obs


def _parse_offset(field: str) -> float:
    sign = field[0]
    if sign not in "+- ":
        raise OffsetError(f"sat obs line 2 invalid offset: {field!r}")
    try:
        val = _atof(field[1:].strip())
    except ValueError as exc:
        raise OffsetError(f"sat obs line 2 invalid offset: {field!r}") from exc
    return -val if sign == "-" else val


def parse_sat2(line: str, desig: str, obs: SatelliteObservation) -> None:
    """Merge line 2 of a space-based observation into its line 1 result.

    The designation, date and observatory code must match line 1.  obs is
    updated only if the whole line is valid.
    """
    check_line(line)
    desig2 = line[:12].strip()
    if desig2 != desig:
        raise MismatchError(f"sat obs line 2 designation = {desig2}, line 1 was {desig}")
    if parse_obs80_date(line[15:32]) != obs.mjd:
        raise MismatchError(f"sat obs line 2 date {line[15:32]} different from line 1")
    if line[77:80] != obs.sat:
        raise MismatchError(f"sat obs line 2 obscode = {line[77:80]}, line 1 was {obs.sat}")

    offset = np.array(
        [_parse_offset(line[34:46]), _parse_offset(line[46:58]), _parse_offset(line[58:70])],
        dtype=float,
    )
    if line[32] == "1":
        offset /= AU_KM  # km
    obs.offset_au = offset
