from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Iterator

import numpy as np
from astropy.time import Time

from .sites import ParallaxConstant


@dataclass
class Observation:
    desig: str
    mjd: float
    ra_rad: float
    dec_rad: float
    mag: float | None = None
    qual: str = ""  # observatory code, kept for provenance

    @property
    def observer(self) -> str:
        return self.qual

    @property
    def time(self) -> Time:
        return Time(self.mjd, format="mjd", scale="utc")

    @property
    def ra_deg(self) -> float:
        return math.degrees(self.ra_rad)

    @property
    def dec_deg(self) -> float:
        return math.degrees(self.dec_rad)


@dataclass
class SiteObservation(Observation):
    parallax: ParallaxConstant | None = None


@dataclass
class SatelliteObservation(Observation):
    sat: str = ""
    offset_au: np.ndarray | None = None  # geocentric, shape (3,)

    @property
    def complete(self) -> bool:
        return self.offset_au is not None


@dataclass
class Arc:
    """Observations of one designation read contiguously from a stream."""

    desig: str = ""
    observations: list[Observation] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.observations)

    def __iter__(self) -> Iterator[Observation]:
        return iter(self.observations)

    def __getitem__(self, idx: int) -> Observation:
        return self.observations[idx]


@dataclass(frozen=True)
class Tracklet:
    desig: str
    indices: tuple[int, ...]
    mean_mjd: float

    def __len__(self) -> int:
        return len(self.indices)

    def select(self, arc: Arc) -> list[Observation]:
        return [arc.observations[i] for i in self.indices]
