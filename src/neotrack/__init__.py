from .arc import ArcSplitter, CompleteArc, EndOfStream, FatalReadError, ParseFailure
from .constants import AU_KM, EARTH_RADIUS_AU, TrackletThresholds
from .models import Arc, Observation, SatelliteObservation, SiteObservation, Tracklet
from .obs80 import parse_obs80, parse_obs80_date, parse_sat2
from .sites import ParallaxConstant, load_parallax_map, read_obscode_dat
from .tracklet import find_tracklets, find_tracklets_index, split_tracklets

__all__ = [
    "Arc",
    "ArcSplitter",
    "AU_KM",
    "CompleteArc",
    "EARTH_RADIUS_AU",
    "EndOfStream",
    "FatalReadError",
    "Observation",
    "ParallaxConstant",
    "ParseFailure",
    "SatelliteObservation",
    "SiteObservation",
    "Tracklet",
    "TrackletThresholds",
    "find_tracklets",
    "find_tracklets_index",
    "load_parallax_map",
    "parse_obs80",
    "parse_obs80_date",
    "parse_sat2",
    "read_obscode_dat",
    "split_tracklets",
]
