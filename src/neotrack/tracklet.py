"""Heuristic splitting of an observation arc into tracklets.

A tracklet is a few observations of an object made by one observer over a
short span, typically one session.  Observer and session are not preserved
by the 80 column format, so observations are grouped by observatory code
and each group is split on time gaps.
"""
from __future__ import annotations

from typing import Protocol, Sequence

from .constants import DEFAULT_THRESHOLDS, TrackletThresholds
from .models import Arc, Tracklet

_Run = list[tuple[float, int]]  # (mjd, index), sorted by mjd


class TrackletSplitter(Protocol):
    @property
    def mjd(self) -> float: ...

    @property
    def observer(self) -> str: ...


def _largest_gap(run: _Run) -> int:
    # First occurrence wins on ties.
    split = 1
    longest = run[1][0] - run[0][0]
    for s in range(2, len(run)):
        gap = run[s][0] - run[s - 1][0]
        if gap > longest:
            longest = gap
            split = s
    return split


def _reduce(run: _Run, th: TrackletThresholds) -> list[_Run]:
    """Split one observer's time-sorted run into tracklets.

    Uses an explicit work stack; every split strictly shortens the runs
    pushed, so the stack never holds more than len(run) entries.
    """
    accepted: list[_Run] = []
    stack = [run]
    while stack:
        s = stack.pop()
        d = s[-1][0] - s[0][0]
        if d < th.single_span:
            accepted.append(s)
            continue
        if len(s) <= th.short_max_obs and d < th.short_span:
            accepted.append(s)
            continue
        if len(s) == 2:
            if d < th.night_span:
                accepted.append(s)
            else:
                accepted.extend([s[:1], s[1:]])
            continue

        split = _largest_gap(s)
        lf, rt = s[:split], s[split:]
        if len(lf) >= 3 and len(rt) >= 3:
            stack.extend([rt, lf])
        elif len(lf) == 2 and len(rt) >= 2 and lf[1][0] - lf[0][0] < th.night_span:
            accepted.append(lf)
            stack.append(rt)
        elif len(rt) == 2 and len(lf) >= 2 and rt[1][0] - rt[0][0] < th.night_span:
            accepted.append(rt)
            stack.append(lf)
        elif len(s) == 3 and d < th.night_span:
            accepted.append(s)
        elif d < th.wide_span:
            accepted.append(s)
        else:
            stack.extend([rt, lf])
    return accepted


def find_tracklets(
    entities: Sequence[TrackletSplitter],
    thresholds: TrackletThresholds = DEFAULT_THRESHOLDS,
) -> list[tuple[list[int], float]]:
    """Return (indices, mean_mjd) for each tracklet, ordered by mean time.

    Indices refer to positions in entities and are in time order within a
    tracklet.  Tracklets with equal mean times are ordered by their first
    index.
    """
    groups: dict[str, _Run] = {}
    for idx, ent in enumerate(entities):
        groups.setdefault(ent.observer, []).append((ent.mjd, idx))

    tracklets: list[tuple[list[int], float]] = []
    for run in groups.values():
        run.sort()
        for tk in _reduce(run, thresholds):
            mean = sum(mjd for mjd, _ in tk) / len(tk)
            tracklets.append(([idx for _, idx in tk], mean))
    tracklets.sort(key=lambda t: (t[1], t[0][0]))
    return tracklets


def find_tracklets_index(
    entities: Sequence[TrackletSplitter],
    thresholds: TrackletThresholds = DEFAULT_THRESHOLDS,
) -> list[list[int]]:
    return [indices for indices, _ in find_tracklets(entities, thresholds)]


def split_tracklets(arc: Arc, thresholds: TrackletThresholds = DEFAULT_THRESHOLDS) -> list[Tracklet]:
    return [
        Tracklet(arc.desig, tuple(indices), mean)
        for indices, mean in find_tracklets(arc.observations, thresholds)
    ]
