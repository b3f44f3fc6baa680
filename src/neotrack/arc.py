"""Split a stream of 80 column observations into per-designation arcs.

The stream must already be grouped by designation; nothing is sorted or
accumulated across groups.  An arc ends when a line for a different
designation is decoded, so that line is held over as the start of the next
arc.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Iterator, Optional, Union

from .errors import DecodeError, MismatchError
from .models import Arc, Observation, SatelliteObservation
from .obs80 import check_line, is_sat_continuation, parse_obs80, parse_sat2
from .sites import ParallaxMap

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompleteArc:
    arc: Arc


@dataclass(frozen=True)
class ParseFailure:
    """A line could not be decoded.  Reading may continue."""

    error: DecodeError
    line_number: int
    line: str


@dataclass(frozen=True)
class EndOfStream:
    pass


@dataclass(frozen=True)
class FatalReadError:
    """The line source failed.  The splitter must not be used again."""

    error: OSError | UnicodeDecodeError
    arc: Optional[Arc] = None  # observations read before the failure


ArcResult = Union[CompleteArc, ParseFailure, EndOfStream, FatalReadError]


class ArcSplitter:
    """Resumable splitter over an iterable of lines.

    Each call to next() returns exactly one ArcResult.  A parse failure
    that interrupts an arc first returns the arc read so far, then the
    failure on the following call.  EndOfStream is returned on every call
    once the source is exhausted.  An OSError raised by the source is
    reported as FatalReadError, as is
    a UnicodeDecodeError from a text stream opened with strict decoding.

    Not safe for concurrent use; give each stream its own splitter.
    """

    def __init__(self, lines: Iterable[str], parallax_map: ParallaxMap):
        self._lines = iter(lines)
        self._parallax_map = parallax_map
        self._arc = Arc()
        self._pending: tuple[str, Observation] | None = None
        self._failure: ParseFailure | None = None
        self._exhausted = False
        self._fatal = False
        self.line_number = 0

    def __iter__(self) -> Iterator[ArcResult]:
        """Yield arcs and parse failures; a FatalReadError is yielded last."""
        while True:
            result = self.next()
            if isinstance(result, EndOfStream):
                return
            yield result
            if isinstance(result, FatalReadError):
                return

    def next(self) -> ArcResult:
        if self._fatal:
            raise RuntimeError("ArcSplitter called after a fatal read error")
        if self._failure is not None:
            failure, self._failure = self._failure, None
            return failure
        if self._exhausted:
            return EndOfStream()
        if self._pending is not None:
            desig, obs = self._pending
            self._pending = None
            self._arc = Arc(desig, [obs])

        while True:
            try:
                raw = next(self._lines)
            except StopIteration:
                self._exhausted = True
                return self._take() or EndOfStream()
            except (OSError, UnicodeDecodeError) as exc:
                self._fatal = True
                arc = self._take()
                logger.debug("read error after line %d: %s", self.line_number, exc)
                return FatalReadError(exc, arc.arc if arc else None)
            self.line_number += 1
            line = raw.rstrip("\r\n")
            try:
                done = self._consume(line)
            except DecodeError as exc:
                failure = ParseFailure(exc, self.line_number, line)
                logger.debug("line %d: %s", self.line_number, exc)
                done = self._take()
                if done is None:
                    return failure
                self._failure = failure
                return done
            if done is not None:
                return done

    def _consume(self, line: str) -> CompleteArc | None:
        check_line(line)
        if is_sat_continuation(line):
            obs = self._arc.observations[-1] if self._arc.observations else None
            if not isinstance(obs, SatelliteObservation) or obs.complete:
                raise MismatchError("space-based observation line 2 without line 1")
            try:
                parse_sat2(line, self._arc.desig, obs)
            except DecodeError:
                self._arc.observations.pop()
                raise
            return None

        desig, obs = parse_obs80(line, self._parallax_map)
        if not self._arc.observations:
            self._arc.desig = desig
        elif desig != self._arc.desig:
            self._pending = (desig, obs)
            return self._take()
        self._arc.observations.append(obs)
        return None

    def _take(self) -> CompleteArc | None:
        arc, self._arc = self._arc, Arc()
        if not arc.observations:
            return None
        logger.debug("arc %s: %d observations", arc.desig, len(arc))
        return CompleteArc(arc)
