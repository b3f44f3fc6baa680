from __future__ import annotations

import logging
import queue
import threading
from typing import Callable, Iterable, Iterator, Optional

from .arc import ArcSplitter, CompleteArc, FatalReadError, ParseFailure
from .constants import DEFAULT_THRESHOLDS, TrackletThresholds
from .models import Arc, Tracklet
from .sites import ParallaxMap
from .tracklet import split_tracklets

logger = logging.getLogger(__name__)

_CLOSED = object()


class _Reader(threading.Thread):
    def __init__(self, splitter: ArcSplitter, out: queue.Queue):
        super().__init__(name="neotrack-reader", daemon=True)
        self.splitter = splitter
        self.out = out
        self.stop = threading.Event()
        self.exc: BaseException | None = None

    def run(self) -> None:
        try:
            for result in self.splitter:
                if self.stop.is_set():
                    break
                self.out.put(result)  # blocks while the consumer is behind
        except Exception as exc:  # re-raised by the consumer
            self.exc = exc
        finally:
            self.out.put(_CLOSED)


def stream_tracklets(
    lines: Iterable[str],
    parallax_map: ParallaxMap,
    *,
    maxsize: int = 16,
    thresholds: TrackletThresholds = DEFAULT_THRESHOLDS,
    on_error: Optional[Callable[[ParseFailure], None]] = None,
) -> Iterator[tuple[Arc, list[Tracklet]]]:
    """Split lines into arcs on a reader thread and yield (arc, tracklets).

    Arcs pass through a bounded queue of maxsize results.  Parse failures
    are logged and handed to on_error.  A read error on lines is raised
    here once the arcs read before it have been yielded.
    """
    results: queue.Queue = queue.Queue(maxsize=maxsize)
    reader = _Reader(ArcSplitter(lines, parallax_map), results)
    reader.start()
    closed = False
    fatal: OSError | UnicodeDecodeError | None = None
    try:
        while True:
            result = results.get()
            if result is _CLOSED:
                closed = True
                break
            if isinstance(result, CompleteArc):
                yield result.arc, split_tracklets(result.arc, thresholds)
            elif isinstance(result, ParseFailure):
                logger.warning("line %d: %s", result.line_number, result.error)
                if on_error is not None:
                    on_error(result)
            elif isinstance(result, FatalReadError):
                if result.arc is not None:
                    yield result.arc, split_tracklets(result.arc, thresholds)
                fatal = result.error
    finally:
        if not closed:
            # consumer stopped early; unblock the reader and let it finish
            reader.stop.set()
            while results.get() is not _CLOSED:
                pass
        reader.join()
    if reader.exc is not None:
        raise reader.exc
    if fatal is not None:
        raise fatal
