import io

import pytest

from neotrack.arc import ArcSplitter, CompleteArc, EndOfStream, FatalReadError, ParseFailure
from neotrack.errors import LengthError, MismatchError, UnknownSiteError
from neotrack.models import SatelliteObservation
from samples import (
    BAD,
    O1,
    O1_DESIG,
    O2,
    O2_DESIG,
    O3,
    O3_DESIG,
    SAT,
    SAT_DESIG,
    SAT_LINE1,
    SAT_LINE2,
    SHORT,
    put,
)

EOF_ = ("eof",)
FAIL = ("fail",)


def arc(desig, n):
    return ("arc", desig, n)


ARC_CASES = [
    ("no data", "", [EOF_]),
    ("single obs", O1, [arc(O1_DESIG, 1), EOF_]),
    ("two obs", O2, [arc(O2_DESIG, 2), EOF_]),
    ("two arcs", O1 + O2, [arc(O1_DESIG, 1), arc(O2_DESIG, 2), EOF_]),
    ("satellite", SAT, [arc(SAT_DESIG, 1), EOF_]),
    ("mix", O3 + SAT + SAT + O1, [arc(O3_DESIG, 3), arc(SAT_DESIG, 2), arc(O1_DESIG, 1), EOF_]),
    ("bad", BAD, [FAIL, EOF_]),
    ("short", SHORT, [FAIL, EOF_]),
    (
        "bad mix",
        O1 + SHORT + SAT + BAD + BAD + O3,
        [arc(O1_DESIG, 1), FAIL, arc(SAT_DESIG, 1), FAIL, FAIL, arc(O3_DESIG, 3), EOF_],
    ),
]


def _tag(result):
    if isinstance(result, CompleteArc):
        return ("arc", result.arc.desig, len(result.arc))
    if isinstance(result, ParseFailure):
        return FAIL
    if isinstance(result, EndOfStream):
        return EOF_
    raise AssertionError(f"unexpected result {result!r}")


@pytest.mark.parametrize("desc,text,want", ARC_CASES, ids=[c[0] for c in ARC_CASES])
def test_arc_splitter(parallax_map, desc, text, want):
    splitter = ArcSplitter(io.StringIO(text), parallax_map)
    got = [_tag(splitter.next()) for _ in want]
    assert got == want
    # reads past the end keep returning EndOfStream
    for _ in range(2):
        assert isinstance(splitter.next(), EndOfStream)


def test_arc_observations_share_designation(parallax_map):
    splitter = ArcSplitter(io.StringIO(O3 + O2 + O1), parallax_map)
    arcs = [r.arc for r in splitter if isinstance(r, CompleteArc)]
    assert [a.desig for a in arcs] == [O3_DESIG, O2_DESIG, O1_DESIG]
    for a in arcs:
        assert {ob.desig for ob in a} == {a.desig}
    assert [ob.mjd for ob in arcs[0]] == sorted(ob.mjd for ob in arcs[0])


def test_arc_is_not_reused(parallax_map):
    splitter = ArcSplitter(io.StringIO(O1 + O2), parallax_map)
    first = splitter.next().arc
    second = splitter.next().arc
    assert first is not second
    assert len(first) == 1
    assert len(second) == 2


def test_iteration_stops_at_end_of_stream(parallax_map):
    results = list(ArcSplitter(io.StringIO(O1 + BAD + O2), parallax_map))
    assert [_tag(r) for r in results] == [arc(O1_DESIG, 1), FAIL, arc(O2_DESIG, 2)]


def test_parse_failure_details(parallax_map):
    splitter = ArcSplitter(io.StringIO(O1 + SHORT), parallax_map)
    splitter.next()
    failure = splitter.next()
    assert isinstance(failure, ParseFailure)
    assert isinstance(failure.error, LengthError)
    assert failure.line_number == 2
    assert failure.line == SHORT.rstrip("\n")


def test_unknown_site_is_parse_failure(parallax_map):
    line = put(O1.rstrip("\n"), 78, "ZZZ") + "\n"
    splitter = ArcSplitter(io.StringIO(line + O2), parallax_map)
    failure = splitter.next()
    assert isinstance(failure.error, UnknownSiteError)
    assert _tag(splitter.next()) == arc(O2_DESIG, 2)


def test_crlf_lines(parallax_map):
    text = O2.replace("\n", "\r\n")
    splitter = ArcSplitter(io.StringIO(text, newline=""), parallax_map)
    assert _tag(splitter.next()) == arc(O2_DESIG, 2)


def test_continuation_without_first_line(parallax_map):
    splitter = ArcSplitter([SAT_LINE2, O1], parallax_map)
    failure = splitter.next()
    assert isinstance(failure, ParseFailure)
    assert isinstance(failure.error, MismatchError)
    assert _tag(splitter.next()) == arc(O1_DESIG, 1)


def test_continuation_after_site_observation(parallax_map):
    splitter = ArcSplitter([O1.rstrip("\n"), SAT_LINE2], parallax_map)
    assert _tag(splitter.next()) == arc(O1_DESIG, 1)
    assert isinstance(splitter.next().error, MismatchError)


def test_mismatched_continuation_drops_satellite_observation(parallax_map):
    bad_line2 = put(SAT_LINE2, 78, "248")
    lines = [SAT_LINE1, SAT_LINE2, SAT_LINE1, bad_line2, O1.rstrip("\n")]
    splitter = ArcSplitter(lines, parallax_map)
    result = splitter.next()
    assert _tag(result) == arc(SAT_DESIG, 1)
    assert all(isinstance(ob, SatelliteObservation) and ob.complete for ob in result.arc)
    assert isinstance(splitter.next().error, MismatchError)
    assert _tag(splitter.next()) == arc(O1_DESIG, 1)


def test_satellite_pair_across_arc_boundary(parallax_map):
    splitter = ArcSplitter(io.StringIO(O1 + SAT), parallax_map)
    assert _tag(splitter.next()) == arc(O1_DESIG, 1)
    result = splitter.next()
    assert _tag(result) == arc(SAT_DESIG, 1)
    assert result.arc[0].complete


def _failing_lines():
    yield O1
    yield O2.splitlines()[0]
    raise OSError("device went away")


def test_fatal_read_error(parallax_map):
    splitter = ArcSplitter(_failing_lines(), parallax_map)
    assert _tag(splitter.next()) == arc(O1_DESIG, 1)
    result = splitter.next()
    assert isinstance(result, FatalReadError)
    assert isinstance(result.error, OSError)
    assert result.arc.desig == O2_DESIG
    assert len(result.arc) == 1
    with pytest.raises(RuntimeError):
        splitter.next()


def test_fatal_read_error_ends_iteration(parallax_map):
    results = list(ArcSplitter(_failing_lines(), parallax_map))
    assert isinstance(results[-1], FatalReadError)
    assert len(results) == 2


GARBAGE = b"GARBAGE \xff\xfe LINE\n"


def _byte_stream(**kwargs):
    data = O1.encode("ascii") + GARBAGE + O3.encode("ascii")
    return io.TextIOWrapper(io.BytesIO(data), **kwargs)


def test_undecodable_line_is_parse_failure(parallax_map):
    lines = _byte_stream(encoding="ascii", errors="surrogateescape")
    results = list(ArcSplitter(lines, parallax_map))
    assert [_tag(r) for r in results] == [arc(O1_DESIG, 1), FAIL, arc(O3_DESIG, 3)]
    assert isinstance(results[1].error, LengthError)


def test_strict_decoding_error_is_fatal_result(parallax_map):
    splitter = ArcSplitter(_byte_stream(encoding="utf-8"), parallax_map)
    result = splitter.next()
    assert isinstance(result, FatalReadError)
    assert isinstance(result.error, UnicodeDecodeError)


def test_non_ascii_line_of_80_characters(parallax_map):
    line = put(O1.rstrip("\n"), 60, "é")
    assert len(line) == 80
    failure = ArcSplitter([line], parallax_map).next()
    assert isinstance(failure, ParseFailure)
    assert isinstance(failure.error, LengthError)
