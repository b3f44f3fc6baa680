from __future__ import annotations

import argparse
import csv
import logging
import sys
from pathlib import Path

from astropy.time import Time

from .arc import ParseFailure
from .pipeline import stream_tracklets
from .sites import load_parallax_map

FIELDNAMES = ["desig", "tracklet", "site", "n_obs", "mean_mjd", "mean_utc", "first_index"]


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Split MPC 80 column observations into arcs and tracklets."
    )
    parser.add_argument(
        "--obs",
        type=Path,
        required=True,
        help="Observation file in the 80 column format, grouped by designation.",
    )
    parser.add_argument(
        "--obscodes",
        type=Path,
        default=None,
        help="obscode.dat path (default: cached copy, fetched from the MPC when missing).",
    )
    parser.add_argument(
        "--refresh-sites",
        action="store_true",
        help="Download a fresh copy of the observatory code list.",
    )
    parser.add_argument(
        "--out",
        type=Path,
        default=None,
        help="Output CSV path (columns: desig, tracklet, site, n_obs, mean_mjd, mean_utc, first_index).",
    )
    parser.add_argument(
        "--queue-size",
        type=int,
        default=16,
        help="Maximum number of arcs buffered between reader and clusterer.",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Exit non-zero if any observation line fails to parse.",
    )
    parser.add_argument("--log-level", choices=["DEBUG", "INFO", "WARN"], default="INFO", help="Logging level.")
    args = parser.parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.INFO), format="%(message)s")

    parallax_map = load_parallax_map(args.obscodes, refresh=args.refresh_sites)

    failures: list[ParseFailure] = []
    n_arcs = 0
    n_tracklets = 0
    out_fh = args.out.open("w", newline="") if args.out else sys.stdout
    try:
        writer = csv.DictWriter(out_fh, fieldnames=FIELDNAMES)
        writer.writeheader()
        # undecodable bytes reach the decoder and fail as ordinary bad lines
        with args.obs.open(encoding="ascii", errors="surrogateescape") as fh:
            for arc, tracklets in stream_tracklets(
                fh, parallax_map, maxsize=args.queue_size, on_error=failures.append
            ):
                n_arcs += 1
                for idx, tk in enumerate(tracklets):
                    first = arc[tk.indices[0]]
                    writer.writerow(
                        {
                            "desig": arc.desig,
                            "tracklet": idx,
                            "site": first.observer,
                            "n_obs": len(tk),
                            "mean_mjd": f"{tk.mean_mjd:.6f}",
                            "mean_utc": Time(tk.mean_mjd, format="mjd", scale="utc").isot,
                            "first_index": tk.indices[0],
                        }
                    )
                    n_tracklets += 1
    finally:
        if args.out:
            out_fh.close()

    logging.info("Wrote %d tracklets from %d arcs (%d unreadable lines)", n_tracklets, n_arcs, len(failures))
    if args.strict and failures:
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
