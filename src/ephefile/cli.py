from __future__ import annotations
import argparse, json, logging, sys
from pathlib import Path
from .binary.errors import DecodeError
from .models.options import DecodeOptions, DEFAULT_MAX_TILE_SIZE

logger = logging.getLogger(__name__)


def _options(args) -> DecodeOptions:
    return DecodeOptions(
        verify_checksum=args.strict_crc,
        byte_order=args.byte_order,
        max_tile_size=args.max_tile_size,
    )

def cmd_info(args):
    # Fast path: headers only, no inflation
    if args.summary:
        from .binary.reader import summarize_file
        s = summarize_file(args.input, options=_options(args))
        print(f"chunks={s.chunks}, tiles={s.tiles}, opaque_bytes={s.opaque_bytes}")
        for order, n in s.tiles_per_order.items():
            print(f"  order {order}: {n}")
        return 0

    from .binary.reader import iter_chunks
    out = [c.model_dump(mode="json") for c in iter_chunks(args.input, options=_options(args))]
    print(json.dumps(out, indent=2))
    return 0

def cmd_tiles(args):
    from .binary.reader import iter_tiles
    for tile in iter_tiles(args.input, options=_options(args), max_tiles=args.first_n):
        print(json.dumps(tile.header.model_dump(mode="json")))
    return 0

def cmd_extract(args):
    from .binary.reader import iter_tiles
    outdir = Path(args.output)
    outdir.mkdir(parents=True, exist_ok=True)
    n = 0
    for tile in iter_tiles(args.input, options=_options(args)):
        h = tile.header
        tag = "".join(c if c.isalnum() else "_" for c in h.tag)
        name = f"{tag}_{h.order}_{h.pixel}.bin"
        (outdir / name).write_bytes(tile.data)
        n += 1
    logger.info("wrote %d tiles to %s", n, outdir)
    print(f"tiles={n}")
    return 0

def cmd_plot(args):
    from .binary.reader import summarize_file
    from .viz import plot_tiles_per_order
    s = summarize_file(args.input, options=_options(args))
    if not s.tiles:
        print("No tiles in file", file=sys.stderr)
        return 2
    plot_tiles_per_order(s.tiles_per_order)
    return 0

def _positive_int(text):
    n = int(text)
    if n <= 0:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {n}")
    return n

def build_parser():
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("input", help="Path to .eph file")
    common.add_argument("--strict-crc", action="store_true", help="Reject chunks whose CRC-32 does not match")
    common.add_argument("--byte-order", default="little", choices=["little", "big"],
                        help="Integer byte order of the file (default: little)")
    common.add_argument("--max-tile-size", type=_positive_int, default=DEFAULT_MAX_TILE_SIZE,
                        help="Reject tiles declaring a larger uncompressed size")

    p = argparse.ArgumentParser(prog="ephefile", description="EPHE HEALPix tile container utilities")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = p.add_subparsers(dest="cmd", required=True)

    sp = sub.add_parser("info", parents=[common], help="print chunk list as JSON or a fast summary")
    sp.add_argument("--summary", action="store_true", help="Count chunks and tiles without inflating")
    sp.set_defaults(func=cmd_info)

    sp = sub.add_parser("tiles", parents=[common], help="print one JSON line per tile header")
    sp.add_argument("--first-n", type=int, default=None, help="Stop after N tiles")
    sp.set_defaults(func=cmd_tiles)

    sp = sub.add_parser("extract", parents=[common], help="write each inflated tile to a file")
    sp.add_argument("output", help="Output directory")
    sp.set_defaults(func=cmd_extract)

    sp = sub.add_parser("plot", parents=[common], help="minimal tiles-per-order plot")
    sp.set_defaults(func=cmd_plot)

    return p

def main(argv=None):
    p = build_parser()
    ns = p.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if ns.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        return ns.func(ns)
    except (DecodeError, OSError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
