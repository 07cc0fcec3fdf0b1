import argparse
import logging
import os
import sys

from .app import create_app
from .config import ANIMATION_DURATION, ITERATIONS_PER_TICK, TARGET_PATH
from .driver import open_session
from .grid import DecodeFailure, MissingAsset

logger = logging.getLogger("trufflify")

USAGE = 'Usage: trufflify -f "image.png"'


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="trufflify",
        description="Morph an image into the secret sauce.")
    parser.add_argument("-f", "--file", dest="input",
                        help="Path to the source image")
    parser.add_argument("--target", default=TARGET_PATH,
                        help=f"Path to the target image (default: {TARGET_PATH})")
    parser.add_argument("--mode", choices=["mutate", "particles"], default="mutate",
                        help="Transformation engine (default: mutate)")
    parser.add_argument("--seed", type=int, default=None,
                        help="Seed for a reproducible run")
    parser.add_argument("--iterations", type=int, default=ITERATIONS_PER_TICK,
                        help="Mutations per frame in mutate mode")
    parser.add_argument("--duration", type=float, default=ANIMATION_DURATION,
                        help="Seconds the particle animation takes")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=5000)
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Log every frame")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s: %(message)s")

    if not args.input:
        print(USAGE)
        return 1

    # the target is checked first: without it there is nothing to aim for
    if not os.path.isfile(args.target):
        print("secret sauce not found, aborting")
        return -1
    if not os.path.isfile(args.input):
        print("no file at input path, aborting")
        return -1

    try:
        driver = open_session(args.mode, args.input, args.target, seed=args.seed,
                              iterations=args.iterations, duration=args.duration)
    except (MissingAsset, DecodeFailure) as e:
        logger.error("%s", e)
        return -1

    create_app(driver).run(host=args.host, port=args.port)
    return 0


if __name__ == "__main__":
    sys.exit(main())
