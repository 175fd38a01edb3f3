"""Module entry point for the S3 bucket manager."""
import argparse
import logging
import sys

from .cli import BucketManagerCLI
from .controller import S3ManagerController
from .profiles import ProfileStorage
from .settings import SettingsStorage

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


def parse_arguments(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="pys3m",
        description="Interactively create, fill, empty and delete Amazon S3 buckets.",
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("-v", "--verbose", action="store_true", help="Log progress at INFO level")
    verbosity.add_argument("--debug", action="store_true", help="Log at DEBUG level")
    parser.add_argument("--log-file", help="Write log records to this file instead of stderr")
    parser.add_argument("--settings", help="Settings file (default: ~/.pys3m_settings.json)")
    parser.add_argument("--connections", help="Saved connections file (default: ~/.pys3m_connections.json)")
    return parser.parse_args(argv)


def configure_logging(args: argparse.Namespace) -> None:
    level = logging.WARNING
    if args.debug:
        level = logging.DEBUG
    elif args.verbose:
        level = logging.INFO
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
        filename=args.log_file,
    )
    if not args.debug:
        # botocore is very chatty at INFO.
        logging.getLogger("botocore").setLevel(logging.WARNING)


def main(argv: list[str] | None = None) -> None:
    args = parse_arguments(argv)
    configure_logging(args)
    settings_storage = SettingsStorage(args.settings)
    controller = S3ManagerController(
        storage=ProfileStorage(args.connections),
        settings=settings_storage.load(),
    )
    app = BucketManagerCLI(controller, settings_storage=settings_storage)
    try:
        app.run()
    except (KeyboardInterrupt, EOFError):
        sys.exit(130)


if __name__ == "__main__":
    main()
