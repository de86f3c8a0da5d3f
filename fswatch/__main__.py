# __main__.py
import logging
import signal
import sys

from .config import Config
from .errors import ConfigurationError, NotifierError
from .fs_argparse import parse_argv
from .loop import WatchLoop


def _setup_logging(verbose: int) -> None:
  logging.basicConfig(
    level=logging.DEBUG if verbose else logging.INFO,
    format='fswatch: %(levelname)s %(message)s',
    stream=sys.stderr,
  )
  logging.getLogger('watchdog').setLevel(logging.WARNING)


def main() -> int:
  args = parse_argv()
  _setup_logging(args.verbose)

  cfg = Config(
    target=args.file_path,
    command=args.command,
    exclude=args.exclude,
    debounce_interval=args.debounce_interval,
    grace_period=args.grace_period,
    recursive=args.recursive,
  )
  try:
    targets, exclude = cfg.prepare()
  except ConfigurationError as exc:
    logging.error('%s', exc)
    return 2

  # SIGTERM ends the loop the same way Ctrl-C does
  signal.signal(signal.SIGTERM, signal.default_int_handler)
  try:
    WatchLoop(cfg, targets, exclude).run()
  except NotifierError as exc:
    logging.error('%s', exc)
    return 1
  return 0


if __name__ == '__main__':
  sys.exit(main())
