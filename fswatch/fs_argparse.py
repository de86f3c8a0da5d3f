import argparse
from typing import List, Optional

from . import __version__
from .config import DEFAULT_DEBOUNCE_INTERVAL, DEFAULT_GRACE_PERIOD


def parse_argv(argv: Optional[List[str]] = None) -> argparse.Namespace:
  '''
  Parse command-line arguments for *fswatch*.

  Parameters
  ----------
  argv
    A custom argument list (mainly for testing).  When None the
    function uses ``sys.argv[1:]`` automatically.

  Returns
  -------
  argparse.Namespace
    • file_path         : File, directory or glob pattern to watch
    • command           : Command and its arguments (list, never empty)
    • debounce_interval : Quiet period in seconds before running
    • exclude           : Optional regex of paths to ignore
    • grace_period      : Seconds between terminate and kill on exit
    • recursive         : Bool flag - watch sub-directories
    • verbose           : Verbosity count (-v, -vv, …)
  '''
  parser = argparse.ArgumentParser(
      prog='fswatch',
      description='Watches a file path for changes; runs a command on those changes.',
  )

  # positional: what to watch, what to run
  parser.add_argument(
      'file_path',
      help='File, directory or glob pattern to watch for changes.',
  )
  parser.add_argument(
      'command',
      nargs=argparse.REMAINDER,
      help='Command (and its arguments) to run when the path changes.',
  )

  # debounce / exclude
  parser.add_argument(
      '--debounce-interval',
      '-d',
      type=float,
      default=DEFAULT_DEBOUNCE_INTERVAL,
      metavar='SEC',
      help=f'Quiet period before a burst of changes runs the command (default: {DEFAULT_DEBOUNCE_INTERVAL} s).',
  )
  parser.add_argument(
      '--exclude',
      '-e',
      default=None,
      metavar='REGEX',
      help='Regular expression; changed paths matching it are ignored.',
  )

  # shutdown / recursion
  parser.add_argument(
      '--grace-period',
      '-g',
      type=float,
      default=DEFAULT_GRACE_PERIOD,
      metavar='SEC',
      help=f'Seconds to wait after terminating a running command before killing it (default: {DEFAULT_GRACE_PERIOD} s).',
  )
  parser.add_argument(
      '--no-recursive',
      dest='recursive',
      action='store_false',
      help='Do not watch sub-directories of a watched directory.',
  )

  # verbosity
  parser.add_argument(
      '--verbose',
      '-v',
      action='count',
      default=0,
      help='Increase logging verbosity; repeat for more detail.',
  )
  parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')

  try:
    import argcomplete
    argcomplete.autocomplete(parser)
  except ImportError:
    pass
  args = parser.parse_args(argv)
  if args.command[:1] == ['--']:
    args.command = args.command[1:]
  if not args.command:
    parser.error('a command to run is required')
  return args
