# fswatch/__init__.py
from importlib.metadata import version, PackageNotFoundError

try:
  __version__ = version(__name__)
except PackageNotFoundError:      # development mode
  __version__ = '0.0.0.dev0'

from .config import Config                            # re-export
from .debounce import Debouncer, Settle               # re-export
from .dispatch import Dispatcher, RunHandle, RunState # re-export
from .errors import (                                 # re-export
  ConfigurationError, NotifierError, SpawnError, ChildRuntimeError,
)
from .loop import WatchLoop                           # re-export
from .pattern_filter import PatternFilter             # re-export

__all__ = [
  'Config',
  'Debouncer', 'Settle',
  'Dispatcher', 'RunHandle', 'RunState',
  'ConfigurationError', 'NotifierError', 'SpawnError', 'ChildRuntimeError',
  'WatchLoop',
  'PatternFilter',
]
