# errors.py
'''
Error taxonomy.

Startup errors (ConfigurationError, NotifierError) are fatal; per-run errors
(SpawnError, ChildRuntimeError) are logged by the dispatcher and never leave
the watch loop.
'''

from __future__ import annotations

from typing import Sequence


class FswatchError(Exception):
  '''Base class for every error raised by fswatch.'''


class ConfigurationError(FswatchError):
  '''Watch target, exclude pattern or interval is unusable.'''


class NotifierError(FswatchError):
  '''The filesystem subscription failed or was lost for good.'''


class SpawnError(FswatchError):
  '''The command could not be started (missing, not executable, ...).'''

  def __init__(self, argv: Sequence[str], cause: OSError) -> None:
    self.argv = list(argv)
    self.cause = cause
    super().__init__(f'{" ".join(self.argv)} failed with error {cause}')


class ChildRuntimeError(FswatchError):
  '''The command ran but exited non-zero.  Informational only.'''

  def __init__(self, argv: Sequence[str], returncode: int) -> None:
    self.argv = list(argv)
    self.returncode = returncode
    if returncode < 0:
      detail = f'killed by signal {-returncode}'
    else:
      detail = f'exited with status {returncode}'
    super().__init__(f'{" ".join(self.argv)} {detail}')
