# dispatch.py
'''
Lifecycle of the watched command.

    Idle --settle--> Starting --spawn ok--> Running --exit--> Exited|Killed --> Idle
                     Starting --spawn fails--> Idle

At most one run is alive.  Settles arriving while a run is alive set a single
rerun flag, so any number of them yields exactly one follow-up run.

Exits are observed by a daemon thread per run which blocks on the process
and hands the RunHandle to *notify*.  The watch loop wires *notify* to its
inbox and calls on_exit() back on the control thread, so the dispatcher's
state is only ever touched from one thread.
'''

from __future__ import annotations

import logging
import subprocess
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, List, Optional, Sequence

from .errors import ChildRuntimeError, ConfigurationError, SpawnError

logger = logging.getLogger(__name__)


class RunState(str, Enum):
  IDLE = 'idle'
  STARTING = 'starting'
  RUNNING = 'running'
  EXITED = 'exited'
  KILLED = 'killed'


@dataclass
class RunHandle:
  argv: List[str]
  process: Any                     # subprocess.Popen or anything shaped like it
  started_at: float
  state: RunState = RunState.RUNNING
  returncode: Optional[int] = None

  @property
  def pid(self) -> Optional[int]:
    return getattr(self.process, 'pid', None)

  @property
  def command(self) -> str:
    return ' '.join(self.argv)


@dataclass
class DispatchStats:
  runs_started: int = 0
  spawn_failures: int = 0
  coalesced_settles: int = 0


def _spawn(argv: Sequence[str]) -> subprocess.Popen:
  # cwd, environment and stdio are inherited from the watcher
  return subprocess.Popen(list(argv))


class Dispatcher:
  def __init__(
    self,
    command: Sequence[str],
    notify: Callable[[RunHandle], None],
    *,
    spawn: Optional[Callable[[Sequence[str]], Any]] = None,
    clock: Callable[[], float] = time.monotonic,
  ) -> None:
    if not command:
      raise ConfigurationError('command must not be empty')
    self.argv = list(command)
    self._notify = notify
    self._spawn = spawn or _spawn
    self._clock = clock
    self._state = RunState.IDLE
    self._active: Optional[RunHandle] = None
    self._rerun_pending = False
    self.stats = DispatchStats()

  # ---------------------------------------------------------------- state ----
  @property
  def state(self) -> RunState:
    return self._state

  @property
  def active(self) -> Optional[RunHandle]:
    return self._active

  @property
  def rerun_pending(self) -> bool:
    return self._rerun_pending

  # --------------------------------------------------------------- events ----
  def on_settle(self) -> Optional[RunHandle]:
    '''
    Start a run, or remember that one is owed once the current run ends.
    Returns the handle when a run was started now.
    '''
    if self._active is not None:
      if self._rerun_pending:
        self.stats.coalesced_settles += 1
      self._rerun_pending = True
      logger.debug('change settled while %s is running; rerun queued', self._active.command)
      return None
    return self._start()

  def on_exit(self, handle: RunHandle) -> Optional[RunHandle]:
    '''
    Report a finished run and go back to Idle.  Starts the owed rerun, if
    any, and returns its handle.
    '''
    if handle is not self._active:
      return None                      # already reaped by shutdown()
    handle.returncode = handle.process.poll()
    if handle.returncode is None:
      handle.returncode = handle.process.wait()
    handle.state = RunState.KILLED if handle.returncode < 0 else RunState.EXITED
    self._report(handle)
    self._active = None
    self._state = RunState.IDLE

    if self._rerun_pending:
      self._rerun_pending = False
      return self._start()
    return None

  def shutdown(self, grace: float) -> Optional[RunHandle]:
    '''
    Terminate the active run: ask politely, wait *grace* seconds, then kill.
    A second interrupt during the wait skips straight to the kill.  No rerun is
    started afterwards.
    '''
    self._rerun_pending = False
    handle = self._active
    if handle is None:
      return None

    proc = handle.process
    if proc.poll() is None:
      logger.info('terminating %s (pid %s)', handle.command, handle.pid)
      proc.terminate()
      try:
        proc.wait(timeout=grace)
      except subprocess.TimeoutExpired:
        logger.warning('%s did not exit within %.1fs; killing it', handle.command, grace)
        proc.kill()
        proc.wait()
      except KeyboardInterrupt:
        logger.warning('interrupted again; killing %s', handle.command)
        proc.kill()
        proc.wait()
      handle.state = RunState.KILLED
    else:
      handle.state = RunState.EXITED
    handle.returncode = proc.returncode
    self._active = None
    self._state = RunState.IDLE
    return handle

  # -------------------------------------------------------------- helpers ----
  def _start(self) -> Optional[RunHandle]:
    self._state = RunState.STARTING
    try:
      process = self._spawn(self.argv)
    except OSError as exc:
      self._state = RunState.IDLE
      self.stats.spawn_failures += 1
      logger.error('%s', SpawnError(self.argv, exc))
      return None

    handle = RunHandle(argv=list(self.argv), process=process, started_at=self._clock())
    self._active = handle
    self._state = RunState.RUNNING
    self.stats.runs_started += 1
    logger.info('running %s (pid %s)', handle.command, handle.pid)

    waiter = threading.Thread(
      target=self._wait_for_exit, args=(handle,), daemon=True,
      name=f'fswatch-run-{handle.pid}',
    )
    waiter.start()
    return handle

  def _wait_for_exit(self, handle: RunHandle) -> None:
    handle.process.wait()
    self._notify(handle)

  def _report(self, handle: RunHandle) -> None:
    elapsed = self._clock() - handle.started_at
    if handle.returncode == 0:
      logger.info('%s exited with status 0 after %.2fs', handle.command, elapsed)
    else:
      logger.info('%s after %.2fs', ChildRuntimeError(handle.argv, handle.returncode), elapsed)
