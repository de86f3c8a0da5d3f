# fakes.py
'''
Scripted stand-ins for subprocess.Popen, shared by the dispatcher and loop
tests.
'''

from __future__ import annotations

import itertools
import subprocess
import threading


class FakeProcess:
  _pids = itertools.count(1000)

  def __init__(self, argv) -> None:
    self.args = list(argv)
    self.pid = next(self._pids)
    self.returncode = None
    self.terminated = False
    self.killed = False
    self.ignore_terminate = False
    self.interrupt_wait = False        # a timed wait() raises KeyboardInterrupt
    self._done = threading.Event()

  def finish(self, code: int = 0) -> None:
    self.returncode = code
    self._done.set()

  def poll(self):
    return self.returncode

  def wait(self, timeout=None):
    if self.interrupt_wait and timeout is not None:
      raise KeyboardInterrupt
    if not self._done.wait(timeout):
      raise subprocess.TimeoutExpired(self.args, timeout)
    return self.returncode

  def terminate(self) -> None:
    self.terminated = True
    if not self.ignore_terminate:
      self.finish(-15)

  def kill(self) -> None:
    self.killed = True
    self.finish(-9)


class Spawner:
  '''Callable used as Dispatcher(spawn=...); records every process made.'''

  def __init__(self) -> None:
    self.procs: list[FakeProcess] = []
    self.attempts = 0
    self.fail: OSError | None = None

  def __call__(self, argv) -> FakeProcess:
    self.attempts += 1
    if self.fail is not None:
      raise self.fail
    proc = FakeProcess(argv)
    self.procs.append(proc)
    return proc

  def running(self) -> list[FakeProcess]:
    return [p for p in self.procs if p.returncode is None]
