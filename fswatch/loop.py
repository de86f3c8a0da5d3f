# loop.py
'''
The watch loop: one control stream joining four kinds of input.

    FsChange      from the notifier threads
    RunExited     from the dispatcher's completion watchers
    NotifierLost  from the notifier when a watched root disappears
    StopRequested from stop(), any thread

All of them arrive through one queue; the pending debounce deadline is the
wait timeout.  Only the thread inside run() touches the filter, the debouncer
and the dispatcher.
'''

from __future__ import annotations

import logging
import queue
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Sequence

from .config import Config, ExcludeRule
from .debounce import Debouncer
from .dispatch import Dispatcher, RunHandle
from .errors import NotifierError
from .fs_watchdog import FsChange, Notifier, NotifierLost
from .pattern_filter import PatternFilter

logger = logging.getLogger(__name__)

HEALTH_CHECK_INTERVAL = 1.0


@dataclass(frozen=True)
class RunExited:
  handle: RunHandle


@dataclass(frozen=True)
class StopRequested:
  pass


class WatchLoop:
  def __init__(
    self,
    cfg: Config,
    targets: Sequence[Path],
    exclude: Optional[ExcludeRule] = None,
    *,
    notifier_factory: Callable[..., Notifier] = Notifier,
    spawn: Optional[Callable] = None,
    clock: Callable[[], float] = time.monotonic,
  ) -> None:
    self._cfg = cfg
    self._targets = tuple(targets)
    self._clock = clock
    self._inbox: queue.Queue = queue.Queue()
    self._notifier_factory = notifier_factory
    self._notifier: Optional[Notifier] = None
    self._resubscribed = False

    self.filter = PatternFilter(self._targets, exclude)
    self.debouncer = Debouncer(cfg.debounce_interval)
    self.dispatcher = Dispatcher(
      cfg.command, lambda handle: self.post(RunExited(handle)), spawn=spawn, clock=clock
    )

  # ─────────────────────────────────────────────────────────────────────────
  # Thread-safe entry points
  # ─────────────────────────────────────────────────────────────────────────
  def post(self, message: object) -> None:
    self._inbox.put(message)

  def stop(self) -> None:
    self.post(StopRequested())

  # ─────────────────────────────────────────────────────────────────────────
  # Control stream
  # ─────────────────────────────────────────────────────────────────────────
  def run(self) -> None:
    '''
    Watch until stop() or KeyboardInterrupt.  Raises NotifierError when the
    watch cannot be (re)established.
    '''
    self._subscribe()
    logger.info('watching %s for changes...', ', '.join(map(str, self._targets)))
    try:
      while self._step():
        pass
    except KeyboardInterrupt:
      logger.info('interrupted')
    finally:
      self._shutdown()

  def _step(self) -> bool:
    timeout = self.debouncer.remaining(self._clock())
    if timeout is None or timeout > HEALTH_CHECK_INTERVAL:
      timeout = HEALTH_CHECK_INTERVAL
    messages = self._drain(timeout)
    now = self._clock()

    for message in messages:
      if isinstance(message, StopRequested):
        return False
      if isinstance(message, FsChange):
        self._on_change(message, now)
      elif isinstance(message, RunExited):
        self.dispatcher.on_exit(message.handle)
      elif isinstance(message, NotifierLost):
        self._on_lost(message.reason)

    if self.debouncer.poll(now) is not None:
      self.dispatcher.on_settle()
    if not messages and self._notifier is not None and not self._notifier.is_alive():
      self._on_lost('observer thread stopped')
    return True

  def _drain(self, timeout: float) -> list:
    '''
    Block up to *timeout* for one message, then take whatever else is already
    queued, so one notifier delivery is handled under a single timestamp.
    '''
    try:
      messages = [self._inbox.get(timeout=timeout)]
    except queue.Empty:
      return []
    for _ in range(self._inbox.qsize()):
      try:
        messages.append(self._inbox.get_nowait())
      except queue.Empty:
        break
    return messages

  def _on_change(self, message: FsChange, now: float) -> None:
    event = message.event
    for path in self.filter.relevant(event.paths):
      logger.debug('change event: %s %s', event.kind.value, path)
      if self.debouncer.push(now) is not None:
        self.dispatcher.on_settle()

  # ─────────────────────────────────────────────────────────────────────────
  # Notifier lifecycle
  # ─────────────────────────────────────────────────────────────────────────
  def _subscribe(self) -> None:
    notifier = self._notifier_factory(self._targets, self.post, recursive=self._cfg.recursive)
    notifier.start()
    self._notifier = notifier

  def _on_lost(self, reason: str) -> None:
    if self._resubscribed:
      raise NotifierError(f'watch lost again ({reason}); giving up')
    self._resubscribed = True
    logger.warning('watch lost (%s); resubscribing once', reason)
    if self._notifier is not None:
      self._notifier.stop()
      self._notifier = None
    self._subscribe()

  def _shutdown(self) -> None:
    if self.debouncer.cancel():
      logger.debug('pending change dropped on shutdown')
    if self._notifier is not None:
      self._notifier.stop()
      self._notifier = None
    self.dispatcher.shutdown(self._cfg.grace_period)
