# debounce.py
'''
Collapse bursts of relevant events into single settle signals.

A burst is a maximal run of events whose consecutive gaps are at most
``interval`` seconds.  Each burst settles exactly once, at the time of its
last event plus ``interval``.

The debouncer owns no thread and no timer: the watch loop feeds it event
timestamps with push(), asks remaining() how long it may block, and calls
poll() when it wakes up.

    d = Debouncer(5)
    d.push(0); d.push(1); d.push(2)
    d.poll(6)  -> None
    d.poll(7)  -> Settle(deadline=7, first_event=0, last_event=2, events=3)
'''

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .errors import ConfigurationError


@dataclass(frozen=True)
class Settle:
  deadline: float
  first_event: float
  last_event: float
  events: int


@dataclass
class _PendingBurst:
  first_event: float
  last_event: float
  deadline: float
  events: int = 1

  def settle(self) -> Settle:
    return Settle(
      deadline=self.deadline,
      first_event=self.first_event,
      last_event=self.last_event,
      events=self.events,
    )


class Debouncer:
  def __init__(self, interval: float) -> None:
    if isinstance(interval, bool) or not isinstance(interval, (int, float)) or interval < 0:
      raise ConfigurationError(f'debounce interval must be a non-negative number, got {interval!r}')
    self.interval = float(interval)
    self._pending: Optional[_PendingBurst] = None

  @property
  def pending(self) -> bool:
    return self._pending is not None

  @property
  def deadline(self) -> Optional[float]:
    return self._pending.deadline if self._pending is not None else None

  def push(self, at: float) -> Optional[Settle]:
    '''
    Record a relevant event at time *at*.

    An event at or before the pending deadline extends it.  An event past the
    deadline means the caller polled late: the old burst is over, so its
    settle is returned and a new burst opens at *at*.
    '''
    burst = self._pending
    if burst is not None and at <= burst.deadline:
      burst.last_event = max(burst.last_event, at)
      burst.deadline = burst.last_event + self.interval
      burst.events += 1
      return None

    closed = burst.settle() if burst is not None else None
    self._pending = _PendingBurst(first_event=at, last_event=at, deadline=at + self.interval)
    return closed

  def poll(self, now: float) -> Optional[Settle]:
    '''Emit the settle of the pending burst once *now* reaches its deadline.'''
    burst = self._pending
    if burst is None or now < burst.deadline:
      return None
    self._pending = None
    return burst.settle()

  def remaining(self, now: float) -> Optional[float]:
    '''Seconds until the pending deadline (>= 0), or None when idle.'''
    if self._pending is None:
      return None
    return max(self._pending.deadline - now, 0.0)

  def cancel(self) -> bool:
    '''Drop the pending burst without settling it.  True if one was dropped.'''
    dropped = self._pending is not None
    self._pending = None
    return dropped
