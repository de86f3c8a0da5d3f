# config.py
'''
Startup configuration: the values the CLI hands to the watch loop, plus the
two startup resolutions that may fail fast.

    resolve_targets(target)  -> tuple[Path, ...]   (WatchTarget)
    compile_exclude(pattern) -> ExcludeRule
'''

from __future__ import annotations

import glob
import math
import re
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from .errors import ConfigurationError

DEFAULT_DEBOUNCE_INTERVAL = 1.0
DEFAULT_GRACE_PERIOD = 3.0


# ─────────────────────────────────────────────────────────────────────────────
# Exclude rule
# ─────────────────────────────────────────────────────────────────────────────
@dataclass(frozen=True)
class ExcludeRule:
  regex: re.Pattern
  source: str

  def matches(self, path: str | Path) -> bool:
    return self.regex.search(str(path)) is not None

  def __str__(self) -> str:
    return self.source


def compile_exclude(pattern: str) -> ExcludeRule:
  try:
    regex = re.compile(pattern)
  except re.error as exc:
    raise ConfigurationError(
      f'Could not compile regular expression for exclude {pattern!r}: {exc}'
    ) from exc
  return ExcludeRule(regex=regex, source=pattern)


# ─────────────────────────────────────────────────────────────────────────────
# Watch target
# ─────────────────────────────────────────────────────────────────────────────
def resolve_targets(target: str | Path) -> Tuple[Path, ...]:
  '''
  Expand *target* into the absolute paths to watch.

  A glob pattern (``*``, ``?``, ``[...]``, ``**``) expands to whatever it
  matches right now; a plain path must exist.  Duplicates are dropped while
  keeping first-seen order.
  '''
  text = str(target)
  if not text:
    raise ConfigurationError('Watch target is empty')

  if glob.has_magic(text):
    found = [Path(p) for p in sorted(glob.glob(text, recursive=True))]
  else:
    path = Path(text)
    found = [path] if path.exists() else []

  if not found:
    raise ConfigurationError(f'Unable to watch filepath {text}: nothing matches')

  resolved: List[Path] = []
  for p in found:
    r = p.resolve()
    if r not in resolved:
      resolved.append(r)
  return tuple(resolved)


def _check_seconds(value: object, name: str) -> float:
  try:
    seconds = float(value)  # type: ignore[arg-type]
  except (TypeError, ValueError) as exc:
    raise ConfigurationError(f'{name} must be a number of seconds') from exc
  if math.isnan(seconds) or seconds < 0:
    raise ConfigurationError(f'{name} must not be negative')
  return seconds


# ─────────────────────────────────────────────────────────────────────────────
# Config: plain values, validated by prepare()
# ─────────────────────────────────────────────────────────────────────────────
class Config:
  def __init__(
    self,
    target: str | Path,
    command: Sequence[str],
    exclude: Optional[str] = None,
    debounce_interval: float = DEFAULT_DEBOUNCE_INTERVAL,
    grace_period: float = DEFAULT_GRACE_PERIOD,
    recursive: bool = True,
  ) -> None:
    self.target = target
    self.command = list(command)
    self.exclude = exclude
    self.debounce_interval = debounce_interval
    self.grace_period = grace_period
    self.recursive = recursive

  def prepare(self) -> Tuple[Tuple[Path, ...], Optional[ExcludeRule]]:
    '''
    Validate everything that can fail before watching starts.

    Returns the resolved WatchTarget and the compiled exclude rule (or None).
    Raises ConfigurationError on the first problem found.
    '''
    if not self.command:
      raise ConfigurationError('No command given to run on changes')
    self.debounce_interval = _check_seconds(self.debounce_interval, 'debounce interval')
    self.grace_period = _check_seconds(self.grace_period, 'grace period')
    rule = compile_exclude(self.exclude) if self.exclude is not None else None
    return resolve_targets(self.target), rule
