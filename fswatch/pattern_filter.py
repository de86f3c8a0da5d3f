# pattern_filter.py
'''
Decide which raw notification paths count as a watch-relevant change.

A path is dropped when it matches the exclude rule, or when it lies outside
every watched path (notifiers scheduled on a parent directory also report
sibling files).
'''

from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, Optional

from .config import ExcludeRule


class PatternFilter:
  def __init__(self, targets: Iterable[Path], exclude: Optional[ExcludeRule] = None) -> None:
    self._targets = tuple(Path(t) for t in targets)
    self._exclude = exclude

  @property
  def exclude(self) -> Optional[ExcludeRule]:
    return self._exclude

  def _inside_targets(self, path: Path) -> bool:
    for target in self._targets:
      if path == target or target in path.parents:
        return True
    return False

  def is_relevant(self, path: str | Path) -> bool:
    if self._exclude is not None and self._exclude.matches(path):
      return False
    return self._inside_targets(Path(path))

  def relevant(self, paths: Iterable[str | Path]) -> List[Path]:
    '''Surviving subset of *paths*, input order kept.'''
    return [Path(p) for p in paths if self.is_relevant(p)]
