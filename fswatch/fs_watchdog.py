# fs_watchdog.py
'''
Filesystem notifications based on the `watchdog` library.

API
---
Notifier(targets, post, recursive=True)
    • targets    : resolved absolute paths (files and/or directories)
    • post       : callable receiving FsChange / NotifierLost messages;
                   called from watchdog's emitter threads
    • recursive  : watch sub-directories of directory targets
  .start()      : schedule watches and start the observer thread
  .stop()       : stop the observer thread cleanly
  .is_alive()   : False once the observer thread has died
'''

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, Iterable, Optional, Set, Tuple

from watchdog.events import (
  DirModifiedEvent,
  FileSystemEvent,
  FileSystemEventHandler,
)
from watchdog.observers import Observer

from .errors import NotifierError


# ─────────────────────────────────────────────────────────────────────────────
# Messages posted into the watch loop
# ─────────────────────────────────────────────────────────────────────────────
class EventKind(str, Enum):
  CREATED = 'created'
  MODIFIED = 'modified'
  REMOVED = 'removed'
  RENAMED = 'renamed'


@dataclass(frozen=True)
class RawEvent:
  kind: EventKind
  paths: Tuple[Path, ...]


@dataclass(frozen=True)
class FsChange:
  event: RawEvent


@dataclass(frozen=True)
class NotifierLost:
  reason: str


_KINDS = {
  'created': EventKind.CREATED,
  'modified': EventKind.MODIFIED,
  'deleted': EventKind.REMOVED,
  'moved': EventKind.RENAMED,
}


def _to_path(raw: str | bytes) -> Path:
  if isinstance(raw, bytes):
    raw = raw.decode(errors='surrogateescape')
  return Path(raw)


def to_raw_event(event: FileSystemEvent) -> Optional[RawEvent]:
  '''Translate a watchdog event; None for kinds that never mean a change.'''
  kind = _KINDS.get(event.event_type)
  if kind is None:                # opened / closed / closed_no_write
    return None
  # a directory's mtime bumps whenever a child changes; the child reports itself
  if isinstance(event, DirModifiedEvent):
    return None
  paths = [_to_path(event.src_path)]
  dest = getattr(event, 'dest_path', '')
  if kind is EventKind.RENAMED and dest:
    paths.append(_to_path(dest))
  return RawEvent(kind=kind, paths=tuple(paths))


class _ChangeHandler(FileSystemEventHandler):
  def __init__(self, roots: Set[Path], post: Callable[[object], None]) -> None:
    super().__init__()
    self._roots = roots
    self._post = post

  def on_any_event(self, event: FileSystemEvent) -> None:  # type: ignore[override]
    if event.event_type == 'deleted' and _to_path(event.src_path) in self._roots:
      self._post(NotifierLost(f'watched directory {event.src_path} was removed'))
      return
    raw = to_raw_event(event)
    if raw is not None:
      self._post(FsChange(raw))


# ─────────────────────────────────────────────────────────────────────────────
# Notifier
# ─────────────────────────────────────────────────────────────────────────────
def watch_roots(targets: Iterable[Path], recursive: bool) -> Dict[Path, bool]:
  '''
  Directories to schedule, mapped to their recursive flag.  A file target is
  watched through its parent directory, non-recursively.
  '''
  roots: Dict[Path, bool] = {}
  for target in targets:
    if target.is_dir():
      roots[target] = roots.get(target, False) or recursive
    else:
      roots.setdefault(target.parent, False)
  return roots


class Notifier:
  def __init__(
    self,
    targets: Iterable[Path],
    post: Callable[[object], None],
    *,
    recursive: bool = True,
  ) -> None:
    self._targets = tuple(targets)
    self._post = post
    self._recursive = recursive
    self._observer: Optional[Observer] = None

  def start(self) -> None:
    roots = watch_roots(self._targets, self._recursive)
    handler = _ChangeHandler(set(roots), self._post)
    observer = Observer()
    try:
      for root, recursive in roots.items():
        observer.schedule(handler, str(root), recursive=recursive)
      observer.start()
    except OSError as exc:
      observer.stop()
      raise NotifierError(f'Unable to watch {", ".join(map(str, roots))}: {exc}') from exc
    self._observer = observer

  def stop(self) -> None:
    observer, self._observer = self._observer, None
    if observer is None:
      return
    observer.stop()
    if observer.is_alive():
      observer.join()

  def is_alive(self) -> bool:
    return self._observer is not None and self._observer.is_alive()
