# test_config.py
'''
Tests for config (target resolution, exclude compilation, Config.prepare),
the command-line parser and main()'s exit codes.

Two-space indent, single quotes everywhere.
'''

from __future__ import annotations

import signal
import sys
from pathlib import Path

import pytest

import fswatch.__main__ as fswatch_main
from fswatch.config import (
  DEFAULT_DEBOUNCE_INTERVAL, Config, compile_exclude, resolve_targets,
)
from fswatch.errors import ConfigurationError, NotifierError
from fswatch.fs_argparse import parse_argv
from fswatch.fs_watchdog import Notifier


@pytest.fixture
def tree(tmp_path: Path) -> Path:
  (tmp_path / 'src').mkdir()
  (tmp_path / 'src' / 'a.py').write_text('a', encoding='utf-8')
  (tmp_path / 'src' / 'b.py').write_text('b', encoding='utf-8')
  (tmp_path / 'notes.txt').write_text('n', encoding='utf-8')
  return tmp_path


# ─────────────────────────────────────────────────────────────────────────────
# 1. resolve_targets
# ─────────────────────────────────────────────────────────────────────────────
def test_directory_target(tree: Path):
  assert resolve_targets(tree / 'src') == ((tree / 'src').resolve(),)


def test_file_target(tree: Path):
  assert resolve_targets(str(tree / 'notes.txt')) == ((tree / 'notes.txt').resolve(),)


def test_glob_target(tree: Path):
  got = resolve_targets(str(tree / 'src' / '*.py'))
  assert got == ((tree / 'src' / 'a.py').resolve(), (tree / 'src' / 'b.py').resolve())


def test_recursive_glob_target(tree: Path):
  got = resolve_targets(str(tree / '**' / '*.py'))
  assert {p.name for p in got} == {'a.py', 'b.py'}


def test_missing_path_is_a_configuration_error(tree: Path):
  with pytest.raises(ConfigurationError):
    resolve_targets(tree / 'nope')


def test_glob_without_matches_is_a_configuration_error(tree: Path):
  with pytest.raises(ConfigurationError):
    resolve_targets(str(tree / '*.rs'))


def test_empty_target_is_a_configuration_error():
  with pytest.raises(ConfigurationError):
    resolve_targets('')


# ─────────────────────────────────────────────────────────────────────────────
# 2. compile_exclude
# ─────────────────────────────────────────────────────────────────────────────
def test_compile_exclude_keeps_source():
  rule = compile_exclude(r'\.git/')
  assert rule.source == r'\.git/'
  assert str(rule) == r'\.git/'
  assert rule.matches('/x/.git/HEAD')
  assert not rule.matches('/x/src/HEAD')


def test_invalid_regex_is_a_configuration_error():
  with pytest.raises(ConfigurationError, match='regular expression'):
    compile_exclude('([unclosed')


# ─────────────────────────────────────────────────────────────────────────────
# 3. Config.prepare
# ─────────────────────────────────────────────────────────────────────────────
def test_prepare_returns_targets_and_rule(tree: Path):
  cfg = Config(tree / 'src', ['make'], exclude='dist/.*', debounce_interval='0.25')
  targets, rule = cfg.prepare()
  assert targets == ((tree / 'src').resolve(),)
  assert rule is not None and rule.source == 'dist/.*'
  assert cfg.debounce_interval == 0.25


def test_prepare_without_exclude(tree: Path):
  _, rule = Config(tree, ['make']).prepare()
  assert rule is None


@pytest.mark.parametrize('kwargs', [
  {'command': []},
  {'debounce_interval': -1},
  {'debounce_interval': 'later'},
  {'debounce_interval': float('nan')},
  {'grace_period': -0.5},
  {'exclude': '*.js'},
])
def test_prepare_rejects(tree: Path, kwargs):
  params = {'target': tree, 'command': ['make'], **kwargs}
  with pytest.raises(ConfigurationError):
    Config(**params).prepare()


# ─────────────────────────────────────────────────────────────────────────────
# 4. parse_argv
# ─────────────────────────────────────────────────────────────────────────────
def test_argv_defaults():
  args = parse_argv(['src', 'make', 'test'])
  assert args.file_path == 'src'
  assert args.command == ['make', 'test']
  assert args.debounce_interval == DEFAULT_DEBOUNCE_INTERVAL
  assert args.exclude is None
  assert args.recursive is True
  assert args.verbose == 0


def test_argv_options_before_path():
  args = parse_argv(['-d', '0.2', '-e', 'dist/.*', '--no-recursive', '-vv', 'src', 'npm', 'run', 'build'])
  assert args.debounce_interval == 0.2
  assert args.exclude == 'dist/.*'
  assert args.recursive is False
  assert args.verbose == 2
  assert args.command == ['npm', 'run', 'build']


def test_argv_command_keeps_its_own_flags():
  args = parse_argv(['src', 'pytest', '-x', '-v'])
  assert args.command == ['pytest', '-x', '-v']
  assert args.verbose == 0


def test_argv_double_dash_separator():
  args = parse_argv(['src', '--', 'ls', '-l'])
  assert args.command == ['ls', '-l']


def test_argv_missing_command_is_usage_error():
  with pytest.raises(SystemExit) as exc:
    parse_argv(['src'])
  assert exc.value.code == 2


# ─────────────────────────────────────────────────────────────────────────────
# 5. main() exit codes
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture
def run_main(monkeypatch):
  # keep the test process's own SIGTERM handling untouched
  monkeypatch.setattr(signal, 'signal', lambda *args: None)

  def run(*argv: str) -> int:
    monkeypatch.setattr(sys, 'argv', ['fswatch', *argv])
    return fswatch_main.main()

  return run


def test_main_missing_path_exits_2(run_main, tmp_path: Path):
  assert run_main(str(tmp_path / 'nope'), 'true') == 2


def test_main_bad_exclude_exits_2_before_watching(run_main, monkeypatch, tmp_path: Path):
  built = []
  monkeypatch.setattr(fswatch_main, 'WatchLoop', lambda *args, **kwargs: built.append(args))
  assert run_main('-e', '*.js', str(tmp_path), 'true') == 2
  assert built == []


def test_main_notifier_failure_exits_1(run_main, monkeypatch, tmp_path: Path):
  def refuse(self):
    raise NotifierError('cannot watch')

  monkeypatch.setattr(Notifier, 'start', refuse)
  assert run_main(str(tmp_path), sys.executable, '-c', 'pass') == 1
