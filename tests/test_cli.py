from __future__ import annotations

import json
from pathlib import Path

import pytest

from task_tracker.cli import EXIT_FAILED, EXIT_LOAD_ERROR, EXIT_OK, main
from task_tracker.task_engine.store import LocalStorage


def _run(capsys: pytest.CaptureFixture[str], state_dir: Path, *argv: str) -> tuple[int, dict]:
    rc = main(['--state-dir', str(state_dir), *argv])
    out = capsys.readouterr().out
    return rc, (json.loads(out) if out.strip() else {})


def test_create_list_update_delete(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    rc, payload = _run(capsys, tmp_path, 'list')
    assert rc == EXIT_OK
    assert payload['total'] == 3

    rc, payload = _run(
        capsys, tmp_path, 'create', 'CLI Task', '--priority', 'high', '--due-date', '2025-02-01',
        '--tag', 'cli', '--tag', 'demo',
    )
    assert rc == EXIT_OK
    task = payload['task']
    assert task['tags'] == ['cli', 'demo']

    rc, payload = _run(capsys, tmp_path, 'update', task['id'], '--status', 'completed')
    assert rc == EXIT_OK
    assert payload['task']['status'] == 'completed'
    assert payload['task']['priority'] == 'high'

    rc, payload = _run(capsys, tmp_path, 'list', '--status', 'completed', '--search', 'cli')
    assert [t['id'] for t in payload['tasks']] == [task['id']]

    rc, _ = _run(capsys, tmp_path, 'delete', task['id'])
    assert rc == EXIT_OK
    rc, _ = _run(capsys, tmp_path, 'delete', task['id'])
    assert rc == EXIT_FAILED


def test_share_unshare_and_cycle(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert _run(capsys, tmp_path, 'share', '3', 'x@y.com')[0] == EXIT_OK
    assert _run(capsys, tmp_path, 'share', '3', 'x@y.com')[0] == EXIT_FAILED
    assert _run(capsys, tmp_path, 'share', '3', 'not-an-email')[0] == EXIT_FAILED
    assert _run(capsys, tmp_path, 'unshare', '3', 'x@y.com')[0] == EXIT_OK
    assert _run(capsys, tmp_path, 'unshare', '3', 'x@y.com')[0] == EXIT_FAILED

    rc, payload = _run(capsys, tmp_path, 'cycle', '3')
    assert rc == EXIT_OK
    assert payload['task']['status'] == 'in-progress'


def test_stats(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    rc, payload = _run(capsys, tmp_path, 'stats')
    assert rc == EXIT_OK
    assert payload == {'total': 3, 'completed': 1, 'inProgress': 1, 'pending': 1}


def test_load_failure_then_reset(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    LocalStorage(tmp_path / 'storage').set_item('tasks', '{"broken": true}')
    rc = main(['--state-dir', str(tmp_path), 'list'])
    captured = capsys.readouterr()
    assert rc == EXIT_LOAD_ERROR
    assert 'reset' in captured.err

    rc, payload = _run(capsys, tmp_path, 'reset')
    assert rc == EXIT_OK
    assert payload['total'] == 3
    assert _run(capsys, tmp_path, 'list')[0] == EXIT_OK


def test_empty_title_rejected(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert _run(capsys, tmp_path, 'create', '   ')[0] == EXIT_FAILED


def test_undecodable_store_exits_with_load_error(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    storage_dir = tmp_path / 'storage'
    storage_dir.mkdir()
    (storage_dir / 'tasks.json').write_bytes(b'[\xff\xfe]')
    rc = main(['--state-dir', str(tmp_path), 'list'])
    assert rc == EXIT_LOAD_ERROR
    assert 'reset' in capsys.readouterr().err
