from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Optional

from loguru import logger

from .config import default_state_dir, get_log_level, load_config
from .logging_utils import configure_logging
from .server import create_app
from .task_engine.engine import ShareResult, TaskEngine
from .task_engine.errors import StoreLoadError, StoreWriteError
from .task_engine.filters import PRIORITY_CHOICES, STATUS_CHOICES
from .task_engine.model import TaskPriority, TaskStatus

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_LOAD_ERROR = 2


def _resolve_state_dir(state_dir: Optional[str]) -> Path:
    return Path(state_dir).expanduser().resolve() if state_dir else default_state_dir()


def _emit(payload: dict[str, Any]) -> None:
    sys.stdout.write(json.dumps(payload, indent=2) + '\n')


def _fail(message: str) -> int:
    sys.stderr.write(message + '\n')
    return EXIT_FAILED


def _engine(args: argparse.Namespace) -> TaskEngine:
    engine = TaskEngine.from_state_dir(_resolve_state_dir(args.state_dir))
    engine.initialize()
    return engine


def _task_list(args: argparse.Namespace) -> int:
    engine = _engine(args)
    tasks = engine.filter({'status': args.status, 'priority': args.priority, 'search': args.search})
    _emit({'tasks': [t.to_dict() for t in tasks], 'total': len(tasks)})
    return EXIT_OK


def _task_create(args: argparse.Namespace) -> int:
    if not args.title.strip():
        return _fail('Title must not be empty')
    engine = _engine(args)
    try:
        task = engine.create_task(
            title=args.title,
            description=args.description,
            status=args.status,
            priority=args.priority,
            due_date=args.due_date,
            tags=args.tag,
        )
    except ValueError as exc:
        return _fail(str(exc))
    _emit({'task': task.to_dict()})
    return EXIT_OK


def _task_update(args: argparse.Namespace) -> int:
    changes: dict[str, Any] = {}
    for attr in ('title', 'description', 'status', 'priority', 'due_date'):
        value = getattr(args, attr)
        if value is not None:
            changes[attr] = value
    if args.tag is not None:
        changes['tags'] = args.tag
    engine = _engine(args)
    try:
        task = engine.update_task(args.task_id, changes)
    except ValueError as exc:
        return _fail(str(exc))
    if task is None:
        return _fail(f'Task {args.task_id} not found')
    _emit({'task': task.to_dict()})
    return EXIT_OK


def _task_delete(args: argparse.Namespace) -> int:
    engine = _engine(args)
    if not engine.delete_task(args.task_id):
        return _fail(f'Task {args.task_id} not found')
    _emit({'deleted': args.task_id})
    return EXIT_OK


def _task_cycle(args: argparse.Namespace) -> int:
    engine = _engine(args)
    task = engine.cycle_status(args.task_id)
    if task is None:
        return _fail(f'Task {args.task_id} not found')
    _emit({'task': task.to_dict()})
    return EXIT_OK


def _task_share(args: argparse.Namespace) -> int:
    engine = _engine(args)
    try:
        result = engine.share_task(args.task_id, args.identifier)
    except ValueError as exc:
        return _fail(str(exc))
    if result == ShareResult.NOT_FOUND:
        return _fail(f'Task {args.task_id} not found')
    if result == ShareResult.ALREADY_SHARED:
        return _fail(f'Task {args.task_id} is already shared with {args.identifier}')
    _emit({'result': result.value, 'task_id': args.task_id, 'identifier': args.identifier})
    return EXIT_OK


def _task_unshare(args: argparse.Namespace) -> int:
    engine = _engine(args)
    result = engine.unshare_task(args.task_id, args.identifier)
    if result == ShareResult.NOT_FOUND:
        return _fail(f'Task {args.task_id} not found')
    if result == ShareResult.NOT_SHARED:
        return _fail(f'Task {args.task_id} is not shared with {args.identifier}')
    _emit({'result': result.value, 'task_id': args.task_id, 'identifier': args.identifier})
    return EXIT_OK


def _stats(args: argparse.Namespace) -> int:
    _emit(_engine(args).stats().to_dict())
    return EXIT_OK


def _reset(args: argparse.Namespace) -> int:
    engine = TaskEngine.from_state_dir(_resolve_state_dir(args.state_dir))
    tasks = engine.reset()
    _emit({'tasks': [t.to_dict() for t in tasks], 'total': len(tasks)})
    return EXIT_OK


def _server(args: argparse.Namespace) -> int:
    import uvicorn

    app = create_app(state_dir=_resolve_state_dir(args.state_dir))
    uvicorn.run(app, host=args.host, port=args.port)
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    statuses = [s.value for s in TaskStatus]
    priorities = [p.value for p in TaskPriority]

    parser = argparse.ArgumentParser(prog='task-tracker', description='Local task tracker')
    parser.add_argument('--state-dir', default=None, help='State directory (default: ./.task_tracker)')
    parser.add_argument('--log-level', default=None, help='Log level (overrides config and environment)')
    subparsers = parser.add_subparsers(dest='command', required=True)

    tlist = subparsers.add_parser('list', help='List tasks matching a filter')
    tlist.add_argument('--status', default='all', choices=list(STATUS_CHOICES))
    tlist.add_argument('--priority', default='all', choices=list(PRIORITY_CHOICES))
    tlist.add_argument('--search', default='')
    tlist.set_defaults(func=_task_list)

    tcreate = subparsers.add_parser('create', help='Create a task')
    tcreate.add_argument('title')
    tcreate.add_argument('--description', default='')
    tcreate.add_argument('--status', default='todo', choices=statuses)
    tcreate.add_argument('--priority', default='medium', choices=priorities)
    tcreate.add_argument('--due-date', default='', help='ISO date, e.g. 2025-02-01')
    tcreate.add_argument('--tag', action='append', default=[], help='Repeat for several tags')
    tcreate.set_defaults(func=_task_create)

    tupdate = subparsers.add_parser('update', help='Change some fields of a task')
    tupdate.add_argument('task_id')
    tupdate.add_argument('--title', default=None)
    tupdate.add_argument('--description', default=None)
    tupdate.add_argument('--status', default=None, choices=statuses)
    tupdate.add_argument('--priority', default=None, choices=priorities)
    tupdate.add_argument('--due-date', default=None)
    tupdate.add_argument('--tag', action='append', default=None, help='Replaces all tags; repeat for several')
    tupdate.set_defaults(func=_task_update)

    tdelete = subparsers.add_parser('delete', help='Delete a task')
    tdelete.add_argument('task_id')
    tdelete.set_defaults(func=_task_delete)

    tcycle = subparsers.add_parser('cycle', help='Advance a task to its next status')
    tcycle.add_argument('task_id')
    tcycle.set_defaults(func=_task_cycle)

    tshare = subparsers.add_parser('share', help='Share a task with an email address')
    tshare.add_argument('task_id')
    tshare.add_argument('identifier')
    tshare.set_defaults(func=_task_share)

    tunshare = subparsers.add_parser('unshare', help='Stop sharing a task with an email address')
    tunshare.add_argument('task_id')
    tunshare.add_argument('identifier')
    tunshare.set_defaults(func=_task_unshare)

    stats = subparsers.add_parser('stats', help='Show task counts per status')
    stats.set_defaults(func=_stats)

    reset = subparsers.add_parser('reset', help='Discard stored tasks and restore the examples')
    reset.set_defaults(func=_reset)

    server = subparsers.add_parser('server', help='Start the HTTP API')
    server.add_argument('--host', default='127.0.0.1')
    server.add_argument('--port', default=8000, type=int)
    server.set_defaults(func=_server)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    handler = getattr(args, 'func', None)
    if handler is None:
        parser.print_help()
        return EXIT_FAILED

    config, _ = load_config(_resolve_state_dir(args.state_dir))
    configure_logging(args.log_level or get_log_level(config))

    try:
        return int(handler(args) or 0)
    except StoreLoadError as exc:
        logger.error("Stored tasks could not be loaded: {}", exc)
        sys.stderr.write(f"{exc}\nRun 'task-tracker reset' to discard the stored tasks.\n")
        return EXIT_LOAD_ERROR
    except StoreWriteError as exc:
        return _fail(str(exc))


if __name__ == '__main__':
    sys.exit(main())
