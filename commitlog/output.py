"""
Output module for commitlog.

Provides consistent output formatting across all commands:
- JSONL (default): Newline-delimited JSON for piping into a changelog renderer
- Pretty: Human-readable tables using Rich

Usage:
    from commitlog.output import emit, emit_error

    emit(commits, pretty=pretty)
    emit_error("`git tag` failed: ...", type="git_error")
"""

import json
import sys
from typing import Iterable, Any, Dict, Optional, List

from rich.console import Console
from rich.table import Table

# Column order preference for auto-detected tables
PREFERRED_COLUMNS = ['sha', 'date', 'summary', 'ref_name', 'tag', 'path', 'packages']


def _to_dict(item: Any) -> Dict[str, Any]:
    if hasattr(item, 'to_dict'):
        return item.to_dict()
    if isinstance(item, dict):
        return item
    return {'value': str(item)}


def emit(
    items: Iterable[Any],
    pretty: bool = False,
    columns: Optional[List[str]] = None,
    err: bool = False
) -> None:
    """
    Emit items as JSONL or pretty table.

    Args:
        items: Items to emit (should have to_dict() method or be dicts)
        pretty: If True, render as table. If False, output JSONL
        columns: Column names for table (auto-detected if None)
        err: If True, output to stderr instead of stdout
    """
    stream = sys.stderr if err else sys.stdout

    if pretty:
        _emit_table(items, columns, stream)
    else:
        _emit_jsonl(items, stream)


def _emit_jsonl(items: Iterable[Any], stream=sys.stdout) -> None:
    """Emit items as JSONL."""
    for item in items:
        print(json.dumps(_to_dict(item), ensure_ascii=False), file=stream, flush=True)


def _emit_table(items: Iterable[Any], columns: Optional[List[str]] = None, stream=sys.stdout) -> None:
    """Emit items as a Rich table."""
    rows = [_to_dict(item) for item in items]

    console = Console(file=stream)
    if not rows:
        console.print("No results found")
        return

    if not columns:
        columns = _auto_columns(rows)

    table = Table(show_header=True, header_style="bold")
    for col in columns:
        table.add_column(col)

    for row in rows:
        table.add_row(*[_format_value(row.get(col, '')) for col in columns])

    console.print(table)


def _auto_columns(rows: List[Dict]) -> List[str]:
    """Auto-detect columns from rows."""
    all_keys = set(rows[0].keys())

    columns = [col for col in PREFERRED_COLUMNS if col in all_keys]
    for key in sorted(all_keys):
        if key not in columns:
            columns.append(key)

    return columns[:8]


def _format_value(value: Any, max_len: int = 72) -> str:
    """Format a value for table display."""
    if value is None:
        return ''
    if isinstance(value, bool):
        return 'Yes' if value else 'No'
    if isinstance(value, list):
        s = ', '.join(str(v) for v in value[:3])
        if len(value) > 3:
            s += f' (+{len(value) - 3} more)'
        return s
    if isinstance(value, dict):
        return '{...}'

    s = str(value)
    if len(s) > max_len:
        return s[:max_len-3] + '...'
    return s


def emit_error(
    error: str,
    type: str = "error",
    context: Optional[Dict[str, Any]] = None
) -> None:
    """
    Emit error to stderr as JSON.

    Args:
        error: Error message
        type: Error type (e.g., "git_error", "config_error")
        context: Additional context dict
    """
    obj = {
        'error': error,
        'type': type
    }
    if context:
        obj['context'] = context

    print(json.dumps(obj, ensure_ascii=False), file=sys.stderr, flush=True)
