#!/usr/bin/env python3
"""
Helpers shared by the command group modules
"""
import argparse
import json
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional

import pandas as pd

from ecod_curation.config import ConfigManager
from ecod_curation.core.context import ApplicationContext
from ecod_curation.utils.export import json_default


def build_context(args: argparse.Namespace) -> ApplicationContext:
    """Application context for a command

    Reuses ``args.context`` when one was attached (as main does), otherwise
    loads the configuration named by ``args.config``.

    Raises:
        ConfigurationError: If the configuration is missing or invalid
    """
    context = getattr(args, 'context', None)
    if context is None:
        config_manager = ConfigManager(getattr(args, 'config', None))
        config_manager.require_valid()
        context = ApplicationContext(config_manager=config_manager)
        args.context = context
    return context


def add_page_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument('--page', type=int, default=1, help='Page number (1-based)')
    parser.add_argument('--page-size', type=int, help='Results per page')


def iso_datetime(value: str) -> datetime:
    """argparse type for ISO-8601 dates and timestamps"""
    try:
        return datetime.fromisoformat(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"Invalid date: {value!r}") from e


def format_table(rows: Iterable[Dict[str, Any]], columns: List[str]) -> str:
    """Render rows as a plain-text table"""
    frame = pd.DataFrame(list(rows), columns=columns)
    if frame.empty:
        return "(no results)"
    return frame.to_string(index=False, na_rep='-')


def format_value(value: Any, digits: int = 2) -> str:
    if value is None:
        return '-'
    if isinstance(value, float):
        return f"{value:.{digits}f}"
    return str(value)


def print_result(args: argparse.Namespace, data: Any,
                 formatter: Optional[Callable[[Any], str]] = None) -> None:
    """Print a command result as JSON (--json) or through a text formatter"""
    if getattr(args, 'json', False) or formatter is None:
        print(json.dumps(data, indent=2, default=json_default))
    else:
        print(formatter(data))


def page_footer(data: Dict[str, Any]) -> str:
    return (f"Page {data['page']} of {max(data['total_pages'], 1)} "
            f"({data['total']} total)")
