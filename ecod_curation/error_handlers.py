#!/usr/bin/env python3
"""
Error handling for curation commands

Maps toolkit exceptions to the message a curator sees, the exit code a
wrapping shell script can branch on, and the log level they are recorded at.
"""
import sys
import traceback
import logging
from functools import wraps
from typing import Any, Callable, Dict, Optional, Tuple, Type, TypeVar, Union

from .exceptions import (
    AlignmentError, ConfigurationError, DatabaseError, ECODError, ExportError,
    NotFoundError, ReclassificationError, ValidationError
)

T = TypeVar('T')

EXIT_UNEXPECTED = 2
EXIT_INTERRUPTED = 130

# (exit code, message prefix, log level); first match in order wins
ERROR_POLICY: Tuple[Tuple[Type[ECODError], int, str, int], ...] = (
    (NotFoundError, 3, "Not found", logging.WARNING),
    (ValidationError, 4, "Invalid input", logging.WARNING),
    (ReclassificationError, 5, "Decision not applied", logging.WARNING),
    (AlignmentError, 6, "Alignment unreadable", logging.ERROR),
    (ExportError, 7, "Export failed", logging.ERROR),
    (DatabaseError, 8, "Database error", logging.ERROR),
    (ConfigurationError, 9, "Configuration error", logging.ERROR),
)


def _policy(error: ECODError) -> Tuple[int, str, int]:
    for error_class, code, prefix, level in ERROR_POLICY:
        if isinstance(error, error_class):
            return code, prefix, level
    return 1, error.__class__.__name__, logging.ERROR


def exit_code_for(error: BaseException) -> int:
    """Process exit code reported for an exception"""
    if isinstance(error, KeyboardInterrupt):
        return EXIT_INTERRUPTED
    if isinstance(error, ECODError):
        return _policy(error)[0]
    return EXIT_UNEXPECTED


def _format_details(details: Dict[str, Any]) -> str:
    return ", ".join(f"{key}={value}" for key, value in details.items())


def format_error(error: Exception, verbose: bool = False) -> str:
    """Format an error message for display

    Lookups and rejected decisions name the entity involved, since the
    identifiers are what a curator needs to retry. Other details are only
    shown in verbose mode.

    Args:
        error: Exception object
        verbose: Whether to include detailed information

    Returns:
        Formatted error message
    """
    if isinstance(error, ECODError):
        _, prefix, _ = _policy(error)
        msg = f"{prefix}: {error.message}"
        if error.details and (verbose or isinstance(error, (NotFoundError, ReclassificationError))):
            msg += f" ({_format_details(error.details)})"
        return msg
    if verbose:
        return f"Unexpected Error ({error.__class__.__name__}): {str(error)}\n{traceback.format_exc()}"
    return f"Unexpected Error: {str(error)}"


def log_error(logger: logging.Logger, error: Exception,
              context: Optional[Dict[str, Any]] = None) -> None:
    """Log an exception with its details merged into the record context

    Curator mistakes (unknown ids, bad input, refused decisions) are logged
    as warnings without a traceback.
    """
    if isinstance(error, ECODError):
        _, _, level = _policy(error)
        ctx = {**error.details, **(context or {})}
        logger.log(level, f"{error.__class__.__name__}: {error.message}",
                   extra={"context": ctx} if ctx else None,
                   exc_info=level >= logging.ERROR)
    else:
        logger.error(f"Unexpected error: {str(error)}",
                     extra={"context": context} if context else None,
                     exc_info=True)


def handle_exceptions(exit_on_error: bool = False) -> Callable[[Callable[..., T]], Callable[..., Union[T, int]]]:
    """Decorator to handle exceptions in functions

    Args:
        exit_on_error: Whether to exit the program on error

    Returns:
        Decorated function
    """
    def decorator(func: Callable[..., T]) -> Callable[..., Union[T, int]]:
        @wraps(func)
        def wrapper(*args, **kwargs) -> Union[T, int]:
            logger = logging.getLogger(func.__module__)
            try:
                return func(*args, **kwargs)
            except KeyboardInterrupt as e:
                logger.info("Operation cancelled by user")
                print("\nOperation cancelled by user", file=sys.stderr)
                code = exit_code_for(e)
            except ECODError as e:
                log_error(logger, e)
                print(format_error(e), file=sys.stderr)
                code = exit_code_for(e)
            except Exception as e:
                log_error(logger, e)
                print(format_error(e, verbose=False), file=sys.stderr)
                print("See log for details. Run with --verbose for more information.", file=sys.stderr)
                code = exit_code_for(e)

            if exit_on_error:
                sys.exit(code)
            return code
        return wrapper
    return decorator
