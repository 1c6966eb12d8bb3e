"""
Error recovery policies for sitemap traversal.

A policy is called as ``handler(err, context)`` for every transport or
parse failure of a single sitemap. Returning normally recovers that
sitemap (it counts as done, with nothing emitted); raising makes the
failure the sitemap's outcome. Handlers may be plain functions or
coroutines. Nothing here retries.
"""

import inspect
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Union

from sitemap_stream.logging_config import get_logger

logger = get_logger("sitemap.policy")


@dataclass(frozen=True)
class ErrorContext:
    """Where a failure happened."""
    url: str


ErrorHandler = Callable[[Exception, ErrorContext], Union[None, Awaitable[None]]]


def raise_error(err: Exception, context: ErrorContext) -> None:
    """Default policy: every failure is fatal."""
    raise err


def ignore_errors(err: Exception, context: ErrorContext) -> None:
    """Log the failure and carry on with the rest of the tree."""
    logger.warning(f"Skipping sitemap after error: {err}", extra={"url": context.url})


def ignore_errors_when(predicate: Callable[[Exception, ErrorContext], bool]) -> ErrorHandler:
    """Recover only the failures ``predicate`` accepts; re-raise the rest."""

    def handler(err: Exception, context: ErrorContext) -> None:
        if not predicate(err, context):
            raise err
        ignore_errors(err, context)

    return handler


async def apply_policy(handler: Optional[ErrorHandler], err: Exception, context: ErrorContext) -> None:
    """Run ``handler`` for ``err``, awaiting it if it is a coroutine function."""
    result = (handler or raise_error)(err, context)
    if inspect.isawaitable(result):
        await result
