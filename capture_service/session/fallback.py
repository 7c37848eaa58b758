"""Helpers for best-effort steps and first-success fallback chains."""

import logging
from typing import Any, Awaitable, Callable, Iterable, Optional, Tuple, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

Step = Callable[[], Awaitable[T]]


async def attempt(label: str, step: Step, default: Any = None) -> Any:
    """Run a best-effort step, returning ``default`` if it raises.

    Args:
        label: Human readable step name for diagnostics
        step: Zero-argument coroutine function
        default: Value returned on failure

    Returns:
        The step's result, or ``default``
    """
    try:
        return await step()
    except Exception as e:
        logger.debug(f"Best-effort step '{label}' failed: {e}")
        return default


async def first_available(probes: Iterable[Tuple[str, Step]]) -> Optional[Any]:
    """Return the first non-empty value produced by ``probes``.

    Probes run in order; a failing probe counts as empty. Later probes are
    not run once one succeeds.
    """
    for label, probe in probes:
        value = await attempt(label, probe)
        if value:
            logger.debug(f"Fallback chain resolved by '{label}'")
            return value
    return None
