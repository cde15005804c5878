"""
Batch operation results.

Path: oltshell/core/batch.py

Runs one operation per input item and reports per-item outcome plus
aggregate counts. Used by drivers for batch provisioning and by the CLI for
multi-command runs.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, List, Optional

from oltshell.core.errors import ErrorCategory, OltShellError, categorize_error


logger = logging.getLogger(__name__)


@dataclass
class BatchItemResult:
    """Outcome of one item in a batch."""
    index: int
    identifier: str
    success: bool
    output: Any = None
    error: Optional[str] = None
    error_category: ErrorCategory = ErrorCategory.SUCCESS

    def __repr__(self) -> str:
        if self.success:
            return f"BatchItemResult(#{self.index} {self.identifier}, success=True)"
        return (f"BatchItemResult(#{self.index} {self.identifier}, success=False, "
                f"category={self.error_category.value}, error={self.error!r})")


@dataclass
class BatchResult:
    """Aggregate statistics for a batch run."""
    total: int = 0
    success: int = 0
    failed: int = 0
    results: List[BatchItemResult] = field(default_factory=list)
    duration: float = 0.0
    stopped_early: bool = False

    def add_result(self, result: BatchItemResult):
        self.results.append(result)
        if result.success:
            self.success += 1
        else:
            self.failed += 1

    @property
    def all_succeeded(self) -> bool:
        return self.failed == 0 and not self.stopped_early

    def failures(self) -> List[BatchItemResult]:
        return [r for r in self.results if not r.success]

    def errors_by_category(self) -> dict:
        counts = {}
        for r in self.failures():
            counts[r.error_category] = counts.get(r.error_category, 0) + 1
        return counts

    def __repr__(self) -> str:
        parts = [f"BatchResult: {self.success}/{self.total} success"]
        by_category = self.errors_by_category()
        if by_category:
            error_parts = [f"{cat.value}={count}" for cat, count in by_category.items()]
            parts.append(f"errors=[{', '.join(error_parts)}]")
        if self.stopped_early:
            parts.append("stopped early")
        parts.append(f"duration={self.duration:.2f}s")
        return " | ".join(parts)


def run_batch(
    items: Iterable[Any],
    operation: Callable[[Any], Any],
    identify: Callable[[Any], str] = str,
    stop_on_error: bool = False,
) -> BatchResult:
    """
    Apply operation to each item in order.

    Args:
        items: Inputs, e.g. ONU provisioning requests or command strings.
        operation: Called once per item; its return value becomes the item output.
        identify: Maps an item to the identifier shown in results.
        stop_on_error: Stop at the first failure. Remaining items are counted
            in total but produce no result.

    Returns:
        BatchResult with one BatchItemResult per attempted item.
    """
    items = list(items)
    summary = BatchResult(total=len(items))
    start = time.monotonic()

    for index, item in enumerate(items):
        identifier = identify(item)
        try:
            output = operation(item)
        except OltShellError as e:
            category = categorize_error(e)
            logger.warning(f"Batch item {index} ({identifier}) failed [{category.value}]: {e}")
            summary.add_result(BatchItemResult(
                index=index,
                identifier=identifier,
                success=False,
                output=getattr(e, "output", None),
                error=str(e),
                error_category=category,
            ))
            if stop_on_error:
                summary.stopped_early = index < len(items) - 1
                break
            continue

        summary.add_result(BatchItemResult(index=index, identifier=identifier, success=True, output=output))

    summary.duration = time.monotonic() - start
    logger.info(f"{summary!r}")
    return summary
