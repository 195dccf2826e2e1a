"""
Helpers for measuring and inspecting context iterator chains.

This module provides timing/memory measurement for operations over chains,
a layer-by-layer description of a chain, and a way to build a chain from a
list of named operations.
"""

import gc
import logging
import time
import tracemalloc
from typing import Any, Callable, List, Sequence, Tuple

import psutil

from context_iterators import ContextIterator
from models import PerformanceReport, PerformanceSummary

logger = logging.getLogger(__name__)


# Global performance tracking
_performance_reports: List[PerformanceReport] = []

_OPERATIONS = {
    "map": ContextIterator.map_with_context,
    "filter": ContextIterator.filter_with_context,
    "filter_map": ContextIterator.filter_map_with_context,
    "context_map": ContextIterator.context_map,
}


def _rss_mb() -> float:
    return psutil.Process().memory_info().rss / 1024 / 1024


def measure_performance(operation_name: str, func: Callable, *args, **kwargs) -> PerformanceReport:
    """Measure a function call with timing and memory tracking"""

    tracemalloc.start()
    gc.collect()
    start_time = time.perf_counter()
    error = None

    try:
        try:
            result = func(*args, **kwargs)
        except Exception as e:
            result, error = None, e
        execution_time_ms = (time.perf_counter() - start_time) * 1000
        _, peak = tracemalloc.get_traced_memory()
    finally:
        tracemalloc.stop()

    report = PerformanceReport(
        operation=operation_name,
        execution_time_ms=execution_time_ms,
        memory_usage_mb=peak / 1024 / 1024,
        rss_mb=_rss_mb(),
        success=error is None,
        result_size=len(result) if isinstance(result, (list, tuple, dict, set, str)) else None,
        error=str(error) if error is not None else None,
        timestamp=time.time()
    )
    _performance_reports.append(report)

    if error is not None:
        logger.error(f"{operation_name} failed after {execution_time_ms:.2f}ms: {error}")
        raise error

    logger.info(f"{operation_name} took {execution_time_ms:.2f}ms, peak {report.memory_usage_mb:.4f}MB")
    return report


def get_performance_summary() -> PerformanceSummary:
    """Summarise every recorded measurement"""
    if not _performance_reports:
        return PerformanceSummary()

    count = len(_performance_reports)
    total_time = sum(r.execution_time_ms for r in _performance_reports)
    total_memory = sum(r.memory_usage_mb for r in _performance_reports)
    return PerformanceSummary(
        total_operations=count,
        total_time_ms=total_time,
        total_memory_mb=total_memory,
        avg_time_ms=total_time / count,
        avg_memory_mb=total_memory / count,
        failed_operations=[r.operation for r in _performance_reports if not r.success]
    )


def clear_performance_metrics():
    """Clear all recorded measurements"""
    _performance_reports.clear()


def describe_chain(chain: Any) -> List[str]:
    """Layer names from the outermost adaptor down to the source."""
    layers = []
    node = chain
    while node is not None:
        layers.append(type(node).__name__)
        node = getattr(node, "_iter", None)
    return layers


def apply_operations(chain: ContextIterator, operations: Sequence[Tuple[str, Callable]]) -> ContextIterator:
    """
    Wrap ``chain`` with one adaptor per ``(op_name, fn)`` pair, in order.

    Op names are ``map``, ``filter``, ``filter_map`` and ``context_map``.
    """
    for op, fn in operations:
        adapt = _OPERATIONS.get(op)
        if adapt is None:
            raise ValueError(f"Unknown op: {op}")
        chain = adapt(chain, fn)
    return chain
