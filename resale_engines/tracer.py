"""
resale_engines.tracer -- ``@traced_engine`` and the RESALE_ENGINE_TRACE record.

Every public engine call logs one DEBUG record naming the engine, its
version, how long it took and a fingerprint of the arguments that
determine its result (the budget, contract, period...). Two calls with
the same fingerprint must have produced the same output, which is how a
screen's numbers are traced back to their inputs.

The tracer only logs; it never changes arguments or results.

Usage:
    from resale_engines.tracer import traced_engine

    @traced_engine("bill_ledger", "1.0", fingerprint_fields=("bill",))
    def summarize(bill, payments):
        ...
"""

from __future__ import annotations

import functools
import hashlib
import inspect
import time
from collections.abc import Callable, Mapping
from dataclasses import fields, is_dataclass
from typing import Any

from resale_kernel.logging_config import get_logger

logger = get_logger("engines.tracer")

TRACE_TYPE = "RESALE_ENGINE_TRACE"


def _canonicalize(value: Any) -> str:
    """Stable text of an argument: entities field by field, sequences in order."""
    if value is None:
        return "null"
    if is_dataclass(value) and not isinstance(value, type):
        parts = (f"{f.name}:{_canonicalize(getattr(value, f.name))}" for f in fields(value))
        return f"{type(value).__name__}({','.join(parts)})"
    if isinstance(value, (list, tuple)):
        return "[" + ",".join(_canonicalize(v) for v in value) + "]"
    return str(value)


def compute_input_fingerprint(
    fingerprint_fields: tuple[str, ...],
    arguments: Mapping[str, Any],
) -> str:
    """First 16 hex digits of the SHA-256 of the named arguments; absent ones count as null."""
    canonical = "|".join(
        f"{name}={_canonicalize(arguments.get(name))}" for name in fingerprint_fields
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:16]


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: tuple[str, ...] = (),
) -> Callable:
    """
    Log a RESALE_ENGINE_TRACE record after each call of the decorated engine.

    ``fingerprint_fields`` name parameters of the engine; they are matched
    whether passed positionally or by keyword.
    """

    def decorator(func: Callable) -> Callable:
        signature = inspect.signature(func)

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            started = time.perf_counter()
            result = func(*args, **kwargs)
            elapsed_ms = round((time.perf_counter() - started) * 1000, 2)

            fingerprint = ""
            if fingerprint_fields:
                bound = signature.bind_partial(*args, **kwargs).arguments
                fingerprint = compute_input_fingerprint(fingerprint_fields, bound)

            logger.debug(TRACE_TYPE, extra={
                "trace_type": TRACE_TYPE,
                "engine_name": engine_name,
                "engine_version": engine_version,
                "function": func.__qualname__,
                "input_fingerprint": fingerprint,
                "duration_ms": elapsed_ms,
            })
            return result

        return wrapper

    return decorator
