"""
Span decorator for automatic span lifecycle management.

Every call to a decorated function or method runs inside its own active span.
The span name and attributes are derived from the call, the outcome is written
to the span as a status (plus the exception on failure), and the span is ended
exactly once whether the callable returns, raises, or hands back an awaitable
that settles later.
"""

import asyncio
import functools
import inspect
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping, Optional, Union

from loguru import logger
from opentelemetry import trace
from opentelemetry.trace import Span, Status, StatusCode, Tracer, TracerProvider

SpanName = Union[str, Callable[..., Optional[str]]]
SpanAttributes = Callable[..., Mapping[str, Any]]


@dataclass(frozen=True)
class SpanOptions:
    """
    Registration-time span configuration.

    ``name`` and ``attributes`` callables receive exactly the arguments the
    decorated callable receives, so for methods the instance comes first.
    """

    name: Optional[SpanName] = None
    attributes: Optional[SpanAttributes] = None

    def resolve_name(self, default: str, args: tuple, kwargs: dict) -> str:
        """Return the span name for one call, falling back to ``default``."""
        if not self.name:
            return default
        if callable(self.name):
            return self.name(*args, **kwargs) or default
        return self.name

    def resolve_attributes(self, args: tuple, kwargs: dict) -> Mapping[str, Any]:
        """Return the attribute mapping for one call."""
        if self.attributes is None:
            return {}
        return self.attributes(*args, **kwargs)


def tracer_scope_name(func: Callable) -> str:
    """
    Name of the type enclosing ``func``, used as the tracer scope.

    ``Outer.<locals>.Service.method`` gives ``Service``; module-level and
    nested plain functions fall back to the defining module.
    """
    parts = func.__qualname__.split(".")
    if len(parts) > 1 and parts[-2] != "<locals>":
        return parts[-2]
    return func.__module__


def span(
    func: Optional[Union[Callable, str]] = None,
    *,
    name: Optional[SpanName] = None,
    attributes: Optional[SpanAttributes] = None,
    tracer_provider: Optional[TracerProvider] = None,
):
    """
    Decorator that wraps each call of a function or method in an active span.

    Args:
        func: Callable to wrap when used bare as ``@span``, or the span name
            when given positionally as ``@span("name")``
        name: Span name, or a callable of the call arguments returning one.
            Empty or missing names fall back to the callable's ``__name__``.
        attributes: Callable of the call arguments returning span attributes
        tracer_provider: Provider to obtain the tracer from (global provider
            when omitted)

    Returns:
        Decorated callable with the original signature
    """
    if isinstance(func, str):
        if name is not None:
            raise TypeError("span() got the span name both positionally and as name=")
        func, name = None, func
    elif func is not None and not callable(func):
        raise TypeError(
            f"span() expects a callable or a span name, got {type(func).__name__}"
        )

    options = SpanOptions(name=name, attributes=attributes)

    def decorator(func: Callable) -> Callable:
        scope = tracer_scope_name(func)
        tracer = trace.get_tracer(scope, tracer_provider=tracer_provider)
        logger.debug(f"Bound tracer '{scope}' to {func.__qualname__}")

        if inspect.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args, **kwargs):
                span_name = options.resolve_name(func.__name__, args, kwargs)
                with _start_span(tracer, span_name) as current:
                    try:
                        current.set_attributes(options.resolve_attributes(args, kwargs))
                        result = await func(*args, **kwargs)
                    except BaseException as exc:
                        _record_failure(current, exc)
                        raise
                    else:
                        current.set_status(Status(StatusCode.OK))
                        return result
                    finally:
                        current.end()

            return async_wrapper

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            span_name = options.resolve_name(func.__name__, args, kwargs)
            with _start_span(tracer, span_name) as current:
                try:
                    current.set_attributes(options.resolve_attributes(args, kwargs))
                    result = func(*args, **kwargs)
                except BaseException as exc:
                    _record_failure(current, exc)
                    current.end()
                    raise

                if asyncio.isfuture(result):
                    result.add_done_callback(functools.partial(_settle_future, current))
                    return result
                if inspect.isawaitable(result):
                    return _settle_awaitable(current, result)

                current.set_status(Status(StatusCode.OK))
                current.end()
                return result

        return wrapper

    if func is not None:
        return decorator(func)
    return decorator


def _start_span(tracer: Tracer, name: str):
    # The decorator is the only writer of status, exceptions and end.
    return tracer.start_as_current_span(
        name,
        end_on_exit=False,
        record_exception=False,
        set_status_on_exception=False,
    )


def _record_failure(current: Span, exc: BaseException) -> None:
    current.record_exception(exc)
    current.set_status(Status(StatusCode.ERROR, str(exc)))


async def _settle_awaitable(current: Span, awaitable: Awaitable) -> Any:
    """Await ``awaitable`` with ``current`` active, then finish the span."""
    with trace.use_span(
        current,
        end_on_exit=False,
        record_exception=False,
        set_status_on_exception=False,
    ):
        try:
            value = await awaitable
        except BaseException as exc:
            _record_failure(current, exc)
            raise
        else:
            current.set_status(Status(StatusCode.OK))
            return value
        finally:
            current.end()


def _settle_future(current: Span, future: "asyncio.Future") -> None:
    # Registered before the caller sees the future, so it runs first.
    # Reading the exception marks it retrieved: asyncio will not log "Future
    # exception was never retrieved" for a failed future the caller drops.
    # The exception itself stays on the future for every consumer.
    try:
        if future.cancelled():
            _record_failure(current, asyncio.CancelledError())
        elif future.exception() is not None:
            _record_failure(current, future.exception())
        else:
            current.set_status(Status(StatusCode.OK))
    finally:
        current.end()
