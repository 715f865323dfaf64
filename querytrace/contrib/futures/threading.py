from opentelemetry import context as otel_context

from querytrace import lineage as _lineage


_registry = None


def set_lineage(registry):
    global _registry
    _registry = registry


def _lineage_registry():
    return _registry if _registry is not None else _lineage.registry


def _wrap_submit(func, instance, args, kwargs):
    """
    Wrap ``Executor.submit``, run in the submitting thread.

    Stash the submitting thread's trace context and hand its caller chain,
    extended with the submitting thread itself, to the worker through an
    intermediate target function. The stashed context is released once the
    future is done, whether it ran, failed or was cancelled.
    """
    registry = _lineage_registry()
    caller = registry.current_unit()
    callers = [caller] + (registry.callers(caller) or [])

    # submit(fn, /, *args, **kwargs): the target function is always positional
    fn, fn_args = args[0], args[1:]
    registry.retain_context(caller, otel_context.get_current())
    try:
        future = func(_wrap_execution, registry, callers, fn, fn_args, kwargs)
    except BaseException:
        # e.g. submitting to a pool that is shut down
        registry.release_context(caller)
        raise
    future.add_done_callback(lambda _: registry.release_context(caller))
    return future


def _wrap_execution(registry, callers, fn, args, kwargs):
    """
    Intermediate target function run in the worker thread: the callers are
    recorded for as long as the submitted function runs.
    """
    unit = registry.current_unit()
    registry.push_callers(unit, callers)
    try:
        return fn(*args, **kwargs)
    finally:
        registry.pop_callers(unit)
