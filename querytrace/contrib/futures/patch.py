import sys

import wrapt

from querytrace.contrib.futures import threading as _threading


def patch(lineage=None):
    """Record the lineage of work submitted to thread pools.

    :param lineage: registry to record into, the process wide one by default
    """
    try:
        # Ensure that we get hold of the reloaded module if module cleanup was
        # performed.
        thread = sys.modules["concurrent.futures.thread"]
    except KeyError:
        import concurrent.futures.thread as thread

    if lineage is not None:
        _threading.set_lineage(lineage)

    if getattr(thread, "__querytrace_patch", False):
        return
    thread.__querytrace_patch = True

    wrapt.wrap_function_wrapper(thread.ThreadPoolExecutor, "submit", _threading._wrap_submit)


def unpatch():
    """Stop recording the lineage of work submitted to thread pools."""
    try:
        thread = sys.modules["concurrent.futures.thread"]
    except KeyError:
        return

    if not getattr(thread, "__querytrace_patch", False):
        return
    thread.__querytrace_patch = False

    submit = thread.ThreadPoolExecutor.__dict__["submit"]
    if hasattr(submit, "__wrapped__"):
        thread.ThreadPoolExecutor.submit = submit.__wrapped__
    _threading.set_lineage(None)
