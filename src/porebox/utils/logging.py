"""Logging functionality for porebox.

Timing of selected functions is controlled by the configuration file porebox.cfg,
which should be placed in the current working directory (where the python script is
initiated). All timing-related information is located in a section with heading
logging; see sample file below.

By default, timing is switched off. It can be turned on by setting the keyword
'active' to True.

Timed functions are classified into the (overlapping) categories

    all: Used to time all decorated functions.
    assembly: Local and global assembly of residuals and Jacobians.
    models: Phase-state bookkeeping and primary variable switching.
    visualization: Export of vertex fields.

Example logging section of porebox.cfg:

    [logging]
    # Activate timing. Without this, the rest of the section has no effect
    active: True
    # multiple sections are separated by commas:
    sections: assembly, models

"""
import functools
import logging
import time

import porebox as pb

__all__ = ["time_logger"]


config = pb.config.get("logging", {})
active_sections = [
    s.strip().lower() for s in config.get("sections", "all").split(",")
]
logger_is_active = config.get("active", "false").strip().lower() == "true"
always_log = "all" in active_sections

t_logger = logging.getLogger("porebox.timer")


def time_logger(sections):
    """A decorator that measures ellapsed time for a function.

    Parameters:
        sections: Categories the decorated function belongs to. The function is timed
            if any of them is active in porebox.cfg.

    """

    def inner_func(func):
        @functools.wraps(func)
        def log_time(*args, **kwargs):
            if not logger_is_active:
                # Shortcut if timing is not activated.
                return func(*args, **kwargs)
            elif always_log or any([s in active_sections for s in sections]):
                name = f"{func.__module__}.{func.__qualname__}"
                t_logger.info(f"Calling {name}")

                start_time = time.perf_counter()
                value = func(*args, **kwargs)
                run_time = time.perf_counter() - start_time

                t_logger.info(f"Finished {name} Elapsed time: {run_time:.8f} s")
                return value
            else:
                return func(*args, **kwargs)

        return log_time

    return inner_func
