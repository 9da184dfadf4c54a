"""
Thread-pool backend for parallel fractal computation.

The pixel grid is split into rows. Every row is an independent task that
writes only into its own slice of the pre-allocated output buffers, so the
tasks can complete in any order without synchronisation.
"""

import numpy as np
from typing import Optional, Dict, Any
from concurrent.futures import ThreadPoolExecutor, as_completed
import logging
import os
import time

from ..core.fractal_types import FracArgs, RawFrac
from .numba_backend import RowKernel

logger = logging.getLogger(__name__)


def get_optimal_thread_count() -> int:
    """Number of worker threads for row computation."""
    return max(1, os.cpu_count() or 1)


def allocate_raw_buffers(pixel_size: int):
    """
    Allocate the flat row-major output buffers of a render.

    Returns:
        Tuple of (steps, final_re, final_im) arrays of length pixel_size**2
    """
    total = pixel_size * pixel_size
    steps = np.zeros(total, dtype=np.int64)
    final_re = np.zeros(total, dtype=np.float64)
    final_im = np.zeros(total, dtype=np.float64)
    return steps, final_re, final_im


class ParallelGridScheduler:
    """Fork-join computation of a raw fractal over a thread pool."""

    def __init__(self, num_threads: Optional[int] = None):
        """
        Initialize the scheduler.

        Args:
            num_threads: Number of worker threads (None for CPU count)
        """
        if num_threads is None:
            self.num_threads = get_optimal_thread_count()
        else:
            self.num_threads = max(1, num_threads)

        logger.debug(f"Grid scheduler: {self.num_threads} threads")

    def compute(self, args: FracArgs) -> RawFrac:
        """
        Compute the raw fractal described by ``args``.

        A failing row aborts the whole render: rows that have not started are
        cancelled and the exception is re-raised.

        Args:
            args: Validated or unvalidated fractal arguments

        Returns:
            Complete RawFrac
        """
        args.validate()
        start_time = time.time()

        pixel_size = args.field.pixel_size
        steps, final_re, final_im = allocate_raw_buffers(pixel_size)
        kernel = RowKernel(args)

        logger.info(f"Computing {pixel_size}x{pixel_size} {args.iteration_style.name.lower()} "
                    f"fractal ({args.iterator_kind.name.lower()}, {args.steps} steps) "
                    f"on {self.num_threads} threads")

        with ThreadPoolExecutor(max_workers=self.num_threads) as executor:
            future_to_row = {executor.submit(kernel, steps, final_re, final_im, row): row
                             for row in range(pixel_size)}

            completed = 0
            report_every = max(1, pixel_size // 10)

            try:
                for future in as_completed(future_to_row):
                    future.result()
                    completed += 1

                    if completed % report_every == 0:
                        progress = (completed / pixel_size) * 100
                        logger.debug(f"Completed {completed}/{pixel_size} rows ({progress:.1f}%)")
            except Exception as e:
                logger.error(f"Row {future_to_row[future]} failed, aborting render: {e}")
                for pending in future_to_row:
                    pending.cancel()
                raise

        total_time = time.time() - start_time
        logger.info(f"Fractal computed in {total_time:.2f}s")

        return RawFrac(pixel_size, steps, final_re, final_im)

    def benchmark(self, args: FracArgs) -> Dict[str, Any]:
        """
        Time one render of ``args``.

        Returns:
            Timing data for the render
        """
        start_time = time.time()
        self.compute(args)
        elapsed = time.time() - start_time
        pixels = args.field.pixel_size ** 2

        return {
            'resolution': f"{args.field.pixel_size}x{args.field.pixel_size}",
            'steps': args.steps,
            'num_threads': self.num_threads,
            'time': elapsed,
            'pixels_per_second': pixels / elapsed if elapsed > 0 else float('inf'),
        }


def compute_fractal(args: FracArgs, num_threads: Optional[int] = None) -> RawFrac:
    """
    Render raw fractal data as specified by ``args``; rows run in parallel.

    Args:
        args: Fractal arguments
        num_threads: Worker threads (None for CPU count)

    Returns:
        RawFrac of length pixel_size**2, row-major
    """
    return ParallelGridScheduler(num_threads).compute(args)
