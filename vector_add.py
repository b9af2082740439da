import os
import time
import argparse
import logging
import numpy as np
import pandas as pd
import matplotlib.pyplot as plt

from device_selector import NoPlatformFound, NoDeviceFound
from kernel_dispatcher import BuildError, load_kernel_source, open_session

# Constants
ARRAYS_DIM = 1 << 20  # Elements per array
EXECUTIONS = 10       # Timed repetitions of each strategy
A_VALUE = 3
B_VALUE = 5
DEFAULT_KERNEL_FILE = os.path.join(os.path.dirname(os.path.abspath(__file__)), "add.cl")

# -------------------- Array Sums -------------------- #

def seq_sum_arrays(a, b, c):
    # Host side, single thread
    np.add(a, b, out=c)
    return c

def par_sum_arrays(session, a, b, c):
    # Fresh device buffers on every call, the transfer cost is part of what gets measured
    session.run("sum_arrays", [a, b], [c], global_size=(len(c),))
    return c

def check_equality(c1, c2, n=None):
    if n is None:
        if len(c1) != len(c2):
            return False
        n = len(c1)
    return bool(np.array_equal(np.asarray(c1)[:n], np.asarray(c2)[:n]))

# -------------------- Timing -------------------- #

def time_executions(func, executions):
    """
    Call `func` `executions` times and time each call.

    Returns:
        durations (pd.Series): Wall time of every call in milliseconds, indexed from 1.
    """
    durations = []
    for _ in range(executions):
        start = time.perf_counter()
        func()
        durations.append((time.perf_counter() - start) * 1e3)
    return pd.Series(durations, index=pd.RangeIndex(1, executions + 1, name="execution"), dtype=np.float64)

def performance_gain(seq_time, par_time):
    if par_time <= 0:
        raise ValueError(f"Parallel time must be positive, got {par_time}")
    return 100 * (seq_time - par_time) / par_time

class BenchmarkResult:
    def __init__(self, equal, a0, b0, c0, timings):
        self.equal = equal
        self.a0 = a0
        self.b0 = b0
        self.c0 = c0
        self.timings = timings

    @property
    def seq_time(self):
        return float(self.timings["sequential"].mean())

    @property
    def par_time(self):
        return float(self.timings["parallel"].mean())

    @property
    def gain(self):
        return performance_gain(self.seq_time, self.par_time)

def run_benchmark(session, arrays_dim=ARRAYS_DIM, executions=EXECUTIONS):
    if arrays_dim < 1:
        raise ValueError(f"arrays_dim must be at least 1, got {arrays_dim}")
    if executions < 1:
        raise ValueError(f"executions must be at least 1, got {executions}")

    a = np.full(arrays_dim, A_VALUE, dtype=np.int32)
    b = np.full(arrays_dim, B_VALUE, dtype=np.int32)
    cs = np.zeros(arrays_dim, dtype=np.int32)
    cp = np.zeros(arrays_dim, dtype=np.int32)

    logging.info(f"Summing arrays of {arrays_dim} elements sequentially, {executions} executions.")
    seq_times = time_executions(lambda: seq_sum_arrays(a, b, cs), executions)
    logging.info(f"Summing arrays of {arrays_dim} elements in parallel, {executions} executions.")
    par_times = time_executions(lambda: par_sum_arrays(session, a, b, cp), executions)

    timings = pd.DataFrame({"sequential": seq_times, "parallel": par_times})
    logging.info(f"Execution time statistics (ms):\n{timings.describe()}")

    equal = check_equality(cs, cp, arrays_dim)
    return BenchmarkResult(equal, int(a[0]), int(b[0]), int(cp[0]), timings)

# -------------------- Reporting -------------------- #

def format_summary(result):
    lines = [
        f"status: {'SUCCESS!' if result.equal else 'FAILED!'}",
        "results: ",
        f"\ta[0] = {result.a0}",
        f"\tb[0] = {result.b0}",
        f"\tc[0] = a[0] + b[0] = {result.c0}",
        "mean execution time: ",
        f"\tsequential: {result.seq_time:.4f} ms;",
        f"\tparallel: {result.par_time:.4f} ms.",
        f"performance gain: {result.gain:.2f}%",
    ]
    return "\n".join(lines)

def plot_timings(timings):
    plt.figure(figsize=(10, 5))
    plt.plot(timings.index, timings["sequential"], label="Sequential", color="blue", marker="o")
    plt.plot(timings.index, timings["parallel"], label="Parallel", color="orange", marker="o")
    plt.xlabel("Execution")
    plt.ylabel("Time (ms)")
    plt.title("Vector Addition: Sequential vs Parallel")
    plt.legend()
    plt.grid(True)
    plt.tight_layout()
    plt.show()

def main(argv=None):
    parser = argparse.ArgumentParser(description="Benchmark sequential against OpenCL vector addition")
    parser.add_argument('--kernel-file', type=str, default=DEFAULT_KERNEL_FILE, help="Path to the vector addition kernel source")
    parser.add_argument('--arrays-dim', type=int, default=ARRAYS_DIM, help=f"Number of elements per array (default: {ARRAYS_DIM})")
    parser.add_argument('--executions', type=int, default=EXECUTIONS, help=f"Timed executions per strategy (default: {EXECUTIONS})")
    parser.add_argument('--plot', action='store_true', help="Plot per-execution timings when done")
    parser.add_argument('--log-level', type=str, choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'], default='INFO',
                        help="Logging verbosity (default: INFO)")
    parser.add_argument('--log-file', type=str, help="Also write log records to this file")
    args = parser.parse_args(argv)

    if args.arrays_dim < 1:
        parser.error("--arrays-dim must be at least 1")
    if args.executions < 1:
        parser.error("--executions must be at least 1")

    handlers = [logging.StreamHandler()]
    if args.log_file:
        handlers.append(logging.FileHandler(args.log_file))
    logging.basicConfig(level=args.log_level, format="%(asctime)s - %(levelname)s - %(message)s", handlers=handlers)

    source = load_kernel_source(args.kernel_file)
    try:
        session = open_session(source)
    except (NoPlatformFound, NoDeviceFound) as e:
        logging.error(str(e))
        return 1
    except BuildError as e:
        logging.error(f"build status:\t {e.status}")
        logging.error(f"build log   :\t {e.log}")
        return 1

    result = run_benchmark(session, args.arrays_dim, args.executions)
    print(format_summary(result))

    if args.plot:
        plot_timings(result.timings)
    return 0

if __name__ == "__main__":
    import sys
    sys.exit(main())
