import pyopencl as cl
import numpy as np
import logging

from device_selector import select_default_device

# -------------------- Errors -------------------- #

class BuildError(RuntimeError):
    """Kernel compilation failed; carries the runtime status and the build log."""

    def __init__(self, status, log):
        super().__init__(f"build failed with status {status}")
        self.status = status
        self.log = log

# -------------------- Compilation -------------------- #

def load_kernel_source(path):
    with open(path, 'r') as f:
        return f.read()

def compile_program(device, source):
    """
    Build `source` for a single device.

    Returns:
        (context, program): The context bound to `device` and the built program.

    Raises:
        BuildError: The compiler rejected the source.
    """
    context = cl.Context([device])
    program = cl.Program(context, source)
    try:
        program.build(devices=[device])
    except cl.RuntimeError as e:
        log = str(e).strip() or f"{e.routine} failed"
        raise BuildError(e.code, log) from e
    logging.info(f"Built program for device: {device.name}")
    return context, program

class ComputeSession:
    """The device, context and program of one process, created once and passed to dispatches."""

    def __init__(self, device, context, program):
        self.device = device
        self.context = context
        self.program = program

    def run(self, entry_point, inputs, outputs, global_size=None):
        return run(self.context, self.program, entry_point, inputs, outputs, global_size=global_size)

def open_session(source, device=None):
    if device is None:
        device = select_default_device()
    context, program = compile_program(device, source)
    return ComputeSession(device, context, program)

# -------------------- Dispatch -------------------- #

def run(context, program, entry_point, inputs, outputs, global_size=None):
    """
    Run one kernel invocation with freshly allocated buffers.

    Buffers are bound positionally: every input first, then every output, in
    the order of the kernel signature. Each output is a preallocated host
    array; its size is the size of the device buffer and the read-back lands
    in it. With `global_size` None the kernel runs as a single work item,
    otherwise as an N-wide range.

    Returns:
        outputs, filled once the device has finished.
    """
    mf = cl.mem_flags
    input_bufs = [
        cl.Buffer(context, mf.READ_ONLY | mf.HOST_NO_ACCESS | mf.COPY_HOST_PTR, hostbuf=np.ascontiguousarray(host))
        for host in inputs
    ]
    output_bufs = [
        cl.Buffer(context, mf.WRITE_ONLY | mf.HOST_READ_ONLY, size=host.nbytes)
        for host in outputs
    ]

    kernel = cl.Kernel(program, entry_point)
    kernel.set_args(*input_bufs, *output_bufs)

    queue = cl.CommandQueue(context)
    if global_size is None:
        cl.enqueue_nd_range_kernel(queue, kernel, (1,), (1,))
    else:
        if isinstance(global_size, int):
            global_size = (global_size,)
        cl.enqueue_nd_range_kernel(queue, kernel, tuple(global_size), None)

    # Blocking reads: returns only after the kernel and the transfers complete
    for host, buf in zip(outputs, output_bufs):
        cl.enqueue_copy(queue, host, buf, is_blocking=True)
    return outputs
