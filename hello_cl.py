import os
import argparse
import logging
import numpy as np

from device_selector import NoPlatformFound, NoDeviceFound
from kernel_dispatcher import BuildError, load_kernel_source, open_session

# Constants
MESSAGE_SIZE = 16  # Bytes written by the hello kernel, NUL terminator included
DEFAULT_KERNEL_FILE = os.path.join(os.path.dirname(os.path.abspath(__file__)), "hello.cl")

def say_hello(session):
    buf = np.zeros(MESSAGE_SIZE, dtype=np.uint8)
    session.run("hello", [], [buf])
    return buf.tobytes()

def decode_message(raw):
    return raw.split(b"\0", 1)[0].decode("ascii")

def main(argv=None):
    parser = argparse.ArgumentParser(description="Run the OpenCL hello world kernel")
    parser.add_argument('--kernel-file', type=str, default=DEFAULT_KERNEL_FILE, help="Path to the hello kernel source")
    parser.add_argument('--log-level', type=str, choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'], default='INFO',
                        help="Logging verbosity (default: INFO)")
    parser.add_argument('--log-file', type=str, help="Also write log records to this file")
    args = parser.parse_args(argv)

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

    print(decode_message(say_hello(session)), end="")
    return 0

if __name__ == "__main__":
    import sys
    sys.exit(main())
