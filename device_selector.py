import pyopencl as cl
import logging

# -------------------- Errors -------------------- #

class NoPlatformFound(RuntimeError):
    pass

class NoDeviceFound(RuntimeError):
    pass

# -------------------- Device Selection -------------------- #

def select_default_device():
    """
    Return the first device of the first OpenCL platform.

    There is no ranking: whatever the runtime enumerates first is used.

    Raises:
        NoPlatformFound: The runtime exposes no platform.
        NoDeviceFound: The first platform has no device of any type.
    """
    try:
        platforms = cl.get_platforms()
    except cl.LogicError as e:
        # ICD loaders report an empty platform list as PLATFORM_NOT_FOUND_KHR
        raise NoPlatformFound("no platforms found!") from e
    if not platforms:
        raise NoPlatformFound("no platforms found!")

    platform = platforms[0]
    try:
        devices = platform.get_devices(device_type=cl.device_type.ALL)
    except cl.RuntimeError as e:
        raise NoDeviceFound("no devices found!") from e
    if not devices:
        raise NoDeviceFound("no devices found!")

    device = devices[0]
    logging.info(f"Using platform: {platform.name}")
    logging.info(f"Using device: {device.name}")
    return device

def list_devices():
    """Every (platform, device) pair the runtime exposes, in enumeration order."""
    try:
        platforms = cl.get_platforms()
    except cl.LogicError as e:
        raise NoPlatformFound("no platforms found!") from e
    if not platforms:
        raise NoPlatformFound("no platforms found!")

    pairs = []
    for platform in platforms:
        try:
            devices = platform.get_devices(device_type=cl.device_type.ALL)
        except cl.RuntimeError:
            logging.warning(f"Platform {platform.name} has no devices. Skipping.")
            continue
        for device in devices:
            pairs.append((platform, device))
    if not pairs:
        raise NoDeviceFound("no devices found!")
    return pairs

# -------------------- Device Properties -------------------- #

def describe_device(device):
    return {
        "name": device.name,
        "vendor": device.vendor,
        "version": device.version,
        "max_work_item_dimensions": device.max_work_item_dimensions,
        "max_work_item_sizes": tuple(device.max_work_item_sizes),
        "max_work_group_size": device.max_work_group_size,
        "max_compute_units": device.max_compute_units,
        "global_mem_size": device.global_mem_size,
        "local_mem_size": device.local_mem_size,
    }
