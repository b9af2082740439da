import argparse
import logging

from device_selector import NoPlatformFound, NoDeviceFound, select_default_device, list_devices, describe_device

def format_device_report(info):
    """
    Render the properties returned by `describe_device` as the console report.

    Parameters:
        info (dict): Device properties keyed as in `describe_device`.

    Returns:
        report (str): Multi-line report, without a trailing newline.
    """
    work_items = ",".join(str(size) for size in info["max_work_item_sizes"])
    lines = [
        "OpenCL device info:",
        f" name: {info['name']}",
        f" vendor: {info['vendor']}",
        f" version: {info['version']}",
        f" max size of work-items: ({work_items})",
        f" max size of work-groups: {info['max_work_group_size']}",
        f" number of compute units: {info['max_compute_units']}",
        f" global memory size (bytes): {info['global_mem_size']}",
        f" local memory size (bytes): {info['local_mem_size']}",
    ]
    return "\n".join(lines)

def main(argv=None):
    parser = argparse.ArgumentParser(description="Print the capabilities of the default OpenCL device")
    parser.add_argument('--all-devices', action='store_true',
                        help="Report every device of every platform instead of the default device only")
    parser.add_argument('--log-level', type=str, choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'], default='INFO',
                        help="Logging verbosity (default: INFO)")
    parser.add_argument('--log-file', type=str, help="Also write log records to this file")
    args = parser.parse_args(argv)

    handlers = [logging.StreamHandler()]
    if args.log_file:
        handlers.append(logging.FileHandler(args.log_file))
    logging.basicConfig(level=args.log_level, format="%(asctime)s - %(levelname)s - %(message)s", handlers=handlers)

    try:
        if args.all_devices:
            reports = []
            for platform, device in list_devices():
                reports.append(f"Platform: {platform.name}\n" + format_device_report(describe_device(device)))
            print("\n\n".join(reports))
        else:
            print(format_device_report(describe_device(select_default_device())))
    except (NoPlatformFound, NoDeviceFound) as e:
        logging.error(str(e))
        return -1
    return 0

if __name__ == "__main__":
    import sys
    sys.exit(main())
