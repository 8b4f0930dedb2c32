#!/usr/bin/env python3
"""
app_control.py - CLI tool to control a running HandyMath game via config.json

Usage:
    handy-math-control --pause true
    handy-math-control --restart
    handy-math-control --exit true
    handy-math-control --config /path/to/config.json --status

Modifies the app_control fields in config.json. The running game polls the
file and reacts to the change (pause/resume, restart, exit).
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Optional


CONTROL_DESCRIPTIONS = {
    'exit': "Set true to stop the running app",
    'pause': "Set true to pause answer detection",
    'restart': "Set true to restart the game (cleared by the game)",
}


def str_to_bool(value: str) -> bool:
    """Convert string to boolean."""
    if value.lower() in ('true', '1', 'yes', 'on'):
        return True
    elif value.lower() in ('false', '0', 'no', 'off'):
        return False
    else:
        raise ValueError(f"Invalid boolean value: {value}")


def _unwrap(entry, default=False):
    if isinstance(entry, list):
        return entry[0] if entry else default
    return default if entry is None else entry


def read_controls(config_path: str) -> dict:
    """Current app_control values as plain booleans."""
    with open(config_path, 'r') as f:
        config = json.load(f)
    app_control = config.get('app_control', {})
    return {name: bool(_unwrap(app_control.get(name))) for name in CONTROL_DESCRIPTIONS}


def update_config(config_path: str, exit_val: Optional[bool] = None, pause_val: Optional[bool] = None,
                  restart_val: Optional[bool] = None) -> bool:
    """
    Update the app_control fields in config.json.

    Args:
        config_path: Path to config.json
        exit_val: Value for app_control.exit (None = don't change)
        pause_val: Value for app_control.pause (None = don't change)
        restart_val: Value for app_control.restart (None = don't change)

    Returns:
        True if successful, False otherwise
    """
    try:
        with open(config_path, 'r') as f:
            config = json.load(f)

        app_control = config.setdefault('app_control', {})
        for name, value in (('exit', exit_val), ('pause', pause_val), ('restart', restart_val)):
            if value is None:
                continue
            entry = app_control.get(name)
            if isinstance(entry, list) and len(entry) >= 2:
                app_control[name] = [value, entry[1]]
            else:
                app_control[name] = [value, CONTROL_DESCRIPTIONS[name]]
            print(f"✓ Set app_control.{name} = {value}")

        with open(config_path, 'w') as f:
            json.dump(config, f, indent=2)

        print(f"✓ Config saved to {config_path}")
        return True

    except FileNotFoundError:
        print(f"✗ Config file not found: {config_path}", file=sys.stderr)
        return False
    except json.JSONDecodeError as e:
        print(f"✗ Invalid JSON in config file: {e}", file=sys.stderr)
        return False
    except OSError as e:
        print(f"✗ Error updating config: {e}", file=sys.stderr)
        return False


def request_restart(config_path: str) -> bool:
    """Ask the game to restart. The game clears the flag once it has restarted."""
    return update_config(config_path, restart_val=True)


def get_default_config_path() -> str:
    """Get the default config.json path."""
    script_dir = Path(__file__).parent

    candidates = [
        script_dir.parent / 'config' / 'config.json',  # handy_math/config/config.json
        script_dir / 'config.json',
        Path.cwd() / 'handy_math' / 'config' / 'config.json',
        Path.cwd() / 'config.json',
    ]

    for path in candidates:
        if path.exists():
            return str(path)

    return str(candidates[0])


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Control a running HandyMath game via config.json",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
handy-math-control --pause true     # Stop answers from locking in
handy-math-control --pause false    # Resume
handy-math-control --restart        # Start a new game
handy-math-control --exit true      # Signal app to exit
handy-math-control --status         # Show current values
        """
    )

    parser.add_argument(
        '--config', '-c',
        type=str,
        default=None,
        help='Path to config.json (default: auto-detect)'
    )
    parser.add_argument(
        '--exit', '-e',
        type=str,
        default=None,
        metavar='BOOL',
        help='Set app_control.exit (true/false)'
    )
    parser.add_argument(
        '--pause', '-p',
        type=str,
        default=None,
        metavar='BOOL',
        help='Set app_control.pause (true/false)'
    )
    parser.add_argument(
        '--restart', '-r',
        action='store_true',
        help='Restart the game from round 1'
    )
    parser.add_argument(
        '--status', '-s',
        action='store_true',
        help='Show current app_control values'
    )

    args = parser.parse_args(argv)

    config_path = args.config if args.config else get_default_config_path()

    if args.status:
        try:
            controls = read_controls(config_path)
        except (OSError, json.JSONDecodeError) as e:
            print(f"✗ Error reading config: {e}", file=sys.stderr)
            return 1
        print(f"Config: {config_path}")
        for name, value in controls.items():
            print(f"  app_control.{name:<7} = {value}")
        return 0

    if args.exit is None and args.pause is None and not args.restart:
        parser.print_help()
        print("\nError: At least one of --exit, --pause or --restart must be specified", file=sys.stderr)
        return 1

    exit_val = None
    pause_val = None
    try:
        if args.exit is not None:
            exit_val = str_to_bool(args.exit)
        if args.pause is not None:
            pause_val = str_to_bool(args.pause)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    success = True
    if exit_val is not None or pause_val is not None:
        success = update_config(config_path, exit_val=exit_val, pause_val=pause_val)
    if success and args.restart:
        success = request_restart(config_path)
    return 0 if success else 1


if __name__ == "__main__":
    sys.exit(main())
