#!/usr/bin/env python3
"""
Delete the persisted WhatsApp session so the next gateway start pairs again.

Run this after the phone logs the linked device out (status 401) or when
the gateway gave up reconnecting. Stop the gateway first.

Usage:
    python scripts/reset_session.py [--session-dir PATH] [--device-id ID] [--yes]
"""

import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from connection import FileSessionStore  # noqa: E402
from infra import ConfigError, get_gateway_config  # noqa: E402


def reset_session(session_dir: str, device_id: str, assume_yes: bool = False) -> bool:
    """
    Remove the session file for one device.

    Returns:
        True if a session file was removed
    """
    store = FileSessionStore(session_dir, device_id)

    if not store.path.exists():
        print(f"No session found at {store.path}")
        return False

    if not assume_yes:
        answer = input(f"Delete {store.path}? [y/N] ").strip().lower()
        if answer not in ("y", "yes"):
            print("Aborted")
            return False

    removed = store.clear()
    if removed:
        print(f"✓ Removed {store.path}")
        print("Restart the gateway to pair the device again.")
    return removed


def main() -> int:
    try:
        config = get_gateway_config()
    except ConfigError as e:
        print(f"✗ {e}")
        return 1

    parser = argparse.ArgumentParser(description="Reset the persisted WhatsApp session")
    parser.add_argument(
        "--session-dir",
        default=config.session_dir,
        help=f"Session directory (default: {config.session_dir})",
    )
    parser.add_argument(
        "--device-id",
        default=config.device_id,
        help=f"Device id whose session is removed (default: {config.device_id})",
    )
    parser.add_argument("--yes", "-y", action="store_true", help="Do not ask for confirmation")
    args = parser.parse_args()

    reset_session(args.session_dir, args.device_id, assume_yes=args.yes)
    return 0


if __name__ == "__main__":
    sys.exit(main())
