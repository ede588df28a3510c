# ccvalidator/cli/args.py
from __future__ import annotations

import argparse
from typing import Optional

from ccvalidator.app.config import ValidatorConfig
from ccvalidator.protocol.loader import DEFAULT_PROTOCOL_DIR


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ccvalidator")
    sub = parser.add_subparsers(dest="cmd", required=True)

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--port", required=True, help="Serial device, e.g. /dev/ttyUSB0 or COM3.")
    # None = take the value from constants.yml
    common.add_argument("--baudrate", type=int, default=None, help="Line speed, 9600 (default) or 19200.")
    common.add_argument("--timeout", type=float, default=None, help="Per-read timeout in seconds (default 5).")
    common.add_argument(
        "--max-read-attempts",
        type=int,
        default=None,
        help="Reads allowed to reassemble one response before giving up (default 1050).",
    )
    common.add_argument("--protocol-dir", default=str(DEFAULT_PROTOCOL_DIR), help=argparse.SUPPRESS)
    common.add_argument("--trace", default=None, help="Append every exchange step as JSON lines to this file.")
    common.add_argument("-v", "--verbose", action="store_true", help="Log frames at DEBUG level.")

    sub.add_parser("reset", parents=[common], help="Reset the validator.")
    sub.add_parser("status", parents=[common], help="Read enabled bill types and security settings.")
    sub.add_parser("identify", parents=[common], help="Read part/serial/asset numbers.")
    sub.add_parser("bill-table", parents=[common], help="Read the bill table.")

    p_poll = sub.add_parser("poll", parents=[common], help="Poll device state.")
    p_poll.add_argument("--count", type=int, default=1, help="Number of polls (0 = until interrupted).")
    p_poll.add_argument("--interval", type=float, default=0.2, help="Seconds between polls.")

    p_sec = sub.add_parser("set-security", parents=[common], help="Set high-security bill types.")
    p_sec.add_argument(
        "--bills",
        type=int,
        nargs="*",
        default=[],
        help="Bill type indices (0..23) to put in high-security mode; none clears the mask.",
    )

    return parser


def parse_args(argv: Optional[list[str]] = None) -> tuple[argparse.Namespace, ValidatorConfig]:
    """Returns: (args, config). Unset line settings stay None until the link resolves them."""
    args = build_parser().parse_args(argv)
    cfg = ValidatorConfig(
        port=args.port,
        baudrate=args.baudrate,
        read_timeout_s=args.timeout,
        max_read_attempts=args.max_read_attempts,
        protocol_dir=args.protocol_dir,
    )
    return args, cfg
