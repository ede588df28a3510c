# ccvalidator/cli/main.py
from __future__ import annotations

from typing import Optional

from ccvalidator.core.errors import ValidatorError

from ccvalidator.cli.args import parse_args
from ccvalidator.cli.commands import (
    cmd_bill_table,
    cmd_identify,
    cmd_poll,
    cmd_reset,
    cmd_set_security,
    cmd_status,
    configure_logging,
)


def main(argv: Optional[list[str]] = None) -> int:
    try:
        args, cfg = parse_args(argv)
        configure_logging(args.verbose)

        if args.cmd == "reset":
            return cmd_reset(cfg, trace=args.trace)
        if args.cmd == "status":
            return cmd_status(cfg, trace=args.trace)
        if args.cmd == "poll":
            return cmd_poll(cfg, count=args.count, interval=args.interval, trace=args.trace)
        if args.cmd == "identify":
            return cmd_identify(cfg, trace=args.trace)
        if args.cmd == "bill-table":
            return cmd_bill_table(cfg, trace=args.trace)
        if args.cmd == "set-security":
            return cmd_set_security(cfg, bills=args.bills, trace=args.trace)

        return 2
    except ValidatorError as e:
        print(f"ERROR: {e.message}")
        if e.hint:
            print(f"Hint: {e.hint}")
        return 1
    except KeyboardInterrupt:
        return 130
