from __future__ import annotations

import argparse
import sys

from localsvc.bridge import run
from localsvc.events import setup_logging
from localsvc.settings import Settings


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="local-service",
        description="Register the services of a Nomad job with the local Consul agent until terminated",
    )
    p.add_argument("--jobspec", default=None, help="Job file to use (default: nomad-jobspec.tmpl)")
    p.add_argument("--iface", default=None, help="Advertise the IPv4 address of this network interface")
    p.add_argument("--address", default=None, help="Advertise this address (overrides --iface)")
    p.add_argument("--debug", action="store_true", help="Add extra logging")
    return p


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = Settings.from_env().with_overrides(
        jobspec_path=args.jobspec,
        iface=args.iface,
        advertise_address=args.address,
        debug=True if args.debug else None,
    )
    setup_logging(settings.debug)
    return run(settings)


def entrypoint() -> None:
    raise SystemExit(main(sys.argv[1:]))


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
