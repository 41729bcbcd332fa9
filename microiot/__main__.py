"""
Micro-IoT generator — entry point.

Usage:
    python -m microiot serve                        # web API on :8000
    python -m microiot generate --board esp32-devkit-v1 --module dht22 --module relay-1ch
    python -m microiot catalog
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from microiot.catalog import default_catalog
from microiot.config import default_network, load_env


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="microiot", description="Pin allocation + Arduino sketch generation")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = p.add_subparsers(dest="cmd", required=True)

    sv = sub.add_parser("serve", help="Start the web API")
    sv.add_argument("--host", default="127.0.0.1", help="Host to bind")
    sv.add_argument("--port", type=int, default=8000, help="Port to bind")

    g = sub.add_parser("generate", help="Allocate modules and write a sketch")
    g.add_argument("--board", default=None, help="Board id (default: catalog default)")
    g.add_argument("--module", action="append", default=[], dest="modules",
                   help="Module id to add; repeat for several")
    g.add_argument("--device-id", default=None)
    g.add_argument("--broker", default=None)
    g.add_argument("--broker-port", type=int, default=None)
    g.add_argument("--ssid", default=None)
    g.add_argument("--password", default=None)
    g.add_argument("--identity", default=None, help="Pre-issued identity token")
    g.add_argument("--out", default=None, help="Output file or directory (default: stdout)")

    sub.add_parser("catalog", help="List boards and modules")

    return p


def _cmd_generate(args) -> int:
    from microiot.project import ProjectStore, new_project

    catalog = default_catalog()
    network = default_network()
    store = ProjectStore(new_project(args.board, catalog=catalog, network=network), catalog=catalog)

    changes = {
        "device_id": args.device_id, "broker": args.broker, "port": args.broker_port,
        "ssid": args.ssid, "password": args.password,
    }
    store.update_network(**{k: v for k, v in changes.items() if v is not None})
    if args.identity:
        store.set_identity(args.identity)

    for module_id in args.modules:
        result = store.add_module(module_id)
        if not result.success:
            print(f"error: {result.error}", file=sys.stderr)
            return 1
        pins = ", ".join(f"{k}=GPIO{v}" for k, v in result.instance.allocated_pins)
        print(f"  {module_id:<16} {pins}", file=sys.stderr)

    fw = store.generate()

    if args.out is None:
        sys.stdout.write(fw.source)
    else:
        out = Path(args.out)
        if out.is_dir():
            out = out / fw.filename
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(fw.source, encoding="utf-8")
        print(f"Generated: {out}", file=sys.stderr)

    print("Libraries:", file=sys.stderr)
    for lib in fw.libraries:
        print(f"  {lib.manager_name} ({lib.author})", file=sys.stderr)
    return 0


def _cmd_catalog() -> int:
    catalog = default_catalog()
    print("Boards:")
    for b in catalog.boards:
        print(f"  {b.id:<20} {b.name} ({len(b.pins)} pins)")
    print("Modules:")
    for m in catalog.modules:
        bus = f" [{m.bus}]" if m.bus else ""
        print(f"  {m.id:<20} {m.category:<14} {', '.join(m.requires)}{bus}")
    return 0


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    load_env()

    if args.cmd == "serve":
        from microiot.web.server import main as serve
        serve(host=args.host, port=args.port)
        return 0
    if args.cmd == "generate":
        return _cmd_generate(args)
    if args.cmd == "catalog":
        return _cmd_catalog()
    return 2


if __name__ == "__main__":
    sys.exit(main())
