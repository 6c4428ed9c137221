from __future__ import annotations

import argparse
import asyncio
import json
import mimetypes
import sys
from pathlib import Path
from typing import Optional, Sequence

from billshare.config import get_settings
from billshare.logging import configure_logging, get_logger
from billshare.models import Bill, Participant
from billshare.ocr import OCRError, process_image
from billshare.services.receipt import parse_receipt_text
from billshare.services.settlement import RoundingPolicy, calculate_settlement, display_residual
from billshare.storage.schema import bill_to_json
from billshare.storage.store import SnapshotRepository, SnapshotStoreError, create_store
from billshare.utils.amounts import format_amount


def _is_image(path: Path) -> bool:
    mime, _ = mimetypes.guess_type(path.name)
    return bool(mime and mime.startswith("image/"))


async def _load_bill(path: Path, language: str) -> Bill:
    if _is_image(path):
        return await process_image(path.read_bytes(), language)
    return parse_receipt_text(path.read_text(encoding="utf-8"))


def format_summary(bill: Bill, participants: Sequence[Participant], rounding: RoundingPolicy) -> list[str]:
    settlements = calculate_settlement(bill, participants, rounding)
    lines = []
    for settlement in settlements:
        lines.append(f"{settlement.name}: {format_amount(settlement.total)}")
        for line in settlement.lines:
            lines.append(f"  {line.quantity}x {line.name} {format_amount(line.total_price)}")
        if settlement.is_active and settlement.charge_share:
            lines.append(f"  fees/discounts {format_amount(settlement.charge_share)}")
    lines.append(f"Total: {format_amount(bill.total_after_charges)}")
    residual = display_residual(bill, settlements)
    if residual:
        lines.append(f"Rounding difference: {format_amount(residual)}")
    return lines


async def _cmd_parse(args: argparse.Namespace) -> int:
    bill = await _load_bill(Path(args.file), args.lang)
    print(json.dumps(bill_to_json(bill), indent=2, ensure_ascii=False))
    return 0


async def _cmd_saved(args: argparse.Namespace) -> int:
    store = create_store(get_settings())
    try:
        snapshots = await SnapshotRepository(store).list_snapshots()
    finally:
        await store.close()
    for snapshot in snapshots:
        names = ", ".join(p.name for p in snapshot.participants) or "-"
        print(f"{snapshot.id}  {snapshot.date:%Y-%m-%d}  {format_amount(snapshot.bill.total_after_charges)}  {names}")
    return 0


async def _cmd_summary(args: argparse.Namespace) -> int:
    store = create_store(get_settings())
    try:
        snapshot = await SnapshotRepository(store).get(args.snapshot_id)
    finally:
        await store.close()
    if snapshot is None:
        print(f"No saved bill with id {args.snapshot_id}", file=sys.stderr)
        return 1
    rounding = RoundingPolicy(get_settings().rounding)
    print("\n".join(format_summary(snapshot.bill, snapshot.participants, rounding)))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="billshare", description="Split a receipt between friends")
    sub = parser.add_subparsers(dest="command", required=True)

    parse_cmd = sub.add_parser("parse", help="parse a receipt transcript or photo into a bill")
    parse_cmd.add_argument("file", help="text transcript or receipt image")
    parse_cmd.add_argument("--lang", default=None, help="OCR language hint (default from settings)")
    parse_cmd.set_defaults(handler=_cmd_parse)

    saved_cmd = sub.add_parser("saved", help="list saved bills")
    saved_cmd.set_defaults(handler=_cmd_saved)

    summary_cmd = sub.add_parser("summary", help="show who pays what for a saved bill")
    summary_cmd.add_argument("snapshot_id")
    summary_cmd.set_defaults(handler=_cmd_summary)
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    settings = get_settings()
    configure_logging(settings.log_level)
    args = build_parser().parse_args(argv)
    if getattr(args, "lang", None) is None:
        args.lang = settings.ocr_language

    log = get_logger(__name__)
    try:
        return asyncio.run(args.handler(args))
    except OCRError as exc:
        print(str(exc), file=sys.stderr)
        return 2
    except SnapshotStoreError as exc:
        log.error("store.error", error=str(exc))
        print(str(exc), file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
