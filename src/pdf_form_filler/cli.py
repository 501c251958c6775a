from __future__ import annotations

import argparse
import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .download import DEFAULT_TIMEOUT, fetch_pdf_bytes
from .errors import PdfFormFillerError
from .service import PdfService, load_field_values
from .util import source_stem, utc_ts


def setup_logging(log_file: Optional[Path], level: str = "INFO") -> None:
    lvl = getattr(logging, level.upper(), logging.INFO)
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    logging.basicConfig(
        level=lvl,
        format="%(asctime)sZ %(levelname)s %(name)s: %(message)s",
        handlers=handlers,
        force=True,
    )


@dataclass(frozen=True)
class Settings:
    log_level: str
    log_file: Optional[Path]
    out_dir: Path
    fetch_timeout: float


def require(name: str, value: str | None) -> str:
    if not value:
        raise SystemExit(f"Missing required value: {name}")
    return value


def load_settings(args: argparse.Namespace) -> Settings:
    try:
        timeout = float(args.timeout)
    except (TypeError, ValueError):
        raise SystemExit(f"Invalid PDF_FETCH_TIMEOUT/--timeout: {args.timeout!r}")
    return Settings(
        log_level=args.log_level,
        log_file=Path(args.log_file) if args.log_file else None,
        out_dir=Path(args.out_dir),
        fetch_timeout=timeout,
    )


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="pdf-form-filler")
    sub = p.add_subparsers(dest="cmd", required=True)

    def add_common(x):
        src = x.add_mutually_exclusive_group(required=True)
        src.add_argument("--pdf", help="Path to the source PDF.")
        src.add_argument("--url", help="Absolute URL to download the source PDF from.")
        x.add_argument("--out", default=None, help="Output file path.")
        x.add_argument("--log-level", default=os.getenv("LOG_LEVEL", "INFO"))
        x.add_argument("--log-file", default=os.getenv("PDF_FILLER_LOG_FILE", ""))
        x.add_argument("--out-dir", default=os.getenv("PDF_FILLER_OUT_DIR", "out"))
        x.add_argument("--timeout", default=os.getenv("PDF_FETCH_TIMEOUT", str(DEFAULT_TIMEOUT)))

    pf = sub.add_parser("fill", help="Fill form fields from a JSON object and write the PDF.")
    add_common(pf)
    pf.add_argument("--json", dest="json_file", help="JSON file with field name -> value.")

    pl = sub.add_parser("fields", help="List form fields (name, type id, current value) as JSON.")
    add_common(pl)

    return p.parse_args()


def load_source(args: argparse.Namespace, settings: Settings) -> bytes:
    if args.url:
        return fetch_pdf_bytes(args.url, timeout=settings.fetch_timeout)
    return Path(args.pdf).read_bytes()


def run_fill(args: argparse.Namespace, settings: Settings) -> int:
    log = logging.getLogger("pdf_form_filler.fill")

    json_file = require("--json", args.json_file)
    data = load_field_values(Path(json_file).read_text(encoding="utf-8"))
    log.info("Loaded %s field values from %s", len(data), json_file)

    source = args.url or args.pdf
    pdf_bytes = load_source(args, settings)
    result = PdfService().fill_form(pdf_bytes, data)

    if args.out:
        out_path = Path(args.out)
    else:
        out_path = settings.out_dir / f"{source_stem(source)}_filled_utc_{utc_ts()}.pdf"
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_bytes(result)
    log.info("PDF written: %s", out_path)
    return 0


def run_fields(args: argparse.Namespace, settings: Settings) -> int:
    log = logging.getLogger("pdf_form_filler.list")

    pdf_bytes = load_source(args, settings)
    fields = PdfService().get_form_fields(pdf_bytes)
    text = json.dumps({name: d.to_dict() for name, d in fields.items()}, indent=2)

    if args.out:
        out_path = Path(args.out)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(text + "\n", encoding="utf-8")
        log.info("Field listing written: %s", out_path)
    else:
        print(text)
    log.info("Listed %s form fields", len(fields))
    return 0


def main() -> int:
    args = parse_args()
    settings = load_settings(args)
    setup_logging(settings.log_file, settings.log_level)
    try:
        if args.cmd == "fill":
            return run_fill(args, settings)
        if args.cmd == "fields":
            return run_fields(args, settings)
    except PdfFormFillerError as e:
        raise SystemExit(str(e))
    raise SystemExit("Unknown command")
