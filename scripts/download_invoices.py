"""
Download invoice PDFs from the dealership BFF.

Logs in with back-office credentials and saves the PDF of every given bill
number into an output directory. Sale invoices are fetched by default;
`--manual` switches to manual bills.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Iterable

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from dealership.client import DealershipApiError, DealershipClient


logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:3000"


def invoice_filename(bill_number: str, manual: bool) -> str:
    safe = "".join(char if char.isalnum() or char in "-_" else "_" for char in bill_number.strip())
    return f"{'manual-bill' if manual else 'invoice'}-{safe}.pdf"


def download_invoices(
    client: DealershipClient,
    bill_numbers: Iterable[str],
    out_dir: Path,
    *,
    manual: bool = False,
) -> tuple[list[Path], list[str]]:
    """Returns the written files and the bill numbers that failed."""
    out_dir.mkdir(parents=True, exist_ok=True)
    written: list[Path] = []
    failed: list[str] = []
    for bill_number in bill_numbers:
        bill_number = bill_number.strip()
        if not bill_number:
            continue
        try:
            if manual:
                content = client.download_manual_bill_pdf(bill_number)
            else:
                content = client.get_sale_invoice_pdf(bill_number)
        except DealershipApiError as exc:
            logger.warning("Bill %s: %s (%s)", bill_number, exc.message, exc.status_code)
            failed.append(bill_number)
            continue
        path = out_dir / invoice_filename(bill_number, manual)
        path.write_bytes(content)
        written.append(path)
    return written, failed


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Download invoice PDFs")
    parser.add_argument("bill_numbers", nargs="+", help="Bill numbers to download")
    parser.add_argument(
        "--base-url",
        default=os.environ.get("DEALERSHIP_BFF_URL", DEFAULT_BASE_URL),
        help="Origin of the BFF (defaults to $DEALERSHIP_BFF_URL)",
    )
    parser.add_argument(
        "--username",
        default=os.environ.get("DEALERSHIP_USERNAME"),
        help="Back-office username (defaults to $DEALERSHIP_USERNAME)",
    )
    parser.add_argument(
        "--out",
        type=Path,
        default=Path("invoices"),
        help="Directory the PDFs are written to",
    )
    parser.add_argument(
        "--manual",
        action="store_true",
        help="Download manual bills instead of sale invoices",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s:%(message)s")
    password = os.environ.get("DEALERSHIP_PASSWORD")
    if not args.username or not password:
        logger.error("Set --username (or DEALERSHIP_USERNAME) and DEALERSHIP_PASSWORD")
        return 2

    client = DealershipClient(args.base_url)
    try:
        client.login(args.username, password)
    except DealershipApiError as exc:
        logger.error("Login failed: %s", exc.message)
        return 1

    written, failed = download_invoices(client, args.bill_numbers, args.out, manual=args.manual)
    logger.info("Saved %d PDFs to %s", len(written), args.out)
    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
