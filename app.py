"""
CRM Duplicate Guard
-------------------
Works on a data directory holding contacts.csv, deals.csv and interactions.csv.

Usage examples:
 python app.py import --data data/ --contacts new_contacts.csv --deals new_deals.csv --out out/
 python app.py scan --data data/ --out out/
 python app.py merge --data data/ --entity contact --source c2 --target c1
"""
import argparse
import logging

import pandas as pd

from errors import DuplicateConflict, StoreError
from guard.contacts import create_contact
from guard.deals import create_deal
from io_utils.readers import contact_candidates, deal_candidates, load_table
from io_utils.writers import ensure_outdir, write_report
from matching.cluster import cluster_contacts, cluster_deals
from merge.engine import merge_contacts, merge_deals
from store.frame_store import FrameStore
from store.schema import CONTACTS, DEALS

REPORT_COLUMNS = ["row", "status", "id", "message"]


def _import_rows(store, candidates, create):
    """Run each candidate through the creation guard; one report row per input row."""
    report = []
    for n, candidate in candidates:
        if isinstance(candidate, ValueError):
            report.append({"row": n, "status": "invalid", "id": None, "message": str(candidate)})
            continue
        try:
            result = create(store, candidate)
        except DuplicateConflict as e:
            top = e.result.strongest
            report.append({"row": n, "status": "blocked", "id": top.candidate_id, "message": str(e)})
            continue
        except StoreError as e:
            report.append({"row": n, "status": "error", "id": None, "message": str(e)})
            continue
        status = "created_with_warning" if result.duplicates and result.duplicates.is_duplicate else "created"
        report.append({"row": n, "status": status, "id": result.record["id"], "message": result.message})
    return report


def _summary(kind, report):
    counts = pd.Series([r["status"] for r in report], dtype=object).value_counts().to_dict()
    parts = ", ".join(f"{k}: {v}" for k, v in sorted(counts.items()))
    print(f"✅ {kind}: {len(report)} rows processed ({parts or 'nothing to do'}).")


def cmd_import(args, store):
    ensure_outdir(args.out)
    if args.contacts:
        report = _import_rows(store, contact_candidates(load_table(args.contacts)), create_contact)
        write_report(report, args.out, "contacts_import_report.csv", columns=REPORT_COLUMNS)
        _summary("Contacts", report)
    if args.deals:
        report = _import_rows(store, deal_candidates(load_table(args.deals)), create_deal)
        write_report(report, args.out, "deals_import_report.csv", columns=REPORT_COLUMNS)
        _summary("Deals", report)
    store.to_dir(args.data)


def cmd_scan(args, store):
    ensure_outdir(args.out)
    groups, report = cluster_contacts(store.frame(CONTACTS))
    write_report(report, args.out, "contact_duplicate_groups.csv")
    print(f"✅ Contacts: {len(groups)} duplicate group(s). Report written to {args.out}.")
    d_groups, d_report = cluster_deals(store.frame(DEALS))
    write_report(d_report, args.out, "deal_duplicate_groups.csv")
    print(f"✅ Deals: {len(d_groups)} duplicate group(s). Report written to {args.out}.")


def cmd_merge(args, store):
    merge = merge_contacts if args.entity == "contact" else merge_deals
    result = merge(store, args.source, args.target)
    if not result.success:
        print(f"❌ Merge failed: {result.error}")
        return 1
    for warning in result.warnings:
        print(f"⚠️ {warning}")
    store.to_dir(args.data)
    print(f"✅ Merged {args.entity} {args.source} into {args.target}.")
    return 0


def build_parser():
    parser = argparse.ArgumentParser(description="CRM Duplicate Guard")
    parser.add_argument("--log-level", default="WARNING", help="Python logging level (default: WARNING)")
    sub = parser.add_subparsers(dest="command", required=True)

    p_import = sub.add_parser("import", help="Create records from CSV files through the duplicate guard")
    p_import.add_argument("--data", type=str, required=True, help="Data directory (contacts.csv, deals.csv, interactions.csv)")
    p_import.add_argument("--contacts", type=str, required=False, help="Path to contacts CSV to import")
    p_import.add_argument("--deals", type=str, required=False, help="Path to deals CSV to import")
    p_import.add_argument("--out", type=str, required=True, help="Output directory for import reports")
    p_import.add_argument("--unique-email", action="store_true", help="Enforce a unique index on contacts.email")
    p_import.set_defaults(func=cmd_import)

    p_scan = sub.add_parser("scan", help="Report groups of existing duplicates (nothing is merged)")
    p_scan.add_argument("--data", type=str, required=True, help="Data directory")
    p_scan.add_argument("--out", type=str, required=True, help="Output directory for group reports")
    p_scan.set_defaults(func=cmd_scan)

    p_merge = sub.add_parser("merge", help="Merge a source record into a target record")
    p_merge.add_argument("--data", type=str, required=True, help="Data directory")
    p_merge.add_argument("--entity", choices=["contact", "deal"], required=True)
    p_merge.add_argument("--source", type=str, required=True, help="Id of the record to absorb and delete")
    p_merge.add_argument("--target", type=str, required=True, help="Id of the record to keep")
    p_merge.set_defaults(func=cmd_merge)
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")
    unique = {CONTACTS: ["email"]} if getattr(args, "unique_email", False) else None
    store = FrameStore.from_dir(args.data, unique=unique)
    return args.func(args, store) or 0


if __name__ == "__main__":
    raise SystemExit(main())
