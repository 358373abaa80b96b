import argparse, logging, os, sys
from .config import load_config
from .exceptions import DebtScanError
from .renderer import build_report, generate_report, open_report
from .scanner import scan
from .trend import generate_trend_report
from .utils import find_repo_root, write_json
from .validator import validate_debt_documents


def _report_dir(repo_root, cfg):
    return os.path.join(repo_root, cfg.report_dir)


def cmd_scan(args):
    repo_root = find_repo_root(args.path)
    cfg = load_config(repo_root)
    records = scan(repo_root, cfg)
    result = generate_report(records, _report_dir(repo_root, cfg), thresholds=cfg.thresholds, markers=cfg.markers)
    print(f"Wrote {result.report_path}")
    print(f"Total debt items found: {result.total_count}")

    if args.json:
        path = os.path.splitext(result.report_path)[0] + ".json"
        write_json(build_report(records, now=result.generated_at), path)
        print(f"Wrote {path}")

    if args.trend:
        trend_path = generate_trend_report(_report_dir(repo_root, cfg), window=cfg.trend_window)
        print(f"Wrote {trend_path}")

    if args.open:
        open_report(result.report_path)
    return 0


def cmd_trend(args):
    repo_root = find_repo_root(args.path)
    cfg = load_config(repo_root)
    window = args.window or cfg.trend_window
    path = generate_trend_report(_report_dir(repo_root, cfg), window=window)
    print(f"Wrote {path}")
    if args.open:
        open_report(path)
    return 0


def cmd_validate(args):
    results = validate_debt_documents(args.path)
    if not results:
        print("No Dev_Debt.md files found")
        return 0
    failed = 0
    for path, res in results.items():
        status = "ok" if res.is_valid else f"invalid [{res.error_code}]"
        print(f"{path}: {status} - {res.message}")
        failed += not res.is_valid
    return 1 if failed else 0


def main(argv=None):
    parser = argparse.ArgumentParser(prog="debtscan", description="Technical debt marker scanner")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="cmd", required=True)

    p = sub.add_parser("scan", help="Scan a repository and write a debt report")
    p.add_argument("path", help="Path to repo (or any child path)")
    p.add_argument("--json", action="store_true", help="Also write the scan result as JSON next to the report")
    p.add_argument("--trend", action="store_true", help="Also write a trend report")
    p.add_argument("--open", action="store_true", help="Open the report when done")
    p.set_defaults(func=cmd_scan)

    p = sub.add_parser("trend", help="Write a trend report from previous reports")
    p.add_argument("path", help="Path to repo (or any child path)")
    p.add_argument("--window", type=int, default=None, help="Number of most recent reports to compare")
    p.add_argument("--open", action="store_true", help="Open the trend report when done")
    p.set_defaults(func=cmd_trend)

    p = sub.add_parser("validate", help="Check Related Files of every Dev_Debt.md under a path")
    p.add_argument("path", help="Directory to search")
    p.set_defaults(func=cmd_validate)

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        return args.func(args)
    except DebtScanError as e:
        print(f"[error] {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
