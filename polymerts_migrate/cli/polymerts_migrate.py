"""
Command-line entry point: convert PolymerTS components to polymer-decorators.
"""

from tqdm import tqdm
import sys
import logging
import argparse
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from polymerts_migrate.core.change_records import Severity
from polymerts_migrate.core.config import DEFAULT_CONFIG_PATH, load_config
from polymerts_migrate.core.converter import (
    ConversionReport,
    NoInputFilesError,
    convert_files,
    resolve_files,
)

EXIT_OK = 0
EXIT_NOT_WRITTEN = 1
EXIT_NO_INPUT = 2

SEVERITY_ICONS = {
    Severity.INFO: "ℹ️ ",
    Severity.WARN: "⚠️ ",
    Severity.ERROR: "❌",
    Severity.ACTION_REQUIRED: "🛠️ ",
}


def _cli_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    if args.output_path:
        overrides['output_path'] = args.output_path
    if args.inline:
        overrides['change_inline'] = True
    if args.no_fold_observers:
        overrides['move_single_property_observers_to_property'] = False
    if args.declarative_listeners:
        overrides['apply_declarative_event_listeners_mixin'] = True
    if args.gesture_listeners:
        overrides['apply_gesture_event_listeners_mixin'] = True
    if args.change_class_extension:
        overrides['change_component_class_extension'] = True
    if args.bower_path:
        overrides['path_to_bower_components'] = args.bower_path
    if args.rename_lifecycle:
        overrides['rename_lifecycle_callbacks'] = True
    return overrides


def _print_report(report: ConversionReport, show_info: bool) -> None:
    notifications = [n for n in report.notifications if show_info or n.severity is not Severity.INFO]
    if notifications:
        print(f"\n📋 Notifications ({len(notifications)}):")
        for notification in notifications:
            print(f"   {SEVERITY_ICONS[notification.severity]} {notification}")

    print(f"\n✅ Written: {len(report.written)} file(s)")
    for path in report.written:
        print(f"   {path}")
    if report.not_written:
        print(f"\n❌ Not written: {len(report.not_written)} file(s)", file=sys.stderr)
        for result in report.results:
            if not result.written:
                print(f"   {result.path}: {result.error}", file=sys.stderr)


def _run_convert(args: argparse.Namespace) -> int:
    try:
        options = load_config(config_path=args.config, cli_args=_cli_overrides(args))
    except ValidationError as e:
        print(f"❌ Invalid configuration: {e}", file=sys.stderr)
        return EXIT_NOT_WRITTEN

    files = resolve_files(args.files, ignore=options.glob_ignore)
    print(f"🚀 Converting {len(files)} PolymerTS file(s)")
    if options.change_inline:
        print("   Files are rewritten in place")
    else:
        print(f"   Output directory: {options.output_path}")

    try:
        report = convert_files(files, options, progress=lambda paths: tqdm(paths, desc="Converting"))
    except NoInputFilesError as e:
        print(f"❌ {e}: nothing matched {' '.join(args.files)}", file=sys.stderr)
        return EXIT_NO_INPUT

    _print_report(report, show_info=args.verbose)
    return EXIT_OK if report.ok else EXIT_NOT_WRITTEN


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="polymerts-migrate",
        description="Rewrite PolymerTS components to the polymer-decorators convention."
    )
    parser.add_argument("files", nargs='+',
                        help="Source files, directories or glob patterns (quote globs to avoid shell expansion).")
    parser.add_argument("--config", help=f"Path to configuration YAML file (default: {DEFAULT_CONFIG_PATH})")
    parser.add_argument("--output-path", help="Directory for rewritten files (overrides config).")
    parser.add_argument("--inline", action="store_true", help="Overwrite the input files instead of writing copies.")
    parser.add_argument("--no-fold-observers", action="store_true",
                        help="Keep single-property observers as @observe instead of moving them to @property.")
    parser.add_argument("--declarative-listeners", action="store_true",
                        help="Keep listeners declarative and apply Polymer.DeclarativeEventListeners.")
    parser.add_argument("--gesture-listeners", action="store_true",
                        help="Apply Polymer.GestureEventListeners to every component.")
    parser.add_argument("--change-class-extension", action="store_true",
                        help="Make every component extend Polymer.Element.")
    parser.add_argument("--bower-path",
                        help="Path to bower_components; adds a polymer-decorators reference tag.")
    parser.add_argument("--rename-lifecycle", action="store_true",
                        help="Rename attached()/detached() to connectedCallback()/disconnectedCallback().")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose logging and INFO notifications.")
    parser.set_defaults(func=_run_convert)
    return parser


def main(argv: Optional[List[str]] = None):
    """Main entry point for the converter."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        exit_code = args.func(args)
        sys.exit(exit_code)
    except Exception as e:
        print(f"\n❌ An unexpected error occurred: {e}", file=sys.stderr)
        import traceback
        traceback.print_exc(file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
