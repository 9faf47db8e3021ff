#!/usr/bin/env python3
"""Entry point for the corecache CLI."""

from __future__ import annotations

import argparse
import json
import sys
from collections import deque
from dataclasses import replace
from pathlib import Path
from textwrap import dedent
from typing import Any

from corecache import __version__
from corecache.app.cache import CacheService
from corecache.app.integrity import ManifestPolicy
from corecache.domain.errors import IntegrityError
from corecache.domain.index import load_index
from corecache.domain.resource import DownloadResource
from corecache.settings import RuntimeSettings, load_settings
from corecache.utils.telemetry import clear as telemetry_clear
from corecache.utils.telemetry import iter_events as telemetry_iter
from corecache.utils.telemetry import summarize as telemetry_summarize

EXIT_OK = 0
EXIT_INVALID = 1
EXIT_ERROR = 2

# Loaded on first use by _settings_for unless preset.
SETTINGS: RuntimeSettings | None = None

HELP_OVERVIEW = dedent(
    """
    Typical flow:
      1. corecache index status package_index.json   - which archives are cached and valid
      2. (download / extract with your installer)
      3. corecache manifest stamp INSTALL_DIR          - record the installed tree checksum
      4. corecache manifest verify INSTALL_DIR         - detect later corruption or tampering

    Exit codes: 0 valid, 1 absent/invalid/mismatch, 2 error or not stamped.
    """
)


def _settings_for(args: argparse.Namespace) -> RuntimeSettings:
    settings = SETTINGS if SETTINGS is not None else load_settings()
    cache_dir = getattr(args, "cache_dir", None)
    if cache_dir:
        settings = replace(settings, cache_dir=Path(cache_dir).expanduser().resolve())
    if getattr(args, "strict", False):
        settings = replace(settings, manifest_policy=ManifestPolicy.STRICT.value)
    return settings


def _service(args: argparse.Namespace) -> CacheService:
    return CacheService(_settings_for(args))


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2))


def _report_error(exc: Exception, as_json: bool) -> int:
    if as_json and isinstance(exc, IntegrityError):
        _print_json({"status": "error", **exc.to_dict()})
    print(f"corecache: {exc}", file=sys.stderr)
    return EXIT_ERROR


def _archive_check_cmd(args: argparse.Namespace) -> int:
    archive = Path(args.file).expanduser().resolve()
    resource = DownloadResource(
        url="",
        archive_file_name=archive.name,
        checksum=args.checksum,
        size=args.size,
        cache_dir=archive.parent,
    )
    try:
        report = _service(args).check_archive(resource)
    except IntegrityError as exc:
        return _report_error(exc, args.json)
    if args.json:
        _print_json(report.to_dict())
    else:
        print(f"{archive}: {report.status}")
    return EXIT_OK if report.status == "ok" else EXIT_INVALID


def _index_status_cmd(args: argparse.Namespace) -> int:
    service = _service(args)
    try:
        index = load_index(Path(args.index).expanduser())
    except IntegrityError as exc:
        return _report_error(exc, args.json)
    if args.core and index.find(args.core) is None:
        print(f"corecache: core '{args.core}' not found in {args.index}", file=sys.stderr)
        return EXIT_ERROR
    summary = service.index_status(index, core_id=args.core)
    if args.json:
        _print_json(summary.to_dict())
    else:
        print(f"Cache directory: {summary.cache_dir}")
        if not summary.archives:
            print("No releases listed")
        for report in summary.archives:
            line = f"- {report.core_id} {report.version}: {report.status}"
            if report.error:
                line += f" ({report.error})"
            print(line)
    if summary.status == "error":
        return EXIT_ERROR
    return EXIT_OK if summary.status == "ok" else EXIT_INVALID


def _manifest_stamp_cmd(args: argparse.Namespace) -> int:
    root = Path(args.path).expanduser().resolve()
    try:
        manifest = _service(args).stamp_install(root)
    except IntegrityError as exc:
        return _report_error(exc, args.json)
    if args.json:
        _print_json({"root": root.as_posix(), **manifest.to_dict()})
    else:
        print(f"Stamped {root} ({manifest.checksum})")
    return EXIT_OK


def _manifest_verify_cmd(args: argparse.Namespace) -> int:
    root = Path(args.path).expanduser().resolve()
    try:
        report = _service(args).check_install(root)
    except IntegrityError as exc:
        return _report_error(exc, args.json)
    if args.json:
        _print_json(report.to_dict())
    elif report.status == "missing":
        print(f"corecache: {root} has not been stamped (no manifest)", file=sys.stderr)
    else:
        print(f"{root}: {report.status}")
    if report.status == "missing":
        return EXIT_ERROR
    return EXIT_OK if report.status == "ok" else EXIT_INVALID


def _manifest_digest_cmd(args: argparse.Namespace) -> int:
    root = Path(args.path).expanduser().resolve()
    try:
        digest = _service(args).verifier.compute_tree_digest(root)
    except IntegrityError as exc:
        return _report_error(exc, False)
    print(digest)
    return EXIT_OK


def _telemetry_cmd(args: argparse.Namespace) -> int:
    settings = _settings_for(args)
    if args.telemetry_command == "report":
        recent = getattr(args, "recent", 0)
        if recent and recent > 0:
            events = list(deque(telemetry_iter(settings), maxlen=recent))
        else:
            events = list(telemetry_iter(settings))
        _print_json(telemetry_summarize(events))
        return EXIT_OK
    if args.telemetry_command == "clear":
        telemetry_clear(settings)
        print("Telemetry log cleared")
        return EXIT_OK
    if args.telemetry_command == "tail":
        for evt in deque(telemetry_iter(settings), maxlen=args.limit):
            print(json.dumps(evt, ensure_ascii=False))
        return EXIT_OK
    print("Unsupported telemetry command", file=sys.stderr)
    return EXIT_ERROR


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="corecache",
        description="Verify cached package archives and installed directory manifests",
        epilog=HELP_OVERVIEW,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"corecache {__version__}")
    parser.add_argument("--cache-dir", dest="cache_dir", default=None, help="Override the archive cache directory")
    sub = parser.add_subparsers(dest="command", required=True)

    archive_cmd = sub.add_parser("archive", help="Inspect a single cached archive")
    archive_sub = archive_cmd.add_subparsers(dest="archive_command", required=True)
    archive_check = archive_sub.add_parser("check", help="Check presence, size and checksum of an archive")
    archive_check.add_argument("file", help="Path to the archive")
    archive_check.add_argument("--checksum", required=True, help="Expected checksum, e.g. SHA-256:<hex>")
    archive_check.add_argument("--size", required=True, type=int, help="Expected size in bytes")
    archive_check.add_argument("--json", action="store_true", help="Emit machine-readable JSON")
    archive_check.set_defaults(func=_archive_check_cmd)

    index_cmd = sub.add_parser("index", help="Check cached archives for a package index")
    index_sub = index_cmd.add_subparsers(dest="index_command", required=True)
    index_status = index_sub.add_parser("status", help="Report cache status of every release in an index")
    index_status.add_argument("index", help="Package index file (.json or .yaml)")
    index_status.add_argument("--core", default=None, help="Limit to one core, e.g. arduino:avr")
    index_status.add_argument("--json", action="store_true", help="Emit machine-readable JSON")
    index_status.set_defaults(func=_index_status_cmd)

    manifest_cmd = sub.add_parser("manifest", help="Stamp or verify installed directory checksums")
    manifest_sub = manifest_cmd.add_subparsers(dest="manifest_command", required=True)

    stamp = manifest_sub.add_parser("stamp", help="Write the directory checksum manifest")
    stamp.add_argument("path")
    stamp.add_argument("--strict", action="store_true", help="Fail on unreadable files instead of skipping them")
    stamp.add_argument("--json", action="store_true", help="Emit machine-readable JSON")
    stamp.set_defaults(func=_manifest_stamp_cmd)

    verify = manifest_sub.add_parser("verify", help="Compare the directory against its manifest")
    verify.add_argument("path")
    verify.add_argument("--strict", action="store_true", help="Fail on unreadable files instead of skipping them")
    verify.add_argument("--json", action="store_true", help="Emit machine-readable JSON")
    verify.set_defaults(func=_manifest_verify_cmd)

    digest = manifest_sub.add_parser("digest", help="Print the directory checksum without writing it")
    digest.add_argument("path")
    digest.add_argument("--strict", action="store_true", help="Fail on unreadable files instead of skipping them")
    digest.set_defaults(func=_manifest_digest_cmd)

    telemetry_cmd = sub.add_parser("telemetry", help="Inspect the local event log")
    telemetry_sub = telemetry_cmd.add_subparsers(dest="telemetry_command", required=True)
    report = telemetry_sub.add_parser("report", help="Summarize recorded events")
    report.add_argument("--recent", type=int, default=0, help="Only the last N events")
    report.set_defaults(func=_telemetry_cmd)
    telemetry_sub.add_parser("clear", help="Delete the event log").set_defaults(func=_telemetry_cmd)
    tail = telemetry_sub.add_parser("tail", help="Print the last events")
    tail.add_argument("--limit", type=int, default=20)
    tail.set_defaults(func=_telemetry_cmd)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        return args.func(args)
    except ValueError as exc:
        print(f"corecache: {exc}", file=sys.stderr)
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
