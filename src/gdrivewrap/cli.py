"""Command line interface: `gdrivewrap <command> ...`."""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from typing import Any, Optional, Sequence

from dotenv import load_dotenv

from gdrivewrap.auth import DEFAULT_ENV_PREFIX, load_client_config, run_consent_flow
from gdrivewrap.errors import GDriveWrapError, InvalidInputError
from gdrivewrap.manager import SHARE_ROLES, GoogleDriveManager
from gdrivewrap.resolver import ROOT_ID
from gdrivewrap.util.names import leaf_name, sanitize_filename

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFIG = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gdrivewrap",
        description="Name- and path-based Google Drive operations.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--env-prefix",
        default=DEFAULT_ENV_PREFIX,
        help="Prefix of the credential variables (default: %(default)s)",
    )
    parser.add_argument(
        "--root-id",
        default=ROOT_ID,
        help="Folder id that paths are resolved from (default: My Drive)",
    )
    parser.add_argument("--timeout", type=float, default=None, help="Per-request timeout in seconds")

    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("ls", help="List a folder")
    p.add_argument("directory", nargs="?", default=None, help="Folder name or path")
    p.add_argument("--folder-id", default=None)
    p.add_argument("--kind", choices=["file", "folder"], default=None)
    p.add_argument("--limit", type=int, default=100)
    p.add_argument("-r", "--recursive", action="store_true", help="Include all descendants")

    p = sub.add_parser("search", help="Find entities whose name contains a substring")
    p.add_argument("substring")
    p.add_argument("--limit", type=int, default=100)

    p = sub.add_parser("put", help="Upload a local file")
    p.add_argument("local_path")
    p.add_argument("name", nargs="?", default=None, help="Target name or path")
    p.add_argument("--folder-id", default=None)

    p = sub.add_parser("get", help="Download a file")
    p.add_argument("name")
    p.add_argument("output", nargs="?", default=None, help="Local path ('-' for stdout)")

    p = sub.add_parser("rm", help="Delete files permanently")
    p.add_argument("names", nargs="+")

    p = sub.add_parser("mkdir", help="Create a folder")
    p.add_argument("path")
    p.add_argument("--parent-id", default=None)
    p.add_argument("-p", "--ensure", action="store_true", help="Reuse existing folders")

    p = sub.add_parser("mv", help="Move a file into a folder or to a path")
    p.add_argument("name")
    p.add_argument("target", help="Folder id, or a virtual path with --path")
    p.add_argument(
        "--path",
        action="store_true",
        help="Treat target as a destination path; missing folders are created",
    )

    p = sub.add_parser("rename", help="Rename a file or folder")
    p.add_argument("old_name")
    p.add_argument("new_name")

    p = sub.add_parser("share", help="Share with an email address or 'anyone'")
    p.add_argument("name")
    p.add_argument("principal")
    p.add_argument("--role", choices=list(SHARE_ROLES), default="reader")

    p = sub.add_parser("backup", help="Download every file of a folder")
    p.add_argument("--folder-id", default=None)
    p.add_argument("--dest", default="./backup")

    p = sub.add_parser("auth", help="Run the browser consent flow and print a refresh token")
    p.add_argument("--client-secrets", default=None, help="Client secrets JSON file")
    p.add_argument("--port", type=int, default=0)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        if args.command == "auth":
            return _cmd_auth(args)
        drive = _build_manager(args)
        return _COMMANDS[args.command](drive, args)
    except InvalidInputError as exc:
        print(f"gdrivewrap: {exc}", file=sys.stderr)
        return EXIT_CONFIG if exc.details.get("missing") else EXIT_FAILURE
    except GDriveWrapError as exc:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print(f"gdrivewrap: {exc}", file=sys.stderr)
        return EXIT_FAILURE


def _build_manager(args: argparse.Namespace) -> GoogleDriveManager:
    return GoogleDriveManager.from_env(args.env_prefix, root_id=args.root_id)


def _print_records(records: list[dict[str, Any]]) -> None:
    for record in records:
        print(json.dumps(record, ensure_ascii=False))


def _print_results(results: list[Any]) -> int:
    _print_records([r.to_dict() for r in results])
    return EXIT_OK if all(r.success for r in results) else EXIT_FAILURE


def _cmd_ls(drive: GoogleDriveManager, args: argparse.Namespace) -> int:
    if args.recursive:
        folder_id = args.folder_id
        if args.directory:
            folder_id = drive.find_folder_id(args.directory, timeout=args.timeout)
            if folder_id is None:
                print(f"gdrivewrap: folder not found: {args.directory}", file=sys.stderr)
                return EXIT_FAILURE
        records = drive.list_all(folder_id, recursive=True, timeout=args.timeout)
    else:
        records = drive.list_contents(
            args.folder_id,
            args.limit,
            directory=args.directory,
            kind=args.kind,
            timeout=args.timeout,
        )
    _print_records(records)
    return EXIT_OK


def _cmd_search(drive: GoogleDriveManager, args: argparse.Namespace) -> int:
    _print_records(drive.search(args.substring, args.limit, timeout=args.timeout))
    return EXIT_OK


def _cmd_put(drive: GoogleDriveManager, args: argparse.Namespace) -> int:
    file_id = drive.put_file(args.local_path, args.name, args.folder_id, timeout=args.timeout)
    print(file_id)
    return EXIT_OK


def _cmd_get(drive: GoogleDriveManager, args: argparse.Namespace) -> int:
    if args.output == "-":
        content = drive.get(args.name, timeout=args.timeout)
        if content is None:
            print(f"gdrivewrap: not found: {args.name}", file=sys.stderr)
            return EXIT_FAILURE
        sys.stdout.buffer.write(content)
        sys.stdout.flush()
        return EXIT_OK

    output = args.output or os.path.join(".", sanitize_filename(leaf_name(args.name)))
    if not drive.download_to_file(args.name, output, timeout=args.timeout):
        print(f"gdrivewrap: not found: {args.name}", file=sys.stderr)
        return EXIT_FAILURE
    print(output)
    return EXIT_OK


def _cmd_rm(drive: GoogleDriveManager, args: argparse.Namespace) -> int:
    return _print_results(drive.delete_multiple(args.names, timeout=args.timeout))


def _cmd_mkdir(drive: GoogleDriveManager, args: argparse.Namespace) -> int:
    if args.ensure:
        folder_id = drive.ensure_dir(args.path, args.parent_id, timeout=args.timeout)
    else:
        folder_id = drive.make_dir(args.path, args.parent_id, timeout=args.timeout)
    print(folder_id)
    return EXIT_OK


def _cmd_mv(drive: GoogleDriveManager, args: argparse.Namespace) -> int:
    if args.path:
        print(drive.move_to(args.name, args.target, timeout=args.timeout))
    else:
        drive.move(args.name, args.target, timeout=args.timeout)
    return EXIT_OK


def _cmd_rename(drive: GoogleDriveManager, args: argparse.Namespace) -> int:
    drive.rename(args.old_name, args.new_name, timeout=args.timeout)
    return EXIT_OK


def _cmd_share(drive: GoogleDriveManager, args: argparse.Namespace) -> int:
    drive.share(args.name, args.principal, args.role, timeout=args.timeout)
    link = drive.get_shareable_link(args.name, timeout=args.timeout)
    if link:
        print(link)
    return EXIT_OK


def _cmd_backup(drive: GoogleDriveManager, args: argparse.Namespace) -> int:
    return _print_results(drive.backup_folder(args.folder_id, args.dest, timeout=args.timeout))


def _cmd_auth(args: argparse.Namespace) -> int:
    prefix = args.env_prefix
    if args.client_secrets:
        config = load_client_config(args.client_secrets)
        client_id = config.get("client_id", "")
        client_secret = config.get("client_secret", "")
    else:
        # Tokens are not required yet; only the client settings are read.
        load_dotenv(override=False)
        client_id = os.environ.get(f"{prefix}_CLIENT_ID", "").strip()
        client_secret = os.environ.get(f"{prefix}_CLIENT_SECRET", "").strip()
        missing = [
            f"{prefix}_{suffix}"
            for suffix, value in (("CLIENT_ID", client_id), ("CLIENT_SECRET", client_secret))
            if not value
        ]
        if missing:
            raise InvalidInputError(
                "Missing required environment variables: " + ", ".join(missing),
                details={"missing": missing},
            )

    creds = run_consent_flow(client_id, client_secret, port=args.port)
    if not creds.refresh_token:
        print("gdrivewrap: no refresh token was returned", file=sys.stderr)
        return EXIT_FAILURE

    print(f"{prefix}_REFRESH_TOKEN={creds.refresh_token}")
    return EXIT_OK


_COMMANDS = {
    "ls": _cmd_ls,
    "search": _cmd_search,
    "put": _cmd_put,
    "get": _cmd_get,
    "rm": _cmd_rm,
    "mkdir": _cmd_mkdir,
    "mv": _cmd_mv,
    "rename": _cmd_rename,
    "share": _cmd_share,
    "backup": _cmd_backup,
}


if __name__ == "__main__":
    sys.exit(main())
