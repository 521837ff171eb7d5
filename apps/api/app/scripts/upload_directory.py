"""Upload a local directory tree into the bucket, folder markers included."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from app.core.config import get_settings
from app.services import InvalidPath, LocalDirectoryEntry, ObjectStore, get_object_store, upload_tree
from app.services.keys import to_key, to_path

LOGGER = logging.getLogger("upload_directory")


def run_upload(store: ObjectStore, directory: Path, target: str) -> int:
    settings = get_settings()
    root = LocalDirectoryEntry(directory.resolve())
    report = asyncio.run(upload_tree(store, root, target, settings))

    print(
        f"Uploaded '{root.name}' into '{target}': "
        f"{report.files_uploaded} files, {report.succeeded_count} objects stored, {report.failed_count} failed"
    )
    for failure in report.failed:
        print(f"  FAILED {failure.key}: {failure.reason}", file=sys.stderr)
    return 1 if report.failed else 0


def main(argv: list[str] | None = None, store: ObjectStore | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("directory", type=Path, help="Local directory to upload")
    parser.add_argument("--target", default="/", help="Folder receiving the directory (default: /)")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    if not args.directory.is_dir():
        LOGGER.error("'%s' is not a directory", args.directory)
        return 2
    try:
        target = to_path(to_key(args.target))
    except InvalidPath as exc:
        LOGGER.error("%s", exc)
        return 2

    return run_upload(store or get_object_store(get_settings()), args.directory, target)


if __name__ == "__main__":  # pragma: no cover - manual execution only
    sys.exit(main())
