"""CLI utility to bootstrap the configured bucket."""

from __future__ import annotations

import argparse
import logging
import sys

from app.core.config import get_settings
from app.services import ensure_bucket, get_minio_client


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create the explorer bucket when it is missing")
    parser.add_argument("--bucket", help="Bucket name (defaults to BX_MINIO_BUCKET)")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    settings = get_settings()
    bucket = args.bucket or settings.minio_bucket
    client = get_minio_client(settings)
    ensure_bucket(client, bucket)
    print(f"Bucket '{bucket}' verified")
    return 0


if __name__ == "__main__":  # pragma: no cover - manual execution only
    sys.exit(main())
