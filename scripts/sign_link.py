#!/usr/bin/env python3
"""Print a temporary (signed) download link.

Usage:
  .venv/bin/python scripts/sign_link.py https://xxx.selcdn.ru/c/o.txt --key secret --ttl 3600
  .venv/bin/python scripts/sign_link.py /c/o.txt --key secret --expires 1700000000

The secret key must already be installed on the account or the container
(see SwiftStorageClient.set_object_secret_key).
"""

from __future__ import annotations

import argparse
import time

from selectel_storage.infra.storage.signing import generate_signed_link


def resolve_expires(*, expires: int | None, ttl: int | None, now: float | None = None) -> int:
    if expires is not None:
        return expires
    current = time.time() if now is None else now
    return int(current + (ttl or 0))


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Generate a signed storage link")
    parser.add_argument("url", help="Object URL or path to sign")
    parser.add_argument("--key", required=True, help="Temp URL secret key")
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument(
        "--expires",
        type=int,
        default=None,
        help="Absolute expiry as unix seconds",
    )
    group.add_argument(
        "--ttl",
        type=int,
        default=None,
        help="Link lifetime in seconds from now",
    )
    args = parser.parse_args(argv)
    expires = resolve_expires(expires=args.expires, ttl=args.ttl)
    print(generate_signed_link(args.url, expires, args.key))


if __name__ == "__main__":
    main()
