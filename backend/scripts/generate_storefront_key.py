#!/usr/bin/env python3
"""
Print a fresh base64-encoded 256-bit key for STOREFRONT_ENCRYPTION_KEY.

Usage:
    python scripts/generate_storefront_key.py            # print to stdout
    python scripts/generate_storefront_key.py --out .storefrontkey

Keep the key out of version control. Losing it makes every stored
storefront credential unreadable.
"""

import argparse
import base64
import os
from pathlib import Path

from marketplace.utils.crypto import KEY_SIZE, decode_key


def main() -> None:
    parser = argparse.ArgumentParser(description="Generate a storefront encryption key.")
    parser.add_argument("--out", default=None, help="Write the key to this file instead of stdout")
    args = parser.parse_args()

    encoded = base64.b64encode(os.urandom(KEY_SIZE)).decode("ascii")
    decode_key(encoded)

    if args.out:
        path = Path(args.out)
        path.write_text(encoded + "\n", encoding="utf-8")
        path.chmod(0o600)
        print(f"Key written to {path}")
    else:
        print(encoded)


if __name__ == "__main__":
    main()
