#!/usr/bin/env python3
"""
Generate a bcrypt password hash for attar.hashed_verifier.
Usage: python scripts/hash_password.py <user> <password>
"""

import sys

from attar.auth import hash_password


def main():
    if len(sys.argv) != 3:
        print("Usage: python scripts/hash_password.py <user> <password>")
        sys.exit(1)

    user, password = sys.argv[1], sys.argv[2]
    hashed = hash_password(password)

    print("\nAdd this entry to the users map passed to hashed_verifier:\n")
    print(f'    "{user}": "{hashed}",')
    print()


if __name__ == "__main__":
    main()
