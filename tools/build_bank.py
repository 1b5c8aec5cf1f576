#!/usr/bin/env python3
"""
build_bank.py - Validate and encrypt plaintext JSON exam banks.

Usage with key file:
    python tools/build_bank.py --in exams.json --out banks/exams.enc --key-file EXAMS.key

Usage with a new key file:
    python tools/build_bank.py --in exams.json --out banks/exams.enc --new-key-file EXAMS.key

Usage with password:
    python tools/build_bank.py --in exams.json --out banks/exams.enc --password
"""

import argparse
import getpass
import hashlib
import json
import os
import sys
from pathlib import Path

from cryptography.fernet import Fernet

sys.path.insert(0, str(Path(__file__).parent.parent))

from examguard.bank import SALT_LENGTH, derive_key_from_password, encrypt_bank, validate_bank


def read_key(key_file: str = None, new_key_file: str = None, use_password: bool = False):
    """Return (key, salt); salt is only set for password-based encryption."""
    if use_password:
        password = getpass.getpass("Enter encryption password: ")
        password_confirm = getpass.getpass("Confirm password: ")

        if password != password_confirm:
            raise ValueError("Passwords do not match")
        if len(password) < 8:
            raise ValueError("Password must be at least 8 characters")

        salt = os.urandom(SALT_LENGTH)
        print("[OK] Using password-based encryption")
        return derive_key_from_password(password, salt), salt

    if new_key_file:
        key = Fernet.generate_key()
        with open(new_key_file, 'wb') as f:
            f.write(key)
        print(f"[OK] New key written to {new_key_file}")
        print("[!] SECURITY: Store this key securely. Never commit it to version control.")
        return key, None

    with open(key_file, 'rb') as f:
        key = f.read().strip()
    print("[OK] Using key file encryption")
    return key, None


def build_bank(in_file: str, out_file: str, key_file: str = None,
               new_key_file: str = None, use_password: bool = False) -> None:
    """Validate and encrypt a plaintext JSON exam bank."""
    try:
        with open(in_file, 'rb') as f:
            plaintext = f.read()

        try:
            bank_data = json.loads(plaintext)
        except json.JSONDecodeError as e:
            print(f"[ERROR] Invalid JSON in input file: {e}", file=sys.stderr)
            sys.exit(1)

        is_valid, error_message = validate_bank(bank_data)
        if not is_valid:
            print(f"[ERROR] Invalid bank: {error_message}", file=sys.stderr)
            sys.exit(1)

        print("[OK] Input bank validated")
        for exam in bank_data['exams']:
            limit = exam.get('time_limit')
            limit_text = f"{limit} minutes" if limit else "no time limit yet"
            print(f"  {exam['code']}: {len(exam.get('questions', []))} questions, {limit_text}")

        key, salt = read_key(key_file, new_key_file, use_password)
        final_data = encrypt_bank(plaintext, key, salt)
        sha256_hash = hashlib.sha256(final_data).hexdigest()

        Path(out_file).parent.mkdir(parents=True, exist_ok=True)
        with open(out_file, 'wb') as f:
            f.write(final_data)

        print(f"\n[OK] Success: Bank encrypted")
        print(f"  Input: {in_file} ({len(plaintext)} bytes)")
        print(f"  Output: {out_file} ({len(final_data)} bytes)")
        print(f"  Method: {'Password-based' if salt else 'Key file'}")
        print(f"  SHA256: {sha256_hash}")

    except FileNotFoundError as e:
        print(f"[ERROR] File not found: {e}", file=sys.stderr)
        sys.exit(1)
    except ValueError as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        sys.exit(1)


def main():
    parser = argparse.ArgumentParser(
        description="Validate and encrypt a plaintext JSON exam bank.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python tools/build_bank.py --in exams.json --out banks/exams.enc --new-key-file EXAMS.key
  python tools/build_bank.py --in exams.json --out banks/exams.enc --password

Notes:
  - The bank is validated before encryption (codes, question ids, answer letters)
  - Output directory will be created if it doesn't exist
  - Produces SHA256 checksum for verification
        """
    )
    parser.add_argument("--in", dest="in_file", required=True, help="Input plaintext JSON bank")
    parser.add_argument("--out", required=True, help="Output encrypted bank file (.enc)")

    method = parser.add_mutually_exclusive_group(required=True)
    method.add_argument("--key-file", help="File containing an existing Fernet key")
    method.add_argument("--new-key-file", help="Generate a new Fernet key and write it here")
    method.add_argument("--password", action="store_true",
                        help="Use password-based encryption instead of a key file")

    args = parser.parse_args()
    build_bank(args.in_file, args.out, args.key_file, args.new_key_file, args.password)


if __name__ == "__main__":
    main()
