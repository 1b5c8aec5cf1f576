"""
Exam bank loading and encryption.

An exam bank is a JSON document holding one or more exams with their
questions and answer keys. It is loaded only by the gateway side; the
answer keys never reach the session core. Banks can be stored as plain
JSON or Fernet-encrypted with a key file or a password.
"""

import base64
import json
from pathlib import Path
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

SALT_PREFIX = b'SALT'
SALT_LENGTH = 16


def derive_key_from_password(password: str, salt: bytes) -> bytes:
    """Derive a Fernet key from a password using PBKDF2."""
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=32,
        salt=salt,
        iterations=480000,
    )
    key_material = kdf.derive(password.encode('utf-8'))
    return base64.urlsafe_b64encode(key_material)


def encrypt_bank(plaintext: bytes, key: bytes, salt: Optional[bytes] = None) -> bytes:
    """
    Encrypt a plaintext bank.

    Args:
        plaintext: Bank JSON bytes
        key: Fernet key (from a key file or derive_key_from_password)
        salt: Salt used to derive key from a password; stored as a prefix

    Returns:
        Encrypted bytes, prefixed with SALT + salt for password-based keys
    """
    token = Fernet(key).encrypt(plaintext)
    if salt:
        return SALT_PREFIX + salt + token
    return token


def decrypt_bank(encrypted_data: bytes, key_input: str) -> dict:
    """
    Decrypt an encrypted bank.

    Args:
        encrypted_data: Raw file contents
        key_input: Password (for SALT-prefixed files) or base64 Fernet key

    Raises:
        ValueError: If the key is wrong or the payload is not valid JSON
    """
    if encrypted_data.startswith(SALT_PREFIX):
        start = len(SALT_PREFIX)
        salt = encrypted_data[start:start + SALT_LENGTH]
        encrypted_data = encrypted_data[start + SALT_LENGTH:]
        key = derive_key_from_password(key_input, salt)
    else:
        key = key_input.encode('utf-8')

    try:
        decrypted_data = Fernet(key).decrypt(encrypted_data)
    except (InvalidToken, ValueError) as e:
        raise ValueError("Failed to decrypt the exam bank (wrong key or password?)") from e

    try:
        return json.loads(decrypted_data)
    except json.JSONDecodeError as e:
        raise ValueError(f"Decrypted bank is not valid JSON: {e}") from e


def load_bank(bank_path: Path, key_input: Optional[str] = None) -> dict:
    """
    Load an exam bank from plain JSON (.json) or an encrypted file.

    Raises:
        FileNotFoundError: If the bank file doesn't exist
        ValueError: If the bank cannot be decrypted, parsed or validated
    """
    bank_path = Path(bank_path)
    if bank_path.suffix.lower() == '.json':
        with open(bank_path, 'r', encoding='utf-8') as f:
            try:
                bank = json.load(f)
            except json.JSONDecodeError as e:
                raise ValueError(f"Invalid JSON in bank file: {e}") from e
    else:
        if not key_input:
            raise ValueError("An encryption key or password is required for encrypted banks")
        with open(bank_path, 'rb') as f:
            bank = decrypt_bank(f.read(), key_input)

    is_valid, error_message = validate_bank(bank)
    if not is_valid:
        raise ValueError(f"Invalid bank: {error_message}")
    return bank


def validate_bank(bank: dict) -> tuple[bool, str]:
    """
    Check the structure of an exam bank.

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not isinstance(bank, dict) or not isinstance(bank.get('exams'), list):
        return False, "Bank must be an object with an 'exams' list"

    codes = set()
    for exam in bank['exams']:
        code = str(exam.get('code', '')).strip().upper()
        if not code:
            return False, "Every exam needs a code"
        if code in codes:
            return False, f"Duplicate exam code '{code}'"
        codes.add(code)

        time_limit = exam.get('time_limit')
        if time_limit is not None and (not isinstance(time_limit, int) or time_limit < 1):
            return False, f"Exam '{code}': time_limit must be a positive integer or null"

        question_ids = set()
        for question in exam.get('questions', []):
            qid = str(question.get('id', ''))
            if not qid:
                return False, f"Exam '{code}': every question needs an id"
            if qid in question_ids:
                return False, f"Exam '{code}': duplicate question id '{qid}'"
            question_ids.add(qid)

            options = question.get('options') or []
            if len(options) < 2:
                return False, f"Question '{qid}': needs at least two options"

            answer = str(question.get('answer', '')).strip().upper()
            if len(answer) != 1 or not ('A' <= answer < chr(65 + len(options))):
                return False, f"Question '{qid}': answer must be a letter between A and {chr(64 + len(options))}"

    return True, ""
