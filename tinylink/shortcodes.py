"""Short-code allocation.

A code is reserved by inserting the link row: the unique index on
``links.code`` decides who wins, so there is no check-then-write window.
Random codes are a uniform draw from a fixed alphabet and are not meant
to be unguessable.
"""
import logging
import os
import re
import secrets
import string

from sqlalchemy.orm import Session

from tinylink import crud
from tinylink.errors import ConflictError, StoreError, ValidationError
from tinylink.models import Link

logger = logging.getLogger("tinylink.shortcodes")

ALPHABET = string.ascii_letters + string.digits
CODE_LENGTH = 6
CODE_PATTERN = re.compile(r"[A-Za-z0-9]{6,8}")
ALLOCATION_ATTEMPTS = int(os.getenv("CODE_ALLOCATION_ATTEMPTS", 5))

# Top-level routes a custom code would shadow
RESERVED = {"static", "health", "config"}


def generate_code(length: int = CODE_LENGTH) -> str:
    return "".join(secrets.choice(ALPHABET) for _ in range(length))


def validate_code(code: str) -> str:
    if not CODE_PATTERN.fullmatch(code or ""):
        raise ValidationError("Code must be 6-8 alphanumeric characters")
    if code in RESERVED:
        raise ValidationError(f"'{code}' is reserved")
    return code


def allocate(db: Session, target_url: str, requested_code: str | None = None,
             attempts: int = ALLOCATION_ATTEMPTS) -> Link:
    """Reserve a code for ``target_url`` and return the created link.

    A requested code is taken as-is or fails with ConflictError. Random
    codes are redrawn on collision up to ``attempts`` times, after which
    StoreError is raised.
    """
    if requested_code is not None:
        return crud.create_link(db, validate_code(requested_code), target_url)

    for attempt in range(1, attempts + 1):
        code = generate_code()
        if code in RESERVED:
            continue
        try:
            return crud.create_link(db, code, target_url)
        except ConflictError:
            logger.warning("Random code collision on %s (attempt %d/%d)", code, attempt, attempts)
    raise StoreError("Could not allocate a unique short code")
