import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from tinylink import crud
from tinylink.errors import NotFound

logger = logging.getLogger("tinylink.redirects")

def resolve(db: Session, code: str) -> str:
    """Return the target URL for ``code`` and count the click.

    A failure to count the click is logged and swallowed: the redirect
    still happens.
    """
    if not code or "/" in code:
        raise NotFound()
    target_url = crud.get_link(db, code).target_url
    try:
        crud.increment_clicks(db, code)
    except NotFound:
        # Deleted between lookup and update
        logger.info("Link %s vanished before its click was recorded", code)
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to increment click for %s", code)
    return target_url
