import logging

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from tinylink.errors import ConflictError, NotFound, StoreError
from tinylink.models import Link, utcnow

logger = logging.getLogger("tinylink.crud")

def create_link(db: Session, code: str, target_url: str) -> Link:
    """Insert a link. The unique index on ``code`` is the only collision check."""
    link = Link(code=code, target_url=target_url, clicks=0)
    db.add(link)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError("This short code is already taken") from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to store link %s", code)
        raise StoreError("Server error") from exc
    db.refresh(link)
    return link

def get_link(db: Session, code: str) -> Link:
    link = db.query(Link).filter_by(code=code).first()
    if not link:
        raise NotFound()
    return link

def get_links(db: Session, q: str | None = None) -> list[Link]:
    query = db.query(Link)
    if q:
        query = query.filter(or_(Link.code.icontains(q, autoescape=True),
                                 Link.target_url.icontains(q, autoescape=True)))
    return query.order_by(Link.created_at.desc(), Link.id.desc()).all()

def count_links(db: Session) -> int:
    return db.query(Link).count()

def delete_link(db: Session, code: str) -> None:
    deleted = db.query(Link).filter_by(code=code).delete(synchronize_session=False)
    db.commit()
    if not deleted:
        raise NotFound()

def increment_clicks(db: Session, code: str) -> None:
    # Single UPDATE so concurrent redirects never lose a click
    updated = (
        db.query(Link)
        .filter_by(code=code)
        .update(
            {Link.clicks: Link.clicks + 1, Link.last_clicked: utcnow()},
            synchronize_session=False,
        )
    )
    db.commit()
    if not updated:
        raise NotFound()
