from concurrent.futures import ThreadPoolExecutor

import pytest
from sqlalchemy.exc import OperationalError

from tinylink import crud, redirects
from tinylink.errors import NotFound


def test_resolve_returns_target_and_counts_click(db):
    crud.create_link(db, "ABCDEF", "https://example.com")

    assert redirects.resolve(db, "ABCDEF") == "https://example.com"

    db.expire_all()
    link = crud.get_link(db, "ABCDEF")
    assert link.clicks == 1
    assert link.last_clicked is not None


@pytest.mark.parametrize("code", ["", "ABCDEF/x", "/ABCDEF", "NOPE00", "abcdef"])
def test_resolve_not_found(db, code):
    crud.create_link(db, "ABCDEF", "https://example.com")

    with pytest.raises(NotFound):
        redirects.resolve(db, code)

    db.expire_all()
    assert crud.get_link(db, "ABCDEF").clicks == 0


def test_resolve_leaves_other_links_alone(db):
    crud.create_link(db, "FIRST1", "https://example.com/1")
    crud.create_link(db, "SECND2", "https://example.com/2")
    before = crud.get_link(db, "SECND2")
    before_row = (before.clicks, before.last_clicked, before.target_url)

    redirects.resolve(db, "FIRST1")

    db.expire_all()
    after = crud.get_link(db, "SECND2")
    assert (after.clicks, after.last_clicked, after.target_url) == before_row


def test_failed_click_recording_still_redirects(db, monkeypatch):
    crud.create_link(db, "ABCDEF", "https://example.com")

    def broken(db, code):
        raise OperationalError("UPDATE links", {}, Exception("disk I/O error"))

    monkeypatch.setattr(crud, "increment_clicks", broken)

    assert redirects.resolve(db, "ABCDEF") == "https://example.com"


def test_concurrent_resolves_lose_no_clicks(db, session_factory):
    crud.create_link(db, "HOTLNK", "https://example.com")
    visits = 40

    def visit(_):
        session = session_factory()
        try:
            return redirects.resolve(session, "HOTLNK")
        finally:
            session.close()

    with ThreadPoolExecutor(max_workers=8) as pool:
        targets = list(pool.map(visit, range(visits)))

    assert targets == ["https://example.com"] * visits
    db.expire_all()
    assert crud.get_link(db, "HOTLNK").clicks == visits
