import pytest

from config import AUTO_BAN_THRESHOLD
from errors import Conflict, NotFound
from models.User import User
from services import moderation_service, post_service


def _report_from(db, make_user, post_id, count):
    for i in range(count):
        uid = f"reporter_{i}"
        make_user(uid)
        moderation_service.submit_report(db, post_id, uid, reason="spam" if i % 2 else None)


def test_threshold_is_five():
    assert AUTO_BAN_THRESHOLD == 5


def test_four_reports_take_no_action(db, make_user, make_post):
    make_user("bob")
    post = make_post("bob")
    _report_from(db, make_user, post.id, 4)

    db.expire_all()
    assert post_service.get_post(db, post.id)
    assert db.get(User, "bob").is_banned is False
    assert moderation_service.count_reports(db, post.id) == 4


def test_fifth_report_bans_author_and_removes_post(db, make_user, make_post):
    make_user("bob")
    post = make_post("bob")
    other = make_post("bob")
    _report_from(db, make_user, post.id, 5)

    db.expire_all()
    with pytest.raises(NotFound):
        post_service.get_post(db, post.id)
    assert db.get(User, "bob").is_banned is True
    # only the reported post goes away
    assert post_service.get_post(db, other.id)


def test_same_reporter_counts_once(db, make_user, make_post):
    make_user("bob")
    make_user("alice")
    post = make_post("bob")
    report = moderation_service.submit_report(db, post.id, "alice")
    assert report.reason == "No reason provided"

    with pytest.raises(Conflict):
        moderation_service.submit_report(db, post.id, "alice", reason="again")
    assert moderation_service.count_reports(db, post.id) == 1


def test_dismiss_report(db, make_user, make_post):
    make_user("bob")
    make_user("alice")
    post = make_post("bob")
    moderation_service.submit_report(db, post.id, "alice", reason="off-topic")

    moderation_service.dismiss_report(db, post.id, "alice")
    assert moderation_service.list_reports(db) == []
    with pytest.raises(NotFound):
        moderation_service.dismiss_report(db, post.id, "alice")
