import pytest

from database import SessionLocal
from errors import NotFound
from services import follow_service, like_service, notification_service


def test_like_fans_in_to_author(db, make_user, make_post):
    make_user("bob")
    make_user("alice", photo_url="https://cdn.example.com/alice.png")
    post = make_post("bob")
    assert notification_service.get_unread_count(db, "bob") == 0

    like_service.toggle_like(db, post.id, "alice", currently_liked=False)

    notifications, unread = notification_service.get_notifications(db, "bob")
    assert unread == 1
    assert len(notifications) == 1
    entry = notifications[0]
    assert (entry.type, entry.from_user_id, entry.from_username, entry.post_id, entry.read) == \
        ("like", "alice", "alice", post.id, False)
    assert entry.from_user_photo == "https://cdn.example.com/alice.png"


def test_self_like_creates_no_notification(db, make_user, make_post):
    make_user("bob")
    post = make_post("bob")
    like_service.toggle_like(db, post.id, "bob", currently_liked=False)
    assert notification_service.get_notifications(db, "bob") == ([], 0)


def test_relike_does_not_duplicate_entry(db, make_user, make_post):
    make_user("bob")
    make_user("alice")
    post = make_post("bob")
    like_service.toggle_like(db, post.id, "alice", currently_liked=False)
    like_service.toggle_like(db, post.id, "alice", currently_liked=True)
    like_service.toggle_like(db, post.id, "alice", currently_liked=False)

    notifications, unread = notification_service.get_notifications(db, "bob")
    assert len(notifications) == 1
    assert unread == 1


def test_mark_one_read_recomputes_unread(db, make_user):
    for uid in ("bob", "alice", "carol"):
        make_user(uid)
    follow_service.follow_user(db, "alice", "bob")
    follow_service.follow_user(db, "carol", "bob")
    notifications, unread = notification_service.get_notifications(db, "bob")
    assert unread == 2

    assert notification_service.mark_notification_as_read(db, "bob", notifications[0].id) == 1
    # marking the same entry again changes nothing
    assert notification_service.mark_notification_as_read(db, "bob", notifications[0].id) == 1

    with pytest.raises(NotFound):
        notification_service.mark_notification_as_read(db, "alice", notifications[1].id)


def test_mark_all_read_is_idempotent(db, make_user):
    for uid in ("bob", "alice", "carol"):
        make_user(uid)
    follow_service.follow_user(db, "alice", "bob")
    follow_service.follow_user(db, "carol", "bob")

    assert notification_service.mark_all_notifications_as_read(db, "bob") == 0
    first, unread = notification_service.get_notifications(db, "bob")
    assert unread == 0
    assert all(n.read for n in first)

    assert notification_service.mark_all_notifications_as_read(db, "bob") == 0
    second, unread = notification_service.get_notifications(db, "bob")
    assert unread == 0
    assert second == first


def test_entries_are_bounded_per_recipient(db, make_user, monkeypatch):
    monkeypatch.setattr(notification_service, "NOTIFICATION_MAX_ENTRIES", 2)
    make_user("bob")
    for uid in ("alice", "carol", "dave"):
        make_user(uid)
        follow_service.follow_user(db, uid, "bob")

    notifications, unread = notification_service.get_notifications(db, "bob")
    assert [n.from_user_id for n in notifications] == ["dave", "carol"]
    assert unread == 2


def test_pagination_with_before_id(db, make_user):
    make_user("bob")
    for uid in ("alice", "carol", "dave"):
        make_user(uid)
        follow_service.follow_user(db, uid, "bob")

    page, _ = notification_service.get_notifications(db, "bob", limit=2)
    rest, _ = notification_service.get_notifications(db, "bob", limit=2, before_id=page[-1].id)
    assert [n.from_user_id for n in page + rest] == ["dave", "carol", "alice"]


def test_subscription_delivers_initial_and_changes(db, make_user, make_post):
    make_user("bob")
    make_user("alice")
    make_user("carol")
    post = make_post("bob")
    received = []

    unsubscribe = notification_service.subscribe_to_notifications(
        db, "bob", lambda items, count: received.append((items, count))
    )
    assert received == [([], 0)]

    like_service.toggle_like(db, post.id, "alice", currently_liked=False)
    assert received[-1][1] == 1
    assert received[-1][0][0].type == "like"

    unsubscribe()
    like_service.toggle_like(db, post.id, "carol", currently_liked=False)
    assert len(received) == 2


def test_stream_is_restartable(db, make_user, make_post):
    make_user("bob")
    make_user("alice")
    post = make_post("bob")

    stream = notification_service.notification_stream(SessionLocal, "bob")
    assert next(stream) == ([], 0)
    like_service.toggle_like(db, post.id, "alice", currently_liked=False)
    items, unread = next(stream)
    assert unread == 1
    stream.close()
    assert not notification_service.hub.has_subscribers("bob")

    restarted = notification_service.notification_stream(SessionLocal, "bob")
    items_again, unread_again = next(restarted)
    assert unread_again == 1
    assert [n.id for n in items_again] == [n.id for n in items]
    restarted.close()
