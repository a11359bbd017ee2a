import pytest

from errors import NotFound, PermissionDenied, ValidationError
from models.Post import Post
from services import like_service, notification_service, post_service, user_service


def test_remix_counts_and_notifies_original_author(db, make_user, make_post):
    make_user("bob")
    make_user("alice")
    original = make_post("bob")

    remix = make_post("alice", prompt="the same fox, but neon", original_post_id=original.id)

    db.expire_all()
    assert db.get(Post, original.id).remix_count == 1
    notifications, unread = notification_service.get_notifications(db, "bob")
    assert unread == 1
    assert (notifications[0].type, notifications[0].post_id) == ("remix", remix.id)


def test_deleting_remix_decrements_original(db, make_user, make_post):
    make_user("bob")
    make_user("alice")
    original = make_post("bob")
    remix = make_post("alice", original_post_id=original.id)

    post_service.delete_post(db, remix.id, "alice")

    db.expire_all()
    assert db.get(Post, original.id).remix_count == 0
    with pytest.raises(NotFound):
        post_service.get_post(db, remix.id)


def test_deleting_original_keeps_remixes(db, make_user, make_post):
    make_user("bob")
    make_user("alice")
    original = make_post("bob")
    remix = make_post("alice", original_post_id=original.id)

    post_service.delete_post(db, original.id, "bob")

    db.expire_all()
    assert db.get(Post, remix.id).original_post_id is None


def test_remix_of_missing_post(db, make_user):
    make_user("alice")
    with pytest.raises(NotFound):
        post_service.create_post(db, "alice", "prompt", "https://cdn.example.com/x.png", original_post_id=42)


def test_invalid_post_input(db, make_user):
    make_user("alice")
    with pytest.raises(ValidationError):
        post_service.create_post(db, "alice", "  ", "https://cdn.example.com/x.png")
    with pytest.raises(ValidationError):
        post_service.create_post(db, "alice", "prompt", "https://cdn.example.com/x.gif", type="gif")


def test_only_author_or_admin_deletes(db, make_user, make_post):
    make_user("bob")
    make_user("alice")
    make_user("root")
    post = make_post("bob")
    like_service.toggle_like(db, post.id, "alice", currently_liked=False)

    with pytest.raises(PermissionDenied):
        post_service.delete_post(db, post.id, "alice")

    user_service.set_admin(db, "root")
    post_service.delete_post(db, post.id, "root")
    with pytest.raises(NotFound):
        post_service.get_post(db, post.id)
    assert not like_service.check_if_liked(db, post.id, "alice")


def test_feed_and_explore_orderings(db, make_user, make_post):
    make_user("bob")
    make_user("alice")
    first = make_post("bob")
    second = make_post("bob")
    hidden = make_post("bob", is_public=False)
    like_service.toggle_like(db, first.id, "alice", currently_liked=False)

    assert [p.id for p in post_service.get_feed(db)] == [second.id, first.id]
    assert post_service.get_explore(db, order_by="likes")[0].id == first.id
    assert hidden.id not in [p.id for p in post_service.get_user_posts(db, "bob")]
    with pytest.raises(ValidationError):
        post_service.get_explore(db, order_by="views")
