from models.User import User
from services import user_service


def as_user(uid):
    return {"X-User-Id": uid}


def signup(client, uid, username=None):
    resp = client.post("/users/", json={"username": username or uid}, headers=as_user(uid))
    assert resp.status_code == 201, resp.text
    return resp.json()


def publish(client, uid, **extra):
    body = {"prompt": "a lighthouse made of glass", "media_url": "https://cdn.example.com/l.png", **extra}
    resp = client.post("/posts/", json=body, headers=as_user(uid))
    assert resp.status_code == 201, resp.text
    return resp.json()


def test_signup_folds_username_case(client):
    user = signup(client, "uid-1", "Alice_01")
    assert user["username"] == "alice_01"
    assert user["display_name"] == "Alice_01"
    assert (user["followers_count"], user["following_count"]) == (0, 0)

    resp = client.get("/users/by-username/ALICE_01")
    assert resp.status_code == 200
    assert resp.json()["firebase_uid"] == "uid-1"

    resp = client.post("/users/", json={"username": "alice_01"}, headers=as_user("uid-2"))
    assert resp.status_code == 409


def test_signup_rejects_bad_username(client):
    resp = client.post("/users/", json={"username": "no spaces!"}, headers=as_user("uid-1"))
    assert resp.status_code == 422


def test_requests_without_identity_are_rejected(client):
    assert client.post("/posts/", json={"prompt": "x", "media_url": "y"}).status_code == 401


def test_settings_cannot_change_username(client):
    signup(client, "alice")
    resp = client.patch("/users/me", json={"bio": "  I draw foxes  "}, headers=as_user("alice"))
    assert resp.status_code == 200
    assert resp.json()["bio"] == "I draw foxes"
    assert resp.json()["username"] == "alice"


def test_like_flow_over_http(client):
    signup(client, "bob")
    signup(client, "alice")
    post = publish(client, "bob")

    resp = client.post(f"/posts/{post['id']}/like", json={"currently_liked": False}, headers=as_user("alice"))
    assert resp.json() == {"is_liked": True, "likes_count": 1}

    stale = client.post(f"/posts/{post['id']}/like", json={"currently_liked": False}, headers=as_user("alice"))
    assert stale.status_code == 409

    state = client.get(f"/posts/{post['id']}/is-liked", headers=as_user("alice"))
    assert state.json() == {"is_liked": True, "likes_count": 1}

    feed = client.get("/notifications/", headers=as_user("bob")).json()
    assert feed["unread_count"] == 1
    assert feed["notifications"][0]["type"] == "like"

    resp = client.post("/notifications/read-all", headers=as_user("bob"))
    assert resp.json() == {"unread_count": 0}


def test_follow_flow_over_http(client):
    signup(client, "alice")
    signup(client, "bob")

    assert client.post("/follows/bob", headers=as_user("alice")).status_code == 201
    assert client.post("/follows/bob", headers=as_user("alice")).status_code == 409
    assert client.post("/follows/alice", headers=as_user("alice")).status_code == 422

    profile = client.get("/users/bob", params={"current_user_id": "alice"}).json()
    assert profile["followers_count"] == 1
    assert profile["is_following"] is True
    assert profile["is_followed_by"] is False
    assert [u["firebase_uid"] for u in client.get("/follows/bob/followers").json()] == ["alice"]

    assert client.delete("/follows/bob", headers=as_user("alice")).status_code == 204
    assert client.get("/users/bob").json()["followers_count"] == 0
    assert client.delete("/follows/bob", headers=as_user("alice")).status_code == 404


def test_comment_deletion_is_author_only(client):
    signup(client, "bob")
    signup(client, "alice")
    post = publish(client, "bob")

    comment = client.post(f"/posts/{post['id']}/comments", json={"text": "so good"}, headers=as_user("alice")).json()
    resp = client.delete(f"/posts/{post['id']}/comments/{comment['id']}", headers=as_user("bob"))
    assert resp.status_code == 403
    resp = client.delete(f"/posts/{post['id']}/comments/{comment['id']}", headers=as_user("alice"))
    assert resp.status_code == 204
    assert client.get(f"/posts/{post['id']}").json()["comments_count"] == 0


def test_banned_user_cannot_post(client, db):
    signup(client, "bob")
    db.get(User, "bob").is_banned = True
    db.commit()

    resp = client.post("/posts/", json={"prompt": "x", "media_url": "https://cdn.example.com/x.png"},
                       headers=as_user("bob"))
    assert resp.status_code == 403


def test_reports_reach_admin_and_auto_moderate(client, db):
    signup(client, "bob")
    signup(client, "root")
    user_service.set_admin(db, "root")
    post = publish(client, "bob")

    for i in range(5):
        signup(client, f"reporter_{i}")
        resp = client.post(f"/posts/{post['id']}/report", json={"reason": "spam"}, headers=as_user(f"reporter_{i}"))
        assert resp.status_code == 201

    assert client.get(f"/posts/{post['id']}").status_code == 404
    assert client.get("/users/bob").json()["is_banned"] is True
    assert client.get("/admin/reports", headers=as_user("bob")).status_code == 403
    resp = client.get("/admin/reports", headers=as_user("root"))
    assert resp.status_code == 200
    assert resp.json() == []


def test_notification_socket_pushes_changes(client):
    signup(client, "bob")
    signup(client, "alice")
    post = publish(client, "bob")

    with client.websocket_connect("/notifications/ws/bob") as ws:
        assert ws.receive_json() == {"notifications": [], "unread_count": 0}
        client.post(f"/posts/{post['id']}/like", json={"currently_liked": False}, headers=as_user("alice"))
        update = ws.receive_json()
        assert update["unread_count"] == 1
        assert update["notifications"][0]["from_user_id"] == "alice"


def test_admin_role_is_granted_by_an_admin(client, db):
    signup(client, "root")
    signup(client, "alice")
    user_service.set_admin(db, "root")

    resp = client.put("/admin/users/alice/admin", json={"is_admin": True}, headers=as_user("alice"))
    assert resp.status_code == 403

    resp = client.put("/admin/users/alice/admin", json={"is_admin": True}, headers=as_user("root"))
    assert resp.status_code == 200
    assert resp.json()["is_admin"] is True
    assert client.get("/admin/reports", headers=as_user("alice")).status_code == 200

    resp = client.put("/admin/users/alice/admin", json={"is_admin": False}, headers=as_user("root"))
    assert resp.json()["is_admin"] is False
    assert client.get("/admin/reports", headers=as_user("alice")).status_code == 403

    resp = client.put("/admin/users/ghost/admin", json={"is_admin": True}, headers=as_user("root"))
    assert resp.status_code == 404
