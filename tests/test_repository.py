"""Tests for FirestoreRepository against the in-memory Firestore."""

from datetime import timedelta

import pytest
from firebase_admin import firestore

from sentinel.core.exceptions import StoreError
from sentinel.models.base import GeoLocation
from sentinel.models.group import Group
from sentinel.models.location import LocationShare
from sentinel.models.panic import PanicAlert
from sentinel.models.post import Post
from sentinel.models.user import User, UserUpdate
from sentinel.services.firestore_repository import (
    GROUPS,
    LOCATION_SHARES,
    POSTS,
    USERS,
)
from sentinel.utils.firestore_helpers import utcnow


def store_post(fake_db, post_id, age=timedelta(0), **fields):
    fields.setdefault("title", "Something happened")
    fields.setdefault("suburb", "Walmer")
    post = Post(**fields)
    document = post.to_document()
    document["created_at"] = utcnow() - age
    fake_db.data.setdefault(POSTS, {})[post_id] = document


class TestUsers:
    def test_get_user_absent_returns_none(self, repository):
        assert repository.get_user("nobody") is None

    def test_get_user_transport_fault_raises_store_error(self, repository, fake_db):
        fake_db.failing.add("get")
        with pytest.raises(StoreError):
            repository.get_user("uid-1")

    def test_create_user_keys_document_by_uid(self, repository, fake_db):
        user = repository.create_user(User(id="uid-1", email="a@x.com", suburb="Walmer"))

        stored = fake_db.docs(USERS)["uid-1"]
        assert "id" not in stored
        assert stored["email"] == "a@x.com"
        assert stored["notification_categories"] == ["Robbery", "GBV", "Hazard", "General"]
        assert stored["location_sharing_duration"] == 30
        assert stored["created_at"] == stored["updated_at"] == user.created_at

        loaded = repository.get_user("uid-1")
        assert loaded.id == "uid-1"
        assert loaded.groups == []

    def test_update_user_writes_only_set_fields(self, repository, fake_db):
        repository.create_user(User(id="uid-1", email="a@x.com", suburb="Walmer", dark_mode=True))
        before = fake_db.docs(USERS)["uid-1"]["updated_at"]

        fields = repository.update_user("uid-1", UserUpdate(suburb="Korsten", location_sharing_duration=60))

        stored = fake_db.docs(USERS)["uid-1"]
        assert fields == ["suburb", "locationSharingDuration"]
        assert stored["suburb"] == "Korsten"
        assert stored["location_sharing_duration"] == 60
        assert stored["dark_mode"] is True
        assert stored["updated_at"] >= before

    def test_update_missing_user_raises_store_error(self, repository):
        with pytest.raises(StoreError):
            repository.update_user("ghost", UserUpdate(dark_mode=True))

    def test_list_users_by_suburb_and_group(self, repository):
        repository.create_user(User(id="u1", email="a@x.com", suburb="Walmer", groups=["g1"]))
        repository.create_user(User(id="u2", email="b@x.com", suburb="Walmer"))
        repository.create_user(User(id="u3", email="c@x.com", suburb="Korsten", groups=["g1"]))

        assert {u.id for u in repository.list_users_by_suburb("Walmer")} == {"u1", "u2"}
        assert {u.id for u in repository.list_users_by_group("g1")} == {"u1", "u3"}

    def test_list_users_by_notification_category(self, repository):
        repository.create_user(User(id="u1", email="a@x.com", suburb="Walmer"))
        repository.create_user(User(id="u2", email="b@x.com", suburb="Walmer", notification_categories=["Theft"]))
        repository.create_user(User(id="u3", email="c@x.com", suburb="Korsten"))

        users = repository.list_users_by_notification_category("Walmer", "Hazard")

        assert [u.id for u in users] == ["u1"]

    def test_list_users_by_emails_chunks_in_queries(self, repository, fake_db):
        for i in range(23):
            repository.create_user(User(id=f"u{i}", email=f"user{i}@x.com", suburb="Walmer"))
        emails = [f"user{i}@x.com" for i in range(23)] + ["user0@x.com", "unknown@x.com"]
        fake_db.queries.clear()

        users = repository.list_users_by_emails(emails)

        assert len(users) == 23
        assert len({u.id for u in users}) == 23
        in_queries = [q for q in fake_db.queries if q[1][0][1] == "in"]
        assert len(in_queries) == 3
        assert all(len(filters[0][2]) <= 10 for _, filters in in_queries)

    def test_list_users_by_emails_empty(self, repository, fake_db):
        assert repository.list_users_by_emails([]) == []
        assert fake_db.queries == []

    def test_add_user_to_group_is_idempotent(self, repository, fake_db):
        repository.create_user(User(id="u1", email="a@x.com", suburb="Walmer"))

        repository.add_user_to_group("u1", "g1")
        repository.add_user_to_group("u1", "g1")

        assert fake_db.docs(USERS)["u1"]["groups"] == ["g1"]

    def test_clear_device_token(self, repository, fake_db):
        repository.create_user(User(id="u1", email="a@x.com", suburb="Walmer", fcm_token="dead"))
        repository.create_user(User(id="u2", email="b@x.com", suburb="Walmer", fcm_token="alive"))

        assert repository.clear_device_token("dead") == 1
        assert fake_db.docs(USERS)["u1"]["fcm_token"] is None
        assert fake_db.docs(USERS)["u2"]["fcm_token"] == "alive"


class TestGroups:
    def test_create_group_assigns_id_and_timestamp(self, repository, fake_db):
        group = repository.create_group(Group(name="Walmer Watch", suburb="Walmer", created_by="u1"))

        assert group.id
        assert group.created_at is not None
        assert fake_db.docs(GROUPS)[group.id]["name"] == "Walmer Watch"

    def test_create_group_with_owner_is_one_batch(self, repository, fake_db):
        repository.create_user(User(id="u1", email="a@x.com", suburb="Walmer"))

        group = repository.create_group_with_owner(Group(name="Walmer Watch", suburb="Walmer", created_by="u1"), "u1")

        assert fake_db.commits == 1
        assert fake_db.docs(GROUPS)[group.id]["created_by"] == "u1"
        assert fake_db.docs(USERS)["u1"]["groups"] == [group.id]

    def test_create_group_with_missing_owner_writes_nothing(self, repository, fake_db):
        with pytest.raises(StoreError):
            repository.create_group_with_owner(Group(name="Orphan", suburb="Walmer", created_by="ghost"), "ghost")

        assert fake_db.docs(GROUPS) == {}

    def test_get_group_and_list_by_suburb(self, repository):
        walmer = repository.create_group(Group(name="A", suburb="Walmer", created_by="u1"))
        repository.create_group(Group(name="B", suburb="Korsten", created_by="u1"))

        assert repository.get_group(walmer.id).name == "A"
        assert repository.get_group("missing") is None
        assert [g.name for g in repository.list_groups_by_suburb("Walmer")] == ["A"]


class TestPosts:
    def test_create_post_stores_geopoint(self, repository, fake_db):
        post = repository.create_post(Post(
            title="Suspicious car outside",
            suburb="Walmer",
            category="Hazard",
            location=GeoLocation(latitude=-33.98, longitude=25.58),
        ))

        stored = fake_db.docs(POSTS)[post.id]
        assert isinstance(stored["location"], firestore.GeoPoint)
        assert stored["created_at"] == post.created_at

        loaded = repository.list_posts(suburb="Walmer")[0]
        assert loaded.location.latitude == pytest.approx(-33.98)

    def test_list_posts_only_last_seven_days_newest_first(self, repository, fake_db):
        store_post(fake_db, "old", age=timedelta(days=8))
        store_post(fake_db, "older", age=timedelta(days=3))
        store_post(fake_db, "newer", age=timedelta(hours=1))

        posts = repository.list_posts(suburb="Walmer")

        assert [p.id for p in posts] == ["newer", "older"]

    def test_list_posts_filters(self, repository, fake_db):
        store_post(fake_db, "p1", category="Hazard")
        store_post(fake_db, "p2", category="Theft")
        store_post(fake_db, "p3", category="Hazard", suburb="Korsten")
        store_post(fake_db, "p4", category="Hazard", group_id="g1", suburb="Korsten")

        assert [p.id for p in repository.list_posts(suburb="Walmer", category="Hazard")] == ["p1"]
        assert [p.id for p in repository.list_posts(group_id="g1", suburb="Walmer")] == ["p4"]

    def test_list_posts_respects_limit(self, repository, fake_db):
        for i in range(5):
            store_post(fake_db, f"p{i}", age=timedelta(minutes=i))

        assert [p.id for p in repository.list_posts(suburb="Walmer", limit=2)] == ["p0", "p1"]

    def test_list_posts_by_location(self, repository, fake_db):
        store_post(fake_db, "near", location=GeoLocation(latitude=-33.9800, longitude=25.5800))
        store_post(fake_db, "far", location=GeoLocation(latitude=-33.9249, longitude=18.4241))
        store_post(fake_db, "nowhere")

        posts = repository.list_posts_by_location(-33.9810, 25.5810, 5.0)

        assert [p.id for p in posts] == ["near"]

    def test_list_group_posts_caps_at_fifty(self, repository, fake_db):
        for i in range(55):
            store_post(fake_db, f"p{i}", age=timedelta(minutes=i), group_id="g1")
        store_post(fake_db, "other", group_id="g2")

        posts = repository.list_group_posts("g1")

        assert len(posts) == 50
        assert posts[0].id == "p0"


class TestPanicAndLocation:
    def test_recent_panic_alerts_window(self, repository, fake_db):
        alert = repository.create_panic_alert(PanicAlert(user_id="u1", message="Help"))
        repository.create_panic_alert(PanicAlert(user_id="u2"))
        stale = repository.create_panic_alert(PanicAlert(user_id="u1"))
        fake_db.data["panicAlerts"][stale.id]["created_at"] = utcnow() - timedelta(hours=30)

        alerts = repository.list_recent_panic_alerts("u1", hours=24)

        assert [a.id for a in alerts] == [alert.id]
        assert alerts[0].message == "Help"

    @pytest.mark.parametrize("duration", [15, 30, 120])
    def test_location_share_expiry(self, repository, fake_db, duration):
        share = repository.create_location_share(LocationShare(
            user_id="u1",
            contacts=["b@x.com"],
            duration=duration,
            location=GeoLocation(latitude=0, longitude=0),
        ))

        assert share.expires_at == share.created_at + timedelta(minutes=duration)
        stored = fake_db.docs(LOCATION_SHARES)[share.id]
        assert stored["expires_at"] - stored["created_at"] == timedelta(minutes=duration)

    def test_delete_expired_location_shares(self, repository, fake_db):
        live = repository.create_location_share(LocationShare(user_id="u1", duration=30))
        expired = repository.create_location_share(LocationShare(user_id="u1", duration=15))
        fake_db.data[LOCATION_SHARES][expired.id]["expires_at"] = utcnow() - timedelta(minutes=1)

        assert repository.delete_expired_location_shares() is True
        assert list(fake_db.docs(LOCATION_SHARES)) == [live.id]

        # Nothing left to delete is still a success
        assert repository.delete_expired_location_shares() is True

    def test_delete_expired_location_shares_failure_returns_false(self, repository, fake_db):
        expired = repository.create_location_share(LocationShare(user_id="u1", duration=15))
        fake_db.data[LOCATION_SHARES][expired.id]["expires_at"] = utcnow() - timedelta(minutes=1)
        fake_db.failing.add("commit")

        assert repository.delete_expired_location_shares() is False
        assert expired.id in fake_db.docs(LOCATION_SHARES)
