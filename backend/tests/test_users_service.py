"""
Tests for user accounts and login
"""
import pytest

from core.errors import AuthenticationError, Conflict, NotFound
from models.analytics import ClientInfo
from models.user import UserCreate, UserUpdate
from services.auth import decode_access_token
from services.users import UserService


@pytest.fixture
def service(db):
    return UserService(db)


class TestLogin:

    async def test_login_issues_token_and_records_event(self, db, service, make_user):
        user = await make_user(username="alice", password="wonderland")
        client = ClientInfo(ip_address="10.0.0.5", user_agent="pytest")

        token, logged_in = await service.login("alice", "wonderland", client)

        assert decode_access_token(token) == user["id"]
        assert logged_in.username == "alice"
        assert logged_in.last_login_at is not None
        event = await db.analytics_events.find_one({"action_type": "login"})
        assert event["user_id"] == user["id"]
        assert event["ip_address"] == "10.0.0.5"
        print("✓ Login returned a token and logged the event")

    async def test_wrong_password(self, service, make_user):
        await make_user(username="alice", password="wonderland")
        with pytest.raises(AuthenticationError, match="Invalid credentials"):
            await service.login("alice", "looking-glass")

    async def test_unknown_user(self, service):
        with pytest.raises(AuthenticationError, match="Invalid credentials"):
            await service.login("nobody", "whatever")

    async def test_login_survives_analytics_failure(self, db, faulty_db, make_user):
        await make_user(username="alice", password="wonderland")
        service = UserService(faulty_db({"analytics_events": ["insert_one"]}))

        token, _ = await service.login("alice", "wonderland")
        assert token


class TestUserAdministration:

    async def test_create_with_generated_password(self, db, service):
        created = await service.create_user(UserCreate(username="bob"))

        assert created.user.role == "user"
        assert len(created.password) == 12
        token, _ = await service.login("bob", created.password)
        assert token
        stored = await db.users.find_one({"username": "bob"})
        assert stored["password_hash"] != created.password

    async def test_duplicate_username(self, service, make_user):
        await make_user(username="carol")
        with pytest.raises(Conflict):
            await service.create_user(UserCreate(username="carol", password="secret1"))

    async def test_update_user(self, service, make_user):
        user = await make_user(username="dave")
        updated = await service.update_user(user["id"], UserUpdate(role="admin"))
        assert updated.role == "admin"
        assert updated.username == "dave"

    async def test_update_to_taken_username(self, service, make_user):
        await make_user(username="erin")
        frank = await make_user(username="frank")
        with pytest.raises(Conflict):
            await service.update_user(frank["id"], UserUpdate(username="erin"))

    async def test_update_missing_user(self, service):
        with pytest.raises(NotFound):
            await service.update_user("missing", UserUpdate(role="admin"))

    async def test_public_fields_only(self, service, make_user):
        user = await make_user()
        fetched = await service.get_user(user["id"])
        assert "password_hash" not in fetched.model_dump()

    async def test_delete_removes_grants(self, db, service, make_user, make_collection):
        owner = await make_user()
        viewer = await make_user()
        collection = await make_collection(owner, accessible_user_ids=[viewer["id"], owner["id"]])

        await service.delete_user(viewer["id"])

        assert await db.users.count_documents({"id": viewer["id"]}) == 0
        saved = await db.collections.find_one({"id": collection["id"]})
        assert saved["accessible_user_ids"] == [owner["id"]]
        with pytest.raises(NotFound):
            await service.delete_user(viewer["id"])


class TestBulkOperations:

    async def test_bulk_create_reports_each_entry(self, service, make_user):
        await make_user(username="taken")

        result = await service.bulk_create_users([
            UserCreate(username="new1"),
            UserCreate(username="taken"),
            UserCreate(username="new2", role="admin"),
        ])

        assert result.total_created == 2
        assert result.total_failed == 1
        assert result.errors[0].username == "taken"
        assert [c.user.username for c in result.created_users] == ["new1", "new2"]
        print(f"✓ Bulk create: {result.total_created} created, {result.total_failed} failed")

    async def test_bulk_create_malformed_entry_fails_alone(self, db, service):
        """A short password in one raw entry must not reject the whole batch"""
        result = await service.bulk_create_users([
            {"username": "ok1"},
            {"username": "bad", "password": "abc"},
            {"role": "user"},
            {"username": "ok2", "password": "long-enough"},
        ])

        assert result.total_created == 2
        assert result.total_failed == 2
        assert [c.user.username for c in result.created_users] == ["ok1", "ok2"]
        assert result.errors[0].username == "bad"
        assert result.errors[0].error.startswith("password:")
        assert result.errors[1].username == ""
        assert result.errors[1].error.startswith("username:")
        assert await db.users.count_documents({"username": "bad"}) == 0
        print("✓ Malformed bulk entries reported per item")

    async def test_bulk_delete(self, db, service, make_user, make_collection):
        owner = await make_user()
        u1 = await make_user()
        u2 = await make_user()
        collection = await make_collection(owner, accessible_user_ids=[u1["id"], u2["id"]])

        deleted = await service.bulk_delete_users([u1["id"], u2["id"], "missing"])

        assert deleted == 2
        saved = await db.collections.find_one({"id": collection["id"]})
        assert saved["accessible_user_ids"] == []


class TestAdminSeed:

    async def test_seeds_when_no_admin(self, db, service):
        created = await service.ensure_admin_user("root", "root-pass")
        assert created.user.role == "admin"
        assert await service.ensure_admin_user("root", "root-pass") is None
        assert await db.users.count_documents({"role": "admin"}) == 1

    async def test_skips_when_admin_exists(self, service, make_user):
        await make_user(role="admin")
        assert await service.ensure_admin_user("root", "root-pass") is None
