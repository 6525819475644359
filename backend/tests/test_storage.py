"""
Tests for the document stores and the collection repositories.
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from bson import ObjectId
from pymongo.errors import DuplicateKeyError

from cartgenie.core.exceptions import DuplicateDocumentError
from cartgenie.models import BloodTestRecord, Product, ScanHistory, UserProfile
from cartgenie.storage import (
    ASCENDING,
    DESCENDING,
    INDEXES,
    CredentialStorage,
    HistoryStorage,
    IndexSpec,
    LocalStorage,
    MongoStorage,
    ProductStorage,
    ProfileStorage,
    create_document_store,
)
from cartgenie.config.settings import Settings


@pytest.fixture
def local(tmp_path):
    return LocalStorage(str(tmp_path), indexes=INDEXES)


class TestLocalStorage:

    @pytest.mark.asyncio
    async def test_insert_and_find(self, local):
        doc_id = await local.insert_one("things", {"name": "apple", "qty": 2})
        found = await local.find_one("things", {"_id": doc_id})
        assert found["name"] == "apple"
        assert found["_id"] == doc_id
        assert await local.find_one("things", {"name": "pear"}) is None

    @pytest.mark.asyncio
    async def test_missing_field_matches_none(self, local):
        await local.insert_one("things", {"name": "apple"})
        assert await local.find_one("things", {"color": None}) is not None

    @pytest.mark.asyncio
    async def test_sort_skip_limit(self, local):
        for qty in (3, 1, 2):
            await local.insert_one("things", {"qty": qty})
        ascending = await local.find("things", sort=[("qty", ASCENDING)])
        assert [d["qty"] for d in ascending] == [1, 2, 3]
        page = await local.find("things", sort=[("qty", DESCENDING)], skip=1, limit=1)
        assert [d["qty"] for d in page] == [2]
        assert await local.count("things") == 3

    @pytest.mark.asyncio
    async def test_update_with_dotted_keys(self, local):
        doc_id = await local.insert_one("things", {"name": "apple", "meta": {"a": 1, "b": 2}})
        assert await local.update_one("things", {"_id": doc_id}, {"meta.b": 3, "name": "pear"})
        found = await local.find_one("things", {"_id": doc_id})
        assert found["meta"] == {"a": 1, "b": 3}
        assert found["name"] == "pear"
        assert not await local.update_one("things", {"_id": "missing"}, {"name": "x"})

    @pytest.mark.asyncio
    async def test_datetimes_are_stored_as_iso_strings(self, local):
        now = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        doc_id = await local.insert_one("things", {"at": now})
        found = await local.find_one("things", {"_id": doc_id})
        assert datetime.fromisoformat(found["at"]) == now

    @pytest.mark.asyncio
    async def test_unique_index(self, local):
        await local.insert_one("products", {"barcode": "7290000000001"})
        with pytest.raises(DuplicateDocumentError) as exc_info:
            await local.insert_one("products", {"barcode": "7290000000001"})
        assert exc_info.value.field == "barcode"

    @pytest.mark.asyncio
    async def test_sparse_unique_index_skips_missing_values(self, tmp_path):
        store = LocalStorage(str(tmp_path), indexes=[IndexSpec("people", "google_id", unique=True, sparse=True)])
        await store.insert_one("people", {"name": "a"})
        await store.insert_one("people", {"name": "b"})
        await store.insert_one("people", {"name": "c", "google_id": "g1"})
        with pytest.raises(DuplicateDocumentError):
            await store.insert_one("people", {"name": "d", "google_id": "g1"})

    @pytest.mark.asyncio
    async def test_delete(self, local):
        first = await local.insert_one("things", {"kind": "x"})
        await local.insert_one("things", {"kind": "x"})
        await local.insert_one("things", {"kind": "y"})
        assert await local.delete_one("things", {"_id": first})
        assert not await local.delete_one("things", {"_id": first})
        assert await local.delete_many("things", {"kind": "x"}) == 1
        assert await local.count("things") == 1

    @pytest.mark.asyncio
    async def test_unsafe_ids_are_not_found(self, local):
        assert await local.find_one("things", {"_id": "../etc/passwd"}) is None
        with pytest.raises(ValueError):
            await local.insert_one("things", {"_id": "../escape"})


def mongo_collection():
    """A collection double with pymongo's async method shapes."""
    collection = MagicMock()
    for method in ("insert_one", "find_one", "count_documents", "update_one",
                   "delete_one", "delete_many", "create_index"):
        setattr(collection, method, AsyncMock())
    cursor = MagicMock()
    cursor.sort.return_value = cursor
    cursor.skip.return_value = cursor
    cursor.limit.return_value = cursor
    cursor.to_list = AsyncMock(return_value=[])
    collection.find.return_value = cursor
    return collection


@pytest.fixture
def collection():
    return mongo_collection()


@pytest.fixture
def mongo(collection):
    database = MagicMock()
    database.__getitem__.return_value = collection
    client = MagicMock()
    client.__getitem__.return_value = database
    client.admin.command = AsyncMock(return_value={"ok": 1.0})
    client.close = AsyncMock()
    return MongoStorage("mongodb://unused", "cartgenie", client=client)


class TestMongoStorage:

    @pytest.mark.asyncio
    async def test_insert_assigns_string_id(self, mongo, collection):
        document = {"name": "apple"}
        doc_id = await mongo.insert_one("things", document)
        stored = collection.insert_one.call_args.args[0]
        assert stored == {"_id": doc_id, "name": "apple"}
        assert isinstance(doc_id, str)
        assert "_id" not in document

    @pytest.mark.asyncio
    async def test_duplicate_key_is_mapped(self, mongo, collection):
        collection.insert_one.side_effect = DuplicateKeyError(
            "E11000 duplicate key error", 11000, {"keyValue": {"username": "dana"}}
        )
        with pytest.raises(DuplicateDocumentError) as exc_info:
            await mongo.insert_one("login_info", {"username": "dana"})
        assert exc_info.value.collection == "login_info"
        assert exc_info.value.field == "username"
        assert exc_info.value.value == "dana"

    @pytest.mark.asyncio
    async def test_duplicate_key_on_update(self, mongo, collection):
        collection.update_one.side_effect = DuplicateKeyError("E11000", 11000, {"keyValue": {"email": "a@b.c"}})
        with pytest.raises(DuplicateDocumentError, match="login_info.email"):
            await mongo.update_one("login_info", {"username": "dana"}, {"email": "a@b.c"})

    @pytest.mark.asyncio
    async def test_update_sets_fields(self, mongo, collection):
        collection.update_one.return_value = MagicMock(matched_count=0)
        assert await mongo.update_one("userdata", {"username": "ghost"}, {"is_completed": True}) is False
        collection.update_one.assert_awaited_once_with({"username": "ghost"}, {"$set": {"is_completed": True}})

    @pytest.mark.asyncio
    async def test_find_applies_sort_skip_limit(self, mongo, collection):
        cursor = collection.find.return_value
        cursor.to_list.return_value = [{"_id": "1", "qty": 2}]
        page = await mongo.find("things", {"kind": "fruit"}, sort=[("qty", DESCENDING)], skip=1, limit=1)
        assert page == [{"_id": "1", "qty": 2}]
        collection.find.assert_called_once_with({"kind": "fruit"})
        cursor.sort.assert_called_once_with([("qty", DESCENDING)])
        cursor.skip.assert_called_once_with(1)
        cursor.limit.assert_called_once_with(1)

    @pytest.mark.asyncio
    async def test_find_without_paging(self, mongo, collection):
        await mongo.find("things")
        cursor = collection.find.return_value
        collection.find.assert_called_once_with({})
        cursor.sort.assert_not_called()
        cursor.skip.assert_not_called()
        cursor.limit.assert_not_called()

    @pytest.mark.asyncio
    async def test_sparse_index_only_covers_strings(self, mongo, collection):
        await mongo.ensure_indexes(INDEXES)
        calls = collection.create_index.await_args_list
        google = [c for c in calls if c.args == ("google_id",)]
        assert google[0].kwargs == {"unique": True, "partialFilterExpression": {"google_id": {"$type": "string"}}}
        history = [c for c in calls if c.args == ("username",) and not c.kwargs["unique"]]
        assert len(history) == 3

    @pytest.mark.asyncio
    async def test_ping(self, mongo):
        await mongo.ping()
        mongo.client.admin.command.assert_awaited_once_with("ping")

    @pytest.mark.asyncio
    async def test_product_with_object_id(self, mongo, collection):
        object_id = ObjectId()
        collection.find_one.return_value = {"_id": object_id, "barcode": "7290000000001", "name": "Milk 3%"}
        product = await ProductStorage(mongo).get_by_barcode("7290000000001")
        assert product.id == str(object_id)
        results = await ProductStorage(mongo).lookup_batch(["7290000000001"])
        assert results[0].name == "Milk 3%"
        assert results[0].not_found is False


class TestStoreFactory:

    def test_local(self, tmp_path):
        config = Settings(storage_type="local", local_storage_path=str(tmp_path))
        assert isinstance(create_document_store(config), LocalStorage)

    def test_unknown_type(self):
        with pytest.raises(ValueError, match="Unsupported storage type"):
            create_document_store(Settings(storage_type="sqlite"))


class TestCredentialStorage:

    @pytest.mark.asyncio
    async def test_create_normalizes_and_looks_up(self, local):
        credentials = CredentialStorage(local)
        created = await credentials.create(username=" Dana ", email="Dana@Example.com", password_hash="h")
        assert created.username == "dana"
        assert created.email == "dana@example.com"
        assert (await credentials.get_by_username("DANA")).email == "dana@example.com"
        assert (await credentials.get_by_email("DANA@example.com")).username == "dana"
        assert await credentials.exists("other", "dana@example.com")
        assert not await credentials.exists("other", "other@example.com")

    @pytest.mark.asyncio
    async def test_users_without_google_id_do_not_collide(self, local):
        credentials = CredentialStorage(local)
        await credentials.create(username="a", email="a@example.com", password_hash="h")
        await credentials.create(username="b", email="b@example.com", password_hash="h")
        assert await credentials.link_google_id("a", "google-1")
        assert (await credentials.get_by_username("a")).google_id == "google-1"

    @pytest.mark.asyncio
    async def test_unique_username(self, local):
        credentials = CredentialStorage(local)
        assert await credentials.unique_username("dana") == "dana"
        await credentials.create(username="dana", email="d1@example.com")
        await credentials.create(username="dana1", email="d2@example.com")
        assert await credentials.unique_username("Dana") == "dana2"


class TestProfileStorage:

    @pytest.mark.asyncio
    async def test_crud_and_pagination(self, local):
        profiles = ProfileStorage(local)
        base = datetime(2024, 1, 1, tzinfo=timezone.utc)
        for i, name in enumerate(["a", "b", "c"]):
            await profiles.create(UserProfile(username=name, created_at=base + timedelta(days=i)))

        items, total = await profiles.list(page=1, limit=2)
        assert total == 3
        assert [p.username for p in items] == ["c", "b"]
        items, _ = await profiles.list(page=2, limit=2)
        assert [p.username for p in items] == ["a"]

        assert await profiles.update_fields("a", {"personal_details.first_name": "Ann"})
        assert (await profiles.get("a")).personal_details.first_name == "Ann"

        assert await profiles.delete("a")
        assert await profiles.get("a") is None
        assert not await profiles.delete("a")


class TestProductStorage:

    @pytest.mark.asyncio
    async def test_batch_lookup_keeps_order_and_marks_missing(self, local):
        products = ProductStorage(local)
        await products.add(Product(barcode="111111111111", name="Milk 3%", brand="Tnuva"))
        results = await products.lookup_batch(["999999999999", "111111111111"])
        assert [r.barcode for r in results] == ["999999999999", "111111111111"]
        assert results[0].not_found is True
        assert results[1].not_found is False
        assert results[1].name == "Milk 3%"


class TestHistoryStorage:

    @pytest.mark.asyncio
    async def test_scans_newest_first(self, local):
        history = HistoryStorage(local)
        base = datetime(2024, 1, 1, tzinfo=timezone.utc)
        for i in range(3):
            await history.add_scan(ScanHistory(
                username="dana", product_name=f"p{i}", scanned_at=base + timedelta(hours=i)
            ))
        await history.add_scan(ScanHistory(username="other", product_name="x"))
        scans = await history.list_scans("dana")
        assert [s.product_name for s in scans] == ["p2", "p1", "p0"]

    @pytest.mark.asyncio
    async def test_blood_test_is_replaced(self, local):
        history = HistoryStorage(local)
        await history.replace_blood_test(BloodTestRecord(username="dana", diagnosis=["High Cholesterol"]))
        await history.replace_blood_test(BloodTestRecord(username="dana", diagnosis=["No significant findings"]))
        assert await history.count_blood_tests("dana") == 1
        latest = await history.latest_blood_test("dana")
        assert latest.diagnosis == ["No significant findings"]
