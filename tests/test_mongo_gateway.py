import asyncio

import pytest
from gridfs.errors import NoFile
from mongomock_motor import AsyncMongoMockClient

from core.errors import DuplicateRegistration, GatewayError, InvalidCredentials
from db.gateway import AuthEvent, MongoGateway, Order, SESSIONS_COLLECTION, USERS_COLLECTION, eq, gte, in_, lte


class _GridCursor:
    def __init__(self, docs):
        self._docs = docs

    async def to_list(self, length=None):
        return self._docs[:length]


class _GridStream:
    def __init__(self, data, metadata):
        self._data = data
        self.metadata = metadata

    async def read(self):
        return self._data


class GridBucketDouble:
    """Stands in for a motor GridFS bucket: files keyed by name."""

    def __init__(self):
        self.files = {}

    def find(self, query):
        name = query.get("filename")
        return _GridCursor([{"filename": name}] if name in self.files else [])

    async def upload_from_stream(self, filename, source, metadata=None):
        self.files[filename] = (source, metadata)

    async def open_download_stream_by_name(self, filename):
        if filename not in self.files:
            raise NoFile(f"no file named {filename}")
        data, metadata = self.files[filename]
        return _GridStream(data, metadata)


@pytest.fixture
def buckets():
    return {}


@pytest.fixture
def mongo_gateway(buckets):
    db = AsyncMongoMockClient()["petshop_test"]
    return MongoGateway(
        db,
        public_base_url="http://testserver/",
        bucket_factory=lambda name: buckets.setdefault(name, GridBucketDouble()),
    )


# ---------------- auth ----------------


@pytest.mark.asyncio
async def test_sign_up_provisions_profile_and_signs_in(mongo_gateway):
    events = []

    async def listener(event, session):
        events.append((event, session.user.email))

    mongo_gateway.on_auth_state_change(listener)
    session = await mongo_gateway.sign_up(" Maria@Example.com ", "Secret1!", {"full_name": "Maria", "phone": "63999991234"})

    assert session.user.email == "maria@example.com"
    profile = await mongo_gateway.select_one("profiles", [eq("id", session.user.id)])
    assert profile["full_name"] == "Maria"
    assert profile["is_admin"] is False
    assert events == [(AuthEvent.SIGNED_IN, "maria@example.com")]


@pytest.mark.asyncio
async def test_duplicate_email_is_rejected_by_unique_index(mongo_gateway):
    results = await asyncio.gather(
        mongo_gateway.sign_up("ana@example.com", "Secret1!"),
        mongo_gateway.sign_up("ANA@example.com", "Secret1!"),
        return_exceptions=True,
    )
    assert sum(isinstance(r, DuplicateRegistration) for r in results) == 1
    assert await mongo_gateway.repo.count_many(USERS_COLLECTION, {"email": "ana@example.com"}) == 1


@pytest.mark.asyncio
async def test_indexes_cover_email_and_session_expiry(mongo_gateway, monkeypatch):
    calls = []
    original = mongo_gateway.repo.ensure_index

    async def recording(collection, field, **options):
        calls.append((collection, field, options))
        return await original(collection, field, **options)

    monkeypatch.setattr(mongo_gateway.repo, "ensure_index", recording)
    await mongo_gateway.ensure_indexes()
    await mongo_gateway.ensure_indexes()

    assert calls == [
        (USERS_COLLECTION, "email", {"unique": True}),
        (SESSIONS_COLLECTION, "expires_at", {"expireAfterSeconds": 0}),
    ]


@pytest.mark.asyncio
async def test_session_rows_carry_expiry(mongo_gateway):
    session = await mongo_gateway.sign_up("ana@example.com", "Secret1!")
    rows = await mongo_gateway.repo.find_many(SESSIONS_COLLECTION, {"user_id": session.user.id})
    assert len(rows) == 1
    assert rows[0]["expires_at"] is not None


@pytest.mark.asyncio
async def test_get_session_is_bound_to_a_live_session_row(mongo_gateway):
    session = await mongo_gateway.sign_up("ana@example.com", "Secret1!")
    again = await mongo_gateway.sign_in("ana@example.com", "Secret1!")

    found = await mongo_gateway.get_session(session.access_token)
    assert found is not None
    assert found.user.id == session.user.id

    await mongo_gateway.sign_out(session.access_token)
    assert await mongo_gateway.get_session(session.access_token) is None
    # Other sessions of the same user survive
    assert await mongo_gateway.get_session(again.access_token) is not None

    await mongo_gateway.repo.delete_many(SESSIONS_COLLECTION, {})
    assert await mongo_gateway.get_session(again.access_token) is None
    assert await mongo_gateway.get_session("not-a-token") is None


@pytest.mark.asyncio
async def test_sign_out_notifies_listeners_once(mongo_gateway):
    session = await mongo_gateway.sign_up("ana@example.com", "Secret1!")
    events = []

    async def listener(event, _session):
        events.append(event)

    mongo_gateway.on_auth_state_change(listener)
    await mongo_gateway.sign_out(session.access_token)
    await mongo_gateway.sign_out(session.access_token)
    assert events == [AuthEvent.SIGNED_OUT]


@pytest.mark.asyncio
async def test_wrong_password_is_invalid_credentials(mongo_gateway):
    await mongo_gateway.sign_up("ana@example.com", "Secret1!")
    with pytest.raises(InvalidCredentials):
        await mongo_gateway.sign_in("ana@example.com", "Secret2!")
    with pytest.raises(InvalidCredentials):
        await mongo_gateway.sign_in("nobody@example.com", "Secret1!")


# ---------------- tables ----------------


@pytest.mark.asyncio
async def test_select_filters_sorts_and_projects(mongo_gateway):
    for title, price, featured in [("Coleira", 29.9, True), ("Ração", 120.0, False), ("Bola", 9.9, True)]:
        await mongo_gateway.insert("products", {"title": title, "price": price, "image_url": "u", "is_featured": featured})

    by_price = await mongo_gateway.select("products", order=[Order("price", descending=True)])
    assert [r["title"] for r in by_price] == ["Ração", "Coleira", "Bola"]
    assert all(isinstance(r["id"], str) for r in by_price)

    window = await mongo_gateway.select("products", [gte("price", 10), lte("price", 100)])
    assert [r["title"] for r in window] == ["Coleira"]

    featured = await mongo_gateway.select(
        "products", [in_("title", ["Bola", "Coleira"]), eq("is_featured", True)], order=[Order("title")], limit=1
    )
    assert [r["title"] for r in featured] == ["Bola"]

    titles = await mongo_gateway.select("products", columns=["title"], order=[Order("title")])
    assert titles[0] == {"id": titles[0]["id"], "title": "Bola"}
    assert await mongo_gateway.count("products", [eq("is_featured", True)]) == 2


@pytest.mark.asyncio
async def test_update_and_delete_by_id(mongo_gateway):
    row = await mongo_gateway.insert("services", {"name": "Banho", "is_active": True})
    assert await mongo_gateway.update("services", {"id": "ignored", "is_active": False}, [eq("id", row["id"])]) == 1
    stored = await mongo_gateway.select_one("services", [eq("id", row["id"])])
    assert stored["is_active"] is False
    assert await mongo_gateway.update("services", {}, [eq("id", row["id"])]) == 0
    assert await mongo_gateway.delete("services", [eq("id", row["id"])]) == 1
    assert await mongo_gateway.select_one("services", [eq("id", row["id"])]) is None


# ---------------- storage ----------------


@pytest.mark.asyncio
async def test_upload_and_download_blobs(mongo_gateway):
    path = await mongo_gateway.upload("portfolio", "products/a.png", b"png-bytes", "image/png")
    assert path == "products/a.png"
    assert await mongo_gateway.download("portfolio", path) == (b"png-bytes", "image/png")
    assert await mongo_gateway.download("portfolio", "products/missing.png") is None
    assert mongo_gateway.get_public_url("portfolio", path) == "http://testserver/api/v1/storage/portfolio/products/a.png"


@pytest.mark.asyncio
async def test_upload_refuses_to_overwrite(mongo_gateway):
    await mongo_gateway.upload("portfolio", "products/a.png", b"one", "image/png")
    with pytest.raises(GatewayError):
        await mongo_gateway.upload("portfolio", "products/a.png", b"two", "image/png")
