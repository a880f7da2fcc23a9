import uuid

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from pricebook.api.deps import get_db
from pricebook.api.main import app
from pricebook.db.models import Item, Project
from pricebook.db.session import Base, enable_sqlite_foreign_keys
import pricebook.db.models  # noqa: F401


@pytest.fixture()
async def factory():
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    enable_sqlite_foreign_keys(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, expire_on_commit=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture()
async def client(factory):
    async def override_get_db():
        async with factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture()
async def item_id(factory) -> str:
    async with factory() as session:
        project = Project(name="Grinders")
        session.add(project)
        await session.flush()
        item = Item(project_id=project.id, manufacturer="Eureka", model="Mignon Specialita")
        session.add(item)
        await session.commit()
        return str(item.id)


async def _post(client, item_id, **body):
    payload = {"condition": "new", "amount": 100, "currency": "usd"}
    payload.update(body)
    return await client.post(f"/api/items/{item_id}/prices", json=payload)


class TestCreate:
    async def test_create_price(self, client, item_id):
        res = await _post(client, item_id, amount=249.5, note="launch offer")
        assert res.status_code == 201
        data = res.json()["data"]
        assert data["itemId"] == item_id
        assert data["amount"] == 249.5
        assert data["currency"] == "USD"
        assert data["sourceType"] == "manual"
        assert data["sourceUrlId"] is None
        assert data["isPrimary"] is False
        assert data["note"] == "launch offer"

    async def test_unknown_item(self, client):
        res = await _post(client, uuid.uuid4())
        assert res.status_code == 404
        assert res.json()["error"]["message"] == "Item not found"

    async def test_negative_amount(self, client, item_id):
        res = await _post(client, item_id, amount=-1)
        assert res.status_code == 400
        assert "error" in res.json()

    async def test_bad_currency(self, client, item_id):
        res = await _post(client, item_id, currency="DOLLARS")
        assert res.status_code == 400

    async def test_currency_that_grows_when_upper_cased(self, client, item_id):
        res = await _post(client, item_id, currency="ßab")
        assert res.status_code == 400

    async def test_amount_beyond_column_range(self, client, item_id):
        res = await _post(client, item_id, amount=1e10)
        assert res.status_code == 400

    async def test_manual_with_url_id_rejected(self, client, item_id):
        res = await _post(client, item_id, sourceType="manual", sourceUrlId=str(uuid.uuid4()))
        assert res.status_code == 400

    async def test_url_source_is_deduplicated(self, client, item_id):
        first = await _post(client, item_id, sourceType="url", sourceUrl="https://Shop.Example.com/mignon")
        second = await _post(client, item_id, sourceType="url", sourceUrl="https://shop.example.com/MIGNON")
        assert first.status_code == 201
        assert second.status_code == 201
        assert first.json()["data"]["sourceUrl"] == "https://shop.example.com/mignon"
        assert first.json()["data"]["sourceUrlId"] == second.json()["data"]["sourceUrlId"]

    async def test_primary_moves_to_newest(self, client, item_id):
        first = (await _post(client, item_id, isPrimary=True)).json()["data"]
        second = (await _post(client, item_id, amount=90, isPrimary=True)).json()["data"]

        res = await client.get(f"/api/prices/{first['id']}")
        assert res.json()["data"]["isPrimary"] is False
        res = await client.get(f"/api/prices/{second['id']}")
        assert res.json()["data"]["isPrimary"] is True


class TestList:
    async def test_list_with_meta(self, client, item_id):
        for amount in (10, 20, 30):
            await _post(client, item_id, amount=amount)

        res = await client.get(f"/api/items/{item_id}/prices", params={"limit": 2})
        assert res.status_code == 200
        body = res.json()
        assert len(body["data"]) == 2
        assert body["meta"] == {"limit": 2, "offset": 0, "count": 2}

    async def test_condition_filter(self, client, item_id):
        await _post(client, item_id, condition="new")
        await _post(client, item_id, condition="used", amount=60)

        res = await client.get(f"/api/items/{item_id}/prices", params={"condition": "used"})
        data = res.json()["data"]
        assert [p["condition"] for p in data] == ["used"]

    @pytest.mark.parametrize("params", [{"limit": 0}, {"limit": 101}, {"offset": -1}])
    async def test_out_of_range_paging_rejected(self, client, item_id, params):
        res = await client.get(f"/api/items/{item_id}/prices", params=params)
        assert res.status_code == 400
        assert res.json()["error"]["message"]


class TestGetPatchDelete:
    async def test_get_missing(self, client):
        res = await client.get(f"/api/prices/{uuid.uuid4()}")
        assert res.status_code == 404
        assert res.json()["error"]["message"] == "Price not found"

    async def test_patch_only_touches_sent_fields(self, client, item_id):
        created = (await _post(client, item_id, note="boxed", sourceNote="flyer")).json()["data"]

        res = await client.patch(f"/api/prices/{created['id']}", json={"amount": 95, "note": None})
        assert res.status_code == 200
        data = res.json()["data"]
        assert data["amount"] == 95
        assert data["note"] is None
        assert data["sourceNote"] == "flyer"
        assert data["currency"] == "USD"

    async def test_patch_empty_body_rejected(self, client, item_id):
        created = (await _post(client, item_id)).json()["data"]
        res = await client.patch(f"/api/prices/{created['id']}", json={})
        assert res.status_code == 400

    async def test_patch_null_amount_rejected(self, client, item_id):
        created = (await _post(client, item_id)).json()["data"]
        res = await client.patch(f"/api/prices/{created['id']}", json={"amount": None})
        assert res.status_code == 400

    async def test_patch_missing(self, client):
        res = await client.patch(f"/api/prices/{uuid.uuid4()}", json={"amount": 5})
        assert res.status_code == 404

    async def test_switch_to_manual_drops_url(self, client, item_id):
        created = (await _post(client, item_id, sourceType="url", sourceUrl="https://example.com/x")).json()["data"]
        res = await client.patch(f"/api/prices/{created['id']}", json={"sourceType": "manual"})
        assert res.status_code == 200
        data = res.json()["data"]
        assert data["sourceType"] == "manual"
        assert data["sourceUrlId"] is None
        assert data["sourceUrl"] is None

    async def test_delete(self, client, item_id):
        created = (await _post(client, item_id)).json()["data"]

        res = await client.delete(f"/api/prices/{created['id']}")
        assert res.status_code == 204
        res = await client.delete(f"/api/prices/{created['id']}")
        assert res.status_code == 404


class TestSummary:
    async def test_no_prices(self, client, item_id):
        res = await client.get(f"/api/items/{item_id}/price-summary")
        assert res.status_code == 200
        assert res.json()["data"] is None

    async def test_unknown_item(self, client):
        res = await client.get(f"/api/items/{uuid.uuid4()}/price-summary")
        assert res.status_code == 404

    async def test_summary(self, client, item_id):
        await _post(client, item_id, amount=100)
        await _post(client, item_id, amount=150)

        data = (await client.get(f"/api/items/{item_id}/price-summary")).json()["data"]
        assert data["minAmount"] == 100
        assert data["maxAmount"] == 150
        assert data["priceCount"] == 2
        assert data["currency"] == "USD"
        assert data["hasMixedCurrency"] is False
        assert data["new"] == {"minAmount": 100, "count": 2, "currency": "USD", "hasMixedCurrency": False}
        assert data["used"] == {"minAmount": None, "count": 0, "currency": None, "hasMixedCurrency": False}


async def test_health(client):
    res = await client.get("/api/health")
    assert res.json()["status"] == "ok"
