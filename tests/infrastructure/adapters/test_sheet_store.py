import json
from datetime import date

import httpx
import pytest

from tests.fakes import TODAY
from wordloop.domain.errors import NotAuthorized, StoreUnavailable
from wordloop.infrastructure.adapters.sheet_store import SheetWordStore

URL = "https://script.example.com/macros/s/abc/exec"

WORD_ROWS = [
    {
        "id": 12,
        "lessonDate": "2024-02-01T00:00:00.000Z",
        "content": "serendipity",
        "type": "vocabulary",
        "phonics": "ˌserənˈdipədē",
        "chineseExplain": "意外發現",
        "engExplain": "",
        "tags": "noun,rare",
        "status": "active",
        "reviewStage": 3,
        "easeFactor": 2.36,
        "intervalDays": 7,
        "lastReview": "2024-03-01",
        "nextReview": "2024-03-08T08:00:00.000Z",
    },
    {
        "id": "13",
        "content": "obsolete",
        "chineseExplain": "過時的",
        "status": "deleted",
        "reviewStage": 1,
        "easeFactor": 2.5,
        "intervalDays": 0,
    },
]


def _store(handler):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return SheetWordStore(URL, client=client, clock=lambda: TODAY)


@pytest.mark.asyncio
async def test_fetch_due_cards_maps_rows():
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"ok": True, "result": WORD_ROWS})

    async with _store(handler) as store:
        cards = await store.fetch_due_cards()

    assert requests[0].method == "GET"
    assert requests[0].url.params["action"] == "getList"

    assert len(cards) == 1
    card = cards[0]
    assert card.id == "12"
    assert card.content == "serendipity"
    assert card.chinese_explain == "意外發現"
    assert card.eng_explain is None
    assert card.review_stage == 3
    assert card.ease_factor == 2.36
    assert card.last_review == date(2024, 3, 1)
    assert card.next_review == date(2024, 3, 8)
    assert card.lesson_date == date(2024, 2, 1)


@pytest.mark.asyncio
async def test_fetch_fills_defaults_for_new_words():
    def handler(request):
        return httpx.Response(200, json={"ok": True, "result": [{"id": "a", "content": "new"}]})

    cards = await _store(handler).fetch_due_cards()
    assert cards[0].review_stage == 1
    assert cards[0].ease_factor == 2.5
    assert cards[0].last_review is None


@pytest.mark.asyncio
async def test_update_review_posts_batch():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"ok": True, "result": {"updated": 1}})

    fields = {"12": {"reviewStage": 4, "easeFactor": 2.46, "intervalDays": 34,
                     "lastReview": "2024-03-10", "nextReview": "2024-04-13"}}
    await _store(handler).update_review(fields, "jwt-token")

    assert seen["method"] == "POST"
    assert seen["body"] == {"op": "updateReview", "token": "jwt-token", "fields": fields}


@pytest.mark.asyncio
async def test_identical_batches_send_identical_bodies():
    bodies = []

    def handler(request):
        bodies.append(request.content)
        if len(bodies) == 1:
            return httpx.Response(502)
        return httpx.Response(200, json={"ok": True})

    store = _store(handler)
    fields = {"1": {"reviewStage": 2, "easeFactor": 2.5, "intervalDays": 8,
                    "lastReview": "2024-03-10", "nextReview": "2024-03-18"}}
    with pytest.raises(StoreUnavailable):
        await store.update_review(fields, "t")
    await store.update_review(fields, "t")

    assert bodies[0] == bodies[1]


@pytest.mark.asyncio
async def test_transport_error_is_store_unavailable():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(StoreUnavailable):
        await _store(handler).fetch_due_cards()


@pytest.mark.asyncio
async def test_server_error_is_store_unavailable():
    with pytest.raises(StoreUnavailable):
        await _store(lambda r: httpx.Response(500)).fetch_due_cards()


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [401, 403])
async def test_rejected_credentials_are_not_authorized(status):
    with pytest.raises(NotAuthorized):
        await _store(lambda r: httpx.Response(status)).update_review({}, "bad")


@pytest.mark.asyncio
async def test_failure_reply_about_token_is_not_authorized():
    def handler(request):
        return httpx.Response(200, json={"ok": False, "error": "Invalid token"})

    with pytest.raises(NotAuthorized):
        await _store(handler).update_review({}, "bad")


@pytest.mark.asyncio
async def test_other_failure_reply_is_store_unavailable():
    def handler(request):
        return httpx.Response(200, json={"ok": False, "error": "sheet locked"})

    with pytest.raises(StoreUnavailable, match="sheet locked"):
        await _store(handler).fetch_due_cards()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [b"<html>login</html>", b'{"result": []}', b'{"ok": true, "result": {"words": []}}'],
)
async def test_malformed_reply_is_store_unavailable(body):
    def handler(request):
        return httpx.Response(200, content=body)

    with pytest.raises(StoreUnavailable):
        await _store(handler).fetch_due_cards()


@pytest.mark.asyncio
async def test_fetch_keeps_only_words_due_today():
    rows = [
        {"id": "1", "content": "later", "nextReview": "2999-01-01"},
        {"id": "2", "content": "today", "nextReview": TODAY.isoformat()},
        {"id": "3", "content": "overdue", "nextReview": "2024-01-01T00:00:00.000Z"},
        {"id": "4", "content": "new", "nextReview": ""},
    ]

    def handler(request):
        return httpx.Response(200, json={"ok": True, "result": rows})

    cards = await _store(handler).fetch_due_cards()
    assert [c.id for c in cards] == ["2", "3", "4"]


@pytest.mark.asyncio
async def test_blank_scheduling_cells_use_defaults():
    rows = [{"id": "2", "content": "fresh", "reviewStage": "", "easeFactor": "", "intervalDays": " "}]

    def handler(request):
        return httpx.Response(200, json={"ok": True, "result": rows})

    [card] = await _store(handler).fetch_due_cards()
    assert card.review_stage == 1
    assert card.ease_factor == 2.5
    assert card.interval_days == 0


@pytest.mark.asyncio
async def test_malformed_row_is_skipped_not_fatal():
    rows = [
        {"id": "1", "content": "fine", "reviewStage": 2},
        {"content": "no id"},
        {"id": "3", "content": "bad stage", "reviewStage": "two"},
        "not a row",
    ]

    def handler(request):
        return httpx.Response(200, json={"ok": True, "result": rows})

    cards = await _store(handler).fetch_due_cards()
    assert [c.id for c in cards] == ["1"]


@pytest.mark.asyncio
async def test_close_releases_owned_client():
    store = _store(lambda r: httpx.Response(200, json={"ok": True, "result": []}))
    client = store._client
    await store.fetch_due_cards()
    await store.close()
    assert client.is_closed
    await store.close()
