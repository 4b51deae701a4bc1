from datetime import date

import pytest
import yaml

from tests.fakes import TODAY
from wordloop.domain.errors import StoreUnavailable
from wordloop.infrastructure.adapters.file_store import FileWordStore

WORDS_YAML = """\
words:
  - id: 1
    content: abandon
    chineseExplain: 放棄
    reviewStage: 2
    easeFactor: 2.5
    intervalDays: 3
    lastReview: 2024-03-05
    nextReview: 2024-03-08
  - id: 2
    content: benevolent
    chineseExplain: 仁慈的
    reviewStage: 4
    easeFactor: 2.2
    intervalDays: 31
    lastReview: 2024-03-01
    nextReview: 2024-04-01
  - id: 3
    content: candid
    chineseExplain: 坦率的
  - id: 4
    content: gone
    chineseExplain: 已刪
    status: deleted
"""


@pytest.fixture
def words_file(tmp_path):
    path = tmp_path / "words.yaml"
    path.write_text(WORDS_YAML, encoding="utf-8")
    return path


@pytest.mark.asyncio
async def test_fetch_returns_only_due_active_words(words_file):
    store = FileWordStore(words_file, clock=lambda: TODAY)
    cards = await store.fetch_due_cards()

    assert [c.id for c in cards] == ["1", "3"]
    assert cards[0].next_review == date(2024, 3, 8)
    assert cards[1].next_review is None


@pytest.mark.asyncio
async def test_missing_file_has_nothing_due(tmp_path):
    store = FileWordStore(tmp_path / "absent.yaml")
    assert await store.fetch_due_cards() == []


@pytest.mark.asyncio
async def test_update_review_rewrites_matching_words(words_file):
    store = FileWordStore(words_file, clock=lambda: TODAY)
    await store.update_review(
        {
            "1": {
                "reviewStage": 3,
                "easeFactor": 2.5,
                "intervalDays": 8,
                "lastReview": "2024-03-10",
                "nextReview": "2024-03-18",
            },
            "99": {"reviewStage": 1},
        },
        token="ignored",
    )

    saved = yaml.safe_load(words_file.read_text(encoding="utf-8"))["words"]
    assert saved[0]["reviewStage"] == 3
    assert saved[0]["content"] == "abandon"
    assert saved[1]["reviewStage"] == 4
    assert len(saved) == 4

    due = await store.fetch_due_cards()
    assert [c.id for c in due] == ["3"]


@pytest.mark.asyncio
async def test_malformed_yaml_is_store_unavailable(tmp_path):
    path = tmp_path / "words.yaml"
    path.write_text("words: [unclosed", encoding="utf-8")

    with pytest.raises(StoreUnavailable):
        await FileWordStore(path).fetch_due_cards()


@pytest.mark.asyncio
async def test_non_list_words_is_store_unavailable(tmp_path):
    path = tmp_path / "words.yaml"
    path.write_text("words: nope\n", encoding="utf-8")

    with pytest.raises(StoreUnavailable):
        await FileWordStore(path).fetch_due_cards()


@pytest.mark.asyncio
async def test_malformed_word_is_skipped(tmp_path):
    path = tmp_path / "words.yaml"
    path.write_text("words:\n  - content: no id\n  - id: 5\n    content: ok\n", encoding="utf-8")

    cards = await FileWordStore(path, clock=lambda: TODAY).fetch_due_cards()
    assert [c.id for c in cards] == ["5"]
