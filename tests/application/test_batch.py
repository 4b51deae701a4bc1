from tests.fakes import TODAY, make_card
from wordloop.application.batch import PendingUpdateBatch
from wordloop.domain.scheduler import schedule_review


def _update(quality, card_id="1"):
    return schedule_review(make_card(card_id), quality, TODAY)


def test_empty_batch_has_nothing_to_flush():
    batch = PendingUpdateBatch()
    assert batch.begin_flush() == {}
    assert not batch.has_pending()
    assert batch.in_flight is None


def test_later_answer_overwrites_earlier():
    batch = PendingUpdateBatch()
    batch.stage("1", _update(0))
    batch.stage("1", _update(5))
    assert len(batch) == 1
    assert batch.snapshot()["1"] == _update(5)


def test_begin_flush_moves_pending_in_flight():
    batch = PendingUpdateBatch()
    batch.stage("1", _update(5))
    in_flight = batch.begin_flush()

    assert set(in_flight) == {"1"}
    assert batch.in_flight is in_flight
    batch.commit()
    assert not batch.has_pending()
    assert batch.begin_flush() == {}


def test_failed_flush_returns_same_mapping():
    batch = PendingUpdateBatch()
    batch.stage("1", _update(5))
    first = batch.begin_flush()
    # no commit: the write failed
    assert batch.begin_flush() is first


def test_answers_during_flight_wait_for_next_batch():
    batch = PendingUpdateBatch()
    batch.stage("1", _update(5))
    in_flight = batch.begin_flush()

    batch.stage("1", _update(0))
    batch.stage("2", _update(4, "2"))

    assert batch.begin_flush() is in_flight
    assert in_flight["1"] == _update(5)
    assert batch.snapshot()["1"] == _update(0)
    assert "2" in batch

    batch.commit()
    next_batch = batch.begin_flush()
    assert set(next_batch) == {"1", "2"}
    assert next_batch["1"] == _update(0)
