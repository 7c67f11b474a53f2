"""
OutboxDispatcher: pending events reach the distributor once, in order.
"""
from models import storage
from models.outbox_event import OutboxEvent
from worker.outbox import OutboxDispatcher, record_email_event
from worker.tasks import TASK_SEND_ACCOUNT_DELETED_EMAIL, TASK_SEND_VERIFY_EMAIL, SendEmailPayload


def _record(task_name, username):
    with storage.transaction() as session:
        record_email_event(session, task_name, SendEmailPayload(username=username, email=f"{username}@example.com"))


def test_dispatch_pending_events(distributor):
    _record(TASK_SEND_VERIFY_EMAIL, "carol01")
    _record(TASK_SEND_ACCOUNT_DELETED_EMAIL, "dave001")

    dispatcher = OutboxDispatcher(storage, distributor)
    assert dispatcher.dispatch_pending() == 2
    assert sorted(name for name, _ in distributor.calls) == sorted(
        [TASK_SEND_VERIFY_EMAIL, TASK_SEND_ACCOUNT_DELETED_EMAIL]
    )

    # already stamped, nothing left to send
    assert dispatcher.dispatch_pending() == 0
    assert len(distributor.calls) == 2
    assert storage.count(OutboxEvent, dispatched_at=None) == 0


def test_enqueue_failure_keeps_event_pending(distributor):
    _record(TASK_SEND_VERIFY_EMAIL, "carol01")
    distributor.fail = True

    dispatcher = OutboxDispatcher(storage, distributor)
    assert dispatcher.dispatch_pending() == 0

    event = storage.get_session().query(OutboxEvent).one()
    assert event.dispatched_at is None
    assert event.attempts == 1

    storage.close()
    distributor.fail = False
    assert dispatcher.dispatch_pending() == 1
    assert distributor.calls[0][1].username == "carol01"


def test_unreadable_payload_is_dropped(distributor):
    with storage.transaction() as session:
        session.add(OutboxEvent(event_type=TASK_SEND_VERIFY_EMAIL, payload={"email": "x@example.com"}))

    dispatcher = OutboxDispatcher(storage, distributor)
    assert dispatcher.dispatch_pending() == 0
    assert distributor.calls == []
    assert storage.count(OutboxEvent, dispatched_at=None) == 0


def test_events_recorded_in_one_second_dispatch_in_order(distributor):
    usernames = [f"user{i:03d}" for i in range(5)]
    with storage.transaction() as session:
        for username in usernames:
            record_email_event(
                session, TASK_SEND_VERIFY_EMAIL, SendEmailPayload(username=username, email=f"{username}@example.com")
            )

    stamps = [e.created_at for e in storage.get_session().query(OutboxEvent).order_by(OutboxEvent.created_at)]
    assert any(stamp.microsecond for stamp in stamps)

    dispatcher = OutboxDispatcher(storage, distributor)
    assert dispatcher.dispatch_pending() == 5
    assert [payload.username for _, payload in distributor.calls] == usernames
