"""
Tests for real-time notification delivery.

Events are staged on the session and only reach subscribers once the
transaction commits.
"""

import asyncio
import uuid

from exchange_desk.realtime import INSERT, UPDATE, NotificationBroker, broker
from exchange_desk.services import notification_service


class TestNotificationBroker:
    def test_publish_to_subscribers_of_user(self):
        hub = NotificationBroker()
        user_id = uuid.uuid4()
        first = hub.subscribe(user_id)
        second = hub.subscribe(str(user_id))
        other = hub.subscribe(uuid.uuid4())

        assert hub.publish(user_id, {"event": INSERT}) == 2
        assert first.get_nowait() == {"event": INSERT}
        assert second.get_nowait() == {"event": INSERT}
        assert other.empty()

    def test_unsubscribe(self):
        hub = NotificationBroker()
        user_id = uuid.uuid4()
        queue = hub.subscribe(user_id)
        hub.unsubscribe(user_id, queue)
        assert hub.subscriber_count(user_id) == 0
        assert hub.publish(user_id, {"event": INSERT}) == 0
        # Unknown queues are ignored
        hub.unsubscribe(user_id, asyncio.Queue())

    def test_full_queue_is_skipped(self):
        hub = NotificationBroker(max_queue_size=1)
        user_id = uuid.uuid4()
        queue = hub.subscribe(user_id)
        assert hub.publish(user_id, {"n": 1}) == 1
        assert hub.publish(user_id, {"n": 2}) == 0
        assert queue.get_nowait() == {"n": 1}


class TestCommitPublishing:
    async def test_commit_publishes_insert(self, db_session):
        user_id = uuid.uuid4()
        queue = broker.subscribe(user_id)
        try:
            notification = await notification_service.create_notification(
                db_session, user_id=user_id, title="Hello", message="World", type="info"
            )
            # Nothing is delivered before the commit
            assert queue.empty()

            await db_session.commit()
            event = queue.get_nowait()
            assert event["event"] == INSERT
            assert event["notification"]["id"] == str(notification.id)
            assert event["notification"]["title"] == "Hello"
        finally:
            broker.unsubscribe(user_id, queue)

    async def test_rollback_publishes_nothing(self, db_session):
        user_id = uuid.uuid4()
        queue = broker.subscribe(user_id)
        try:
            await notification_service.create_notification(
                db_session, user_id=user_id, title="Hello", message="World", type="info"
            )
            await db_session.rollback()
            await db_session.commit()
            assert queue.empty()
        finally:
            broker.unsubscribe(user_id, queue)

    async def test_update_event_on_read(self, db_session):
        user_id = uuid.uuid4()
        notification = await notification_service.create_notification(
            db_session, user_id=user_id, title="Hello", message="World", type="info"
        )
        await db_session.commit()

        queue = broker.subscribe(user_id)
        try:
            user = type("Reader", (), {"id": user_id})()
            await notification_service.mark_as_read(db_session, notification.id, user)
            await db_session.commit()
            event = queue.get_nowait()
            assert event["event"] == UPDATE
            assert event["notification"]["is_read"] is True
        finally:
            broker.unsubscribe(user_id, queue)


class TestRequestPublishing:
    async def test_custody_request_reaches_cashier(self, treasurer, cashier, treasury_wallet):
        queue = broker.subscribe(cashier.id)
        try:
            response = await treasurer.client.post(
                "/custody",
                json={
                    "cashier_id": str(cashier.id),
                    "wallet_id": treasury_wallet,
                    "currency_code": "USD",
                    "amount": "10",
                },
            )
            assert response.status_code == 201
            event = queue.get_nowait()
            assert event["notification"]["type"] == "custody_request"
        finally:
            broker.unsubscribe(cashier.id, queue)

    async def test_failed_request_reaches_nobody(self, treasurer, cashier, treasury_wallet):
        queue = broker.subscribe(cashier.id)
        try:
            response = await treasurer.client.post(
                "/custody",
                json={
                    "cashier_id": str(cashier.id),
                    "wallet_id": treasury_wallet,
                    "currency_code": "USD",
                    "amount": "99999",
                },
            )
            assert response.status_code == 422
            assert queue.empty()
        finally:
            broker.unsubscribe(cashier.id, queue)
