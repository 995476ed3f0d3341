import pytest

from vidtube.core.errors import InvalidArgumentError, NotFoundError
from vidtube.db.repositories.subscriptions import SubscriptionRepository


def test_toggle_subscribes_then_unsubscribes(session, subscription_service, make_user):
    alice = make_user("alice")
    bob = make_user("bob")
    repo = SubscriptionRepository(session)

    state = subscription_service.toggle(subscriber_id=alice.id, channel_id=bob.id)
    assert state.subscribed is True
    assert repo.count_subscribers(bob.id) == 1

    state = subscription_service.toggle(subscriber_id=alice.id, channel_id=bob.id)
    assert state.subscribed is False
    assert repo.count_subscribers(bob.id) == 0


def test_cannot_subscribe_to_self(subscription_service, make_user):
    alice = make_user("alice")
    with pytest.raises(InvalidArgumentError):
        subscription_service.toggle(subscriber_id=alice.id, channel_id=alice.id)


def test_unknown_channel(subscription_service, make_user):
    alice = make_user("alice")
    with pytest.raises(NotFoundError):
        subscription_service.toggle(subscriber_id=alice.id, channel_id=999)
