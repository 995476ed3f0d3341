import pytest

from vidtube.core.errors import ConflictError, InvalidArgumentError, NotFoundError
from vidtube.features.users.schemas import AccountUpdateIn


def test_update_account_full_name_and_email(user_service, make_user):
    alice = make_user("alice")

    user = user_service.update_account(alice.id, AccountUpdateIn(full_name="Alice L.", email="New@Example.com"))

    assert user.full_name == "Alice L."
    assert user.email == "new@example.com"


def test_update_account_needs_a_field(user_service, make_user):
    alice = make_user("alice")
    with pytest.raises(InvalidArgumentError):
        user_service.update_account(alice.id, AccountUpdateIn(full_name="  "))


def test_update_account_email_taken(user_service, make_user):
    alice = make_user("alice")
    make_user("bob")
    with pytest.raises(ConflictError):
        user_service.update_account(alice.id, AccountUpdateIn(email="bob@example.com"))


def test_update_avatar_releases_previous_image(user_service, media, make_user, jpeg_file):
    alice = make_user("alice")
    old_avatar = alice.avatar

    user = user_service.update_avatar(alice.id, jpeg_file())

    assert user.avatar == media.stored[-1]
    assert media.released == [old_avatar]


def test_update_cover_image_from_empty(user_service, media, make_user, jpeg_file):
    alice = make_user("alice")

    user = user_service.update_cover_image(alice.id, jpeg_file())

    assert user.cover_image == media.stored[-1]
    assert media.released == []


def test_update_avatar_requires_file(user_service, make_user):
    alice = make_user("alice")
    with pytest.raises(InvalidArgumentError):
        user_service.update_avatar(alice.id, None)


def test_channel_profile_counts(user_service, subscription_service, make_user):
    alice = make_user("alice")
    bob = make_user("bob")
    carol = make_user("carol")
    subscription_service.toggle(subscriber_id=alice.id, channel_id=bob.id)
    subscription_service.toggle(subscriber_id=carol.id, channel_id=bob.id)
    subscription_service.toggle(subscriber_id=bob.id, channel_id=carol.id)

    profile = user_service.channel_profile("Bob", viewer_id=alice.id)

    assert profile.username == "bob"
    assert profile.subscriber_count == 2
    assert profile.subscribed_to_count == 1
    assert profile.is_subscribed is True
    assert user_service.channel_profile("bob", viewer_id=bob.id).is_subscribed is False


def test_channel_profile_unknown(user_service):
    with pytest.raises(NotFoundError):
        user_service.channel_profile("ghost")
