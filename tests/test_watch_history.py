import pytest

from vidtube.core.errors import InternalError, NotFoundError
from vidtube.db.repositories.videos import VideoRepository
from vidtube.db.repositories.watch_entries import WatchEntryRepository


def test_first_view_appends_snapshot(session, history_service, make_user, make_video):
    alice = make_user("alice")
    bob = make_user("bob")
    video = make_video(bob, "Intro", duration=42.5)

    history_service.record_view(user_id=alice.id, video=video)

    entries = WatchEntryRepository(session).list_for_user(alice.id)
    assert len(entries) == 1
    entry = entries[0]
    assert entry.video_id == video.id
    assert entry.title == "Intro"
    assert entry.thumbnail == video.thumbnail
    assert entry.duration == 42.5
    assert entry.progress == 0


def test_rewatch_updates_timestamp_in_place(session, history_service, make_user, make_video):
    alice = make_user("alice")
    bob = make_user("bob")
    first = make_video(bob, "First")
    second = make_video(bob, "Second")

    history_service.record_view(user_id=alice.id, video=first)
    history_service.record_view(user_id=alice.id, video=second)
    before = WatchEntryRepository(session).get_for_user_and_video(alice.id, first.id).watched_at

    history_service.record_view(user_id=alice.id, video=first)

    entries = WatchEntryRepository(session).list_for_user(alice.id)
    assert [e.video_id for e in entries] == [first.id, second.id]
    assert entries[0].watched_at > before


def test_rewatch_keeps_snapshot_and_progress(session, history_service, make_user, make_video):
    alice = make_user("alice")
    bob = make_user("bob")
    video = make_video(bob, "Original title")
    history_service.record_view(user_id=alice.id, video=video)

    entry_repo = WatchEntryRepository(session)
    entry_repo.update(entry_repo.get_for_user_and_video(alice.id, video.id), progress=37)
    video = VideoRepository(session).update(video, title="Renamed")

    history_service.record_view(user_id=alice.id, video=video)

    entry = entry_repo.get_for_user_and_video(alice.id, video.id)
    assert entry.title == "Original title"
    assert entry.progress == 37


def test_many_rewatches_never_duplicate(session, history_service, make_user, make_video):
    alice = make_user("alice")
    bob = make_user("bob")
    video = make_video(bob)

    for _ in range(5):
        history_service.record_view(user_id=alice.id, video=video)

    assert len(WatchEntryRepository(session).list_for_user(alice.id)) == 1


def test_histories_are_per_user(session, history_service, make_user, make_video):
    alice = make_user("alice")
    carol = make_user("carol")
    video = make_video(make_user("bob"))

    history_service.record_view(user_id=alice.id, video=video)

    assert len(WatchEntryRepository(session).list_for_user(alice.id)) == 1
    assert WatchEntryRepository(session).list_for_user(carol.id) == []


def test_record_view_unknown_video_leaves_history_unchanged(session, history_service, make_user):
    alice = make_user("alice")

    with pytest.raises(NotFoundError):
        history_service.record_view_by_id(user_id=alice.id, video_id=999)

    assert WatchEntryRepository(session).list_for_user(alice.id) == []


def test_list_history_joins_live_video_and_owner(history_service, make_user, make_video):
    alice = make_user("alice")
    bob = make_user("bob", full_name="Bob Builder")
    video = make_video(bob, "Live")
    history_service.record_view(user_id=alice.id, video=video)

    items = history_service.list_history(alice.id)

    assert len(items) == 1
    assert items[0].video.id == video.id
    assert items[0].owner.full_name == "Bob Builder"


def test_history_entry_outlives_deleted_video(session, history_service, make_user, make_video):
    alice = make_user("alice")
    video = make_video(make_user("bob"), "Gone soon")
    history_service.record_view(user_id=alice.id, video=video)

    VideoRepository(session).delete(video)

    items = history_service.list_history(alice.id)
    assert len(items) == 1
    assert items[0].title == "Gone soon"
    assert items[0].video is None
    assert items[0].owner is None


def test_new_video_never_inherits_deleted_video_history(session, history_service, make_user, make_video):
    alice = make_user("alice")
    bob = make_user("bob")
    old = make_video(bob, "Old video")
    old_id = old.id
    history_service.record_view(user_id=alice.id, video=old)

    VideoRepository(session).delete(old)
    new = make_video(bob, "Brand new video")
    history_service.record_view(user_id=alice.id, video=new)

    entries = WatchEntryRepository(session).list_for_user(alice.id)
    assert [(e.video_id, e.title) for e in entries] == [(old_id, "Old video"), (new.id, "Brand new video")]


def test_unreadable_entry_after_upsert_is_internal_error(session, history_service, make_user, make_video, monkeypatch):
    alice = make_user("alice")
    video = make_video(make_user("bob"))
    monkeypatch.setattr(WatchEntryRepository, "get_for_user_and_video", lambda self, user_id, video_id: None)

    with pytest.raises(InternalError):
        history_service.record_view(user_id=alice.id, video=video)
