"""Tests for tracking and acknowledging messages with UnorderedAcknowledger."""

from unittest.mock import Mock

import pytest

from acktrack.acknowledger import BaseAcknowledger, UnorderedAcknowledger
from acktrack.exceptions import DeleteFailedError, SessionClosedError
from acktrack.message import Message

QUEUE_URL = "https://sqs.local/orders"


def message(receipt_handle, **kwargs):
    return Message(queue_url=QUEUE_URL, receipt_handle=receipt_handle, **kwargs)


def handles(acknowledger):
    return [i.receipt_handle for i in acknowledger.get_unack_messages()]


@pytest.fixture
def open_session():
    return Mock()


@pytest.fixture
def acknowledger(queue_client, open_session):
    return UnorderedAcknowledger(queue_client, open_session, None)


def test_base_acknowledger_cannot_be_instantiated():
    with pytest.raises(TypeError):
        BaseAcknowledger()


class TestNotify:
    def test_notified_message_is_tracked_exactly_once(self, acknowledger):
        acknowledger.notify_message_received(message("rh-1"))

        assert handles(acknowledger) == ["rh-1"]

    def test_renotifying_does_not_duplicate(self, acknowledger):
        acknowledger.notify_message_received(message("rh-1"))
        acknowledger.notify_message_received(message("rh-1", group_id="g"))

        unacked = acknowledger.get_unack_messages()
        assert len(unacked) == 1
        assert unacked[0].group_id == "g"

    def test_identifiers_are_accepted(self, acknowledger, make_identifier):
        identifier = make_identifier("rh-1", queue_url=QUEUE_URL)
        acknowledger.notify_message_received(identifier)

        assert acknowledger.get_unack_messages() == [identifier]

    def test_notify_performs_no_io(self, queue_client, acknowledger):
        acknowledger.notify_message_received(message("rh-1"))

        assert queue_client.deletes == []

    def test_unbounded_acknowledger_retains_everything_in_order(
        self, acknowledger
    ):
        for index in range(1000):
            acknowledger.notify_message_received(message(f"rh-{index}"))

        assert handles(acknowledger) == [f"rh-{index}" for index in range(1000)]


class TestCapacity:
    def test_oldest_message_is_evicted_over_capacity(
        self, queue_client, open_session
    ):
        acknowledger = UnorderedAcknowledger(queue_client, open_session, 2)
        for handle in ["A", "B", "C"]:
            acknowledger.notify_message_received(message(handle))

        assert handles(acknowledger) == ["B", "C"]

    def test_eviction_ignores_renotification(self, queue_client, open_session):
        acknowledger = UnorderedAcknowledger(queue_client, open_session, 2)
        for handle in ["A", "B", "A", "C"]:
            acknowledger.notify_message_received(message(handle))

        assert handles(acknowledger) == ["B", "C"]

    def test_size_never_exceeds_capacity(self, queue_client, open_session):
        acknowledger = UnorderedAcknowledger(queue_client, open_session, 3)
        for index in range(50):
            acknowledger.notify_message_received(message(f"rh-{index}"))
            assert len(acknowledger.get_unack_messages()) <= 3

        assert handles(acknowledger) == ["rh-47", "rh-48", "rh-49"]

    def test_capacity_is_resolved_from_environment_when_omitted(
        self, monkeypatch, queue_client, open_session
    ):
        monkeypatch.setenv("MAX_UNACKNOWLEDGED_MESSAGES", "5")

        acknowledger = UnorderedAcknowledger(queue_client, open_session)

        assert acknowledger.max_unacknowledged_messages == 5

    @pytest.mark.parametrize(
        "capacity, expected", [("4", 4), (0, None), (-2, None), ("many", None)]
    )
    def test_explicit_capacity_is_parsed(
        self, queue_client, open_session, capacity, expected
    ):
        acknowledger = UnorderedAcknowledger(queue_client, open_session, capacity)

        assert acknowledger.max_unacknowledged_messages == expected

    def test_explicit_capacity_overrides_environment(
        self, monkeypatch, queue_client, open_session
    ):
        monkeypatch.setenv("MAX_UNACKNOWLEDGED_MESSAGES", "5")

        acknowledger = UnorderedAcknowledger(queue_client, open_session, None)

        assert acknowledger.max_unacknowledged_messages is None


class TestAcknowledge:
    def test_acknowledged_message_is_deleted_and_untracked(
        self, queue_client, acknowledger
    ):
        acknowledger.notify_message_received(message("rh-1"))
        acknowledger.notify_message_received(message("rh-2"))

        acknowledger.acknowledge(message("rh-1"))

        assert handles(acknowledger) == ["rh-2"]
        assert queue_client.deletes == [(QUEUE_URL, "rh-1")]

    def test_session_is_checked_before_delete(self, queue_client, open_session):
        open_session.check_open.side_effect = SessionClosedError("Session is closed")
        acknowledger = UnorderedAcknowledger(queue_client, open_session, None)
        acknowledger.notify_message_received(message("rh-1"))

        with pytest.raises(SessionClosedError):
            acknowledger.acknowledge(message("rh-1"))

        assert queue_client.deletes == []
        assert handles(acknowledger) == ["rh-1"]

    def test_failed_delete_keeps_message_tracked(
        self, failing_queue_client, open_session
    ):
        failing_queue_client.error = DeleteFailedError("boom")
        acknowledger = UnorderedAcknowledger(failing_queue_client, open_session, None)
        acknowledger.notify_message_received(message("rh-1"))

        with pytest.raises(DeleteFailedError):
            acknowledger.acknowledge(message("rh-1"))

        assert handles(acknowledger) == ["rh-1"]

    def test_collaborator_errors_pass_through_unmodified(
        self, failing_queue_client, open_session
    ):
        error = RuntimeError("socket closed")
        failing_queue_client.error = error
        acknowledger = UnorderedAcknowledger(failing_queue_client, open_session, None)

        with pytest.raises(RuntimeError) as exc:
            acknowledger.acknowledge(message("rh-1"))

        assert exc.value is error

    def test_acknowledge_can_be_retried_after_failure(
        self, failing_queue_client, open_session
    ):
        failing_queue_client.error = DeleteFailedError("boom")
        acknowledger = UnorderedAcknowledger(failing_queue_client, open_session, None)
        acknowledger.notify_message_received(message("rh-1"))

        with pytest.raises(DeleteFailedError):
            acknowledger.acknowledge(message("rh-1"))

        failing_queue_client.error = None
        acknowledger.acknowledge(message("rh-1"))

        assert handles(acknowledger) == []
        assert len(failing_queue_client.deletes) == 2

    def test_untracked_message_is_still_deleted(self, queue_client, acknowledger):
        acknowledger.acknowledge(message("never-seen"))

        assert queue_client.deletes == [(QUEUE_URL, "never-seen")]
        assert acknowledger.get_unack_messages() == []

    def test_second_acknowledge_deletes_again(self, queue_client, acknowledger):
        acknowledger.notify_message_received(message("rh-1"))
        acknowledger.notify_message_received(message("rh-2"))

        acknowledger.acknowledge(message("rh-1"))
        acknowledger.acknowledge(message("rh-1"))

        assert queue_client.deletes == [(QUEUE_URL, "rh-1"), (QUEUE_URL, "rh-1")]
        assert handles(acknowledger) == ["rh-2"]

    def test_acknowledging_evicted_message_still_deletes(
        self, queue_client, open_session
    ):
        acknowledger = UnorderedAcknowledger(queue_client, open_session, 1)
        acknowledger.notify_message_received(message("A"))
        acknowledger.notify_message_received(message("B"))

        acknowledger.acknowledge(message("A"))

        assert queue_client.deletes == [(QUEUE_URL, "A")]
        assert handles(acknowledger) == ["B"]


class TestSnapshotAndForget:
    def test_snapshot_is_not_the_live_container(self, acknowledger):
        acknowledger.notify_message_received(message("rh-1"))

        snapshot = acknowledger.get_unack_messages()
        acknowledger.notify_message_received(message("rh-2"))
        assert len(snapshot) == 1
        assert snapshot[0].receipt_handle == "rh-1"

        snapshot.clear()

        assert handles(acknowledger) == ["rh-1", "rh-2"]

    @pytest.mark.parametrize("capacity", [None, 3])
    def test_forget_clears_without_deleting(
        self, queue_client, open_session, capacity
    ):
        acknowledger = UnorderedAcknowledger(queue_client, open_session, capacity)
        for index in range(5):
            acknowledger.notify_message_received(message(f"rh-{index}"))

        acknowledger.forget_unack_messages()

        assert acknowledger.get_unack_messages() == []
        assert queue_client.deletes == []

    def test_forget_on_empty_acknowledger(self, acknowledger):
        acknowledger.forget_unack_messages()

        assert acknowledger.get_unack_messages() == []
