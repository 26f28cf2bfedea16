import pytest

from app.database.services.item_request_service import ItemRequestService
from app.logic import notifications
from app.ReqResModels.requestmodels import ApproveItemRequest, CreateItemRequest, RequestItemPayload


class RecordingNotifier:
    def __init__(self):
        self.events = []

    def approval_required(self, reference, approver):
        self.events.append(("approval_required", reference, approver.id))

    def request_approved(self, reference, requestor, approver, next_approver=None):
        self.events.append(("request_approved", reference, approver.id))

    def request_declined(self, reference, requestor, approver, reason):
        self.events.append(("request_declined", reference, approver.id))

    def request_returned(self, reference, requestor, approver, reason):
        self.events.append(("request_returned", reference, approver.id))


class BrokenNotifier(RecordingNotifier):
    def approval_required(self, reference, approver):
        raise ConnectionError("mail server unreachable")


@pytest.fixture
def use_notifier():
    original = notifications.notifier

    def install(notifier):
        notifications.set_notifier(notifier)
        return notifier

    yield install
    notifications.set_notifier(original)


def submit_new_request(db, users):
    draft = ItemRequestService.create_request(db, CreateItemRequest(
        actor_id=users.requestor.id,
        items=[RequestItemPayload(category="phone", item_description="Desk phone")],
    ))
    ItemRequestService.submit_request(db, draft.id, users.requestor.id)
    return draft


def test_transitions_notify(db, users, use_notifier):
    notifier = use_notifier(RecordingNotifier())
    draft = submit_new_request(db, users)
    ItemRequestService.approve_request(db, draft.id, ApproveItemRequest(actor_id=users.hr_approver.id))

    assert [event[0] for event in notifier.events] == [
        "approval_required", "request_approved", "approval_required"
    ]
    assert notifier.events[0][2] == users.hr_approver.id
    assert notifier.events[2][2] == users.it_manager.id


def test_failing_notifier_does_not_fail_transition(db, users, use_notifier, caplog):
    use_notifier(BrokenNotifier())
    draft = submit_new_request(db, users)

    assert ItemRequestService.get_request(db, draft.id).status == "submitted"
    assert "Failed to send approval_required notification" in caplog.text
