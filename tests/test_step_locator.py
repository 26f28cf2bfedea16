import logging

import pytest

from app.logic.workflow_processor import WorkflowProcessor
from app.logic.workflow_types import ApprovalContext
from tests.factories import make_step, make_user

FORM = "vehicle_request"
HR = ApprovalContext(department_id=20)


@pytest.fixture
def people():
    return {
        "hr_approver": make_user(1, "department_approver", department_id=20),
        "it_manager": make_user(2, "it_manager", department_id=10),
        "service_desk": make_user(3, "service_desk", department_id=10),
        "outsider": make_user(4, "requestor", department_id=20),
    }


@pytest.fixture
def processor(memory_repository, people):
    memory_repository.users = list(people.values())
    memory_repository.add_workflow(1, FORM, [
        make_step(1, approver_role="department_approver", requires_same_department=True,
                  status_on_approval="department_approved"),
        make_step(2, approver_role="it_manager", status_on_approval="it_manager_approved"),
        make_step(3, approver_role="service_desk", status_on_approval="service_desk_done",
                  status_on_completion="completed"),
    ])
    return WorkflowProcessor(memory_repository)


class TestPrimaryMatch:
    @pytest.mark.parametrize("status", ["submitted", "returned"])
    def test_entry_statuses_gate_on_first_step(self, processor, people, status):
        step = processor.find_current_step_for_approver(FORM, people["hr_approver"], status, HR)
        assert step.step_order == 1

    def test_entry_status_for_someone_else_is_none(self, processor, people):
        assert processor.find_current_step_for_approver(FORM, people["it_manager"], "submitted", HR) is None

    def test_step_after_the_one_just_approved(self, processor, people):
        step = processor.find_current_step_for_approver(FORM, people["it_manager"], "department_approved", HR)
        assert step.step_order == 2
        step = processor.find_current_step_for_approver(FORM, people["service_desk"], "it_manager_approved", HR)
        assert step.step_order == 3

    def test_lookup_is_idempotent(self, processor, people):
        first = processor.find_current_step_for_approver(FORM, people["it_manager"], "department_approved", HR)
        second = processor.find_current_step_for_approver(FORM, people["it_manager"], "department_approved", HR)
        assert first.step_order == second.step_order == 2

    @pytest.mark.parametrize("status", ["draft", "completed", "declined", "service_desk_done"])
    def test_no_gating_step(self, processor, people, status):
        for user in people.values():
            assert processor.find_current_step_for_approver(FORM, user, status, HR) is None
        assert processor.locator.last_resort_hits == 0

    def test_normal_progression_never_uses_last_resort(self, processor, people):
        for status, user in [
            ("submitted", people["hr_approver"]),
            ("department_approved", people["it_manager"]),
            ("it_manager_approved", people["service_desk"]),
        ]:
            assert processor.find_current_step_for_approver(FORM, user, status, HR) is not None
        assert processor.locator.last_resort_hits == 0

    def test_no_workflow(self, memory_repository, people):
        processor = WorkflowProcessor(memory_repository)
        assert processor.find_current_step_for_approver(FORM, people["hr_approver"], "submitted", HR) is None


class TestFallbacks:
    def test_forward_scan_when_next_step_belongs_to_someone_else(self, processor, people):
        # Status says step 1 is done, but the service desk can still act further on
        step = processor.find_current_step_for_approver(FORM, people["service_desk"], "department_approved", HR)
        assert step.step_order == 3
        assert processor.locator.last_resort_hits == 0

    def test_last_resort_scan_is_counted_and_logged(self, processor, people, caplog):
        with caplog.at_level(logging.WARNING):
            step = processor.find_current_step_for_approver(FORM, people["it_manager"], "legacy_status", HR)

        assert step.step_order == 2
        assert processor.locator.last_resort_hits == 1
        events = [getattr(record, "event", None) for record in caplog.records]
        assert "workflow.last_resort_scan" in events
        assert "workflow.last_resort_match" in events

    def test_last_resort_scan_without_match(self, processor, people):
        assert processor.find_current_step_for_approver(FORM, people["outsider"], "legacy_status", HR) is None
        assert processor.locator.last_resort_hits == 1


def test_non_contiguous_step_orders(memory_repository, people):
    memory_repository.users = list(people.values())
    memory_repository.add_workflow(1, FORM, [
        make_step(3, approver_role="it_manager", status_on_approval="it_manager_approved"),
        make_step(1, approver_role="department_approver", requires_same_department=True,
                  status_on_approval="department_approved"),
    ])
    processor = WorkflowProcessor(memory_repository)

    assert processor.find_current_step_for_approver(FORM, people["hr_approver"], "submitted", HR).step_order == 1
    assert processor.find_current_step_for_approver(
        FORM, people["it_manager"], "department_approved", HR
    ).step_order == 3
    assert processor.get_next_step(FORM, 1).step_order == 3
    assert processor.get_next_step(FORM, 3) is None
    assert processor.locator.last_resort_hits == 0


def test_shared_status_tries_each_candidate(memory_repository, people, caplog):
    memory_repository.users = list(people.values())
    memory_repository.add_workflow(1, FORM, [
        make_step(1, approver_role="department_approver", requires_same_department=True,
                  status_on_approval="approved"),
        make_step(2, approver_role="it_manager", status_on_approval="approved"),
        make_step(3, approver_role="service_desk", status_on_approval="done"),
    ])
    processor = WorkflowProcessor(memory_repository)

    with caplog.at_level(logging.WARNING):
        assert processor.find_current_step_for_approver(FORM, people["it_manager"], "approved", HR).step_order == 2
        assert processor.find_current_step_for_approver(FORM, people["service_desk"], "approved", HR).step_order == 3

    assert "produced by several steps" in caplog.text
    assert processor.locator.last_resort_hits == 0
