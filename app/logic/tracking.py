"""Public progress timeline of an item request."""
from typing import List

from app.logic.workflow_status import COMPLETED
from app.ReqResModels.requestmodels import TimelineEntry

# (approval_type, stage name, waiting, approved, declined)
ITEM_TIMELINE_STAGES = (
    ("department_approval", "Department Approval",
     "Waiting for department approver to review", "Approved by department approver",
     "Declined by department approver"),
    ("it_manager_approval", "IT Manager Approval",
     "Waiting for IT Manager to review", "Approved by IT Manager", "Declined by IT Manager"),
    ("service_desk_processing", "Service Desk Processing",
     "Waiting for Service Desk to process", "Completed by Service Desk", "Declined by Service Desk"),
)


def build_item_timeline(item_request) -> List[TimelineEntry]:
    """Submission followed by one entry per approval stage, stopping at a decline."""
    timeline = [
        TimelineEntry(
            stage="submitted",
            status="Request Submitted",
            timestamp=item_request.submitted_at or item_request.created_at,
            completed_by=item_request.requestor.full_name,
            description="Request has been submitted",
            is_pending=False,
            is_completed=True,
        )
    ]

    approvals = {approval.approval_type: approval for approval in item_request.approvals}
    for approval_type, name, waiting, approved, declined in ITEM_TIMELINE_STAGES:
        approval = approvals.get(approval_type)
        is_approved = approval is not None and approval.status == "approved"
        is_declined = approval is not None and approval.status == "declined"

        description = waiting
        if is_approved:
            description = approved
        elif is_declined:
            description = declined

        # The first service desk pass only starts processing
        if approval_type == "service_desk_processing" and is_approved and item_request.status != COMPLETED:
            is_approved = False
            description = "Processing by Service Desk"

        timestamp = None
        if is_approved:
            timestamp = approval.approved_at
        elif is_declined:
            timestamp = approval.declined_at

        timeline.append(TimelineEntry(
            stage=approval_type,
            status=name,
            timestamp=timestamp,
            completed_by=approval.approver.full_name if (is_approved or is_declined) and approval.approver else None,
            description=description,
            comments=approval.comments if approval is not None else None,
            is_pending=not is_approved and not is_declined,
            is_completed=is_approved,
            is_declined=is_declined,
        ))

        if is_declined:
            break

    return timeline
