from datetime import datetime


class ApprovalTransitionsMixin:
    """Transitions shared by item and vehicle approval records.

    approve, decline and return are mutually exclusive: each one stamps its own
    timestamp and clears the other two.
    """

    def approve(self, comments=None):
        self.status = "approved"
        self.comments = comments
        self.approved_at = datetime.utcnow()
        self.declined_at = None
        self.returned_at = None

    def decline(self, comments=None):
        self.status = "declined"
        self.comments = comments
        self.declined_at = datetime.utcnow()
        self.approved_at = None
        self.returned_at = None

    def return_for_revision(self, reason):
        self.status = "returned"
        self.return_reason = reason
        self.returned_at = datetime.utcnow()
        self.approved_at = None
        self.declined_at = None

    def reset_to_pending(self, approver_id):
        self.approver_id = approver_id
        self.status = "pending"
        self.comments = None
        self.return_reason = None
        self.approved_at = None
        self.declined_at = None
        self.returned_at = None
