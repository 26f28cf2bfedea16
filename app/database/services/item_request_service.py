from typing import Optional
from sqlalchemy import func, or_
from sqlalchemy.orm import Session, joinedload
from datetime import datetime, time
import logging

from app.database.models.request import ItemRequest, RequestItem, Approval
from app.database.models.users import User
from app.database.repositories.workflow_repository import SqlAlchemyWorkflowRepository
from app.database.services.approval_records import upsert_approval
from app.logic import notifications
from app.logic.request_guards import (
    ITEM_FORM,
    ITEM_NEXT_APPROVAL,
    ITEM_STAGES,
    can_delete_item_request,
    can_edit_item_request,
    can_submit_item_request,
    has_wide_view,
    is_cancellable,
    is_item_stage_approver,
    is_owner_or_admin,
    is_submittable,
)
from app.logic.tracking import build_item_timeline
from app.logic.workflow_processor import WorkflowProcessor
from app.logic.workflow_status import CANCELLED, COMPLETED, DRAFT, RETURNED, SUBMITTED
from app.logic.workflow_types import ApprovalContext
from app.ReqResModels.requestmodels import (
    ApproveItemRequest,
    ApproverSummary,
    CreateItemRequest,
    CurrentStepResponse,
    DeclineItemRequest,
    ItemRequestListResponse,
    ItemRequestQueryParams,
    ItemRequestResponse,
    ItemTrackingResponse,
    RequestStatsResponse,
    ReturnItemRequest,
    ReturnTo,
    TrackedItem,
    TransitionResponse,
    UpdateItemRequest,
)
from app.logic.exceptions import (
    AuthorizationError,
    BaseCustomError,
    DatabaseError,
    InvalidStatusError,
    NoApproverFoundError,
    RequestNotFoundError,
    UserNotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)

ITEM_STATUS_KEYS = (
    "draft", "submitted", "department_approved", "department_declined", "it_manager_approved",
    "it_manager_declined", "service_desk_processing", "completed", "cancelled", "returned",
)


class ItemRequestService:

    @staticmethod
    def create_request(db: Session, request: CreateItemRequest) -> ItemRequestResponse:
        """Create a draft equipment request"""
        try:
            actor = ItemRequestService._get_user(db, request.actor_id)
            if actor.role != "requestor":
                raise AuthorizationError("Only users with the requestor role can create equipment requests")

            department_id = request.department_id or actor.department_id
            if not department_id:
                raise ValidationError("A department is required for the request")

            item_request = ItemRequest(
                requestor_id=actor.id,
                department_id=department_id,
                reason=request.reason,
                priority=request.priority.value,
                status=DRAFT,
                created_at=datetime.utcnow()
            )
            item_request.items = [
                RequestItem(category=item.category, item_description=item.item_description, quantity=item.quantity)
                for item in request.items
            ]
            db.add(item_request)
            db.flush()
            item_request.request_number = f"REQ-{datetime.utcnow():%Y%m%d}-{item_request.id:06d}"

            db.commit()
            db.refresh(item_request)
            return ItemRequestResponse.model_validate(item_request)

        except BaseCustomError:
            db.rollback()
            raise
        except Exception as e:
            db.rollback()
            raise DatabaseError(f"Failed to create request: {str(e)}")

    @staticmethod
    def get_request(db: Session, request_id: int) -> ItemRequestResponse:
        return ItemRequestResponse.model_validate(ItemRequestService._get_request(db, request_id))

    @staticmethod
    def list_requests(db: Session, params: ItemRequestQueryParams) -> ItemRequestListResponse:
        """Requests visible to ``params.actor_id``, with filtering and pagination.

        Requestors see their own requests, drafts included. Department approvers
        see their department's submitted requests, and IT staff and admins see
        every submitted request. Drafts are never shown to anyone but their owner.
        """
        actor = ItemRequestService._get_user(db, params.actor_id)
        query = ItemRequestService._scoped_query(db, actor)
        is_requestor = actor.role == "requestor"

        if params.status and (params.status != DRAFT or is_requestor):
            query = query.filter(ItemRequest.status == params.status)
        elif not is_requestor:
            query = query.filter(ItemRequest.status != DRAFT)

        if has_wide_view(actor):
            if params.department_id:
                query = query.filter(ItemRequest.department_id == params.department_id)
            if params.requestor_id:
                query = query.filter(ItemRequest.requestor_id == params.requestor_id)

        if params.priority:
            query = query.filter(ItemRequest.priority == params.priority.value)

        if params.search:
            pattern = f"%{params.search}%"
            query = query.filter(or_(ItemRequest.request_number.ilike(pattern), ItemRequest.reason.ilike(pattern)))

        if params.date_from:
            query = query.filter(ItemRequest.submitted_at >= datetime.combine(params.date_from, time.min))

        if params.date_to:
            query = query.filter(ItemRequest.submitted_at <= datetime.combine(params.date_to, time.max))

        total_count = query.count()

        offset = (params.page - 1) * params.page_size
        item_requests = query.options(
            joinedload(ItemRequest.items),
            joinedload(ItemRequest.approvals)
        ).order_by(ItemRequest.created_at.desc(), ItemRequest.id.desc()).offset(offset).limit(params.page_size).all()

        total_pages = (total_count + params.page_size - 1) // params.page_size

        return ItemRequestListResponse(
            requests=[ItemRequestResponse.model_validate(item_request) for item_request in item_requests],
            total_count=total_count,
            page=params.page,
            page_size=params.page_size,
            total_pages=total_pages
        )

    @staticmethod
    def get_stats(db: Session, actor_id: int) -> RequestStatsResponse:
        """Request counts per status within the actor's view"""
        actor = ItemRequestService._get_user(db, actor_id)
        query = ItemRequestService._scoped_query(db, actor)

        stats = dict.fromkeys(ITEM_STATUS_KEYS, 0)
        rows = query.with_entities(ItemRequest.status, func.count(ItemRequest.id)).group_by(ItemRequest.status).all()
        for status, count in rows:
            stats[status] = count

        # Drafts only count for their owner
        total = sum(count for status, count in stats.items() if actor.role == "requestor" or status != DRAFT)
        return RequestStatsResponse(stats=stats, total=total)

    @staticmethod
    def track_request(db: Session, ticket_code: str) -> ItemTrackingResponse:
        """Public progress view of a request, looked up by its request number"""
        item_request = db.query(ItemRequest).options(
            joinedload(ItemRequest.items),
            joinedload(ItemRequest.approvals).joinedload(Approval.approver),
            joinedload(ItemRequest.requestor),
            joinedload(ItemRequest.department)
        ).filter(ItemRequest.request_number == ticket_code).first()
        if not item_request:
            raise RequestNotFoundError(
                "No request found with this ticket code. Please check the code and try again."
            )

        return ItemTrackingResponse(
            ticket_code=item_request.request_number,
            status=item_request.status,
            priority=item_request.priority,
            submitted_date=item_request.submitted_at or item_request.created_at,
            submitted_by=item_request.requestor.full_name,
            department=item_request.department.name if item_request.department else None,
            purpose=item_request.reason,
            timeline=build_item_timeline(item_request),
            items=[TrackedItem.model_validate(item) for item in item_request.items]
        )

    @staticmethod
    def update_request(db: Session, request_id: int, request: UpdateItemRequest) -> ItemRequestResponse:
        """Edit a draft or returned request"""
        try:
            actor = ItemRequestService._get_user(db, request.actor_id)
            item_request = ItemRequestService._get_request(db, request_id)

            if not can_edit_item_request(actor, item_request):
                raise AuthorizationError("You do not have permission to edit this request")

            if request.reason is not None:
                item_request.reason = request.reason
            if request.priority is not None:
                item_request.priority = request.priority.value
            if request.items is not None:
                item_request.items = [
                    RequestItem(category=item.category, item_description=item.item_description, quantity=item.quantity)
                    for item in request.items
                ]
            item_request.updated_at = datetime.utcnow()

            db.commit()
            db.refresh(item_request)
            return ItemRequestResponse.model_validate(item_request)

        except BaseCustomError:
            db.rollback()
            raise
        except Exception as e:
            db.rollback()
            raise DatabaseError(f"Failed to update request: {str(e)}")

    @staticmethod
    def submit_request(db: Session, request_id: int, actor_id: int) -> TransitionResponse:
        """Submit a draft or returned request to its first approver"""
        try:
            actor = ItemRequestService._get_user(db, actor_id)
            item_request = ItemRequestService._get_request(db, request_id)

            if not can_submit_item_request(actor, item_request):
                raise AuthorizationError("You can only submit your own requests")
            if not is_submittable(item_request.status):
                raise InvalidStatusError("Only draft or returned requests can be submitted")
            if not item_request.items:
                raise ValidationError("Request must have at least one item before submission")

            repository = SqlAlchemyWorkflowRepository(db)
            processor = WorkflowProcessor(repository)
            assignment = processor.process_workflow_on_submit(
                ITEM_FORM, ApprovalContext(department_id=item_request.department_id)
            )

            if assignment is not None:
                approver = assignment.approver
                logger.info(f"Found approver from workflow: {approver.email} (Step: {assignment.step.step_name})")
            else:
                logger.warning("No workflow approver for item request, using department approver fallback")
                approver = repository.find_active_user(
                    role="department_approver", department_id=item_request.department_id
                )

            if approver is None:
                raise NoApproverFoundError()

            item_request.status = SUBMITTED
            item_request.submitted_at = datetime.utcnow()
            item_request.updated_at = datetime.utcnow()

            approval, created = upsert_approval(
                db,
                Approval,
                {"request_id": item_request.id, "approval_type": "department_approval"},
                {"approver_id": approver.id, "status": "pending"},
            )
            if not created:
                # Resubmission starts the department stage over
                approval.reset_to_pending(approver.id)

            db.commit()

            notifications.send("approval_required", item_request.request_number, approver)

            return TransitionResponse(
                message="Request submitted successfully",
                request_id=item_request.id,
                status=item_request.status,
                next_approver=ItemRequestService._summary(approver)
            )

        except BaseCustomError:
            db.rollback()
            raise
        except Exception as e:
            db.rollback()
            raise DatabaseError(f"Failed to submit request: {str(e)}")

    @staticmethod
    def approve_request(db: Session, request_id: int, request: ApproveItemRequest) -> TransitionResponse:
        """Approve the request at its current stage"""
        try:
            actor = ItemRequestService._get_user(db, request.actor_id)
            item_request = ItemRequestService._get_request(db, request_id)

            stage = ITEM_STAGES.get(item_request.status)
            if stage is None:
                raise InvalidStatusError("Request cannot be approved at this stage")

            repository = SqlAlchemyWorkflowRepository(db)
            processor = WorkflowProcessor(repository)
            if not is_item_stage_approver(processor, actor, item_request, stage):
                raise AuthorizationError("You do not have permission to approve this request")

            new_status = stage.approved_status

            # Resolve the next approver before anything is written
            next_approver = None
            if new_status in ITEM_NEXT_APPROVAL:
                next_approver = ItemRequestService._find_next_approver(
                    repository, processor, item_request, new_status
                )
                if next_approver is None:
                    raise NoApproverFoundError(
                        f"No active approver found for the next stage after {new_status}. "
                        "Please contact your administrator."
                    )

            approval, _ = upsert_approval(
                db,
                Approval,
                {"request_id": item_request.id, "approval_type": stage.approval_type},
                {"approver_id": actor.id, "status": "pending"},
            )
            approval.approve(request.comments)
            approval.approver_id = actor.id
            if request.estimated_completion_date:
                approval.estimated_completion_date = request.estimated_completion_date
            if request.processing_notes:
                approval.processing_notes = request.processing_notes

            item_request.status = new_status
            item_request.updated_at = datetime.utcnow()
            if new_status == COMPLETED:
                item_request.completed_at = datetime.utcnow()

            if next_approver is not None:
                next_type, _ = ITEM_NEXT_APPROVAL[new_status]
                next_approval, created = upsert_approval(
                    db,
                    Approval,
                    {"request_id": item_request.id, "approval_type": next_type},
                    {"approver_id": next_approver.id, "status": "pending"},
                )
                if not created and next_approval.status != "approved":
                    next_approval.reset_to_pending(next_approver.id)

            db.commit()

            notifications.send(
                "request_approved", item_request.request_number, item_request.requestor, actor, next_approver
            )
            if next_approver is not None:
                notifications.send("approval_required", item_request.request_number, next_approver)

            return TransitionResponse(
                message="Request approved successfully",
                request_id=item_request.id,
                status=new_status,
                next_approver=ItemRequestService._summary(next_approver)
            )

        except BaseCustomError:
            db.rollback()
            raise
        except Exception as e:
            db.rollback()
            raise DatabaseError(f"Failed to approve request: {str(e)}")

    @staticmethod
    def decline_request(db: Session, request_id: int, request: DeclineItemRequest) -> TransitionResponse:
        """Decline the request; only the department and IT manager stages may decline"""
        try:
            actor = ItemRequestService._get_user(db, request.actor_id)
            item_request = ItemRequestService._get_request(db, request_id)

            stage = ITEM_STAGES.get(item_request.status)
            if stage is None or stage.declined_status is None:
                raise InvalidStatusError("Request cannot be declined at this stage")

            processor = WorkflowProcessor(SqlAlchemyWorkflowRepository(db))
            if not is_item_stage_approver(processor, actor, item_request, stage):
                raise AuthorizationError("You do not have permission to decline this request")

            approval, _ = upsert_approval(
                db,
                Approval,
                {"request_id": item_request.id, "approval_type": stage.approval_type},
                {"approver_id": actor.id, "status": "pending"},
            )
            approval.decline(request.comments)
            approval.approver_id = actor.id

            item_request.status = stage.declined_status
            item_request.updated_at = datetime.utcnow()

            db.commit()

            notifications.send(
                "request_declined", item_request.request_number, item_request.requestor, actor, request.comments
            )

            return TransitionResponse(
                message="Request declined successfully",
                request_id=item_request.id,
                status=item_request.status
            )

        except BaseCustomError:
            db.rollback()
            raise
        except Exception as e:
            db.rollback()
            raise DatabaseError(f"Failed to decline request: {str(e)}")

    @staticmethod
    def return_request(db: Session, request_id: int, request: ReturnItemRequest) -> TransitionResponse:
        """Return the request to the requestor, or from the IT manager back to the department approver"""
        try:
            actor = ItemRequestService._get_user(db, request.actor_id)
            item_request = ItemRequestService._get_request(db, request_id)

            stage = ITEM_STAGES.get(item_request.status)
            if stage is None or not stage.returnable:
                raise InvalidStatusError("Request cannot be returned at this stage")

            processor = WorkflowProcessor(SqlAlchemyWorkflowRepository(db))
            if not is_item_stage_approver(processor, actor, item_request, stage):
                raise AuthorizationError("You do not have permission to return this request")

            return_to = request.return_to
            new_status = RETURNED
            if stage.approval_type == "it_manager_approval" and return_to == ReturnTo.DEPARTMENT_APPROVER:
                new_status = SUBMITTED
            elif return_to == ReturnTo.DEPARTMENT_APPROVER:
                # Department approvers can only return to the requestor
                return_to = ReturnTo.REQUESTOR

            approval, _ = upsert_approval(
                db,
                Approval,
                {"request_id": item_request.id, "approval_type": stage.approval_type},
                {"approver_id": actor.id, "status": "pending"},
            )
            approval.return_for_revision(request.return_reason)
            approval.approver_id = actor.id

            if new_status == SUBMITTED:
                department_approval = db.query(Approval).filter(
                    Approval.request_id == item_request.id,
                    Approval.approval_type == "department_approval"
                ).first()
                if department_approval is not None:
                    department_approval.reset_to_pending(department_approval.approver_id)

            item_request.status = new_status
            item_request.updated_at = datetime.utcnow()
            if return_to == ReturnTo.REQUESTOR:
                item_request.submitted_at = None

            db.commit()

            notifications.send(
                "request_returned", item_request.request_number, item_request.requestor, actor, request.return_reason
            )

            target = "Department Approver" if return_to == ReturnTo.DEPARTMENT_APPROVER else "Requestor"
            return TransitionResponse(
                message=f"Request returned to {target} successfully",
                request_id=item_request.id,
                status=new_status
            )

        except BaseCustomError:
            db.rollback()
            raise
        except Exception as e:
            db.rollback()
            raise DatabaseError(f"Failed to return request: {str(e)}")

    @staticmethod
    def cancel_request(db: Session, request_id: int, actor_id: int) -> TransitionResponse:
        try:
            actor = ItemRequestService._get_user(db, actor_id)
            item_request = ItemRequestService._get_request(db, request_id)

            if not is_owner_or_admin(actor, item_request.requestor_id):
                raise AuthorizationError("You can only cancel your own requests")
            if not is_cancellable(item_request.status):
                raise InvalidStatusError("Cannot cancel completed, declined or already cancelled requests")

            item_request.status = CANCELLED
            item_request.updated_at = datetime.utcnow()
            db.commit()

            return TransitionResponse(
                message="Request cancelled successfully",
                request_id=item_request.id,
                status=CANCELLED
            )

        except BaseCustomError:
            db.rollback()
            raise
        except Exception as e:
            db.rollback()
            raise DatabaseError(f"Failed to cancel request: {str(e)}")

    @staticmethod
    def delete_request(db: Session, request_id: int, actor_id: int) -> bool:
        try:
            actor = ItemRequestService._get_user(db, actor_id)
            item_request = ItemRequestService._get_request(db, request_id)

            if not is_owner_or_admin(actor, item_request.requestor_id):
                raise AuthorizationError("You can only delete your own draft requests")
            if not can_delete_item_request(actor, item_request):
                raise InvalidStatusError("Only draft requests can be deleted")

            db.delete(item_request)
            db.commit()
            return True

        except BaseCustomError:
            db.rollback()
            raise
        except Exception as e:
            db.rollback()
            raise DatabaseError(f"Failed to delete request: {str(e)}")

    @staticmethod
    def get_current_step(db: Session, request_id: int, actor_id: int) -> CurrentStepResponse:
        """Which stage the request waits on, and whether ``actor_id`` may act on it"""
        actor = ItemRequestService._get_user(db, actor_id)
        item_request = ItemRequestService._get_request(db, request_id)

        stage = ITEM_STAGES.get(item_request.status)
        if stage is None:
            return CurrentStepResponse(request_id=item_request.id, status=item_request.status, can_act=False)

        processor = WorkflowProcessor(SqlAlchemyWorkflowRepository(db))
        context = ApprovalContext(department_id=item_request.department_id)
        if stage.completion_pass:
            step = next(
                (s for s in processor.get_steps(ITEM_FORM) if s.status_on_approval == item_request.status), None
            )
        else:
            step = processor.gating_step(ITEM_FORM, item_request.status)
        approver = processor.find_approver_for_step(step, context) if step is not None else None

        return CurrentStepResponse(
            request_id=item_request.id,
            status=item_request.status,
            can_act=is_item_stage_approver(processor, actor, item_request, stage),
            step_order=step.step_order if step is not None else None,
            step_name=step.step_name if step is not None else stage.approval_type,
            approver=ItemRequestService._summary(approver)
        )

    @staticmethod
    def _find_next_approver(repository: SqlAlchemyWorkflowRepository, processor: WorkflowProcessor,
                            item_request: ItemRequest, new_status: str) -> Optional[User]:
        """Approver of the stage that follows ``new_status``: from the workflow when one
        is configured, otherwise the first active user with the stage's role."""
        context = ApprovalContext(department_id=item_request.department_id)
        steps = processor.get_steps(ITEM_FORM)
        satisfied = next((s for s in steps if s.status_on_approval == new_status), None)
        if satisfied is not None:
            assignment = processor.process_workflow_on_approval(ITEM_FORM, context, satisfied.step_order)
            if assignment is not None:
                return assignment.approver

        _, role = ITEM_NEXT_APPROVAL[new_status]
        logger.warning(f"No workflow approver after {new_status}, falling back to role {role}")
        return repository.find_active_user(role=role)

    @staticmethod
    def _scoped_query(db: Session, actor: User):
        query = db.query(ItemRequest)
        if actor.role == "requestor":
            return query.filter(ItemRequest.requestor_id == actor.id)
        if actor.role == "department_approver":
            return query.filter(ItemRequest.department_id == actor.department_id)
        if has_wide_view(actor):
            return query
        return query.filter(ItemRequest.requestor_id == actor.id)

    @staticmethod
    def _get_user(db: Session, user_id: int) -> User:
        user = db.query(User).filter(User.id == user_id, User.is_active == True).first()
        if not user:
            raise UserNotFoundError(f"Active user with ID {user_id} not found")
        return user

    @staticmethod
    def _get_request(db: Session, request_id: int) -> ItemRequest:
        item_request = db.query(ItemRequest).options(
            joinedload(ItemRequest.items),
            joinedload(ItemRequest.approvals),
            joinedload(ItemRequest.requestor)
        ).filter(ItemRequest.id == request_id).first()
        if not item_request:
            raise RequestNotFoundError(f"Request with ID {request_id} not found")
        return item_request

    @staticmethod
    def _summary(user: Optional[User]) -> Optional[ApproverSummary]:
        if user is None:
            return None
        return ApproverSummary(id=user.id, name=user.full_name, email=user.email)
