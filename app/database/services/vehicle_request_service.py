from typing import Optional
from sqlalchemy import func, or_
from sqlalchemy.orm import Session, joinedload
from datetime import datetime
import logging

from app.config import VEHICLE_FALLBACK_DEPARTMENT
from app.database.models.users import Department, User
from app.database.models.vehicle_request import ServiceVehicleRequest, VehicleApproval
from app.database.repositories.workflow_repository import SqlAlchemyWorkflowRepository
from app.database.services.approval_records import upsert_approval
from app.logic import notifications
from app.logic.request_guards import (
    VEHICLE_FORM,
    can_delete_vehicle_request,
    can_edit_vehicle_request,
    can_submit_vehicle_request,
    is_admin,
    is_cancellable,
    is_owner_or_admin,
    is_submittable,
)
from app.logic.workflow_processor import WorkflowProcessor
from app.logic.workflow_status import CANCELLED, COMPLETED, DECLINED, DRAFT, RETURNED, SUBMITTED
from app.logic.workflow_types import ApprovalContext
from app.ReqResModels.requestmodels import (
    ApproverSummary,
    CurrentStepResponse,
    RequestStatsResponse,
    TransitionResponse,
)
from app.ReqResModels.vehiclerequestmodels import (
    ApproveVehicleRequest,
    AssignVehicleRequest,
    CreateVehicleRequest,
    UpdateVehicleRequest,
    VehicleReasonRequest,
    VehicleRequestListItem,
    VehicleRequestListResponse,
    VehicleRequestQueryParams,
    VehicleRequestResponse,
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

# Step recorded when no vehicle workflow is configured
LEGACY_STEP_ORDER = 1
LEGACY_STEP_NAME = "Department Approval"

VEHICLE_STATUS_KEYS = ("draft", "submitted", "returned", "declined", "completed")


class VehicleRequestService:

    @staticmethod
    def create_request(db: Session, request: CreateVehicleRequest) -> VehicleRequestResponse:
        """Create a draft service vehicle request with its reference code"""
        try:
            actor = VehicleRequestService._get_user(db, request.actor_id)

            department_id = request.department_id or actor.department_id
            if not department_id:
                raise ValidationError("A department is required for the request")

            vehicle_request = ServiceVehicleRequest(
                requested_by=actor.id,
                department_id=department_id,
                requestor_name=request.requestor_name or actor.full_name,
                request_type=request.request_type,
                purpose=request.purpose,
                destination=request.destination,
                travel_date_from=request.travel_date_from,
                travel_date_to=request.travel_date_to,
                status=DRAFT,
                created_at=datetime.utcnow()
            )
            db.add(vehicle_request)
            db.flush()
            vehicle_request.reference_code = f"SVR-{datetime.utcnow():%Y%m%d}-{vehicle_request.id:06d}"

            db.commit()
            db.refresh(vehicle_request)
            return VehicleRequestResponse.model_validate(vehicle_request)

        except BaseCustomError:
            db.rollback()
            raise
        except Exception as e:
            db.rollback()
            raise DatabaseError(f"Failed to create vehicle request: {str(e)}")

    @staticmethod
    def get_request(db: Session, request_id: int) -> VehicleRequestResponse:
        return VehicleRequestResponse.model_validate(VehicleRequestService._get_request(db, request_id))

    @staticmethod
    def get_by_reference_code(db: Session, reference_code: str) -> VehicleRequestResponse:
        """Lookup used for tracking a request by its reference code"""
        vehicle_request = db.query(ServiceVehicleRequest).options(
            joinedload(ServiceVehicleRequest.approvals)
        ).filter(ServiceVehicleRequest.reference_code == reference_code).first()
        if not vehicle_request:
            raise RequestNotFoundError(f"No vehicle request found with reference code {reference_code}")
        return VehicleRequestResponse.model_validate(vehicle_request)

    @staticmethod
    def list_requests(db: Session, params: VehicleRequestQueryParams) -> VehicleRequestListResponse:
        """Requests visible to ``params.actor_id``, flagging those waiting on the actor.

        Approvers of the vehicle department see every request because all vehicle
        requests are routed to them; other department approvers see their own
        department. Drafts are only listed for their owner.
        """
        actor = VehicleRequestService._get_user(db, params.actor_id)
        query = VehicleRequestService._scoped_query(db, actor).filter(
            or_(ServiceVehicleRequest.status != DRAFT, ServiceVehicleRequest.requested_by == actor.id)
        )

        if params.status:
            query = query.filter(ServiceVehicleRequest.status == params.status)

        if params.department_id:
            query = query.filter(ServiceVehicleRequest.department_id == params.department_id)

        if params.search:
            pattern = f"%{params.search}%"
            query = query.filter(or_(
                ServiceVehicleRequest.requestor_name.ilike(pattern),
                ServiceVehicleRequest.reference_code.ilike(pattern),
                ServiceVehicleRequest.destination.ilike(pattern)
            ))

        total_count = query.count()

        offset = (params.page - 1) * params.page_size
        vehicle_requests = query.options(
            joinedload(ServiceVehicleRequest.approvals)
        ).order_by(
            ServiceVehicleRequest.created_at.desc(), ServiceVehicleRequest.id.desc()
        ).offset(offset).limit(params.page_size).all()

        processor = WorkflowProcessor(SqlAlchemyWorkflowRepository(db))
        actionable = processor.actionable_statuses(VEHICLE_FORM)

        requests = []
        for vehicle_request in vehicle_requests:
            item = VehicleRequestListItem.model_validate(vehicle_request)
            item.is_pending_my_approval = vehicle_request.status in actionable and any(
                approval.status == "pending" and approval.approver_id == actor.id
                for approval in vehicle_request.approvals
            )
            requests.append(item)

        total_pages = (total_count + params.page_size - 1) // params.page_size

        return VehicleRequestListResponse(
            requests=requests,
            total_count=total_count,
            page=params.page,
            page_size=params.page_size,
            total_pages=total_pages
        )

    @staticmethod
    def get_stats(db: Session, actor_id: int) -> RequestStatsResponse:
        """Request counts per status within the actor's view"""
        actor = VehicleRequestService._get_user(db, actor_id)
        query = VehicleRequestService._scoped_query(db, actor)

        stats = dict.fromkeys(VEHICLE_STATUS_KEYS, 0)
        rows = query.with_entities(
            ServiceVehicleRequest.status, func.count(ServiceVehicleRequest.id)
        ).group_by(ServiceVehicleRequest.status).all()
        for status, count in rows:
            stats[status] = count

        total = sum(count for status, count in stats.items() if actor.role == "requestor" or status != DRAFT)
        return RequestStatsResponse(stats=stats, total=total)

    @staticmethod
    def assign_vehicle(db: Session, request_id: int, request: AssignVehicleRequest) -> VehicleRequestResponse:
        """Record the driver and vehicle for a trip.

        Approvers of the vehicle department assign while the request awaits
        approval; once completed, any department approver may update it.
        """
        try:
            actor = VehicleRequestService._get_user(db, request.actor_id)
            vehicle_request = VehicleRequestService._get_request(db, request_id)

            if actor.role not in ("department_approver", "super_administrator"):
                raise AuthorizationError("Only approvers can assign vehicles")

            processor = WorkflowProcessor(SqlAlchemyWorkflowRepository(db))
            awaiting = [s for s in processor.actionable_statuses(VEHICLE_FORM) if s != RETURNED]
            in_vehicle_department = VehicleRequestService._in_vehicle_department(db, actor)
            if vehicle_request.status != COMPLETED and not (
                in_vehicle_department and vehicle_request.status in awaiting
            ):
                raise InvalidStatusError(
                    f"Only {VEHICLE_FALLBACK_DEPARTMENT} approvers can assign vehicles to requests awaiting "
                    "approval; other approvers can only update completed requests"
                )

            vehicle_request.assigned_driver = request.assigned_driver
            vehicle_request.assigned_vehicle = request.assigned_vehicle
            if request.approval_date:
                vehicle_request.approval_date = request.approval_date
            vehicle_request.updated_at = datetime.utcnow()

            db.commit()
            db.refresh(vehicle_request)
            return VehicleRequestResponse.model_validate(vehicle_request)

        except BaseCustomError:
            db.rollback()
            raise
        except Exception as e:
            db.rollback()
            raise DatabaseError(f"Failed to assign vehicle: {str(e)}")

    @staticmethod
    def update_request(db: Session, request_id: int, request: UpdateVehicleRequest) -> VehicleRequestResponse:
        try:
            actor = VehicleRequestService._get_user(db, request.actor_id)
            vehicle_request = VehicleRequestService._get_request(db, request_id)

            if not can_edit_vehicle_request(actor, vehicle_request):
                raise AuthorizationError("You do not have permission to edit this request")

            updates = request.model_dump(exclude_unset=True, exclude={"actor_id"})
            for field, value in updates.items():
                if value is not None:
                    setattr(vehicle_request, field, value)

            if (vehicle_request.travel_date_from and vehicle_request.travel_date_to
                    and vehicle_request.travel_date_to < vehicle_request.travel_date_from):
                raise ValidationError("travel_date_to must not be before travel_date_from")

            vehicle_request.updated_at = datetime.utcnow()
            db.commit()
            db.refresh(vehicle_request)
            return VehicleRequestResponse.model_validate(vehicle_request)

        except BaseCustomError:
            db.rollback()
            raise
        except Exception as e:
            db.rollback()
            raise DatabaseError(f"Failed to update vehicle request: {str(e)}")

    @staticmethod
    def submit_request(db: Session, request_id: int, actor_id: int) -> TransitionResponse:
        """Submit a draft or returned request to the first approver of the vehicle workflow"""
        try:
            actor = VehicleRequestService._get_user(db, actor_id)
            vehicle_request = VehicleRequestService._get_request(db, request_id)

            if not can_submit_vehicle_request(actor, vehicle_request):
                raise AuthorizationError("You can only submit your own requests")
            if not is_submittable(vehicle_request.status):
                raise InvalidStatusError("Only draft or returned requests can be submitted")

            processor = WorkflowProcessor(SqlAlchemyWorkflowRepository(db))
            assignment = processor.process_workflow_on_submit(
                VEHICLE_FORM, ApprovalContext(department_id=vehicle_request.department_id)
            )

            if assignment is not None:
                approver = assignment.approver
                step_order, step_name, step_id = (
                    assignment.step.step_order, assignment.step.step_name, assignment.step.id
                )
                logger.info(f"Found approver from workflow: {approver.email} (Step: {step_name})")
            else:
                approver = VehicleRequestService._fallback_approver(db, vehicle_request.department_id)
                step_order, step_name, step_id = LEGACY_STEP_ORDER, LEGACY_STEP_NAME, None

            if approver is None:
                raise NoApproverFoundError()

            vehicle_request.status = SUBMITTED
            vehicle_request.submitted_at = datetime.utcnow()
            vehicle_request.updated_at = datetime.utcnow()

            approval, created = upsert_approval(
                db,
                VehicleApproval,
                {"vehicle_request_id": vehicle_request.id, "step_order": step_order},
                {"approver_id": approver.id, "step_name": step_name, "workflow_step_id": step_id, "status": "pending"},
            )
            if not created:
                approval.reset_to_pending(approver.id)
                approval.step_name = step_name
                approval.workflow_step_id = step_id

            db.commit()

            notifications.send("approval_required", vehicle_request.reference_code, approver)

            return TransitionResponse(
                message="Service vehicle request submitted successfully",
                request_id=vehicle_request.id,
                status=vehicle_request.status,
                next_approver=VehicleRequestService._summary(approver)
            )

        except BaseCustomError:
            db.rollback()
            raise
        except Exception as e:
            db.rollback()
            raise DatabaseError(f"Failed to submit vehicle request: {str(e)}")

    @staticmethod
    def approve_request(db: Session, request_id: int, request: ApproveVehicleRequest) -> TransitionResponse:
        """Approve the step the request currently waits on"""
        try:
            actor = VehicleRequestService._get_user(db, request.actor_id)
            vehicle_request = VehicleRequestService._get_request(db, request_id)
            processor = WorkflowProcessor(SqlAlchemyWorkflowRepository(db))
            context = ApprovalContext(department_id=vehicle_request.department_id)

            VehicleRequestService._ensure_actionable(processor, vehicle_request, "approved")
            step = VehicleRequestService._locate_step(db, processor, actor, vehicle_request, "approve")
            if VehicleRequestService._in_vehicle_department(db, actor):
                VehicleRequestService._ensure_assignment(vehicle_request)

            next_step = None
            next_approver = None
            if step is not None:
                next_step = processor.get_next_step(VEHICLE_FORM, step.step_order)
                new_status = processor.resolve_status_on_approval(step, next_step is not None)
                if next_step is not None:
                    next_approver = processor.find_approver_for_step(next_step, context)
                    if next_approver is None:
                        raise NoApproverFoundError(
                            f"No active approver found for step {next_step.step_order} ({next_step.step_name}). "
                            "Please contact your administrator."
                        )
                step_order, step_name, step_id = step.step_order, step.step_name, step.id
            else:
                # No vehicle workflow: one approval completes the request
                new_status = COMPLETED
                step_order, step_name, step_id = LEGACY_STEP_ORDER, LEGACY_STEP_NAME, None

            approval, _ = upsert_approval(
                db,
                VehicleApproval,
                {"vehicle_request_id": vehicle_request.id, "step_order": step_order},
                {"approver_id": actor.id, "step_name": step_name, "workflow_step_id": step_id, "status": "pending"},
            )
            approval.approve(request.remarks)
            approval.approver_id = actor.id

            if next_step is not None:
                next_approval, created = upsert_approval(
                    db,
                    VehicleApproval,
                    {"vehicle_request_id": vehicle_request.id, "step_order": next_step.step_order},
                    {
                        "approver_id": next_approver.id,
                        "step_name": next_step.step_name,
                        "workflow_step_id": next_step.id,
                        "status": "pending",
                    },
                )
                if not created:
                    next_approval.reset_to_pending(next_approver.id)

            logger.info(
                f"Vehicle request {vehicle_request.reference_code}: step {step_order} approved, "
                f"status {vehicle_request.status} -> {new_status}"
            )
            vehicle_request.status = new_status
            vehicle_request.updated_at = datetime.utcnow()

            db.commit()

            notifications.send(
                "request_approved",
                vehicle_request.reference_code,
                vehicle_request.requested_by_user,
                actor,
                next_approver,
            )
            if next_approver is not None:
                notifications.send("approval_required", vehicle_request.reference_code, next_approver)

            return TransitionResponse(
                message="Service vehicle request approved successfully",
                request_id=vehicle_request.id,
                status=new_status,
                next_approver=VehicleRequestService._summary(next_approver)
            )

        except BaseCustomError:
            db.rollback()
            raise
        except Exception as e:
            db.rollback()
            raise DatabaseError(f"Failed to approve vehicle request: {str(e)}")

    @staticmethod
    def decline_request(db: Session, request_id: int, request: VehicleReasonRequest) -> TransitionResponse:
        return VehicleRequestService._reject(db, request_id, request, DECLINED)

    @staticmethod
    def return_request(db: Session, request_id: int, request: VehicleReasonRequest) -> TransitionResponse:
        return VehicleRequestService._reject(db, request_id, request, RETURNED)

    @staticmethod
    def cancel_request(db: Session, request_id: int, actor_id: int) -> TransitionResponse:
        try:
            actor = VehicleRequestService._get_user(db, actor_id)
            vehicle_request = VehicleRequestService._get_request(db, request_id)

            if not is_owner_or_admin(actor, vehicle_request.requested_by):
                raise AuthorizationError("You can only cancel your own requests")
            if not is_cancellable(vehicle_request.status):
                raise InvalidStatusError("Cannot cancel completed, declined or already cancelled requests")

            vehicle_request.status = CANCELLED
            vehicle_request.updated_at = datetime.utcnow()
            db.commit()

            return TransitionResponse(
                message="Service vehicle request cancelled successfully",
                request_id=vehicle_request.id,
                status=CANCELLED
            )

        except BaseCustomError:
            db.rollback()
            raise
        except Exception as e:
            db.rollback()
            raise DatabaseError(f"Failed to cancel vehicle request: {str(e)}")

    @staticmethod
    def delete_request(db: Session, request_id: int, actor_id: int) -> bool:
        try:
            actor = VehicleRequestService._get_user(db, actor_id)
            vehicle_request = VehicleRequestService._get_request(db, request_id)

            if not can_delete_vehicle_request(actor, vehicle_request):
                if actor.id != vehicle_request.requested_by:
                    raise AuthorizationError("You can only delete your own requests")
                raise InvalidStatusError("Only draft requests can be deleted")

            db.delete(vehicle_request)
            db.commit()
            return True

        except BaseCustomError:
            db.rollback()
            raise
        except Exception as e:
            db.rollback()
            raise DatabaseError(f"Failed to delete vehicle request: {str(e)}")

    @staticmethod
    def get_current_step(db: Session, request_id: int, actor_id: int) -> CurrentStepResponse:
        actor = VehicleRequestService._get_user(db, actor_id)
        vehicle_request = VehicleRequestService._get_request(db, request_id)
        processor = WorkflowProcessor(SqlAlchemyWorkflowRepository(db))
        context = ApprovalContext(department_id=vehicle_request.department_id)

        if vehicle_request.status not in processor.actionable_statuses(VEHICLE_FORM):
            return CurrentStepResponse(request_id=vehicle_request.id, status=vehicle_request.status, can_act=False)

        if not processor.get_steps(VEHICLE_FORM):
            approver = VehicleRequestService._fallback_approver(db, vehicle_request.department_id)
            return CurrentStepResponse(
                request_id=vehicle_request.id,
                status=vehicle_request.status,
                can_act=is_admin(actor) or (approver is not None and approver.id == actor.id),
                step_order=LEGACY_STEP_ORDER,
                step_name=LEGACY_STEP_NAME,
                approver=VehicleRequestService._summary(approver)
            )

        step = processor.gating_step(VEHICLE_FORM, vehicle_request.status)
        approver = processor.find_approver_for_step(step, context) if step is not None else None
        can_act = is_admin(actor) and step is not None
        if not can_act:
            can_act = processor.find_current_step_for_approver(
                VEHICLE_FORM, actor, vehicle_request.status, context
            ) is not None

        return CurrentStepResponse(
            request_id=vehicle_request.id,
            status=vehicle_request.status,
            can_act=can_act,
            step_order=step.step_order if step is not None else None,
            step_name=step.step_name if step is not None else None,
            approver=VehicleRequestService._summary(approver)
        )

    @staticmethod
    def _reject(db: Session, request_id: int, request: VehicleReasonRequest, new_status: str) -> TransitionResponse:
        """Decline or return the request at its current step; the reason is kept on the request"""
        verb = "declined" if new_status == DECLINED else "returned"
        action = "decline" if new_status == DECLINED else "return"
        try:
            actor = VehicleRequestService._get_user(db, request.actor_id)
            vehicle_request = VehicleRequestService._get_request(db, request_id)
            processor = WorkflowProcessor(SqlAlchemyWorkflowRepository(db))

            VehicleRequestService._ensure_actionable(processor, vehicle_request, verb)
            step = VehicleRequestService._locate_step(db, processor, actor, vehicle_request, action)

            if step is not None:
                step_order, step_name, step_id = step.step_order, step.step_name, step.id
            else:
                step_order, step_name, step_id = LEGACY_STEP_ORDER, LEGACY_STEP_NAME, None

            approval, _ = upsert_approval(
                db,
                VehicleApproval,
                {"vehicle_request_id": vehicle_request.id, "step_order": step_order},
                {"approver_id": actor.id, "step_name": step_name, "workflow_step_id": step_id, "status": "pending"},
            )
            if new_status == DECLINED:
                approval.decline(request.reason)
            else:
                approval.return_for_revision(request.reason)
            approval.approver_id = actor.id

            vehicle_request.status = new_status
            vehicle_request.comments = request.reason
            vehicle_request.updated_at = datetime.utcnow()

            db.commit()

            event = "request_declined" if new_status == DECLINED else "request_returned"
            notifications.send(
                event, vehicle_request.reference_code, vehicle_request.requested_by_user, actor, request.reason
            )

            return TransitionResponse(
                message=f"Service vehicle request {verb}",
                request_id=vehicle_request.id,
                status=new_status
            )

        except BaseCustomError:
            db.rollback()
            raise
        except Exception as e:
            db.rollback()
            raise DatabaseError(f"Failed to {action} vehicle request: {str(e)}")

    @staticmethod
    def _ensure_actionable(processor: WorkflowProcessor, vehicle_request: ServiceVehicleRequest, verb: str):
        allowed = processor.actionable_statuses(VEHICLE_FORM)
        if vehicle_request.status not in allowed:
            raise InvalidStatusError(
                f"Only requests with status {', '.join(allowed)} can be {verb}"
            )

    @staticmethod
    def _locate_step(db: Session, processor: WorkflowProcessor, actor: User,
                     vehicle_request: ServiceVehicleRequest, action: str):
        """Workflow step ``actor`` acts on, or ``None`` when no vehicle workflow is configured.

        Raises AuthorizationError when the actor is not an approver of the current step.
        """
        context = ApprovalContext(department_id=vehicle_request.department_id)

        if not processor.get_steps(VEHICLE_FORM):
            if is_admin(actor):
                return None
            approver = VehicleRequestService._fallback_approver(db, vehicle_request.department_id)
            if approver is None or approver.id != actor.id:
                raise AuthorizationError(f"You do not have permission to {action} this request")
            return None

        if is_admin(actor):
            step = processor.gating_step(VEHICLE_FORM, vehicle_request.status)
            if step is None:
                raise InvalidStatusError(f"Request in status {vehicle_request.status} has no step to {action}")
            return step

        step = processor.find_current_step_for_approver(VEHICLE_FORM, actor, vehicle_request.status, context)
        if step is None:
            raise AuthorizationError("You are not the approver for the current step of this request")
        return step

    @staticmethod
    def _ensure_assignment(vehicle_request: ServiceVehicleRequest):
        """The vehicle department approves only once a driver and vehicle are assigned"""
        if not (vehicle_request.assigned_driver or "").strip():
            raise ValidationError("Please fill in the Assigned Driver field before approving")
        if not (vehicle_request.assigned_vehicle or "").strip():
            raise ValidationError("Please fill in the Assigned Vehicle field before approving")
        if not vehicle_request.approval_date:
            raise ValidationError("Please fill in the Approval Date field before approving")

    @staticmethod
    def _scoped_query(db: Session, actor: User):
        query = db.query(ServiceVehicleRequest)
        if actor.role == "requestor":
            return query.filter(ServiceVehicleRequest.requested_by == actor.id)
        if actor.role == "department_approver" and not VehicleRequestService._in_vehicle_department(db, actor):
            return query.filter(ServiceVehicleRequest.department_id == actor.department_id)
        return query

    @staticmethod
    def _vehicle_department(db: Session) -> Optional[Department]:
        return db.query(Department).filter(
            func.lower(Department.name).contains(VEHICLE_FALLBACK_DEPARTMENT.lower()),
            Department.is_active == True
        ).order_by(Department.id.asc()).first()

    @staticmethod
    def _in_vehicle_department(db: Session, actor: User) -> bool:
        department = VehicleRequestService._vehicle_department(db)
        return department is not None and actor.department_id == department.id

    @staticmethod
    def _fallback_approver(db: Session, department_id: int) -> Optional[User]:
        """Department approver of the vehicle department, else of the request's department"""
        repository = SqlAlchemyWorkflowRepository(db)
        department = VehicleRequestService._vehicle_department(db)

        approver = None
        if department is not None:
            approver = repository.find_active_user(role="department_approver", department_id=department.id)
        if approver is None:
            logger.warning(
                f"No {VEHICLE_FALLBACK_DEPARTMENT} department approver found, "
                f"using the approver of department {department_id}"
            )
            approver = repository.find_active_user(role="department_approver", department_id=department_id)
        return approver

    @staticmethod
    def _get_user(db: Session, user_id: int) -> User:
        user = db.query(User).filter(User.id == user_id, User.is_active == True).first()
        if not user:
            raise UserNotFoundError(f"Active user with ID {user_id} not found")
        return user

    @staticmethod
    def _get_request(db: Session, request_id: int) -> ServiceVehicleRequest:
        vehicle_request = db.query(ServiceVehicleRequest).options(
            joinedload(ServiceVehicleRequest.approvals),
            joinedload(ServiceVehicleRequest.requested_by_user)
        ).filter(ServiceVehicleRequest.id == request_id).first()
        if not vehicle_request:
            raise RequestNotFoundError(f"Service vehicle request with ID {request_id} not found")
        return vehicle_request

    @staticmethod
    def _summary(user: Optional[User]) -> Optional[ApproverSummary]:
        if user is None:
            return None
        return ApproverSummary(id=user.id, name=user.full_name, email=user.email)
