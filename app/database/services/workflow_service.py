from typing import List
from sqlalchemy.orm import Session, joinedload
from datetime import datetime
import logging

from app.database.models.request import ItemRequest
from app.database.models.users import Department, User
from app.database.models.vehicle_request import ServiceVehicleRequest
from app.database.models.workflow import ApprovalWorkflow, WorkflowStep
from app.database.repositories.workflow_repository import SqlAlchemyWorkflowRepository
from app.logic.request_guards import ITEM_FORM, is_admin
from app.logic.workflow_processor import WorkflowProcessor
from app.logic.workflow_status import find_duplicate_statuses
from app.ReqResModels.workflowmodels import (
    CreateWorkflowRequest,
    UpdateWorkflowRequest,
    WorkflowListResponse,
    WorkflowResponse,
    WorkflowStepRequest,
    WorkflowValidationResponse,
)
from app.logic.exceptions import (
    AuthorizationError,
    BaseCustomError,
    DatabaseError,
    UserNotFoundError,
    ValidationError,
    WorkflowNotFoundError,
)

logger = logging.getLogger(__name__)

# Item request statuses that are still moving through the workflow
ITEM_IN_FLIGHT_STATUSES = ("submitted", "department_approved", "it_manager_approved", "service_desk_processing")


class WorkflowService:

    @staticmethod
    def list_workflows(db: Session, actor_id: int, form_type: str = None) -> WorkflowListResponse:
        WorkflowService._require_admin(db, actor_id)
        query = db.query(ApprovalWorkflow).options(joinedload(ApprovalWorkflow.steps))
        if form_type:
            query = query.filter(ApprovalWorkflow.form_type == form_type)
        workflows = query.order_by(ApprovalWorkflow.form_type, ApprovalWorkflow.created_at.desc()).all()
        return WorkflowListResponse(
            workflows=[WorkflowResponse.model_validate(workflow) for workflow in workflows],
            total=len(workflows)
        )

    @staticmethod
    def get_workflow(db: Session, workflow_id: int, actor_id: int) -> WorkflowResponse:
        WorkflowService._require_admin(db, actor_id)
        return WorkflowResponse.model_validate(WorkflowService._get_workflow(db, workflow_id))

    @staticmethod
    def get_active_workflow(db: Session, form_type: str) -> WorkflowResponse:
        """Workflow the engine would use right now for ``form_type``"""
        processor = WorkflowProcessor(SqlAlchemyWorkflowRepository(db))
        workflow = processor.get_active_workflow(form_type)
        if workflow is None:
            raise WorkflowNotFoundError(f"No active workflow found for form type {form_type}")
        return WorkflowResponse.model_validate(workflow)

    @staticmethod
    def create_workflow(db: Session, request: CreateWorkflowRequest) -> WorkflowResponse:
        try:
            actor = WorkflowService._require_admin(db, request.actor_id)
            WorkflowService._validate_steps(db, request.steps, request.strict_statuses)

            form_type = request.form_type.value
            if request.is_default:
                WorkflowService._clear_default(db, form_type)

            workflow = ApprovalWorkflow(
                form_type=form_type,
                name=request.name,
                is_active=request.is_active,
                is_default=request.is_default,
                created_by=actor.id,
                updated_by=actor.id,
                created_at=datetime.utcnow()
            )
            workflow.steps = WorkflowService._build_steps(request.steps)
            db.add(workflow)
            db.commit()
            db.refresh(workflow)

            logger.info(f"Workflow {workflow.name} ({form_type}) created with {len(workflow.steps)} step(s)")
            return WorkflowResponse.model_validate(workflow)

        except BaseCustomError:
            db.rollback()
            raise
        except Exception as e:
            db.rollback()
            raise DatabaseError(f"Failed to create workflow: {str(e)}")

    @staticmethod
    def update_workflow(db: Session, workflow_id: int, request: UpdateWorkflowRequest) -> WorkflowResponse:
        """Update workflow settings; when steps are given they replace the old ones as a unit"""
        try:
            actor = WorkflowService._require_admin(db, request.actor_id)
            workflow = WorkflowService._get_workflow(db, workflow_id)

            if request.steps is not None:
                WorkflowService._validate_steps(db, request.steps, request.strict_statuses)

            if request.is_default and not workflow.is_default:
                WorkflowService._clear_default(db, workflow.form_type, exclude_id=workflow.id)

            if request.name is not None:
                workflow.name = request.name
            if request.is_active is not None:
                workflow.is_active = request.is_active
            if request.is_default is not None:
                workflow.is_default = request.is_default

            if request.steps is not None:
                workflow.steps = []
                # Old rows must be gone before new ones reuse their step_order
                db.flush()
                workflow.steps = WorkflowService._build_steps(request.steps)

            workflow.updated_by = actor.id
            workflow.updated_at = datetime.utcnow()

            db.commit()
            db.refresh(workflow)
            return WorkflowResponse.model_validate(workflow)

        except BaseCustomError:
            db.rollback()
            raise
        except Exception as e:
            db.rollback()
            raise DatabaseError(f"Failed to update workflow: {str(e)}")

    @staticmethod
    def delete_workflow(db: Session, workflow_id: int, actor_id: int) -> bool:
        try:
            WorkflowService._require_admin(db, actor_id)
            workflow = WorkflowService._get_workflow(db, workflow_id)

            if workflow.is_default:
                raise ValidationError(
                    "Cannot delete default workflow. Please set another workflow as default first."
                )

            if workflow.is_active and WorkflowService._count_in_flight(db, workflow.form_type) > 0:
                raise ValidationError(
                    "Cannot delete active workflow that has pending requests. Please deactivate it first."
                )

            db.delete(workflow)
            db.commit()
            logger.info(f"Workflow {workflow_id} deleted by user {actor_id}")
            return True

        except BaseCustomError:
            db.rollback()
            raise
        except Exception as e:
            db.rollback()
            raise DatabaseError(f"Failed to delete workflow: {str(e)}")

    @staticmethod
    def validate_workflow(db: Session, workflow_id: int, actor_id: int) -> WorkflowValidationResponse:
        """Report configuration problems of a stored workflow without changing it"""
        WorkflowService._require_admin(db, actor_id)
        workflow = WorkflowService._get_workflow(db, workflow_id)
        steps = sorted(workflow.steps, key=lambda step: step.step_order)

        duplicates = find_duplicate_statuses(steps)
        problems = [
            f"status_on_approval {status!r} is shared by steps {orders}"
            for status, orders in duplicates.items()
        ]
        problems.extend(WorkflowService._step_problems(db, steps))

        return WorkflowValidationResponse(
            workflow_id=workflow.id,
            is_valid=not problems,
            duplicate_statuses=duplicates,
            problems=problems
        )

    @staticmethod
    def _validate_steps(db: Session, steps: List[WorkflowStepRequest], strict_statuses: bool):
        problems = WorkflowService._step_problems(db, steps)
        if problems:
            raise ValidationError("; ".join(problems))

        duplicates = find_duplicate_statuses(steps)
        if duplicates:
            if strict_statuses:
                raise ValidationError(f"Steps share a status_on_approval: {duplicates}")
            logger.warning(f"Workflow steps share a status_on_approval: {duplicates}")

    @staticmethod
    def _step_problems(db: Session, steps) -> List[str]:
        problems = []
        for step in steps:
            approver_type = getattr(step.approver_type, "value", step.approver_type)
            label = f"Step {step.step_order} ({step.step_name})"
            if approver_type == "role" and not step.approver_role:
                problems.append(f"{label}: approver_role is required for role steps")
            elif approver_type == "user":
                if not step.approver_user_id:
                    problems.append(f"{label}: approver_user_id is required for user steps")
                elif not db.query(User).filter(User.id == step.approver_user_id).first():
                    problems.append(f"{label}: user {step.approver_user_id} does not exist")
            elif approver_type in ("department", "department_approver"):
                if step.approver_department_id:
                    if not db.query(Department).filter(Department.id == step.approver_department_id).first():
                        problems.append(f"{label}: department {step.approver_department_id} does not exist")
                elif not step.requires_same_department:
                    problems.append(
                        f"{label}: set approver_department_id or requires_same_department for department steps"
                    )
        return problems

    @staticmethod
    def _build_steps(steps: List[WorkflowStepRequest]) -> List[WorkflowStep]:
        return [
            WorkflowStep(
                step_order=step.step_order,
                step_name=step.step_name,
                approver_type=step.approver_type.value,
                approver_role=step.approver_role or None,
                approver_user_id=step.approver_user_id,
                approver_department_id=step.approver_department_id,
                requires_same_department=step.requires_same_department,
                status_on_approval=step.status_on_approval,
                status_on_completion=step.status_on_completion,
                created_at=datetime.utcnow()
            )
            for step in sorted(steps, key=lambda s: s.step_order)
        ]

    @staticmethod
    def _clear_default(db: Session, form_type: str, exclude_id: int = None):
        query = db.query(ApprovalWorkflow).filter(
            ApprovalWorkflow.form_type == form_type,
            ApprovalWorkflow.is_default == True
        )
        if exclude_id is not None:
            query = query.filter(ApprovalWorkflow.id != exclude_id)
        query.update({ApprovalWorkflow.is_default: False}, synchronize_session=False)

    @staticmethod
    def _count_in_flight(db: Session, form_type: str) -> int:
        if form_type == ITEM_FORM:
            return db.query(ItemRequest).filter(ItemRequest.status.in_(ITEM_IN_FLIGHT_STATUSES)).count()

        processor = WorkflowProcessor(SqlAlchemyWorkflowRepository(db))
        statuses = processor.actionable_statuses(form_type)
        return db.query(ServiceVehicleRequest).filter(ServiceVehicleRequest.status.in_(statuses)).count()

    @staticmethod
    def _require_admin(db: Session, actor_id: int) -> User:
        actor = db.query(User).filter(User.id == actor_id, User.is_active == True).first()
        if not actor:
            raise UserNotFoundError(f"Active user with ID {actor_id} not found")
        if not is_admin(actor):
            raise AuthorizationError("Only super administrators can manage workflows")
        return actor

    @staticmethod
    def _get_workflow(db: Session, workflow_id: int) -> ApprovalWorkflow:
        workflow = db.query(ApprovalWorkflow).options(
            joinedload(ApprovalWorkflow.steps)
        ).filter(ApprovalWorkflow.id == workflow_id).first()
        if not workflow:
            raise WorkflowNotFoundError(f"Workflow with ID {workflow_id} not found")
        return workflow
