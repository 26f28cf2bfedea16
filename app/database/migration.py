from sqlalchemy.orm import Session
from app.database.database import engine, Base, SessionLocal
from app.database.models.users import User, Department
from app.database.models.workflow import ApprovalWorkflow, WorkflowStep
from app.database.models import request, vehicle_request  # noqa: F401  registers the request tables
from datetime import datetime
import logging

logger = logging.getLogger(__name__)

DEFAULT_DEPARTMENTS = (
    ("Information Technology", "IT Department"),
    ("Human Resources", "HR Department"),
    ("Finance", "Finance Department"),
)

DEFAULT_WORKFLOWS = {
    "item_request": {
        "name": "Standard Item Request Workflow",
        "steps": [
            {
                "step_order": 1,
                "step_name": "Department Approval",
                "approver_role": "department_approver",
                "requires_same_department": True,
                "status_on_approval": "department_approved",
            },
            {
                "step_order": 2,
                "step_name": "IT Manager Approval",
                "approver_role": "it_manager",
                "status_on_approval": "it_manager_approved",
            },
            {
                "step_order": 3,
                "step_name": "Service Desk Processing",
                "approver_role": "service_desk",
                "status_on_approval": "service_desk_processing",
                "status_on_completion": "completed",
            },
        ],
    },
    "vehicle_request": {
        "name": "Standard Vehicle Request Workflow",
        "steps": [
            {
                "step_order": 1,
                "step_name": "Department Approval",
                "approver_role": "department_approver",
                "requires_same_department": True,
                "status_on_approval": "department_approved",
                "status_on_completion": "completed",
            },
        ],
    },
}


def create_tables_if_not_exist():
    """Create tables if they don't exist"""
    try:
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables created/verified")
    except Exception as e:
        logger.error(f"Error creating tables: {e}")
        raise


def seed_departments(db: Session):
    for name, description in DEFAULT_DEPARTMENTS:
        if not db.query(Department).filter(Department.name == name).first():
            db.add(Department(name=name, description=description, is_active=True))
            logger.info(f"Created default department {name}")
    db.commit()


def seed_default_workflows(db: Session):
    """Create the default workflow of each form type that has none.

    Workflows need a creator, so nothing is seeded until a super administrator exists.
    """
    admin = db.query(User).filter(User.role == "super_administrator").order_by(User.id.asc()).first()
    if admin is None:
        logger.warning("No super administrator found. Skipping default workflow initialization.")
        return

    for form_type, definition in DEFAULT_WORKFLOWS.items():
        existing = db.query(ApprovalWorkflow).filter(
            ApprovalWorkflow.form_type == form_type,
            ApprovalWorkflow.is_default == True
        ).first()
        if existing:
            continue

        workflow = ApprovalWorkflow(
            form_type=form_type,
            name=definition["name"],
            is_active=True,
            is_default=True,
            created_by=admin.id,
            updated_by=admin.id,
            created_at=datetime.utcnow()
        )
        workflow.steps = [
            WorkflowStep(approver_type="role", **step)
            for step in definition["steps"]
        ]
        db.add(workflow)
        logger.info(f"Default {form_type} workflow initialized")
    db.commit()


def seed_defaults(db: Session):
    seed_departments(db)
    seed_default_workflows(db)


def run_migration():
    """Run complete database migration"""
    logger.info("Starting database migration...")

    create_tables_if_not_exist()

    db = SessionLocal()
    try:
        seed_defaults(db)
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to initialize default data: {e}")
    finally:
        db.close()

    logger.info("Database migration completed!")
