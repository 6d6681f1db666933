# stepladder application context
# Rev 1.0.0

from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional
from .utils.config import invitation_ttl_days, load_settings
from .utils.logging_setup import get_logger
from .repositories.db import Database
from .repositories.sqlite_invitation_repository import SQLiteInvitationRepository
from .repositories.sqlite_member_repository import SQLiteMemberRepository
from .repositories.sqlite_project_repository import SQLiteProjectRepository
from .repositories.sqlite_step_repository import SQLiteStepRepository
from .repositories.sqlite_subtask_repository import SQLiteSubtaskRepository
from .repositories.sqlite_user_repository import SQLiteUserRepository
from .services.cascade import CascadeEngine
from .services.invitation_service import InvitationService
from .services.member_service import MemberService
from .services.permission_service import PermissionService
from .services.project_service import ProjectService
from .services.step_service import StepService
from .services.subtask_service import SubtaskService


@dataclass
class AppContext:
    """Central container for shared app resources."""
    db: Database
    users: SQLiteUserRepository
    permissions: PermissionService
    projects: ProjectService
    steps: StepService
    subtasks: SubtaskService
    invitations: InvitationService
    members: MemberService

    @classmethod
    def create(cls, db_path: Optional[Path | str] = None, settings: Optional[Dict[str, Any]] = None) -> "AppContext":
        """Open the DB, apply migrations, and wire repositories into services."""
        log = get_logger("AppContext")
        settings = settings or load_settings()
        db_path = db_path or settings["database"]["path"]

        db = Database(db_path)
        db.run_migrations()

        users_repo = SQLiteUserRepository(db)
        projects_repo = SQLiteProjectRepository(db)
        steps_repo = SQLiteStepRepository(db)
        subtasks_repo = SQLiteSubtaskRepository(db)
        members_repo = SQLiteMemberRepository(db)
        invites_repo = SQLiteInvitationRepository(db)

        permissions = PermissionService(projects_repo, members_repo)
        engine = CascadeEngine(steps_repo, subtasks_repo)

        ctx = cls(
            db=db,
            users=users_repo,
            permissions=permissions,
            projects=ProjectService(db, projects_repo, steps_repo, subtasks_repo, members_repo, invites_repo,
                                    permissions),
            steps=StepService(db, steps_repo, subtasks_repo, permissions, engine),
            subtasks=SubtaskService(db, steps_repo, subtasks_repo, permissions, engine),
            invitations=InvitationService(
                db, projects_repo, members_repo, invites_repo, users_repo, permissions,
                ttl_days=invitation_ttl_days(settings),
            ),
            members=MemberService(db, members_repo, users_repo, permissions),
        )
        log.info("AppContext initialized with DB=%s", db_path)
        return ctx

    def close(self) -> None:
        self.db.close()
