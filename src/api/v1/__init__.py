"""API v1 router configuration."""

from fastapi import APIRouter

from api.v1.routes.activity import router as activity_router
from api.v1.routes.auth import router as auth_router
from api.v1.routes.comments import router as comments_router
from api.v1.routes.comments import task_comments_router
from api.v1.routes.projects import router as projects_router
from api.v1.routes.tasks import project_tasks_router
from api.v1.routes.tasks import router as tasks_router
from api.v1.routes.users import router as users_router

router = APIRouter()
router.include_router(auth_router)
router.include_router(users_router)
router.include_router(projects_router)
router.include_router(project_tasks_router)
router.include_router(tasks_router)
router.include_router(task_comments_router)
router.include_router(comments_router)
router.include_router(activity_router)
