from .ai import router as ai_router
from .auth import router as auth_router
from .contact import router as contact_router
from .contractor import router as contractor_router
from .contracts import router as contracts_router
from .documents import router as documents_router
from .invitations import router as invitations_router
from .organizations import router as organizations_router
from .projects import router as projects_router
from .signing import router as signing_router
from .telegram import router as telegram_router

routers = [
    contact_router,
    auth_router,
    organizations_router,
    projects_router,
    contracts_router,
    invitations_router,
    documents_router,
    contractor_router,
    signing_router,
    ai_router,
    telegram_router,
]

__all__ = ["routers"]
