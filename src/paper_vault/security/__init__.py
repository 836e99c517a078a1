from .permissions import ADMIN_ROLE, RequirePermission, ensure_permission
from .principal import Actor, current_actor

__all__ = [
    "ADMIN_ROLE",
    "Actor",
    "RequirePermission",
    "current_actor",
    "ensure_permission",
]
