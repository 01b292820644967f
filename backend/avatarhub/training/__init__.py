"""
Prompt version control and training.

Usage:
    from avatarhub.training import router as training_router
    app.include_router(training_router)
"""

from .compare import compare_versions
from .repo import activate_version, create_version, get_active_version, increment_usage
from .routes import router
from .service import train_avatar

__all__ = [
    "router",
    "activate_version",
    "compare_versions",
    "create_version",
    "get_active_version",
    "increment_usage",
    "train_avatar",
]
