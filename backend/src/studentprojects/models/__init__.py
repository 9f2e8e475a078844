from .studentproject_models import (
    ContentBlock,
    ProjectContent,
    ProjectRecord,
    ProjectView,
    PublicationState,
)

__all__ = [
    "ContentBlock",
    "ProjectContent",
    "ProjectRecord",
    "ProjectView",
    "PublicationState",
]
