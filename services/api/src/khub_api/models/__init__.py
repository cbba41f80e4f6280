"""ORM 模型导出集合。"""

from khub_api.models.activity import ActivityLog
from khub_api.models.attachment import Attachment
from khub_api.models.catalog import Category, Tag, TagLink, TaxonomyItem
from khub_api.models.playbook import Playbook, PlaybookStep, PlaybookStepItem
from khub_api.models.prompt import Prompt, PromptTest, PromptVariable, PromptVersion
from khub_api.models.tool import LearningPath, LearningPathTool, Lesson, Tool
from khub_api.models.tweet import Tweet
from khub_api.models.user import User
from khub_api.models.workspace import Workspace, WorkspaceMember

__all__ = [
    "ActivityLog",
    "Attachment",
    "Category",
    "LearningPath",
    "LearningPathTool",
    "Lesson",
    "Playbook",
    "PlaybookStep",
    "PlaybookStepItem",
    "Prompt",
    "PromptTest",
    "PromptVariable",
    "PromptVersion",
    "Tag",
    "TagLink",
    "TaxonomyItem",
    "Tool",
    "Tweet",
    "User",
    "Workspace",
    "WorkspaceMember",
]
