"""领域枚举定义。"""

from enum import StrEnum


class WorkspaceRole(StrEnum):
    """工作空间角色。"""

    OWNER = "OWNER"  # 工作空间所有者，注册时自动授予。
    ADMIN = "ADMIN"  # 管理员。
    MEMBER = "MEMBER"  # 普通成员，未显式指定时的默认角色。
    VIEWER = "VIEWER"  # 只读成员。


class ActivityAction(StrEnum):
    """活动日志动作。"""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    ARCHIVE = "ARCHIVE"


class EntityType(StrEnum):
    """活动日志与标签关联使用的实体类型标识。"""

    CATEGORY = "Category"
    TAG = "Tag"
    TOOL = "Tool"
    TWEET = "Tweet"
    PROMPT = "Prompt"
    PROMPT_TEST = "PromptTest"
    ATTACHMENT = "Attachment"
    PLAYBOOK = "Playbook"


class TaxonomyKind(StrEnum):
    """分类字典类型。"""

    BENEFIT_TYPE = "benefit_type"  # 推文收益类型。
    CONTENT_TYPE = "content_type"  # 推文内容类型。
    MASTERY_LEVEL = "mastery_level"  # 工具掌握程度。
