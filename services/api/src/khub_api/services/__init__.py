"""服务层能力导出集合。"""

from khub_api.services.attachments import (
    ALLOWED_MIME_TYPES,
    MAX_UPLOAD_BYTES,
    remove_attachment,
    store_attachment,
    validate_upload,
)
from khub_api.services.audit import list_activity, record_activity
from khub_api.services.local_auth import hash_password, issue_session_token, normalize_email, verify_password
from khub_api.services.ratings import recompute_prompt_rating
from khub_api.services.repository import ScopedRepository, persistence_errors
from khub_api.services.search import global_search
from khub_api.services.session import RequestContext, resolve_session
from khub_api.services.storage import LocalFileStorage, ObjectStorage, StorageError, get_storage
from khub_api.services.validation import parse_payload, validate_payload
from khub_api.services.workspace_bootstrap import build_unique_workspace_slug, create_workspace_with_owner

__all__ = [
    "ALLOWED_MIME_TYPES",
    "MAX_UPLOAD_BYTES",
    "LocalFileStorage",
    "ObjectStorage",
    "RequestContext",
    "ScopedRepository",
    "StorageError",
    "build_unique_workspace_slug",
    "create_workspace_with_owner",
    "get_storage",
    "global_search",
    "hash_password",
    "issue_session_token",
    "list_activity",
    "normalize_email",
    "parse_payload",
    "persistence_errors",
    "recompute_prompt_rating",
    "record_activity",
    "remove_attachment",
    "resolve_session",
    "store_attachment",
    "validate_payload",
    "verify_password",
]
