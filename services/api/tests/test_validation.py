from uuid import uuid4

from fastapi import HTTPException
import pytest

from khub_api.schemas.catalog import CategoryCreateRequest
from khub_api.schemas.prompt import PromptTestCreateRequest
from khub_api.schemas.tool import ToolCreateRequest, ToolUpdateRequest
from khub_api.services.validation import INVALID_BODY_MESSAGE, parse_payload, validate_payload


def test_validate_payload_accepts_camel_case_fields():
    tag_id = uuid4()
    result = validate_payload(ToolCreateRequest, {"name": "Cursor", "tagIds": [str(tag_id)], "officialUrl": "https://x.test"})

    assert result.ok
    assert result.value.tag_ids == [tag_id]
    assert result.value.official_url == "https://x.test"


def test_validate_payload_rejects_non_object_body():
    result = validate_payload(ToolCreateRequest, ["not", "an", "object"])

    assert not result.ok
    assert result.violations[0].message == INVALID_BODY_MESSAGE


def test_missing_required_field_uses_field_title():
    result = validate_payload(CategoryCreateRequest, {})

    assert result.violations[0].field == "name"
    assert result.violations[0].message == "分类名称为必填项。"


def test_empty_string_is_rejected():
    result = validate_payload(CategoryCreateRequest, {"name": ""})

    assert result.violations[0].message == "分类名称不能为空。"


def test_rating_range_and_type_checks():
    too_high = validate_payload(PromptTestCreateRequest, {"output": "ok", "isSuccess": True, "rating": 6})
    not_bool = validate_payload(PromptTestCreateRequest, {"output": "ok", "isSuccess": "maybe"})

    assert too_high.violations[0].message == "评分不能大于 5。"
    assert not_bool.violations[0].message == "是否成功必须是布尔值。"


@pytest.mark.parametrize(
    ("payload", "message"),
    [
        ({"output": "ok", "isSuccess": True, "rating": True}, "评分必须是整数。"),
        ({"output": "ok", "isSuccess": True, "rating": "5"}, "评分必须是整数。"),
        ({"output": "ok", "isSuccess": True, "rating": 4.5}, "评分必须是整数。"),
        ({"output": "ok", "isSuccess": "yes"}, "是否成功必须是布尔值。"),
        ({"output": "ok", "isSuccess": 1}, "是否成功必须是布尔值。"),
    ],
)
def test_prompt_test_fields_are_not_coerced(payload, message):
    result = validate_payload(PromptTestCreateRequest, payload)

    assert not result.ok
    assert result.violations[0].message == message


def test_favorite_flag_requires_json_boolean():
    rejected = validate_payload(ToolUpdateRequest, {"isFavorite": "true"})
    accepted = validate_payload(ToolUpdateRequest, {"isFavorite": False})

    assert rejected.violations[0].field == "isFavorite"
    assert rejected.violations[0].message == "收藏必须是布尔值。"
    assert accepted.ok
    assert accepted.value.is_favorite is False

def test_invalid_id_in_array_reports_field_path():
    result = validate_payload(ToolUpdateRequest, {"tagIds": ["not-a-uuid"]})

    assert not result.ok
    assert result.violations[0].field == "tagIds.0"
    assert result.violations[0].message == "标签必须是合法的 ID。"


def test_parse_payload_raises_first_violation_as_400():
    with pytest.raises(HTTPException) as exc_info:
        parse_payload(CategoryCreateRequest, None)

    assert exc_info.value.status_code == 400
    assert exc_info.value.detail["code"] == "VALIDATION_ERROR"
    assert exc_info.value.detail["message"] == INVALID_BODY_MESSAGE
