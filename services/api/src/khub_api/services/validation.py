"""请求体校验。

每个接口用 pydantic 模型声明字段约束（必填/可选、非空字符串、数值范围、
枚举、ID 数组），`validate_payload` 将原始请求体转换为强类型对象或有序的
违规列表。校验是纯函数，不访问数据库；对外只返回第一条违规信息。
"""

from dataclasses import dataclass, field
from typing import Any, Generic, Mapping, Sequence, TypeVar

from fastapi import HTTPException, status
from pydantic import BaseModel, ValidationError

SchemaT = TypeVar("SchemaT", bound=BaseModel)

INVALID_BODY_MESSAGE = "请求参数不合法。"

_MESSAGE_BY_TYPE = {
    "missing": "{label}为必填项。",
    "string_too_short": "{label}不能为空。",
    "string_too_long": "{label}长度不能超过 {max_length} 个字符。",
    "string_type": "{label}必须是字符串。",
    "string_pattern_mismatch": "{label}格式不正确。",
    "bool_type": "{label}必须是布尔值。",
    "bool_parsing": "{label}必须是布尔值。",
    "int_type": "{label}必须是整数。",
    "int_parsing": "{label}必须是整数。",
    "int_from_float": "{label}必须是整数。",
    "float_type": "{label}必须是数字。",
    "float_parsing": "{label}必须是数字。",
    "greater_than_equal": "{label}不能小于 {ge}。",
    "less_than_equal": "{label}不能大于 {le}。",
    "list_type": "{label}必须是数组。",
    "dict_type": "{label}必须是对象。",
    "uuid_type": "{label}必须是合法的 ID。",
    "uuid_parsing": "{label}必须是合法的 ID。",
    "literal_error": "{label}取值无效，可选值：{expected}。",
    "enum": "{label}取值无效，可选值：{expected}。",
    "model_type": INVALID_BODY_MESSAGE,
    "model_attributes_type": INVALID_BODY_MESSAGE,
    "json_invalid": "请求体不是合法的 JSON。",
    "value_error": "{label}{reason}",
}


@dataclass(frozen=True)
class Violation:
    """单条校验违规。"""

    field: str
    message: str


@dataclass
class ValidationResult(Generic[SchemaT]):
    """校验结果：成功时 value 有值，否则 violations 非空。"""

    value: SchemaT | None = None
    violations: list[Violation] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.value is not None and not self.violations


def _field_labels(schema: type[BaseModel]) -> dict[str, str]:
    """字段名与别名到展示名（Field.title）的映射。"""
    labels: dict[str, str] = {}
    for name, info in schema.model_fields.items():
        label = info.title or name
        labels[name] = label
        if info.alias:
            labels[info.alias] = label
    return labels


def _location(loc: Sequence[Any]) -> str:
    return ".".join(str(item) for item in loc if item not in ("body", "query", "path"))


def localize_error(error: Mapping[str, Any], labels: Mapping[str, str] | None = None) -> Violation:
    """将一条 pydantic 错误转换为本地化违规信息。"""
    loc = list(error.get("loc") or ())
    field_path = _location(loc)
    names = [str(item) for item in loc if not isinstance(item, int) and item not in ("body", "query", "path")]
    leaf = names[-1] if names else ""
    label = (labels or {}).get(leaf) or leaf or "请求体"

    template = _MESSAGE_BY_TYPE.get(str(error.get("type")))
    if template is None:
        return Violation(field=field_path, message=f"{label}不合法。")

    ctx = dict(error.get("ctx") or {})
    reason = str(ctx.get("error") or "不合法。")
    try:
        message = template.format(label=label, reason=reason, **{k: v for k, v in ctx.items() if k != "error"})
    except (KeyError, IndexError):
        message = f"{label}不合法。"
    return Violation(field=field_path, message=message)


def validate_payload(schema: type[SchemaT], raw: Any) -> ValidationResult[SchemaT]:
    """校验原始请求体，返回强类型对象或违规列表。"""
    if not isinstance(raw, Mapping):
        return ValidationResult(violations=[Violation(field="", message=INVALID_BODY_MESSAGE)])
    try:
        return ValidationResult(value=schema.model_validate(dict(raw)))
    except ValidationError as exc:
        labels = _field_labels(schema)
        return ValidationResult(violations=[localize_error(err, labels) for err in exc.errors()])


def parse_payload(schema: type[SchemaT], raw: Any) -> SchemaT:
    """校验请求体，失败时以第一条违规信息返回 400。"""
    result = validate_payload(schema, raw)
    if not result.ok:
        first = result.violations[0]
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"code": "VALIDATION_ERROR", "message": first.message, "field": first.field},
        )
    return result.value  # type: ignore[return-value]
