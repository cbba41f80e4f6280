"""文本处理工具：模板变量、截断、短标识与链接识别。"""

from dataclasses import dataclass
import math
import re

VARIABLE_PATTERN = re.compile(r"\{\{(\w+)\}\}", re.ASCII)
URL_PATTERN = re.compile(r"(https?://[^\s]+)")


def extract_variables(content: str) -> list[str]:
    """按首次出现顺序提取 `{{name}}` 变量名，去重。"""
    names: list[str] = []
    for match in VARIABLE_PATTERN.finditer(content):
        name = match.group(1)
        if name not in names:
            names.append(name)
    return names


def replace_variables(content: str, values: dict[str, str]) -> str:
    """替换已知变量，未提供取值的占位符原样保留。"""

    def _substitute(match: re.Match[str]) -> str:
        value = values.get(match.group(1))
        return match.group(0) if value is None else str(value)

    return VARIABLE_PATTERN.sub(_substitute, content)


def truncate(text: str, length: int) -> str:
    if len(text) <= length:
        return text
    return text[:length] + "..."


def generate_slug(text: str) -> str:
    """生成 URL 短标识，保留字母数字、下划线与连字符。"""
    slug = re.sub(r"[^\w\s-]", "", text.lower())
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"-+", "-", slug)
    return slug.strip()


@dataclass(frozen=True)
class TextSegment:
    """链接识别后的文本片段。"""

    text: str
    is_link: bool = False


def linkify(text: str) -> list[TextSegment]:
    """将文本拆分为普通片段与 http(s) 链接片段，空片段会被丢弃。"""
    if not text:
        return []
    segments: list[TextSegment] = []
    for index, part in enumerate(URL_PATTERN.split(text)):
        if not part:
            continue
        # split 使用捕获组时，奇数位即为匹配到的链接。
        segments.append(TextSegment(text=part, is_link=index % 2 == 1))
    return segments


def rating_to_stars(rating: float | None) -> str:
    """将 0-5 评分转换为星级字符串，支持半星。"""
    if not rating:
        return "☆☆☆☆☆"
    full = math.floor(rating)
    has_half = rating % 1 >= 0.5
    return "★" * full + ("½" if has_half else "") + "☆" * (5 - full - (1 if has_half else 0))
