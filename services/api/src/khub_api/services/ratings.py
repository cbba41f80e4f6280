"""提示词评分聚合。"""

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from khub_api.models.prompt import Prompt, PromptTest


def recompute_prompt_rating(db: Session, prompt: Prompt) -> float | None:
    """按全部非空测试评分重新计算提示词评分。

    调用方须与新增测试处于同一事务，并事先锁定提示词行；
    平均值由数据库一次性聚合，不做增量计算。没有评分时保持原值。
    """
    db.flush()
    average = db.execute(
        select(func.avg(PromptTest.rating))
        .where(PromptTest.prompt_id == prompt.id)
        .where(PromptTest.rating.is_not(None))
    ).scalar_one_or_none()
    if average is None:
        return prompt.rating
    prompt.rating = float(average)
    db.flush()
    return prompt.rating
