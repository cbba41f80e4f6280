from uuid import uuid4

from fastapi import HTTPException
import pytest

from khub_api.models.prompt import Prompt, PromptTest
from khub_api.schemas.prompt import PromptTestCreateRequest
from khub_api.services.prompts import add_test
from khub_api.services.ratings import recompute_prompt_rating
from khub_api.services.session import RequestContext


@pytest.fixture
def ctx() -> RequestContext:
    return RequestContext(user_id=uuid4(), workspace_id=uuid4(), workspace_name="Rating", role="OWNER")


@pytest.fixture
def prompt(db_session, ctx) -> Prompt:
    item = Prompt(workspace_id=ctx.workspace_id, title="周报", content="总结 {{notes}}")
    db_session.add(item)
    db_session.commit()
    return item


def _test_payload(rating: int | None) -> PromptTestCreateRequest:
    return PromptTestCreateRequest(output="done", is_success=True, rating=rating)


def test_rating_is_mean_of_non_null_ratings(db_session, ctx, prompt):
    for rating in (5, 3, None):
        add_test(db_session, ctx, prompt.id, _test_payload(rating))
        db_session.commit()

    db_session.refresh(prompt)
    assert prompt.rating == pytest.approx(4.0)


def test_unrated_tests_leave_rating_empty(db_session, ctx, prompt):
    add_test(db_session, ctx, prompt.id, _test_payload(None))
    db_session.commit()

    db_session.refresh(prompt)
    assert prompt.rating is None


def test_recompute_uses_full_test_set(db_session, ctx, prompt):
    for rating in (1, 2, 4):
        db_session.add(
            PromptTest(workspace_id=ctx.workspace_id, prompt_id=prompt.id, output="x", is_success=False, rating=rating)
        )

    assert recompute_prompt_rating(db_session, prompt) == pytest.approx(7 / 3)


def test_add_test_rejects_prompt_from_other_workspace(db_session, prompt):
    other = RequestContext(user_id=uuid4(), workspace_id=uuid4(), workspace_name="Other", role="OWNER")

    with pytest.raises(HTTPException) as exc_info:
        add_test(db_session, other, prompt.id, _test_payload(5))

    assert exc_info.value.status_code == 404
