"""
Tests for assessment authoring and patient attempts.
"""

import json

import pytest
from sqlalchemy import func, select

from carelearn.models.assessment import AssessmentAttempt, QuestionResponse
from carelearn.models.content import ContentItem
from carelearn.services.assessment_service import assessment_service
from carelearn.services.patient_assessment_service import grade, patient_assessment_service
from carelearn.services.patient_service import patient_service


def choice_question(assessment_id, sequence, points=1, correct=0, question_type="multiple_choice"):
    return {
        "assessmentId": assessment_id,
        "questionText": f"Question number {sequence}?",
        "questionType": question_type,
        "sequenceNumber": sequence,
        "points": points,
        "options": [
            {"optionText": "Yes", "isCorrect": correct == 0, "sequenceNumber": 1},
            {"optionText": "No", "isCorrect": correct == 1, "sequenceNumber": 2},
        ],
    }


@pytest.fixture
async def category(factory):
    return await factory.category("Mindfulness")


@pytest.fixture
async def module(factory, category):
    program = await factory.program(category)
    return await factory.module(program, 1)


@pytest.fixture
async def assessment_id(module, admin, ctx_for):
    created = await assessment_service.create_assessment_content(ctx_for(admin), {
        "moduleId": module.id,
        "title": "Week one check",
        "description": "A short check on week one",
        "instructions": "Answer every question",
        "passingScore": 50,
        "sequenceNumber": 1,
    })
    assert created.success is True
    return created.data.assessment_id


# ── Authoring ────────────────────────────────────────────────────────

async def test_create_assessment_content_links_content_item(db, admin, ctx_for, assessment_id):
    detail = (await assessment_service.get_assessment(ctx_for(admin), assessment_id)).data
    item = await db.get(ContentItem, detail.content_item_id)
    assert item.content_type == "assessment"
    assert json.loads(item.content) == {"description": "A short check on week one", "instructions": "Answer every question"}


async def test_create_question_with_options(admin, ctx_for, assessment_id):
    result = await assessment_service.create_question(ctx_for(admin), choice_question(assessment_id, 1, correct=1))
    assert result.success is True
    assert [(o.option_text, o.is_correct) for o in result.data.options] == [("Yes", False), ("No", True)]


async def test_choice_question_needs_exactly_one_correct(admin, ctx_for, assessment_id):
    payload = choice_question(assessment_id, 1)
    payload["options"][1]["isCorrect"] = True
    result = await assessment_service.create_question(ctx_for(admin), payload)
    assert result.status == 400
    assert "Exactly one option must be marked correct" in result.error.message


async def test_text_question_drops_options(admin, ctx_for, assessment_id):
    payload = choice_question(assessment_id, 1, question_type="text_response")
    result = await assessment_service.create_question(ctx_for(admin), payload)
    assert result.data.options == []


async def test_update_question_replaces_options(admin, ctx_for, assessment_id):
    created = await assessment_service.create_question(ctx_for(admin), choice_question(assessment_id, 1))
    payload = choice_question(assessment_id, 1, question_type="true_false")
    payload["options"] = [
        {"optionText": "True", "isCorrect": False, "sequenceNumber": 1},
        {"optionText": "False", "isCorrect": True, "sequenceNumber": 2},
    ]

    updated = await assessment_service.update_question(ctx_for(admin), created.data.id, payload)

    assert updated.data.question_type.value == "true_false"
    assert [o.option_text for o in updated.data.options] == ["True", "False"]


async def test_questions_are_ordered(admin, ctx_for, assessment_id):
    for sequence in (3, 1, 2):
        await assessment_service.create_question(ctx_for(admin), choice_question(assessment_id, sequence))
    detail = (await assessment_service.get_assessment(ctx_for(admin), assessment_id)).data
    assert [q.sequence_number for q in detail.questions] == [1, 2, 3]
    assert (await assessment_service.next_question_sequence(ctx_for(admin), assessment_id)).data == 4


async def test_delete_assessment_removes_content_item(db, admin, ctx_for, assessment_id):
    await assessment_service.create_question(ctx_for(admin), choice_question(assessment_id, 1))
    content_item_id = (await assessment_service.get_assessment(ctx_for(admin), assessment_id)).data.content_item_id

    result = await assessment_service.delete_assessment(ctx_for(admin), assessment_id)

    assert result.success is True
    assert await db.get(ContentItem, content_item_id) is None
    assert (await assessment_service.get_assessment(ctx_for(admin), assessment_id)).status == 404


# ── Patient side ─────────────────────────────────────────────────────

def test_grade_rounds_percentage():
    assert grade({"a": 1, "b": 2}, 1) == 33
    assert grade({}, 0) == 0


async def test_patient_view_hides_answer_key(patient, admin, ctx_for, assessment_id):
    await assessment_service.create_question(ctx_for(admin), choice_question(assessment_id, 1))
    result = await patient_assessment_service.get_assessment(ctx_for(patient), assessment_id)
    payload = result.to_payload()
    option = payload["data"]["questions"][0]["options"][0]
    assert "is_correct" not in option
    assert option["option_text"] == "Yes"


async def test_submit_assessment_grades_choice_answers(db, patient, admin, ctx_for, assessment_id):
    q1 = (await assessment_service.create_question(ctx_for(admin), choice_question(assessment_id, 1, points=1))).data
    q2 = (await assessment_service.create_question(ctx_for(admin), choice_question(assessment_id, 2, points=2))).data
    text = {
        "assessmentId": assessment_id, "questionText": "How did it feel?",
        "questionType": "text_response", "sequenceNumber": 3, "points": 1,
    }
    q3 = (await assessment_service.create_question(ctx_for(admin), text)).data

    result = await patient_assessment_service.submit_assessment(ctx_for(patient), assessment_id, {"answers": [
        {"questionId": q1.id, "questionType": "multiple_choice", "selectedOptionId": q1.options[0].id},
        {"questionId": q2.id, "questionType": "multiple_choice", "selectedOptionId": q2.options[1].id},
        {"questionId": q3.id, "questionType": "text_response", "textResponse": "Calmer than before"},
    ]})

    attempt = result.data
    assert attempt.score == 25
    assert attempt.passed is False
    assert attempt.completed_at is not None

    responses = (await db.execute(
        select(QuestionResponse).where(QuestionResponse.attempt_id == attempt.id)
    )).scalars().all()
    by_question = {r.question_id: r for r in responses}
    assert (by_question[q1.id].is_correct, by_question[q1.id].points_earned) == (True, 1)
    assert (by_question[q2.id].is_correct, by_question[q2.id].points_earned) == (False, 0)
    assert by_question[q3.id].is_correct is None
    assert by_question[q3.id].text_response == "Calmer than before"


async def test_submit_rejects_foreign_questions(db, patient, ctx_for, assessment_id):
    result = await patient_assessment_service.submit_assessment(ctx_for(patient), assessment_id, {"answers": [
        {"questionId": "5f0c7a1e-0000-4000-8000-000000000000", "questionType": "text_response"},
    ]})
    assert result.status == 400
    assert await db.scalar(select(func.count(QuestionResponse.id))) == 0


async def test_submit_requires_answers(patient, ctx_for, assessment_id):
    result = await patient_assessment_service.submit_assessment(ctx_for(patient), assessment_id, {"answers": []})
    assert result.status == 400


async def test_list_assessments_without_category_is_empty(patient, ctx_for, assessment_id):
    listing = (await patient_assessment_service.list_assessments(ctx_for(patient))).data
    assert listing.available == []
    assert listing.completed == []


async def test_list_assessments_splits_on_latest_attempt(category, patient, admin, ctx_for, assessment_id):
    await patient_service.assign_patient_to_category(ctx_for(admin), patient.id, {"categoryId": category.id})

    before = (await patient_assessment_service.list_assessments(ctx_for(patient))).data
    assert [a.id for a in before.available] == [assessment_id]
    assert before.available[0].latest_attempt is None
    assert before.completed == []

    question = (await assessment_service.create_question(ctx_for(admin), choice_question(assessment_id, 1))).data
    await patient_assessment_service.submit_assessment(ctx_for(patient), assessment_id, {"answers": [
        {"questionId": question.id, "questionType": "multiple_choice", "selectedOptionId": question.options[0].id},
    ]})

    after = (await patient_assessment_service.list_assessments(ctx_for(patient))).data
    assert after.available == []
    assert after.completed[0].latest_attempt.score == 100
    assert after.completed[0].latest_attempt.passed is True


async def test_list_assessments_refuses_other_category(factory, category, patient, admin, ctx_for):
    await patient_service.assign_patient_to_category(ctx_for(admin), patient.id, {"categoryId": category.id})
    other = await factory.category("Sleep")
    result = await patient_assessment_service.list_assessments(ctx_for(patient), other.id)
    assert result.status == 403


async def test_admin_cannot_submit(admin, ctx_for, assessment_id):
    result = await patient_assessment_service.submit_assessment(ctx_for(admin), assessment_id, {"answers": [
        {"questionType": "text_response", "textResponse": "hello"},
    ]})
    assert result.status == 403
    assert result.error.message == "Access denied. Patient role required."


async def test_repeated_answer_is_rejected_and_nothing_recorded(db, patient, admin, ctx_for, assessment_id):
    first = (await assessment_service.create_question(ctx_for(admin), choice_question(assessment_id, 1))).data
    await assessment_service.create_question(ctx_for(admin), choice_question(assessment_id, 2))
    answer = {"questionId": first.id, "questionType": "multiple_choice", "selectedOptionId": first.options[0].id}

    result = await patient_assessment_service.submit_assessment(
        ctx_for(patient), assessment_id, {"answers": [answer, answer, answer]}
    )

    assert result.status == 400
    assert result.error.field_errors == {"answers": ["Each question can only be answered once"]}
    assert await db.scalar(select(func.count(AssessmentAttempt.id))) == 0
