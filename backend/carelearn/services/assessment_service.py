import json
from sqlalchemy import delete, select
from carelearn.actions import server_action
from carelearn.auth import authorize_action
from carelearn.context import ActionContext
from carelearn.identity import Role
from carelearn.models.assessment import Assessment, AssessmentQuestion, QuestionOption
from carelearn.models.content import ContentItem
from carelearn.models.program import LearningModule
from carelearn.schemas.assessment import (
    AssessmentCreate, AssessmentCreated, AssessmentDetail, AssessmentResponse,
    OptionDetail, QuestionCreate, QuestionDetail,
)
from carelearn.schemas.content import ContentItemResponse, ContentType
from carelearn.services.common import get_or_404, next_sequence, parse_id


def _assessment_page(assessment_id: str) -> str:
    return f"/admin/programs/*/modules/*/content/assessment/{assessment_id}"


async def load_questions(db, assessment_id: str) -> list[QuestionDetail]:
    """Questions ordered by sequence, each with its options ordered by sequence."""
    result = await db.execute(
        select(AssessmentQuestion)
        .where(AssessmentQuestion.assessment_id == assessment_id)
        .order_by(AssessmentQuestion.sequence_number)
    )
    questions = result.scalars().all()
    if not questions:
        return []

    result = await db.execute(
        select(QuestionOption)
        .where(QuestionOption.question_id.in_([q.id for q in questions]))
        .order_by(QuestionOption.sequence_number)
    )
    options_by_question: dict[str, list[OptionDetail]] = {}
    for option in result.scalars().all():
        options_by_question.setdefault(option.question_id, []).append(OptionDetail.model_validate(option))

    details = []
    for question in questions:
        detail = QuestionDetail.model_validate(question)
        detail.options = options_by_question.get(question.id, [])
        details.append(detail)
    return details


async def _replace_options(db, question_id: str, payload: QuestionCreate) -> None:
    await db.execute(delete(QuestionOption).where(QuestionOption.question_id == question_id))
    for option in payload.options:
        db.add(QuestionOption(
            question_id=question_id,
            option_text=option.option_text,
            is_correct=option.is_correct,
            sequence_number=option.sequence_number,
        ))
    await db.flush()


async def _delete_questions(db, assessment_id: str) -> None:
    question_ids = select(AssessmentQuestion.id).where(AssessmentQuestion.assessment_id == assessment_id)
    await db.execute(delete(QuestionOption).where(QuestionOption.question_id.in_(question_ids)))
    await db.execute(delete(AssessmentQuestion).where(AssessmentQuestion.assessment_id == assessment_id))


class AssessmentService:
    @server_action
    async def create_assessment_content(self, ctx: ActionContext, data: dict) -> AssessmentCreated:
        """
        Create the assessment-typed content item and its assessment row. Both
        inserts share the action's transaction, so a failed assessment insert
        leaves no orphaned content item behind.
        """
        payload = AssessmentCreate.model_validate(data)
        caller = await authorize_action(ctx, Role.ADMIN)
        module_id = str(payload.module_id)
        await get_or_404(ctx.db, LearningModule, module_id, "Module")

        content_item = ContentItem(
            module_id=module_id,
            title=payload.title,
            content_type=ContentType.ASSESSMENT.value,
            content=json.dumps({"description": payload.description, "instructions": payload.instructions}),
            sequence_number=payload.sequence_number,
            created_by=caller.identity.id,
        )
        ctx.db.add(content_item)
        await ctx.db.flush()

        assessment = Assessment(
            content_item_id=content_item.id,
            title=payload.title,
            description=payload.description,
            passing_score=payload.passing_score,
            time_limit_minutes=payload.time_limit_minutes,
            created_by=caller.identity.id,
        )
        ctx.db.add(assessment)
        await ctx.db.flush()

        ctx.revalidate_path(f"/admin/programs/*/modules/{module_id}")
        return AssessmentCreated(content_item_id=content_item.id, assessment_id=assessment.id)

    @server_action
    async def get_assessment(self, ctx: ActionContext, assessment_id: str) -> AssessmentDetail:
        assessment_id = parse_id(assessment_id)
        await authorize_action(ctx, Role.ADMIN)

        assessment = await get_or_404(ctx.db, Assessment, assessment_id, "Assessment")
        detail = AssessmentDetail.model_validate(assessment)
        content_item = await ctx.db.get(ContentItem, assessment.content_item_id)
        if content_item is not None:
            detail.content_item = ContentItemResponse.model_validate(content_item)
        detail.questions = await load_questions(ctx.db, assessment_id)
        return detail

    @server_action
    async def update_assessment(self, ctx: ActionContext, assessment_id: str, data: dict) -> AssessmentResponse:
        assessment_id = parse_id(assessment_id)
        payload = AssessmentCreate.model_validate(data)
        await authorize_action(ctx, Role.ADMIN)

        assessment = await get_or_404(ctx.db, Assessment, assessment_id, "Assessment")
        assessment.title = payload.title
        assessment.description = payload.description
        assessment.passing_score = payload.passing_score
        assessment.time_limit_minutes = payload.time_limit_minutes

        content_item = await get_or_404(ctx.db, ContentItem, assessment.content_item_id, "Content item")
        content_item.title = payload.title
        content_item.sequence_number = payload.sequence_number
        content_item.content = json.dumps({"description": payload.description, "instructions": payload.instructions})
        await ctx.db.flush()
        await ctx.db.refresh(assessment)

        ctx.revalidate_path(f"/admin/programs/*/modules/{content_item.module_id}")
        ctx.revalidate_path(_assessment_page(assessment_id))
        return AssessmentResponse.model_validate(assessment)

    @server_action
    async def delete_assessment(self, ctx: ActionContext, assessment_id: str) -> dict:
        """Removes the assessment, its questions and options, and its content item."""
        assessment_id = parse_id(assessment_id)
        await authorize_action(ctx, Role.ADMIN)

        assessment = await get_or_404(ctx.db, Assessment, assessment_id, "Assessment")
        content_item = await ctx.db.get(ContentItem, assessment.content_item_id)

        await _delete_questions(ctx.db, assessment_id)
        await ctx.db.delete(assessment)
        if content_item is not None:
            await ctx.db.delete(content_item)
            ctx.revalidate_path(f"/admin/programs/*/modules/{content_item.module_id}")
        await ctx.db.flush()
        return {"deleted": True, "id": assessment_id}

    @server_action
    async def next_question_sequence(self, ctx: ActionContext, assessment_id: str) -> int:
        assessment_id = parse_id(assessment_id, "assessmentId")
        await authorize_action(ctx, Role.ADMIN)
        return await next_sequence(
            ctx.db, AssessmentQuestion.sequence_number, AssessmentQuestion.assessment_id == assessment_id
        )

    @server_action
    async def create_question(self, ctx: ActionContext, data: dict) -> QuestionDetail:
        payload = QuestionCreate.model_validate(data)
        await authorize_action(ctx, Role.ADMIN)
        assessment_id = str(payload.assessment_id)
        await get_or_404(ctx.db, Assessment, assessment_id, "Assessment")

        question = AssessmentQuestion(
            assessment_id=assessment_id,
            question_text=payload.question_text,
            question_type=payload.question_type.value,
            sequence_number=payload.sequence_number,
            points=payload.points,
        )
        ctx.db.add(question)
        await ctx.db.flush()
        await _replace_options(ctx.db, question.id, payload)

        ctx.revalidate_path(_assessment_page(assessment_id))
        return await self._question_detail(ctx, question)

    @server_action
    async def update_question(self, ctx: ActionContext, question_id: str, data: dict) -> QuestionDetail:
        question_id = parse_id(question_id)
        payload = QuestionCreate.model_validate(data)
        await authorize_action(ctx, Role.ADMIN)

        question = await get_or_404(ctx.db, AssessmentQuestion, question_id, "Question")
        question.question_text = payload.question_text
        question.question_type = payload.question_type.value
        question.sequence_number = payload.sequence_number
        question.points = payload.points
        await ctx.db.flush()
        await _replace_options(ctx.db, question_id, payload)

        ctx.revalidate_path(_assessment_page(question.assessment_id))
        return await self._question_detail(ctx, question)

    @server_action
    async def get_question(self, ctx: ActionContext, question_id: str) -> QuestionDetail:
        question_id = parse_id(question_id)
        await authorize_action(ctx, Role.ADMIN)
        question = await get_or_404(ctx.db, AssessmentQuestion, question_id, "Question")
        return await self._question_detail(ctx, question)

    @server_action
    async def delete_question(self, ctx: ActionContext, question_id: str) -> dict:
        question_id = parse_id(question_id)
        await authorize_action(ctx, Role.ADMIN)

        question = await get_or_404(ctx.db, AssessmentQuestion, question_id, "Question")
        assessment_id = question.assessment_id
        await ctx.db.execute(delete(QuestionOption).where(QuestionOption.question_id == question_id))
        await ctx.db.delete(question)
        await ctx.db.flush()

        ctx.revalidate_path(_assessment_page(assessment_id))
        return {"deleted": True, "id": question_id}

    async def _question_detail(self, ctx: ActionContext, question: AssessmentQuestion) -> QuestionDetail:
        await ctx.db.refresh(question)
        detail = QuestionDetail.model_validate(question)
        result = await ctx.db.execute(
            select(QuestionOption)
            .where(QuestionOption.question_id == question.id)
            .order_by(QuestionOption.sequence_number)
        )
        detail.options = [OptionDetail.model_validate(o) for o in result.scalars().all()]
        return detail


assessment_service = AssessmentService()
