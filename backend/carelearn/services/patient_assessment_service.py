from sqlalchemy import select
from carelearn.actions import server_action
from carelearn.auth import authorize_action
from carelearn.clock import utcnow
from carelearn.context import ActionContext
from carelearn.exceptions import ForbiddenError, ValidationError
from carelearn.identity import Role
from carelearn.models.assessment import (
    Assessment, AssessmentAttempt, AssessmentQuestion, QuestionOption, QuestionResponse,
)
from carelearn.models.content import ContentItem
from carelearn.models.program import LearningModule, TreatmentProgram
from carelearn.schemas.assessment import (
    AssessmentSubmission, AttemptResponse, AttemptSummary, PatientAssessmentList,
    PatientAssessmentSummary, PatientAssessmentView, PatientOptionView, PatientQuestionView,
    QuestionType,
)
from carelearn.schemas.content import ContentType
from carelearn.services.assessment_service import load_questions
from carelearn.services.common import get_or_404, parse_id
from carelearn.services.patient_program_service import OWN_CATEGORY, own_category

ASSESSMENTS_PAGE = "/patient/assessments"


def grade(points_by_question: dict[str, int], earned: int) -> int:
    """Percentage of the assessment's total points, rounded to an integer."""
    total = sum(points_by_question.values()) or 1
    return round(earned / total * 100)


class PatientAssessmentService:
    @server_action
    async def list_assessments(self, ctx: ActionContext, category_id: str = OWN_CATEGORY) -> PatientAssessmentList:
        """
        Assessments reachable through the active programs of the caller's
        category, split on whether the latest attempt was completed.
        """
        if category_id != OWN_CATEGORY:
            category_id = parse_id(category_id, "categoryId")
        caller = await authorize_action(ctx, Role.PATIENT)
        patient_id = caller.identity.id

        assignment = await own_category(ctx.db, patient_id)
        if assignment is None:
            return PatientAssessmentList()
        if category_id != OWN_CATEGORY and category_id != assignment.category_id:
            raise ForbiddenError("Access denied. Category is not assigned to you.")

        result = await ctx.db.execute(
            select(Assessment, ContentItem.module_id, LearningModule.title, TreatmentProgram.id, TreatmentProgram.title)
            .join(ContentItem, ContentItem.id == Assessment.content_item_id)
            .join(LearningModule, LearningModule.id == ContentItem.module_id)
            .join(TreatmentProgram, TreatmentProgram.id == LearningModule.program_id)
            .where(
                ContentItem.content_type == ContentType.ASSESSMENT.value,
                TreatmentProgram.category_id == assignment.category_id,
                TreatmentProgram.is_active.is_(True),
            )
            .order_by(TreatmentProgram.title, LearningModule.sequence_number, ContentItem.sequence_number)
        )
        rows = result.all()
        if not rows:
            return PatientAssessmentList()

        result = await ctx.db.execute(
            select(AssessmentAttempt)
            .where(
                AssessmentAttempt.patient_id == patient_id,
                AssessmentAttempt.assessment_id.in_([row[0].id for row in rows]),
            )
            .order_by(AssessmentAttempt.started_at.desc())
        )
        latest: dict[str, AssessmentAttempt] = {}
        for attempt in result.scalars().all():
            latest.setdefault(attempt.assessment_id, attempt)

        listing = PatientAssessmentList()
        for assessment, module_id, module_name, program_id, program_name in rows:
            attempt = latest.get(assessment.id)
            completed = attempt is not None and attempt.completed_at is not None
            summary = PatientAssessmentSummary(
                id=assessment.id,
                title=assessment.title,
                description=assessment.description,
                passing_score=assessment.passing_score,
                time_limit=assessment.time_limit_minutes,
                content_item_id=assessment.content_item_id,
                module_id=module_id,
                module_name=module_name,
                program_id=program_id,
                program_name=program_name,
                latest_attempt=AttemptSummary.model_validate(attempt) if attempt is not None else None,
                completed=completed,
            )
            (listing.completed if completed else listing.available).append(summary)
        return listing

    @server_action
    async def get_assessment(self, ctx: ActionContext, assessment_id: str) -> PatientAssessmentView:
        assessment_id = parse_id(assessment_id, "assessmentId")
        await authorize_action(ctx, Role.PATIENT)

        assessment = await get_or_404(ctx.db, Assessment, assessment_id, "Assessment")
        view = PatientAssessmentView.model_validate(assessment)
        view.questions = [
            PatientQuestionView(
                id=q.id,
                question_text=q.question_text,
                question_type=q.question_type,
                sequence_number=q.sequence_number,
                points=q.points,
                options=[
                    PatientOptionView(id=o.id, option_text=o.option_text, sequence_number=o.sequence_number)
                    for o in q.options
                ],
            )
            for q in await load_questions(ctx.db, assessment_id)
        ]
        return view

    @server_action
    async def submit_assessment(self, ctx: ActionContext, assessment_id: str, data: dict) -> AttemptResponse:
        """
        Record and grade one attempt. Choice answers are checked against the
        correct option; text answers are stored ungraded and earn nothing.
        """
        assessment_id = parse_id(assessment_id, "assessmentId")
        submission = AssessmentSubmission.model_validate(data)
        caller = await authorize_action(ctx, Role.PATIENT)

        assessment = await get_or_404(ctx.db, Assessment, assessment_id, "Assessment")
        result = await ctx.db.execute(
            select(AssessmentQuestion).where(AssessmentQuestion.assessment_id == assessment_id)
        )
        questions = {q.id: q for q in result.scalars().all()}

        unknown = [str(a.question_id) for a in submission.answers if str(a.question_id) not in questions]
        if unknown:
            raise ValidationError({"answers": ["Answer refers to a question outside this assessment"]})

        result = await ctx.db.execute(
            select(QuestionOption.question_id, QuestionOption.id).where(
                QuestionOption.question_id.in_(list(questions)),
                QuestionOption.is_correct.is_(True),
            )
        )
        correct_option = dict(result.all())

        attempt = AssessmentAttempt(
            patient_id=caller.identity.id,
            assessment_id=assessment_id,
            started_at=utcnow(),
        )
        ctx.db.add(attempt)
        await ctx.db.flush()

        earned = 0
        for answer in submission.answers:
            question = questions[str(answer.question_id)]
            if QuestionType(question.question_type).is_choice:
                selected = str(answer.selected_option_id) if answer.selected_option_id else None
                is_correct = selected is not None and selected == correct_option.get(question.id)
                points = question.points if is_correct else 0
                earned += points
                ctx.db.add(QuestionResponse(
                    attempt_id=attempt.id,
                    question_id=question.id,
                    selected_option_id=selected,
                    is_correct=is_correct,
                    points_earned=points,
                ))
            else:
                ctx.db.add(QuestionResponse(
                    attempt_id=attempt.id,
                    question_id=question.id,
                    text_response=answer.text_response,
                    is_correct=None,
                    points_earned=0,
                ))

        score = grade({qid: q.points for qid, q in questions.items()}, earned)
        attempt.completed_at = utcnow()
        attempt.score = score
        attempt.passed = score >= assessment.passing_score
        await ctx.db.flush()
        await ctx.db.refresh(attempt)

        ctx.revalidate_path(ASSESSMENTS_PAGE)
        return AttemptResponse.model_validate(attempt)


patient_assessment_service = PatientAssessmentService()
