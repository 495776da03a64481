from sqlalchemy import select
from carelearn.actions import server_action
from carelearn.auth import authorize_action
from carelearn.clock import utcnow
from carelearn.context import ActionContext
from carelearn.identity import Role
from carelearn.models.mood import MoodEntry
from carelearn.schemas.mood import MoodEntryCreate, MoodEntryQuery, MoodEntryResponse

MOOD_PAGE = "/patient/mood"


class MoodService:
    @server_action
    async def submit_mood_entry(self, ctx: ActionContext, data: dict) -> MoodEntryResponse:
        payload = MoodEntryCreate.model_validate(data)
        caller = await authorize_action(ctx, Role.PATIENT)

        entry = MoodEntry(
            patient_id=caller.identity.id,
            content_item_id=str(payload.content_item_id) if payload.content_item_id else None,
            mood_type=payload.mood_type.value,
            mood_score=payload.mood_score,
            journal_entry=payload.journal_entry or None,
            entry_timestamp=utcnow(),
        )
        ctx.db.add(entry)
        await ctx.db.flush()
        await ctx.db.refresh(entry)

        ctx.revalidate_path(MOOD_PAGE)
        return MoodEntryResponse.model_validate(entry)

    @server_action
    async def get_mood_entries(self, ctx: ActionContext, limit: int = 10) -> list[MoodEntryResponse]:
        query = MoodEntryQuery.model_validate({"limit": limit})
        caller = await authorize_action(ctx, Role.PATIENT)

        result = await ctx.db.execute(
            select(MoodEntry)
            .where(MoodEntry.patient_id == caller.identity.id)
            .order_by(MoodEntry.entry_timestamp.desc())
            .limit(query.limit)
        )
        return [MoodEntryResponse.model_validate(e) for e in result.scalars().all()]


mood_service = MoodService()
