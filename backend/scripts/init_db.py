"""
Initialize the database: create all tables and, with --seed, the demo admin
and program categories.
Run with: python -m scripts.init_db [--seed]
"""

import asyncio
import sys
from carelearn.database import engine, Base, async_session
from carelearn.seed import seed_demo_data
import carelearn.models  # noqa: F401


async def init(seed: bool = False):
    print("Creating database tables...")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    print("All tables created successfully.")
    if seed:
        async with async_session() as session:
            await seed_demo_data(session)
        print("Demo data seeded.")
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(init(seed="--seed" in sys.argv[1:]))
