import asyncio

from backend.app.db import init_models
from backend.app.db.base import engine


async def reset_models():
    # Drops every table and recreates it - DEV MODE ONLY
    await init_models(drop_existing=True)
    await engine.dispose()
    print(">>> Tables Created Successfully!")

if __name__ == "__main__":
    asyncio.run(reset_models())
