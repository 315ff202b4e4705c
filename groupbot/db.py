from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from groupbot.load_secrets import database_url

if database_url.startswith("sqlite"):
    engine = create_async_engine(url=database_url, echo=False)
else:
    engine = create_async_engine(database_url, pool_size=20, max_overflow=20)

# One factory for every actor namespace in the process.
Session = async_sessionmaker(
    autocommit=False,
    class_=AsyncSession,
    autoflush=True,
    bind=engine,
)
