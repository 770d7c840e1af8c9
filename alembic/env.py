from sqlalchemy import engine_from_config, pool
from alembic import context
from rebuilder.core.config import settings
from rebuilder.core.logging import configure_logging
from rebuilder.db.session import Base
from rebuilder.db import models  # noqa

configure_logging()
target_metadata = Base.metadata
# SQLite cannot ALTER most column properties in place
render_as_batch = settings.database_url.startswith("sqlite")

def run_migrations_offline():
    context.configure(
        url=settings.database_url,
        target_metadata=target_metadata,
        literal_binds=True,
        render_as_batch=render_as_batch,
    )
    with context.begin_transaction():
        context.run_migrations()

def run_migrations_online():
    configuration = {"sqlalchemy.url": settings.database_url}
    connectable = engine_from_config(configuration, prefix="sqlalchemy.", poolclass=pool.NullPool)
    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
            render_as_batch=render_as_batch,
        )
        with context.begin_transaction():
            context.run_migrations()

if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
