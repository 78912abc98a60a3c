import logging
from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, engine_from_config, pool

# Import database models and database URL from the same source as the application
from talent_backend.database import Base, DATABASE_URL
from talent_backend import models  # noqa: F401

# this is the Alembic Config object, which provides
# access to the values within the .ini file in use.
config = context.config

# Fall back to the application's DATABASE_URL when the caller did not set one
if not config.get_main_option("sqlalchemy.url"):
    config.set_main_option("sqlalchemy.url", DATABASE_URL)

# Interpret the config file for Python logging without silencing app loggers
if config.config_file_name is not None:
    fileConfig(config.config_file_name, disable_existing_loggers=False)

logger = logging.getLogger("alembic.env")

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode.

    Calls to context.execute() here emit the given string to the
    script output.
    """
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()
        logger.info("Offline migrations completed successfully")


def run_migrations_online() -> None:
    """Run migrations in 'online' mode."""
    try:
        database_url = config.get_main_option("sqlalchemy.url")
        is_sqlite = database_url.startswith("sqlite:")

        if is_sqlite:
            connectable = create_engine(
                database_url, connect_args={"check_same_thread": False}
            )
        else:
            connectable = engine_from_config(
                config.get_section(config.config_ini_section, {}),
                prefix="sqlalchemy.",
                poolclass=pool.NullPool,
            )

        with connectable.connect() as connection:
            context.configure(
                connection=connection,
                target_metadata=target_metadata,
                render_as_batch=is_sqlite,
                compare_type=True,
            )

            with context.begin_transaction():
                context.run_migrations()
                logger.info("Online migrations completed successfully")
    except Exception as e:
        logger.error(f"Error during online migrations: {str(e)}")
        raise


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
