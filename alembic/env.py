import os
from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# The Neon database shares the schema: `alembic -x dsn=neon upgrade head`
target = context.get_x_argument(as_dictionary=True).get("dsn", "postgres")
env_var = {"postgres": "DATABASE_URL", "neon": "NEON_DSN"}.get(target, target)
database_url = os.environ.get(env_var, "")
if not database_url:
    raise RuntimeError(f"{env_var} environment variable is required for migrations")

# asyncpg-style URLs need to be converted for alembic (which uses sync sqlalchemy)
if database_url.startswith("postgres://"):
    database_url = database_url.replace("postgres://", "postgresql://", 1)

config.set_main_option("sqlalchemy.url", database_url)


def run_migrations_offline() -> None:
    url = config.get_main_option("sqlalchemy.url")
    context.configure(url=url, target_metadata=None, literal_binds=True)
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = create_engine(config.get_main_option("sqlalchemy.url"))
    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=None)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
