from logging.config import fileConfig
import os
import re
import sys

from sqlalchemy import create_engine, pool
from alembic import context

# Ensure project root is on sys.path so `import ChatBackend...` works when CWD is ChatBackend/
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

# Loads .env and normalizes DATABASE_URL as a side effect
from ChatBackend.database import DATABASE_URL, Base  # type: ignore  # After sys.path adjustment
# Import all models so Alembic autogenerate can see chat tables in Base.metadata.
import ChatBackend.models  # noqa: F401  # side-effect import

config = context.config


# alembic.ini URL (or ${ENV_VAR} placeholder) wins, otherwise the app's DATABASE_URL
def _get_migration_url() -> str:
    url = (config.get_main_option("sqlalchemy.url") or "").strip()
    m = re.fullmatch(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}", url)
    if m:
        url = os.getenv(m.group(1)) or ""
    if url:
        return url
    if DATABASE_URL:
        return DATABASE_URL
    raise RuntimeError("DATABASE_URL is not configured for Alembic migrations.")


if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


# SQLite cannot ALTER most constraints in place; batch mode recreates the table instead
def _configure_kwargs(url: str) -> dict:
    return {
        "target_metadata": target_metadata,
        "compare_type": True,
        "compare_server_default": True,
        "render_as_batch": url.startswith("sqlite"),
    }


# Runs migrations in "offline" mode (generates SQL without a live DB connection)
def run_migrations_offline() -> None:
    url = _get_migration_url()
    context.configure(
        url=url,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **_configure_kwargs(url),
    )

    with context.begin_transaction():
        context.run_migrations()


# Runs migrations in "online" mode (executes against a live DB connection).
def run_migrations_online() -> None:
    url = _get_migration_url()
    connectable = create_engine(url, poolclass=pool.NullPool)

    with connectable.connect() as connection:
        context.configure(connection=connection, **_configure_kwargs(url))

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
