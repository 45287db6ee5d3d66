from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

from propops.core.config import get_settings
from propops.core.database import Base
from propops.activity import models as activity_models  # noqa: F401
from propops.business.billing import models as billing_models  # noqa: F401
from propops.business.estimates import models as estimates_models  # noqa: F401
from propops.business.payments import models as payments_models  # noqa: F401
from propops.business.payroll import models as payroll_models  # noqa: F401
from propops.business.reporting import models as reporting_models  # noqa: F401
from propops.business.work_orders import models as work_orders_models  # noqa: F401
from propops.crm import models as crm_models  # noqa: F401

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    context.configure(
        url=get_settings().database_url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    section = config.get_section(config.config_ini_section, {})
    section["sqlalchemy.url"] = get_settings().database_url
    connectable = engine_from_config(
        section,
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata)

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
