from __future__ import annotations

import uuid

from sqlalchemy import update
from sqlalchemy.orm import Session

from propops.business.payroll.models import PayrollEntry, PayrollRun
from propops.platform.repository import BaseRepository


class PayrollRunRepository(BaseRepository[PayrollRun]):
    model = PayrollRun
    entity_label = "Payroll run"

    def apply_gross_delta(self, session: Session, run_id: uuid.UUID, delta: int) -> None:
        """Shift a run's running total with ``UPDATE ... SET total = total + :delta``."""
        if delta == 0:
            return
        session.execute(
            update(PayrollRun)
            .where(PayrollRun.id == run_id)
            .values(total_gross_cents=PayrollRun.total_gross_cents + delta)
            .execution_options(synchronize_session=False)
        )


class PayrollEntryRepository(BaseRepository[PayrollEntry]):
    model = PayrollEntry
    entity_label = "Payroll entry"
