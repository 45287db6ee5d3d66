from __future__ import annotations

from propops.business.billing.models import Invoice
from propops.platform.repository import BaseRepository


class InvoiceRepository(BaseRepository[Invoice]):
    model = Invoice
    entity_label = "Invoice"
