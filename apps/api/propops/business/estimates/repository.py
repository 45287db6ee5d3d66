from __future__ import annotations

from propops.business.estimates.models import Estimate
from propops.platform.repository import BaseRepository


class EstimateRepository(BaseRepository[Estimate]):
    model = Estimate
    entity_label = "Estimate"
