"""Repository for quotation persistence."""

from __future__ import annotations

from tiling_suite.domain.models import Quotation
from tiling_suite.repositories.mappers import quotation_from_data, quotation_to_data
from tiling_suite.repositories.record_repo import JsonRecordRepo


class QuotationRepo(JsonRecordRepo[Quotation]):
    table = "quotations"
    from_data = staticmethod(quotation_from_data)
    to_data = staticmethod(quotation_to_data)
