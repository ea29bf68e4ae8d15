"""
Document Models for Spardavel

Two JSON documents leave the core:

1. PersistedState - what the storage backend keeps between sessions
2. ExportDocument - what the user downloads (and can import again)

Both carry the raw event list; derived projections are never stored.
"""

from datetime import datetime
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from spardavel.config.settings import FALLBACK_INTEREST_RATE
from spardavel.models.events import LedgerEvent, Money


DOCUMENT_MODEL_CONFIG = ConfigDict(
    extra="ignore",
    alias_generator=to_camel,
    populate_by_name=True,
)

EXPORT_FORMAT_VERSION = "1"


class PersistedState(BaseModel):
    """
    The stored shape of the ledger.

    Layout: ``{events, defaultInterestRate, theme?, lastExportTimestamp?,
    dontRemindExport?}``.
    """
    model_config = DOCUMENT_MODEL_CONFIG

    events: list[LedgerEvent] = Field(default_factory=list)
    default_interest_rate: Money = Field(
        default=FALLBACK_INTEREST_RATE,
        ge=0,
        le=100,
    )
    theme: Optional[str] = None
    last_export_timestamp: Optional[datetime] = None
    dont_remind_export: bool = False

    def to_document(self) -> dict:
        """JSON-ready dict with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ExportSettings(BaseModel):
    model_config = DOCUMENT_MODEL_CONFIG

    default_interest_rate: Optional[Money] = Field(default=None, ge=0, le=100)


class ExportDocument(BaseModel):
    """
    The export/import file.

    Layout: ``{version: "1", exportDate, events, settings: {defaultInterestRate}}``.
    """
    model_config = DOCUMENT_MODEL_CONFIG

    version: Literal["1"] = EXPORT_FORMAT_VERSION
    export_date: Optional[datetime] = None
    events: list[LedgerEvent]
    settings: ExportSettings = Field(default_factory=ExportSettings)

    @property
    def default_interest_rate(self) -> Optional[Decimal]:
        return self.settings.default_interest_rate
