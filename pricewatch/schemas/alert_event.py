"""
Alert Event Schemas

Shapes exchanged between the trigger engine, the messaging pipeline and the
scheduler that invokes a cycle.
"""

from datetime import datetime
from typing import List

from pydantic import BaseModel, Field


class Quote(BaseModel):
    symbol: str = Field(..., description="Uppercase ticker symbol.")
    price: float = Field(..., description="Current price reported by the provider.")
    timestamp: datetime = Field(..., description="When the quote was fetched (naive UTC).")


class AlertTrigger(BaseModel):
    """A claimed alert firing, handed to the dispatcher."""

    alert_id: int = Field(..., description="Identifier of the claimed alert.")
    user_id: int = Field(..., description="Owner of the alert.")
    symbol: str = Field(..., description="Uppercase ticker symbol.")
    company: str = Field(..., description="Display label for the instrument.")
    alert_type: str = Field(..., description="Crossing direction: upper or lower.")
    threshold: float = Field(..., description="Target price of the alert.")
    current_price: float = Field(..., description="Price that satisfied the threshold.")
    triggered_at: datetime = Field(..., description="Claim time (naive UTC).")
    recipient: str = Field(..., description="Resolved contact address of the owner.")


class PriceAlertEvent(BaseModel):
    """Outbound event consumed by the messaging pipeline."""

    name: str = Field(..., description="Event name, stock.alert.upper or stock.alert.lower.")
    idempotency_key: str = Field(..., description="Deduplication key for the delivery pipeline.")
    direction: str = Field(..., description="Crossing direction: upper or lower.")
    symbol: str = Field(..., description="Uppercase ticker symbol.")
    company: str = Field(..., description="Display label for the instrument.")
    current_price: float = Field(..., description="Price that satisfied the threshold.")
    target_price: float = Field(..., description="Threshold configured on the alert.")
    timestamp: datetime = Field(..., description="Trigger time (naive UTC).")
    recipient: str = Field(..., description="Contact address the message is delivered to.")


class TriggerRecord(BaseModel):
    alert_id: int
    user_id: int
    symbol: str
    company: str
    alert_type: str
    threshold: float
    current_price: float


class TriggerOutcome(BaseModel):
    """Result of one cycle, returned to the scheduler for logging and metrics."""

    triggered: List[TriggerRecord] = Field(default_factory=list, description="Claimed and dispatched alerts.")
    errors: List[str] = Field(default_factory=list, description="Diagnostics for isolated failures.")

    def merge(self, other: "TriggerOutcome") -> None:
        self.triggered.extend(other.triggered)
        self.errors.extend(other.errors)
