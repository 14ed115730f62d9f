"""
TripSettleUp - FastAPI Web Backend

This module exposes the settlement engine over HTTP using FastAPI.

Callers send the current snapshot of participants and expenses with every
request; nothing is stored between requests.

Endpoints:
    GET  /health      - Health check
    GET  /strategies  - Available settlement strategies
    POST /settle      - Balances and settlement plan
    POST /report      - Settlement plus analytics and explanations

Usage:
    uvicorn main:app --reload
"""

import logging
from typing import Optional
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, ConfigDict, Field

from config.settings import STRATEGIES, configure_logging, get_settings
from expenses import expenses_for_trip, load_expenses
from settlement import SettlementEngine
from splitter import calculate_balance_details
from analytics import generate_analytics
from utils import explain_all_participants


configure_logging()
logger = logging.getLogger(__name__)


# =============================================================================
# Pydantic Models for Request/Response Validation
# =============================================================================

class ParticipantIn(BaseModel):
    """A participant in the ledger snapshot."""
    id: str = Field(..., min_length=1, description="Participant identifier")
    name: Optional[str] = Field(None, description="Display name")


class ShareIn(BaseModel):
    """One participant's share of an expense."""
    model_config = ConfigDict(populate_by_name=True)

    participant_id: str = Field(..., alias="participantId", description="Participant who owes the share")
    amount: float = Field(..., description="Owed amount")


class ExpenseIn(BaseModel):
    """An expense in the ledger snapshot."""
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = Field(None, description="Expense identifier")
    amount: float = Field(..., description="Total amount paid")
    paid_by: str = Field(..., alias="paidBy", description="Participant ID of payer")
    shares: Optional[list[ShareIn]] = Field(None, description="Explicit shares")
    participants: Optional[list[str]] = Field(None, description="Split equally between these IDs when shares are absent")
    description: Optional[str] = None
    category: Optional[str] = None
    date: Optional[str] = Field(None, description="Expense date (YYYY-MM-DD)")
    trip_id: Optional[str] = Field(None, alias="tripId")


class SettleRequest(BaseModel):
    """Request model for settlement calculations."""
    model_config = ConfigDict(populate_by_name=True)

    participants: list[ParticipantIn]
    expenses: list[ExpenseIn]
    strategy: Optional[str] = Field(None, description="net-greedy or pairwise-cancellation")
    trip_id: Optional[str] = Field(None, alias="tripId", description="Only use expenses of this trip")


class SettleResponse(BaseModel):
    """Response model for settlement results."""
    balances: dict[str, float]
    settlements: list
    strategy: str
    warnings: list[str]


class ReportResponse(SettleResponse):
    """Response model for the full trip report."""
    analytics: dict
    explanations: list


class StrategiesResponse(BaseModel):
    strategies: list[str]
    default: str


# =============================================================================
# FastAPI Application
# =============================================================================

app = FastAPI(
    title="TripSettleUp",
    description="Balances and settlement plans for shared trip expenses",
    version="1.0.0"
)


# =============================================================================
# Helper Functions
# =============================================================================

def _engine_for(strategy: Optional[str]) -> SettlementEngine:
    """Build an engine for the requested strategy, or the configured default."""
    return SettlementEngine.from_settings(get_settings(), strategy)


def _ledger(request: SettleRequest) -> tuple[list[dict], list, list[str]]:
    """
    Convert request models into participant dicts and trip-filtered expenses.

    Also returns a message for every expense record that could not be used.
    """
    problems = []
    participants = [p.model_dump() for p in request.participants]
    expenses = load_expenses(
        [e.model_dump(by_alias=True, exclude_none=True) for e in request.expenses],
        problems
    )
    return participants, expenses_for_trip(expenses, request.trip_id), problems


# =============================================================================
# API Endpoints
# =============================================================================

@app.post("/settle", response_model=SettleResponse)
async def settle(request: SettleRequest):
    """
    Calculate balances and a settlement plan.

    Request flow:
        1. Convert the ledger snapshot into participants and expenses
        2. Keep only the requested trip's expenses, if a trip is given
        3. Run the settlement engine with the chosen strategy
        4. Return balances, settlements and data-quality warnings
    """
    try:
        engine = _engine_for(request.strategy)
        participants, expenses, problems = _ledger(request)

        result = engine.settle(participants, expenses)
        result["warnings"] = problems + result["warnings"]
        logger.info(
            "Settled %d expenses for %d participants with %s",
            len(expenses), len(participants), engine.strategy
        )
        return SettleResponse(**result)

    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Settlement failed")
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/report", response_model=ReportResponse)
async def report(request: SettleRequest):
    """
    Calculate the full trip report.

    Request flow:
        1. Run the settlement engine (as /settle)
        2. Generate analytics (analytics.py)
        3. Generate explanations (utils.py)
        4. Return everything, with analytics warnings appended
    """
    try:
        settings = get_settings()
        engine = _engine_for(request.strategy)
        participants, expenses, problems = _ledger(request)

        result = engine.settle(participants, expenses)

        analytics_result = generate_analytics(participants, expenses, settings.currency_symbol)
        details = calculate_balance_details(participants, expenses, settings.epsilon)
        explanations = explain_all_participants(participants, expenses, details)

        return ReportResponse(
            balances=result["balances"],
            settlements=result["settlements"],
            strategy=result["strategy"],
            warnings=problems + result["warnings"] + analytics_result["warnings"],
            analytics=analytics_result["analytics"],
            explanations=explanations
        )

    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Report failed")
        raise HTTPException(status_code=500, detail=str(e))


@app.get("/strategies", response_model=StrategiesResponse)
async def list_strategies():
    """List available settlement strategies and the configured default."""
    return StrategiesResponse(strategies=list(STRATEGIES), default=get_settings().strategy)


# =============================================================================
# Health Check Endpoint
# =============================================================================

@app.get("/health")
async def health_check():
    """Health check endpoint to verify API is running."""
    return {"status": "healthy", "service": "TripSettleUp"}


# =============================================================================
# Run with: python main.py
# =============================================================================

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="127.0.0.1", port=8000, reload=True)
