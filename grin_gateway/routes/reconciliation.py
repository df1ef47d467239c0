from datetime import datetime, timedelta

import pytz
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from grin_gateway.config import RECONCILIATION_LOOKBACK_HOURS
from grin_gateway.database.dependencies import (
    get_db,
    get_verification_oracle,
    require_admin_key,
)
from grin_gateway.services.reconciliation import ReconciliationService
from grin_gateway.services.verification import PaymentVerificationOracle

router = APIRouter(
    prefix="/reconciliation", tags=["Reconciliation"], dependencies=[Depends(require_admin_key)]
)


@router.post("/run", status_code=202)
async def run_reconciliation(
    lookback_hours: int = Query(default=RECONCILIATION_LOOKBACK_HOURS, gt=0),
    db: Session = Depends(get_db),
    oracle: PaymentVerificationOracle = Depends(get_verification_oracle),
):
    """API Route for running one reconciliation pass outside the hourly schedule"""
    service = ReconciliationService(db, oracle)
    await service.run_reconciliation_pass(
        now=datetime.now(pytz.UTC), lookback_window=timedelta(hours=lookback_hours)
    )
    return {"status": "done"}
