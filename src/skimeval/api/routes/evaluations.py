"""API routes for skim and demand factor evaluations."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status

from ...exceptions import ZoneNotFoundError
from ...schemas.evaluation import EvaluationRequest, EvaluationResponse
from ...services.evaluation.service import run_evaluation

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/evaluations", tags=["evaluations"])


@router.post("", response_model=EvaluationResponse, status_code=status.HTTP_200_OK)
def create_evaluation(payload: EvaluationRequest) -> EvaluationResponse:
    """Aggregate skims per scenario and compute demand factors of every variant against the reference.

    Zones that fail are reported in ``failed_zones``; the remaining zones are
    still evaluated.
    """
    try:
        return run_evaluation(payload)
    except ZoneNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        logger.exception("Evaluation failed")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Evaluation failed: {exc}",
        ) from exc
