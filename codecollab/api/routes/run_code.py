# codecollab/api/routes/run_code.py

from fastapi import APIRouter, HTTPException

from codecollab.core import state
from codecollab.models.models import RunCodeRequest, RunCodeResponse
from codecollab.services.runner import RunnerError, RunnerNotConfigured

router = APIRouter()

# ============================================================================
# CODE EXECUTION PROXY
# ============================================================================

@router.post("/api/run-code", response_model=RunCodeResponse)
async def run_code(request: RunCodeRequest):
    """
    Run a snippet on the external runner.

    Flow:
        1. Forward {code, languageId, stdin} to the runner
        2. Wait for the finished submission
        3. Return {stdout, stderr}; compiler output is reported as stderr

    Raises:
        HTTPException: 503 if no runner is configured, 502 if the runner fails
    """
    try:
        return await state.runner.run(request.code, request.language_id, request.stdin)
    except RunnerNotConfigured as e:
        raise HTTPException(status_code=503, detail=str(e))
    except RunnerError as e:
        raise HTTPException(status_code=502, detail=f"Runner error: {e}")
