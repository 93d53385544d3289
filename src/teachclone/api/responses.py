"""
Map structured service results onto HTTP errors
"""
from fastapi import HTTPException

from teachclone.models.teachclone_models import OperationResult

STATUS_BY_ERROR_CODE = {
    "not_found": 404,
    "invalid_transition": 409,
    "validation_failure": 400,
    "prerequisite_missing": 400,
    "malformed_analysis": 422,
    "gateway_failure": 502,
    "storage_failure": 500,
}


def raise_for_result(result: OperationResult) -> OperationResult:
    """Raise HTTPException for failed results that carry an error code, return the result otherwise"""
    if not result.success and result.error_code:
        raise HTTPException(
            status_code=STATUS_BY_ERROR_CODE.get(result.error_code, 500),
            detail=result.message,
        )
    return result
