"""
Error taxonomy for the TeachClone pipeline.

Services raise these internally and convert them into structured results at
their public boundary, so callers always get a success flag and a message.
"""


class TeachCloneError(Exception):
    """Base class for every pipeline error"""
    code = "error"

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class NotFound(TeachCloneError):
    """Video, blob, personality, conversation or user is missing"""
    code = "not_found"


class PrerequisiteMissing(TeachCloneError):
    """Personality generation requested before the video was analyzed"""
    code = "prerequisite_missing"


class MalformedAnalysis(TeachCloneError):
    """Gateway reply has no parseable JSON object"""
    code = "malformed_analysis"


class GatewayFailure(TeachCloneError):
    """Inference call failed or returned nothing"""
    code = "gateway_failure"


class StorageFailure(TeachCloneError):
    """Blob or record read/write failed"""
    code = "storage_failure"


class InvalidTransition(TeachCloneError):
    """Approval status change not allowed from the current status"""
    code = "invalid_transition"


class ValidationFailure(TeachCloneError):
    """Caller input rejected before anything was stored"""
    code = "validation_failure"
