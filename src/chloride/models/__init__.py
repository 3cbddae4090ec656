"""
Models Module - Data Models and Error Taxonomy
==============================================

Provides Pydantic models for backend payloads and the exception hierarchy
raised by the client core. All models use Pydantic v2.

Modules:
    error_models: ErrorCode enum, ChlorideError hierarchy, ErrorResponse
    schemas.auth: Session snapshot and login/signup bodies
    schemas.files: FileRecord, UploadFile, ShareLinks
    schemas.admin: Role, Plan, UserByRole, ActionResult
    schemas.redirect: RedirectOutcome, RedirectSignal
"""
