"""Error taxonomy for form-core services.

Services raise these; the application renders them with their status code.
Authorization checks against the remote action service never raise, they
resolve to a denied ActionCheckResult instead.
"""
from typing import Optional


class FormCoreError(Exception):
    status_code = 500
    code = "form_core_error"
    default_detail = "Form-core error"

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class InvalidPayloadError(FormCoreError):
    status_code = 400
    code = "invalid_payload"
    default_detail = "Invalid payload"


class DuplicatePrincipalError(FormCoreError):
    status_code = 409
    code = "duplicate_principal"
    default_detail = "ACL entry already exists"


class ResourceMismatchError(FormCoreError):
    status_code = 400
    code = "resource_mismatch"
    default_detail = "ACL does not belong to this form"


class NotFoundError(FormCoreError):
    status_code = 404
    code = "not_found"
    default_detail = "Not found"


class ForbiddenError(FormCoreError):
    status_code = 403
    code = "forbidden"
    default_detail = "Not authorized"


class UnauthenticatedError(FormCoreError):
    status_code = 401
    code = "unauthenticated"
    default_detail = "Unauthorized"


class NoDraftToPublishError(FormCoreError):
    status_code = 400
    code = "no_draft_to_publish"
    default_detail = "No draft version to publish"


class EmptyFormError(FormCoreError):
    status_code = 400
    code = "empty_form"
    default_detail = "Cannot publish form with no fields"


class NotPublishedError(FormCoreError):
    status_code = 400
    code = "not_published"
    default_detail = "Form is not published"
