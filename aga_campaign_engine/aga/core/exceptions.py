"""
Domain errors. Each carries the short title + description pair shown to the
user, a machine code used in API error bodies and the HTTP status routes
answer with.
"""
from typing import List, Optional

from fastapi import HTTPException, status


class CampaignError(Exception):
    title: str = "Error"
    code: str = "CAMPAIGN_ERROR"
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, description: str, title: Optional[str] = None):
        super().__init__(description)
        self.description = description
        if title:
            self.title = title

    def to_detail(self) -> dict:
        return {"title": self.title, "description": self.description, "code": self.code}


class SubmissionValidationError(CampaignError):
    title = "Invalid Submission"
    code = "VALIDATION_FAILED"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, description: str, title: Optional[str] = None, missing_columns: Optional[List[str]] = None):
        super().__init__(description, title)
        self.missing_columns = missing_columns or []

    def to_detail(self) -> dict:
        detail = super().to_detail()
        if self.missing_columns:
            detail["missing_columns"] = self.missing_columns
        return detail


class DuplicateCampaignNameError(SubmissionValidationError):
    title = "Duplicate Campaign Name"
    code = "DUPLICATE_NAME"
    status_code = status.HTTP_409_CONFLICT

    def __init__(self):
        super().__init__("A campaign with this name already exists. Please choose a different name.")


class RecordCreationError(CampaignError):
    code = "RECORD_CREATION_FAILED"


class CampaignNotFoundError(CampaignError):
    title = "Campaign Not Found"
    code = "NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, description: str = "The campaign may have already been deleted."):
        super().__init__(description)


class DeletionError(CampaignError):
    title = "Delete Failed"
    code = "DELETE_FAILED"


class InvalidRequestError(CampaignError):
    title = "Invalid Request"
    code = "BAD_REQUEST"
    status_code = status.HTTP_400_BAD_REQUEST


class RunNotFoundError(CampaignError):
    title = "Run Not Found"
    code = "NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, description: str = "Run not found"):
        super().__init__(description)


class AuthenticationError(CampaignError):
    title = "Unauthorized"
    code = "UNAUTHORIZED"
    status_code = status.HTTP_401_UNAUTHORIZED


def as_http_exception(exc: CampaignError, headers: Optional[dict] = None) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=exc.to_detail(), headers=headers)
