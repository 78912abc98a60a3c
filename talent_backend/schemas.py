"""
Pydantic models for API request/response validation and documentation.

Profile payloads are deliberately open: any flat column or questionnaire
field may appear in a write, and the reconciler decides where each key lives.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter

# A questionnaire answer: free text, a multi-select list, or a scalar
QuestionnaireValue = Union[str, List[Any], int, float, bool, None]

# namespace -> field name -> value
QuestionnaireDocument = Dict[str, Dict[str, QuestionnaireValue]]

questionnaire_value_adapter = TypeAdapter(QuestionnaireValue)
questionnaire_document_adapter = TypeAdapter(QuestionnaireDocument)


class ProfilePayload(BaseModel):
    """
    Request model for creating or updating a profile.

    Only the common flat fields are declared for documentation; every other
    key is kept and routed by the reconciler.
    """

    role: Optional[str] = Field(None, description="talent, manager, producer or admin")
    talent_type: Optional[str] = Field(None, alias="talentType")
    display_name: Optional[str] = Field(None, alias="displayName")
    bio: Optional[str] = None
    location: Optional[str] = None

    model_config = {
        "extra": "allow",
        "populate_by_name": True,
        "json_schema_extra": {
            "example": {
                "role": "talent",
                "talentType": "actor",
                "displayName": "Jordan Lee",
                "location": "Los Angeles, CA",
                "yearsExperience": "5",
                "roleTypes": ["lead", "supporting"],
            }
        },
    }

    def to_payload(self) -> Dict[str, Any]:
        """Keys the caller actually sent, with declared fields under their column names."""
        return self.model_dump(exclude_unset=True, by_alias=False)


class QuestionnaireResponsesRequest(BaseModel):
    """
    Request model for saving questionnaire responses.
    """

    responses: QuestionnaireDocument = Field(
        ..., description="Questionnaire document keyed by namespace"
    )

    model_config = {
        "json_schema_extra": {
            "example": {"responses": {"acting": {"stageCombat": "yes"}}}
        }
    }


class ProfileResponse(BaseModel):
    """
    Response model for a profile read-model.

    Questionnaire fields of the default namespace appear as extra top-level keys.
    """

    id: int
    subject_id: str
    role: str
    talent_type: Optional[str] = None
    display_name: Optional[str] = None
    bio: Optional[str] = None
    location: Optional[str] = None
    website: Optional[str] = None
    phone_number: Optional[str] = None
    availability_status: Optional[str] = None
    questionnaire_responses: Dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"extra": "allow"}


class SaveResponsesResult(BaseModel):
    success: bool = True
    message: str = "Questionnaire responses saved"
