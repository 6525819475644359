"""
Common model helpers - camelCase wire format and the response envelope.
"""

from typing import Annotated, Any, Dict, Optional
from pydantic import BaseModel, BeforeValidator, ConfigDict
from pydantic.alias_generators import to_camel

# Stored ids are strings; documents loaded outside the app may carry a bson ObjectId
DocumentId = Annotated[Optional[str], BeforeValidator(lambda v: None if v is None else str(v))]


class CamelModel(BaseModel):
    """
    Base model for API payloads.

    Fields are snake_case in Python and in stored documents, camelCase on the
    wire. Input is accepted in either form.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_document(self) -> Dict[str, Any]:
        """Dump for storage: snake_case keys, without the document id."""
        return self.model_dump(by_alias=False, exclude={"id"})

    def to_api(self) -> Dict[str, Any]:
        """Dump for responses: camelCase keys, JSON-ready values."""
        return self.model_dump(by_alias=True, mode="json")


def envelope(data: Any = None, message: Optional[str] = None, **extra: Any) -> Dict[str, Any]:
    """Build a successful ``{success, data|message}`` response body."""
    body: Dict[str, Any] = {"success": True}
    if message is not None:
        body["message"] = message
    if data is not None:
        body["data"] = data
    body.update(extra)
    return body
