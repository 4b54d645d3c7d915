from pydantic import BaseModel, ConfigDict, Field
from typing import Optional

class _Body(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

class SignaturePlace(_Body):
    file_id: int = Field(alias="fileId")
    page_number: int = Field(alias="pageNumber")
    x_coordinate: float = Field(alias="xCoordinate")
    y_coordinate: float = Field(alias="yCoordinate")
    signature: str = Field(min_length=1)
    font: Optional[str] = None
    rendered_page_height: float = Field(alias="renderedPageHeight", gt=0)
    rendered_page_width: Optional[float] = Field(default=None, alias="renderedPageWidth")

class FinalizeRequest(_Body):
    file_id: int = Field(alias="fileId")

class ClearSignatures(_Body):
    file_id: int = Field(alias="fileId")

class RejectRequest(_Body):
    reason: Optional[str] = None
