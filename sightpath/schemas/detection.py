from pydantic import BaseModel, Field
from typing import Optional, List

# --- Rekognition DetectLabels structure ---

class NormalizedBox(BaseModel):
    """Bounding box as fractions of the image width/height"""
    left: float = Field(0.0, alias="Left")
    top: float = Field(0.0, alias="Top")
    width: float = Field(0.0, alias="Width")
    height: float = Field(0.0, alias="Height")

    class Config:
        populate_by_name = True

class LabelInstance(BaseModel):
    bounding_box: Optional[NormalizedBox] = Field(None, alias="BoundingBox")
    confidence: Optional[float] = Field(None, alias="Confidence")

    class Config:
        populate_by_name = True

class Detection(BaseModel):
    name: str = Field(..., alias="Name")
    confidence: float = Field(0.0, alias="Confidence")
    instances: List[LabelInstance] = Field(default_factory=list, alias="Instances")

    class Config:
        populate_by_name = True

# --- API Response ---

class UploadResponse(BaseModel):
    imageName: str
    message: str = "success"
