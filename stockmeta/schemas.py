"""
Pydantic schemas for request/response validation
"""
from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator
from typing import Optional, List, Dict
from datetime import datetime
from enum import Enum

# ===== Common Schemas =====

class Platform(str, Enum):
    FREEPIK = "Freepik"
    ADOBE_STOCK = "AdobeStock"
    SHUTTERSTOCK = "Shutterstock"
    VECTEEZY = "Vecteezy"
    CANVA = "Canva"
    RF123 = "123RF"
    DREAMSTIME = "Dreamstime"

class GenerationMode(str, Enum):
    METADATA = "metadata"
    IMAGE_TO_PROMPT = "imageToPrompt"

class ImageStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETE = "complete"
    ERROR = "error"

class HealthResponse(BaseModel):
    status: str

# ===== Analysis Schemas =====

class AnalysisOptions(BaseModel):
    platforms: List[Platform] = Field(default_factory=lambda: [Platform.ADOBE_STOCK])
    generationMode: GenerationMode = GenerationMode.METADATA
    minTitleWords: int = Field(12, ge=5, le=25)
    maxTitleWords: int = Field(15, ge=10, le=25)
    minKeywords: int = Field(35, ge=5, le=50)
    maxKeywords: int = Field(45, ge=10, le=50)
    minDescriptionWords: int = Field(12, ge=5, le=40)
    maxDescriptionWords: int = Field(30, ge=20, le=40)

    @model_validator(mode="after")
    def _validate_ranges(self) -> "AnalysisOptions":
        for low, high in (
            ("minTitleWords", "maxTitleWords"),
            ("minKeywords", "maxKeywords"),
            ("minDescriptionWords", "maxDescriptionWords"),
        ):
            if getattr(self, low) > getattr(self, high):
                raise ValueError(f"{low} must not exceed {high}")
        return self

    @property
    def selected_platform(self) -> Optional[Platform]:
        """The platform that drives prompt and CSV layout, only when exactly one is chosen."""
        if len(self.platforms) == 1:
            return self.platforms[0]
        return None


class AnalysisResult(BaseModel):
    """One model reply mapped onto metadata fields. Carries only `error` on failure."""
    model_config = ConfigDict(frozen=True)

    title: str = ""
    description: str = ""
    keywords: List[str] = Field(default_factory=list)
    prompt: Optional[str] = None
    base_model: Optional[str] = None
    categories: Optional[List[str]] = None
    error: Optional[str] = None


class ImageResult(BaseModel):
    title: str
    description: str
    keywords: List[str]
    prompt: Optional[str] = None
    baseModel: Optional[str] = None
    categories: Optional[List[str]] = None


class ProcessedImageOut(BaseModel):
    id: str
    filename: str
    contentType: str
    size: int
    sizeLabel: str
    previewUrl: str
    status: ImageStatus
    result: Optional[ImageResult] = None
    error: Optional[str] = None


class UploadNotice(BaseModel):
    filename: str
    message: str


class UploadResponse(BaseModel):
    added: List[ProcessedImageOut]
    rejected: List[UploadNotice]


class ImageListResponse(BaseModel):
    images: List[ProcessedImageOut]
    pendingCount: int
    isProcessing: bool


class ProcessResponse(BaseModel):
    queued: int
    message: str

# ===== SVG Schemas =====

class SvgProcessRequest(BaseModel):
    svgContent: Optional[str] = None
    query: Optional[str] = None
    mode: Optional[str] = None


class SvgAnalyzeRequest(BaseModel):
    svgContent: str


class SvgAnalysisResult(BaseModel):
    description: str
    elements: List[str]
    metadata: Dict[str, str]

# ===== Account Schemas =====

class UserProfile(BaseModel):
    id: str
    email: EmailStr
    creditsUsed: int
    creditsLimit: int
    isPremium: bool
    expirationDate: Optional[datetime] = None
    remainingCredits: Optional[int] = None
    timeRemaining: str = ""
    canGenerate: bool

# ===== Session Schemas =====

class TrackSessionRequest(BaseModel):
    user_id: str
    ip_address: str
    user_agent: str
    session_id: str


class ActiveSessionRequest(BaseModel):
    user_id: str
    email: EmailStr
    session_id: str
    activity_time: Optional[datetime] = None


class ActiveSessionStatus(BaseModel):
    active: bool


class CleanupResponse(BaseModel):
    removed: int
