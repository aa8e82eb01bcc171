"""
Request and response models for the Pricing Service.
"""

from typing import Dict, Any, Optional, List
from datetime import datetime

from pydantic import BaseModel, Field


class QuoteRequest(BaseModel):
    """Request model for a price quote."""
    category: str = Field(..., description="Product category")
    config: Dict[str, Any] = Field(default_factory=dict, description="Selected option values")


class QuoteResponse(BaseModel):
    """Response model for a price quote."""
    category: str
    price: float = Field(..., description="Price in the storefront currency")
    description: str = Field(..., description="Human-readable configuration summary")
    purchasable: bool = Field(..., description="Whether purchase actions are enabled")
    currency: str
    matched_rule: bool = Field(False, description="Whether an exact price rule matched")


class PreviewResponse(QuoteResponse):
    """Quote plus the URL-safe configuration token."""
    token: str
    config: Dict[str, Any]


class ChoiceResponse(BaseModel):
    value: str
    label: str
    image: Optional[str] = None
    price_adjustment: float = 0.0


class OptionResponse(BaseModel):
    """One configuration option as shown by the configurator."""
    id: str
    kind: str
    label: str
    default_value: Any
    choices: List[ChoiceResponse] = Field(default_factory=list)
    min: Optional[float] = None
    max: Optional[float] = None
    step: Optional[float] = None
    unit: Optional[str] = None


class CategoryResponse(BaseModel):
    """Category options and defaults."""
    category: str
    title: str
    description: Optional[str]
    strategy: str
    options: List[OptionResponse]
    default_configuration: Dict[str, Any]


class SaveConfigurationRequest(BaseModel):
    """Request model for saving a configuration."""
    user_id: str = Field(..., description="Owner of the configuration")
    category: str = Field(..., description="Product category")
    config: Dict[str, Any] = Field(default_factory=dict, description="Selected option values")
    name: str = Field("My Configuration", min_length=1, max_length=120)


class SavedConfigurationResponse(BaseModel):
    """A saved configuration document."""
    id: str
    user_id: str
    category: str
    config: Dict[str, Any]
    price: float
    description: str
    name: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "SavedConfigurationResponse":
        return cls(
            id=document["id"],
            user_id=document["userId"],
            category=document["category"],
            config=document["config"],
            price=document["price"],
            description=document["description"],
            name=document["name"],
            created_at=document["createdAt"],
            updated_at=document["updatedAt"]
        )


class SavedConfigurationListResponse(BaseModel):
    configurations: List[SavedConfigurationResponse]
    total: int
