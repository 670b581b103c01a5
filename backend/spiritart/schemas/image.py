"""
SpiritArt Backend: Image Transformation Schemas
================================================

What:  Success payload of POST /api/upload-image.

    {
        "success": true,
        "imageUrl": "https://provider.example/generated.png",
        "originalImageUrl": "http://api.example/uploads/<name>-original.jpg",
        "credits": 4,
        "originalPrompt": "Transform this image into Studio Ghibli style",
        "enhancedPrompt": "I want you to create a Studio Ghibli style ...",
        "imageDescription": "A quiet street at dusk ..."
    }
"""

from pydantic import Field

from spiritart.schemas.common import CamelModel


class TransformResponse(CamelModel):
    success: bool = True
    image_url: str = Field(description="Provider-hosted URL of the generated image")
    original_image_url: str = Field(description="Temporary URL of the uploaded original")
    credits: int = Field(description="Balance after the deduction")
    original_prompt: str
    enhanced_prompt: str
    image_description: str
