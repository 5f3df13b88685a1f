from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from elearn.translation.translator import Translator, get_translator

router = APIRouter(prefix="/translate", tags=["Translation"])


class TranslationRequest(BaseModel):
    text: str = Field(..., max_length=5000)


class TranslationResponse(BaseModel):
    text: str
    translation: str


@router.post("", response_model=TranslationResponse)
async def translate(
    data: TranslationRequest,
    translator: Translator = Depends(get_translator),
):
    """Public translation widget endpoint; no sign-in required"""
    translation = await translator.translate(data.text)
    return TranslationResponse(text=data.text, translation=translation)
