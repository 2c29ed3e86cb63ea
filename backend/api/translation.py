from fastapi import APIRouter, Depends
from core.errors import BadRequest, InternalError
from core.security import get_current_user_id
from core.services import get_translator
from schemas.document_schemas import TranslateRequest, TranslateResponse
from services.translation import (
    Translator,
    TranslationError,
    TranslationValidationError,
    AUTO_DETECT,
)
from utils.logger import get_logger

logger = get_logger("api.translation")

router = APIRouter(prefix="/translate", tags=["translation"])

# ------ Translate a text snippet -----
@router.post("/", response_model=TranslateResponse)
async def translate(
    body: TranslateRequest,
    user_id: int = Depends(get_current_user_id),
    translator: Translator = Depends(get_translator),
):
    if not body.text or not body.target_lang:
        raise BadRequest("text and targetLang are required")

    try:
        translated = await translator.translate(body.text, AUTO_DETECT, body.target_lang)
    except TranslationValidationError as e:
        logger.warning("Rejected translation request", extra={"user_id": user_id, "error": str(e)})
        raise BadRequest("Invalid targetLang format")
    except TranslationError as e:
        logger.error("Translation failed", extra={"user_id": user_id, "error": str(e)})
        raise InternalError("Translation failed") from e

    logger.info("Snippet translated", extra={"user_id": user_id, "target_language": body.target_lang})
    return TranslateResponse(translated=translated)
