import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, ConfigDict, Field

from fomo_backend.models.cards import Card
from fomo_backend.tokenization.service import Tokenizer
from fomo_backend.utils.rate_limit import optional_rate_limit

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Tokenization"])

class TokenizeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    number: str = Field(min_length=1, max_length=32)
    expiry_month: int = Field(alias="expiryMonth")
    expiry_year: int = Field(alias="expiryYear")
    cvc: str = Field(max_length=8)
    holder_name: Optional[str] = Field(default=None, alias="holderName", max_length=128)

def get_tokenizer(request: Request) -> Tokenizer:
    return request.app.state.tokenizer

# module fomo_backend.tokenization.views
@router.post("/tokenize", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
async def tokenize_card(req: TokenizeRequest, tokenizer: Tokenizer = Depends(get_tokenizer)):
    """
    Échange des données de carte contre un jeton opaque à usage unique.
    - Entrée JSON: { number, expiryMonth, expiryYear, cvc, holderName? }
    - Réponse: { token, brand, last4, expiryMonth, expiryYear }
    - Erreurs: 400 invalid_card_number / expired_card, 502 network_error
    """
    card = Card(
        number=req.number,
        expiry_month=req.expiry_month,
        expiry_year=req.expiry_year,
        cvc=req.cvc,
        holder_name=req.holder_name or "",
    )
    outcome = await tokenizer.tokenize(card)
    return outcome.unwrap().to_dict()
