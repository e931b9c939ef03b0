from pydantic import BaseModel, Field
from typing import Dict

class Account(BaseModel):
    address: str
    balance: int = 0

    # Contract storage: slot name -> value
    storage: Dict[str, str] = Field(default_factory=dict)
