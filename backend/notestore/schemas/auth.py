from pydantic import BaseModel


class TokenData(BaseModel):
    node_id: str | None = None
