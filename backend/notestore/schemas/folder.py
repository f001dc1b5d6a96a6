from pydantic import BaseModel, ConfigDict

from notestore.schemas.types import ItemId


class Folder(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: ItemId
    name: str
    parent_id: ItemId | None = None
