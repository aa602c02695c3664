from pydantic import BaseModel


class MetaResponse(BaseModel):
    name: str
    description: str
    version: str
