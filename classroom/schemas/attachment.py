from pydantic import BaseModel


class AttachmentRef(BaseModel):
    reference: str
    size: int
