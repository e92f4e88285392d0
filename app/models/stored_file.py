from pydantic import BaseModel


class StoredFile(BaseModel):
    file_id: str
    filename: str
