import uuid
from sqlmodel import SQLModel


class BaseModel(SQLModel):
    """Common base for all table entities"""
    pass


def generate_uuid() -> str:
    return str(uuid.uuid4())
