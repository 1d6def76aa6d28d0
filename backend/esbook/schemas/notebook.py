from pydantic import BaseModel
from typing import Optional, List


class CreateNotebookRequest(BaseModel):
    name: Optional[str] = None


class CreateNotebookResponse(BaseModel):
    notebook_id: str


class NotebookMetadataResponse(BaseModel):
    id: str
    name: str


class ListNotebooksResponse(BaseModel):
    notebooks: List[NotebookMetadataResponse]


class RunNotebookResponse(BaseModel):
    states: List[str]
