from dataclasses import dataclass, field
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from carelearn.identity import Identity
from carelearn.revalidation import Revalidator


@dataclass
class ActionContext:
    """Per-call collaborators handed to every domain action."""
    db: AsyncSession
    identity: Optional[Identity] = None
    revalidator: Revalidator = field(default_factory=Revalidator)

    def revalidate_path(self, path: str) -> None:
        self.revalidator.revalidate_path(path)
