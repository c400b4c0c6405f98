"""Identity of the caller, resolved once per request and passed explicitly."""

from typing import Optional

from pydantic import BaseModel, ConfigDict


class AuthContext(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_id: str
    role: str = "student"  # student, professor, admin
    professor_id: Optional[str] = None
    student_id: Optional[str] = None

    @property
    def is_professor(self) -> bool:
        return self.role == "professor" and self.professor_id is not None
