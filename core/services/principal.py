from dataclasses import dataclass

from core.models import User


@dataclass(frozen=True)
class Principal:
    """The authenticated caller, passed explicitly into every service call."""
    id: int
    role: str

    @property
    def is_professional(self) -> bool:
        return self.role == User.ROLE_PROFESSIONAL

    @classmethod
    def from_user(cls, user) -> 'Principal':
        return cls(id=user.id, role=getattr(user, 'role', ''))
