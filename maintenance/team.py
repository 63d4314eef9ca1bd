"""Team class for maintenance crews."""

from typing import List, Optional


class TeamMember:
    """A user's membership in a team."""

    def __init__(self, user_id: str, role: str = "junior"):
        self.user_id = user_id
        self.role = role


class Team:
    """Maintenance team with specializations and members."""

    def __init__(
            self,
            id: str,
            name: str,
            specialization: Optional[List[str]] = None,
            members: Optional[List[TeamMember]] = None,
    ):
        self.id = id
        self.name = name
        self.specialization = specialization or []
        self.members = members or []

    def has_member(self, user_id: str) -> bool:
        return any(m.user_id == user_id for m in self.members)
