from typing import Any, Optional

from attio._cogs.structs import capabilities
from attio._core.resources import base


class WorkspaceMember(base.APIResource):
    """
    A member of the workspace. Read-only: the members are managed in the app.
    """
    RESOURCE = 'workspace_member'
    ID_KEY = 'workspace_member_id'
    PATH = 'workspace_members'
    CAPABILITIES = capabilities.Capability.READ_ONLY

    first_name = base.Field(readonly=True)
    last_name = base.Field(readonly=True)
    avatar_url = base.Field(readonly=True)
    email_address = base.Field(readonly=True)
    access_level = base.Field(readonly=True)

    @property
    def full_name(self) -> str:
        return ' '.join(part for part in [self.first_name, self.last_name] if part)

    @property
    def admin(self) -> bool:
        return self.access_level == 'admin'

    @classmethod
    async def find_by_email(cls, email: str, **kwargs: Any) -> Optional["WorkspaceMember"]:
        async for member in cls.iterate(**kwargs):
            if (member.email_address or '').lower() == email.lower():
                return member
        return None
