from typing import Any, Optional

from attio._cogs.clients import transports
from attio._cogs.structs import capabilities
from attio._core.resources import base


class Meta(base.APIResource):
    """
    The information about the current token and its workspace. Read-only.
    """
    RESOURCE = 'meta'
    PATH = 'self'
    CAPABILITIES = capabilities.Capability.READ_ONLY
    SINGLETON = True

    active = base.Field(readonly=True, default=False)
    scope = base.Field(readonly=True, default='')
    client_id = base.Field(readonly=True)
    token_type = base.Field(readonly=True)
    workspace_id = base.Field(readonly=True)
    workspace_name = base.Field(readonly=True)
    workspace_slug = base.Field(readonly=True)
    workspace_logo_url = base.Field(readonly=True)
    authorized_by_workspace_member_id = base.Field(readonly=True)

    @classmethod
    async def identify(
            cls,
            *,
            transport: Optional[transports.Transport] = None,
            options: Optional[transports.RequestOptions] = None,
    ) -> "Meta":
        cls.require(capabilities.Capability.READ, 'identify')
        transport = transports.get_transport(transport)
        response = await transport.execute_request('GET', cls.PATH, None, options)
        return cls.from_wire(response, transport=transport)

    @property
    def scopes(self) -> list[str]:
        return (self.scope or '').split()

    def has_scope(self, scope: str) -> bool:
        return scope in self.scopes

    def can_read(self, resource: str) -> bool:
        return self.has_scope(f'{resource}:read') or self.has_scope(f'{resource}:read-write')

    def can_write(self, resource: str) -> bool:
        return self.has_scope(f'{resource}:read-write') or self.has_scope(f'{resource}:write')

    @property
    def workspace(self) -> Optional[dict[str, Any]]:
        if not self.workspace_id:
            return None
        return {key: val for key, val in [
            ('id', self.workspace_id),
            ('name', self.workspace_name),
            ('slug', self.workspace_slug),
            ('logo_url', self.workspace_logo_url),
        ] if val is not None}
