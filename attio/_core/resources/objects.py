from typing import Any, Mapping, Optional

from attio._cogs.clients import errors, transports
from attio._cogs.structs import capabilities, exceptions
from attio._core.resources import attributes, base, pages, records


class Object(base.APIResource):
    """
    An object: a type of records, either standard (people, companies) or custom.

    The objects cannot be deleted via the API.
    """
    RESOURCE = 'object'
    ID_KEY = 'object_id'
    PATH = 'objects'
    CAPABILITIES = capabilities.Capability.UNDELETABLE

    api_slug = base.Field()
    singular_noun = base.Field()
    plural_noun = base.Field()
    created_by_actor = base.Field(readonly=True)

    @classmethod
    def validate_create(cls, attributes: Mapping[str, Any], **extras: Any) -> None:
        missing = [name for name in ['api_slug', 'singular_noun', 'plural_noun'] if not attributes.get(name)]
        if missing:
            raise exceptions.InvalidRequestError(f"An object requires: {', '.join(missing)}.")

    @property
    def slug_or_id(self) -> str:
        return self.api_slug or self.scalar_id or ''

    @classmethod
    async def find_by_slug(
            cls,
            slug: str,
            *,
            transport: Optional[transports.Transport] = None,
            options: Optional[transports.RequestOptions] = None,
    ) -> Optional["Object"]:
        """
        Get an object by its slug, or ``None`` if there is no such object.
        """
        try:
            return await cls.retrieve(slug, transport=transport, options=options)
        except errors.APINotFoundError:
            async for obj in cls.iterate(transport=transport, options=options):
                if obj.api_slug == slug:
                    return obj
            return None

    async def records(
            self,
            params: Optional[Mapping[str, Any]] = None,
            **kwargs: Any,
    ) -> "pages.ListPage[records.Record]":
        kwargs.setdefault('transport', self._transport)
        return await records.Record.list(params, object=self.slug_or_id, **kwargs)

    async def create_record(self, values: Mapping[str, Any], **kwargs: Any) -> "records.Record":
        kwargs.setdefault('transport', self._transport)
        return await records.Record.create(values, object=self.slug_or_id, **kwargs)

    async def list_attributes(
            self,
            params: Optional[Mapping[str, Any]] = None,
            **kwargs: Any,
    ) -> pages.ListPage[attributes.Attribute]:
        kwargs.setdefault('transport', self._transport)
        return await attributes.Attribute.list(params, object=self.slug_or_id, **kwargs)

    async def create_attribute(self, values: Mapping[str, Any], **kwargs: Any) -> attributes.Attribute:
        kwargs.setdefault('transport', self._transport)
        return await attributes.Attribute.create(values, object=self.slug_or_id, **kwargs)

    async def record_class(self, **kwargs: Any) -> "type[records.Record]":
        """
        A record class with the schema of this object's attributes, for precise value shapes.
        """
        page = await self.list_attributes(**kwargs)
        attrs = [attr async for attr in page.iterate()]
        subclass = records.Record.with_schema(attrs, name=f'{self.singular_noun or "Record"}Record')
        subclass.OBJECT = self.slug_or_id
        return subclass
