"""Marshaller for user-defined business objects."""
from __future__ import annotations

from typing import Any
from typing import Generic
from typing import TypeVar

from pydantic import BaseModel

from docrepo.marshal.builtin import ENTITY_TYPE_KEY

ModelT = TypeVar('ModelT', bound=BaseModel)


class BusinessObjectMarshaller(Generic[ModelT]):
    """Map a Pydantic model to a server-side business adapter.

    The wire form is `{"entity-type": <entity_type>, "value": {...}}` where
    the value holds the model fields, using field aliases.

    Example:
        ```python
        from pydantic import BaseModel

        class Note(BaseModel):
            id: str | None = None
            title: str
            description: str | None = None

        client.register_marshaller(
            BusinessObjectMarshaller(Note, entity_type='NoteAdapter'),
        )
        note = client.automation('Business.BusinessCreateOperation') \\
            .param('name', 'note') \\
            .param('parentPath', '/') \\
            .input(Note(title='Note')) \\
            .execute()
        ```

    Args:
        model: Pydantic model class of the business object.
        entity_type: Adapter name used as the discriminator. Defaults to the
            model class name.
    """

    def __init__(
        self,
        model: type[ModelT],
        entity_type: str | None = None,
    ) -> None:
        self.model = model
        self.entity_type = (
            entity_type if entity_type is not None else model.__name__
        )

    def __repr__(self) -> str:
        return (
            f'{type(self).__name__}(model={self.model.__name__}, '
            f'entity_type={self.entity_type!r})'
        )

    def supported(self, obj: Any) -> bool:
        return isinstance(obj, self.model)

    def encode(self, obj: ModelT) -> dict[str, Any]:
        return {
            ENTITY_TYPE_KEY: self.entity_type,
            'value': obj.model_dump(mode='json', by_alias=True),
        }

    def decode(self, data: dict[str, Any]) -> ModelT:
        return self.model.model_validate(data.get('value') or {})
