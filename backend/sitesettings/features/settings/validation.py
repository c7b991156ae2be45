"""Document checking for edit batches."""

from typing import Any, Dict, List, Protocol

from pydantic import ValidationError as PydanticValidationError
import structlog

from sitesettings.core.exceptions import BadRequestError, ValidationError
from . import messages
from .schemas import SettingEditItem

logger = structlog.get_logger(__name__)


class DocumentChecker(Protocol):
    """Validates the shape of an incoming document before persistence."""

    async def check_object(self, document: Dict[str, Any], doc_name: str) -> Dict[str, Any]:
        """Return the checked document or raise a classified error."""
        ...


class SchemaDocumentChecker:
    """Checks that ``document[doc_name]`` is a non-empty list of valid items."""

    item_model = SettingEditItem

    async def check_object(self, document: Dict[str, Any], doc_name: str) -> Dict[str, Any]:
        items = document.get(doc_name) if isinstance(document, dict) else None
        if not isinstance(items, list) or not items:
            raise BadRequestError(messages.NO_ROOT_KEY_PROVIDED.format(doc_name=doc_name))

        checked: List[Dict[str, Any]] = []
        for index, item in enumerate(items):
            raw = item.model_dump() if isinstance(item, SettingEditItem) else item
            try:
                checked.append(self.item_model.model_validate(raw).model_dump())
            except PydanticValidationError as e:
                logger.warning(
                    "document_validation_failed",
                    doc_name=doc_name,
                    index=index,
                    error_count=e.error_count(),
                )
                raise ValidationError(
                    messages.INVALID_SETTINGS_DOCUMENT.format(doc_name=doc_name),
                    context={
                        "index": index,
                        "errors": [
                            {"loc": list(err["loc"]), "msg": err["msg"]}
                            for err in e.errors()
                        ],
                    },
                )

        return {doc_name: checked}
