"""
Типизированные поля шаблона (переменные вида {{name}}).

Каждое поле - вариант размеченного объединения по ключу ``type``.
В базе поля хранятся как JSON, разбор и проверка выполняются на границе
репозитория через ``parse_structured_fields``.
"""
from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, model_validator

from prompt_history.core.exceptions import DomainValidationError


class _FieldBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)

    model_config = ConfigDict(frozen=True, extra="forbid")


class TextField(_FieldBase):
    type: Literal["text"] = "text"
    default: Optional[str] = None


class NumberField(_FieldBase):
    type: Literal["number"] = "number"
    default: Optional[Union[int, float]] = None


class SelectField(_FieldBase):
    type: Literal["select"] = "select"
    options: List[str] = Field(..., min_length=1)
    default: Optional[str] = None

    @model_validator(mode="after")
    def check_default_in_options(self):
        if self.default is not None and self.default not in self.options:
            raise ValueError(f"Default '{self.default}' is not one of the options")
        return self


StructuredField = Annotated[Union[TextField, NumberField, SelectField], Field(discriminator="type")]

_fields_adapter = TypeAdapter(List[StructuredField])


def ensure_unique_names(fields: List[StructuredField]) -> List[StructuredField]:
    """Проверка уникальности имён полей внутри документа"""
    seen = set()
    for field in fields:
        if field.name in seen:
            raise ValueError(f"Duplicate field name: {field.name}")
        seen.add(field.name)
    return fields


def parse_structured_fields(raw: Any) -> List[StructuredField]:
    """Разбор JSON из хранилища в список типизированных полей"""
    if raw is None:
        return []
    try:
        return ensure_unique_names(_fields_adapter.validate_python(raw))
    except (ValidationError, ValueError) as e:
        raise DomainValidationError("Invalid structured fields", {"reason": str(e)})


def dump_structured_fields(fields: List[StructuredField]) -> List[dict]:
    """Сериализация полей в JSON для хранилища"""
    return _fields_adapter.dump_python(list(fields), mode="json")
