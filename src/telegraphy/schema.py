"""Schemas — the validation capability remotes and routes rely on.

The dispatch core only needs one thing from a schema: a ``validate``
method that returns the (possibly coerced) value or raises. Anything
with that method works, including adapters around third-party
validators. Foreign schemas that raise ``ValueError`` or ``TypeError``
are normalized into ``SchemaError``.

A small set of built-in combinators covers JSON-shaped data::

    from telegraphy import schema as s

    officer = s.obj({"id": s.integer, "name": s.string, "rank": s.string})
    officer.validate({"id": 1, "name": "Picard", "rank": "Captain"})

Built-in schemas also describe themselves as JSON Schema fragments via
``json_schema()``, which the router uses for introspection.
"""

import dataclasses
import enum
import math
import types
from collections.abc import Mapping
from typing import Any, Literal, NoReturn, Protocol, Union, get_args, get_origin, get_type_hints, runtime_checkable

from telegraphy.errors import Phase, SchemaError, SchemaIssue, Side, ValidationError

type Path = tuple[str | int, ...]


@runtime_checkable
class Schema(Protocol):
    """Anything that can validate a value."""

    def validate(self, value: Any) -> Any: ...


def _fail(path: Path, message: str) -> NoReturn:
    raise SchemaError((SchemaIssue(path=path, message=message),))


def _type_name(value: Any) -> str:
    if value is None:
        return "null"
    return type(value).__name__


def descend(schema: Any, value: Any, path: Path) -> Any:
    """Validate *value* at *path*, reporting issues relative to the root."""
    if isinstance(schema, BaseSchema):
        return schema.check(value, path)
    try:
        return schema.validate(value)
    except SchemaError as exc:
        raise SchemaError(tuple(issue.under(path) for issue in exc.issues)) from None
    except (ValueError, TypeError) as exc:
        raise SchemaError((SchemaIssue(path=path, message=str(exc)),)) from exc


def run_schema(schema: Any, value: Any) -> Any:
    """Validate *value* against any schema, raising ``SchemaError`` on failure."""
    return descend(schema, value, ())


def checked(
    schema: Any,
    value: Any,
    *,
    side: Side,
    phase: Phase,
    feature: str | None = None,
    method: str | None = None,
) -> Any:
    """Validate one side of a call, raising ``ValidationError`` tagged with where it failed."""
    try:
        return run_schema(schema, value)
    except SchemaError as exc:
        raise ValidationError(
            side=side,
            phase=phase,
            issues=exc.issues,
            feature=feature,
            method=method,
        ) from exc


def json_schema_of(schema: Any) -> dict[str, Any]:
    """Return the JSON Schema fragment for *schema*, or ``{}`` if it has none."""
    describe = getattr(schema, "json_schema", None)
    if describe is None:
        return {}
    return describe()


def is_optional(schema: Any) -> bool:
    """True if an object field using *schema* may be absent."""
    return bool(getattr(schema, "optional", False))


class BaseSchema:
    """Shared plumbing for the built-in schemas.

    Subclasses implement ``check(value, path)``; ``validate`` is the
    public entry point that starts at the root.
    """

    __slots__ = ()

    optional = False

    def validate(self, value: Any) -> Any:
        return self.check(value, ())

    def check(self, value: Any, path: Path) -> Any:
        raise NotImplementedError

    def json_schema(self) -> dict[str, Any]:
        return {}

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.json_schema()!r}>"


# ---------------------------------------------------------------------------
# Scalars
# ---------------------------------------------------------------------------


class UnknownSchema(BaseSchema):
    """Accepts any value unchanged."""

    __slots__ = ()

    def check(self, value: Any, path: Path) -> Any:
        return value


class NullSchema(BaseSchema):
    __slots__ = ()

    def check(self, value: Any, path: Path) -> None:
        if value is not None:
            _fail(path, f"Expected null, got {_type_name(value)}")
        return None

    def json_schema(self) -> dict[str, Any]:
        return {"type": "null"}


class StringSchema(BaseSchema):
    __slots__ = ()

    def check(self, value: Any, path: Path) -> str:
        if not isinstance(value, str):
            _fail(path, f"Expected string, got {_type_name(value)}")
        return value

    def json_schema(self) -> dict[str, Any]:
        return {"type": "string"}


class NumberSchema(BaseSchema):
    """Finite ``int`` or ``float``. Booleans are rejected."""

    __slots__ = ()

    def check(self, value: Any, path: Path) -> int | float:
        if isinstance(value, bool) or not isinstance(value, int | float):
            _fail(path, f"Expected number, got {_type_name(value)}")
        if isinstance(value, float) and not math.isfinite(value):
            _fail(path, "Expected a finite number")
        return value

    def json_schema(self) -> dict[str, Any]:
        return {"type": "number"}


class IntegerSchema(BaseSchema):
    """Whole numbers. Integral floats such as ``3.0`` are coerced to ``int``."""

    __slots__ = ()

    def check(self, value: Any, path: Path) -> int:
        if isinstance(value, bool):
            _fail(path, "Expected integer, got bool")
        if isinstance(value, int):
            return value
        if isinstance(value, float) and value.is_integer():
            return int(value)
        _fail(path, f"Expected integer, got {_type_name(value)}")

    def json_schema(self) -> dict[str, Any]:
        return {"type": "integer"}


class BooleanSchema(BaseSchema):
    __slots__ = ()

    def check(self, value: Any, path: Path) -> bool:
        if not isinstance(value, bool):
            _fail(path, f"Expected boolean, got {_type_name(value)}")
        return value

    def json_schema(self) -> dict[str, Any]:
        return {"type": "boolean"}


class LiteralSchema(BaseSchema):
    """Value must equal one of a fixed set (type-sensitive: ``1`` is not ``True``)."""

    __slots__ = ("values",)

    def __init__(self, values: tuple[Any, ...]) -> None:
        self.values = values

    def check(self, value: Any, path: Path) -> Any:
        for candidate in self.values:
            if type(candidate) is type(value) and candidate == value:
                return value
        options = ", ".join(repr(v) for v in self.values)
        _fail(path, f"Expected one of: {options}")

    def json_schema(self) -> dict[str, Any]:
        return {"enum": list(self.values)}


class EnumSchema(BaseSchema):
    """Value must be a member of ``cls`` or one of its member values. Returns the member."""

    __slots__ = ("cls",)

    def __init__(self, cls: type[enum.Enum]) -> None:
        self.cls = cls

    def check(self, value: Any, path: Path) -> enum.Enum:
        if isinstance(value, self.cls):
            return value
        for member in self.cls:
            if type(member.value) is type(value) and member.value == value:
                return member
        options = ", ".join(repr(member.value) for member in self.cls)
        _fail(path, f"Expected one of: {options}")

    def json_schema(self) -> dict[str, Any]:
        return {"title": self.cls.__name__, "enum": [member.value for member in self.cls]}


# ---------------------------------------------------------------------------
# Wrappers and containers
# ---------------------------------------------------------------------------


class OptionalSchema(BaseSchema):
    """Accepts ``None``, and lets an object field be absent altogether."""

    __slots__ = ("inner",)

    optional = True

    def __init__(self, inner: Any) -> None:
        self.inner = inner

    def check(self, value: Any, path: Path) -> Any:
        if value is None:
            return None
        return descend(self.inner, value, path)

    def json_schema(self) -> dict[str, Any]:
        return {"anyOf": [json_schema_of(self.inner), {"type": "null"}]}


class ArraySchema(BaseSchema):
    """A list (or tuple) whose every item matches ``items``. Returns a list."""

    __slots__ = ("items",)

    def __init__(self, items: Any) -> None:
        self.items = items

    def check(self, value: Any, path: Path) -> list[Any]:
        if not isinstance(value, list | tuple):
            _fail(path, f"Expected array, got {_type_name(value)}")
        result: list[Any] = []
        issues: list[SchemaIssue] = []
        for index, item in enumerate(value):
            try:
                result.append(descend(self.items, item, (*path, index)))
            except SchemaError as exc:
                issues.extend(exc.issues)
        if issues:
            raise SchemaError(issues)
        return result

    def json_schema(self) -> dict[str, Any]:
        return {"type": "array", "items": json_schema_of(self.items)}


class FrozenArraySchema(ArraySchema):
    """Like ``ArraySchema`` but returns a tuple, for ``tuple[X, ...]`` fields."""

    __slots__ = ()

    def check(self, value: Any, path: Path) -> tuple[Any, ...]:  # type: ignore[override]
        return tuple(super().check(value, path))


class TupleSchema(BaseSchema):
    """A fixed-length array checked position by position. Returns a tuple."""

    __slots__ = ("items",)

    def __init__(self, items: tuple[Any, ...]) -> None:
        self.items = items

    def check(self, value: Any, path: Path) -> tuple[Any, ...]:
        if not isinstance(value, list | tuple):
            _fail(path, f"Expected array, got {_type_name(value)}")
        if len(value) != len(self.items):
            _fail(path, f"Expected {len(self.items)} items, got {len(value)}")
        result: list[Any] = []
        issues: list[SchemaIssue] = []
        for index, (item_schema, item) in enumerate(zip(self.items, value, strict=True)):
            try:
                result.append(descend(item_schema, item, (*path, index)))
            except SchemaError as exc:
                issues.extend(exc.issues)
        if issues:
            raise SchemaError(issues)
        return tuple(result)

    def json_schema(self) -> dict[str, Any]:
        return {
            "type": "array",
            "prefixItems": [json_schema_of(item) for item in self.items],
            "minItems": len(self.items),
            "maxItems": len(self.items),
        }


class ObjectSchema(BaseSchema):
    """A mapping with known fields.

    Every field is required unless its schema is optional. Keys that are
    not declared are dropped from the result. All failing fields are
    reported together.
    """

    __slots__ = ("fields",)

    def __init__(self, fields: Mapping[str, Any]) -> None:
        self.fields = dict(fields)

    def check(self, value: Any, path: Path) -> dict[str, Any]:
        if not isinstance(value, Mapping):
            _fail(path, f"Expected object, got {_type_name(value)}")
        result: dict[str, Any] = {}
        issues: list[SchemaIssue] = []
        for name, field_schema in self.fields.items():
            if name not in value:
                if not is_optional(field_schema):
                    issues.append(SchemaIssue(path=(*path, name), message="Required field is missing"))
                continue
            try:
                result[name] = descend(field_schema, value[name], (*path, name))
            except SchemaError as exc:
                issues.extend(exc.issues)
        if issues:
            raise SchemaError(issues)
        return result

    def json_schema(self) -> dict[str, Any]:
        properties = {name: json_schema_of(s) for name, s in self.fields.items()}
        required = [name for name, s in self.fields.items() if not is_optional(s)]
        result: dict[str, Any] = {"type": "object", "properties": properties}
        if required:
            result["required"] = required
        return result


class RecordSchema(BaseSchema):
    """A mapping with string keys and uniformly typed values."""

    __slots__ = ("values",)

    def __init__(self, values: Any) -> None:
        self.values = values

    def check(self, value: Any, path: Path) -> dict[str, Any]:
        if not isinstance(value, Mapping):
            _fail(path, f"Expected object, got {_type_name(value)}")
        result: dict[str, Any] = {}
        issues: list[SchemaIssue] = []
        for key, item in value.items():
            if not isinstance(key, str):
                issues.append(SchemaIssue(path=(*path, str(key)), message="Keys must be strings"))
                continue
            try:
                result[key] = descend(self.values, item, (*path, key))
            except SchemaError as exc:
                issues.extend(exc.issues)
        if issues:
            raise SchemaError(issues)
        return result

    def json_schema(self) -> dict[str, Any]:
        return {"type": "object", "additionalProperties": json_schema_of(self.values)}


class UnionSchema(BaseSchema):
    """First alternative that accepts the value wins."""

    __slots__ = ("options",)

    def __init__(self, options: tuple[Any, ...]) -> None:
        self.options = options

    @property
    def optional(self) -> bool:  # type: ignore[override]
        return any(is_optional(option) for option in self.options)

    def check(self, value: Any, path: Path) -> Any:
        for option in self.options:
            try:
                return descend(option, value, path)
            except SchemaError:
                continue
        _fail(path, f"Value does not match any of {len(self.options)} alternatives")

    def json_schema(self) -> dict[str, Any]:
        return {"anyOf": [json_schema_of(option) for option in self.options]}


class DataclassSchema[T](BaseSchema):
    """Maps JSON objects to instances of a dataclass, and back.

    Field schemas are derived from the dataclass annotations (see
    ``from_type``). Fields with defaults may be absent. Instances of the
    dataclass are accepted too and re-checked field by field, so routes
    can return dataclasses and still have their output validated.
    """

    __slots__ = ("cls", "fields")

    def __init__(self, cls: type[T]) -> None:
        if not dataclasses.is_dataclass(cls):
            msg = f"{cls.__name__} is not a dataclass"
            raise TypeError(msg)
        hints = get_type_hints(cls)
        self.cls = cls
        self.fields: dict[str, Any] = {}
        for field in dataclasses.fields(cls):
            field_schema = from_type(hints.get(field.name, Any))
            has_default = (
                field.default is not dataclasses.MISSING
                or field.default_factory is not dataclasses.MISSING
            )
            if has_default and not is_optional(field_schema):
                field_schema = _Defaulted(field_schema)
            self.fields[field.name] = field_schema

    def check(self, value: Any, path: Path) -> T:
        if isinstance(value, self.cls):
            value = {f.name: getattr(value, f.name) for f in dataclasses.fields(self.cls)}
        checked = ObjectSchema(self.fields).check(value, path)
        try:
            return self.cls(**checked)
        except TypeError as exc:
            _fail(path, f"Cannot build {self.cls.__name__}: {exc}")

    def json_schema(self) -> dict[str, Any]:
        schema = ObjectSchema(self.fields).json_schema()
        schema["title"] = self.cls.__name__
        return schema


class _Defaulted(BaseSchema):
    """Marks a dataclass field with a default as omittable."""

    __slots__ = ("inner",)

    optional = True

    def __init__(self, inner: Any) -> None:
        self.inner = inner

    def check(self, value: Any, path: Path) -> Any:
        return descend(self.inner, value, path)

    def json_schema(self) -> dict[str, Any]:
        return json_schema_of(self.inner)


# ---------------------------------------------------------------------------
# Public constructors
# ---------------------------------------------------------------------------

unknown = UnknownSchema()
null = NullSchema()
string = StringSchema()
number = NumberSchema()
integer = IntegerSchema()
boolean = BooleanSchema()


def literal(*values: Any) -> LiteralSchema:
    """Value must be one of *values*."""
    if not values:
        msg = "literal() needs at least one value"
        raise ValueError(msg)
    return LiteralSchema(values)


def optional(inner: Any) -> OptionalSchema:
    """Value may be ``None``; as an object field it may be missing."""
    return OptionalSchema(inner)


def array(items: Any) -> ArraySchema:
    """A list whose items all match *items*."""
    return ArraySchema(items)


def obj(fields: Mapping[str, Any]) -> ObjectSchema:
    """An object with the given field schemas."""
    return ObjectSchema(fields)


def record(values: Any) -> RecordSchema:
    """A string-keyed mapping whose values all match *values*."""
    return RecordSchema(values)


def union(*options: Any) -> UnionSchema:
    """First of *options* that accepts the value."""
    if not options:
        msg = "union() needs at least one schema"
        raise ValueError(msg)
    return UnionSchema(options)


def dataclass_schema[T](cls: type[T]) -> DataclassSchema[T]:
    """Validate JSON objects into instances of the dataclass *cls*."""
    return DataclassSchema(cls)


# Python type → built-in schema
_TYPE_MAP: dict[Any, BaseSchema] = {
    str: string,
    int: integer,
    float: number,
    bool: boolean,
    type(None): null,
    Any: unknown,
    object: unknown,
}


def from_type(annotation: Any) -> Any:
    """Derive a schema from a Python type annotation.

    Supports ``str``, ``int``, ``float``, ``bool``, ``None``, ``Any``,
    ``list[X]``, ``tuple[X, ...]``, ``tuple[X, Y]``, ``dict[str, X]``,
    ``Literal[...]``, ``Enum`` subclasses, ``X | None``, ``X | Y`` and
    nested dataclasses. Tuples validate to tuples, enums to their
    members. Anything else is accepted unchecked.
    """
    if annotation in _TYPE_MAP:
        return _TYPE_MAP[annotation]

    if dataclasses.is_dataclass(annotation) and isinstance(annotation, type):
        return DataclassSchema(annotation)

    origin = get_origin(annotation)
    args = get_args(annotation)

    if origin is list:
        return ArraySchema(from_type(args[0]) if args else unknown)

    if origin is tuple:
        if len(args) == 2 and args[1] is Ellipsis:
            return FrozenArraySchema(from_type(args[0]))
        if args == ((),):
            return TupleSchema(())
        return TupleSchema(tuple(from_type(a) for a in args))

    if origin is Literal:
        return LiteralSchema(args)

    if isinstance(annotation, type) and issubclass(annotation, enum.Enum):
        return EnumSchema(annotation)

    if origin is dict:
        return RecordSchema(from_type(args[1]) if len(args) == 2 else unknown)

    if origin is Union or origin is types.UnionType:
        non_none = [a for a in args if a is not type(None)]
        inner = from_type(non_none[0]) if len(non_none) == 1 else UnionSchema(tuple(from_type(a) for a in non_none))
        if len(non_none) < len(args):
            return OptionalSchema(inner)
        return inner

    if annotation is list:
        return ArraySchema(unknown)
    if annotation is tuple:
        return FrozenArraySchema(unknown)
    if annotation is dict:
        return RecordSchema(unknown)

    return unknown
