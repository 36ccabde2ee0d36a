from enum import StrEnum


class FieldKind(StrEnum):
    TEXT = "text"
    LONG_TEXT = "longText"
    INTEGER = "integer"
    BIG_INTEGER = "bigInteger"
    BOOLEAN = "boolean"
    FLOAT = "float"
    DOUBLE = "double"
    DECIMAL = "decimal"
    DATE = "date"
    DATETIME = "datetime"
    JSON_BLOB = "jsonBlob"
    UUID = "uuid"
    ENUMERATED = "enumerated"

    @property
    def builder_method(self) -> str:
        """Schema builder method that declares a column of this kind."""
        return _BUILDER_METHODS[self]


_BUILDER_METHODS = {
    FieldKind.TEXT: "string",
    FieldKind.LONG_TEXT: "text",
    FieldKind.INTEGER: "integer",
    FieldKind.BIG_INTEGER: "bigInteger",
    FieldKind.BOOLEAN: "boolean",
    FieldKind.FLOAT: "float",
    FieldKind.DOUBLE: "double",
    FieldKind.DECIMAL: "decimal",
    FieldKind.DATE: "date",
    FieldKind.DATETIME: "dateTime",
    FieldKind.JSON_BLOB: "json",
    FieldKind.UUID: "uuid",
    FieldKind.ENUMERATED: "enum",
}


class CoercionKind(StrEnum):
    INT = "int"
    FLOAT = "float"
    DOUBLE = "double"
    STRING = "string"
    BOOL = "bool"
    ARRAY = "array"
    JSON = "json"
    DATE = "date"
    DATETIME = "datetime"
    COLLECTION = "collection"


class RelationKind(StrEnum):
    HAS_ONE = "hasOne"
    HAS_MANY = "hasMany"
    BELONGS_TO = "belongsTo"
    BELONGS_TO_MANY = "belongsToMany"
    MORPH_ONE = "morphOne"
    MORPH_MANY = "morphMany"
    MORPH_TO = "morphTo"
    MORPH_TO_MANY = "morphToMany"

    @property
    def supports_junction_table(self) -> bool:
        return self in (RelationKind.BELONGS_TO_MANY, RelationKind.MORPH_TO_MANY)

    @property
    def adds_morph_columns(self) -> bool:
        return self in (RelationKind.MORPH_ONE, RelationKind.MORPH_MANY)


class Slot(StrEnum):
    """Declaration slots recoverable from a model source file."""

    EXPOSED = "fillable"
    HIDDEN = "hidden"
    APPENDED = "appends"
    COERCION = "casts"


class CoercionDialect(StrEnum):
    LEGACY_FIELD = "legacy_field"
    ACCESSOR_FUNCTION = "accessor_function"


class ArtifactKind(StrEnum):
    MODEL = "model"
    CREATE_MIGRATION = "create_migration"
    ALTER_MIGRATION = "alter_migration"
    JUNCTION_MIGRATION = "junction_migration"


class UpdateOption(StrEnum):
    FIELDS = "Add fields"
    RELATIONSHIPS = "Add relationships"
    INDEXES = "Add indexes"
    ALL = "Add all (fields + relationships + indexes)"
    CANCEL = "Cancel"

    @property
    def includes_fields(self) -> bool:
        return self in (UpdateOption.FIELDS, UpdateOption.ALL)

    @property
    def includes_relationships(self) -> bool:
        return self in (UpdateOption.RELATIONSHIPS, UpdateOption.ALL)

    @property
    def includes_indexes(self) -> bool:
        return self in (UpdateOption.INDEXES, UpdateOption.ALL)
