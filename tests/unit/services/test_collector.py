from collections.abc import Callable
from typing import Any

from modelmaker.models.enums import CoercionKind, FieldKind, RelationKind
from modelmaker.services.collector import DefinitionCollector

PrompterFactory = Callable[..., Any]

TITLE_ANSWERS = ("title", "text", False, False, True, False, False, False)


class TestCollectFields:
    def test_collects_simple_field(self, make_prompter: PrompterFactory) -> None:
        prompter = make_prompter(*TITLE_ANSWERS, "")

        fields = DefinitionCollector(prompter).collect_fields()

        assert [field.name for field in fields] == ["title"]
        assert fields[0].kind is FieldKind.TEXT
        assert fields[0].exposed_for_write is True
        assert prompter.exhausted

    def test_collects_enumerated_field_with_coercion(self, make_prompter: PrompterFactory) -> None:
        prompter = make_prompter(
            "status", "enumerated", "draft, published", False, False, True, False, False, True, "string", ""
        )

        fields = DefinitionCollector(prompter).collect_fields()

        assert fields[0].enum_values == ["draft", "published"]
        assert fields[0].coercion is CoercionKind.STRING

    def test_reasks_for_empty_enum_values(self, make_prompter: PrompterFactory) -> None:
        prompter = make_prompter("status", "enumerated", " , ", "a", False, False, True, False, False, False, "")

        fields = DefinitionCollector(prompter).collect_fields()

        assert fields[0].enum_values == ["a"]
        assert "At least one enum value is required." in prompter.warnings

    def test_boolean_tip(self, make_prompter: PrompterFactory) -> None:
        prompter = make_prompter("is_active", "boolean", False, False, True, False, False, False, "")

        DefinitionCollector(prompter).collect_fields()

        assert any("->default(true)" in message for message in prompter.messages)

    def test_invalid_name_is_refused(self, make_prompter: PrompterFactory) -> None:
        prompter = make_prompter("9lives", "")

        assert DefinitionCollector(prompter).collect_fields() == []
        assert prompter.warnings

    def test_repeated_name_is_refused(self, make_prompter: PrompterFactory) -> None:
        prompter = make_prompter(*TITLE_ANSWERS, "title", "")

        fields = DefinitionCollector(prompter).collect_fields()

        assert len(fields) == 1
        assert any("already added" in warning for warning in prompter.warnings)

    def test_existing_name_needs_confirmation(self, make_prompter: PrompterFactory) -> None:
        prompter = make_prompter("title", False, "")

        assert DefinitionCollector(prompter).collect_fields(["title"]) == []
        assert any("already defined" in warning for warning in prompter.warnings)

    def test_existing_name_confirmed(self, make_prompter: PrompterFactory) -> None:
        prompter = make_prompter("title", True, "text", False, False, False, False, False, True, "string", "")

        fields = DefinitionCollector(prompter).collect_fields(["title"])

        assert fields[0].exposed_for_write is False
        assert fields[0].coercion is CoercionKind.STRING


class TestCollectRelations:
    def test_collects_belongs_to(self, make_prompter: PrompterFactory) -> None:
        prompter = make_prompter(True, "author", "User", "belongsTo", False)

        relations = DefinitionCollector(prompter).collect_relations(
            has_accessor=lambda name: False,
            related_model_exists=lambda ref: True,
        )

        assert len(relations) == 1
        assert relations[0].method_name == "author"
        assert relations[0].relation_kind is RelationKind.BELONGS_TO
        assert prompter.exhausted

    def test_missing_model_needs_confirmation(self, make_prompter: PrompterFactory) -> None:
        prompter = make_prompter(True, "tags", "Tag", True, "belongsToMany", True, False)

        relations = DefinitionCollector(prompter).collect_relations(
            has_accessor=lambda name: False,
            related_model_exists=lambda ref: False,
        )

        assert relations[0].needs_junction_table is True
        assert any("does not exist yet" in warning for warning in prompter.warnings)

    def test_missing_model_declined(self, make_prompter: PrompterFactory) -> None:
        prompter = make_prompter(True, "tags", "Tag", False, False)

        relations = DefinitionCollector(prompter).collect_relations(
            has_accessor=lambda name: False,
            related_model_exists=lambda ref: False,
        )

        assert relations == []

    def test_existing_method_is_skipped(self, make_prompter: PrompterFactory) -> None:
        prompter = make_prompter(True, "posts", False)

        relations = DefinitionCollector(prompter).collect_relations(
            has_accessor=lambda name: name == "posts",
            related_model_exists=lambda ref: True,
        )

        assert relations == []
        assert any("will not be overwritten" in warning for warning in prompter.warnings)

    def test_no_relations(self, make_prompter: PrompterFactory) -> None:
        prompter = make_prompter(False)

        relations = DefinitionCollector(prompter).collect_relations(lambda name: False, lambda ref: True)

        assert relations == []


class TestCollectIndexes:
    def test_known_columns(self, make_prompter: PrompterFactory) -> None:
        prompter = make_prompter(True, "status", False)

        indexes = DefinitionCollector(prompter).collect_indexes({"status"})

        assert [index.columns for index in indexes] == [["status"]]

    def test_unknown_columns_declined(self, make_prompter: PrompterFactory) -> None:
        prompter = make_prompter(True, "otp_code, otp_expires_at", False, False)

        indexes = DefinitionCollector(prompter).collect_indexes({"otp_code"})

        assert indexes == []
        assert "  - otp_expires_at" in prompter.messages

    def test_unknown_columns_accepted(self, make_prompter: PrompterFactory) -> None:
        prompter = make_prompter(True, "otp_code, otp_expires_at", True, False)

        indexes = DefinitionCollector(prompter).collect_indexes(set())

        assert [index.columns for index in indexes] == [["otp_code", "otp_expires_at"]]

    def test_empty_columns_are_skipped(self, make_prompter: PrompterFactory) -> None:
        prompter = make_prompter(True, " , ", False)

        assert DefinitionCollector(prompter).collect_indexes(set()) == []
