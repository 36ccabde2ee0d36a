from datetime import datetime
from pathlib import Path

import pytest

from modelmaker.models.batch import DefinitionBatch
from modelmaker.models.enums import ArtifactKind, FieldKind, RelationKind, Slot
from modelmaker.models.field import FieldDefinition
from modelmaker.models.index import IndexDefinition
from modelmaker.models.relation import RelationDefinition
from modelmaker.services.extractor import DeclarationExtractor
from modelmaker.services.factory import create_test_generation_service
from modelmaker.services.generator import GenerationService, MigrationClock

MIGRATIONS = Path("/project/database/migrations")
POST_MODEL = Path("/project/app/Models/Blog/Post.php")


def _post_batch() -> DefinitionBatch:
    return DefinitionBatch(
        fields=[
            FieldDefinition(name="title"),
            FieldDefinition(name="status", kind=FieldKind.ENUMERATED, enum_values=["draft", "published"]),
        ],
        relations=[
            RelationDefinition(method_name="author", target_type_ref="User", relation_kind=RelationKind.BELONGS_TO)
        ],
        indexes=[IndexDefinition(columns=["status"])],
    )


def _created_post_service() -> GenerationService:
    service = create_test_generation_service()
    target = service.resolve_target("Blog/Post")
    service.apply(service.plan(target, _post_batch()))
    return service


class TestMigrationClock:
    def test_stamps_strictly_increase(self) -> None:
        clock = MigrationClock(now=lambda: datetime(2024, 1, 1, 12, 0, 0), sleep=lambda _seconds: None)

        assert clock.stamp() == "2024_01_01_120000"
        assert clock.stamp() == "2024_01_01_120001"
        assert clock.stamp() == "2024_01_01_120002"

    def test_sleeps_before_delayed_stamp(self) -> None:
        slept: list[float] = []
        clock = MigrationClock(now=lambda: datetime(2024, 1, 1), sleep=slept.append)

        clock.stamp()
        clock.stamp(delay_seconds=1.0)

        assert slept == [1.0]


class TestResolveTarget:
    def test_nested_name(self) -> None:
        target = create_test_generation_service().resolve_target("Blog/Post")

        assert target.class_name == "Post"
        assert target.namespace == "App\\Models\\Blog"
        assert target.qualified_name == "App\\Models\\Blog\\Post"
        assert target.model_path == POST_MODEL
        assert target.table == "posts"
        assert set(target.model_dump()) == {"class_name", "namespace", "model_path", "table"}

    def test_backslash_separator(self) -> None:
        target = create_test_generation_service().resolve_target("Blog\\Post")

        assert target.model_path == POST_MODEL

    def test_plain_name(self) -> None:
        target = create_test_generation_service().resolve_target("Category")

        assert target.namespace == "App\\Models"
        assert target.model_path == Path("/project/app/Models/Category.php")
        assert target.table == "categories"

    @pytest.mark.parametrize("name", ["", "  /  ", "Blog/9Post", "Blog Post"])
    def test_rejects_invalid_names(self, name: str) -> None:
        with pytest.raises(ValueError):
            create_test_generation_service().resolve_target(name)


class TestCreatePlan:
    def test_end_to_end_create(self) -> None:
        service = create_test_generation_service()
        target = service.resolve_target("Blog/Post")

        plan = service.plan(target, _post_batch())

        assert plan.creating is True
        assert [planned.kind for planned in plan.files] == [ArtifactKind.CREATE_MIGRATION, ArtifactKind.MODEL]
        migration = plan.files_of(ArtifactKind.CREATE_MIGRATION)[0]
        assert migration.path == MIGRATIONS / "2024_01_01_120000_create_posts_table.php"
        assert "$table->index(['status'], 'posts_status_index');" in migration.content
        assert "$table->foreignId('author_id')->constrained('users')->cascadeOnDelete();" in migration.content

        model = plan.files_of(ArtifactKind.MODEL)[0]
        assert model.path == POST_MODEL
        assert "namespace App\\Models\\Blog;" in model.content
        assert "return $this->belongsTo(\\App\\Models\\User::class);" in model.content
        assert "protected $guarded = [];" in model.content
        assert DeclarationExtractor().extract_list(model.content, Slot.EXPOSED) == ["title", "status"]

    def test_plan_writes_nothing(self) -> None:
        service = create_test_generation_service()
        target = service.resolve_target("Blog/Post")

        service.plan(target, _post_batch())

        assert service.inspect(target).exists is False

    def test_apply_writes_every_file(self) -> None:
        service = create_test_generation_service()
        target = service.resolve_target("Blog/Post")

        result = service.apply(service.plan(target, _post_batch()))

        assert result.files_written == [MIGRATIONS / "2024_01_01_120000_create_posts_table.php", POST_MODEL]
        assert service.inspect(target).exists is True
        assert service.historical_migrations(target) == [MIGRATIONS / "2024_01_01_120000_create_posts_table.php"]

    def test_junction_migration_sorts_after_create(self) -> None:
        service = create_test_generation_service()
        target = service.resolve_target("Post")
        batch = DefinitionBatch(
            relations=[
                RelationDefinition(
                    method_name="tags",
                    target_type_ref="Tag",
                    relation_kind=RelationKind.BELONGS_TO_MANY,
                    needs_junction_table=True,
                )
            ]
        )

        plan = service.plan(target, batch)

        assert [planned.kind for planned in plan.files] == [
            ArtifactKind.CREATE_MIGRATION,
            ArtifactKind.JUNCTION_MIGRATION,
            ArtifactKind.MODEL,
        ]
        create, junction = plan.files[0].path.name, plan.files[1].path.name
        assert junction == "2024_01_01_120001_create_post_tag_table.php"
        assert create < junction

    def test_existing_junction_migration_is_skipped(self) -> None:
        existing = MIGRATIONS / "2023_06_01_000000_create_post_tag_table.php"
        service = create_test_generation_service(files={existing: "<?php\n"})
        target = service.resolve_target("Post")
        batch = DefinitionBatch(
            relations=[
                RelationDefinition(
                    method_name="tags",
                    target_type_ref="Tag",
                    relation_kind=RelationKind.BELONGS_TO_MANY,
                    needs_junction_table=True,
                )
            ]
        )

        plan = service.plan(target, batch)

        assert plan.files_of(ArtifactKind.JUNCTION_MIGRATION) == []
        assert any("post_tag" in warning for warning in plan.warnings)


class TestUpdatePlan:
    def test_end_to_end_update(self) -> None:
        service = _created_post_service()
        target = service.resolve_target("Blog/Post")
        batch = DefinitionBatch(
            fields=[FieldDefinition(name="published_at", kind=FieldKind.DATETIME, nullable=True)]
        )

        plan = service.plan(target, batch)

        assert plan.creating is False
        model = plan.files_of(ArtifactKind.MODEL)[0]
        assert DeclarationExtractor().extract_list(model.content, Slot.EXPOSED) == [
            "title",
            "status",
            "published_at",
        ]
        alter = plan.files_of(ArtifactKind.ALTER_MIGRATION)[0]
        assert alter.path == MIGRATIONS / "2024_01_01_120001_update_posts_table.php"
        assert (
            "if (! Schema::hasColumn('posts', 'published_at')) "
            "{ $table->dateTime('published_at')->nullable(); }" in alter.content
        )

    def test_existing_field_names(self) -> None:
        service = _created_post_service()
        inspection = service.inspect(service.resolve_target("Blog/Post"))

        assert inspection.existing_field_names == ["title", "status"]

    def test_known_columns_include_history(self) -> None:
        service = _created_post_service()
        known = service.known_columns(service.resolve_target("Blog/Post"))

        assert {"id", "title", "status", "author_id", "created_at", "updated_at"} <= known

    def test_relation_only_update_skips_alter_migration(self) -> None:
        service = _created_post_service()
        target = service.resolve_target("Blog/Post")
        batch = DefinitionBatch(
            relations=[
                RelationDefinition(
                    method_name="comments", target_type_ref="Comment", relation_kind=RelationKind.HAS_MANY
                )
            ]
        )

        plan = service.plan(target, batch)

        assert [planned.kind for planned in plan.files] == [ArtifactKind.MODEL]
        assert "Nothing to migrate; no alter migration generated." in plan.warnings
        assert plan.added_relations == ["comments"]

    def test_existing_relation_is_skipped(self) -> None:
        service = _created_post_service()
        target = service.resolve_target("Blog/Post")
        batch = DefinitionBatch(
            relations=[
                RelationDefinition(method_name="author", target_type_ref="User", relation_kind=RelationKind.BELONGS_TO)
            ]
        )

        plan = service.plan(target, batch)

        assert plan.files_of(ArtifactKind.MODEL) == []
        assert plan.skipped_relations == ["author"]
        assert len(plan.files_of(ArtifactKind.ALTER_MIGRATION)) == 1

    def test_empty_batch_is_rejected(self) -> None:
        service = _created_post_service()

        with pytest.raises(ValueError, match="nothing to add"):
            service.plan(service.resolve_target("Blog/Post"), DefinitionBatch())


class TestModelLookups:
    def test_has_accessor(self) -> None:
        service = _created_post_service()
        target = service.resolve_target("Blog/Post")

        assert service.has_accessor(target, "author") is True
        assert service.has_accessor(target, "comments") is False

    def test_has_accessor_for_missing_model(self) -> None:
        service = create_test_generation_service()

        assert service.has_accessor(service.resolve_target("Post"), "author") is False

    def test_related_model_exists(self) -> None:
        service = create_test_generation_service(files={Path("/project/app/Models/User.php"): "<?php\n"})

        assert service.related_model_exists("User") is True
        assert service.related_model_exists("App\\Models\\User") is True
        assert service.related_model_exists("Tag") is False
        assert service.related_model_exists("\\Vendor\\Package\\Thing") is True
