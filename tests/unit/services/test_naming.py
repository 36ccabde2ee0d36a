import pytest

from modelmaker.services.naming import (
    class_basename,
    foreign_key,
    junction_table_name,
    pluralize,
    qualify_type_ref,
    singularize,
    snake,
    studly,
    table_name,
)


class TestSnake:
    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("BlogPost", "blog_post"),
            ("publishedAt", "published_at"),
            ("published_at", "published_at"),
            ("Post", "post"),
            ("author", "author"),
        ],
    )
    def test_snake(self, name: str, expected: str) -> None:
        assert snake(name) == expected

    def test_studly(self) -> None:
        assert studly("blog_post") == "BlogPost"
        assert studly("order-item") == "OrderItem"


class TestInflection:
    @pytest.mark.parametrize(
        ("singular", "plural"),
        [
            ("post", "posts"),
            ("category", "categories"),
            ("day", "days"),
            ("box", "boxes"),
            ("church", "churches"),
            ("status", "statuses"),
            ("person", "people"),
            ("child", "children"),
        ],
    )
    def test_pluralize(self, singular: str, plural: str) -> None:
        assert pluralize(singular) == plural

    @pytest.mark.parametrize(
        ("plural", "singular"),
        [
            ("posts", "post"),
            ("categories", "category"),
            ("boxes", "box"),
            ("statuses", "status"),
            ("people", "person"),
            ("addresses", "address"),
        ],
    )
    def test_singularize(self, plural: str, singular: str) -> None:
        assert singularize(plural) == singular

    def test_uncountable_is_unchanged(self) -> None:
        assert pluralize("equipment") == "equipment"
        assert singularize("news") == "news"

    def test_inflects_last_word_only(self) -> None:
        assert pluralize("blog_category") == "blog_categories"
        assert pluralize("BlogPost") == "BlogPosts"
        assert singularize("post_tags") == "post_tag"

    def test_keeps_leading_capital(self) -> None:
        assert pluralize("Person") == "People"


class TestTableNames:
    @pytest.mark.parametrize(
        ("class_name", "table"),
        [
            ("Post", "posts"),
            ("BlogPost", "blog_posts"),
            ("Category", "categories"),
            ("App\\Models\\User", "users"),
            ("Person", "people"),
        ],
    )
    def test_table_name(self, class_name: str, table: str) -> None:
        assert table_name(class_name) == table

    def test_foreign_key(self) -> None:
        assert foreign_key("author") == "author_id"
        assert foreign_key("parentCategory") == "parent_category_id"

    def test_junction_table_name_is_sorted(self) -> None:
        assert junction_table_name("users", "roles") == "role_user"
        assert junction_table_name("posts", "tags") == "post_tag"
        assert junction_table_name("tags", "posts") == "post_tag"


class TestTypeReferences:
    def test_class_basename(self) -> None:
        assert class_basename("App\\Models\\User") == "User"
        assert class_basename("Blog/Post") == "Post"
        assert class_basename("User") == "User"

    def test_qualify_bare_name(self) -> None:
        assert qualify_type_ref("User", "App\\Models") == "App\\Models\\User"

    def test_qualify_relative_path(self) -> None:
        assert qualify_type_ref("Blog/Post", "App\\Models") == "App\\Models\\Blog\\Post"

    def test_qualify_keeps_name_under_namespace_root(self) -> None:
        assert qualify_type_ref("App\\Models\\User", "App\\Models") == "App\\Models\\User"

    def test_qualify_absolute_reference(self) -> None:
        assert qualify_type_ref("\\Vendor\\Pkg\\Thing", "App\\Models") == "Vendor\\Pkg\\Thing"
