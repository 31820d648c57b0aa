"""Tests for the form code generator."""

import ast

import pytest
import sqlalchemy as sa
from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from ormgarden.codegen.forms import FormCodeGenerator
from ormgarden.codegen.models import ModelTarget
from ormgarden.config import GardenConfig, title_case_label
from ormgarden.core.types import ColumnMetadata, ForeignKeyMetadata, TableMetadata


def _column(name, type_name, position, **kwargs):
    return ColumnMetadata(
        name=name,
        attribute=name,
        type_name=type_name,
        sa_type=sa.String(),
        position=position,
        **kwargs,
    )


@pytest.fixture
def customers() -> ModelTarget:
    table = TableMetadata(
        name="customers",
        columns=[
            _column("id", "serial", 1, nullable=False, primary_key=True),
            _column("name", "varchar", 2, nullable=False, length=100),
            _column("email", "varchar", 3, length=20),
            _column("notes", "text", 4),
            _column("active", "boolean", 5, nullable=False),
            _column("created_at", "datetime", 6),
            _column("data", "integer", 7),
        ],
        primary_keys=["id"],
    )
    return ModelTarget(table=table, module="shop.customer", class_name="Customer")


@pytest.fixture
def order_products() -> ModelTarget:
    keys = [
        ForeignKeyMetadata(column="order_id", referred_table="orders", referred_column="id"),
        ForeignKeyMetadata(column="product_id", referred_table="products", referred_column="id"),
    ]
    table = TableMetadata(
        name="order_product_map",
        columns=[
            _column("order_id", "integer", 1, nullable=False, primary_key=True),
            _column("product_id", "integer", 2, nullable=False, primary_key=True),
        ],
        primary_keys=["order_id", "product_id"],
        foreign_keys=keys,
    )
    return ModelTarget(table=table, module="shop.order_product_map", class_name="OrderProductMap")


@pytest.fixture
def config() -> GardenConfig:
    return GardenConfig(garden_prefix="shop", find_schemas=False)


def _field(generator, target, name):
    column = target.table.get_column(name)
    text, _ = generator.column_to_field(column, column.position)
    return text


class TestFormCodeGenerator:
    """Tests for FormCodeGenerator."""

    def test_generates_base_and_forms(self, config, customers, order_products):
        result = FormCodeGenerator(config, [customers, order_products]).generate()

        assert [gf.path for gf in result.files] == ["shop/form.py", "shop/customer_form.py"]
        assert result.class_paths() == ["shop.customer_form.CustomerForm"]

    def test_base_form(self, config, customers):
        result = FormCodeGenerator(config, [customers]).generate()
        content = result.files[0].content

        assert "from wtforms import Form as BaseForm" in content
        assert "class Form(BaseForm):" in content
        assert "def populate_obj(self, obj):" in content
        ast.parse(content)

    def test_form_module(self, config, customers):
        content = FormCodeGenerator(config, [customers]).generate_form(customers)

        assert (
            "from wtforms import BooleanField, DateTimeField, HiddenField, IntegerField, "
            "StringField, TextAreaField, validators"
        ) in content
        assert "from shop.form import Form" in content
        assert "class CustomerForm(Form):" in content
        assert '"""Form for shop.customer.Customer."""' in content
        ast.parse(content)

    def test_renamed_fields_map_back_to_attributes(self, config, customers):
        content = FormCodeGenerator(config, [customers]).generate_form(customers)

        assert '    _model_attributes = {"data_": "data"}' in content
        assert "    data_ = IntegerField(" in content

    def test_underscored_attribute_beside_plain_one(self, config):
        table = TableMetadata(
            name="items",
            columns=[
                _column("id", "serial", 1, nullable=False, primary_key=True),
                _column("_code", "varchar", 2),
                _column("code", "varchar", 3),
            ],
            primary_keys=["id"],
        )
        target = ModelTarget(table=table, module="shop.item", class_name="Item")
        content = FormCodeGenerator(config, [target]).generate_form(target)

        assert '    _model_attributes = {"code_": "_code"}' in content
        assert "    code_ = StringField(" in content
        assert "    code = StringField(" in content

    def test_quoted_table_name(self, config):
        table = TableMetadata(
            name='odd"name\\',
            columns=[_column("id", "serial", 1, nullable=False, primary_key=True)],
            primary_keys=["id"],
        )
        target = ModelTarget(table=table, module="shop.odd_name", class_name="OddName")
        content = FormCodeGenerator(config, [target]).generate_form(target)

        assert ast.get_docstring(ast.parse(content)) == 'Form for the odd"name\\ table.'

    def test_fields_follow_column_order(self, config, customers):
        content = FormCodeGenerator(config, [customers]).generate_form(customers)
        positions = [content.index(f"    {name} = ") for name in ("id", "name", "email", "notes")]
        assert positions == sorted(positions)


class TestFieldRendering:
    """Tests for individual field renderers."""

    @pytest.fixture
    def generator(self, config, customers):
        return FormCodeGenerator(config, [customers])

    def test_serial_is_hidden(self, generator, customers):
        assert _field(generator, customers, "id") == "\n".join([
            "    id = HiddenField(",
            '        "id",  # serial',
            '        id="id",',
            "    )",
        ])

    def test_required_text(self, generator, customers):
        assert _field(generator, customers, "name") == "\n".join([
            "    name = StringField(",
            '        "name",  # varchar',
            '        id="name",',
            "        validators=[validators.InputRequired(), validators.Length(max=100)],",
            '        render_kw={"tabindex": 2, "size": 64, "maxlength": 64},',
            "    )",
        ])

    def test_short_text_size(self, generator, customers):
        text = _field(generator, customers, "email")
        assert "validators=[validators.Optional(), validators.Length(max=20)]," in text
        assert 'render_kw={"tabindex": 3, "size": 20, "maxlength": 64},' in text

    def test_textarea(self, generator, customers):
        text = _field(generator, customers, "notes")
        assert "notes = TextAreaField(" in text
        assert 'render_kw={"tabindex": 4, "cols": 64, "rows": 8},' in text

    def test_required_boolean_has_no_validators(self, generator, customers):
        text = _field(generator, customers, "active")
        assert "active = BooleanField(" in text
        assert "validators" not in text
        assert 'render_kw={"tabindex": 5},' in text

    def test_default_renderer(self, generator, customers):
        text = _field(generator, customers, "created_at")
        assert "created_at = DateTimeField(" in text
        assert "validators=[validators.Optional()]," in text
        assert 'render_kw={"tabindex": 6, "maxlength": 64},' in text

    def test_reserved_field_name(self, generator, customers):
        text = _field(generator, customers, "data")
        assert text.startswith("    data_ = IntegerField(")
        assert 'id="data_",' in text

    def test_unknown_type_is_text(self, generator):
        column = ColumnMetadata(name="token", attribute="token", type_name="uuid", position=1)
        text, field_class = generator.column_to_field(column, 1)
        assert field_class == "StringField"
        assert '"token",  # uuid' in text

    def test_text_field_size(self, customers):
        config = GardenConfig(garden_prefix="shop", text_field_size=30)
        text = _field(FormCodeGenerator(config, [customers]), customers, "name")
        assert 'render_kw={"tabindex": 2, "size": 30, "maxlength": 30},' in text


class TestCustomization:
    """Tests for field map, labels and renderer overrides."""

    def test_custom_field_map(self, customers):
        config = GardenConfig(garden_prefix="shop", column_field_map={"varchar": "email"})
        generator = FormCodeGenerator(config, [customers])
        column = customers.table.get_column("email")
        text, field_class = generator.column_to_field(column, 3)

        assert field_class == "EmailField"
        assert 'render_kw={"tabindex": 3, "size": 20, "maxlength": 64},' in text

    def test_label_maker(self, customers):
        config = GardenConfig(garden_prefix="shop", column_to_label=title_case_label)
        text = _field(FormCodeGenerator(config, [customers]), customers, "created_at")
        assert '"Created At",  # datetime' in text

    def test_label_maker_receives_garden(self, customers):
        seen = []

        def label(garden, name):
            seen.append(garden)
            return name.upper()

        config = GardenConfig(garden_prefix="shop", column_to_label=label)
        marker = object()
        generator = FormCodeGenerator(config, [customers], garden=marker)
        assert '"NAME",' in _field(generator, customers, "name")
        assert seen == [marker]

    def test_renderer_override(self, config, customers):
        class SpinnerForms(FormCodeGenerator):
            def render_integer_field(self, column, label, tabindex):
                return self._field(
                    "IntegerField",
                    column,
                    label,
                    validators=[],
                    render_kw={"tabindex": tabindex, "step": 5},
                )

        text = _field(SpinnerForms(config, [customers]), customers, "data")
        assert 'render_kw={"tabindex": 7, "step": 5},' in text


# === Mapped classes for from_models ===


class Base(DeclarativeBase):
    pass


class Author(Base):
    __tablename__ = "authors"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(80))


class Book(Base):
    __tablename__ = "books"

    id: Mapped[int] = mapped_column(primary_key=True)
    author_id: Mapped[int] = mapped_column(ForeignKey("authors.id"))
    title: Mapped[str | None] = mapped_column(String(200))


class TestFromModels:
    """Tests for building forms from existing mapped classes."""

    def test_from_models(self, config):
        generator = FormCodeGenerator.from_models(config, [Author, Book])
        result = generator.generate()

        assert result.class_paths() == [
            f"{__name__}_form.AuthorForm",
            f"{__name__}_book_form.BookForm",
        ]
        book = result.files[-1].content
        assert f'"""Form for {__name__}.Book."""' in book
        assert "title = StringField(" in book
        assert "validators.Length(max=200)" in book
