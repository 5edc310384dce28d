import pytest

from minipg import (
    UNDEFINED,
    ArrayColumn,
    Entity,
    Integer,
    Json,
    ModelDeclarationError,
    Relationship,
    Text,
    UnknownPropertyError,
)
from minipg.mapper import quote, snake_case
from models import Category, Product, Store, TrackedProduct


@pytest.mark.parametrize("name,expected", [
    ("Product", "product"),
    ("TrackedProduct", "tracked_product"),
    ("HTTPRequestLog", "http_request_log"),
])
def test_snake_case(name, expected):
    assert snake_case(name) == expected


def test_quote_rejects_unsafe_identifiers():
    assert quote("store_id") == '"store_id"'
    with pytest.raises(ModelDeclarationError):
        quote('name"; DROP TABLE products; --')
    with pytest.raises(ModelDeclarationError):
        quote("")


def test_table_name_defaults_to_snake_case():
    assert TrackedProduct._mapper.table_name == "tracked_product"
    assert Product._mapper.table_name == "products"


def test_columns_keep_declaration_order():
    assert [column.property_name for column in Product._mapper.columns] == [
        "id", "name", "sku", "aliases", "store", "price", "in_stock", "details", "ratings", "categories",
    ]


def test_primary_key_falls_back_to_id():
    class Widget(Entity):
        id = Integer()
        name = Text()

    assert Widget._mapper.primary_key_property == "id"
    assert Widget._mapper.primary_key_column is Widget.id


def test_explicit_primary_key():
    class Widget(Entity):
        code = Text(primary_key=True)

    assert Widget._mapper.primary_key_property == "code"


def test_more_than_one_primary_key():
    with pytest.raises(ModelDeclarationError):
        class Widget(Entity):
            a = Integer(primary_key=True)
            b = Integer(primary_key=True)


def test_unsafe_column_name():
    with pytest.raises(ModelDeclarationError):
        class Widget(Entity):
            id = Integer(name="id; --")


def test_subclass_inherits_columns():
    class Base(Entity):
        id = Integer(primary_key=True)

    class Widget(Base):
        name = Text()

    assert list(Widget._mapper.columns_by_property) == ["id", "name"]
    assert Widget._mapper.table_name == "widget"


def test_meta_name_and_readonly():
    class Widget(Entity):
        class Meta:
            name = "Gadget"
            readonly = True

        id = Integer()

    assert Widget._mapper.name == "Gadget"
    assert Widget._mapper.readonly is True


def test_unknown_property():
    with pytest.raises(UnknownPropertyError):
        Product._mapper.column("bogus")
    with pytest.raises(UnknownPropertyError):
        Product._mapper.column(None)


def test_unset_attribute_reads_none():
    product = Product(name="a")
    assert product.sku is None
    assert Product.sku.name == "sku"


def test_to_dict_only_contains_set_values():
    product = Product(name="a", store=3, sku=None)
    assert product.to_dict() == {"name": "a", "sku": None, "store": 3}


def test_hydrate():
    product = Product._mapper.hydrate({"id": 1, "name": "a", "aliases": ["b"]})
    assert isinstance(product, Product)
    assert (product.id, product.name, product.aliases) == (1, "a", ["b"])
    assert repr(product) == "<Product(id=1)>"
    assert repr(Product()) == "<Product(id=New)>"


def test_relation_target():
    assert Product.store.relation == "Store"
    assert Relationship(Store).relation == "Store"
    assert Store.products.collection
    assert Category.products.through == "ProductCategory"


@pytest.mark.parametrize("column,is_array,cast", [
    (ArrayColumn("integer"), True, "::INTEGER[]"),
    (ArrayColumn("boolean"), True, "::BOOLEAN[]"),
    (ArrayColumn(None), True, "::TEXT[]"),
    (Integer(), False, "::INTEGER[]"),
    (Text(), False, "::TEXT[]"),
    (Json(), False, "::TEXT[]"),
])
def test_array_types(column, is_array, cast):
    assert column.is_array is is_array
    assert column.array_cast == cast


def test_default_value():
    assert Text().default_value() is UNDEFINED
    assert Text(default="x").default_value() == "x"
    assert Product.aliases.default_value() == []
    assert TrackedProduct.created_at.default_value() is not UNDEFINED
