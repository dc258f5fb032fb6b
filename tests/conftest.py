"""Pytest configuration and shared fixtures."""
import pytest
from dataclasses import dataclass
from typing import Optional

from formstate import (
    IntegerToStringTransformer,
    NodeConfigBuilder,
    PropertyPathMapper,
    clear_property_path_cache,
    reset_builder_defaults,
)


@dataclass
class Address:
    """Domain object used for data_class mapping tests."""
    street: Optional[str] = None
    city: Optional[str] = None


@dataclass
class Person:
    """Domain object with a nested object."""
    name: Optional[str] = None
    age: Optional[int] = None
    address: Optional[Address] = None


@pytest.fixture(autouse=True)
def reset_module_state():
    """Reset ambient defaults and the property path cache around each test."""
    reset_builder_defaults()
    clear_property_path_cache()

    yield

    reset_builder_defaults()
    clear_property_path_cache()


def make_field(name, *transformers, **options):
    """Build a simple node with the given view transformers and builder options."""
    builder = NodeConfigBuilder(name)
    for transformer in transformers:
        builder.add_view_transformer(transformer)
    for option, value in options.items():
        getattr(builder, f"set_{option}")(value)
    return builder.get_node()


def make_compound(name, data=None, data_class=None, **options):
    """Build a compound node mapped by property paths."""
    builder = (NodeConfigBuilder(name, data_class=data_class)
               .set_compound(True)
               .set_data_mapper(PropertyPathMapper())
               .set_data(data))
    for option, value in options.items():
        getattr(builder, f"set_{option}")(value)
    return builder.get_node()


@pytest.fixture
def field_factory():
    """Provide the simple node factory."""
    return make_field


@pytest.fixture
def compound_factory():
    """Provide the compound node factory."""
    return make_compound


@pytest.fixture
def user_node():
    """Compound node over a dict with a text child and an integer child."""
    root = make_compound('user', data={'name': 'Ada', 'age': 36})
    root.add(make_field('name'))
    root.add(make_field('age', IntegerToStringTransformer()))
    return root


@pytest.fixture
def person_node():
    """Compound node over a Person object with a nested Address node."""
    address = make_compound('address', data_class=Address)
    address.add(make_field('street'))
    address.add(make_field('city'))

    root = make_compound('person', data=Person(name='Ada', age=36, address=Address('Main St', 'London')),
                         data_class=Person)
    root.add(make_field('name'))
    root.add(make_field('age', IntegerToStringTransformer()))
    root.add(address)
    return root
