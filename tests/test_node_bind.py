"""Tests for Node.bind()."""
import datetime

import pytest

from formstate import (
    AlreadyBoundError,
    BooleanToStringTransformer,
    CallbackValidator,
    DateToStringTransformer,
    IntegerToStringTransformer,
    NodeConfigBuilder,
    UnexpectedTypeError,
    ValueToDuplicatesTransformer,
)
from conftest import Address, Person, make_compound, make_field


class TestSimpleBind:

    def test_round_trip(self):
        """A presentation value produced by set_value() binds back to the same storage value."""
        source = make_field('birthday', DateToStringTransformer())
        source.set_value(datetime.date(1815, 12, 10))

        target = make_field('birthday', DateToStringTransformer())
        target.bind(source.get_presentation_value())

        assert target.get_value() == datetime.date(1815, 12, 10)
        assert target.is_synchronized()

    def test_scalar_submission_becomes_text(self):
        node = make_field('age', IntegerToStringTransformer())
        node.bind(42)
        assert node.get_value() == 42
        assert node.get_presentation_value() == '42'

    def test_empty_text_becomes_none(self):
        node = make_field('name')
        node.bind('')
        assert node.get_value() is None
        assert node.get_presentation_value() == ''

    def test_empty_submission_uses_empty_data(self):
        node = make_field('country', empty_data='GB')
        node.bind('')
        assert node.get_value() == 'GB'

    def test_empty_data_supplier(self):
        node = make_field('country', empty_data=lambda node, value: f"{node.get_name()}:{value!r}")
        node.bind(None)
        assert node.get_value() == 'country:None'

    def test_unchecked_checkbox(self):
        node = make_field('active', BooleanToStringTransformer(), data=True)
        node.bind(None)
        assert node.get_value() is False
        assert node.get_presentation_value() is None

    def test_checked_checkbox(self):
        node = make_field('active', BooleanToStringTransformer())
        node.bind('1')
        assert node.get_value() is True
        assert node.get_presentation_value() == '1'

    def test_bind_is_monotonic(self):
        node = make_field('name')
        node.bind('Ada')
        assert node.is_bound()
        with pytest.raises(AlreadyBoundError):
            node.bind('Grace')
        assert node.get_value() == 'Ada'

    def test_returns_node(self):
        node = make_field('name')
        assert node.bind('Ada') is node

    def test_boolean_submission_uses_checkbox_text(self):
        checked = make_field('terms')
        checked.bind(True)
        assert checked.get_value() == '1'

        unchecked = make_field('terms')
        unchecked.bind(False)
        assert unchecked.get_value() is None
        assert unchecked.is_empty()


class TestDesynchronization:

    def test_failed_reverse_transform_desynchronizes(self):
        node = make_field('age', IntegerToStringTransformer())
        node.bind('forty-two')

        assert node.is_bound()
        assert not node.is_synchronized()
        assert node.get_value() is None
        assert node.get_normalized_value() is None
        assert node.get_presentation_value() == 'forty-two'
        assert node.get_transformation_failure() is not None

    def test_desynchronized_node_is_still_valid_without_errors(self):
        node = make_field('age', IntegerToStringTransformer())
        node.bind('forty-two')
        assert node.is_valid()

    def test_repeated_field_mismatch(self):
        node = make_field('password', ValueToDuplicatesTransformer(['first', 'second']))
        node.bind({'first': 'secret', 'second': 'typo'})
        assert not node.is_synchronized()

    def test_desynchronized_child_is_not_written_back(self, user_node):
        user_node.bind({'name': 'Grace', 'age': 'old'})

        assert user_node.is_synchronized()
        assert not user_node['age'].is_synchronized()
        assert user_node.get_value() == {'name': 'Grace', 'age': 36}


class TestCompoundBind:

    def test_children_bind_their_entries(self, user_node):
        user_node.bind({'name': 'Grace', 'age': '37'})

        assert user_node['name'].get_value() == 'Grace'
        assert user_node['age'].get_value() == 37
        assert user_node.get_value() == {'name': 'Grace', 'age': 37}
        assert user_node.is_valid()

    def test_missing_entries_bind_as_none(self, user_node):
        user_node.bind({'name': 'Grace'})
        assert user_node['age'].is_bound()
        assert user_node['age'].get_value() is None
        assert user_node.get_value() == {'name': 'Grace', 'age': None}

    def test_extra_values(self, user_node):
        user_node.bind({'name': 'Grace', 'age': '37', 'nickname': 'Amazing', 'role': 'admin'})
        assert user_node.get_extra_values() == {'nickname': 'Amazing', 'role': 'admin'}
        assert list(user_node.get_extra_values()) == ['nickname', 'role']
        assert user_node.get_value() == {'name': 'Grace', 'age': 37}

    def test_extra_values_without_data(self):
        node = make_compound('form')
        node.add(make_field('a'))

        node.bind({'a': 'x', 'b': 'y'})

        assert node.get_extra_values() == {'b': 'y'}
        assert node.get_value() == {'a': 'x'}
        assert not node.is_empty()

    def test_empty_submission(self):
        node = make_compound('form')
        node.add(make_field('a'))
        node.add(make_field('b'))

        node.bind({})

        assert node['a'].is_bound() and node['a'].get_value() is None
        assert node['b'].is_bound() and node['b'].get_value() is None
        assert node.get_extra_values() == {}
        assert node['a'].is_empty() and node['b'].is_empty()
        assert node.is_empty()
        assert node.get_value() == {'a': None, 'b': None}

    def test_children_without_parent_data_reach_the_parent(self):
        node = make_compound('form')
        node.add(make_field('a'))
        node.add(make_field('b', IntegerToStringTransformer()))

        node.bind({'a': 'x', 'b': '2'})

        assert node.get_value() == {'a': 'x', 'b': 2}
        assert node.is_synchronized()

    def test_object_without_data_binds_into_new_instance(self):
        node = make_compound('address', data_class=Address)
        node.add(make_field('street'))
        node.add(make_field('city'))

        node.bind({'street': 'Main St', 'city': 'London'})

        assert node.get_value() == Address('Main St', 'London')

    def test_explicit_empty_data_is_kept(self):
        node = make_compound('form', empty_data={'source': 'web'})
        node.add(make_field('a'))

        node.bind({'a': 'x'})

        assert node.get_value() == {'source': 'web', 'a': 'x'}

    def test_none_submission_is_empty(self, user_node):
        user_node.bind(None)
        assert user_node['name'].get_value() is None

    def test_scalar_submission_is_rejected(self, user_node):
        with pytest.raises(UnexpectedTypeError):
            user_node.bind('not a mapping')

    def test_children_bind_in_insertion_order(self):
        order = []
        node = make_compound('form')
        for name in ('first', 'second', 'third'):
            node.add(NodeConfigBuilder(name)
                     .add_validator(CallbackValidator(lambda child: order.append(child.get_name())))
                     .get_node())

        node.bind({'third': 'c', 'first': 'a', 'second': 'b'})

        assert order == ['first', 'second', 'third']

    def test_object_graph(self, person_node):
        person = person_node.get_value()

        person_node.bind({'name': 'Grace', 'age': '37', 'address': {'street': 'Broadway', 'city': 'New York'}})

        assert person_node.get_value() is person
        assert person == Person(name='Grace', age=37, address=Address('Broadway', 'New York'))

    def test_empty_object_uses_empty_data(self):
        node = make_compound('address', data_class=Address, empty_data=lambda: Address())
        node.add(make_field('street'))
        node.add(make_field('city'))

        node.bind({'city': 'Paris'})

        assert node.get_value() == Address(street=None, city='Paris')


class TestDisabled:

    def test_disabled_node_keeps_its_data(self):
        node = make_field('name', data='Ada', disabled=True)
        node.bind('Grace')
        assert node.is_bound()
        assert node.get_value() == 'Ada'

    def test_disabled_child_is_not_written_back(self):
        node = make_compound('user', data={'name': 'Ada', 'role': 'user'})
        node.add(make_field('name'))
        node.add(make_field('role', disabled=True))

        node.bind({'name': 'Grace', 'role': 'admin'})

        assert node.get_value() == {'name': 'Grace', 'role': 'user'}
        assert node['role'].is_bound()

    def test_children_of_disabled_node_are_disabled(self):
        node = make_compound('user', data={'name': 'Ada'}, disabled=True)
        node.add(make_field('name'))
        assert node['name'].is_disabled()

        node.bind({'name': 'Grace'})
        assert not node['name'].is_bound()
        assert node.is_valid()


class TestValidators:

    def test_validators_run_after_bind(self):
        def adult(node):
            if node.get_value() is not None and node.get_value() < 18:
                node.add_error('You must be an adult.')

        node = (NodeConfigBuilder('age')
                .add_view_transformer(IntegerToStringTransformer())
                .add_validator(CallbackValidator(adult))
                .get_node())
        node.bind('12')

        assert [error.message for error in node.get_errors()] == ['You must be an adult.']
        assert not node.is_valid()
