"""Tests for transformer chains and bundled transformers."""
import datetime

import pytest

from formstate import (
    BooleanToStringTransformer,
    CallbackTransformer,
    DataTransformer,
    DateToStringTransformer,
    FloatToStringTransformer,
    IntegerToStringTransformer,
    TransformationFailedError,
    TransformerChain,
    ValueToDuplicatesTransformer,
)


def recording(name, log):
    """Transformer that records the order in which it runs."""
    def forward(value):
        log.append(f"{name}.transform")
        return value

    def reverse(value):
        log.append(f"{name}.reverse")
        return value

    return CallbackTransformer(forward, reverse)


class TestTransformerChain:
    """Ordering and container behaviour of TransformerChain."""

    def test_forward_runs_left_to_right(self):
        log = []
        chain = TransformerChain([recording('a', log), recording('b', log)])
        chain.transform('x')
        assert log == ['a.transform', 'b.transform']

    def test_reverse_runs_right_to_left(self):
        log = []
        chain = TransformerChain([recording('a', log), recording('b', log)])
        chain.reverse_transform('x')
        assert log == ['b.reverse', 'a.reverse']

    def test_empty_chain_passes_values_through(self):
        chain = TransformerChain()
        value = {'a': 1}
        assert chain.transform(value) is value
        assert chain.reverse_transform(value) is value
        assert not chain
        assert len(chain) == 0

    def test_composition(self):
        chain = TransformerChain([
            CallbackTransformer(lambda v: v * 2, lambda v: v // 2),
            CallbackTransformer(lambda v: str(v), lambda v: int(v)),
        ])
        assert chain.transform(21) == '42'
        assert chain.reverse_transform('42') == 21

    def test_failure_propagates_and_stops_chain(self):
        log = []

        def fail(value):
            raise TransformationFailedError("nope")

        chain = TransformerChain([recording('a', log), CallbackTransformer(lambda v: v, fail)])
        with pytest.raises(TransformationFailedError):
            chain.reverse_transform('x')
        assert log == []

    def test_repr_lists_transformer_types(self):
        chain = TransformerChain([IntegerToStringTransformer()])
        assert repr(chain) == "TransformerChain([IntegerToStringTransformer])"
        assert list(chain)[0].__class__ is IntegerToStringTransformer


def test_bundled_transformers_satisfy_protocol():
    """Bundled transformers are structural DataTransformers."""
    for transformer in (
        IntegerToStringTransformer(),
        FloatToStringTransformer(),
        BooleanToStringTransformer(),
        DateToStringTransformer(),
        ValueToDuplicatesTransformer(['a', 'b']),
    ):
        assert isinstance(transformer, DataTransformer)


class TestIntegerToStringTransformer:

    def test_transform(self):
        transformer = IntegerToStringTransformer()
        assert transformer.transform(42) == '42'
        assert transformer.transform(None) == ''

    def test_reverse(self):
        transformer = IntegerToStringTransformer()
        assert transformer.reverse_transform(' 7 ') == 7
        assert transformer.reverse_transform('') is None
        assert transformer.reverse_transform(None) is None

    @pytest.mark.parametrize('bad', ['abc', '1.5'])
    def test_reverse_rejects_non_integers(self, bad):
        with pytest.raises(TransformationFailedError):
            IntegerToStringTransformer().reverse_transform(bad)

    def test_transform_rejects_bool(self):
        with pytest.raises(TransformationFailedError):
            IntegerToStringTransformer().transform(True)


class TestFloatToStringTransformer:

    def test_round_trip_without_precision(self):
        transformer = FloatToStringTransformer()
        assert transformer.transform(1.5) == '1.5'
        assert transformer.reverse_transform('1.5') == 1.5

    def test_precision(self):
        transformer = FloatToStringTransformer(precision=2)
        assert transformer.transform(3.14159) == '3.14'
        assert transformer.reverse_transform('3.14159') == 3.14

    @pytest.mark.parametrize('bad', ['nan', 'inf', 'x'])
    def test_reverse_rejects_non_finite(self, bad):
        with pytest.raises(TransformationFailedError):
            FloatToStringTransformer().reverse_transform(bad)


class TestBooleanToStringTransformer:

    def test_transform(self):
        transformer = BooleanToStringTransformer('yes')
        assert transformer.transform(True) == 'yes'
        assert transformer.transform(False) is None
        assert transformer.transform(None) is None

    def test_reverse_treats_any_string_as_checked(self):
        transformer = BooleanToStringTransformer()
        assert transformer.reverse_transform('1') is True
        assert transformer.reverse_transform('') is True
        assert transformer.reverse_transform(None) is False

    def test_rejects_non_bool(self):
        with pytest.raises(TransformationFailedError):
            BooleanToStringTransformer().transform('true')


class TestDateToStringTransformer:

    def test_round_trip(self):
        transformer = DateToStringTransformer('%d.%m.%Y')
        date = datetime.date(2024, 2, 29)
        assert transformer.transform(date) == '29.02.2024'
        assert transformer.reverse_transform('29.02.2024') == date

    def test_reverse_rejects_wrong_format(self):
        with pytest.raises(TransformationFailedError):
            DateToStringTransformer().reverse_transform('29.02.2024')


class TestValueToDuplicatesTransformer:

    def test_transform_spreads_value(self):
        transformer = ValueToDuplicatesTransformer(['first', 'second'])
        assert transformer.transform('secret') == {'first': 'secret', 'second': 'secret'}

    def test_reverse_returns_agreed_value(self):
        transformer = ValueToDuplicatesTransformer(['first', 'second'])
        assert transformer.reverse_transform({'first': 'a', 'second': 'a'}) == 'a'

    def test_reverse_all_empty_is_none(self):
        transformer = ValueToDuplicatesTransformer(['first', 'second'])
        assert transformer.reverse_transform({'first': '', 'second': None}) is None

    def test_reverse_rejects_partially_empty(self):
        transformer = ValueToDuplicatesTransformer(['first', 'second'])
        with pytest.raises(TransformationFailedError, match="should not be empty"):
            transformer.reverse_transform({'first': 'a', 'second': ''})

    def test_reverse_rejects_disagreement(self):
        transformer = ValueToDuplicatesTransformer(['first', 'second'])
        with pytest.raises(TransformationFailedError, match="should be the same"):
            transformer.reverse_transform({'first': 'a', 'second': 'b'})
