import pytest

from alignmodel.constants import CIGAR, CIGAR_OPERATION, MAX_MAPPING_QUALITY, NA_MAPPING_QUALITY, STRAND, VIOLATION, Namespace, cast_boolean


class TestNamespace:
    def test_enforce(self):
        assert STRAND.enforce(STRAND.NEG) == '-'
        with pytest.raises(KeyError):
            STRAND.enforce('x')

    def test_reverse(self):
        assert CIGAR.reverse(CIGAR.S) == 'S'
        assert CIGAR_OPERATION.reverse(CIGAR.H) == 'CLIP_HARD'
        with pytest.raises(KeyError):
            CIGAR.reverse(100)

    def test_reverse_not_unique(self):
        with pytest.raises(KeyError):
            Namespace(a=1, b=1).reverse(1)

    def test_add_existing(self):
        nspace = Namespace(a=1)
        with pytest.raises(AttributeError):
            nspace.add('a', 2)

    def test_missing_member(self):
        with pytest.raises(AttributeError):
            VIOLATION.NOT_A_KIND

    def test_contains_members_only(self):
        assert 'INVALID_CIGAR' in VIOLATION
        assert 'InvalidCigar' not in VIOLATION
        assert 'InvalidCigar' in VIOLATION.values()
        for method_name in ['values', 'keys', 'items', 'add', '_members']:
            assert method_name not in CIGAR_OPERATION

    def test_not_env_overwritable(self, monkeypatch):
        monkeypatch.setenv('ALIGNMODEL_POS', '-')
        assert STRAND.POS == '+'

    def test_set_attribute(self):
        with pytest.raises(AttributeError):
            STRAND.POS = '-'
        with pytest.raises(AttributeError):
            Namespace()._thing = 1


def test_max_mapping_quality_below_na():
    assert MAX_MAPPING_QUALITY == NA_MAPPING_QUALITY - 1


@pytest.mark.parametrize('value,expected', [
    ['T', True], ['yes', True], [1, True], [True, True], ['-', False], ['No', False], [0, False], [False, False]
])
def test_cast_boolean(value, expected):
    assert cast_boolean(value) == expected


def test_cast_boolean_error():
    with pytest.raises(TypeError):
        cast_boolean('maybe')
